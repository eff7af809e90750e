# src/secure_workroom/services/messages.py
"""Encrypted message envelope handling.

Envelopes arrive already encrypted; the server assigns identifiers, appends
them to the conversation's log and walks each one through the forward-only
delivery states sent -> delivered -> read. Every state change is a
conditional UPDATE so racing delivery and read receipts can never move a
message backwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, update

from secure_workroom.core.settings import settings
from secure_workroom.db.time import as_utc, utcnow
from secure_workroom.models import ConversationMessage
from secure_workroom.models.message import (
    MESSAGE_STATUS_DELIVERED,
    MESSAGE_STATUS_READ,
    MESSAGE_STATUS_SENT,
    MESSAGE_TYPES,
)
from secure_workroom.schemas.message import MessageResponse, normalize_signature
from secure_workroom.services.conversations import ConversationStore, PartyContext, generate_id
from secure_workroom.services.errors import (
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from secure_workroom.services.presence import (
    EVENT_ENCRYPTED_MESSAGE,
    EVENT_MESSAGE_DELIVERED,
    EVENT_MESSAGES_READ,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    message: ConversationMessage
    duplicate: bool = False


def serialize_message(message: ConversationMessage) -> dict[str, Any]:
    """Serialize an envelope into its JSON event form."""
    return MessageResponse.model_validate(message).model_dump(mode="json")


class MessageEnvelopeService:
    """Accepts, stores and tracks encrypted envelopes for one conversation at a time."""

    def __init__(self, store: ConversationStore) -> None:
        self.store = store
        self.db = store.db
        self.presence = store.presence

    # --- submission -----------------------------------------------------------------
    async def send_message(
        self,
        conversation_id: str,
        caller_id: str,
        ciphertext: str,
        content_hash: str,
        signature: str | None = None,
        message_type: str = "text",
        attachments: Iterable[dict[str, Any]] | None = None,
        expires_at: datetime | None = None,
        client_token: str | None = None,
    ) -> SendResult:
        """Append an encrypted envelope and push it to the recipient.

        Raises:
            InvalidInputError: If ciphertext or hash is empty or the type is unknown.
            NotFoundError: If the caller is not a party.
            InvalidStateError: If the conversation is not active.
        """
        if not ciphertext or not content_hash:
            raise InvalidInputError("Encrypted content and hash are required")
        if message_type not in MESSAGE_TYPES:
            raise InvalidInputError(f"Unknown message type '{message_type}'")
        signature = normalize_signature(signature)
        if signature is None:
            logger.debug("Message for %s submitted without signature", conversation_id)

        ctx = self.store.resolve(conversation_id, caller_id)
        if not ctx.conversation.is_active:
            raise InvalidStateError("Conversation is not active")

        if client_token:
            existing = self._find_retry(ctx, client_token)
            if existing is not None:
                logger.info(
                    "Deduplicated retried send %s in %s", existing.message_id, ctx.conversation_id
                )
                return SendResult(message=existing, duplicate=True)

        recipient_id = ctx.partner_id
        message = ConversationMessage(
            message_id=generate_id("msg"),
            conversation_id=ctx.conversation_id,
            sender_id=caller_id,
            recipient_id=recipient_id,
            ciphertext=ciphertext,
            content_hash=content_hash,
            signature=signature,
            message_type=message_type,
            attachments=[dict(item) for item in attachments or ()],
            status=MESSAGE_STATUS_SENT,
            created_at=utcnow(),
            expires_at=expires_at,
            client_token=client_token,
        )
        # Row insert plus SQL-side counter bump: concurrent senders never
        # overwrite one another.
        self.db.add(message)
        self.store.touch_activity(ctx.conversation_id, messages=1)
        self.db.commit()
        self.db.refresh(message)
        logger.debug(
            "Stored message %s in %s (%d bytes ciphertext)",
            message.message_id,
            ctx.conversation_id,
            len(ciphertext),
        )

        if self.presence.is_online(recipient_id) and self._promote_to_delivered(message):
            await self.presence.notify(
                caller_id,
                EVENT_MESSAGE_DELIVERED,
                self._delivery_payload(message),
            )

        await self.presence.notify(
            recipient_id,
            EVENT_ENCRYPTED_MESSAGE,
            {"conversation_id": ctx.conversation_id, "message": serialize_message(message)},
        )
        return SendResult(message=message)

    def _find_retry(self, ctx: PartyContext, client_token: str) -> ConversationMessage | None:
        window_start = utcnow() - timedelta(seconds=settings.idempotency_window_seconds)
        return (
            self.db.query(ConversationMessage)
            .filter(
                ConversationMessage.conversation_id == ctx.conversation_id,
                ConversationMessage.sender_id == ctx.caller_id,
                ConversationMessage.client_token == client_token,
                ConversationMessage.created_at >= window_start,
            )
            .order_by(ConversationMessage.id)
            .first()
        )

    # --- history --------------------------------------------------------------------
    def get_messages(
        self,
        conversation_id: str,
        caller_id: str,
        limit: int | None = None,
        before: datetime | None = None,
    ) -> Sequence[ConversationMessage]:
        """Return a newest-first page of the log; never marks anything read."""
        ctx = self.store.resolve(conversation_id, caller_id)
        page = settings.message_page_default if limit is None else limit
        page = max(1, min(page, settings.message_page_max))

        query = self.db.query(ConversationMessage).filter(
            ConversationMessage.conversation_id == ctx.conversation_id
        )
        if before is not None:
            query = query.filter(ConversationMessage.created_at < as_utc(before))
        return (
            query.order_by(ConversationMessage.created_at.desc(), ConversationMessage.id.desc())
            .limit(page)
            .all()
        )

    # --- state transitions ----------------------------------------------------------
    def _promote_to_delivered(self, message: ConversationMessage) -> bool:
        """Compare-and-swap sent -> delivered. Returns True if this call won."""
        result = self.db.execute(
            update(ConversationMessage)
            .where(
                ConversationMessage.message_id == message.message_id,
                ConversationMessage.status == MESSAGE_STATUS_SENT,
            )
            .values(status=MESSAGE_STATUS_DELIVERED, delivered_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(message)
        return result.rowcount == 1

    def _delivery_payload(self, message: ConversationMessage) -> dict[str, Any]:
        return {
            "conversation_id": message.conversation_id,
            "message_id": message.message_id,
            "status": MESSAGE_STATUS_DELIVERED,
            "delivered_at": message.delivered_at.isoformat() if message.delivered_at else None,
        }

    def _get_message(self, ctx: PartyContext, message_id: str) -> ConversationMessage:
        message = (
            self.db.query(ConversationMessage)
            .filter(
                ConversationMessage.conversation_id == ctx.conversation_id,
                ConversationMessage.message_id == message_id,
            )
            .populate_existing()
            .first()
        )
        if message is None:
            raise NotFoundError("Message not found")
        return message

    async def mark_delivered(
        self, conversation_id: str, caller_id: str, message_id: str
    ) -> ConversationMessage:
        """Recipient acknowledges receipt; a no-op unless the message is still `sent`.

        Raises:
            NotFoundError: Unknown conversation, non-party caller or unknown message.
            ForbiddenError: Caller is a party but not the recipient.
        """
        ctx = self.store.resolve(conversation_id, caller_id)
        message = self._get_message(ctx, message_id)
        if message.recipient_id != caller_id:
            raise ForbiddenError("Not authorized")

        if self._promote_to_delivered(message):
            await self.presence.notify(
                message.sender_id,
                EVENT_MESSAGE_DELIVERED,
                self._delivery_payload(message),
            )
        return message

    async def mark_read(
        self, conversation_id: str, caller_id: str, message_ids: Sequence[str] | None
    ) -> list[str]:
        """Mark the caller's incoming messages read.

        Ids that are unknown, already read, or addressed to the other party are
        skipped silently. The sender gets a single aggregate `messages_read`
        event, and only when something actually changed.

        Returns:
            Ids of the messages this call moved to `read`.
        """
        if message_ids is None:
            raise InvalidInputError("message_ids is required")
        ctx = self.store.resolve(conversation_id, caller_id)
        wanted = list(dict.fromkeys(message_ids))
        if not wanted:
            return []

        now = utcnow()
        returned = self.db.execute(
            update(ConversationMessage)
            .where(
                ConversationMessage.conversation_id == ctx.conversation_id,
                ConversationMessage.recipient_id == caller_id,
                ConversationMessage.message_id.in_(wanted),
                ConversationMessage.status != MESSAGE_STATUS_READ,
            )
            .values(
                status=MESSAGE_STATUS_READ,
                read_at=now,
                delivered_at=func.coalesce(ConversationMessage.delivered_at, now),
            )
            .returning(ConversationMessage.message_id)
            .execution_options(synchronize_session=False)
        ).scalars().all()
        self.db.commit()
        # Ids committed by a concurrent receipt are absent from RETURNING.
        won = set(returned)
        changed = [message_id for message_id in wanted if message_id in won]
        if not changed:
            return []

        logger.debug(
            "Marked %d message(s) read in %s for %s",
            len(changed),
            ctx.conversation_id,
            caller_id,
        )
        await self.presence.notify(
            ctx.partner_id,
            EVENT_MESSAGES_READ,
            {
                "conversation_id": ctx.conversation_id,
                "read_by": caller_id,
                "read_at": now.isoformat(),
                "message_ids": changed,
            },
        )
        return changed

    def delete_message(
        self, conversation_id: str, caller_id: str, message_id: str
    ) -> ConversationMessage:
        """Soft-delete an envelope for UI hiding; only its sender may do this."""
        ctx = self.store.resolve(conversation_id, caller_id)
        message = self._get_message(ctx, message_id)
        if message.sender_id != caller_id:
            raise ForbiddenError("Only the sender can delete a message")

        self.db.execute(
            update(ConversationMessage)
            .where(
                ConversationMessage.message_id == message.message_id,
                ConversationMessage.is_deleted.is_(False),
            )
            .values(is_deleted=True, deleted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(message)
        return message
