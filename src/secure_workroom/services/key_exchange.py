"""Public key exchange between the two parties of a conversation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import update

from secure_workroom.db.time import utcnow
from secure_workroom.models import Conversation, PartyRole
from secure_workroom.services.audit import (
    AUDIT_PUBLIC_KEY_EXCHANGED,
    AUDIT_PUBLIC_KEY_ROTATED,
    RequestOrigin,
)
from secure_workroom.services.conversations import ConversationStore
from secure_workroom.services.errors import InvalidInputError
from secure_workroom.services.presence import EVENT_ENCRYPTION_READY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyExchangeResult:
    """Outcome of a key submission."""

    role: PartyRole
    encryption_ready: bool
    rotated: bool


class KeyExchangeManager:
    """Stores each party's public key in the slot matching its role.

    Keys are opaque blobs; their format and algorithm are the client's
    business. A second submission from the same party replaces the first
    (last write wins) and is audited as a rotation.
    """

    def __init__(self, store: ConversationStore) -> None:
        self.store = store
        self.db = store.db

    async def submit_public_key(
        self,
        conversation_id: str,
        caller_id: str,
        public_key: str,
        origin: RequestOrigin | None = None,
    ) -> KeyExchangeResult:
        if not public_key or not public_key.strip():
            raise InvalidInputError("Public key is required")

        ctx = self.store.resolve(conversation_id, caller_id)
        previous = ctx.conversation.public_key_for(ctx.role)

        slot = (
            Conversation.client_public_key
            if ctx.role is PartyRole.CLIENT
            else Conversation.counterparty_public_key
        )
        # Single-column write; the other party's slot is never touched.
        self.db.execute(
            update(Conversation)
            .where(Conversation.conversation_id == ctx.conversation_id)
            .values({slot: public_key, Conversation.updated_at: utcnow()})
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

        # Re-read so a concurrent submission from the partner is seen.
        self.db.refresh(ctx.conversation)
        ready = ctx.conversation.encryption_ready

        rotated = previous is not None and previous != public_key
        self.store.append_audit_entry(
            ctx.conversation_id,
            AUDIT_PUBLIC_KEY_ROTATED if rotated else AUDIT_PUBLIC_KEY_EXCHANGED,
            caller_id,
            (
                "Public key replaced for E2E encryption"
                if rotated
                else "Public key registered for E2E encryption"
            ),
            origin,
        )
        logger.info(
            "Public key stored for %s in %s (role=%s, ready=%s)",
            caller_id,
            ctx.conversation_id,
            ctx.role.value,
            ready,
        )

        if ready:
            await self.store.presence.notify(
                ctx.partner_id,
                EVENT_ENCRYPTION_READY,
                {
                    "conversation_id": ctx.conversation_id,
                    "message": "End-to-end encryption is now active",
                },
            )

        return KeyExchangeResult(role=ctx.role, encryption_ready=ready, rotated=rotated)
