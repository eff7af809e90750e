"""Conversation store: creation, lookup and party resolution."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from secure_workroom.core.settings import settings
from secure_workroom.db.time import utcnow
from secure_workroom.models import AuditEntry, Conversation, PartyRole
from secure_workroom.models.conversation import (
    CONVERSATION_STATUS_ARCHIVED,
    CONVERSATION_STATUS_CLOSED,
    CONVERSATION_STATUSES,
)
from secure_workroom.services.audit import (
    AUDIT_CONVERSATION_CREATED,
    AUDIT_STATUS_CHANGED,
    AuditTrailRecorder,
    RequestOrigin,
)
from secure_workroom.services.errors import ConflictError, InvalidInputError, NotFoundError
from secure_workroom.services.presence import EVENT_CONVERSATION_CREATED, PresenceRouter

logger = logging.getLogger(__name__)


def generate_id(prefix: str, nbytes: int = 16) -> str:
    """Return an opaque identifier of the form `<prefix>_<ms>_<hex>`."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(nbytes)}"


@dataclass(frozen=True)
class PartyContext:
    """A caller resolved against a conversation, computed once per request."""

    conversation: Conversation
    caller_id: str
    role: PartyRole

    @property
    def conversation_id(self) -> str:
        return self.conversation.conversation_id

    @property
    def partner_id(self) -> str:
        return self.conversation.party_id(self.role.other)


class ConversationStore:
    """Owns conversation records and the caller-is-a-party check."""

    def __init__(
        self,
        db: Session,
        presence: PresenceRouter,
        audit: AuditTrailRecorder | None = None,
    ) -> None:
        self.db = db
        self.presence = presence
        self.audit = audit or AuditTrailRecorder(db)

    # --- party resolution -----------------------------------------------------------
    def resolve(self, conversation_id: str, caller_id: str) -> PartyContext:
        """Load a conversation for a caller.

        Raises:
            NotFoundError: If the conversation is missing or the caller is not
                one of its two parties.
        """
        conversation = (
            self.db.query(Conversation)
            .filter(
                Conversation.conversation_id == conversation_id,
                or_(
                    Conversation.client_id == caller_id,
                    Conversation.counterparty_id == caller_id,
                ),
            )
            .populate_existing()
            .first()
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")
        role = conversation.role_of(caller_id)
        if role is None:  # pragma: no cover - filtered by the query above
            raise NotFoundError("Conversation not found")
        return PartyContext(conversation=conversation, caller_id=caller_id, role=role)

    # --- creation -------------------------------------------------------------------
    async def create_conversation(
        self,
        job_id: str,
        proposal_id: str,
        client_id: str,
        counterparty_id: str,
        origin: RequestOrigin | None = None,
    ) -> Conversation:
        """Open the conversation for an accepted proposal.

        Called by the proposal-acceptance collaborator, exactly once per
        proposal.

        Raises:
            InvalidInputError: If an identifier is missing or both parties are
                the same principal.
            ConflictError: If the proposal already has a conversation.
        """
        if not all((job_id, proposal_id, client_id, counterparty_id)):
            raise InvalidInputError("Job, proposal, client and counterparty ids are required")
        if client_id == counterparty_id:
            raise InvalidInputError("A conversation needs two distinct parties")

        existing = (
            self.db.query(Conversation.id)
            .filter(Conversation.proposal_id == proposal_id)
            .first()
        )
        if existing is not None:
            raise ConflictError("A conversation already exists for this proposal")

        conversation = Conversation(
            conversation_id=generate_id(f"secure_{job_id}"),
            job_id=job_id,
            proposal_id=proposal_id,
            client_id=client_id,
            counterparty_id=counterparty_id,
            encryption_algorithm=settings.default_encryption_algorithm,
            signing_algorithm=settings.default_signing_algorithm,
            key_size=settings.default_key_size,
        )
        self.db.add(conversation)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError("A conversation already exists for this proposal") from exc
        self.db.refresh(conversation)
        logger.info(
            "Created conversation %s for job %s proposal %s",
            conversation.conversation_id,
            job_id,
            proposal_id,
        )

        self.audit.record(
            conversation.conversation_id,
            AUDIT_CONVERSATION_CREATED,
            client_id,
            "Secure conversation created on proposal acceptance",
            origin,
        )

        for party_id, partner_id in ((client_id, counterparty_id), (counterparty_id, client_id)):
            await self.presence.notify(
                party_id,
                EVENT_CONVERSATION_CREATED,
                {
                    "conversation_id": conversation.conversation_id,
                    "job_id": job_id,
                    "partner_id": partner_id,
                    "message": "A secure encrypted conversation has been established",
                },
            )
        return conversation

    # --- reads ----------------------------------------------------------------------
    def get_conversation(self, conversation_id: str, caller_id: str) -> Conversation:
        """Return the full conversation if the caller is a party."""
        return self.resolve(conversation_id, caller_id).conversation

    def get_by_proposal(self, proposal_id: str, caller_id: str) -> Conversation:
        conversation = (
            self.db.query(Conversation)
            .filter(
                Conversation.proposal_id == proposal_id,
                or_(
                    Conversation.client_id == caller_id,
                    Conversation.counterparty_id == caller_id,
                ),
            )
            .first()
        )
        if conversation is None:
            raise NotFoundError("No conversation found for this proposal")
        return conversation

    def list_conversations(self, caller_id: str) -> Sequence[Conversation]:
        """Return the caller's non-closed conversations, most recent activity first."""
        return (
            self.db.query(Conversation)
            .filter(
                or_(
                    Conversation.client_id == caller_id,
                    Conversation.counterparty_id == caller_id,
                ),
                Conversation.status != CONVERSATION_STATUS_CLOSED,
            )
            .order_by(Conversation.last_activity.desc(), Conversation.id.desc())
            .all()
        )

    # --- writes ---------------------------------------------------------------------
    def touch_activity(self, conversation_id: str, *, messages: int = 0, meetings: int = 0) -> None:
        """Bump activity time and counters with SQL-side increments.

        Does not commit; callers commit alongside the row they appended.
        """
        self.db.execute(
            update(Conversation)
            .where(Conversation.conversation_id == conversation_id)
            .values(
                last_activity=utcnow(),
                total_messages=Conversation.total_messages + messages,
                total_meetings=Conversation.total_meetings + meetings,
            )
            .execution_options(synchronize_session=False)
        )

    def set_status(
        self,
        conversation_id: str,
        status: str,
        actor_id: str | None = None,
        origin: RequestOrigin | None = None,
    ) -> Conversation:
        """Move a conversation between active, archived, suspended and closed."""
        if status not in CONVERSATION_STATUSES:
            raise InvalidInputError(f"Unknown conversation status '{status}'")

        conversation = (
            self.db.query(Conversation)
            .filter(Conversation.conversation_id == conversation_id)
            .first()
        )
        if conversation is None:
            raise NotFoundError("Conversation not found")

        previous = conversation.status
        conversation.status = status
        if status == CONVERSATION_STATUS_ARCHIVED:
            conversation.archived_at = utcnow()
            conversation.archived_by = actor_id
        self.db.commit()
        self.db.refresh(conversation)

        if previous != status:
            self.audit.record(
                conversation_id,
                AUDIT_STATUS_CHANGED,
                actor_id,
                f"Status changed from {previous} to {status}",
                origin,
            )
        return conversation

    def append_audit_entry(
        self,
        conversation_id: str,
        action: str,
        actor_id: str | None,
        detail: str = "",
        origin: RequestOrigin | None = None,
    ) -> AuditEntry | None:
        """Best-effort audit append; never raises."""
        return self.audit.record(conversation_id, action, actor_id, detail, origin)

    def audit_log(self, conversation_id: str, caller_id: str) -> Sequence[AuditEntry]:
        """Return the full audit log to either party."""
        ctx = self.resolve(conversation_id, caller_id)
        return self.audit.list_entries(ctx.conversation_id)
