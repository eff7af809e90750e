"""Append-only audit trail for secure conversations."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from secure_workroom.models import AuditEntry, Conversation

logger = logging.getLogger(__name__)

AUDIT_CONVERSATION_CREATED = "conversation_created"
AUDIT_PUBLIC_KEY_EXCHANGED = "public_key_exchanged"
AUDIT_PUBLIC_KEY_ROTATED = "public_key_rotated"
AUDIT_MEETING_SCHEDULED = "meeting_scheduled"
AUDIT_DOCUMENT_UPLOADED = "document_uploaded"
AUDIT_STATUS_CHANGED = "status_changed"


@dataclass(frozen=True)
class RequestOrigin:
    """Network origin and client descriptor captured from a request."""

    ip_address: str | None = None
    user_agent: str | None = None


class AuditTrailRecorder:
    """Writes and reads the per-conversation audit log.

    There is no update or delete operation. Writes are
    best-effort metadata: a failure is logged and swallowed so the primary
    operation it accompanies still succeeds.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def record(
        self,
        conversation_id: str,
        action: str,
        actor_id: str | None,
        detail: str = "",
        origin: RequestOrigin | None = None,
    ) -> AuditEntry | None:
        """Append one entry with a server-assigned timestamp.

        Returns:
            The stored entry, or None when the write could not be made.
        """
        origin = origin or RequestOrigin()
        try:
            exists = (
                self.db.query(Conversation.id)
                .filter(Conversation.conversation_id == conversation_id)
                .first()
            )
            if exists is None:
                logger.warning(
                    "Skipping audit %s for unknown conversation %s", action, conversation_id
                )
                return None
            entry = AuditEntry(
                conversation_id=conversation_id,
                action=action,
                actor_id=actor_id,
                detail=detail,
                ip_address=origin.ip_address,
                user_agent=origin.user_agent,
            )
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning(
                "Audit write %s for conversation %s failed: %s", action, conversation_id, exc
            )
            return None
        logger.debug("Audit %s recorded for conversation %s", action, conversation_id)
        return entry

    def list_entries(self, conversation_id: str) -> Sequence[AuditEntry]:
        """Return the full audit log for a conversation in write order."""
        return (
            self.db.query(AuditEntry)
            .filter(AuditEntry.conversation_id == conversation_id)
            .order_by(AuditEntry.id)
            .all()
        )

    def count(self, conversation_id: str) -> int:
        return (
            self.db.query(AuditEntry)
            .filter(AuditEntry.conversation_id == conversation_id)
            .count()
        )
