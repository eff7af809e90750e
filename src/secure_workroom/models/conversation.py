# src/secure_workroom/models/conversation.py
"""Models describing secure two-party conversations."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_workroom.db.session import Base
from secure_workroom.db.time import utcnow

CONVERSATION_STATUS_ACTIVE = "active"
CONVERSATION_STATUS_ARCHIVED = "archived"
CONVERSATION_STATUS_SUSPENDED = "suspended"
CONVERSATION_STATUS_CLOSED = "closed"

CONVERSATION_STATUSES = (
    CONVERSATION_STATUS_ACTIVE,
    CONVERSATION_STATUS_ARCHIVED,
    CONVERSATION_STATUS_SUSPENDED,
    CONVERSATION_STATUS_CLOSED,
)


class PartyRole(enum.Enum):
    """Which side of the job a party sits on."""

    CLIENT = "client"
    COUNTERPARTY = "counterparty"

    @property
    def other(self) -> PartyRole:
        return PartyRole.COUNTERPARTY if self is PartyRole.CLIENT else PartyRole.CLIENT


class Conversation(Base):
    """Durable channel opened when a proposal is accepted.

    Messages, audit entries and workspace records live in their own tables
    keyed by `conversation_id`, so appending never rewrites this row.
    """

    __tablename__ = "secure_conversation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    # Marketplace references, display and audit only.
    job_id: Mapped[str] = mapped_column(String(64), nullable=False)
    proposal_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    counterparty_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Public keys only; private keys never reach the server.
    client_public_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    counterparty_public_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    encryption_algorithm: Mapped[str] = mapped_column(String(64), nullable=False)
    signing_algorithm: Mapped[str] = mapped_column(String(64), nullable=False)
    key_size: Mapped[int] = mapped_column(Integer, nullable=False)

    # Security settings
    require_two_factor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    session_timeout_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=3_600_000)
    allow_screen_recording: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    watermark_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    require_verification: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Video conferencing settings
    video_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    video_max_duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=7200)
    recording_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    workspace_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CONVERSATION_STATUS_ACTIVE
    )
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Maintained with SQL-side increments.
    total_messages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_meetings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("ix_secure_conversation_parties", "client_id", "counterparty_id"),
        Index("ix_secure_conversation_job", "job_id"),
        Index("ix_secure_conversation_status", "status"),
    )

    def role_of(self, principal_id: str) -> PartyRole | None:
        """Return the caller's role, or None when they are not a party."""
        if principal_id == self.client_id:
            return PartyRole.CLIENT
        if principal_id == self.counterparty_id:
            return PartyRole.COUNTERPARTY
        return None

    def party_id(self, role: PartyRole) -> str:
        """Return the principal id holding `role`."""
        return self.client_id if role is PartyRole.CLIENT else self.counterparty_id

    def public_key_for(self, role: PartyRole) -> str | None:
        if role is PartyRole.CLIENT:
            return self.client_public_key
        return self.counterparty_public_key

    @property
    def encryption_ready(self) -> bool:
        """True once both parties have registered a public key."""
        return bool(self.client_public_key and self.counterparty_public_key)

    @property
    def is_active(self) -> bool:
        return self.status == CONVERSATION_STATUS_ACTIVE
