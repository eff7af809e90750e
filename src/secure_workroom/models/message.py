# src/secure_workroom/models/message.py
"""Encrypted message envelopes stored per conversation."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_workroom.db.session import Base
from secure_workroom.db.time import utcnow

MESSAGE_STATUS_SENT = "sent"
MESSAGE_STATUS_DELIVERED = "delivered"
MESSAGE_STATUS_READ = "read"

MESSAGE_TYPES = ("text", "file", "image", "voice", "system")


class ConversationMessage(Base):
    """Envelope submitted by one party for the other.

    The server never decrypts `ciphertext`; it only tracks delivery state.
    State moves sent -> delivered -> read and never backwards.
    """

    __tablename__ = "secure_message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("secure_conversation.conversation_id", ondelete="CASCADE"),
        nullable=False,
    )

    sender_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recipient_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Clients encrypt with the recipient's public key and optionally sign.
    ciphertext: Mapped[str] = mapped_column(Text, nullable=False)
    content_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    message_type: Mapped[str] = mapped_column(String(16), nullable=False, default="text")
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=MESSAGE_STATUS_SENT)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Self-destruct hint for clients; nothing purges on the server.
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Client-generated retry token for deduplicating sends.
    client_token: Mapped[str | None] = mapped_column(String(128), nullable=True)

    __table_args__ = (
        Index("ix_secure_message_conversation_created", "conversation_id", "created_at"),
        Index("ix_secure_message_client_token", "conversation_id", "sender_id", "client_token"),
    )

    @property
    def is_read(self) -> bool:
        return self.status == MESSAGE_STATUS_READ
