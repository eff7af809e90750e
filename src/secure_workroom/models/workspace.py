"""Meetings, shared documents, tasks and screen-share sessions."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from secure_workroom.db.session import Base
from secure_workroom.db.time import utcnow

MEETING_TYPES = ("video", "audio", "screen-share")
MEETING_STATUS_SCHEDULED = "scheduled"
MEETING_STATUS_IN_PROGRESS = "in-progress"
MEETING_STATUSES = (MEETING_STATUS_SCHEDULED, MEETING_STATUS_IN_PROGRESS, "completed", "cancelled")

TASK_STATUS_COMPLETED = "completed"
TASK_STATUSES = ("todo", "in-progress", "review", TASK_STATUS_COMPLETED)
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


class Meeting(Base):
    """Encrypted meeting scheduled by either party."""

    __tablename__ = "secure_meeting"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    meeting_id: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("secure_conversation.conversation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    meeting_type: Mapped[str] = mapped_column(String(16), nullable=False, default="video")
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=MEETING_STATUS_SCHEDULED
    )
    meeting_link: Mapped[str] = mapped_column(Text, nullable=False)
    # [{"user_id": str, "joined": bool, "joined_at": iso str | None}]
    participants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class WorkspaceDocument(Base):
    """Pointer to a client-encrypted file shared inside the conversation."""

    __tablename__ = "secure_workspace_document"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("secure_conversation.conversation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    encrypted_url: Mapped[str] = mapped_column(Text, nullable=False)
    # Symmetric file key wrapped for both parties by the uploader.
    encryption_key: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mime_type: Mapped[str] = mapped_column(
        String(128), nullable=False, default="application/octet-stream"
    )
    uploaded_by: Mapped[str] = mapped_column(String(64), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    checksum: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class WorkspaceTask(Base):
    """Task tracked on the shared board."""

    __tablename__ = "secure_workspace_task"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    task_id: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("secure_conversation.conversation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="todo")
    assigned_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ScreenShareSession(Base):
    """Screen-sharing session started by one party."""

    __tablename__ = "secure_screen_share"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    conversation_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("secure_conversation.conversation_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    initiated_by: Mapped[str] = mapped_column(String(64), nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    quality: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    encryption_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
