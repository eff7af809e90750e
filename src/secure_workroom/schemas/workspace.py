"""Meeting, document, task, screen-share and audit schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MeetingType = Literal["video", "audio", "screen-share"]
TaskStatus = Literal["todo", "in-progress", "review", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class MeetingCreate(BaseModel):
    # Presence of title, scheduled_at and duration is checked by the service.
    title: str | None = None
    description: str = ""
    scheduled_at: datetime | None = None
    duration: int | None = Field(None, gt=0, description="Duration in minutes")
    type: MeetingType = "video"


class MeetingResponse(BaseModel):
    meeting_id: str
    conversation_id: str
    title: str
    description: str
    scheduled_at: datetime
    duration_minutes: int
    meeting_type: str
    status: str
    meeting_link: str
    participants: list[dict[str, Any]]
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentCreate(BaseModel):
    name: str | None = None
    encrypted_url: str | None = None
    encryption_key: str | None = None
    file_size: int = Field(0, ge=0)
    mime_type: str | None = None
    checksum: str | None = None


class DocumentResponse(BaseModel):
    document_id: str
    conversation_id: str
    name: str
    encrypted_url: str
    encryption_key: str
    file_size: int
    mime_type: str
    uploaded_by: str
    version: int
    checksum: str
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskCreate(BaseModel):
    title: str | None = None
    description: str = ""
    assigned_to: str | None = None
    due_date: datetime | None = None
    priority: TaskPriority = "medium"


class TaskUpdate(BaseModel):
    status: TaskStatus | None = None


class TaskResponse(BaseModel):
    task_id: str
    conversation_id: str
    title: str
    description: str
    status: str
    assigned_to: str | None
    due_date: datetime | None
    priority: str
    created_by: str
    created_at: datetime
    completed_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ScreenShareStart(BaseModel):
    quality: Literal["low", "medium", "high"] = "medium"


class ScreenShareResponse(BaseModel):
    success: bool = True
    session_id: str


class AuditEntryResponse(BaseModel):
    action: str
    actor_id: str | None
    detail: str
    ip_address: str | None
    user_agent: str | None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
