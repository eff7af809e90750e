# src/secure_workroom/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .conversation import (
    ConversationCreate,
    ConversationDetail,
    ConversationStatusUpdate,
    ConversationSummary,
    KeyExchangeResponse,
    PrincipalResponse,
    PrincipalUpsert,
    PublicKeySubmit,
)
from .message import (
    AttachmentEnvelope,
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    MessageSendResponse,
    MessageStatusResponse,
)
from .workspace import (
    AuditEntryResponse,
    DocumentCreate,
    DocumentResponse,
    MeetingCreate,
    MeetingResponse,
    ScreenShareResponse,
    ScreenShareStart,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)

__all__ = [
    "ConversationCreate", "ConversationDetail", "ConversationStatusUpdate", "ConversationSummary",
    "KeyExchangeResponse", "PrincipalResponse", "PrincipalUpsert", "PublicKeySubmit",
    "AttachmentEnvelope", "MarkReadRequest", "MarkReadResponse", "MessageCreate",
    "MessageResponse", "MessageSendResponse", "MessageStatusResponse",
    "AuditEntryResponse", "DocumentCreate", "DocumentResponse", "MeetingCreate",
    "MeetingResponse", "ScreenShareResponse", "ScreenShareStart", "TaskCreate",
    "TaskResponse", "TaskUpdate",
]
