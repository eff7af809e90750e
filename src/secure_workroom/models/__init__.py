# src/secure_workroom/models/__init__.py
"""SQLAlchemy models for the Secure Workroom service."""

from .audit import AuditEntry
from .conversation import Conversation, PartyRole
from .message import ConversationMessage
from .principal import Principal
from .workspace import Meeting, ScreenShareSession, WorkspaceDocument, WorkspaceTask

__all__ = [
    "AuditEntry",
    "Conversation", "PartyRole",
    "ConversationMessage",
    "Principal",
    "Meeting", "ScreenShareSession", "WorkspaceDocument", "WorkspaceTask",
]
