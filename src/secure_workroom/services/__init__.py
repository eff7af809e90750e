# src/secure_workroom/services/__init__.py
"""Business logic services for the Secure Workroom application."""

from .audit import AuditTrailRecorder, RequestOrigin
from .conversations import ConversationStore, PartyContext
from .errors import (
    ConflictError,
    ConversationError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)
from .key_exchange import KeyExchangeManager, KeyExchangeResult
from .messages import MessageEnvelopeService, SendResult
from .presence import PresenceRouter, get_presence_router
from .workspace import WorkspaceService

__all__ = [
    "AuditTrailRecorder", "RequestOrigin",
    "ConversationStore", "PartyContext",
    "ConflictError", "ConversationError", "ForbiddenError",
    "InvalidInputError", "InvalidStateError", "NotFoundError",
    "KeyExchangeManager", "KeyExchangeResult",
    "MessageEnvelopeService", "SendResult",
    "PresenceRouter", "get_presence_router",
    "WorkspaceService",
]
