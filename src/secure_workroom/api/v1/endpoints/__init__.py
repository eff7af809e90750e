# src/secure_workroom/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .internal import router as internal_router
from .realtime import router as realtime_router
from .secure_conversations import router as secure_conversations_router

__all__ = [
    "secure_conversations_router",
    "internal_router",
    "realtime_router",
]
