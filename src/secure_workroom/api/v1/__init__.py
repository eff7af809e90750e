# src/secure_workroom/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    internal_router,
    realtime_router,
    secure_conversations_router,
)

__all__ = [
    "secure_conversations_router",
    "internal_router",
    "realtime_router",
]
