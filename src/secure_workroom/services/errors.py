"""Error taxonomy shared by the conversation services.

Every failure surfaced to callers carries a machine-readable `kind` and a
human-readable message. Persistence-layer exceptions are never exposed.
"""

from __future__ import annotations


class ConversationError(RuntimeError):
    """Base exception for conversation service failures."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, dict[str, str]]:
        return {"error": {"kind": self.kind, "message": self.message}}


class NotFoundError(ConversationError):
    """Conversation or record missing, or caller is not a party.

    Non-parties get this rather than a forbidden error so that the existence
    of a conversation is never confirmed to outsiders.
    """

    kind = "not_found"
    status_code = 404


class InvalidStateError(ConversationError):
    """Action attempted against a conversation that is not active."""

    kind = "invalid_state"
    status_code = 409


class InvalidInputError(ConversationError):
    """Required fields missing or malformed; raised before any write."""

    kind = "invalid_input"
    status_code = 400


class ForbiddenError(ConversationError):
    """Caller is a party but not the actor allowed to do this."""

    kind = "forbidden"
    status_code = 403


class ConflictError(ConversationError):
    """A conversation already exists for the proposal."""

    kind = "conflict"
    status_code = 409
