# src/secure_workroom/schemas/message.py
"""Encrypted message envelope schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Legacy clients send this instead of omitting the signature.
UNSIGNED_SIGNATURE_SENTINEL = "BASIC_ENCRYPTION_NO_SIGNATURE"

MessageType = Literal["text", "file", "image", "voice", "system"]


def normalize_signature(value: str | None) -> str | None:
    """Map absent, blank and sentinel signatures to None."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == UNSIGNED_SIGNATURE_SENTINEL:
        return None
    return value


class AttachmentEnvelope(BaseModel):
    """Client-encrypted attachment reference carried inside a message."""

    file_name: str
    file_size: int = Field(0, ge=0)
    mime_type: str = "application/octet-stream"
    encrypted_url: str
    encryption_key: str = Field(..., description="Symmetric key wrapped with the recipient's public key")
    checksum: str = ""


class MessageCreate(BaseModel):
    """Schema for submitting an encrypted message."""

    ciphertext: str = Field(..., description="Message encrypted with the recipient's public key")
    content_hash: str = Field(..., description="Integrity hash of the plaintext")
    signature: str | None = Field(None, description="Optional sender signature")
    message_type: MessageType = "text"
    attachments: list[AttachmentEnvelope] = Field(default_factory=list)
    expires_at: datetime | None = Field(None, description="Optional self-destruct hint")
    client_token: str | None = Field(
        None,
        max_length=128,
        description="Client-generated token used to deduplicate retried sends",
    )

    @field_validator("signature")
    @classmethod
    def _normalize_signature(cls, value: str | None) -> str | None:
        return normalize_signature(value)


class MessageResponse(BaseModel):
    """Envelope as stored and relayed by the server."""

    message_id: str
    conversation_id: str
    sender_id: str
    recipient_id: str
    ciphertext: str
    content_hash: str
    signature: str | None
    message_type: str
    attachments: list[dict[str, Any]]
    status: str
    is_read: bool
    created_at: datetime
    delivered_at: datetime | None
    read_at: datetime | None
    is_deleted: bool
    deleted_at: datetime | None
    expires_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class MessageSendResponse(BaseModel):
    success: bool = True
    message_id: str
    timestamp: datetime
    status: str
    duplicate: bool = False


class MarkReadRequest(BaseModel):
    message_ids: list[str] = Field(..., description="Message ids addressed to the caller")


class MarkReadResponse(BaseModel):
    success: bool = True
    updated: int


class MessageStatusResponse(BaseModel):
    success: bool = True
    status: str
