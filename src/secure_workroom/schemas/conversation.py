# src/secure_workroom/schemas/conversation.py
"""Conversation and key-exchange schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from secure_workroom.models import Conversation

ConversationStatus = Literal["active", "archived", "suspended", "closed"]


class ConversationCreate(BaseModel):
    """Payload sent by the proposal-acceptance collaborator."""

    job_id: str = Field(..., min_length=1)
    proposal_id: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    counterparty_id: str = Field(..., min_length=1)


class ConversationStatusUpdate(BaseModel):
    status: ConversationStatus
    actor_id: str | None = None


class PrincipalUpsert(BaseModel):
    display_name: str | None = None
    is_active: bool = True


class PrincipalResponse(BaseModel):
    id: str
    display_name: str | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class PublicKeySubmit(BaseModel):
    public_key: str = Field(..., description="Opaque public key blob; format is client-defined")


class KeyExchangeResponse(BaseModel):
    success: bool = True
    encryption_ready: bool


class ConversationSummary(BaseModel):
    """Projection used in listings; omits messages and audit log."""

    conversation_id: str
    job_id: str
    proposal_id: str
    client_id: str
    counterparty_id: str
    status: str
    last_activity: datetime
    total_messages: int
    total_meetings: int
    encryption_ready: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EncryptionInfo(BaseModel):
    client_public_key: str | None
    counterparty_public_key: str | None
    encryption_algorithm: str
    signing_algorithm: str
    key_size: int


class SecuritySettings(BaseModel):
    require_two_factor: bool
    session_timeout_ms: int
    allow_screen_recording: bool
    watermark_enabled: bool
    require_verification: bool


class VideoConferenceSettings(BaseModel):
    enabled: bool
    max_duration_seconds: int
    recording_allowed: bool


class ConversationDetail(ConversationSummary):
    """Full projection returned to a party."""

    encryption: EncryptionInfo
    security: SecuritySettings
    video_conference: VideoConferenceSettings
    workspace_enabled: bool
    archived_at: datetime | None
    archived_by: str | None
    updated_at: datetime

    @classmethod
    def from_model(cls, conversation: Conversation) -> ConversationDetail:
        summary = ConversationSummary.model_validate(conversation)
        return cls(
            **summary.model_dump(),
            encryption=EncryptionInfo(
                client_public_key=conversation.client_public_key,
                counterparty_public_key=conversation.counterparty_public_key,
                encryption_algorithm=conversation.encryption_algorithm,
                signing_algorithm=conversation.signing_algorithm,
                key_size=conversation.key_size,
            ),
            security=SecuritySettings(
                require_two_factor=conversation.require_two_factor,
                session_timeout_ms=conversation.session_timeout_ms,
                allow_screen_recording=conversation.allow_screen_recording,
                watermark_enabled=conversation.watermark_enabled,
                require_verification=conversation.require_verification,
            ),
            video_conference=VideoConferenceSettings(
                enabled=conversation.video_enabled,
                max_duration_seconds=conversation.video_max_duration_seconds,
                recording_allowed=conversation.recording_allowed,
            ),
            workspace_enabled=conversation.workspace_enabled,
            archived_at=conversation.archived_at,
            archived_by=conversation.archived_by,
            updated_at=conversation.updated_at,
        )
