# src/secure_workroom/api/v1/endpoints/secure_conversations.py
"""Secure conversation endpoints for the Secure Workroom API."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status

from secure_workroom.core.settings import settings
from secure_workroom.schemas.conversation import (
    ConversationDetail,
    ConversationSummary,
    KeyExchangeResponse,
    PublicKeySubmit,
)
from secure_workroom.schemas.message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    MessageSendResponse,
    MessageStatusResponse,
)
from secure_workroom.schemas.workspace import (
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

from ..dependencies import (
    CurrentPrincipalDep,
    KeyExchangeDep,
    MessagesDep,
    OriginDep,
    StoreDep,
    WorkspaceDep,
)

router = APIRouter(prefix="/secure-conversations", tags=["secure-conversations"])


@router.get("/my-conversations", response_model=list[ConversationSummary])
async def list_my_conversations(
    current: CurrentPrincipalDep,
    store: StoreDep,
) -> list[ConversationSummary]:
    """List the caller's open conversations without messages or audit log."""
    return [
        ConversationSummary.model_validate(conversation)
        for conversation in store.list_conversations(current.id)
    ]


@router.get("/proposal/{proposal_id}", response_model=ConversationSummary)
async def get_conversation_by_proposal(
    proposal_id: str,
    current: CurrentPrincipalDep,
    store: StoreDep,
) -> ConversationSummary:
    """Find the conversation opened for an accepted proposal."""
    return ConversationSummary.model_validate(store.get_by_proposal(proposal_id, current.id))


@router.get("/{conversation_id}", response_model=ConversationDetail)
async def get_conversation(
    conversation_id: str,
    current: CurrentPrincipalDep,
    store: StoreDep,
) -> ConversationDetail:
    """Return full conversation details to either party."""
    return ConversationDetail.from_model(store.get_conversation(conversation_id, current.id))


@router.post("/{conversation_id}/exchange-keys", response_model=KeyExchangeResponse)
async def exchange_keys(
    conversation_id: str,
    payload: PublicKeySubmit,
    current: CurrentPrincipalDep,
    key_exchange: KeyExchangeDep,
    origin: OriginDep,
) -> KeyExchangeResponse:
    """Register the caller's public key for end-to-end encryption."""
    result = await key_exchange.submit_public_key(
        conversation_id, current.id, payload.public_key, origin
    )
    return KeyExchangeResponse(encryption_ready=result.encryption_ready)


@router.post(
    "/{conversation_id}/messages",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageSendResponse,
)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current: CurrentPrincipalDep,
    messages: MessagesDep,
) -> MessageSendResponse:
    """Submit an end-to-end encrypted message."""
    result = await messages.send_message(
        conversation_id,
        current.id,
        ciphertext=payload.ciphertext,
        content_hash=payload.content_hash,
        signature=payload.signature,
        message_type=payload.message_type,
        attachments=[attachment.model_dump() for attachment in payload.attachments],
        expires_at=payload.expires_at,
        client_token=payload.client_token,
    )
    return MessageSendResponse(
        message_id=result.message.message_id,
        timestamp=result.message.created_at,
        status=result.message.status,
        duplicate=result.duplicate,
    )


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    conversation_id: str,
    current: CurrentPrincipalDep,
    messages: MessagesDep,
    limit: int = Query(
        settings.message_page_default,
        ge=1,
        le=settings.message_page_max,
        description="Maximum number of messages to return",
    ),
    before: datetime | None = Query(None, description="Only messages created before this time"),
) -> list[MessageResponse]:
    """Return encrypted messages newest first."""
    return [
        MessageResponse.model_validate(message)
        for message in messages.get_messages(conversation_id, current.id, limit, before)
    ]


@router.put("/{conversation_id}/messages/read", response_model=MarkReadResponse)
async def mark_messages_read(
    conversation_id: str,
    payload: MarkReadRequest,
    current: CurrentPrincipalDep,
    messages: MessagesDep,
) -> MarkReadResponse:
    """Mark messages addressed to the caller as read."""
    changed = await messages.mark_read(conversation_id, current.id, payload.message_ids)
    return MarkReadResponse(updated=len(changed))


@router.put(
    "/{conversation_id}/messages/{message_id}/delivered",
    response_model=MessageStatusResponse,
)
async def mark_message_delivered(
    conversation_id: str,
    message_id: str,
    current: CurrentPrincipalDep,
    messages: MessagesDep,
) -> MessageStatusResponse:
    """Acknowledge receipt of a message."""
    message = await messages.mark_delivered(conversation_id, current.id, message_id)
    return MessageStatusResponse(status=message.status)


@router.delete("/{conversation_id}/messages/{message_id}", response_model=MessageResponse)
async def delete_message(
    conversation_id: str,
    message_id: str,
    current: CurrentPrincipalDep,
    messages: MessagesDep,
) -> MessageResponse:
    """Soft-delete a message the caller sent."""
    return MessageResponse.model_validate(
        messages.delete_message(conversation_id, current.id, message_id)
    )


@router.post(
    "/{conversation_id}/meetings",
    status_code=status.HTTP_201_CREATED,
    response_model=MeetingResponse,
)
async def schedule_meeting(
    conversation_id: str,
    payload: MeetingCreate,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
    origin: OriginDep,
) -> MeetingResponse:
    """Schedule an encrypted meeting with the other party."""
    meeting = await workspace.schedule_meeting(
        conversation_id,
        current.id,
        title=payload.title,
        scheduled_at=payload.scheduled_at,
        duration=payload.duration,
        meeting_type=payload.type,
        description=payload.description,
        origin=origin,
    )
    return MeetingResponse.model_validate(meeting)


@router.get("/{conversation_id}/meetings", response_model=list[MeetingResponse])
async def list_meetings(
    conversation_id: str,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> list[MeetingResponse]:
    return [
        MeetingResponse.model_validate(meeting)
        for meeting in workspace.list_meetings(conversation_id, current.id)
    ]


@router.post("/{conversation_id}/meetings/{meeting_id}/join", response_model=MeetingResponse)
async def join_meeting(
    conversation_id: str,
    meeting_id: str,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> MeetingResponse:
    """Record the caller joining a meeting."""
    meeting = await workspace.join_meeting(conversation_id, current.id, meeting_id)
    return MeetingResponse.model_validate(meeting)


@router.post(
    "/{conversation_id}/documents",
    status_code=status.HTTP_201_CREATED,
    response_model=DocumentResponse,
)
async def upload_document(
    conversation_id: str,
    payload: DocumentCreate,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
    origin: OriginDep,
) -> DocumentResponse:
    """Register an encrypted document in the shared workspace."""
    document = await workspace.upload_document(
        conversation_id,
        current.id,
        name=payload.name,
        encrypted_url=payload.encrypted_url,
        encryption_key=payload.encryption_key,
        file_size=payload.file_size,
        mime_type=payload.mime_type,
        checksum=payload.checksum,
        origin=origin,
    )
    return DocumentResponse.model_validate(document)


@router.get("/{conversation_id}/documents", response_model=list[DocumentResponse])
async def list_documents(
    conversation_id: str,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> list[DocumentResponse]:
    return [
        DocumentResponse.model_validate(document)
        for document in workspace.list_documents(conversation_id, current.id)
    ]


@router.post(
    "/{conversation_id}/tasks",
    status_code=status.HTTP_201_CREATED,
    response_model=TaskResponse,
)
async def create_task(
    conversation_id: str,
    payload: TaskCreate,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> TaskResponse:
    task = await workspace.create_task(
        conversation_id,
        current.id,
        title=payload.title,
        description=payload.description,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
        priority=payload.priority,
    )
    return TaskResponse.model_validate(task)


@router.get("/{conversation_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    conversation_id: str,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> list[TaskResponse]:
    return [
        TaskResponse.model_validate(task)
        for task in workspace.list_tasks(conversation_id, current.id)
    ]


@router.patch("/{conversation_id}/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    conversation_id: str,
    task_id: str,
    payload: TaskUpdate,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> TaskResponse:
    task = await workspace.update_task_status(conversation_id, current.id, task_id, payload.status)
    return TaskResponse.model_validate(task)


@router.post("/{conversation_id}/screen-share/start", response_model=ScreenShareResponse)
async def start_screen_share(
    conversation_id: str,
    payload: ScreenShareStart,
    current: CurrentPrincipalDep,
    workspace: WorkspaceDep,
) -> ScreenShareResponse:
    session = await workspace.start_screen_share(conversation_id, current.id, payload.quality)
    return ScreenShareResponse(session_id=session.session_id)


@router.get("/{conversation_id}/audit-log", response_model=list[AuditEntryResponse])
async def get_audit_log(
    conversation_id: str,
    current: CurrentPrincipalDep,
    store: StoreDep,
) -> list[AuditEntryResponse]:
    """Return the conversation's security audit log to either party."""
    return [
        AuditEntryResponse.model_validate(entry)
        for entry in store.audit_log(conversation_id, current.id)
    ]
