# src/secure_workroom/api/v1/endpoints/internal.py
"""Collaborator endpoints guarded by the shared service token."""

from fastapi import APIRouter, Depends, status

from secure_workroom.db.time import utcnow
from secure_workroom.models import Principal
from secure_workroom.schemas.conversation import (
    ConversationCreate,
    ConversationStatusUpdate,
    ConversationSummary,
    PrincipalResponse,
    PrincipalUpsert,
)

from ..dependencies import OriginDep, SessionDep, StoreDep, require_service_token

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_service_token)],
)


@router.post(
    "/conversations",
    status_code=status.HTTP_201_CREATED,
    response_model=ConversationSummary,
)
async def create_conversation(
    payload: ConversationCreate,
    store: StoreDep,
    origin: OriginDep,
) -> ConversationSummary:
    """Open the secure conversation for an accepted proposal."""
    conversation = await store.create_conversation(
        job_id=payload.job_id,
        proposal_id=payload.proposal_id,
        client_id=payload.client_id,
        counterparty_id=payload.counterparty_id,
        origin=origin,
    )
    return ConversationSummary.model_validate(conversation)


@router.patch("/conversations/{conversation_id}/status", response_model=ConversationSummary)
async def update_conversation_status(
    conversation_id: str,
    payload: ConversationStatusUpdate,
    store: StoreDep,
    origin: OriginDep,
) -> ConversationSummary:
    conversation = store.set_status(conversation_id, payload.status, payload.actor_id, origin)
    return ConversationSummary.model_validate(conversation)


@router.put("/principals/{principal_id}", response_model=PrincipalResponse)
async def upsert_principal(
    principal_id: str,
    payload: PrincipalUpsert,
    db: SessionDep,
) -> PrincipalResponse:
    """Mirror an identity from the user directory."""
    principal = db.get(Principal, principal_id)
    if principal is None:
        principal = Principal(id=principal_id)
        db.add(principal)
    principal.display_name = payload.display_name
    principal.is_active = payload.is_active
    principal.updated_at = utcnow()
    db.commit()
    db.refresh(principal)
    return PrincipalResponse.model_validate(principal)
