"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from secure_workroom.core.security import decode_access_token, verify_service_token
from secure_workroom.db.session import SessionLocal, get_db
from secure_workroom.models import Principal
from secure_workroom.services.audit import RequestOrigin
from secure_workroom.services.conversations import ConversationStore
from secure_workroom.services.key_exchange import KeyExchangeManager
from secure_workroom.services.messages import MessageEnvelopeService
from secure_workroom.services.presence import PresenceRouter, get_presence_router
from secure_workroom.services.workspace import WorkspaceService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory for handlers that scope their own sessions."""
    return SessionLocal


SessionFactoryDep = Annotated[sessionmaker[Session], Depends(get_session_factory)]


def resolve_principal(token: str, db: Session) -> Principal | None:
    """Return the active principal a token belongs to, if any."""
    principal_id = decode_access_token(token)
    if principal_id is None:
        return None
    principal = db.get(Principal, principal_id)
    if principal is None or not principal.is_active:
        return None
    return principal


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> Principal:
    """Get the authenticated principal from a JWT bearer token.

    Raises:
        HTTPException: If the token is invalid or the principal is unknown or inactive.
    """
    principal = resolve_principal(credentials.credentials, db)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return principal


def require_service_token(
    x_service_token: Annotated[str | None, Header()] = None,
) -> None:
    """Guard internal collaborator endpoints."""
    if not verify_service_token(x_service_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid service token",
        )


def get_presence_router_dep() -> PresenceRouter:
    """Return the shared presence router."""
    return get_presence_router()


def get_request_origin(request: Request) -> RequestOrigin:
    """Capture the caller's network origin for audit entries."""
    return RequestOrigin(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


CurrentPrincipalDep = Annotated[Principal, Depends(get_current_principal)]
PresenceDep = Annotated[PresenceRouter, Depends(get_presence_router_dep)]
OriginDep = Annotated[RequestOrigin, Depends(get_request_origin)]


def get_conversation_store(db: SessionDep, presence: PresenceDep) -> ConversationStore:
    return ConversationStore(db, presence)


StoreDep = Annotated[ConversationStore, Depends(get_conversation_store)]


def get_key_exchange(store: StoreDep) -> KeyExchangeManager:
    return KeyExchangeManager(store)


def get_message_service(store: StoreDep) -> MessageEnvelopeService:
    return MessageEnvelopeService(store)


def get_workspace_service(store: StoreDep) -> WorkspaceService:
    return WorkspaceService(store)


KeyExchangeDep = Annotated[KeyExchangeManager, Depends(get_key_exchange)]
MessagesDep = Annotated[MessageEnvelopeService, Depends(get_message_service)]
WorkspaceDep = Annotated[WorkspaceService, Depends(get_workspace_service)]
