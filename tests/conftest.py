# tests/conftest.py
from __future__ import annotations

import hashlib
from collections.abc import Generator, Iterator, Mapping
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from nacl.encoding import Base64Encoder
from nacl.public import PrivateKey, PublicKey, SealedBox
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from secure_workroom.api.v1.dependencies import get_presence_router_dep, get_session_factory
from secure_workroom.core.security import create_access_token
from secure_workroom.core.settings import settings
from secure_workroom.db.session import Base
from secure_workroom.db.session import get_db as app_get_session
from secure_workroom.main import app as fastapi_app
from secure_workroom.models import Conversation, Principal
from secure_workroom.services.conversations import ConversationStore
from secure_workroom.services.presence import PresenceRouter

TEST_DB_URL = "sqlite://"

CLIENT_ID = "client-1"
COUNTERPARTY_ID = "freelancer-1"
OUTSIDER_ID = "outsider-1"

_CONVERSATION_COUNTER = count(1)
_CHANNEL_COUNTER = count(1)


class RecordingChannel:
    """In-memory presence channel that records every event pushed to it."""

    def __init__(self, principal_id: str, *, fail: bool = False) -> None:
        self.principal_id = principal_id
        self.channel_id = f"chan-{next(_CHANNEL_COUNTER)}"
        self.fail = fail
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.closed_with: int | None = None

    async def send(self, event: str, payload: Mapping[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.events.append((event, dict(payload)))

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def named(self, event: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.events if name == event]


class ClientKeys:
    """Client-side key pair; the server only ever sees the public half."""

    def __init__(self) -> None:
        self.private_key = PrivateKey.generate()

    @property
    def public_key(self) -> str:
        return self.private_key.public_key.encode(encoder=Base64Encoder).decode()

    def open(self, ciphertext: str) -> bytes:
        return SealedBox(self.private_key).decrypt(ciphertext.encode(), encoder=Base64Encoder)


def seal_for(public_key: str, plaintext: bytes) -> dict[str, str]:
    """Build a message body the way a client would: sealed box plus content hash."""
    recipient = PublicKey(public_key.encode(), encoder=Base64Encoder)
    ciphertext = SealedBox(recipient).encrypt(plaintext, encoder=Base64Encoder).decode()
    return {
        "ciphertext": ciphertext,
        "content_hash": hashlib.sha256(plaintext).hexdigest(),
    }


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def presence() -> PresenceRouter:
    """Fresh presence router per test."""
    return PresenceRouter()


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI, engine: Engine, db_session: Session, presence: PresenceRouter
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_factory] = lambda: sessionmaker(bind=engine, autoflush=False)
    app.dependency_overrides[get_presence_router_dep] = lambda: presence
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_factory, None)
        app.dependency_overrides.pop(get_presence_router_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def store(db_session: Session, presence: PresenceRouter) -> ConversationStore:
    return ConversationStore(db_session, presence)


def _add_principal(db_session: Session, principal_id: str, name: str) -> Principal:
    principal = Principal(id=principal_id, display_name=name, is_active=True)
    db_session.add(principal)
    db_session.commit()
    return principal


@pytest.fixture()
def client_user(db_session: Session) -> Principal:
    """The hiring side of the job."""
    return _add_principal(db_session, CLIENT_ID, "Client")


@pytest.fixture()
def freelancer_user(db_session: Session) -> Principal:
    """The freelancer whose proposal was accepted."""
    return _add_principal(db_session, COUNTERPARTY_ID, "Freelancer")


@pytest.fixture()
def outsider_user(db_session: Session) -> Principal:
    """An authenticated principal who is not part of the conversation."""
    return _add_principal(db_session, OUTSIDER_ID, "Outsider")


def bearer(principal_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(principal_id)}"}


@pytest.fixture()
def client_headers(client_user: Principal) -> dict[str, str]:
    return bearer(client_user.id)


@pytest.fixture()
def freelancer_headers(freelancer_user: Principal) -> dict[str, str]:
    return bearer(freelancer_user.id)


@pytest.fixture()
def outsider_headers(outsider_user: Principal) -> dict[str, str]:
    return bearer(outsider_user.id)


@pytest.fixture()
def service_headers() -> dict[str, str]:
    return {"X-Service-Token": settings.service_token}


@pytest.fixture()
def conversation(db_session: Session, client_user: Principal, freelancer_user: Principal) -> Conversation:
    """Active conversation between the client and the freelancer, no keys yet."""
    seq = next(_CONVERSATION_COUNTER)
    conversation = Conversation(
        conversation_id=f"secure_job-{seq}_1700000000000_{seq:032x}",
        job_id=f"job-{seq}",
        proposal_id=f"proposal-{seq}",
        client_id=client_user.id,
        counterparty_id=freelancer_user.id,
        encryption_algorithm=settings.default_encryption_algorithm,
        signing_algorithm=settings.default_signing_algorithm,
        key_size=settings.default_key_size,
    )
    db_session.add(conversation)
    db_session.commit()
    db_session.refresh(conversation)
    return conversation


@pytest.fixture()
def client_keys() -> ClientKeys:
    return ClientKeys()


@pytest.fixture()
def freelancer_keys() -> ClientKeys:
    return ClientKeys()


@pytest.fixture()
def ready_conversation(
    db_session: Session,
    conversation: Conversation,
    client_keys: ClientKeys,
    freelancer_keys: ClientKeys,
) -> Conversation:
    """Conversation where both parties have already exchanged public keys."""
    conversation.client_public_key = client_keys.public_key
    conversation.counterparty_public_key = freelancer_keys.public_key
    db_session.commit()
    db_session.refresh(conversation)
    return conversation


@pytest.fixture()
def make_channel() -> type[RecordingChannel]:
    """Factory for recording presence channels."""
    return RecordingChannel


@pytest.fixture()
def seal():
    """Client-side sealing helper."""
    return seal_for
