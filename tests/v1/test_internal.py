# tests/v1/test_internal.py
"""Tests for service-token protected collaborator endpoints."""

from fastapi import status

from secure_workroom.models import Principal


def _create_payload(**overrides):
    payload = {
        "job_id": "job-77",
        "proposal_id": "proposal-77",
        "client_id": "client-1",
        "counterparty_id": "freelancer-1",
    }
    payload.update(overrides)
    return payload


def test_create_conversation_on_proposal_acceptance(
    client, presence, make_channel, service_headers, client_user, freelancer_user, client_headers
) -> None:
    freelancer_channel = make_channel(freelancer_user.id)
    presence.connect(freelancer_channel)

    response = client.post("/api/v1/internal/conversations", json=_create_payload(), headers=service_headers)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["conversation_id"].startswith("secure_job-77_")
    assert data["status"] == "active"
    assert data["total_messages"] == 0
    created = freelancer_channel.named("secure_conversation_created")
    assert created[0]["conversation_id"] == data["conversation_id"]

    mine = client.get("/api/v1/secure-conversations/my-conversations", headers=client_headers).json()
    assert [c["conversation_id"] for c in mine] == [data["conversation_id"]]


def test_duplicate_proposal_is_a_conflict(client, service_headers) -> None:
    first = client.post("/api/v1/internal/conversations", json=_create_payload(), headers=service_headers)
    second = client.post("/api/v1/internal/conversations", json=_create_payload(), headers=service_headers)

    assert first.status_code == status.HTTP_201_CREATED
    assert second.status_code == status.HTTP_409_CONFLICT
    assert second.json()["error"]["kind"] == "conflict"


def test_same_party_on_both_sides_is_invalid(client, service_headers) -> None:
    response = client.post(
        "/api/v1/internal/conversations",
        json=_create_payload(counterparty_id="client-1"),
        headers=service_headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"]["kind"] == "invalid_input"


def test_internal_routes_require_service_token(client, client_headers) -> None:
    anonymous = client.post("/api/v1/internal/conversations", json=_create_payload())
    assert anonymous.status_code == status.HTTP_401_UNAUTHORIZED

    wrong = client.post(
        "/api/v1/internal/conversations",
        json=_create_payload(),
        headers={"X-Service-Token": "guess"},
    )
    assert wrong.status_code == status.HTTP_401_UNAUTHORIZED

    user_token = client.post("/api/v1/internal/conversations", json=_create_payload(), headers=client_headers)
    assert user_token.status_code == status.HTTP_401_UNAUTHORIZED


def test_closing_hides_conversation_from_listing(
    client, conversation, service_headers, client_headers
) -> None:
    response = client.patch(
        f"/api/v1/internal/conversations/{conversation.conversation_id}/status",
        json={"status": "closed", "actor_id": "ops-bot"},
        headers=service_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "closed"
    listed = client.get("/api/v1/secure-conversations/my-conversations", headers=client_headers).json()
    assert listed == []

    audit = client.get(
        f"/api/v1/secure-conversations/{conversation.conversation_id}/audit-log",
        headers=client_headers,
    ).json()
    assert audit[-1]["action"] == "status_changed"
    assert audit[-1]["actor_id"] == "ops-bot"


def test_status_for_unknown_conversation_is_not_found(client, service_headers) -> None:
    response = client.patch(
        "/api/v1/internal/conversations/secure_missing/status",
        json={"status": "archived"},
        headers=service_headers,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_principal_upsert(client, db_session, service_headers) -> None:
    created = client.put(
        "/api/v1/internal/principals/designer-9",
        json={"display_name": "Designer"},
        headers=service_headers,
    )
    assert created.status_code == status.HTTP_200_OK
    assert created.json() == {"id": "designer-9", "display_name": "Designer", "is_active": True}

    deactivated = client.put(
        "/api/v1/internal/principals/designer-9",
        json={"display_name": "Designer", "is_active": False},
        headers=service_headers,
    )
    assert deactivated.json()["is_active"] is False
    assert db_session.get(Principal, "designer-9").is_active is False
