# tests/v1/test_secure_conversations.py
"""Tests for secure conversation endpoints."""

from fastapi import status

from secure_workroom.schemas.message import UNSIGNED_SIGNATURE_SENTINEL


def _url(conversation, suffix: str = "") -> str:
    return f"/api/v1/secure-conversations/{conversation.conversation_id}{suffix}"


def test_party_can_fetch_conversation_details(client, conversation, client_headers) -> None:
    response = client.get(_url(conversation), headers=client_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["conversation_id"] == conversation.conversation_id
    assert data["encryption"]["encryption_algorithm"] == "RSA-OAEP"
    assert data["encryption"]["signing_algorithm"] == "RSASSA-PKCS1-v1_5"
    assert data["encryption"]["key_size"] == 2048
    assert data["security"]["watermark_enabled"] is True
    assert data["video_conference"]["enabled"] is True
    assert data["encryption_ready"] is False


def test_outsider_gets_not_found(client, conversation, outsider_headers) -> None:
    response = client.get(_url(conversation), headers=outsider_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {
        "error": {"kind": "not_found", "message": "Conversation not found"}
    }


def test_requests_without_credentials_are_rejected(client, conversation) -> None:
    response = client.get(_url(conversation))
    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}

    response = client.get(_url(conversation), headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_inactive_principal_is_rejected(client, db_session, conversation, client_user, client_headers) -> None:
    client_user.is_active = False
    db_session.commit()

    response = client.get(_url(conversation), headers=client_headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_my_conversations_and_proposal_lookup(client, conversation, client_headers, outsider_headers) -> None:
    mine = client.get("/api/v1/secure-conversations/my-conversations", headers=client_headers)
    assert mine.status_code == status.HTTP_200_OK
    assert [c["conversation_id"] for c in mine.json()] == [conversation.conversation_id]
    assert "messages" not in mine.json()[0]

    theirs = client.get("/api/v1/secure-conversations/my-conversations", headers=outsider_headers)
    assert theirs.json() == []

    by_proposal = client.get(
        f"/api/v1/secure-conversations/proposal/{conversation.proposal_id}", headers=client_headers
    )
    assert by_proposal.status_code == status.HTTP_200_OK
    assert by_proposal.json()["conversation_id"] == conversation.conversation_id


def test_key_exchange_flow(
    client, presence, make_channel, conversation, client_user, client_headers, freelancer_headers,
    client_keys, freelancer_keys,
) -> None:
    client_channel = make_channel(client_user.id)
    presence.connect(client_channel)

    first = client.post(
        _url(conversation, "/exchange-keys"),
        json={"public_key": client_keys.public_key},
        headers=client_headers,
    )
    assert first.status_code == status.HTTP_200_OK
    assert first.json() == {"success": True, "encryption_ready": False}

    second = client.post(
        _url(conversation, "/exchange-keys"),
        json={"public_key": freelancer_keys.public_key},
        headers=freelancer_headers,
    )
    assert second.json() == {"success": True, "encryption_ready": True}
    assert len(client_channel.named("encryption_ready")) == 1

    detail = client.get(_url(conversation), headers=freelancer_headers).json()
    assert detail["encryption"]["client_public_key"] == client_keys.public_key
    assert detail["encryption_ready"] is True


def test_send_and_read_back_sealed_message(
    client, ready_conversation, client_headers, freelancer_headers, freelancer_keys, seal
) -> None:
    body = seal(freelancer_keys.public_key, b"Milestone 1 delivered")

    response = client.post(
        _url(ready_conversation, "/messages"),
        json={**body, "signature": UNSIGNED_SIGNATURE_SENTINEL},
        headers=client_headers,
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["success"] is True
    assert data["message_id"].startswith("msg_")
    assert data["status"] == "sent"
    assert data["duplicate"] is False

    history = client.get(_url(ready_conversation, "/messages"), headers=freelancer_headers)
    assert history.status_code == status.HTTP_200_OK
    [message] = history.json()
    assert message["message_id"] == data["message_id"]
    assert message["signature"] is None
    assert message["is_read"] is False
    assert freelancer_keys.open(message["ciphertext"]) == b"Milestone 1 delivered"


def test_send_with_missing_fields_is_invalid_input(client, ready_conversation, client_headers) -> None:
    missing = client.post(
        _url(ready_conversation, "/messages"), json={"content_hash": "abc"}, headers=client_headers
    )
    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert missing.json()["error"]["kind"] == "invalid_input"

    empty = client.post(
        _url(ready_conversation, "/messages"),
        json={"ciphertext": "", "content_hash": "abc"},
        headers=client_headers,
    )
    assert empty.status_code == status.HTTP_400_BAD_REQUEST
    assert empty.json()["error"]["message"] == "Encrypted content and hash are required"


def test_send_to_archived_conversation_is_invalid_state(
    client, store, ready_conversation, client_headers, freelancer_keys, seal
) -> None:
    store.set_status(ready_conversation.conversation_id, "archived")

    response = client.post(
        _url(ready_conversation, "/messages"),
        json=seal(freelancer_keys.public_key, b"hello?"),
        headers=client_headers,
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["error"]["kind"] == "invalid_state"


def test_retry_with_client_token_returns_original(
    client, ready_conversation, client_headers, freelancer_keys, seal
) -> None:
    payload = {**seal(freelancer_keys.public_key, b"retry me"), "client_token": "tok-42"}

    first = client.post(_url(ready_conversation, "/messages"), json=payload, headers=client_headers)
    second = client.post(_url(ready_conversation, "/messages"), json=payload, headers=client_headers)

    assert first.status_code == second.status_code == status.HTTP_201_CREATED
    assert second.json()["message_id"] == first.json()["message_id"]
    assert second.json()["duplicate"] is True


def test_delivery_and_read_receipts(
    client, ready_conversation, client_headers, freelancer_headers, freelancer_keys, seal
) -> None:
    sent = client.post(
        _url(ready_conversation, "/messages"),
        json=seal(freelancer_keys.public_key, b"ping"),
        headers=client_headers,
    ).json()
    message_id = sent["message_id"]

    by_sender = client.put(
        _url(ready_conversation, f"/messages/{message_id}/delivered"), headers=client_headers
    )
    assert by_sender.status_code == status.HTTP_403_FORBIDDEN

    delivered = client.put(
        _url(ready_conversation, f"/messages/{message_id}/delivered"), headers=freelancer_headers
    )
    assert delivered.json() == {"success": True, "status": "delivered"}

    read = client.put(
        _url(ready_conversation, "/messages/read"),
        json={"message_ids": [message_id]},
        headers=freelancer_headers,
    )
    assert read.json() == {"success": True, "updated": 1}

    again = client.put(
        _url(ready_conversation, "/messages/read"),
        json={"message_ids": [message_id]},
        headers=freelancer_headers,
    )
    assert again.json() == {"success": True, "updated": 0}

    late_delivery = client.put(
        _url(ready_conversation, f"/messages/{message_id}/delivered"), headers=freelancer_headers
    )
    assert late_delivery.json()["status"] == "read"


def test_history_limit_bounds(client, ready_conversation, client_headers) -> None:
    too_big = client.get(_url(ready_conversation, "/messages?limit=100000"), headers=client_headers)
    assert too_big.status_code == status.HTTP_400_BAD_REQUEST

    ok = client.get(_url(ready_conversation, "/messages?limit=1"), headers=client_headers)
    assert ok.status_code == status.HTTP_200_OK
    assert ok.json() == []


def test_sender_can_soft_delete(
    client, ready_conversation, client_headers, freelancer_headers, freelancer_keys, seal
) -> None:
    message_id = client.post(
        _url(ready_conversation, "/messages"),
        json=seal(freelancer_keys.public_key, b"typo"),
        headers=client_headers,
    ).json()["message_id"]

    forbidden = client.delete(_url(ready_conversation, f"/messages/{message_id}"), headers=freelancer_headers)
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    deleted = client.delete(_url(ready_conversation, f"/messages/{message_id}"), headers=client_headers)
    assert deleted.status_code == status.HTTP_200_OK
    assert deleted.json()["is_deleted"] is True


def test_workspace_endpoints(client, conversation, client_headers, freelancer_headers, freelancer_user) -> None:
    meeting = client.post(
        _url(conversation, "/meetings"),
        json={"title": "Kickoff", "scheduled_at": "2026-11-02T15:00:00Z", "duration": 30},
        headers=client_headers,
    )
    assert meeting.status_code == status.HTTP_201_CREATED
    meeting_id = meeting.json()["meeting_id"]

    missing_title = client.post(
        _url(conversation, "/meetings"),
        json={"scheduled_at": "2026-11-02T15:00:00Z", "duration": 30},
        headers=client_headers,
    )
    assert missing_title.status_code == status.HTTP_400_BAD_REQUEST

    joined = client.post(_url(conversation, f"/meetings/{meeting_id}/join"), headers=freelancer_headers)
    assert joined.json()["status"] == "in-progress"
    assert len(client.get(_url(conversation, "/meetings"), headers=client_headers).json()) == 1

    document = client.post(
        _url(conversation, "/documents"),
        json={
            "name": "spec.pdf",
            "encrypted_url": "https://files.example.test/enc/spec",
            "encryption_key": "d3JhcHBlZA==",
            "mime_type": "application/pdf",
        },
        headers=freelancer_headers,
    )
    assert document.status_code == status.HTTP_201_CREATED
    docs = client.get(_url(conversation, "/documents"), headers=client_headers).json()
    assert [d["name"] for d in docs] == ["spec.pdf"]

    task = client.post(
        _url(conversation, "/tasks"),
        json={"title": "Homepage mockup", "assigned_to": freelancer_user.id},
        headers=client_headers,
    )
    assert task.status_code == status.HTTP_201_CREATED
    task_id = task.json()["task_id"]
    updated = client.patch(
        _url(conversation, f"/tasks/{task_id}"), json={"status": "review"}, headers=freelancer_headers
    )
    assert updated.json()["status"] == "review"
    assert len(client.get(_url(conversation, "/tasks"), headers=client_headers).json()) == 1

    share = client.post(_url(conversation, "/screen-share/start"), json={}, headers=client_headers)
    assert share.status_code == status.HTTP_200_OK
    assert share.json()["session_id"].startswith("screen_")


def test_audit_log_records_origin(client, conversation, client_headers, freelancer_headers, client_keys) -> None:
    client.post(
        _url(conversation, "/exchange-keys"),
        json={"public_key": client_keys.public_key},
        headers={**client_headers, "User-Agent": "workroom-web/3.0"},
    )

    response = client.get(_url(conversation, "/audit-log"), headers=freelancer_headers)

    assert response.status_code == status.HTTP_200_OK
    [entry] = response.json()
    assert entry["action"] == "public_key_exchanged"
    assert entry["actor_id"] == "client-1"
    assert entry["user_agent"] == "workroom-web/3.0"
    assert entry["ip_address"]
