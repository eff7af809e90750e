# tests/test_db_models.py
"""Tests for model helpers."""

from secure_workroom.models import Conversation, ConversationMessage, PartyRole


def _conversation(**overrides) -> Conversation:
    values = {
        "conversation_id": "secure_j_1_abc",
        "job_id": "j",
        "proposal_id": "p",
        "client_id": "client-1",
        "counterparty_id": "freelancer-1",
    }
    values.update(overrides)
    return Conversation(**values)


def test_role_lookup_is_two_valued() -> None:
    conversation = _conversation()

    assert conversation.role_of("client-1") is PartyRole.CLIENT
    assert conversation.role_of("freelancer-1") is PartyRole.COUNTERPARTY
    assert conversation.role_of("someone-else") is None
    assert PartyRole.CLIENT.other is PartyRole.COUNTERPARTY
    assert conversation.party_id(PartyRole.COUNTERPARTY.other) == "client-1"


def test_encryption_ready_needs_both_keys() -> None:
    assert _conversation().encryption_ready is False
    assert _conversation(client_public_key="a").encryption_ready is False
    assert _conversation(client_public_key="a", counterparty_public_key="b").encryption_ready is True


def test_conversation_active_flag() -> None:
    assert _conversation(status="active").is_active is True
    assert _conversation(status="suspended").is_active is False


def test_message_read_flag() -> None:
    assert ConversationMessage(status="read").is_read is True
    assert ConversationMessage(status="delivered").is_read is False
