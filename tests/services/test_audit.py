"""Tests for the append-only audit trail."""

from sqlalchemy.exc import SQLAlchemyError

from secure_workroom.services.audit import AuditTrailRecorder, RequestOrigin


def test_record_appends_in_order_with_origin(db_session, conversation, client_user):
    recorder = AuditTrailRecorder(db_session)
    origin = RequestOrigin(ip_address="203.0.113.9", user_agent="workroom-web/2.1")

    first = recorder.record(conversation.conversation_id, "public_key_exchanged", client_user.id, "k1", origin)
    second = recorder.record(conversation.conversation_id, "meeting_scheduled", client_user.id)

    assert first is not None and second is not None
    entries = recorder.list_entries(conversation.conversation_id)
    assert [e.action for e in entries] == ["public_key_exchanged", "meeting_scheduled"]
    assert entries[0].ip_address == "203.0.113.9"
    assert entries[0].user_agent == "workroom-web/2.1"
    assert entries[0].timestamp is not None
    assert entries[1].ip_address is None


def test_record_for_unknown_conversation_is_skipped(db_session):
    recorder = AuditTrailRecorder(db_session)

    assert recorder.record("secure_missing", "status_changed", None) is None
    assert recorder.count("secure_missing") == 0


def test_record_failure_is_swallowed(db_session, conversation, mocker):
    recorder = AuditTrailRecorder(db_session)
    mocker.patch.object(db_session, "commit", side_effect=SQLAlchemyError("disk full"))
    rollback = mocker.spy(db_session, "rollback")

    assert recorder.record(conversation.conversation_id, "document_uploaded", "client-1") is None
    rollback.assert_called_once()


def test_audit_log_never_shrinks(db_session, conversation, client_user, freelancer_user):
    recorder = AuditTrailRecorder(db_session)
    lengths = [recorder.count(conversation.conversation_id)]
    for actor in (client_user.id, freelancer_user.id, client_user.id):
        recorder.record(conversation.conversation_id, "public_key_exchanged", actor)
        lengths.append(recorder.count(conversation.conversation_id))

    assert lengths == sorted(lengths)
    assert lengths[-1] == 3
    assert not hasattr(recorder, "delete")
    assert not hasattr(recorder, "update")
