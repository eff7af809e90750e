# tests/test_init_db.py
from secure_workroom.scripts import init_db


def test_init_db_creates_tables(mocker) -> None:
    create = mocker.patch.object(init_db, "create_tables")
    drop = mocker.patch.object(init_db, "drop_tables")

    init_db.main([])

    create.assert_called_once_with()
    drop.assert_not_called()


def test_init_db_reset_drops_first(mocker) -> None:
    manager = mocker.Mock()
    mocker.patch.object(init_db, "create_tables", manager.create)
    mocker.patch.object(init_db, "drop_tables", manager.drop)

    init_db.main(["--reset"])

    assert [call[0] for call in manager.mock_calls] == ["drop", "create"]
