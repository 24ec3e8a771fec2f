from unittest.mock import MagicMock, patch

import pytest

import database


@pytest.fixture
def mock_supabase():
    with patch("database.supabase", new=MagicMock()) as client:
        yield client


def test_get_document_returns_first_row(mock_supabase):
    query = mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value.data = [{"id": "doc-1"}]
    assert database.get_document("doc-1") == {"id": "doc-1"}
    mock_supabase.table.assert_called_with("documents")


def test_get_project_missing(mock_supabase):
    query = mock_supabase.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value.data = []
    assert database.get_project("nope") is None


def test_changed_content_marks_pending_sync(mock_supabase):
    changed = database.update_document_content("doc-1", "new", previous_content="old")
    assert changed is True
    mock_supabase.table.return_value.update.assert_called_once_with({
        "content": "new",
        "updated_at": "now()",
        "sync_status": "pending",
    })


def test_same_content_keeps_sync_status(mock_supabase):
    changed = database.update_document_content("doc-1", "same", previous_content="same")
    assert changed is False
    payload = mock_supabase.table.return_value.update.call_args.args[0]
    assert "sync_status" not in payload


def _latest_version(mock_supabase, rows):
    query = mock_supabase.table.return_value.select.return_value.eq.return_value.order.return_value.limit.return_value
    query.execute.return_value.data = rows


def test_snapshot_increments_version(mock_supabase):
    _latest_version(mock_supabase, [{"version_num": 3, "content": "# Draft"}])

    version = database.snapshot_document_version("doc-1", "# Doc", trigger_type="ai_edit")

    assert version == 4
    mock_supabase.table.return_value.select.assert_called_with("version_num, content")
    mock_supabase.table.return_value.insert.assert_called_once_with({
        "document_id": "doc-1",
        "content": "# Doc",
        "version_num": 4,
        "trigger_type": "ai_edit",
    })


def test_first_snapshot_is_version_one(mock_supabase):
    _latest_version(mock_supabase, [])

    assert database.snapshot_document_version("doc-1", "# Doc") == 1

    payload = mock_supabase.table.return_value.insert.call_args.args[0]
    assert payload["version_num"] == 1


def test_snapshot_skipped_when_latest_version_matches(mock_supabase):
    _latest_version(mock_supabase, [{"version_num": 3, "content": "# Doc"}])

    assert database.snapshot_document_version("doc-1", "# Doc") is None
    mock_supabase.table.return_value.insert.assert_not_called()
