# tests/services/test_activity_service.py
import pytest
from datetime import datetime, UTC

from models.db_models import ActivityLog
from services.activity_service import diff_fields, log_activity, wrap_value


def test_wrap_value():
    assert wrap_value(None) is None
    assert wrap_value({}) is None
    assert wrap_value("Completed") == {"value": "Completed"}
    assert wrap_value({"when": datetime(2024, 1, 2, tzinfo=UTC)}) == {"when": "2024-01-02T00:00:00+00:00"}


def test_diff_fields_skips_unchanged_and_timestamps():
    old = {"title": "Old", "featured": True, "updated_at": "x"}
    changes = {"title": "New", "featured": True, "updated_at": "y"}
    assert diff_fields(old, changes) == ({"title": "Old"}, {"title": "New"})


@pytest.mark.asyncio
async def test_log_activity_writes_entry(mock_store):
    mock_store.create.return_value = {"id": "log-1"}

    entry = await log_activity(
        mock_store, "admin@example.com", "Project", "p1", "status_change",
        project_id="p1", field="status", new_value="Completed",
    )

    assert entry == {"id": "log-1"}
    model, data = mock_store.create.await_args.args
    assert model is ActivityLog
    assert data["field"] == "status"
    assert data["new_value"] == {"value": "Completed"}
    assert data["old_value"] is None


@pytest.mark.asyncio
async def test_log_activity_failure_is_swallowed(mock_store):
    mock_store.create.side_effect = RuntimeError("database is locked")

    assert await log_activity(mock_store, None, "Project", "p1", "delete") is None
