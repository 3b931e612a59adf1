"""
Tests for the local file storage backends.
"""

import json
import pytest
from datetime import datetime, timezone
from decimal import Decimal

from dzbudget.models.audit import AuditEvent, AuditEventType
from dzbudget.models.budget import UpdateSavingsGoal
from dzbudget.orchestrator import BudgetStore, create_app_components
from dzbudget.services.storage import (
    JsonFileStateStorage,
    JsonLinesAuditStorage,
    StorageError,
)


class TestJsonFileStateStorage:
    """Tests for JsonFileStateStorage."""

    def test_missing_blob_reads_none(self, tmp_path):
        """Test that a never-written key is None, not an error."""
        storage = JsonFileStateStorage(tmp_path)
        assert storage.read_blob("dz_budget_transactions") is None

    def test_write_then_read(self, tmp_path):
        """Test that content is stored verbatim."""
        storage = JsonFileStateStorage(tmp_path)
        storage.write_blob("dz_budget_categories", '{"version": 1, "data": []}')
        assert storage.read_blob("dz_budget_categories") == '{"version": 1, "data": []}'
        assert (tmp_path / "dz_budget_categories.json").exists()

    def test_creates_data_dir(self, tmp_path):
        """Test that the data directory is created on first write."""
        storage = JsonFileStateStorage(tmp_path / "nested" / "data")
        storage.write_blob("k", "[]")
        assert storage.read_blob("k") == "[]"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        storage = JsonFileStateStorage(tmp_path)
        storage.write_blob("k", "1")
        storage.write_blob("k", "2")
        assert storage.read_blob("k") == "2"
        assert [p.name for p in tmp_path.iterdir()] == ["k.json"]

    def test_non_ascii_content(self, tmp_path):
        """Test that Arabic text survives the round trip."""
        storage = JsonFileStateStorage(tmp_path)
        storage.write_blob("k", '"تغذية"')
        assert storage.read_blob("k") == '"تغذية"'

    def test_delete_blob(self, tmp_path):
        """Test deleting present and absent blobs."""
        storage = JsonFileStateStorage(tmp_path)
        storage.write_blob("k", "[]")
        assert storage.delete_blob("k") is True
        assert storage.delete_blob("k") is False
        assert storage.read_blob("k") is None

    def test_write_failure_raises_storage_error(self, tmp_path):
        """Test that OS errors are wrapped."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("file in the way")
        storage = JsonFileStateStorage(blocker)
        with pytest.raises(StorageError):
            storage.write_blob("k", "[]")


class TestJsonLinesAuditStorage:
    """Tests for JsonLinesAuditStorage."""

    def _event(self, n):
        return AuditEvent(event_type=AuditEventType.STATE_SAVED, description=f"event {n}")

    def test_empty_history(self, tmp_path):
        """Test that a missing file has no events."""
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        assert storage.get_recent_events() == []

    def test_append_and_read_newest_first(self, tmp_path):
        """Test ordering and the limit."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        for n in range(5):
            assert storage.append_event(self._event(n)) is True

        recent = storage.get_recent_events(limit=2)
        assert [e["description"] for e in recent] == ["event 4", "event 3"]
        assert len(path.read_text(encoding="utf-8").splitlines()) == 5

    def test_lines_are_json(self, tmp_path):
        """Test the file format."""
        path = tmp_path / "audit.jsonl"
        JsonLinesAuditStorage(path).append_event(self._event(1))
        record = json.loads(path.read_text(encoding="utf-8").strip())
        assert record["event_type"] == "state_saved"

    def test_unreadable_lines_are_skipped(self, tmp_path):
        """Test that a torn or foreign line does not hide the rest of the history."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        storage.append_event(self._event(1))
        with path.open("a", encoding="utf-8") as fh:
            fh.write("not json at all\n")
        storage.append_event(self._event(2))
        with path.open("a", encoding="utf-8") as fh:
            fh.write('{"event_type": "state_sa')

        recent = storage.get_recent_events(limit=2)
        assert [e["description"] for e in recent] == ["event 2", "event 1"]


class TestFileBackedStore:
    """Tests for BudgetStore on real files."""

    def test_create_app_components(self, tmp_path):
        """Test the application wiring against a temporary data dir."""
        store, insight_agent, audit_logger = create_app_components(tmp_path)
        assert isinstance(store, BudgetStore)
        assert store.is_loaded is True
        assert insight_agent.is_busy is False
        assert audit_logger.recent_events(limit=1)[0]["event_type"] == "state_loaded"

    def test_state_survives_restart(self, tmp_path):
        """Test that a new store on the same directory sees the changes."""
        now = datetime(2024, 3, 15, tzinfo=timezone.utc)
        first = BudgetStore(JsonFileStateStorage(tmp_path), clock=lambda: now)
        first.load()
        first.mutate(UpdateSavingsGoal(goal=Decimal("75000")))

        second = BudgetStore(JsonFileStateStorage(tmp_path), clock=lambda: now)
        assert second.load().savings_goal == Decimal("75000")
        assert (tmp_path / "dz_budget_savings_goal.json").exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
