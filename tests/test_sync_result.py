"""Tests for operation results."""

from pytea.sync import OperationResult, OperationStatus, OutcomeKind
from pytea.sync.result import REMOTE_ERROR, ListResult, RemoteEntry
from pytea.sync.paths import Role


class TestOperationResult:
    """Tests for OperationResult aggregation."""

    def test_empty_result_is_success(self):
        result = OperationResult("push", "fs1")
        assert result.success
        assert result.status == OperationStatus.COMPLETED

    def test_skipped_entries_do_not_fail(self):
        result = OperationResult("push", "fs1")
        result.skip("fs1/etc/x", "excluded")
        assert result.success

    def test_failure_marks_completed_with_failures(self):
        result = OperationResult("push", "fs1")
        result.add(OutcomeKind.UPLOADED, "fs1/etc/a")
        result.fail("fs1/etc/b", REMOTE_ERROR, "boom")
        assert not result.success
        assert result.status == OperationStatus.COMPLETED_WITH_FAILURES
        assert [o.remote_path for o in result.failures] == ["fs1/etc/b"]

    def test_abort(self):
        result = OperationResult("delete", "fs1")
        result.fail("fs1/nope", "NotFound", "missing")
        result.abort(ValueError("gate"))
        assert result.outcomes == []
        assert result.aborted
        assert result.status == OperationStatus.ABORTED
        assert result.error == "gate"
        assert not result.success

    def test_counts_include_every_kind(self):
        result = OperationResult("pull", "fs1")
        result.add(OutcomeKind.DOWNLOADED, "fs1/etc/a", "/etc/a")
        counts = result.counts()
        assert counts["downloaded"] == 1
        assert counts["failed"] == 0
        assert set(counts) == {kind.value for kind in OutcomeKind}

    def test_to_dict(self):
        result = OperationResult("push", "fs1")
        result.fail("fs1/etc/a", REMOTE_ERROR, "boom", local_path="/etc/a")
        data = result.to_dict()
        assert data["status"] == "completed_with_failures"
        assert data["success"] is False
        assert data["outcomes"][0] == {
            "kind": "failed",
            "remote_path": "fs1/etc/a",
            "local_path": "/etc/a",
            "reason": "boom",
            "cause": "RemoteError",
        }

    def test_list_result_to_dict(self):
        result = ListResult("list", "fs1")
        result.entries.append(RemoteEntry("fs1/.gitkeep", role=Role.IGNORED))
        data = result.to_dict()
        assert data["entries"][0]["role"] == "ignored"
