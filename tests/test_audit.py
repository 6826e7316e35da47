"""
Tests for the audit trail writers.
"""

from unittest.mock import Mock, patch

import pytest
import requests

from roster_quality.audit.logger import HttpAuditLogger, JsonlAuditLogger


class TestAuditEntries:
    def test_clean_quality_check(self, recording_audit):
        ok = recording_audit.log_quality_check(
            "admin-1", "ops@school.test", 12, {"duplicates": 0, "inconsistencies": 0, "total": 0}, True
        )
        entry = recording_audit.entries[0]
        assert ok is True
        assert entry["status"] == "success"
        assert entry["description"] == (
            "Data quality check passed: 12 records checked, no issues"
        )
        assert "timestamp" in entry

    def test_quality_check_with_issues(self, recording_audit):
        recording_audit.log_quality_check(
            "admin-1", "ops", 12, {"duplicates": 1, "inconsistencies": 2, "total": 3}, False
        )
        entry = recording_audit.entries[0]
        assert entry["status"] == "pending"
        assert entry["description"] == "Data quality check found 3 issue(s) in 12 records"
        assert entry["metadata"]["issues_found"]["inconsistencies"] == 2

    def test_duplicate_detection(self, recording_audit):
        recording_audit.log_duplicate_detection(
            "admin-1", "ops", ["stu001"], ["ana cruz", "jon doe"], []
        )
        entry = recording_audit.entries[0]
        assert entry["action_type"] == "duplicate_detection"
        assert entry["description"] == (
            "Duplicate detection found 3 duplicate(s): 1 ID dupes, 2 name dupes, 0 email dupes"
        )
        assert entry["metadata"]["total"] == 3

    def test_no_duplicates(self, recording_audit):
        recording_audit.log_duplicate_detection("admin-1", "ops", [], [], [])
        assert recording_audit.entries[0]["description"] == (
            "Duplicate detection completed: No duplicates found"
        )

    def test_backend_failure_returns_false(self, failing_audit):
        assert failing_audit.log_quality_check("a", "b", 1, {"total": 0}, True) is False
        assert failing_audit.log_duplicate_detection("a", "b", ["x"], [], []) is False


class TestJsonlAuditLogger:
    def test_appends_entries(self, tmp_path):
        audit = JsonlAuditLogger(tmp_path / "audit")
        audit.log_quality_check("admin-1", "ops", 3, {"total": 0}, True)
        audit.log_duplicate_detection("admin-1", "ops", ["s1"], [], [])

        entries = audit.read_entries()
        assert [e["action_type"] for e in entries] == ["quality_check", "duplicate_detection"]
        assert audit.path.name == "quality_audit.jsonl"

    def test_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AUDIT_DIR", str(tmp_path / "from-env"))
        audit = JsonlAuditLogger()
        assert audit.audit_dir == tmp_path / "from-env"
        assert not audit.audit_dir.exists()

        audit.log_duplicate_detection("admin-1", "ops", [], [], [])
        assert audit.audit_dir.is_dir()

    def test_unwritable_dir_is_swallowed(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        audit = JsonlAuditLogger(blocker / "audit")
        assert audit.log_quality_check("admin-1", "ops", 3, {"total": 0}, True) is False

    def test_read_before_write(self, tmp_path):
        assert JsonlAuditLogger(tmp_path).read_entries() == []


class TestHttpAuditLogger:
    def test_requires_url(self):
        with pytest.raises(ValueError):
            HttpAuditLogger()

    def test_posts_entry(self):
        audit = HttpAuditLogger("https://audit.test/entries", token="t0k", timeout=2)
        with patch.object(audit.session, "post", return_value=Mock()) as post:
            assert audit.log_quality_check("admin-1", "ops", 3, {"total": 0}, True) is True

        assert post.call_args.args[0] == "https://audit.test/entries"
        assert post.call_args.kwargs["json"]["action_type"] == "quality_check"
        assert post.call_args.kwargs["timeout"] == 2
        assert audit.session.headers["Authorization"] == "Bearer t0k"

    def test_http_error_is_swallowed(self, monkeypatch):
        monkeypatch.setenv("AUDIT_URL", "https://audit.test/entries")
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("502")
        with HttpAuditLogger() as audit:
            with patch.object(audit.session, "post", return_value=response):
                assert audit.log_quality_check("a", "b", 1, {"total": 0}, True) is False
