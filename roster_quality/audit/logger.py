"""
Audit trail for quality checks.

Every logger here is best-effort: a failure to record an entry is logged
and reported as ``False``, never raised to the caller.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

import requests

logger = logging.getLogger(__name__)


class AuditLogger(ABC):
    """Abstract base class for audit-trail writers."""

    NAME = "base"

    @abstractmethod
    def _write(self, entry: dict):
        """
        Persist one audit entry.

        Args:
            entry: JSON-serialisable entry built by the public log methods
        """
        pass

    def log_quality_check(
        self,
        caller_id: str,
        caller_label: str,
        record_count: int,
        issue_counts: dict,
        is_clean: bool,
    ) -> bool:
        """
        Record that a batch was quality-checked.

        Args:
            caller_id: Identity of the user running the import
            caller_label: Display label for the caller (e.g. email)
            record_count: Rows in the batch
            issue_counts: Counts keyed by issue kind, including ``total``
            is_clean: Whether the batch had no findings

        Returns:
            True if the entry was written
        """
        total = issue_counts.get("total", 0)
        if is_clean:
            description = f"Data quality check passed: {record_count} records checked, no issues"
        else:
            description = f"Data quality check found {total} issue(s) in {record_count} records"

        return self._safe_write(
            {
                "action_type": "quality_check",
                "caller_id": caller_id,
                "caller_label": caller_label,
                "status": "success" if is_clean else "pending",
                "description": description,
                "metadata": {
                    "records_checked": record_count,
                    "issues_found": dict(issue_counts),
                    "is_clean": is_clean,
                },
            }
        )

    def log_duplicate_detection(
        self,
        caller_id: str,
        caller_label: str,
        student_id_duplicates: list[str],
        name_duplicates: list[str],
        email_duplicates: list[str],
    ) -> bool:
        """Record the duplicate keys found in a batch."""
        total = len(student_id_duplicates) + len(name_duplicates) + len(email_duplicates)
        if total == 0:
            description = "Duplicate detection completed: No duplicates found"
        else:
            description = (
                f"Duplicate detection found {total} duplicate(s): "
                f"{len(student_id_duplicates)} ID dupes, {len(name_duplicates)} name dupes, "
                f"{len(email_duplicates)} email dupes"
            )

        return self._safe_write(
            {
                "action_type": "duplicate_detection",
                "caller_id": caller_id,
                "caller_label": caller_label,
                "status": "success" if total == 0 else "pending",
                "description": description,
                "metadata": {
                    "student_id_duplicates": list(student_id_duplicates),
                    "name_duplicates": list(name_duplicates),
                    "email_duplicates": list(email_duplicates),
                    "total": total,
                },
            }
        )

    def _safe_write(self, entry: dict) -> bool:
        entry["timestamp"] = datetime.now().isoformat()
        try:
            self._write(entry)
        except Exception as e:
            logger.error(f"Failed to write {entry['action_type']} audit entry ({self.NAME}): {e}")
            return False
        logger.debug(f"Audit [{self.NAME}]: {entry['description']}")
        return True

    def close(self):
        """Clean up resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class JsonlAuditLogger(AuditLogger):
    """
    Appends audit entries to a JSONL file.

    One line per entry in ``<audit_dir>/quality_audit.jsonl``; the directory
    defaults to ``AUDIT_DIR`` or ``data/audit`` and is created on first write.
    """

    NAME = "jsonl"

    def __init__(self, audit_dir: str | None = None):
        self.audit_dir = Path(audit_dir or os.environ.get("AUDIT_DIR", "data/audit"))
        self.path = self.audit_dir / "quality_audit.jsonl"

    def _write(self, entry: dict):
        self.audit_dir.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def read_entries(self) -> list[dict]:
        """Load all entries written so far."""
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


class HttpAuditLogger(AuditLogger):
    """Posts audit entries to a remote audit endpoint."""

    NAME = "http"

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        timeout: float = 5.0,
    ):
        self.url = url or os.environ.get("AUDIT_URL", "")
        if not self.url:
            raise ValueError("HttpAuditLogger needs a url or AUDIT_URL")
        self.timeout = timeout
        self.session = requests.Session()
        token = token or os.environ.get("AUDIT_TOKEN")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _write(self, entry: dict):
        response = self.session.post(self.url, json=entry, timeout=self.timeout)
        response.raise_for_status()

    def close(self):
        self.session.close()
