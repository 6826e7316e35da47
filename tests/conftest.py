"""
Shared test fixtures for roster_quality tests.

Provides sample upload rows, fake registries and fake audit loggers.
"""

import pytest

from roster_quality.audit.logger import AuditLogger
from roster_quality.core.records import StoredStudent, normalize
from roster_quality.registry.base import BaseRegistry

# ---------------------------------------------------------------------------
# Sample rows
# ---------------------------------------------------------------------------

CLEAN_ROWS = [
    {
        "student_id": "STU001",
        "first_name": "John",
        "last_name": "Doe",
        "email": "john@example.com",
        "year": "2024",
        "grade": "5",
        "section": "A",
        "block": "STEM",
    },
    {
        "student_id": "STU002",
        "first_name": "Jane",
        "last_name": "Smith",
        "email": "jane@example.com",
        "year": "2024",
        "grade": "6",
        "section": "B",
        "block": "HUMSS",
    },
    {
        "student_id": "STU003",
        "first_name": "Bob",
        "last_name": "Johnson",
        "email": "bob@example.com",
        "year": "2023",
        "grade": "C",
        "section": "10",
        "block": "ABM",
    },
]

STORED_STUDENTS = [
    StoredStudent("STU100", "Maria", "Santos", "maria@example.com", "2023-06-01T08:00:00"),
    StoredStudent("STU101", "Paolo", "Reyes", "paolo@example.com", "2023-06-01T08:05:00"),
    StoredStudent("STU102", "Ana", "Cruz", None, "2023-06-02T09:00:00"),
]


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeRegistry(BaseRegistry):
    """A registry over a fixed list that records every call."""

    NAME = "fake"

    def __init__(self, students=None):
        self.students = list(students if students is not None else STORED_STUDENTS)
        self.calls = []

    def exists_by_id(self, student_id):
        self.calls.append(("exists_by_id", student_id))
        return any(s.norm_id == normalize(student_id) for s in self.students)

    def get_by_id(self, student_id):
        self.calls.append(("get_by_id", student_id))
        for s in self.students:
            if s.norm_id == normalize(student_id):
                return s
        return None

    def find_by_email(self, email):
        self.calls.append(("find_by_email", email))
        return [s for s in self.students if normalize(s.email) == normalize(email)]

    def find_by_first_name(self, first_name):
        self.calls.append(("find_by_first_name", first_name))
        return [s for s in self.students if normalize(s.first_name) == normalize(first_name)]


class FailingRegistry(FakeRegistry):
    """A registry whose selected operations raise ConnectionError."""

    NAME = "failing"

    def __init__(self, students=None, failing=("exists_by_id",)):
        super().__init__(students)
        self.failing = set(failing)

    def _maybe_fail(self, operation):
        if operation in self.failing:
            raise ConnectionError(f"Mock {operation} timeout")

    def exists_by_id(self, student_id):
        self._maybe_fail("exists_by_id")
        return super().exists_by_id(student_id)

    def get_by_id(self, student_id):
        self._maybe_fail("get_by_id")
        return super().get_by_id(student_id)

    def find_by_email(self, email):
        self._maybe_fail("find_by_email")
        return super().find_by_email(email)

    def find_by_first_name(self, first_name):
        self._maybe_fail("find_by_first_name")
        return super().find_by_first_name(first_name)


class RecordingAuditLogger(AuditLogger):
    """Keeps audit entries in memory."""

    NAME = "recording"

    def __init__(self):
        self.entries = []

    def _write(self, entry):
        self.entries.append(entry)


class FailingAuditLogger(AuditLogger):
    """An audit logger whose backend is always down."""

    NAME = "failing"

    def _write(self, entry):
        raise ConnectionError("Mock audit backend down")


class ExplodingAuditLogger(RecordingAuditLogger):
    """Raises from the public API itself, bypassing the built-in guard."""

    def log_quality_check(self, *args, **kwargs):
        raise RuntimeError("Mock audit bug")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_rows():
    """Return copies of a batch with no findings."""
    return [dict(r) for r in CLEAN_ROWS]


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def failing_registry():
    """Factory for registries whose named operations raise."""

    def _make(*failing, students=None):
        return FailingRegistry(students, failing=failing)

    return _make


@pytest.fixture
def stored_students():
    return list(STORED_STUDENTS)


@pytest.fixture
def recording_audit():
    return RecordingAuditLogger()


@pytest.fixture
def failing_audit():
    return FailingAuditLogger()


@pytest.fixture
def exploding_audit():
    return ExplodingAuditLogger()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Ensure environment variables don't leak between tests."""
    env_keys = [
        "VALID_GRADES",
        "VALID_SECTIONS",
        "VALID_BLOCKS",
        "NEAR_DUPLICATE_MAX_DISTANCE",
        "NAME_SIMILARITY_THRESHOLD",
        "REGISTRY_URL",
        "REGISTRY_TOKEN",
        "REGISTRY_TIMEOUT",
        "AUDIT_DIR",
        "AUDIT_URL",
        "AUDIT_TOKEN",
    ]
    for key in env_keys:
        monkeypatch.delenv(key, raising=False)
