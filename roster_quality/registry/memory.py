"""
In-memory registry, loaded from a list or a JSON snapshot export.
"""

import json
import logging
from pathlib import Path

from ..core.records import StoredStudent, normalize
from .base import BaseRegistry

logger = logging.getLogger(__name__)


class InMemoryRegistry(BaseRegistry):
    """
    Registry backed by a dict of stored students.

    Lookups compare normalized values, matching how the live registry
    stores IDs, emails and names.
    """

    NAME = "memory"

    def __init__(self, students: list | None = None):
        self._students: dict[str, StoredStudent] = {}
        for student in students or []:
            self.add(student)

    @classmethod
    def from_json(cls, path: str | Path) -> "InMemoryRegistry":
        """Load a snapshot: a JSON array, or an object with a ``students`` key."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("students", [])
        registry = cls(data)
        logger.info(f"Loaded {len(registry)} stored students from {path}")
        return registry

    def add(self, student: StoredStudent | dict):
        if isinstance(student, dict):
            student = StoredStudent.from_dict(student)
        self._students[student.norm_id] = student

    def exists_by_id(self, student_id: str) -> bool:
        return normalize(student_id) in self._students

    def get_by_id(self, student_id: str) -> StoredStudent | None:
        return self._students.get(normalize(student_id))

    def find_by_email(self, email: str) -> list[StoredStudent]:
        target = normalize(email)
        if not target:
            return []
        return [s for s in self._students.values() if normalize(s.email) == target]

    def find_by_first_name(self, first_name: str) -> list[StoredStudent]:
        target = normalize(first_name)
        return [s for s in self._students.values() if normalize(s.first_name) == target]

    def __len__(self) -> int:
        return len(self._students)
