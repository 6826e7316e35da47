"""
Student record model for uploaded roster rows.

Rows arrive as loose mappings from the upload layer. They are pinned to a
fixed set of optional fields here, with anything unrecognized kept in a
side-channel so nothing is silently dropped.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    "student_id",
    "first_name",
    "last_name",
    "email",
    "year",
    "grade",
    "section",
    "block",
)


def normalize(value: str | None) -> str:
    """Comparison form of a field value: trimmed and case-folded."""
    if value is None:
        return ""
    return value.strip().casefold()


def _normalize_key(key: str) -> str:
    return key.strip().lower().replace(" ", "_")


def _coerce_value(name: str, value: Any) -> str | None:
    """Convert a raw cell value to a string, or None when blank."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"Field {name!r} must be text or a number, got bool")
    if isinstance(value, float) and not math.isfinite(value):
        # Blank spreadsheet cells come back as NaN
        return None
    if isinstance(value, float) and value.is_integer():
        # Spreadsheet readers hand back 2024.0 for a year cell
        value = int(value)
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        raise TypeError(f"Field {name!r} must be text or a number, got {type(value).__name__}")
    return value if value.strip() else None


@dataclass(frozen=True)
class StudentRecord:
    """One uploaded row, as given. Use the ``norm_*`` accessors for matching."""

    student_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    year: str | None = None
    grade: str | None = None
    section: str | None = None
    block: str | None = None
    extras: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, row: dict) -> StudentRecord:
        """
        Build a record from a parsed row.

        Args:
            row: Mapping of column name to cell value

        Returns:
            StudentRecord with unknown columns collected in ``extras``

        Raises:
            TypeError: If the row is not a mapping or a known field holds
                a non-scalar value
        """
        if isinstance(row, StudentRecord):
            return row
        if not isinstance(row, dict):
            raise TypeError(f"Expected a mapping for a student row, got {type(row).__name__}")

        known: dict[str, str | None] = {}
        extras: dict[str, Any] = {}
        for raw_key, value in row.items():
            key = _normalize_key(str(raw_key))
            if key in RECORD_FIELDS:
                known[key] = _coerce_value(key, value)
            else:
                extras[str(raw_key)] = value
        return cls(**known, extras=extras)

    @property
    def norm_id(self) -> str:
        return normalize(self.student_id)

    @property
    def norm_email(self) -> str:
        return normalize(self.email)

    @property
    def norm_first(self) -> str:
        return normalize(self.first_name)

    @property
    def norm_last(self) -> str:
        return normalize(self.last_name)

    @property
    def name_key(self) -> str | None:
        """Normalized ``"first last"``, or None if either part is blank."""
        if not self.norm_first or not self.norm_last:
            return None
        return f"{self.norm_first} {self.norm_last}"

    @property
    def display_name(self) -> str:
        parts = [(self.first_name or "").strip(), (self.last_name or "").strip()]
        return " ".join(p for p in parts if p)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "extras"}
        data = {k: v for k, v in data.items() if v is not None}
        if self.extras:
            data["extras"] = dict(self.extras)
        return data


@dataclass(frozen=True)
class StoredStudent:
    """A student already present in the registry."""

    student_id: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> StoredStudent:
        student_id = data.get("student_id") or data.get("id")
        if not student_id:
            raise ValueError("Stored student is missing 'student_id'")
        return cls(
            student_id=str(student_id),
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            email=data.get("email"),
            created_at=data.get("created_at"),
        )

    @property
    def norm_id(self) -> str:
        return normalize(self.student_id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def name_key(self) -> str:
        return f"{normalize(self.first_name)} {normalize(self.last_name)}".strip()

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "created_at": self.created_at,
        }


def coerce_records(records: list) -> list[StudentRecord]:
    """Accept StudentRecord instances or raw row dicts."""
    return [StudentRecord.from_dict(r) for r in records]


def load_records(path: str | Path) -> list[StudentRecord]:
    """
    Load uploaded rows from a JSON array or a JSONL file.

    Args:
        path: File produced by the upload layer

    Returns:
        Records in file order
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".jsonl":
            rows = [json.loads(line) for line in f if line.strip()]
        else:
            rows = json.load(f)

    if isinstance(rows, dict):
        rows = rows.get("records", [])
    if not isinstance(rows, list):
        raise ValueError(f"Expected a list of rows in {path}")

    logger.info(f"Loaded {len(rows)} rows from {path}")
    return coerce_records(rows)
