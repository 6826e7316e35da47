"""
Field-level consistency checks for uploaded student rows.

Validates enumerated fields (grade, section, block) against the configured
vocabularies, checks email and year formats, and flags names that are a
character or two away from another row in the same batch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..config import Vocabulary
from ..core.records import StudentRecord, coerce_records
from ..core.similarity import SimilarityScorer

if TYPE_CHECKING:
    from ..config import QualityConfig


class Severity(str, Enum):
    """Finding severity, driving the block/warn/allow decision."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Severity is fixed per rule
RULE_SEVERITY: dict[str, Severity] = {
    "required": Severity.HIGH,
    "grade": Severity.HIGH,
    "section": Severity.MEDIUM,
    "block": Severity.MEDIUM,
    "email": Severity.LOW,
    "year": Severity.LOW,
    "name": Severity.LOW,
}

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
YEAR_PATTERN = re.compile(r"^\d+$")

# Column labels people type in front of the value ("Grade 5", "Sec. B")
_LABEL_PREFIX = re.compile(r"^(grade|gr|section|sec|block|blk|strand)")


@dataclass
class InconsistencyEntry:
    """A single inconsistent field value in one row."""

    row_index: int
    field: str
    value: Any
    severity: Severity
    issue: str
    suggestion: str | None = None
    related_rows: list[int] = field(default_factory=list)

    def __str__(self) -> str:
        text = f"[{self.severity.value.upper()}] row {self.row_index + 1} {self.field}: {self.issue}"
        if self.suggestion:
            text += f" (did you mean {self.suggestion!r}?)"
        return text

    def to_dict(self) -> dict:
        data = {
            "row_index": self.row_index,
            "field": self.field,
            "value": self.value,
            "severity": self.severity.value,
            "issue": self.issue,
        }
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        if self.related_rows:
            data["related_rows"] = list(self.related_rows)
        return data


class FieldValidator:
    """
    Checks one row's fields against domain vocabularies and format rules.

    Every rule runs on every row; a row can collect several entries.
    A missing first or last name is high severity, so it alone blocks
    the batch.

    Usage:
        validator = FieldValidator()
        entries = validator.validate_batch(records)
        for entry in entries:
            print(entry)
    """

    def __init__(
        self,
        vocabulary: Vocabulary | None = None,
        max_name_distance: int = 2,
        scorer: SimilarityScorer | None = None,
    ):
        """
        Args:
            vocabulary: Accepted grade/section/block tokens
            max_name_distance: Largest edit distance reported as a near-duplicate name
            scorer: Edit-distance implementation
        """
        if max_name_distance < 1:
            raise ValueError("max_name_distance must be at least 1")
        self.vocabulary = vocabulary or Vocabulary()
        self.max_name_distance = max_name_distance
        self.scorer = scorer or SimilarityScorer()

    @classmethod
    def from_config(cls, config: QualityConfig) -> FieldValidator:
        return cls(
            vocabulary=config.vocabulary,
            max_name_distance=config.near_duplicate_max_distance,
        )

    def validate(
        self,
        record: StudentRecord,
        row_index: int,
        batch: list[StudentRecord] | None = None,
    ) -> list[InconsistencyEntry]:
        """
        Validate a single row.

        Args:
            record: Row under evaluation
            row_index: Its position in the uploaded batch
            batch: Whole batch, used for near-duplicate name checks

        Returns:
            Zero or more InconsistencyEntry values
        """
        entries: list[InconsistencyEntry] = []

        entries.extend(self._check_required_names(record, row_index))
        for field_name, tokens in (
            ("grade", self.vocabulary.grades),
            ("section", self.vocabulary.sections),
            ("block", self.vocabulary.blocks),
        ):
            entry = self._check_enumerated(record, row_index, field_name, tokens)
            if entry:
                entries.append(entry)

        entry = self._check_email(record, row_index)
        if entry:
            entries.append(entry)

        entry = self._check_year(record, row_index)
        if entry:
            entries.append(entry)

        if batch:
            entry = self._check_similar_names(record, row_index, batch)
            if entry:
                entries.append(entry)

        return entries

    def validate_batch(self, records: list) -> list[InconsistencyEntry]:
        """Validate every row of a batch, in input order."""
        batch = coerce_records(records)
        entries: list[InconsistencyEntry] = []
        for index, record in enumerate(batch):
            entries.extend(self.validate(record, index, batch))
        return entries

    # ─── Rules ───────────────────────────────────────────────────────────

    def _check_required_names(
        self, record: StudentRecord, row_index: int
    ) -> list[InconsistencyEntry]:
        entries = []
        for field_name in ("first_name", "last_name"):
            if not (getattr(record, field_name) or "").strip():
                entries.append(
                    InconsistencyEntry(
                        row_index=row_index,
                        field=field_name,
                        value=getattr(record, field_name),
                        severity=RULE_SEVERITY["required"],
                        issue="Required field is missing",
                    )
                )
        return entries

    def _check_enumerated(
        self,
        record: StudentRecord,
        row_index: int,
        field_name: str,
        tokens: tuple[str, ...],
    ) -> InconsistencyEntry | None:
        raw = getattr(record, field_name)
        if not raw or not raw.strip():
            return None

        value = raw.strip().casefold()
        if any(value == token.casefold() for token in tokens):
            return None

        return InconsistencyEntry(
            row_index=row_index,
            field=field_name,
            value=raw,
            severity=RULE_SEVERITY[field_name],
            issue=f'Invalid {field_name} "{raw}". Valid values are: {", ".join(tokens)}',
            suggestion=suggest_token(raw, tokens),
        )

    def _check_email(self, record: StudentRecord, row_index: int) -> InconsistencyEntry | None:
        if not record.email or not record.email.strip():
            return None
        if EMAIL_PATTERN.match(record.email.strip()):
            return None
        return InconsistencyEntry(
            row_index=row_index,
            field="email",
            value=record.email,
            severity=RULE_SEVERITY["email"],
            issue=f'Email format appears invalid: "{record.email}"',
        )

    def _check_year(self, record: StudentRecord, row_index: int) -> InconsistencyEntry | None:
        if not record.year or not record.year.strip():
            return None
        if YEAR_PATTERN.match(record.year.strip()):
            return None
        return InconsistencyEntry(
            row_index=row_index,
            field="year",
            value=record.year,
            severity=RULE_SEVERITY["year"],
            issue=f'Year should be numeric, got "{record.year}"',
        )

    def _check_similar_names(
        self,
        record: StudentRecord,
        row_index: int,
        batch: list[StudentRecord],
    ) -> InconsistencyEntry | None:
        """Flag names within a small absolute edit distance of another row."""
        name = record.name_key
        if name is None:
            return None

        related: list[int] = []
        labels: list[str] = []
        for other_index, other in enumerate(batch):
            if other_index == row_index or other.name_key is None:
                continue
            distance = self.scorer.edit_distance(name, other.name_key)
            if 0 < distance <= self.max_name_distance:
                related.append(other_index)
                labels.append(f"{other.display_name} (row {other_index + 1})")

        if not related:
            return None

        return InconsistencyEntry(
            row_index=row_index,
            field="name",
            value=record.display_name,
            severity=RULE_SEVERITY["name"],
            issue=f"Name is similar to: {', '.join(labels)}. Possible typo or duplicate?",
            related_rows=related,
        )


def _compact(text: str) -> str:
    return re.sub(r"[^0-9a-z]", "", text.casefold())


def suggest_token(value: str, tokens: tuple[str, ...]) -> str | None:
    """
    Canonical vocabulary token matching a messy value, if any.

    Punctuation, spacing and a leading column label are ignored, so
    ``"Grade 5"`` suggests ``"5"`` and ``"h.u.m.s.s"`` suggests ``"HUMSS"``.
    """
    compact = _compact(value)
    candidates = [compact]
    stripped = _LABEL_PREFIX.sub("", compact)
    if stripped and stripped != compact:
        candidates.append(stripped)

    for candidate in candidates:
        for token in tokens:
            if _compact(token) == candidate:
                return token
    return None
