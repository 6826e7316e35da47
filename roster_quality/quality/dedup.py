"""
Duplicate detection within a single uploaded batch.

Groups rows by normalized student ID, name combination and email in one
pass, then reports every key shared by more than one row. No registry
access happens here; see :mod:`roster_quality.registry.detector` for that.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum

from ..core.records import StoredStudent, StudentRecord, coerce_records
from .validator import Severity

logger = logging.getLogger(__name__)


class MatchType(str, Enum):
    """Which key two records collided on."""

    STUDENT_ID = "student_id"
    EMAIL = "email"
    NAME_COMBINATION = "name_combination"


# Within a batch a shared name with different IDs is a real conflict
BATCH_SEVERITY: dict[MatchType, Severity] = {
    MatchType.STUDENT_ID: Severity.HIGH,
    MatchType.NAME_COMBINATION: Severity.MEDIUM,
    MatchType.EMAIL: Severity.MEDIUM,
}

# Against the registry a name match is only fuzzy evidence
REGISTRY_SEVERITY: dict[MatchType, Severity] = {
    MatchType.STUDENT_ID: Severity.HIGH,
    MatchType.EMAIL: Severity.MEDIUM,
    MatchType.NAME_COMBINATION: Severity.LOW,
}


@dataclass
class DuplicateMatch:
    """
    Two or more records that collide on one key.

    Batch findings carry ``records`` (every row sharing the key); registry
    findings carry one ``upload_record`` and the ``existing_student`` it
    collided with.
    """

    match_type: MatchType
    severity: Severity
    confidence: float
    row_indices: list[int]
    value: str
    message: str
    records: list[StudentRecord] = field(default_factory=list)
    upload_record: StudentRecord | None = None
    existing_student: StoredStudent | None = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.match_type.value}: {self.message}"

    def to_dict(self) -> dict:
        data = {
            "match_type": self.match_type.value,
            "severity": self.severity.value,
            "confidence": round(self.confidence, 4),
            "row_indices": list(self.row_indices),
            "value": self.value,
            "message": self.message,
        }
        if self.records:
            data["records"] = [r.to_dict() for r in self.records]
        if self.upload_record is not None:
            data["upload_record"] = self.upload_record.to_dict()
        if self.existing_student is not None:
            data["existing_student"] = self.existing_student.to_dict()
        return data


def _rows_label(indices: list[int]) -> str:
    return ", ".join(str(i + 1) for i in indices)


class BatchDuplicateDetector:
    """
    Find duplicates purely inside one batch.

    Usage:
        detector = BatchDuplicateDetector()
        for dup in detector.find_duplicates(records):
            print(dup)
    """

    def find_duplicates(self, records: list) -> list[DuplicateMatch]:
        """
        Scan the batch and report every shared key.

        Args:
            records: StudentRecord instances or raw row dicts, in upload order

        Returns:
            Student ID duplicates first, then names, then emails. Row
            indices in each match are ascending.
        """
        batch = coerce_records(records)

        id_groups: dict[str, list[int]] = defaultdict(list)
        name_groups: dict[str, list[int]] = defaultdict(list)
        email_groups: dict[str, list[int]] = defaultdict(list)

        for index, record in enumerate(batch):
            if record.norm_id:
                id_groups[record.norm_id].append(index)
            if record.name_key:
                name_groups[record.name_key].append(index)
            if record.norm_email:
                email_groups[record.norm_email].append(index)

        duplicates: list[DuplicateMatch] = []

        for student_id, indices in id_groups.items():
            if len(indices) > 1:
                duplicates.append(
                    self._build(
                        MatchType.STUDENT_ID,
                        student_id,
                        indices,
                        batch,
                        f'Student ID "{student_id}" appears {len(indices)} times '
                        f"(rows {_rows_label(indices)})",
                    )
                )

        for name, indices in name_groups.items():
            if len(indices) < 2:
                continue
            ids = {batch[i].norm_id for i in indices}
            # Same name under one shared ID is already reported above
            if len(ids) == 1 and "" not in ids:
                continue
            duplicates.append(
                self._build(
                    MatchType.NAME_COMBINATION,
                    name,
                    indices,
                    batch,
                    f'Name "{name}" appears {len(indices)} times with different or '
                    f"missing IDs (rows {_rows_label(indices)})",
                )
            )

        for email, indices in email_groups.items():
            if len(indices) > 1:
                duplicates.append(
                    self._build(
                        MatchType.EMAIL,
                        email,
                        indices,
                        batch,
                        f'Email "{email}" appears {len(indices)} times '
                        f"(rows {_rows_label(indices)})",
                    )
                )

        if duplicates:
            logger.info(f"Found {len(duplicates)} duplicate group(s) in batch of {len(batch)}")
        return duplicates

    def _build(
        self,
        match_type: MatchType,
        value: str,
        indices: list[int],
        batch: list[StudentRecord],
        message: str,
    ) -> DuplicateMatch:
        return DuplicateMatch(
            match_type=match_type,
            severity=BATCH_SEVERITY[match_type],
            confidence=1.0,
            row_indices=list(indices),
            value=value,
            message=message,
            records=[batch[i] for i in indices],
        )


def find_internal_duplicates(records: list) -> list[DuplicateMatch]:
    """
    Convenience function: duplicates inside a batch, no registry lookups.

    Args:
        records: StudentRecord instances or raw row dicts

    Returns:
        List of DuplicateMatch
    """
    return BatchDuplicateDetector().find_duplicates(records)
