"""
Duplicate detection against the student registry.

Each uploaded record goes through three ordered tiers and stops at the
first one that finds a conflict:

1. exact student ID (high severity)
2. exact email held by a different student ID (medium)
3. same first + last name with high string similarity (low)

Registry failures are fail-open: a lookup that errors counts as "no
match" and the record moves on to the next tier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..core.records import StoredStudent, StudentRecord, coerce_records, normalize
from ..core.similarity import SimilarityScorer
from ..quality.dedup import REGISTRY_SEVERITY, DuplicateMatch, MatchType

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..config import QualityConfig
    from .base import BaseRegistry

logger = logging.getLogger(__name__)

REQUIRED_LOOKUP_FIELDS = ("student_id", "first_name", "last_name")


class Resolution(str, Enum):
    """Where a record's registry check ended."""

    CLEAN = "clean"
    ID_MATCH = "id_match"
    EMAIL_MATCH = "email_match"
    NAME_MATCH = "name_match"


@dataclass
class LookupResult:
    """Outcome of one registry call."""

    ok: bool
    value: Any = None
    error: Exception | None = None


@dataclass
class RecordCheck:
    """Registry check for a single uploaded record."""

    row_index: int
    record: StudentRecord
    resolution: Resolution
    matches: list[DuplicateMatch] = field(default_factory=list)
    lookup_failures: int = 0

    @property
    def is_duplicate(self) -> bool:
        return self.resolution != Resolution.CLEAN


@dataclass
class RepositoryDuplicateResult:
    """Registry duplicate findings for a whole batch."""

    total_records: int
    potential_duplicates: list[DuplicateMatch] = field(default_factory=list)
    clean_records: list[StudentRecord] = field(default_factory=list)
    lookup_failures: int = 0

    @property
    def duplicate_count(self) -> int:
        """Records that matched any tier."""
        return self.total_records - len(self.clean_records)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.potential_duplicates)

    def to_dict(self) -> dict:
        return {
            "total_records": self.total_records,
            "duplicate_count": self.duplicate_count,
            "has_duplicates": self.has_duplicates,
            "lookup_failures": self.lookup_failures,
            "potential_duplicates": [d.to_dict() for d in self.potential_duplicates],
            "clean_records": [r.to_dict() for r in self.clean_records],
        }


class RepositoryDuplicateDetector:
    """
    Check uploaded records against already-registered students.

    Usage:
        detector = RepositoryDuplicateDetector(InMemoryRegistry(stored))
        result = detector.detect(rows)
        for dup in result.potential_duplicates:
            print(dup)
    """

    def __init__(
        self,
        registry: BaseRegistry,
        similarity_threshold: float = 0.85,
        scorer: SimilarityScorer | None = None,
    ):
        """
        Args:
            registry: Read-only registry collaborator
            similarity_threshold: Name similarity above which tier 3 reports a match
            scorer: Similarity implementation
        """
        if not 0.0 <= similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")
        self.registry = registry
        self.similarity_threshold = similarity_threshold
        self.scorer = scorer or SimilarityScorer()

    @classmethod
    def from_config(
        cls, registry: BaseRegistry, config: QualityConfig
    ) -> RepositoryDuplicateDetector:
        return cls(registry, similarity_threshold=config.name_similarity_threshold)

    def detect(self, records: list) -> RepositoryDuplicateResult:
        """
        Run the tiered check for every record, in upload order.

        Args:
            records: Rows with at least student_id, first_name and last_name

        Returns:
            RepositoryDuplicateResult with matches and the clean subset

        Raises:
            ValueError: If a record lacks one of the lookup fields
        """
        batch = coerce_records(records)
        for index, record in enumerate(batch):
            _require_lookup_fields(record, index)

        result = RepositoryDuplicateResult(total_records=len(batch))
        for index, record in enumerate(batch):
            check = self.check_record(record, index)
            result.lookup_failures += check.lookup_failures
            if check.is_duplicate:
                result.potential_duplicates.extend(check.matches)
            else:
                result.clean_records.append(record)

        logger.info(
            f"Registry check ({self.registry.NAME}): "
            f"{result.duplicate_count}/{result.total_records} records matched, "
            f"{result.lookup_failures} failed lookup(s)"
        )
        return result

    def check_record(self, record: StudentRecord, row_index: int) -> RecordCheck:
        """Apply the tiers in order, stopping at the first conflict."""
        failures = 0

        matches, failed = self.check_id_tier(record, row_index)
        failures += failed
        if matches:
            return RecordCheck(row_index, record, Resolution.ID_MATCH, matches, failures)

        matches, failed = self.check_email_tier(record, row_index)
        failures += failed
        if matches:
            return RecordCheck(row_index, record, Resolution.EMAIL_MATCH, matches, failures)

        matches, failed = self.check_name_tier(record, row_index)
        failures += failed
        if matches:
            return RecordCheck(row_index, record, Resolution.NAME_MATCH, matches, failures)

        logger.debug(f"Row {row_index + 1} ({record.norm_id}) is clean")
        return RecordCheck(row_index, record, Resolution.CLEAN, [], failures)

    # ─── Tiers ───────────────────────────────────────────────────────────

    def check_id_tier(
        self, record: StudentRecord, row_index: int
    ) -> tuple[list[DuplicateMatch], int]:
        """Tier 1: is the student ID already registered?"""
        student_id = record.norm_id
        exists = self._lookup("exists_by_id", self.registry.exists_by_id, student_id, default=False)
        if not exists.value:
            return [], int(not exists.ok)

        fetched = self._lookup("get_by_id", self.registry.get_by_id, student_id, default=None)
        existing = fetched.value or StoredStudent(student_id=record.student_id.strip())
        failures = int(not fetched.ok)

        logger.debug(f"Row {row_index + 1}: student ID {student_id!r} already registered")
        match = self._build(
            MatchType.STUDENT_ID,
            record,
            row_index,
            existing,
            confidence=1.0,
            value=student_id,
            message=f'Student ID "{student_id}" already exists in the registry',
        )
        return [match], failures

    def check_email_tier(
        self, record: StudentRecord, row_index: int
    ) -> tuple[list[DuplicateMatch], int]:
        """Tier 2: is the email already held by a different student?"""
        email = record.norm_email
        if not email:
            return [], 0

        found = self._lookup("find_by_email", self.registry.find_by_email, email, default=[])
        matches = [
            self._build(
                MatchType.EMAIL,
                record,
                row_index,
                existing,
                confidence=1.0,
                value=email,
                message=f'Email "{email}" already belongs to student "{existing.student_id}"',
            )
            for existing in found.value
            if existing.norm_id != record.norm_id
        ]
        if matches:
            logger.debug(f"Row {row_index + 1}: email {email!r} held by {len(matches)} student(s)")
        return matches, int(not found.ok)

    def check_name_tier(
        self, record: StudentRecord, row_index: int
    ) -> tuple[list[DuplicateMatch], int]:
        """Tier 3: same first and last name, scored by similarity."""
        found = self._lookup(
            "find_by_first_name",
            self.registry.find_by_first_name,
            record.norm_first,
            default=[],
        )
        candidates = [s for s in found.value if normalize(s.last_name) == record.norm_last]

        matches = []
        for existing in candidates:
            score = self.scorer.similarity(record.name_key or "", existing.name_key)
            if score > self.similarity_threshold:
                matches.append(
                    self._build(
                        MatchType.NAME_COMBINATION,
                        record,
                        row_index,
                        existing,
                        confidence=score,
                        value=record.name_key or "",
                        message=(
                            f'Name "{record.display_name}" matches registered student '
                            f'"{existing.student_id}" ({score:.0%} similar)'
                        ),
                    )
                )
        return matches, int(not found.ok)

    # ─── Helpers ─────────────────────────────────────────────────────────

    def _lookup(
        self, operation: str, call: Callable[..., Any], *args: Any, default: Any
    ) -> LookupResult:
        """
        Call the registry, mapping any failure to ``default``.

        Fail-open: an unreachable registry must not block an import, so a
        failed lookup reads as "not found". No retry; the registry's write
        path enforces uniqueness.
        """
        try:
            return LookupResult(ok=True, value=call(*args))
        except Exception as e:
            logger.warning(
                f"Registry {operation}({', '.join(map(repr, args))}) failed, "
                f"treating as no match: {e}"
            )
            return LookupResult(ok=False, value=default, error=e)

    def _build(
        self,
        match_type: MatchType,
        record: StudentRecord,
        row_index: int,
        existing: StoredStudent,
        confidence: float,
        value: str,
        message: str,
    ) -> DuplicateMatch:
        return DuplicateMatch(
            match_type=match_type,
            severity=REGISTRY_SEVERITY[match_type],
            confidence=confidence,
            row_indices=[row_index],
            value=value,
            message=message,
            upload_record=record,
            existing_student=existing,
        )


def _require_lookup_fields(record: StudentRecord, row_index: int):
    missing = [name for name in REQUIRED_LOOKUP_FIELDS if not (getattr(record, name) or "").strip()]
    if missing:
        raise ValueError(f"Row {row_index + 1} is missing required field(s): {', '.join(missing)}")


def detect_duplicates_against_registry(
    records: list,
    registry: BaseRegistry,
    similarity_threshold: float = 0.85,
) -> RepositoryDuplicateResult:
    """
    Convenience function: tiered registry check for a batch.

    Args:
        records: Rows with student_id, first_name, last_name and optional email
        registry: Registry to check against
        similarity_threshold: Tier 3 name similarity threshold

    Returns:
        RepositoryDuplicateResult
    """
    detector = RepositoryDuplicateDetector(registry, similarity_threshold=similarity_threshold)
    return detector.detect(records)
