"""
Quality report aggregation and the import decision policy.

Combines field inconsistencies and in-batch duplicates into a single
DataQualityResult, counts findings by severity, and turns those counts
into a block / warn / allow recommendation.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.records import coerce_records
from .dedup import BatchDuplicateDetector, DuplicateMatch, MatchType
from .validator import FieldValidator, InconsistencyEntry, Severity

if TYPE_CHECKING:
    from ..audit.logger import AuditLogger
    from ..config import QualityConfig

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """What the caller should do with the batch."""

    BLOCK = "block"
    WARN = "warn"
    ALLOW = "allow"


def recommend_action(high_severity_count: int, medium_severity_count: int) -> Action:
    """
    Decision policy, purely from severity counts.

    Any high-severity finding blocks the import; otherwise any medium
    finding warns (the caller may override); otherwise allow.
    """
    if high_severity_count > 0:
        return Action.BLOCK
    if medium_severity_count > 0:
        return Action.WARN
    return Action.ALLOW


@dataclass
class QualitySummary:
    duplicate_count: int = 0
    inconsistency_count: int = 0
    high_severity_count: int = 0
    medium_severity_count: int = 0
    low_severity_count: int = 0

    def to_dict(self) -> dict:
        return {
            "duplicate_count": self.duplicate_count,
            "inconsistency_count": self.inconsistency_count,
            "high_severity_count": self.high_severity_count,
            "medium_severity_count": self.medium_severity_count,
            "low_severity_count": self.low_severity_count,
        }


@dataclass
class DataQualityResult:
    """All findings for one batch."""

    total_records: int
    duplicates: list[DuplicateMatch] = field(default_factory=list)
    inconsistencies: list[InconsistencyEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    summary: QualitySummary = field(default_factory=QualitySummary)
    generated_at: str = field(default_factory=lambda: datetime.now().isoformat(), compare=False)

    @property
    def is_clean(self) -> bool:
        return not self.duplicates and not self.inconsistencies

    @property
    def total_issues(self) -> int:
        return len(self.duplicates) + len(self.inconsistencies)

    @property
    def recommended_action(self) -> Action:
        return recommend_action(
            self.summary.high_severity_count,
            self.summary.medium_severity_count,
        )

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at,
            "total_records": self.total_records,
            "is_clean": self.is_clean,
            "total_issues": self.total_issues,
            "recommended_action": self.recommended_action.value,
            "summary": self.summary.to_dict(),
            "duplicates": [d.to_dict() for d in self.duplicates],
            "inconsistencies": [i.to_dict() for i in self.inconsistencies],
            "warnings": list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, path: str | Path):
        """Save report to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())

    def summary_text(self) -> str:
        """Human-readable report."""
        s = self.summary
        lines = [
            f"Data Quality Report — {self.generated_at}",
            f"{'=' * 50}",
            f"Records checked:   {self.total_records:,}",
            f"Duplicates:        {s.duplicate_count:,}",
            f"Inconsistencies:   {s.inconsistency_count:,}",
            f"Severity:          {s.high_severity_count} high / "
            f"{s.medium_severity_count} medium / {s.low_severity_count} low",
            f"Recommended:       {self.recommended_action.value.upper()}",
        ]

        if self.duplicates:
            lines.append("")
            lines.append("Duplicates:")
            for dup in self.duplicates:
                lines.append(f"  {dup}")

        if self.inconsistencies:
            lines.append("")
            lines.append("Inconsistencies:")
            for entry in self.inconsistencies:
                lines.append(f"  {entry}")

        return "\n".join(lines)


def summary_line(result: DataQualityResult) -> str:
    """One-line summary suitable for a status bar."""
    if result.is_clean:
        return "All data is clean and consistent"

    parts = []
    if result.summary.duplicate_count:
        parts.append(f"{result.summary.duplicate_count} duplicate issue(s)")
    if result.summary.inconsistency_count:
        parts.append(f"{result.summary.inconsistency_count} inconsistency/ies")
    if result.summary.high_severity_count:
        parts.append(f"{result.summary.high_severity_count} high severity")
    return " | ".join(parts)


class QualityAggregator:
    """
    Run field validation and in-batch duplicate detection over a batch.

    Registry lookups are not part of this check; run
    :class:`~roster_quality.registry.detector.RepositoryDuplicateDetector`
    explicitly when the registry is reachable.

    Usage:
        aggregator = QualityAggregator()
        result = aggregator.check_data_quality(rows)
        if result.recommended_action == Action.BLOCK:
            print(result.summary_text())
    """

    def __init__(
        self,
        validator: FieldValidator | None = None,
        detector: BatchDuplicateDetector | None = None,
        audit_logger: AuditLogger | None = None,
    ):
        """
        Args:
            validator: FieldValidator instance (creates default if None)
            detector: BatchDuplicateDetector instance (creates default if None)
            audit_logger: Audit trail used by the logging variant
        """
        self.validator = validator or FieldValidator()
        self.detector = detector or BatchDuplicateDetector()
        self.audit_logger = audit_logger

    @classmethod
    def from_config(
        cls,
        config: QualityConfig,
        audit_logger: AuditLogger | None = None,
    ) -> QualityAggregator:
        return cls(validator=FieldValidator.from_config(config), audit_logger=audit_logger)

    def check_data_quality(self, records: list) -> DataQualityResult:
        """
        Check a batch for duplicates and inconsistencies.

        Args:
            records: StudentRecord instances or raw row dicts, in upload order

        Returns:
            DataQualityResult with severity counts
        """
        batch = coerce_records(records)
        duplicates = self.detector.find_duplicates(batch)
        inconsistencies = self.validator.validate_batch(batch)

        severity_counts: Counter = Counter()
        for finding in [*duplicates, *inconsistencies]:
            severity_counts[finding.severity] += 1

        summary = QualitySummary(
            duplicate_count=len(duplicates),
            inconsistency_count=len(inconsistencies),
            high_severity_count=severity_counts[Severity.HIGH],
            medium_severity_count=severity_counts[Severity.MEDIUM],
            low_severity_count=severity_counts[Severity.LOW],
        )

        result = DataQualityResult(
            total_records=len(batch),
            duplicates=duplicates,
            inconsistencies=inconsistencies,
            summary=summary,
        )
        logger.info(
            f"Quality check: {len(batch)} records, {result.total_issues} issue(s), "
            f"action={result.recommended_action.value}"
        )
        return result

    def check_data_quality_with_logging(
        self,
        records: list,
        caller_id: str,
        caller_label: str,
    ) -> DataQualityResult:
        """
        Same as :meth:`check_data_quality`, then record it in the audit trail.

        Audit failures are logged and otherwise ignored; the returned
        result never depends on them.
        """
        result = self.check_data_quality(records)

        if self.audit_logger is None:
            logger.debug("No audit logger configured, skipping audit entry")
            return result

        try:
            self.audit_logger.log_quality_check(
                caller_id,
                caller_label,
                result.total_records,
                {
                    "duplicates": result.summary.duplicate_count,
                    "inconsistencies": result.summary.inconsistency_count,
                    "total": result.total_issues,
                },
                result.is_clean,
            )
            if result.duplicates:
                self.audit_logger.log_duplicate_detection(
                    caller_id,
                    caller_label,
                    student_id_duplicates=_values(result, MatchType.STUDENT_ID),
                    name_duplicates=_values(result, MatchType.NAME_COMBINATION),
                    email_duplicates=_values(result, MatchType.EMAIL),
                )
        except Exception as e:
            logger.warning(f"Audit logging failed for {caller_label}: {e}")

        return result


def _values(result: DataQualityResult, match_type: MatchType) -> list[str]:
    return [d.value for d in result.duplicates if d.match_type == match_type]


def check_data_quality(records: list, config: QualityConfig | None = None) -> DataQualityResult:
    """
    Convenience function to check a batch with default or configured rules.

    Args:
        records: StudentRecord instances or raw row dicts
        config: Optional configuration (vocabularies, thresholds)

    Returns:
        DataQualityResult
    """
    aggregator = QualityAggregator.from_config(config) if config else QualityAggregator()
    return aggregator.check_data_quality(records)
