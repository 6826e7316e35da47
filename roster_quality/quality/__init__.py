"""
Data quality checks for uploaded student rosters.

Provides field consistency validation, in-batch duplicate detection, and
the aggregated quality report with its block/warn/allow recommendation.
"""

from .dedup import BatchDuplicateDetector, DuplicateMatch, MatchType, find_internal_duplicates
from .reporter import (
    Action,
    DataQualityResult,
    QualityAggregator,
    QualitySummary,
    check_data_quality,
    recommend_action,
    summary_line,
)
from .validator import FieldValidator, InconsistencyEntry, Severity

__all__ = [
    "Action",
    "BatchDuplicateDetector",
    "DataQualityResult",
    "DuplicateMatch",
    "FieldValidator",
    "InconsistencyEntry",
    "MatchType",
    "QualityAggregator",
    "QualitySummary",
    "Severity",
    "check_data_quality",
    "find_internal_duplicates",
    "recommend_action",
    "summary_line",
]
