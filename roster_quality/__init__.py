"""
Roster Quality - duplicate and consistency checks for bulk student uploads.
"""

from .core.records import StudentRecord
from .quality.dedup import find_internal_duplicates
from .quality.reporter import Action, QualityAggregator, check_data_quality
from .registry.detector import RepositoryDuplicateDetector, detect_duplicates_against_registry

__version__ = "0.1.0"
__all__ = [
    "Action",
    "QualityAggregator",
    "RepositoryDuplicateDetector",
    "StudentRecord",
    "check_data_quality",
    "detect_duplicates_against_registry",
    "find_internal_duplicates",
]
