"""Student registry collaborators and registry-backed duplicate detection."""

from .base import BaseRegistry
from .detector import (
    LookupResult,
    RecordCheck,
    RepositoryDuplicateDetector,
    RepositoryDuplicateResult,
    Resolution,
    detect_duplicates_against_registry,
)
from .http import HttpRegistry
from .memory import InMemoryRegistry

__all__ = [
    "BaseRegistry",
    "HttpRegistry",
    "InMemoryRegistry",
    "LookupResult",
    "RecordCheck",
    "RepositoryDuplicateDetector",
    "RepositoryDuplicateResult",
    "Resolution",
    "detect_duplicates_against_registry",
]
