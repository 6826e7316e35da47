"""Record model and string similarity."""

from .records import StoredStudent, StudentRecord, coerce_records, load_records, normalize
from .similarity import SimilarityScorer, edit_distance, similarity

__all__ = [
    "SimilarityScorer",
    "StoredStudent",
    "StudentRecord",
    "coerce_records",
    "edit_distance",
    "load_records",
    "normalize",
    "similarity",
]
