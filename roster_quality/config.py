"""
Runtime configuration.

Values come from environment variables (a ``.env`` file is loaded by the
CLI) with defaults matching the school's standard vocabularies.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_GRADES = ("1", "2", "3", "4", "5", "6", "A", "B", "C", "D", "E", "F")
DEFAULT_SECTIONS = (
    "A", "B", "C", "D", "E", "F", "G", "H", "I", "J",
    "1", "2", "3", "4", "5", "6", "7", "8", "9", "10",
)
DEFAULT_BLOCKS = (
    "STEM", "HUMSS", "ABM", "GA", "TVL", "SPORTS", "ARTS",
    "A", "B", "C", "D", "E", "F", "G", "H",
)

DEFAULT_NEAR_DUPLICATE_MAX_DISTANCE = 2
DEFAULT_NAME_SIMILARITY_THRESHOLD = 0.85
DEFAULT_REGISTRY_TIMEOUT = 10.0


@dataclass(frozen=True)
class Vocabulary:
    """Enumerated tokens accepted for grade, section and block."""

    grades: tuple[str, ...] = DEFAULT_GRADES
    sections: tuple[str, ...] = DEFAULT_SECTIONS
    blocks: tuple[str, ...] = DEFAULT_BLOCKS


@dataclass(frozen=True)
class QualityConfig:
    vocabulary: Vocabulary = field(default_factory=Vocabulary)
    near_duplicate_max_distance: int = DEFAULT_NEAR_DUPLICATE_MAX_DISTANCE
    name_similarity_threshold: float = DEFAULT_NAME_SIMILARITY_THRESHOLD
    registry_url: str | None = None
    registry_token: str | None = None
    registry_timeout: float = DEFAULT_REGISTRY_TIMEOUT
    audit_dir: str | None = None
    audit_url: str | None = None
    audit_token: str | None = None

    def __post_init__(self):
        if self.near_duplicate_max_distance < 1:
            raise ValueError("near_duplicate_max_distance must be at least 1")
        if not 0.0 <= self.name_similarity_threshold <= 1.0:
            raise ValueError("name_similarity_threshold must be between 0 and 1")
        if self.registry_timeout <= 0:
            raise ValueError("registry_timeout must be positive")


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name)
    if not raw:
        return default
    return tuple(token.strip() for token in raw.split(",") if token.strip())


def load_config() -> QualityConfig:
    """Build a QualityConfig from the current environment."""
    vocabulary = Vocabulary(
        grades=_env_list("VALID_GRADES", DEFAULT_GRADES),
        sections=_env_list("VALID_SECTIONS", DEFAULT_SECTIONS),
        blocks=_env_list("VALID_BLOCKS", DEFAULT_BLOCKS),
    )
    return QualityConfig(
        vocabulary=vocabulary,
        near_duplicate_max_distance=int(
            os.environ.get("NEAR_DUPLICATE_MAX_DISTANCE", DEFAULT_NEAR_DUPLICATE_MAX_DISTANCE)
        ),
        name_similarity_threshold=float(
            os.environ.get("NAME_SIMILARITY_THRESHOLD", DEFAULT_NAME_SIMILARITY_THRESHOLD)
        ),
        registry_url=os.environ.get("REGISTRY_URL") or None,
        registry_token=os.environ.get("REGISTRY_TOKEN") or None,
        registry_timeout=float(os.environ.get("REGISTRY_TIMEOUT", DEFAULT_REGISTRY_TIMEOUT)),
        audit_dir=os.environ.get("AUDIT_DIR") or None,
        audit_url=os.environ.get("AUDIT_URL") or None,
        audit_token=os.environ.get("AUDIT_TOKEN") or None,
    )
