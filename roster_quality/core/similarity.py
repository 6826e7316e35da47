"""
Edit-distance string similarity for student names.
"""

from __future__ import annotations


class SimilarityScorer:
    """
    Levenshtein-based similarity between short strings.

    Both inputs are trimmed and case-folded before comparison, so
    ``"Ana Cruz"`` and ``" ana cruz "`` are identical.

    Usage:
        scorer = SimilarityScorer()
        scorer.edit_distance("Jon Doe", "John Doe")  # 1
        scorer.similarity("abc", "abd")              # 0.667
    """

    def edit_distance(self, a: str, b: str) -> int:
        """
        Minimum single-character inserts, deletes and substitutions
        turning ``a`` into ``b``.
        """
        a = self._normalize(a)
        b = self._normalize(b)

        if a == b:
            return 0
        if not a:
            return len(b)
        if not b:
            return len(a)

        # Two-row dynamic programming table
        previous = list(range(len(b) + 1))
        for i, char_a in enumerate(a, start=1):
            current = [i] + [0] * len(b)
            for j, char_b in enumerate(b, start=1):
                if char_a == char_b:
                    current[j] = previous[j - 1]
                else:
                    current[j] = 1 + min(
                        previous[j - 1],  # substitute
                        previous[j],  # delete
                        current[j - 1],  # insert
                    )
            previous = current

        return previous[len(b)]

    def similarity(self, a: str, b: str) -> float:
        """
        Similarity score in [0, 1].

        Returns:
            1.0 when both strings are empty, 0.0 when only one is,
            otherwise ``1 - distance / longer_length``
        """
        norm_a = self._normalize(a)
        norm_b = self._normalize(b)

        if not norm_a and not norm_b:
            return 1.0
        if not norm_a or not norm_b:
            return 0.0

        distance = self.edit_distance(norm_a, norm_b)
        return 1.0 - distance / max(len(norm_a), len(norm_b))

    def _normalize(self, text: str | None) -> str:
        return (text or "").strip().casefold()


_default_scorer = SimilarityScorer()


def edit_distance(a: str, b: str) -> int:
    """Convenience wrapper around :meth:`SimilarityScorer.edit_distance`."""
    return _default_scorer.edit_distance(a, b)


def similarity(a: str, b: str) -> float:
    """Convenience wrapper around :meth:`SimilarityScorer.similarity`."""
    return _default_scorer.similarity(a, b)
