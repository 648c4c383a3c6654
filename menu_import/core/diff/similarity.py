"""Levenshtein-based name similarity (used for option-group matching)."""

from rapidfuzz.distance import Levenshtein


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def calculate_similarity(first: str, second: str) -> float:
    """
    Similarity in [0, 1] on lower-cased, trimmed names.

    1.0 for identical names, 0.0 if either is empty, otherwise
    ``1 - distance / max(len)``.
    """
    s1 = first.lower().strip()
    s2 = second.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    return Levenshtein.normalized_similarity(s1, s2)
