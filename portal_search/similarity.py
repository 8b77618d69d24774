"""Edit-distance based string similarity used by every matcher."""
from __future__ import annotations

from .phonetics import fold_text

CONTAINMENT_SCORE = 0.9


def levenshtein(a: str, b: str) -> int:
    """Unit-cost edit distance between ``a`` and ``b``.

    Keeps two rows of the DP table, sized by the shorter string.
    """

    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str | None, b: str | None) -> float:
    """Return a 0..1 similarity between two strings.

    Comparison is case- and accent-insensitive. Equal strings score 1.0,
    containment scores 0.9, anything else falls back to the normalized
    Levenshtein distance. Two empty strings are equal; one empty string
    against a non-empty one scores 0.0.
    """

    left = fold_text(a)
    right = fold_text(b)
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    if left in right or right in left:
        return CONTAINMENT_SCORE
    distance = levenshtein(left, right)
    return 1.0 - distance / max(len(left), len(right))
