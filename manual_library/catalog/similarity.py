"""Edit-distance string similarity."""
from __future__ import annotations


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between ``a`` and ``b``.

    Fills a ``(len(b) + 1) x (len(a) + 1)`` table where each insertion,
    deletion and substitution costs 1.
    """
    matrix = [[0] * (len(a) + 1) for _ in range(len(b) + 1)]
    for column in range(len(a) + 1):
        matrix[0][column] = column
    for row in range(len(b) + 1):
        matrix[row][0] = row
    for row in range(1, len(b) + 1):
        for column in range(1, len(a) + 1):
            cost = 0 if b[row - 1] == a[column - 1] else 1
            matrix[row][column] = min(
                matrix[row - 1][column] + 1,
                matrix[row][column - 1] + 1,
                matrix[row - 1][column - 1] + cost,
            )
    return matrix[len(b)][len(a)]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in ``[0, 1]``; two empty strings are identical."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - edit_distance(a, b)) / max_len
