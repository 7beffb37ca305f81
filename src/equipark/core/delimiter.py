"""Field separator detection for delimited text."""

from __future__ import annotations

import csv
import io
import logging
from typing import Optional

logger = logging.getLogger(__name__)

# Priority order doubles as the tie-breaker.
CANDIDATE_DELIMITERS: tuple[str, ...] = (",", ";", "\t", "|")
SAMPLE_LINES = 10


def sample_lines(text: str, limit: int = SAMPLE_LINES) -> str:
    return "\n".join(text.splitlines()[:limit])


def column_consistency(rows: list[list[str]]) -> float:
    """Fraction of rows whose width equals the first row's width."""
    if not rows:
        return 0.0
    width = len(rows[0])
    return sum(1 for row in rows if len(row) == width) / len(rows)


def score_delimiter(sample: str, delimiter: str) -> float:
    """``first_row_width * consistency``; 0 when the sample cannot be parsed."""
    try:
        rows = [row for row in csv.reader(io.StringIO(sample), delimiter=delimiter) if row]
    except csv.Error:
        return 0.0
    if not rows:
        return 0.0
    return len(rows[0]) * column_consistency(rows)


def detect_delimiter(
    text: str,
    candidates: tuple[str, ...] = CANDIDATE_DELIMITERS,
) -> Optional[str]:
    """Pick the most likely separator from the first lines of ``text``.

    Returns None when no candidate scores above zero.
    """
    sample = sample_lines(text)
    best: Optional[str] = None
    best_score = 0.0
    for delimiter in candidates:
        score = score_delimiter(sample, delimiter)
        logger.debug("Delimiter %r scored %.2f", delimiter, score)
        if score > best_score:
            best, best_score = delimiter, score
    return best
