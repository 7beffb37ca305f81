"""Text encoding detection for delimited uploads."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# cp1252 leaves five bytes undefined, so latin-1 last always decodes cleanly.
CANDIDATE_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252", "latin-1")
REPLACEMENT_CHAR = "�"
MAX_REPLACEMENT_RATIO = 0.01


def replacement_ratio(text: str) -> float:
    """Fraction of characters that are U+FFFD. Empty text counts as unusable."""
    if not text:
        return 1.0
    return text.count(REPLACEMENT_CHAR) / len(text)


def detect_encoding(
    raw: bytes,
    candidates: tuple[str, ...] = CANDIDATE_ENCODINGS,
) -> tuple[str, str, bool]:
    """Decode ``raw`` with the first candidate that yields clean text.

    Returns ``(text, encoding, fell_back)``. When no candidate is clean the
    first one is used with replacement characters and ``fell_back`` is True.
    Never raises.
    """
    for encoding in candidates:
        try:
            text = raw.decode(encoding, errors="replace")
        except LookupError:
            logger.warning("Unknown encoding candidate skipped: %s", encoding)
            continue
        if replacement_ratio(text) < MAX_REPLACEMENT_RATIO:
            logger.debug("Encoding accepted: %s", encoding)
            return text, encoding, False

    fallback = candidates[0]
    logger.info("No clean encoding found; falling back to %s", fallback)
    return raw.decode(fallback, errors="replace"), fallback, True
