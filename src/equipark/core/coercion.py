"""Cell value coercion.

Turns raw cells into ``None``, numbers, booleans or trimmed strings. Never
raises: ambiguous numbers follow a fixed separator rule and anything that
still fails to convert becomes ``None``.

Known limit: a single comma followed by exactly three digits ("1,500") is
read as a thousands separator, although some locales would write 1.5 that
way. The rule is kept as-is and pinned by tests.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Any, Optional

from ..models.record import CellValue

NULL_LIKE = {"", "undefined", "null"}
TRUE_WORDS = {"true", "sí", "si", "yes", "y"}
FALSE_WORDS = {"false", "no", "n"}
NUMERIC_SHAPE = re.compile(r"^[+-]?[\d\s.,]+$")

# Numeric-shaped text in these fields is an identifier or version string.
LITERAL_TEXT_FIELDS = frozenset({
    "user_id", "hostname", "cpu_model", "os_version", "browser_version", "antivirus_version",
})


def looks_numeric(value: str) -> bool:
    return bool(NUMERIC_SHAPE.match(value))


def parse_number(value: str) -> Optional[float | int]:
    """Parse a locale-ambiguous numeric string.

    - both ``.`` and ``,``: the rightmost is the decimal point
    - only ``,``: decimal when followed by at most two digits, else thousands
    - failure: None
    """
    cleaned = re.sub(r"\s", "", value)

    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        parts = cleaned.split(",")
        if len(parts) == 2 and len(parts[1]) <= 2:
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")

    try:
        number = float(cleaned)
    except ValueError:
        return None
    if "." not in cleaned:
        return int(number)
    return number


def coerce_with_warning(raw: Any, field: Optional[str] = None) -> tuple[CellValue, Optional[str]]:
    """Coerce one cell; the second item explains a value that was dropped."""
    if raw is None:
        return None, None
    if isinstance(raw, (bool, int, float)):
        return raw, None
    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat(), None

    text = str(raw).strip()
    if text.lower() in NULL_LIKE:
        return None, None

    if looks_numeric(text):
        if field in LITERAL_TEXT_FIELDS:
            return text, None
        number = parse_number(text)
        if number is None:
            return None, f"'{text}' looks numeric but could not be converted"
        return number, None

    lowered = text.lower()
    if lowered in TRUE_WORDS:
        return True, None
    if lowered in FALSE_WORDS:
        return False, None

    return text, None


def coerce_value(raw: Any, field: Optional[str] = None) -> CellValue:
    """Coerce one raw cell into a typed value."""
    return coerce_with_warning(raw, field)[0]
