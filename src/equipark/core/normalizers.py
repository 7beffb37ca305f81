"""Domain normalization for coerced inventory rows.

Providers describe the same hardware in many ways ("8 GB", "8192", "Intel(R)
Core(TM) i5-10400 CPU @ 2.90GHz"). These helpers turn the coerced cells of
one row into the typed attributes of a ``CanonicalRecord``. Nothing here
raises: a value that cannot be resolved becomes ``None`` and is reported as a
``VALUE_COERCION`` warning.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..models.job import BatchWarning, WarningCode
from ..models.record import NUMERIC_FIELDS, TEXT_FIELDS, AttentionMode, CellValue
from .coercion import parse_number
from .headers import normalize_header

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:[.,]\d+)?)"
# a number that is not part of a word such as "DDR4" or "SATA3"
_QUANTITY = r"(?<![a-z\d.,])" + _NUMBER
_TRADEMARKS = re.compile(r"\((?:r|tm)\)|®|™", re.IGNORECASE)

REMOTE_TOKENS = {"ho", "remote", "remoto", "remota", "teletrabajo", "casa", "wfh", "home"}
REMOTE_MARKERS = ("home", "remot", "teletrab")
ON_SITE_TOKENS = {"os", "on_site", "onsite", "presencial", "sitio", "sede", "site", "oficina"}
ON_SITE_MARKERS = ("presencial", "sitio", "site", "sede")


@dataclass
class ProcessorInfo:
    brand: Optional[str] = None
    model: Optional[str] = None
    speed_ghz: Optional[float] = None


def as_text(value: CellValue) -> Optional[str]:
    """Render a coerced cell as text; integral floats lose their ``.0``."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def _to_float(text: str) -> Optional[float]:
    number = parse_number(text)
    return None if number is None else float(number)


def normalize_brand(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    lowered = value.lower()
    if "intel" in lowered:
        return "Intel"
    if "amd" in lowered or "advanced micro" in lowered:
        return "AMD"
    return value.strip()


def parse_processor(text: Optional[str]) -> ProcessorInfo:
    """Extract brand, canonical model and clock speed from free text."""
    if not text:
        return ProcessorInfo()

    cleaned = _TRADEMARKS.sub("", text)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    lowered = cleaned.lower()

    brand = None
    if re.search(r"\bintel\b", lowered):
        brand = "Intel"
    elif re.search(r"\bamd\b|advanced\s*micro", lowered):
        brand = "AMD"

    model = None
    intel = re.search(r"(?<![a-z0-9])i([3579])(?:[-\s]?(\d{3,5}[a-z]{0,2}))?(?![a-z])", lowered)
    ryzen = re.search(r"ryzen\s*([3579])(?:\s*(?:pro\s*)?(\d{4}[a-z]{0,2}))?", lowered)
    if intel:
        brand = brand or "Intel"
        model = f"Core i{intel.group(1)}"
        if intel.group(2):
            model += f"-{intel.group(2).upper()}"
    elif ryzen:
        brand = brand or "AMD"
        model = f"Ryzen {ryzen.group(1)}"
        if ryzen.group(2):
            model += f" {ryzen.group(2).upper()}"
    else:
        for family, family_brand in (
            ("celeron", "Intel"),
            ("pentium", "Intel"),
            ("xeon", "Intel"),
            ("athlon", "AMD"),
            ("phenom", "AMD"),
            ("threadripper", "AMD"),
            ("epyc", "AMD"),
        ):
            if family in lowered:
                brand = brand or family_brand
                model = "EPYC" if family == "epyc" else family.capitalize()
                break

    if model is None:
        model = cleaned or None

    return ProcessorInfo(brand=brand, model=model, speed_ghz=_speed_from_text(lowered))


def _speed_from_text(lowered: str) -> Optional[float]:
    ghz = re.search(_NUMBER + r"\s*gh", lowered)
    if ghz:
        return _to_float(ghz.group(1))
    mhz = re.search(_NUMBER + r"\s*mhz", lowered)
    if mhz:
        value = _to_float(mhz.group(1))
        return None if value is None else value / 1000
    at = re.search(r"@\s*" + _NUMBER, lowered)
    if at:
        return _to_float(at.group(1))
    return None


def parse_cpu_speed(value: CellValue) -> Optional[float]:
    """Clock speed in GHz. Numbers above 100 are taken as MHz."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        lowered = str(value).lower()
        from_text = _speed_from_text(lowered)
        if from_text is not None:
            return from_text
        match = re.search(_NUMBER, lowered)
        number = _to_float(match.group(1)) if match else None
        if number is None:
            return None
    if number > 100:
        return number / 1000
    return number


def parse_cores(value: CellValue) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = re.search(r"\d+", str(value))
    return int(match.group(0)) if match else None


def parse_ram_gb(value: CellValue) -> Optional[float]:
    """Memory size in GB from "8 GB", "8192 MB" or a bare number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number / 1024 if number > 1000 else number

    lowered = str(value).lower()
    gb = re.search(_QUANTITY + r"\s*g", lowered)
    if gb:
        return _to_float(gb.group(1))
    mb = re.search(_QUANTITY + r"\s*m", lowered)
    if mb:
        number = _to_float(mb.group(1))
        return None if number is None else number / 1024
    bare = re.search(_QUANTITY, lowered)
    if bare:
        number = _to_float(bare.group(1))
        if number is not None and number > 1000:
            return number / 1024
        return number
    return None


def parse_disk_type(value: CellValue) -> Optional[str]:
    """Storage technology: SSD (NVMe/M.2 included), HDD or HYBRID."""
    if value is None or isinstance(value, bool):
        return None
    lowered = str(value).lower()
    if "hybrid" in lowered or "hibrido" in lowered or "híbrido" in lowered or "sshd" in lowered:
        return "HYBRID"
    if "ssd" in lowered or "nvme" in lowered or "m.2" in lowered or "solido" in lowered or "sólido" in lowered:
        return "SSD"
    if "hdd" in lowered or "mecanico" in lowered or "mecánico" in lowered or "sata" in lowered:
        return "HDD"
    if isinstance(value, (int, float)):
        return None
    return str(value).strip().upper() or None


def parse_disk_capacity_gb(value: CellValue) -> Optional[float]:
    """Capacity in GB from "1 TB", "512GB SSD" or a bare number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    lowered = str(value).lower()
    tb = re.search(_QUANTITY + r"\s*t[br]?\b", lowered)
    if tb:
        number = _to_float(tb.group(1))
        return None if number is None else number * 1024
    gb = re.search(_QUANTITY + r"\s*g", lowered)
    if gb:
        return _to_float(gb.group(1))
    bare = re.search(_QUANTITY, lowered)
    if bare:
        return _to_float(bare.group(1))
    return None


def parse_speed_mbps(value: CellValue) -> Optional[float]:
    """Link speed in Mbps; Gbps values are scaled by 1000."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)

    lowered = str(value).lower()
    gbps = re.search(_NUMBER + r"\s*g", lowered)
    if gbps:
        number = _to_float(gbps.group(1))
        return None if number is None else number * 1000
    kbps = re.search(_NUMBER + r"\s*k", lowered)
    if kbps:
        number = _to_float(kbps.group(1))
        return None if number is None else number / 1000
    match = re.search(_NUMBER, lowered)
    return _to_float(match.group(1)) if match else None


def parse_attention_mode(value: CellValue) -> Optional[AttentionMode]:
    if value is None or isinstance(value, (bool, int, float)):
        return None
    token = normalize_header(str(value))
    if not token:
        return None
    if token in REMOTE_TOKENS or any(marker in token for marker in REMOTE_MARKERS):
        return AttentionMode.REMOTE
    if token in ON_SITE_TOKENS or any(marker in token for marker in ON_SITE_MARKERS):
        return AttentionMode.ON_SITE
    return None


_NUMERIC_PARSERS = {
    "cpu_speed": parse_cpu_speed,
    "cpu_cores": parse_cores,
    "ram_gb": parse_ram_gb,
    "disk_capacity_gb": parse_disk_capacity_gb,
    "download_mbps": parse_speed_mbps,
    "upload_mbps": parse_speed_mbps,
}


def normalize_fields(
    values: dict[str, CellValue], row: Optional[int] = None
) -> tuple[dict[str, Any], list[BatchWarning]]:
    """Turn one row of coerced canonical values into record attributes.

    Returns the keyword arguments for ``CanonicalRecord`` (without ``extra``
    and ``row_number``) and the warnings raised while resolving them.
    """
    warnings: list[BatchWarning] = []
    fields: dict[str, Any] = {}

    for name in TEXT_FIELDS:
        fields[name] = as_text(values.get(name))

    # A combined "512GB SSD" cell can carry both storage attributes.
    raw_disk_type = values.get("disk_type")
    raw_capacity = values.get("disk_capacity_gb")
    fields["disk_type"] = parse_disk_type(raw_disk_type) or parse_disk_type_hint(raw_capacity)

    processor = parse_processor(fields["cpu_model"])
    fields["cpu_model"] = processor.model
    fields["cpu_brand"] = normalize_brand(fields["cpu_brand"]) or processor.brand

    for name in NUMERIC_FIELDS:
        raw = values.get(name)
        parsed = _NUMERIC_PARSERS[name](raw)
        if raw is not None and parsed is None:
            warnings.append(
                BatchWarning(
                    code=WarningCode.VALUE_COERCION,
                    message=f"Could not read a value for {name}",
                    row=row,
                    column=name,
                    value=str(raw),
                )
            )
        fields[name] = parsed

    if fields["cpu_speed"] is None:
        fields["cpu_speed"] = processor.speed_ghz
    if fields["disk_capacity_gb"] is None and raw_capacity is None and raw_disk_type is not None:
        fields["disk_capacity_gb"] = _capacity_hint(raw_disk_type)

    mode = parse_attention_mode(values.get("attention_mode"))
    if mode is None:
        raw_mode = values.get("attention_mode")
        logger.debug("Row %s: attention mode %r defaulted to ON_SITE", row, raw_mode)
        warnings.append(
            BatchWarning(
                code=WarningCode.ATTENTION_MODE_DEFAULTED,
                message="Attention mode missing or unrecognised; assumed ON_SITE",
                row=row,
                column="attention_mode",
                value=None if raw_mode is None else str(raw_mode),
            )
        )
        mode = AttentionMode.ON_SITE
    fields["attention_mode"] = mode

    return fields, warnings


def parse_disk_type_hint(value: CellValue) -> Optional[str]:
    """Disk type mentioned inside a capacity cell, if any."""
    if not isinstance(value, str):
        return None
    lowered = value.lower()
    if not re.search(r"ssd|nvme|m\.2|hdd|sshd|hybrid", lowered):
        return None
    return parse_disk_type(value)


def _capacity_hint(value: CellValue) -> Optional[float]:
    if not isinstance(value, str) or not re.search(r"\d\s*[gt]", value.lower()):
        return None
    return parse_disk_capacity_gb(value)
