"""Canonical workstation record."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

CellValue = Union[bool, int, float, str, None]


class AttentionMode(str, Enum):
    ON_SITE = "ON_SITE"
    REMOTE = "REMOTE"


TEXT_FIELDS: tuple[str, ...] = (
    "user_id",
    "provider",
    "site",
    "hostname",
    "cpu_brand",
    "cpu_model",
    "ram_type",
    "disk_type",
    "os_name",
    "os_version",
    "browser_name",
    "browser_version",
    "antivirus_brand",
    "antivirus_version",
    "headset_brand",
    "headset_model",
    "isp_name",
    "connection_type",
)

NUMERIC_FIELDS: tuple[str, ...] = (
    "cpu_speed",
    "cpu_cores",
    "ram_gb",
    "disk_capacity_gb",
    "download_mbps",
    "upload_mbps",
)


class CanonicalRecord(BaseModel):
    """One workstation entry of one audit submission.

    Immutable once built. Columns that did not map onto a canonical field
    are kept in ``extra`` under their normalized header.
    """

    model_config = ConfigDict(frozen=True)

    attention_mode: AttentionMode
    row_number: Optional[int] = None

    # Identity
    user_id: Optional[str] = None
    provider: Optional[str] = None
    site: Optional[str] = None
    hostname: Optional[str] = None

    # Processor
    cpu_brand: Optional[str] = None
    cpu_model: Optional[str] = None
    cpu_speed: Optional[float] = None
    cpu_cores: Optional[int] = None

    # Memory and storage
    ram_gb: Optional[float] = None
    ram_type: Optional[str] = None
    disk_type: Optional[str] = None
    disk_capacity_gb: Optional[float] = None

    # Software
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    antivirus_brand: Optional[str] = None
    antivirus_version: Optional[str] = None

    # Peripherals
    headset_brand: Optional[str] = None
    headset_model: Optional[str] = None

    # Connectivity
    isp_name: Optional[str] = None
    connection_type: Optional[str] = None
    download_mbps: Optional[float] = None
    upload_mbps: Optional[float] = None

    extra: dict[str, CellValue] = {}

    def get(self, field: str, default: Any = None) -> Any:
        """Look up a canonical field or a pass-through column by name."""
        if field in CANONICAL_FIELDS:
            value = getattr(self, field)
            return default if value is None else value
        return self.extra.get(field, default)

    def as_mapping(self) -> dict[str, CellValue]:
        data: dict[str, CellValue] = {}
        for name in CANONICAL_FIELDS:
            value = getattr(self, name)
            data[name] = value.value if isinstance(value, Enum) else value
        data.update(self.extra)
        return data


CANONICAL_FIELDS: tuple[str, ...] = tuple(
    name for name in CanonicalRecord.model_fields if name not in ("row_number", "extra")
)
