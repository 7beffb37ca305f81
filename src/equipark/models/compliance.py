"""Compliance result and aggregate summary models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Category(str, Enum):
    CPU = "cpu"
    RAM = "ram"
    DISK = "disk"
    OS = "os"
    CONNECTIVITY = "connectivity"


class ComplianceLevel(str, Enum):
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    ACCEPTABLE = "ACCEPTABLE"
    DEFICIENT = "DEFICIENT"
    CRITICAL = "CRITICAL"


class Incumplimiento(BaseModel):
    """One failed criterion: what was found against what is required."""

    model_config = ConfigDict(frozen=True)

    field: str
    category: Category
    actual_value: str
    required_value: str
    severity: Severity


class ComplianceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    meets_cpu: bool
    meets_ram: bool
    meets_disk: bool
    meets_os: bool
    meets_connectivity: bool
    connectivity_applicable: bool
    applicable_criteria: int
    is_compliant: bool
    score: float = Field(ge=0, le=100)
    level: ComplianceLevel
    incumplimientos: list[Incumplimiento] = []
    observation: str = ""
    threshold_name: str = "default"
    threshold_version: str = ""


class ModeBreakdown(BaseModel):
    total: int = 0
    compliant: int = 0
    noncompliant: int = 0


class AggregateSummary(BaseModel):
    total: int = 0
    count_on_site: int = 0
    count_remote: int = 0
    count_compliant: int = 0
    count_noncompliant: int = 0
    compliance_rate: float = 0.0
    average_score: float = 0.0
    noncompliance_by_category: dict[Category, int] = Field(
        default_factory=lambda: {c: 0 for c in Category}
    )
    by_mode: dict[str, ModeBreakdown] = {}
    level_distribution: dict[ComplianceLevel, int] = {}
    cpu_brand_distribution: dict[str, int] = {}
    disk_type_distribution: dict[str, int] = {}
    average_ram_gb: Optional[float] = None
