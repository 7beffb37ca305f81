"""Threshold configuration models."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .record import AttentionMode


class CpuTierRule(BaseModel):
    """Processor tier markers for one brand.

    Markers are matched case-insensitively as substrings of the model string.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    below_minimum: list[str] = []
    minimum_or_above: list[str] = []


def _default_cpu_rules() -> dict[str, CpuTierRule]:
    return {
        "Intel": CpuTierRule(
            label="Intel Core i5",
            below_minimum=["core i3"],
            minimum_or_above=["core i5", "core i7", "core i9"],
        ),
        "AMD": CpuTierRule(
            label="AMD Ryzen 5",
            below_minimum=["ryzen 3"],
            minimum_or_above=["ryzen 5", "ryzen 7", "ryzen 9"],
        ),
    }


class ThresholdConfig(BaseModel):
    """A named, versioned set of minimum technical requirements."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = "default"
    version: str = "1.0"
    cpu_rules: dict[str, CpuTierRule] = Field(default_factory=_default_cpu_rules)
    cpu_min_ghz: float = 3.0
    ram_min_gb: float = 16
    disk_min_gb: float = 500
    disk_type_required: str = "SSD"
    os_required: str = "Windows 11"
    download_min_remote: float = 15
    upload_min_remote: float = 6
    mode_overrides: dict[AttentionMode, dict[str, Any]] = {}

    @model_validator(mode="after")
    def _check_overrides(self) -> "ThresholdConfig":
        allowed = set(OVERRIDABLE_KEYS)
        for mode, overrides in self.mode_overrides.items():
            unknown = sorted(set(overrides) - allowed)
            if unknown:
                raise ValueError(
                    f"Unknown threshold keys in {mode.value} overrides: {', '.join(unknown)}"
                )
        return self

    @classmethod
    def default(cls) -> "ThresholdConfig":
        """The documented default thresholds."""
        return cls()

    def for_mode(self, mode: AttentionMode) -> "ThresholdConfig":
        """Return the effective thresholds for one attention mode."""
        overrides = self.mode_overrides.get(AttentionMode(mode))
        if not overrides:
            return self
        data = self.model_dump(exclude={"mode_overrides"})
        data.update(overrides)
        return ThresholdConfig.model_validate(data)

    def rule_for_brand(self, brand: Optional[str]) -> Optional[CpuTierRule]:
        if not brand:
            return None
        wanted = brand.strip().lower()
        for key, rule in self.cpu_rules.items():
            if key.lower() == wanted:
                return rule
        return None


OVERRIDABLE_KEYS: tuple[str, ...] = (
    "cpu_rules",
    "cpu_min_ghz",
    "ram_min_gb",
    "disk_min_gb",
    "disk_type_required",
    "os_required",
    "download_min_remote",
    "upload_min_remote",
)
