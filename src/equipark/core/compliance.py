"""Compliance engine.

``evaluate`` scores one ``CanonicalRecord`` against a ``ThresholdConfig``.
It is pure: the record is never modified and the same inputs always give
the same ``ComplianceResult``, so a batch can be re-scored under another
config without re-reading the source file.
"""

from __future__ import annotations

from typing import Optional

from ..models.compliance import (
    Category,
    ComplianceLevel,
    ComplianceResult,
    Incumplimiento,
    Severity,
)
from ..models.record import AttentionMode, CanonicalRecord
from ..models.thresholds import ThresholdConfig

NOT_REPORTED = "not reported"
FULLY_COMPLIANT = "Workstation meets all technical requirements."

SEVERITY_BY_CATEGORY = {
    Category.CPU: Severity.HIGH,
    Category.RAM: Severity.HIGH,
    Category.DISK: Severity.MEDIUM,
    Category.OS: Severity.HIGH,
    Category.CONNECTIVITY: Severity.HIGH,
}

FIELD_BY_CATEGORY = {
    Category.CPU: "processor",
    Category.RAM: "ram",
    Category.DISK: "disk",
    Category.OS: "operating_system",
    Category.CONNECTIVITY: "connectivity",
}

LABEL_BY_CATEGORY = {
    Category.CPU: "Processor",
    Category.RAM: "RAM",
    Category.DISK: "Disk",
    Category.OS: "Operating system",
    Category.CONNECTIVITY: "Connectivity",
}

LEVEL_FLOORS = (
    (90.0, ComplianceLevel.EXCELLENT),
    (80.0, ComplianceLevel.GOOD),
    (70.0, ComplianceLevel.ACCEPTABLE),
    (50.0, ComplianceLevel.DEFICIENT),
)


def _num(value: Optional[float]) -> str:
    if value is None:
        return "?"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"


def _contains_any(text: str, markers: list[str]) -> bool:
    return any(marker.lower() in text for marker in markers)


def compliance_level(score: float) -> ComplianceLevel:
    for floor, level in LEVEL_FLOORS:
        if score >= floor:
            return level
    return ComplianceLevel.CRITICAL


# ---------------------------------------------------------------------------
# Per-category checks
# ---------------------------------------------------------------------------


def meets_cpu(record: CanonicalRecord, config: ThresholdConfig) -> bool:
    """Brand-tiered processor rule.

    Unknown brands fail. A below-minimum marker fails regardless of speed;
    otherwise a minimum-or-above marker and enough clock speed are needed.
    """
    rule = config.rule_for_brand(record.cpu_brand)
    if rule is None:
        return False
    model = (record.cpu_model or "").lower()
    if _contains_any(model, rule.below_minimum):
        return False
    if not _contains_any(model, rule.minimum_or_above):
        return False
    return record.cpu_speed is not None and record.cpu_speed >= config.cpu_min_ghz


def meets_ram(record: CanonicalRecord, config: ThresholdConfig) -> bool:
    return record.ram_gb is not None and record.ram_gb >= config.ram_min_gb


def meets_disk(record: CanonicalRecord, config: ThresholdConfig) -> bool:
    if record.disk_capacity_gb is None or record.disk_type is None:
        return False
    return (
        record.disk_capacity_gb >= config.disk_min_gb
        and record.disk_type.strip().upper() == config.disk_type_required.strip().upper()
    )


def _os_text(record: CanonicalRecord) -> str:
    return " ".join(part for part in (record.os_name, record.os_version) if part)


def meets_os(record: CanonicalRecord, config: ThresholdConfig) -> bool:
    return config.os_required.lower() in _os_text(record).lower()


def meets_connectivity(record: CanonicalRecord, config: ThresholdConfig) -> bool:
    if record.download_mbps is None or record.upload_mbps is None:
        return False
    return (
        record.download_mbps >= config.download_min_remote
        and record.upload_mbps >= config.upload_min_remote
    )


# ---------------------------------------------------------------------------
# Actual / required rendering
# ---------------------------------------------------------------------------


def _actual(category: Category, record: CanonicalRecord) -> str:
    if category == Category.CPU:
        parts = [record.cpu_brand, record.cpu_model]
        if record.cpu_speed is not None:
            parts.append(f"{_num(record.cpu_speed)}GHz")
        text = " ".join(p for p in parts if p)
    elif category == Category.RAM:
        text = f"{_num(record.ram_gb)}GB" if record.ram_gb is not None else ""
    elif category == Category.DISK:
        parts = []
        if record.disk_capacity_gb is not None:
            parts.append(f"{_num(record.disk_capacity_gb)}GB")
        if record.disk_type:
            parts.append(record.disk_type)
        text = " ".join(parts)
    elif category == Category.OS:
        text = _os_text(record)
    else:
        text = (
            f"{_num(record.download_mbps)}/{_num(record.upload_mbps)} Mbps"
            if record.download_mbps is not None or record.upload_mbps is not None
            else ""
        )
    return text or NOT_REPORTED


def _required(category: Category, record: CanonicalRecord, config: ThresholdConfig) -> str:
    if category == Category.CPU:
        rule = config.rule_for_brand(record.cpu_brand)
        if rule is not None:
            label = rule.label
        else:
            label = " or ".join(r.label for r in config.cpu_rules.values()) or "supported processor"
        return f"{label} {_num(config.cpu_min_ghz)}GHz or higher"
    if category == Category.RAM:
        return f"{_num(config.ram_min_gb)}GB or more"
    if category == Category.DISK:
        return f"{_num(config.disk_min_gb)}GB {config.disk_type_required} or more"
    if category == Category.OS:
        return config.os_required
    return (
        f"{_num(config.download_min_remote)}/{_num(config.upload_min_remote)} Mbps or more"
    )


def build_observation(incumplimientos: list[Incumplimiento]) -> str:
    if not incumplimientos:
        return FULLY_COMPLIANT
    return " ".join(
        f"{LABEL_BY_CATEGORY[item.category]}: {item.actual_value} does not meet "
        f"requirement {item.required_value}."
        for item in incumplimientos
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def evaluate(
    record: CanonicalRecord,
    config: Optional[ThresholdConfig] = None,
) -> ComplianceResult:
    """Score one workstation record."""
    base = config or ThresholdConfig.default()
    effective = base.for_mode(record.attention_mode)

    connectivity_applicable = record.attention_mode == AttentionMode.REMOTE
    checks = {
        Category.CPU: meets_cpu(record, effective),
        Category.RAM: meets_ram(record, effective),
        Category.DISK: meets_disk(record, effective),
        Category.OS: meets_os(record, effective),
    }
    if connectivity_applicable:
        checks[Category.CONNECTIVITY] = meets_connectivity(record, effective)

    met = sum(1 for ok in checks.values() if ok)
    applicable = len(checks)
    score = round(met / applicable * 100, 2)

    incumplimientos = [
        Incumplimiento(
            field=FIELD_BY_CATEGORY[category],
            category=category,
            actual_value=_actual(category, record),
            required_value=_required(category, record, effective),
            severity=SEVERITY_BY_CATEGORY[category],
        )
        for category, ok in checks.items()
        if not ok
    ]

    return ComplianceResult(
        meets_cpu=checks[Category.CPU],
        meets_ram=checks[Category.RAM],
        meets_disk=checks[Category.DISK],
        meets_os=checks[Category.OS],
        meets_connectivity=checks.get(Category.CONNECTIVITY, True),
        connectivity_applicable=connectivity_applicable,
        applicable_criteria=applicable,
        is_compliant=met == applicable,
        score=score,
        level=compliance_level(score),
        incumplimientos=incumplimientos,
        observation=build_observation(incumplimientos),
        threshold_name=base.name,
        threshold_version=base.version,
    )
