"""Batch roll-up of compliance results."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from ..models.compliance import AggregateSummary, Category, ComplianceResult, ModeBreakdown
from ..models.record import AttentionMode, CanonicalRecord


def summarize(pairs: Iterable[tuple[CanonicalRecord, ComplianceResult]]) -> AggregateSummary:
    """Aggregate one batch. An empty batch gives an all-zero summary."""
    total = 0
    compliant = 0
    score_sum = 0.0
    by_mode = {mode.value: ModeBreakdown() for mode in AttentionMode}
    by_category = {category: 0 for category in Category}
    levels: Counter = Counter()
    brands: Counter = Counter()
    disk_types: Counter = Counter()
    ram_values: list[float] = []

    for record, result in pairs:
        total += 1
        score_sum += result.score
        levels[result.level] += 1

        mode = by_mode[record.attention_mode.value]
        mode.total += 1
        if result.is_compliant:
            compliant += 1
            mode.compliant += 1
        else:
            mode.noncompliant += 1

        for item in result.incumplimientos:
            by_category[item.category] += 1

        brands[record.cpu_brand or "Unknown"] += 1
        disk_types[record.disk_type or "Unknown"] += 1
        if record.ram_gb is not None:
            ram_values.append(record.ram_gb)

    if total == 0:
        return AggregateSummary(by_mode=by_mode)

    return AggregateSummary(
        total=total,
        count_on_site=by_mode[AttentionMode.ON_SITE.value].total,
        count_remote=by_mode[AttentionMode.REMOTE.value].total,
        count_compliant=compliant,
        count_noncompliant=total - compliant,
        compliance_rate=round(compliant / total * 100, 2),
        average_score=round(score_sum / total, 2),
        noncompliance_by_category=by_category,
        by_mode=by_mode,
        level_distribution=dict(levels),
        cpu_brand_distribution=dict(brands.most_common()),
        disk_type_distribution=dict(disk_types.most_common()),
        average_ram_gb=round(sum(ram_values) / len(ram_values), 2) if ram_values else None,
    )
