"""Compliance report rendering (Markdown) and JSON export."""

from __future__ import annotations

import json
from pathlib import Path

from .. import __version__
from ..models.compliance import Category, ComplianceLevel, Severity
from ..models.job import BatchResult

SEVERITY_ORDER = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


def _fmt(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _cell(value: object) -> str:
    return _fmt(value).replace("|", "\\|")


def generate_compliance_report(batch: BatchResult) -> str:
    """Generate the Markdown compliance report for one batch."""
    summary = batch.summary
    verdict = "PASS" if summary.total and summary.count_noncompliant == 0 else "REVIEW"
    if summary.total == 0:
        verdict = "EMPTY"
    timestamp = batch.metadata.processed_at.strftime("%Y-%m-%d %H:%M:%S")

    lines: list[str] = []
    lines.append("# Equipment Compliance Report")
    lines.append("")
    lines.append(f"**File:** {batch.file_id}")
    lines.append(f"**Audit:** {batch.metadata.audit_id} ({batch.metadata.audit_cycle})")
    lines.append(f"**Date:** {timestamp}")
    lines.append(f"**Thresholds:** {batch.threshold_name} v{batch.threshold_version}")
    if batch.sheet_name:
        lines.append(f"**Source:** {batch.file_format} sheet '{batch.sheet_name}', header row {batch.header_row}")
    else:
        lines.append(
            f"**Source:** {batch.file_format} ({batch.encoding}, delimiter {batch.delimiter!r}), "
            f"header row {batch.header_row}"
        )
    lines.append(f"**Verdict:** {verdict}")
    lines.append("")

    # Summary table
    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Workstations | {summary.total} |")
    lines.append(f"| On-site | {summary.count_on_site} |")
    lines.append(f"| Remote | {summary.count_remote} |")
    lines.append(f"| Compliant | {summary.count_compliant} |")
    lines.append(f"| Non-compliant | {summary.count_noncompliant} |")
    lines.append(f"| Compliance rate | {summary.compliance_rate:.2f}% |")
    lines.append(f"| **Average score** | **{summary.average_score:.2f}** |")
    if summary.average_ram_gb is not None:
        lines.append(f"| Average RAM | {_fmt(summary.average_ram_gb)} GB |")
    lines.append("")

    lines.append("## Non-conformances by Category")
    lines.append("")
    lines.append("| Category | Count |")
    lines.append("|----------|-------|")
    for category in Category:
        lines.append(f"| {category.value} | {summary.noncompliance_by_category.get(category, 0)} |")
    lines.append("")

    lines.append("## By Attention Mode")
    lines.append("")
    lines.append("| Mode | Total | Compliant | Non-compliant |")
    lines.append("|------|-------|-----------|---------------|")
    for mode, counts in summary.by_mode.items():
        lines.append(f"| {mode} | {counts.total} | {counts.compliant} | {counts.noncompliant} |")
    lines.append("")

    if summary.level_distribution:
        lines.append("## Compliance Levels")
        lines.append("")
        lines.append("| Level | Workstations |")
        lines.append("|-------|--------------|")
        for level in ComplianceLevel:
            count = summary.level_distribution.get(level, 0)
            if count:
                lines.append(f"| {level.value} | {count} |")
        lines.append("")

    failing = [item for item in batch.items if not item.result.is_compliant]
    if failing:
        failing.sort(key=lambda item: item.result.score)
        lines.append("## Non-compliant Workstations")
        lines.append("")
        for item in failing:
            record, result = item.record, item.result
            name = record.hostname or record.user_id or f"row {record.row_number}"
            lines.append(f"### {name} [{result.score:.2f}, {result.level.value}]")
            lines.append(f"**Mode:** {record.attention_mode.value}")
            if record.site or record.provider:
                lines.append(f"**Site:** {' / '.join(p for p in (record.provider, record.site) if p)}")
            lines.append("")
            lines.append("| Field | Actual | Required | Severity |")
            lines.append("|-------|--------|----------|----------|")
            for inc in sorted(result.incumplimientos, key=lambda i: SEVERITY_ORDER[i.severity]):
                lines.append(
                    f"| {inc.field} | {_cell(inc.actual_value)} | "
                    f"{_cell(inc.required_value)} | {inc.severity.value} |"
                )
            lines.append("")

    if batch.warnings:
        lines.append("## Warnings")
        lines.append("")
        for warning in batch.warnings:
            where = f"row {warning.row}: " if warning.row is not None else ""
            lines.append(f"- `{warning.code.value}` {where}{warning.message}")
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by equipark v{__version__} at {timestamp}*")

    return "\n".join(lines)


def batch_to_dict(batch: BatchResult) -> dict:
    return batch.model_dump(mode="json")


def export_batch_json(batch: BatchResult, output_path: Path) -> Path:
    """Write a batch result to a JSON file (UTF-8, no BOM)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(batch_to_dict(batch), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return output_path
