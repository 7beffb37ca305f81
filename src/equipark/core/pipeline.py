"""End-to-end pipeline: bytes + thresholds -> BatchResult.

Reports coarse job status through an optional callback, honours a
cooperative cancellation check between rows, and hands the evaluated pairs
to an optional persistence callback. Independent files share no state, so
callers may run several pipelines concurrently.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from ..errors import ComplianceConfigError, IngestError, PipelineCancelled
from ..models.job import AuditMetadata, BatchResult, EvaluatedRecord, JobStatus
from ..models.record import AttentionMode, CanonicalRecord
from ..models.thresholds import ThresholdConfig
from .compliance import evaluate
from .ingest import FileIngestor
from .summary import summarize

logger = logging.getLogger(__name__)

StatusCallback = Callable[[JobStatus], None]
CancelCheck = Callable[[], bool]
PersistCallback = Callable[[list[EvaluatedRecord]], None]


def generate_audit_cycle(today: Optional[date] = None) -> str:
    """Half-year audit cycle label, e.g. ``2024-S2``."""
    today = today or date.today()
    half = 1 if today.month <= 6 else 2
    return f"{today.year}-S{half}"


def _check_cancel(should_cancel: Optional[CancelCheck], stage: JobStatus) -> None:
    if should_cancel is not None and should_cancel():
        raise PipelineCancelled("Processing cancelled by caller", stage=stage)


def evaluate_batch(
    records: Iterable[CanonicalRecord],
    config: Optional[ThresholdConfig] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> list[EvaluatedRecord]:
    config = config or ThresholdConfig.default()
    items = []
    for record in records:
        _check_cancel(should_cancel, JobStatus.SCORING)
        items.append(EvaluatedRecord(record=record, result=evaluate(record, config)))
    return items


def run_pipeline(
    data: bytes,
    file_name: Optional[str] = None,
    media_type: Optional[str] = None,
    config: Optional[ThresholdConfig] = None,
    *,
    file_id: Optional[str] = None,
    on_status: Optional[StatusCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
    persist: Optional[PersistCallback] = None,
    audit_id: Optional[str] = None,
    today: Optional[date] = None,
) -> BatchResult:
    """Ingest, evaluate and summarize one submitted file.

    Fatal errors set the status to FAILED and propagate. ``IngestError``
    instances are stamped with the file id and the stage that failed.
    """
    config = config or ThresholdConfig.default()
    file_id = file_id or file_name or "upload"
    stage = JobStatus.PARSING

    def report(status: JobStatus) -> None:
        nonlocal stage
        stage = status
        logger.info("%s: %s", file_id, status.value)
        if on_status is not None:
            on_status(status)

    try:
        with FileIngestor(data, file_name, media_type, file_id=file_id) as ingestor:
            report(JobStatus.PARSING)
            ingestor.detect()

            report(JobStatus.FIELD_DETECTION)
            ingestor.map_headers()

            report(JobStatus.NORMALIZATION)
            records: list[CanonicalRecord] = []
            for record in ingestor.records():
                _check_cancel(should_cancel, stage)
                records.append(record)

        report(JobStatus.VALIDATION)
        try:
            for mode in AttentionMode:
                config.for_mode(mode)
        except ValidationError as e:
            raise ComplianceConfigError(f"Invalid per-mode thresholds: {e}") from e

        report(JobStatus.SCORING)
        items = evaluate_batch(records, config, should_cancel)
        summary = summarize((item.record, item.result) for item in items)

        if persist is not None:
            report(JobStatus.PERSISTENCE)
            persist(items)

        report(JobStatus.COMPLETED)
    except IngestError as e:
        e.file_id = e.file_id or file_id
        e.stage = stage
        logger.error("%s", e)
        report(JobStatus.FAILED)
        raise
    except Exception as e:
        logger.error("%s failed during %s: %s", file_id, stage.value, e)
        report(JobStatus.FAILED)
        raise

    logger.info(
        "%s: %d records, %d compliant, average score %.2f, %d warnings",
        file_id,
        summary.total,
        summary.count_compliant,
        summary.average_score,
        len(ingestor.warnings),
    )

    return BatchResult(
        file_id=file_id,
        file_format=ingestor.file_format or "",
        encoding=ingestor.encoding,
        delimiter=ingestor.delimiter,
        sheet_name=ingestor.sheet_name,
        header_row=ingestor.header_row,
        column_mapping=ingestor.column_mapping,
        threshold_name=config.name,
        threshold_version=config.version,
        items=items,
        summary=summary,
        warnings=ingestor.warnings,
        status=JobStatus.COMPLETED,
        metadata=AuditMetadata(
            audit_id=audit_id or file_id,
            audit_cycle=generate_audit_cycle(today),
            processed_at=datetime.now(timezone.utc),
        ),
    )


def reevaluate(batch: BatchResult, config: ThresholdConfig) -> BatchResult:
    """Re-score an existing batch under ``config`` without re-reading its source."""
    items = evaluate_batch(batch.records, config)
    return batch.model_copy(update={
        "items": items,
        "summary": summarize((item.record, item.result) for item in items),
        "threshold_name": config.name,
        "threshold_version": config.version,
    })
