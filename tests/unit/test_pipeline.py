"""Tests for core/pipeline.py."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import pytest

from equipark.core.pipeline import generate_audit_cycle, reevaluate, run_pipeline
from equipark.errors import ComplianceConfigError, NoQualifyingDelimiter, PipelineCancelled, UnreadableInput
from equipark.models.job import JobStatus, WarningCode
from equipark.models.record import AttentionMode
from equipark.models.thresholds import ThresholdConfig

STAGES = [
    JobStatus.PARSING,
    JobStatus.FIELD_DETECTION,
    JobStatus.NORMALIZATION,
    JobStatus.VALIDATION,
    JobStatus.SCORING,
]


class TestRunPipeline:
    def test_csv_batch(self, inventory_csv_bytes):
        statuses: list[JobStatus] = []
        batch = run_pipeline(
            inventory_csv_bytes,
            "parque.csv",
            on_status=statuses.append,
            audit_id="AUD-7",
            today=date(2024, 3, 15),
        )

        assert statuses == STAGES + [JobStatus.COMPLETED]
        assert batch.status == JobStatus.COMPLETED
        assert batch.file_id == "parque.csv"
        assert batch.delimiter == ";"
        assert batch.threshold_name == "default"
        assert batch.metadata.audit_id == "AUD-7"
        assert batch.metadata.audit_cycle == "2024-S1"

        assert [r.score for r in batch.results] == [100.0, 80.0, 0.0]
        assert batch.summary.total == 3
        assert batch.summary.count_compliant == 1
        assert batch.summary.count_remote == 1
        assert batch.summary.average_score == 60.0
        assert len(batch.warnings_by_code(WarningCode.FIELD_MAPPING)) == 1

    def test_xlsx_batch(self, inventory_xlsx_bytes):
        batch = run_pipeline(inventory_xlsx_bytes, "parque.xlsx")
        assert batch.sheet_name == "Parque Informatico"
        assert batch.header_row == 3
        assert [r.score for r in batch.results] == [100.0, 80.0, 0.0]

    def test_persistence_stage(self, inventory_csv_bytes):
        statuses: list[JobStatus] = []
        persist = MagicMock()
        batch = run_pipeline(inventory_csv_bytes, "parque.csv", on_status=statuses.append, persist=persist)

        assert statuses == STAGES + [JobStatus.PERSISTENCE, JobStatus.COMPLETED]
        persist.assert_called_once()
        assert persist.call_args.args[0] == batch.items

    def test_custom_config(self, inventory_csv_bytes):
        config = ThresholdConfig(name="lenient", version="3", download_min_remote=5, upload_min_remote=1)
        batch = run_pipeline(inventory_csv_bytes, "parque.csv", config=config)
        assert batch.results[1].is_compliant is True
        assert batch.threshold_version == "3"

    def test_file_id_defaults(self, inventory_csv_bytes):
        assert run_pipeline(inventory_csv_bytes, media_type="text/csv").file_id == "upload"
        assert run_pipeline(inventory_csv_bytes, "a.csv", file_id="F-1").file_id == "F-1"


class TestFailures:
    def test_fatal_ingest_error(self):
        statuses: list[JobStatus] = []
        with pytest.raises(NoQualifyingDelimiter) as exc_info:
            run_pipeline(b"", "vacio.csv", on_status=statuses.append)

        assert statuses == [JobStatus.PARSING, JobStatus.FAILED]
        assert exc_info.value.file_id == "vacio.csv"
        assert exc_info.value.stage == JobStatus.PARSING
        assert "vacio.csv" in str(exc_info.value)

    def test_malformed_csv_is_an_ingest_error(self):
        statuses: list[JobStatus] = []
        rows = "".join(f"PC-{n};16;HO\n" for n in range(20000))
        data = f'hostname;ram;modalidad\nPC-x;"16;HO\n{rows}'.encode("utf-8")
        with pytest.raises(UnreadableInput) as exc_info:
            run_pipeline(data, "grande.csv", on_status=statuses.append)

        assert statuses[-2:] == [JobStatus.NORMALIZATION, JobStatus.FAILED]
        assert exc_info.value.file_id == "grande.csv"
        assert exc_info.value.stage == JobStatus.NORMALIZATION

    def test_persistence_failure_propagates(self, inventory_csv_bytes):
        statuses: list[JobStatus] = []
        persist = MagicMock(side_effect=RuntimeError("database unavailable"))
        with pytest.raises(RuntimeError, match="database unavailable"):
            run_pipeline(inventory_csv_bytes, "parque.csv", on_status=statuses.append, persist=persist)
        assert statuses[-2:] == [JobStatus.PERSISTENCE, JobStatus.FAILED]

    def test_invalid_mode_overrides(self, inventory_csv_bytes):
        statuses: list[JobStatus] = []
        config = ThresholdConfig(mode_overrides={AttentionMode.REMOTE: {"ram_min_gb": "lots"}})
        with pytest.raises(ComplianceConfigError):
            run_pipeline(inventory_csv_bytes, "parque.csv", config=config, on_status=statuses.append)
        assert statuses[-2:] == [JobStatus.VALIDATION, JobStatus.FAILED]


class TestCancellation:
    def test_cancel_during_normalization(self, inventory_csv_bytes):
        statuses: list[JobStatus] = []
        with pytest.raises(PipelineCancelled) as exc_info:
            run_pipeline(
                inventory_csv_bytes, "parque.csv",
                on_status=statuses.append,
                should_cancel=lambda: True,
            )
        assert exc_info.value.stage == JobStatus.NORMALIZATION
        assert statuses[-1] == JobStatus.FAILED

    def test_cancel_during_scoring(self, inventory_csv_bytes):
        calls = iter([False, False, False, True])
        with pytest.raises(PipelineCancelled) as exc_info:
            run_pipeline(inventory_csv_bytes, "parque.csv", should_cancel=lambda: next(calls))
        assert exc_info.value.stage == JobStatus.SCORING

    def test_retry_after_cancel(self, inventory_csv_bytes):
        with pytest.raises(PipelineCancelled):
            run_pipeline(inventory_csv_bytes, "parque.csv", should_cancel=lambda: True)
        assert run_pipeline(inventory_csv_bytes, "parque.csv").summary.total == 3


class TestReevaluate:
    def test_rescoring_without_source(self, inventory_csv_bytes):
        batch = run_pipeline(inventory_csv_bytes, "parque.csv")
        strict = ThresholdConfig(name="strict", version="2", ram_min_gb=32)

        rescored = reevaluate(batch, strict)

        assert rescored.records == batch.records
        assert rescored.summary.count_compliant == 0
        assert rescored.threshold_name == "strict"
        assert batch.summary.count_compliant == 1
        assert batch.threshold_name == "default"
        assert rescored.warnings == batch.warnings


class TestAuditCycle:
    @pytest.mark.parametrize("day,cycle", [
        (date(2024, 1, 1), "2024-S1"),
        (date(2024, 6, 30), "2024-S1"),
        (date(2024, 7, 1), "2024-S2"),
        (date(2025, 12, 31), "2025-S2"),
    ])
    def test_half_years(self, day, cycle):
        assert generate_audit_cycle(day) == cycle
