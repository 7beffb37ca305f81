"""Job status, batch warnings and batch result models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from .compliance import AggregateSummary, ComplianceResult
from .record import CanonicalRecord


class JobStatus(str, Enum):
    PARSING = "PARSING"
    FIELD_DETECTION = "FIELD_DETECTION"
    NORMALIZATION = "NORMALIZATION"
    VALIDATION = "VALIDATION"
    SCORING = "SCORING"
    PERSISTENCE = "PERSISTENCE"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class WarningCode(str, Enum):
    ENCODING_FALLBACK = "ENCODING_FALLBACK"
    FIELD_MAPPING = "FIELD_MAPPING"
    VALUE_COERCION = "VALUE_COERCION"
    ROW_SHAPE = "ROW_SHAPE"
    ATTENTION_MODE_DEFAULTED = "ATTENTION_MODE_DEFAULTED"


class BatchWarning(BaseModel):
    """A non-fatal issue recorded for the audit log."""

    code: WarningCode
    message: str
    row: Optional[int] = None
    column: Optional[str] = None
    value: Optional[str] = None


class AuditMetadata(BaseModel):
    audit_id: str
    audit_cycle: str
    processed_at: datetime


class EvaluatedRecord(BaseModel):
    record: CanonicalRecord
    result: ComplianceResult


class BatchResult(BaseModel):
    """Everything produced for one submitted file."""

    file_id: str
    file_format: str
    encoding: Optional[str] = None
    delimiter: Optional[str] = None
    sheet_name: Optional[str] = None
    header_row: int = 1
    column_mapping: dict[int, str] = {}
    threshold_name: str = "default"
    threshold_version: str = ""
    items: list[EvaluatedRecord] = []
    summary: AggregateSummary = AggregateSummary()
    warnings: list[BatchWarning] = []
    status: JobStatus = JobStatus.COMPLETED
    metadata: AuditMetadata

    @property
    def records(self) -> list[CanonicalRecord]:
        return [item.record for item in self.items]

    @property
    def results(self) -> list[ComplianceResult]:
        return [item.result for item in self.items]

    def warnings_by_code(self, code: Union[WarningCode, str]) -> list[BatchWarning]:
        code = WarningCode(code)
        return [w for w in self.warnings if w.code == code]
