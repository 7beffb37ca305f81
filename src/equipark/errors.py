"""Exception types for the ingestion and scoring pipeline.

Fatal problems are raised; non-fatal ones (encoding fallback, unmapped
headers, unresolvable cells) are never raised and travel as
``BatchWarning`` entries on the batch result instead.
"""

from __future__ import annotations

from typing import Optional

from .models.job import JobStatus


class EquiparkError(Exception):
    """Base class for every error raised by this package."""


class IngestError(EquiparkError):
    """A fatal error that aborts the current batch."""

    default_stage = JobStatus.PARSING

    def __init__(
        self,
        message: str,
        file_id: Optional[str] = None,
        stage: Optional[JobStatus] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.file_id = file_id
        self.stage = stage or self.default_stage

    def __str__(self) -> str:
        parts = [self.message]
        if self.file_id:
            parts.append(f"file={self.file_id}")
        parts.append(f"stage={self.stage.value}")
        return " | ".join(parts)


class UnsupportedFormat(IngestError):
    """Extension/media type is neither delimited text nor an xlsx workbook."""


class UnreadableInput(IngestError):
    """The bytes could not be opened as the declared format."""


class NoQualifyingDelimiter(IngestError):
    """No candidate delimiter produced a usable row shape."""


class NoDataSheetFound(IngestError):
    """No worksheet in the workbook looks like tabular inventory data."""


class HeaderDetectionError(IngestError):
    """No header row was found within the scan window of the chosen sheet."""

    default_stage = JobStatus.FIELD_DETECTION


class PipelineCancelled(IngestError):
    """The caller's cancellation check asked the pipeline to stop."""


class ComplianceConfigError(EquiparkError):
    """Threshold document is missing a required key or holds an invalid value."""
