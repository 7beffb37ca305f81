"""File ingestion: raw bytes in, canonical records out.

Delimited text goes through encoding and delimiter detection; xlsx
workbooks go through sheet and header location. Both paths then share
header mapping, cell coercion and domain normalization, and yield records
one row at a time.
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import PurePath
from typing import Any, Iterator, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import NoQualifyingDelimiter, UnreadableInput, UnsupportedFormat
from ..models.job import BatchWarning, JobStatus, WarningCode
from ..models.record import CANONICAL_FIELDS, CanonicalRecord, CellValue
from .coercion import coerce_with_warning
from .delimiter import detect_delimiter
from .encoding import detect_encoding
from .headers import map_fields, normalize_header
from .normalizers import normalize_fields
from .sheets import locate_sheet

logger = logging.getLogger(__name__)

CSV_FORMAT = "csv"
XLSX_FORMAT = "xlsx"

CSV_EXTENSIONS = {".csv", ".txt", ".tsv"}
XLSX_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_MEDIA_TYPES = {"text/csv", "text/plain", "text/tab-separated-values", "application/csv"}
XLSX_MEDIA_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
}

ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xd0\xcf\x11\xe0"


def detect_format(
    data: bytes,
    file_name: Optional[str] = None,
    media_type: Optional[str] = None,
) -> str:
    """Decide between delimited text and xlsx.

    Checks the extension, then the media type, then the leading bytes.
    """
    if file_name:
        suffix = PurePath(file_name).suffix.lower()
        if suffix in CSV_EXTENSIONS:
            return CSV_FORMAT
        if suffix in XLSX_EXTENSIONS:
            return XLSX_FORMAT
        if suffix:
            raise UnsupportedFormat(f"Unsupported file extension '{suffix}'")

    if media_type:
        kind = media_type.split(";")[0].strip().lower()
        if kind in CSV_MEDIA_TYPES:
            return CSV_FORMAT
        if kind in XLSX_MEDIA_TYPES:
            return XLSX_FORMAT

    if data.startswith(ZIP_MAGIC):
        return XLSX_FORMAT
    if data.startswith(OLE_MAGIC):
        raise UnsupportedFormat("Legacy binary .xls workbooks are not supported; save as .xlsx")
    return CSV_FORMAT


def _trim_trailing_empty(headers: list[str]) -> list[str]:
    end = len(headers)
    while end > 0 and not headers[end - 1]:
        end -= 1
    return headers[:end]


class FileIngestor:
    """Turns one submitted file into a stream of ``CanonicalRecord``.

    Usage::

        with FileIngestor(data, "parque.csv") as ingestor:
            ingestor.detect()
            ingestor.map_headers()
            for record in ingestor.records():
                ...

    Non-fatal problems accumulate in ``warnings``; fatal ones raise an
    ``IngestError`` subclass.
    """

    def __init__(
        self,
        data: bytes,
        file_name: Optional[str] = None,
        media_type: Optional[str] = None,
        file_id: Optional[str] = None,
        synonyms: Optional[dict[str, list[str]]] = None,
    ):
        self.data = data
        self.file_name = file_name
        self.media_type = media_type
        self.file_id = file_id or file_name or "upload"
        self.synonyms = synonyms

        self.file_format: Optional[str] = None
        self.encoding: Optional[str] = None
        self.delimiter: Optional[str] = None
        self.sheet_name: Optional[str] = None
        self.header_row = 1
        self.headers: list[str] = []
        self.column_mapping: dict[int, str] = {}
        self.warnings: list[BatchWarning] = []

        self._text: Optional[str] = None
        self._workbook: Any = None
        self._rows: Optional[Iterator[tuple[int, Sequence[Any]]]] = None

    def __enter__(self) -> "FileIngestor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._workbook is not None:
            self._workbook.close()
            self._workbook = None

    # ------------------------------------------------------------------
    # PARSING
    # ------------------------------------------------------------------

    def detect(self) -> None:
        """Detect the format and locate the header row."""
        self.file_format = detect_format(self.data, self.file_name, self.media_type)
        logger.info("Ingesting %s as %s", self.file_id, self.file_format)
        if self.file_format == XLSX_FORMAT:
            self._open_workbook()
        else:
            self._open_text()

    def _open_text(self) -> None:
        text, encoding, fell_back = detect_encoding(self.data)
        self.encoding = encoding
        if fell_back:
            self.warnings.append(BatchWarning(
                code=WarningCode.ENCODING_FALLBACK,
                message=f"No candidate encoding decoded cleanly; using {encoding}",
            ))

        delimiter = detect_delimiter(text)
        if delimiter is None:
            raise NoQualifyingDelimiter("No delimiter produced a usable row shape")
        self.delimiter = delimiter
        self._text = text

        reader = csv.reader(io.StringIO(text), delimiter=delimiter)
        header: Optional[list[str]] = None
        try:
            for row in reader:
                if any(cell.strip() for cell in row):
                    header = row
                    break
        except csv.Error as exc:
            raise UnreadableInput(
                f"Malformed CSV before the header row: {exc}", file_id=self.file_id
            ) from exc
        if header is None or len(header) < 2:
            raise NoQualifyingDelimiter(
                f"Header row has fewer than two columns with delimiter {delimiter!r}"
            )

        self.header_row = reader.line_num
        self.headers = _trim_trailing_empty([normalize_header(cell) for cell in header])
        self._rows = self._csv_rows(reader)
        logger.debug("Delimiter %r, header on line %d", delimiter, self.header_row)

    def _csv_rows(self, reader: Any) -> Iterator[tuple[int, list[str]]]:
        """Yield ``(first line, row)`` pairs, flagging cells that swallowed line breaks."""
        line = reader.line_num
        try:
            for row in reader:
                first, line = line + 1, reader.line_num
                if any("\n" in cell or "\r" in cell or self.delimiter in cell for cell in row):
                    self.warnings.append(BatchWarning(
                        code=WarningCode.ROW_SHAPE,
                        message=(
                            f"Row on lines {first}-{line} has a cell with an embedded line break "
                            "or delimiter; check for an unbalanced quote"
                        ),
                        row=first,
                    ))
                yield first, row
        except csv.Error as exc:
            raise UnreadableInput(
                f"Malformed CSV from line {line + 1}: {exc}",
                file_id=self.file_id,
                stage=JobStatus.NORMALIZATION,
            ) from exc

    def _open_workbook(self) -> None:
        try:
            workbook = load_workbook(io.BytesIO(self.data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
            raise UnreadableInput(f"Could not open workbook: {exc}") from exc
        self._workbook = workbook

        location = locate_sheet(workbook)
        self.sheet_name = location.name
        self.header_row = location.header_index + 1
        self.headers = _trim_trailing_empty(location.headers)

        worksheet = workbook[location.name]
        first_data_row = self.header_row + 1
        self._rows = (
            (first_data_row + offset, row)
            for offset, row in enumerate(
                worksheet.iter_rows(min_row=first_data_row, values_only=True)
            )
        )

    # ------------------------------------------------------------------
    # FIELD_DETECTION
    # ------------------------------------------------------------------

    def map_headers(self) -> dict[int, str]:
        self.column_mapping, warnings = map_fields(self.headers, self.synonyms)
        self.warnings.extend(warnings)
        mapped = sum(1 for name in self.column_mapping.values() if name in CANONICAL_FIELDS)
        logger.info("Mapped %d of %d columns onto canonical fields", mapped, len(self.headers))
        return self.column_mapping

    # ------------------------------------------------------------------
    # NORMALIZATION
    # ------------------------------------------------------------------

    def records(self) -> Iterator[CanonicalRecord]:
        """Yield one record per non-empty data row, in source order."""
        if self._rows is None:
            raise UnreadableInput("detect() must run before records()", stage=JobStatus.NORMALIZATION)
        for row_number, cells in self._rows:
            record = self.build_record(list(cells), row_number)
            if record is not None:
                yield record

    def build_record(self, cells: list[Any], row_number: int) -> Optional[CanonicalRecord]:
        """Map, coerce and normalize one raw row. Empty rows give ``None``."""
        width = len(self.headers)
        overflow = [cell for cell in cells[width:] if cell not in (None, "")]
        if overflow:
            self.warnings.append(BatchWarning(
                code=WarningCode.ROW_SHAPE,
                message=f"Row has {len(cells)} cells for {width} headers; extra cells ignored",
                row=row_number,
            ))
        cells = cells[:width] + [None] * (width - len(cells))

        values: dict[str, CellValue] = {}
        extra: dict[str, CellValue] = {}
        for index, raw in enumerate(cells):
            name = self.column_mapping.get(index) or f"column_{index + 1}"
            value, problem = coerce_with_warning(raw, name)
            if problem:
                self.warnings.append(BatchWarning(
                    code=WarningCode.VALUE_COERCION,
                    message=problem,
                    row=row_number,
                    column=name,
                    value=str(raw),
                ))
            if name in CANONICAL_FIELDS:
                values[name] = value
            else:
                extra[name] = value

        if all(v is None for v in values.values()) and all(v is None for v in extra.values()):
            return None

        fields, warnings = normalize_fields(values, row_number)
        self.warnings.extend(warnings)
        return CanonicalRecord(row_number=row_number, extra=extra, **fields)
