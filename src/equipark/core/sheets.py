"""Worksheet and header-row location for spreadsheet uploads."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ..errors import HeaderDetectionError, NoDataSheetFound
from .headers import normalize_header

logger = logging.getLogger(__name__)

SHEET_NAME_KEYWORDS: tuple[str, ...] = (
    "parque", "inventario", "inventory", "equipment", "equipos", "datos", "data",
)
HEADER_KEYWORDS: tuple[str, ...] = (
    "usuario", "user", "nombre", "name", "cpu", "procesador", "processor",
    "ram", "memoria", "memory", "disco", "disk", "sistema", "navegador",
    "browser", "antivirus", "sitio", "site", "proveedor", "provider",
    "hostname", "equipo", "atencion",
)
HEADER_SCAN_ROWS = 5
MIN_CONTENT_CELLS = 3
MIN_KEYWORD_HEADERS = 2

Row = Sequence[Any]


@dataclass
class SheetLocation:
    name: str
    header_index: int  # 0-based position within the sheet
    headers: list[str]


def non_empty_cells(row: Row) -> list[Any]:
    return [cell for cell in row if cell is not None and str(cell).strip() != ""]


def has_tabular_content(rows: Sequence[Row]) -> bool:
    """First row carries at least three non-empty cells."""
    return bool(rows) and len(non_empty_cells(rows[0])) >= MIN_CONTENT_CELLS


def is_header_row(row: Row) -> bool:
    hits = 0
    for cell in non_empty_cells(row):
        token = normalize_header(cell)
        if any(keyword in token for keyword in HEADER_KEYWORDS):
            hits += 1
    return hits >= MIN_KEYWORD_HEADERS


def find_header_row(rows: Sequence[Row], limit: int = HEADER_SCAN_ROWS) -> Optional[int]:
    for index, row in enumerate(rows[:limit]):
        if is_header_row(row):
            return index
    return None


def choose_sheet(sheets: Sequence[tuple[str, Sequence[Row]]]) -> Optional[str]:
    """Pick a sheet from ``(name, head_rows)`` pairs.

    Keyword-named sheets win, in keyword order, as long as they are not
    blank; otherwise the first sheet with tabular content.
    """
    for keyword in SHEET_NAME_KEYWORDS:
        for name, rows in sheets:
            if keyword in name.lower() and any(non_empty_cells(r) for r in rows):
                return name
    for name, rows in sheets:
        if has_tabular_content(rows):
            return name
    return None


def head_rows(worksheet: Any, limit: int = HEADER_SCAN_ROWS) -> list[tuple]:
    return list(worksheet.iter_rows(min_row=1, max_row=limit, values_only=True))


def locate_sheet(workbook: Any) -> SheetLocation:
    """Find the data sheet of an openpyxl workbook and its header row."""
    sheets = [(ws.title, head_rows(ws)) for ws in workbook.worksheets]
    name = choose_sheet(sheets)
    if name is None:
        raise NoDataSheetFound(
            f"No worksheet with inventory data among: {', '.join(s[0] for s in sheets) or 'none'}"
        )

    rows = dict(sheets)[name]
    header_index = find_header_row(rows)
    if header_index is None:
        raise HeaderDetectionError(
            f"No header row found in the first {HEADER_SCAN_ROWS} rows of sheet '{name}'"
        )

    headers = [normalize_header(cell) for cell in rows[header_index]]
    logger.info("Using sheet '%s', header row %d", name, header_index + 1)
    return SheetLocation(name=name, header_index=header_index, headers=headers)
