"""Tests for core/sheets.py."""

from __future__ import annotations

import io

import pytest
from openpyxl import load_workbook

from equipark.core.sheets import choose_sheet, find_header_row, is_header_row, locate_sheet
from equipark.errors import HeaderDetectionError, NoDataSheetFound
from equipark.models.job import JobStatus

HEADERS = ("Usuario", "Procesador", "RAM", "Disco")


class TestChooseSheet:
    def test_keyword_sheet_preferred(self):
        sheets = [
            ("Resumen", [("a", "b", "c", "d")]),
            ("Parque Informático", [("x",)]),
        ]
        assert choose_sheet(sheets) == "Parque Informático"

    def test_keyword_priority_order(self):
        sheets = [("Datos", [HEADERS]), ("Inventario", [HEADERS])]
        assert choose_sheet(sheets) == "Inventario"

    def test_blank_keyword_sheet_skipped(self):
        sheets = [("Inventario", [(None, None)]), ("Hoja1", [HEADERS])]
        assert choose_sheet(sheets) == "Hoja1"

    def test_content_heuristic_needs_three_cells(self):
        sheets = [("Hoja1", [("a", "b", None)]), ("Hoja2", [("a", "b", "c")])]
        assert choose_sheet(sheets) == "Hoja2"

    def test_nothing_qualifies(self):
        assert choose_sheet([("Hoja1", [("solo",)]), ("Hoja2", [])]) is None


class TestHeaderRow:
    def test_needs_two_keyword_cells(self):
        assert is_header_row(("Usuario", "Procesador"))
        assert not is_header_row(("Usuario", "Observación", None))

    def test_title_rows_skipped(self):
        rows = [("Inventario Acme",), (), HEADERS, ("1001", "Core i5", 16, 512)]
        assert find_header_row(rows) == 2

    def test_outside_scan_window(self):
        rows = [("x",)] * 5 + [HEADERS]
        assert find_header_row(rows) is None


class TestLocateSheet:
    def _open(self, data: bytes):
        return load_workbook(io.BytesIO(data), read_only=True, data_only=True)

    def test_locates_sheet_and_headers(self, inventory_xlsx_bytes):
        wb = self._open(inventory_xlsx_bytes)
        try:
            location = locate_sheet(wb)
        finally:
            wb.close()
        assert location.name == "Parque Informatico"
        assert location.header_index == 2
        assert location.headers[7] == "cpu_velocidad_ghz"

    def test_no_data_sheet(self, make_workbook):
        wb = self._open(make_workbook({"Hoja1": [["nota"]], "Hoja2": [["a", "b"]]}))
        try:
            with pytest.raises(NoDataSheetFound) as exc_info:
                locate_sheet(wb)
        finally:
            wb.close()
        assert "Hoja1" in str(exc_info.value)

    def test_no_header_row(self, make_workbook):
        wb = self._open(make_workbook({"Datos": [["a", "b", "c"]] * 6}))
        try:
            with pytest.raises(HeaderDetectionError) as exc_info:
                locate_sheet(wb)
        finally:
            wb.close()
        assert exc_info.value.stage == JobStatus.FIELD_DETECTION
