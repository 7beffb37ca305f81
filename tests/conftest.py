"""Shared fixtures for equipark tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from openpyxl import Workbook

from equipark.models.record import AttentionMode, CanonicalRecord

INVENTORY_HEADER = [
    "Usuario", "Proveedor", "Sede", "Modalidad", "Hostname", "Marca CPU", "Procesador",
    "CPU_Velocidad(GHz)", "RAM (GB)", "Tipo Disco", "Capacidad Disco", "Sistema Operativo",
    "Navegador", "Antivirus", "ISP", "Velocidad Bajada", "Velocidad Subida", "Comentario",
]

INVENTORY_ROWS = [
    # compliant on-site workstation
    ["1001", "Acme", "Bogotá", "Presencial", "PC-001", "Intel", "Core i5-10400", "3,2", "16",
     "SSD", "512", "Windows 11 Pro", "Chrome", "Defender", "", "", "", "ok"],
    # remote workstation with a slow link
    ["1002", "Acme", "Medellín", "Home Office", "PC-002", "AMD", "Ryzen 5 3600", "3,6", "16",
     "SSD", "1 TB", "Windows 11", "Firefox", "ESET", "Tigo", "10", "5", ""],
    # empty row, skipped
    [""] * 18,
    # on-site workstation failing every hardware check
    ["1003", "Acme", "Bogotá", "Presencial", "PC-003", "Intel", "Core i3-9100", "3,6", "8",
     "HDD", "1000", "Windows 10", "Edge", "Defender", "", "", "", "renovar"],
]


def _delimited(rows: list[list[str]], delimiter: str) -> str:
    return "\n".join(delimiter.join(row) for row in rows) + "\n"


@pytest.fixture
def inventory_csv_text() -> str:
    """Semicolon-separated inventory with decimal commas."""
    return _delimited([INVENTORY_HEADER] + INVENTORY_ROWS, ";")


@pytest.fixture
def inventory_csv_bytes(inventory_csv_text: str) -> bytes:
    return inventory_csv_text.encode("utf-8-sig")


@pytest.fixture
def inventory_csv_file(tmp_path: Path, inventory_csv_bytes: bytes) -> Path:
    path = tmp_path / "parque.csv"
    path.write_bytes(inventory_csv_bytes)
    return path


def build_workbook(sheets: dict[str, list[list]]) -> bytes:
    """Serialize ``{sheet title: rows}`` into xlsx bytes."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def inventory_xlsx_bytes() -> bytes:
    """Workbook with a notes sheet first and a title row above the headers."""
    data_rows = [
        ["1001", "Acme", "Bogotá", "Presencial", "PC-001", "Intel", "Core i5-10400", 3.2, 16,
         "SSD", 512, "Windows 11 Pro", "Chrome", "Defender", None, None, None, "ok"],
        ["1002", "Acme", "Medellín", "Home Office", "PC-002", "AMD", "Ryzen 5 3600", 3.6, 16,
         "SSD", "1 TB", "Windows 11", "Firefox", "ESET", "Tigo", 10, 5, None],
        [None] * 18,
        ["1003", "Acme", "Bogotá", "Presencial", "PC-003", "Intel", "Core i3-9100", 3.6, 8,
         "HDD", 1000, "Windows 10", "Edge", "Defender", None, None, None, "renovar"],
    ]
    return build_workbook({
        "Notas": [["Submitted by provider"]],
        "Parque Informatico": [["Inventario 2024 - Acme"], []] + [INVENTORY_HEADER] + data_rows,
    })


@pytest.fixture
def inventory_xlsx_file(tmp_path: Path, inventory_xlsx_bytes: bytes) -> Path:
    path = tmp_path / "parque.xlsx"
    path.write_bytes(inventory_xlsx_bytes)
    return path


@pytest.fixture
def compliant_record() -> CanonicalRecord:
    """On-site Intel Core i5 workstation meeting every default threshold."""
    return CanonicalRecord(
        cpu_brand="Intel",
        cpu_model="Core i5-9400",
        cpu_speed=3.2,
        ram_gb=16,
        disk_type="SSD",
        disk_capacity_gb=512,
        os_name="Windows 11 Pro",
        attention_mode=AttentionMode.ON_SITE,
    )


@pytest.fixture
def i3_record(compliant_record: CanonicalRecord) -> CanonicalRecord:
    return compliant_record.model_copy(update={"cpu_model": "Core i3-9100"})


@pytest.fixture
def remote_record(compliant_record: CanonicalRecord) -> CanonicalRecord:
    return compliant_record.model_copy(update={
        "attention_mode": AttentionMode.REMOTE,
        "download_mbps": 50,
        "upload_mbps": 10,
    })


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    project = tmp_path / "audit-project"
    project.mkdir()
    return project


@pytest.fixture
def initialized_project(tmp_project: Path) -> Path:
    """Project with .equipark/thresholds.yaml raising the RAM minimum."""
    config_dir = tmp_project / ".equipark"
    config_dir.mkdir()
    (config_dir / "thresholds.yaml").write_text(
        'name: "acme-2024"\nversion: "2.1"\nram_min_gb: 32\n',
        encoding="utf-8",
    )
    return tmp_project


@pytest.fixture
def make_workbook():
    return build_workbook
