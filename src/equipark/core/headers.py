"""Header normalization and canonical field mapping."""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from ..models.job import BatchWarning, WarningCode

_NON_ALNUM = re.compile(r"[\W_]+", re.UNICODE)
MIN_SUBSTRING_LENGTH = 3

# Declaration order is the substring-match priority: specific fields
# come before the generic ones whose synonyms they contain.
FIELD_SYNONYMS: dict[str, list[str]] = {
    "download_mbps": [
        "download_mbps", "speed_download", "velocidad_bajada", "velocidad_descarga",
        "download_speed", "bajada_mbps", "bajada", "descarga", "download",
    ],
    "upload_mbps": [
        "upload_mbps", "speed_upload", "velocidad_subida", "velocidad_carga",
        "upload_speed", "subida_mbps", "subida", "upload",
    ],
    "isp_name": [
        "isp_name", "isp", "proveedor_internet", "proveedor_de_internet",
        "internet_provider", "operador_internet",
    ],
    "connection_type": ["connection_type", "tipo_conexion", "conexion", "connection"],
    "cpu_speed": [
        "cpu_speed", "velocidad_cpu", "cpu_velocidad", "cpu_ghz", "frecuencia_cpu",
        "velocidad_procesador", "processor_speed", "clock_speed", "clock_speed_ghz",
        "ghz",
    ],
    "cpu_cores": ["cpu_cores", "nucleos_cpu", "core_count", "nucleos", "cores"],
    "cpu_brand": [
        "cpu_brand", "marca_cpu", "processor_brand", "marca_procesador",
    ],
    "cpu_model": [
        "cpu_model", "modelo_cpu", "processor_model", "modelo_procesador",
        "procesador", "processor", "cpu", "micro",
    ],
    "ram_type": [
        "ram_type", "tipo_ram", "memory_type", "tipo_memoria", "tipo_de_memoria",
        "tipo_de_ram", "tipo_memoria_ram", "tipo_de_memoria_ram",
    ],
    "ram_gb": ["ram_gb", "memoria_ram", "memory_gb", "ram", "memoria", "memory"],
    "disk_type": [
        "disk_type", "tipo_disco", "storage_type", "tipo_almacenamiento", "tipo_de_disco",
        "tipo_de_almacenamiento", "tipo_de_disco_duro",
    ],
    "disk_capacity_gb": [
        "disk_capacity_gb", "disk_capacity", "capacidad_disco", "storage_capacity",
        "disco_gb", "disco_duro", "disco", "disk", "almacenamiento", "storage",
        "hdd", "ssd",
    ],
    "os_version": [
        "os_version", "version_so", "os_ver", "version_sistema_operativo",
        "version_os",
    ],
    "os_name": [
        "os_name", "sistema_operativo", "operating_system", "so", "os", "sistema",
    ],
    "browser_version": ["browser_version", "version_navegador"],
    "browser_name": ["browser_name", "navegador", "browser", "explorador"],
    "antivirus_version": ["antivirus_version", "version_antivirus"],
    "antivirus_brand": ["antivirus_brand", "marca_antivirus", "antivirus", "av_brand", "av"],
    "headset_model": ["headset_model", "modelo_diadema", "modelo_auricular"],
    "headset_brand": ["headset_brand", "diadema", "auriculares", "auricular", "headset"],
    "hostname": [
        "hostname", "nombre_equipo", "computer_name", "pc_name", "host", "equipo",
    ],
    "attention_mode": [
        "attention_mode", "atencion", "tipo_atencion", "modo_atencion", "modalidad",
        "attention", "service_type",
    ],
    "site": ["site", "sitio", "sede", "ubicacion", "location", "ciudad"],
    "provider": ["provider", "proveedor", "empresa", "company", "supplier"],
    "user_id": [
        "user_id", "usuario_id", "id_usuario", "usuario", "user", "agente",
        "cedula", "documento", "id",
    ],
}


def normalize_header(raw: object) -> str:
    """Canonicalize a raw header cell into a lowercase ``snake_case`` token.

    Accents are folded before non-alphanumeric runs collapse to ``_``, so
    "Atención" and "atencion" produce the same token. Idempotent.
    """
    if raw is None:
        return ""
    text = unicodedata.normalize("NFKD", str(raw))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _NON_ALNUM.sub("_", text.strip().lower())
    return text.strip("_")


def _substring_match(header: str, synonym: str) -> bool:
    if len(header) < MIN_SUBSTRING_LENGTH or len(synonym) < MIN_SUBSTRING_LENGTH:
        return False
    return synonym in header or header in synonym


def _exact_field(header: str, synonyms: dict[str, list[str]]) -> Optional[str]:
    for field, variants in synonyms.items():
        if header in variants:
            return field
    return None


def _substring_field(header: str, synonyms: dict[str, list[str]]) -> Optional[str]:
    for field, variants in synonyms.items():
        for variant in variants:
            if _substring_match(header, variant):
                return field
    return None


def match_field(
    header: str,
    synonyms: Optional[dict[str, list[str]]] = None,
) -> Optional[str]:
    """Resolve a normalized header to a canonical field, or None."""
    synonyms = FIELD_SYNONYMS if synonyms is None else synonyms
    if not header:
        return None
    return _exact_field(header, synonyms) or _substring_field(header, synonyms)


def map_fields(
    headers: list[str],
    synonyms: Optional[dict[str, list[str]]] = None,
) -> tuple[dict[int, str], list[BatchWarning]]:
    """Map column positions to field names.

    Exact synonym matches claim their fields across all columns before any
    substring match is tried. Unknown headers pass through under their
    normalized name. A canonical field claimed twice keeps the first column
    of the stronger match; other columns pass through.
    """
    synonyms = FIELD_SYNONYMS if synonyms is None else synonyms
    candidates: list[Optional[str]] = [None] * len(headers)
    owners: dict[str, int] = {}

    for index, header in enumerate(headers):
        if header:
            candidates[index] = _exact_field(header, synonyms)
        if candidates[index] is not None:
            owners.setdefault(candidates[index], index)

    for index, header in enumerate(headers):
        if header and candidates[index] is None:
            candidates[index] = _substring_field(header, synonyms)
            if candidates[index] is not None:
                owners.setdefault(candidates[index], index)

    mapping: dict[int, str] = {}
    warnings: list[BatchWarning] = []
    taken: set[str] = set(owners)

    for index, header in enumerate(headers):
        column = index + 1
        name = candidates[index]

        if name is not None and owners[name] != index:
            warnings.append(BatchWarning(
                code=WarningCode.FIELD_MAPPING,
                message=f"Column '{header}' also maps to '{name}'; kept as pass-through",
                column=header,
            ))
            name = None

        if name is None:
            name = header or f"column_{column}"
            if name in taken:
                name = f"{name}_{column}"
            if header:
                warnings.append(BatchWarning(
                    code=WarningCode.FIELD_MAPPING,
                    message=f"Header '{header}' has no canonical field; kept as '{name}'",
                    column=header,
                ))
            else:
                warnings.append(BatchWarning(
                    code=WarningCode.FIELD_MAPPING,
                    message=f"Column {column} has no header; kept as '{name}'",
                    column=name,
                ))
            taken.add(name)

        mapping[index] = name

    return mapping, warnings
