"""3-layer threshold configuration.

Loads and merges thresholds from:
1. Default thresholds (built-in)
2. Threshold document (a YAML file, or .equipark/thresholds.yaml in a project)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .. import __version__
from ..errors import ComplianceConfigError
from ..models.record import AttentionMode
from ..models.thresholds import ThresholdConfig

PROJECT_DIR = ".equipark"
THRESHOLDS_FILE = "thresholds.yaml"

DEFAULT_THRESHOLDS: dict = {
    "name": "default",
    "version": "1.0",
    "cpu_rules": {
        "Intel": {
            "label": "Intel Core i5",
            "below_minimum": ["core i3"],
            "minimum_or_above": ["core i5", "core i7", "core i9"],
        },
        "AMD": {
            "label": "AMD Ryzen 5",
            "below_minimum": ["ryzen 3"],
            "minimum_or_above": ["ryzen 5", "ryzen 7", "ryzen 9"],
        },
    },
    "cpu_min_ghz": 3.0,
    "ram_min_gb": 16,
    "disk_min_gb": 500,
    "disk_type_required": "SSD",
    "os_required": "Windows 11",
    "download_min_remote": 15,
    "upload_min_remote": 6,
    "mode_overrides": {},
}

REQUIRED_KEYS = tuple(key for key in DEFAULT_THRESHOLDS if key != "mode_overrides")


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict:
    try:
        content = path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content)
    except OSError as e:
        raise ComplianceConfigError(f"Cannot read threshold file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ComplianceConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ComplianceConfigError(f"Threshold file {path} must contain a mapping")
    return data


def load_project_config(project_path: Path) -> dict:
    """Load project thresholds from .equipark/thresholds.yaml, if present."""
    config_path = project_path / PROJECT_DIR / THRESHOLDS_FILE
    if not config_path.exists():
        return {}
    return _read_yaml(config_path)


def _normalize_mode_overrides(raw: Any) -> dict:
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ComplianceConfigError("mode_overrides must be a mapping of attention mode to thresholds")
    normalized = {}
    for mode, overrides in raw.items():
        try:
            key = AttentionMode(str(mode).strip().upper())
        except ValueError:
            valid = ", ".join(m.value for m in AttentionMode)
            raise ComplianceConfigError(f"Unknown attention mode '{mode}' (expected {valid})") from None
        normalized[key] = overrides or {}
    return normalized


def build_threshold_config(document: dict) -> ThresholdConfig:
    """Validate a merged threshold document."""
    missing = [key for key in REQUIRED_KEYS if document.get(key) is None]
    if missing:
        raise ComplianceConfigError(f"Missing required threshold keys: {', '.join(missing)}")

    data = dict(document)
    data["mode_overrides"] = _normalize_mode_overrides(data.get("mode_overrides"))
    data["version"] = str(data["version"])
    try:
        config = ThresholdConfig.model_validate(data)
        for mode in AttentionMode:
            config.for_mode(mode)
    except ValidationError as e:
        raise ComplianceConfigError(f"Invalid threshold configuration: {e}") from e
    return config


def get_effective_thresholds(
    thresholds_file: Optional[Path] = None,
    project_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Merge the three layers into one threshold document."""
    config = copy.deepcopy(DEFAULT_THRESHOLDS)

    if thresholds_file is not None:
        file_config = _read_yaml(Path(thresholds_file))
    elif project_path is not None:
        file_config = load_project_config(Path(project_path))
    else:
        file_config = {}
    if file_config:
        config = deep_merge(config, file_config)

    if cli_overrides:
        config = deep_merge(config, {k: v for k, v in cli_overrides.items() if v is not None})

    return config


def load_threshold_config(
    thresholds_file: Optional[Path] = None,
    project_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> ThresholdConfig:
    """Resolve and validate the effective ``ThresholdConfig``."""
    document = get_effective_thresholds(thresholds_file, project_path, cli_overrides)
    return build_threshold_config(document)


def dump_threshold_config(config: ThresholdConfig) -> str:
    """Render a config as a YAML threshold document."""
    data = config.model_dump(mode="json")
    if not data.get("mode_overrides"):
        data.pop("mode_overrides", None)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def init_project(project_path: Path) -> Path:
    """Create .equipark/thresholds.yaml with the default thresholds."""
    config_dir = project_path / PROJECT_DIR
    config_dir.mkdir(parents=True, exist_ok=True)

    config_path = config_dir / THRESHOLDS_FILE
    if not config_path.exists():
        config_path.write_text(
            "# equipark threshold configuration\n"
            f"# Generated by equipark {__version__}; values below are the built-in defaults.\n"
            "# Per-mode overrides, for example:\n"
            "# mode_overrides:\n"
            "#   REMOTE:\n"
            "#     ram_min_gb: 8\n"
            "\n"
            + dump_threshold_config(ThresholdConfig.default()),
            encoding="utf-8",
        )
    return config_path
