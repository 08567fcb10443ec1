from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from src.models.config_models import (
    DEFAULT_CONTENT_TYPES,
    AreaConfig,
    DatabaseConfig,
    IngestConfig,
    UploadConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/ingest.yml
- Validate against contracts/config_schema.json
- Apply defaults for every omitted section
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "load_config",
]

# src/config/loader.py -> src/config -> src -> repo_root
_repo_root = Path(__file__).parent.parent.parent
SCHEMA_PATH = _repo_root / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / invalid, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_upload(raw: dict[str, Any]) -> UploadConfig:
    defaults = UploadConfig()
    types = raw.get("allowed_content_types")
    return UploadConfig(
        allowed_content_types=tuple(t.lower() for t in types) if types else DEFAULT_CONTENT_TYPES,
        uploaded_by=raw.get("uploaded_by", defaults.uploaded_by),
        preview_size=raw.get("preview_size", defaults.preview_size),
        rejection_sample_size=raw.get("rejection_sample_size", defaults.rejection_sample_size),
        rejection_log=raw.get("rejection_log", defaults.rejection_log),
    )


def load_config(path: Path) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    areas = tuple(
        AreaConfig(id=a["id"], name=a["name"], description=a.get("description"))
        for a in data.get("areas", [])
    )
    ids = [a.id for a in areas]
    if len(set(ids)) != len(ids):
        raise ConfigError(f"duplicate area ids: {sorted(i for i in set(ids) if ids.count(i) > 1)}")

    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return IngestConfig(
        upload=_build_upload(data.get("upload", {})),
        areas=areas,
        database=db,
    )
