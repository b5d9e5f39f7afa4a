"""Settings for rendering, the field store, and uploads, read from config.yaml and EJPUB_* env vars"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "EJPUB_"


class Settings(BaseModel):
    app_name:         str = "ejpub"
    db_url:           str = "sqlite:///ejpub.db"
    max_versions:     int = Field(default=10, ge=0, description="Stored versions kept per field; 0 keeps all")
    output_dir:       str = Field(default="dist", description="Export target for rendered HTML + sidecar JSON")
    base_url:         str = Field(default="", description="Scheme and host for image and upload URLs")
    files_path:       str = Field(default="sites/default/files", description="Public files path prefix")
    upload_dir:       str = Field(default="files", description="Local directory for uploaded images")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1, description="Upload size ceiling in bytes")
    fetch_timeout:    float = Field(default=30.0, gt=0, description="Seconds allowed for upload-by-URL downloads")
    log_level:        str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path.name}: expected a mapping, got {type(data).__name__}")
    return data


def _read_env() -> dict[str, str]:
    values = {name: os.getenv(f"{ENV_PREFIX}{name.upper()}") for name in Settings.model_fields}
    return {name: value for name, value in values.items() if value}


def load_config(overrides: dict[str, Any] = None, path: str = CONFIG_FILE) -> Settings:
    """Merge config file < environment < non-None overrides into Settings.

    Raises ValueError for an unreadable config file; pydantic's ValidationError
    (also a ValueError) for out-of-range values.
    """
    data = _read_file(Path(path))
    data.update(_read_env())
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return Settings(**data)
