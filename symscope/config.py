"""Configuration models for symscope."""

from __future__ import annotations

from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError
from .logging import resolve_level

PROJECT_CONFIG = ".symscope.yaml"
DEFAULT_DB = ".symscope.db"


class ScopeConfig(BaseModel):
    db: str = DEFAULT_DB
    paths: List[str] = Field(default_factory=list)
    excludes: List[str] = Field(default_factory=list)
    skip_extractors: List[str] = Field(default_factory=list)
    read: bool = True
    write: bool = True
    update: bool = True
    progress: bool = False
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        resolve_level(value)
        return value.strip().upper()


def load_project_config(root: Path) -> dict[str, object]:
    """Read ``.symscope.yaml`` from root, returning an empty mapping when absent."""
    config_path = root / PROJECT_CONFIG
    if not config_path.exists():
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse {config_path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return data


def merge_config(root: Path, cli_options: dict[str, object]) -> ScopeConfig:
    """Combine the project file with CLI options; explicit CLI values win."""
    file_overrides = load_project_config(root)
    merged: dict[str, object] = dict(file_overrides)
    for key, value in cli_options.items():
        if value is None:
            continue
        if isinstance(value, list) and key in merged:
            existing = merged.get(key) or []
            if not isinstance(existing, list):
                existing = [existing]
            merged[key] = [*existing, *[item for item in value if item not in existing]]
            continue
        merged[key] = value
    try:
        return ScopeConfig(**merged)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration: {error}") from error


__all__ = ["DEFAULT_DB", "PROJECT_CONFIG", "ScopeConfig", "load_project_config", "merge_config"]
