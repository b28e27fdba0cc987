from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError


load_dotenv(override=False)

DEFAULT_HOME = Path.home() / "Keste"
SETTINGS_FILE_NAME = "keste.yaml"


class KesteSettings(BaseModel):
    """Runtime settings for the persistence layer.

    Attributes:
        home: Root directory holding autosave/logs/tmp.
        log_level: Level name applied to the ``keste`` logger.
        autosave_name: File name of the autosave workbook.
    """

    model_config = ConfigDict(extra="ignore")

    home: Path = Field(default_factory=lambda: DEFAULT_HOME)
    log_level: str = "INFO"
    autosave_name: str = "autosave.kst"


def _home_from_env() -> Path | None:
    env = os.getenv("KESTE_HOME")
    if env:
        return Path(env).expanduser()
    return None


def _settings_path(home: Path) -> Path:
    env = os.getenv("KESTE_CONFIG")
    if env:
        return Path(env).expanduser()
    return home / SETTINGS_FILE_NAME


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file must contain a mapping: {path}")
    return data


def load_settings(path: str | Path | None = None) -> KesteSettings:
    """Load settings from YAML, with KESTE_* environment overrides on top."""

    env_home = _home_from_env()
    cfg_path = Path(path) if path else _settings_path(env_home or DEFAULT_HOME)
    data = _load_yaml(cfg_path)
    if env_home is not None:
        data["home"] = env_home
    level = os.getenv("KESTE_LOG_LEVEL")
    if level:
        data["log_level"] = level
    try:
        settings = KesteSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Settings error in {cfg_path}: {exc}") from exc
    settings.home = settings.home.expanduser()
    settings.log_level = settings.log_level.upper()
    return settings
