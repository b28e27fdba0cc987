from __future__ import annotations

from pathlib import Path

import pytest

from keste.core.errors import ConfigError
from keste.core.settings import load_settings
from keste_persist.utils.paths import autosave_path, temp_path_for


def test_yaml_settings_with_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = tmp_path / "keste.yaml"
    cfg.write_text("log_level: debug\nautosave_name: recovery.kst\n", encoding="utf-8")
    monkeypatch.setenv("KESTE_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("KESTE_CONFIG", str(cfg))
    monkeypatch.delenv("KESTE_LOG_LEVEL", raising=False)

    settings = load_settings()

    assert settings.home == tmp_path / "home"
    assert settings.log_level == "DEBUG"
    assert settings.autosave_name == "recovery.kst"
    assert autosave_path() == (tmp_path / "home").resolve() / "autosave" / "recovery.kst"


def test_log_level_env_wins_over_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = tmp_path / "keste.yaml"
    cfg.write_text("log_level: debug\n", encoding="utf-8")
    monkeypatch.setenv("KESTE_LOG_LEVEL", "warning")

    assert load_settings(cfg).log_level == "WARNING"


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    cfg = tmp_path / "keste.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(cfg)


def test_temp_path_is_same_directory_sibling(tmp_path: Path) -> None:
    target = tmp_path / "book.kst"

    assert temp_path_for(target) == tmp_path / "book.kst.tmp"
