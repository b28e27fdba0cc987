"""
RESPONSIBILITIES
- Resolve and create the ~/Keste directory scaffold used for persistence.
- Provide helpers for locating the autosave workbook and temporary siblings.
PROCESS OVERVIEW
1. resolve_root() expands user input or falls back to the configured home.
2. ensure_structure() materializes autosave/logs/tmp directories.
3. autosave_path() returns the canonical autosave workbook location.
4. temp_path_for() derives the same-directory temporary name used by exports.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from keste.core.settings import load_settings

_DEFAULT_SUBDIRS: tuple[str, ...] = ("autosave", "logs", "tmp")
TEMP_SUFFIX = ".tmp"


def resolve_root(root: str | os.PathLike[str] | None = None) -> Path:
    """Return the persistence root, defaulting to the configured home (~/Keste)."""

    if root is None:
        base = load_settings().home
    else:
        base = Path(root)
    return base.expanduser().resolve()


def ensure_structure(root: str | os.PathLike[str] | None = None, *, subdirs: Iterable[str] | None = None) -> dict[str, Path]:
    """Ensure persistence directories exist and return a mapping."""

    base = resolve_root(root)
    resolved: dict[str, Path] = {}
    requested = tuple(subdirs) if subdirs is not None else _DEFAULT_SUBDIRS
    base.mkdir(parents=True, exist_ok=True)
    for name in requested:
        target = base / name
        target.mkdir(parents=True, exist_ok=True)
        resolved[name] = target
    return resolved


def autosave_path(root: str | os.PathLike[str] | None = None) -> Path:
    """Return the absolute path of the autosave workbook under \"autosave\"."""

    directories = ensure_structure(root)
    return directories["autosave"] / load_settings().autosave_name


def temp_path_for(path: str | os.PathLike[str]) -> Path:
    """Return the sibling temporary path for *path* (same directory, .tmp suffix)."""

    target = Path(path)
    return target.with_name(target.name + TEMP_SUFFIX)
