"""
RESPONSIBILITIES
- Define shared interfaces and exceptions for SQLite-backed workbook stores.
- Map low-level sqlite3/OSError failures onto the persistence error taxonomy.
PROCESS OVERVIEW
1. Each store resolves its root and logger on construction.
2. Read/write operations raise StoreError subclasses, never raw sqlite3 errors.
3. healthcheck -> verify dependencies and directory write access.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from keste_persist.utils.log import get_logger
from keste_persist.utils.paths import ensure_structure, resolve_root


class StoreError(RuntimeError):
    """Base exception type for persistence-layer failures."""


class StoreOpenError(StoreError):
    """Raised when a database file cannot be opened or created."""


class StoreQueryError(StoreError):
    """Raised when reading fails on a malformed schema or undecodable row."""


class StoreStatementError(StoreError):
    """Raised when a caller-supplied statement batch fails to execute."""


class StoreFilesystemError(StoreError):
    """Raised on directory creation, metadata or rename failures."""


class StoreValidationError(StoreError):
    """Raised when input data fails validation rules."""


@dataclass(slots=True)
class PersistHealth:
    """Structured report produced by health checks."""

    dependencies: dict[str, bool]
    writable_paths: dict[str, bool]
    sqlite_version: str = sqlite3.sqlite_version
    issues: list[str] = field(default_factory=list)

    def is_healthy(self) -> bool:
        """Return True when no issues are observed."""

        return not self.issues and all(self.dependencies.values()) and all(
            self.writable_paths.values()
        )


class BaseStore(ABC):
    """Abstract class shared by the workbook reader and writer."""

    log_name: str

    def __init__(self, root: Path | str | None = None, *, logger: logging.Logger | None = None) -> None:
        self._root = Path(root).expanduser().resolve() if root else None
        self.logger = logger or get_logger(self.log_name, self._root)

    @abstractmethod
    def healthcheck(self) -> PersistHealth:
        """Run diagnostics for the store and return a structured report."""

    def _check_directories(self) -> tuple[dict[str, bool], list[str]]:
        issues: list[str] = []
        writable: dict[str, bool] = {}
        try:
            directories = ensure_structure(self._root)
        except OSError as exc:
            issues.append(f"Failed to ensure root directories: {exc}")
            return {str(resolve_root(self._root)): False}, issues
        for target in directories.values():
            writable[str(target)] = os.access(target, os.W_OK | os.X_OK)
        return writable, issues
