"""
RESPONSIBILITIES
- Manage scoped sqlite3 connections for workbook files.
- Publish freshly written databases atomically using a temporary file swap.
PROCESS OVERVIEW
1. open_readonly() opens an existing file without ever creating it.
2. open_fresh() discards a stale temporary file and creates a new database.
3. file_size() measures the written file before it is moved.
4. publish() renames the temporary file over the destination.
"""

from __future__ import annotations

import os
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator

from keste_persist.stores.base_store import StoreFilesystemError, StoreOpenError


def _readonly_uri(path: Path) -> str:
    return path.resolve().as_uri() + "?mode=ro"


@contextmanager
def open_readonly(path: Path) -> Iterator[sqlite3.Connection]:
    """Open an existing database read-only; the connection is always closed."""

    if not path.is_file():
        raise StoreOpenError(f"Database file not found: {path}")
    try:
        conn = sqlite3.connect(_readonly_uri(path), uri=True)
    except sqlite3.Error as exc:
        raise StoreOpenError(f"Cannot open database {path}: {exc}") from exc
    with closing(conn):
        try:
            # sqlite3 reads the header lazily; probe it so corruption fails here.
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as exc:
            raise StoreOpenError(f"Cannot open database {path}: {exc}") from exc
        yield conn


def discard_stale(path: Path) -> None:
    """Remove a leftover file at *path*; a missing file is not an error."""

    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        raise StoreFilesystemError(f"Cannot remove stale file {path}: {exc}") from exc


@contextmanager
def open_fresh(path: Path) -> Iterator[sqlite3.Connection]:
    """Create a brand-new database at *path*; the connection is always closed."""

    discard_stale(path)
    try:
        conn = sqlite3.connect(str(path))
    except sqlite3.Error as exc:
        raise StoreOpenError(f"Cannot create database {path}: {exc}") from exc
    with closing(conn):
        yield conn


def ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoreFilesystemError(f"Cannot create directory {path.parent}: {exc}") from exc


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError as exc:
        raise StoreFilesystemError(f"Cannot read metadata of {path}: {exc}") from exc


def publish(tmp_path: Path, path: Path) -> None:
    """Atomically move *tmp_path* onto *path*, replacing any existing file."""

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        raise StoreFilesystemError(f"Cannot move {tmp_path} to {path}: {exc}") from exc
