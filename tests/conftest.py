from __future__ import annotations

import faulthandler
import os
import sqlite3
import sys
import tempfile
from contextlib import closing
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.

# Logs and autosave must never land in the real home directory.
os.environ["KESTE_HOME"] = tempfile.mkdtemp(prefix="keste-tests-")
os.environ.pop("KESTE_CONFIG", None)

SCHEMA = """
CREATE TABLE workbook (id TEXT PRIMARY KEY);
CREATE TABLE sheet (id TEXT PRIMARY KEY, name TEXT NOT NULL, sheet_order INTEGER NOT NULL);
CREATE TABLE cell (
  sheet_id TEXT NOT NULL,
  row INTEGER NOT NULL,
  col INTEGER NOT NULL,
  type TEXT NOT NULL,
  value TEXT,
  formula TEXT,
  style_id INTEGER,
  PRIMARY KEY (sheet_id, row, col)
);
"""


def build_database(path: Path, script: str) -> Path:
    """Create a SQLite file at *path* by running *script* directly."""

    with closing(sqlite3.connect(str(path))) as conn:
        conn.executescript(script)
        conn.commit()
    return path


@pytest.fixture
def make_db(tmp_path: Path):
    def _make(script: str, name: str = "book.kst") -> Path:
        return build_database(tmp_path / name, script)

    return _make


@pytest.fixture
def schema() -> str:
    return SCHEMA
