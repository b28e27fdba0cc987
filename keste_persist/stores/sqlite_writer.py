"""
RESPONSIBILITIES
- Write a complete SQL statement batch into a fresh .kst SQLite file.
- Publish the result crash-safely: a reader sees the old file or the new one.
PROCESS OVERVIEW
1. ensure_parent() creates the destination directory.
2. open_fresh() discards any stale <name>.tmp and creates a new database there.
3. The batch runs as one script; a failure leaves the destination untouched.
4. The temporary file is measured, its connection closed, then publish() renames it.
5. save_workbook() feeds generate_sql_dump() output through the same protocol.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path

from keste_persist.schemas.workbook import SaveResult, Workbook
from keste_persist.stores.base_store import (
    BaseStore,
    PersistHealth,
    StoreError,
    StoreStatementError,
)
from keste_persist.utils.paths import resolve_root, temp_path_for
from keste_persist.utils.sql_dump import build_sql_dump
from keste_persist.utils.sqlite_io import ensure_parent, file_size, open_fresh, publish


class WorkbookWriter(BaseStore):
    """Exporter applying statement batches with an atomic publish."""

    log_name = "sqlite_writer"

    # Export API -------------------------------------------------------------------

    def write(self, sql_dump: str, out_path: str | os.PathLike[str]) -> int:
        path = Path(out_path)
        tmp_path = temp_path_for(path)
        self.logger.info("Writing workbook to %s via %s", path, tmp_path.name)
        try:
            ensure_parent(path)
            with open_fresh(tmp_path) as conn:
                self._execute_batch(conn, sql_dump, path)
                bytes_written = file_size(tmp_path)
            # Connection is closed here; nothing holds the temporary file open.
            publish(tmp_path, path)
        except StoreError as exc:
            self.logger.error("Workbook export to %s failed: %s", path, exc)
            raise
        self.logger.info("Published %s (%d bytes)", path, bytes_written)
        return bytes_written

    def save(self, sql_dump: str, out_path: str | os.PathLike[str]) -> SaveResult:
        return SaveResult(bytes_written=self.write(sql_dump, out_path))

    def save_workbook(self, workbook: Workbook, out_path: str | os.PathLike[str]) -> SaveResult:
        self.logger.info(
            "Dumping workbook %s (%d sheets, %d cells)",
            workbook.id,
            len(workbook.sheets),
            workbook.cell_count(),
        )
        return self.save(build_sql_dump(workbook), out_path)

    def healthcheck(self) -> PersistHealth:
        writable, issues = self._check_directories()
        if not issues:
            probe = resolve_root(self._root) / "tmp" / "healthcheck.kst"
            try:
                self.write("CREATE TABLE probe (id INTEGER);", probe)
                probe.unlink()
            except (StoreError, OSError) as exc:
                issues.append(f"Export probe failed: {exc}")
        return PersistHealth(
            dependencies={"sqlite3": True},
            writable_paths=writable,
            issues=issues,
        )

    # Helpers ----------------------------------------------------------------------

    @staticmethod
    def _execute_batch(conn: sqlite3.Connection, sql_dump: str, path: Path) -> None:
        try:
            conn.executescript(sql_dump)
            conn.commit()
        except (sqlite3.Error, ValueError) as exc:
            raise StoreStatementError(f"SQLite write error for {path}: {exc}") from exc


# Convenience facade ---------------------------------------------------------------


def write_sqlite(sql_dump: str, out_path: str | os.PathLike[str]) -> int:
    """Apply *sql_dump* to a fresh database and publish it at *out_path*."""

    return WorkbookWriter().write(sql_dump, out_path)


def save_sqlite(sql_dump: str, out_path: str | os.PathLike[str]) -> SaveResult:
    return WorkbookWriter().save(sql_dump, out_path)


def save_workbook(
    workbook: Workbook,
    out_path: str | os.PathLike[str],
    *,
    root: Path | None = None,
) -> SaveResult:
    store = WorkbookWriter(root)
    return store.save_workbook(workbook, out_path)


def writer_healthcheck(root: Path | None = None) -> PersistHealth:
    store = WorkbookWriter(root)
    return store.healthcheck()
