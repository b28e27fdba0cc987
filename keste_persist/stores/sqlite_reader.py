"""
RESPONSIBILITIES
- Read a .kst SQLite workbook into the workbook -> sheets -> cells document.
- Serialize the document as compact JSON for transport to the command layer.
- Offer a tabular cell query for previews.
PROCESS OVERVIEW
1. open_readonly() opens the existing file and probes its header.
2. The workbook id is read from the metadata table, defaulting when absent.
3. Sheets are read ordered by sheet_order; cells per sheet ordered by row, col.
4. Rows are decoded strictly into Cell/Sheet records and assembled in order.
5. read_sqlite() returns the JSON text; load_workbook() returns the records.
"""

from __future__ import annotations

import json
import os
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Mapping

import pandas as pd

from keste_persist.schemas.query import CellQuery
from keste_persist.schemas.workbook import DEFAULT_WORKBOOK_ID, Cell, Sheet, Workbook
from keste_persist.stores.base_store import BaseStore, PersistHealth, StoreError, StoreQueryError
from keste_persist.utils.sqlite_io import open_readonly

WORKBOOK_ID_SQL = "SELECT id FROM workbook LIMIT 1"
SHEETS_SQL = "SELECT id, name, sheet_order FROM sheet ORDER BY sheet_order"
CELLS_SQL = (
    "SELECT row, col, type, value, formula, style_id "
    "FROM cell WHERE sheet_id = ? ORDER BY row, col"
)
QUERY_COLUMNS: tuple[str, ...] = (
    "sheet_id",
    "sheet_name",
    "sheet_order",
    "row",
    "col",
    "type",
    "value",
    "formula",
    "style_id",
)


def _require_int(value: object, column: str) -> int:
    # bool is an int subclass but sqlite3 never returns one.
    if not isinstance(value, int):
        raise StoreQueryError(f"Column {column} must be an integer, got {value!r}")
    return value


def _require_text(value: object, column: str) -> str:
    if not isinstance(value, str):
        raise StoreQueryError(f"Column {column} must be text, got {value!r}")
    return value


def _optional_text(value: object, column: str) -> str | None:
    if value is None:
        return None
    return _require_text(value, column)


def _optional_int(value: object, column: str) -> int | None:
    if value is None:
        return None
    return _require_int(value, column)


def _decode_cell(row: tuple[object, ...]) -> Cell:
    return Cell(
        row=_require_int(row[0], "cell.row"),
        col=_require_int(row[1], "cell.col"),
        type=_require_text(row[2], "cell.type"),
        value=_optional_text(row[3], "cell.value"),
        formula=_optional_text(row[4], "cell.formula"),
        style_id=_optional_int(row[5], "cell.style_id"),
    )


class WorkbookReader(BaseStore):
    """Importer turning a SQLite workbook file into a document snapshot."""

    log_name = "sqlite_reader"

    # Import API -------------------------------------------------------------------

    def read(self, file_path: str | os.PathLike[str]) -> Workbook:
        path = Path(file_path)
        self.logger.info("Reading workbook from %s", path)
        try:
            with open_readonly(path) as conn:
                workbook = Workbook(id=self._read_workbook_id(conn, path))
                workbook.sheets = self._read_sheets(conn)
        except sqlite3.Error as exc:
            self.logger.error("Workbook import failed for %s: %s", path, exc)
            raise StoreQueryError(f"SQLite read error in {path}: {exc}") from exc
        except StoreError as exc:
            self.logger.error("Workbook import failed for %s: %s", path, exc)
            raise
        self.logger.info(
            "Read workbook %s: %d sheets, %d cells",
            workbook.id,
            len(workbook.sheets),
            workbook.cell_count(),
        )
        return workbook

    def read_json(self, file_path: str | os.PathLike[str]) -> str:
        workbook = self.read(file_path)
        return json.dumps(workbook.to_dict(), ensure_ascii=False, separators=(",", ":"))

    def query(
        self,
        file_path: str | os.PathLike[str],
        params: Mapping[str, object] | CellQuery | None = None,
    ) -> pd.DataFrame:
        filters = self._normalize_query(params)
        workbook = self.read(file_path)
        records: list[dict[str, object]] = []
        for sheet in workbook.sheets:
            if filters.get("sheet_name") and sheet.name != filters["sheet_name"]:
                continue
            for cell in sheet.cells:
                records.append(
                    {
                        "sheet_id": sheet.id,
                        "sheet_name": sheet.name,
                        "sheet_order": sheet.order,
                        "row": cell.row,
                        "col": cell.col,
                        "type": cell.type,
                        "value": cell.value,
                        "formula": cell.formula,
                        "style_id": cell.style_id,
                    }
                )
        frame = pd.DataFrame(records, columns=QUERY_COLUMNS)
        frame["style_id"] = frame["style_id"].astype("Int64")
        if frame.empty:
            return frame

        min_row = filters.get("min_row")
        if min_row is not None:
            frame = frame[frame["row"] >= min_row]
        max_row = filters.get("max_row")
        if max_row is not None:
            frame = frame[frame["row"] <= max_row]
        cell_type = filters.get("cell_type")
        if cell_type:
            frame = frame[frame["type"] == cell_type]
        return frame.reset_index(drop=True)

    def healthcheck(self) -> PersistHealth:
        writable, issues = self._check_directories()
        try:
            with closing(sqlite3.connect(":memory:")) as conn:
                conn.execute("SELECT sqlite_version()").fetchone()
        except sqlite3.Error as exc:
            issues.append(f"SQLite engine unavailable: {exc}")
        return PersistHealth(
            dependencies={"sqlite3": True, "pandas": True},
            writable_paths=writable,
            issues=issues,
        )

    # Helpers ----------------------------------------------------------------------

    def _read_workbook_id(self, conn: sqlite3.Connection, path: Path) -> str:
        try:
            row = conn.execute(WORKBOOK_ID_SQL).fetchone()
        except sqlite3.Error as exc:
            self.logger.warning("No workbook metadata in %s (%s); using %s", path, exc, DEFAULT_WORKBOOK_ID)
            return DEFAULT_WORKBOOK_ID
        if row is None or row[0] is None:
            self.logger.warning("Empty workbook metadata in %s; using %s", path, DEFAULT_WORKBOOK_ID)
            return DEFAULT_WORKBOOK_ID
        return str(row[0])

    def _read_sheets(self, conn: sqlite3.Connection) -> list[Sheet]:
        sheets: list[Sheet] = []
        for sheet_id, name, order in conn.execute(SHEETS_SQL).fetchall():
            sheet = Sheet(
                id=_require_text(sheet_id, "sheet.id"),
                name=_require_text(name, "sheet.name"),
                order=_require_int(order, "sheet.sheet_order"),
            )
            sheet.cells = [_decode_cell(row) for row in conn.execute(CELLS_SQL, (sheet.id,))]
            sheets.append(sheet)
        return sheets

    def _normalize_query(self, params: Mapping[str, object] | CellQuery | None) -> dict[str, object]:
        if params is None:
            return {}
        if isinstance(params, CellQuery):
            raw = params.to_dict()
        else:
            raw = dict(params)
        result: dict[str, object] = {}
        if raw.get("sheet_name"):
            result["sheet_name"] = str(raw["sheet_name"])
        for key in ("min_row", "max_row"):
            value = raw.get(key)
            if value is not None:
                result[key] = int(value)  # type: ignore[call-overload]
        if raw.get("cell_type"):
            result["cell_type"] = str(raw["cell_type"])
        return result


# Convenience facade ---------------------------------------------------------------


def read_sqlite(file_path: str | os.PathLike[str]) -> str:
    """Return the JSON document for the workbook stored at *file_path*."""

    return WorkbookReader().read_json(file_path)


def load_workbook(file_path: str | os.PathLike[str]) -> Workbook:
    return WorkbookReader().read(file_path)


def query_cells(
    file_path: str | os.PathLike[str],
    params: Mapping[str, object] | CellQuery | None = None,
    *,
    root: Path | None = None,
) -> pd.DataFrame:
    store = WorkbookReader(root)
    return store.query(file_path, params)


def reader_healthcheck(root: Path | None = None) -> PersistHealth:
    store = WorkbookReader(root)
    return store.healthcheck()
