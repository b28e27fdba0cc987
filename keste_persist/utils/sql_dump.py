"""
RESPONSIBILITIES
- Turn a Workbook document into a self-sufficient SQL statement batch.
- Emit exactly the schema the importer reads (workbook/sheet/cell tables).
PROCESS OVERVIEW
1. Validate sheet ids and (row, col) uniqueness per sheet.
2. Yield the transaction start and the schema DDL.
3. Yield workbook/sheet inserts followed by batched multi-row cell inserts.
4. Yield the commit; build_sql_dump() joins everything into one string.
"""

from __future__ import annotations

from typing import Iterator

from keste_persist.schemas.workbook import Cell, Workbook
from keste_persist.stores.base_store import StoreValidationError

CELL_BATCH_SIZE = 100

SCHEMA_DDL = """
CREATE TABLE workbook (
  id TEXT PRIMARY KEY,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE sheet (
  id TEXT PRIMARY KEY,
  workbook_id TEXT NOT NULL,
  name TEXT NOT NULL,
  sheet_order INTEGER NOT NULL,
  FOREIGN KEY (workbook_id) REFERENCES workbook(id)
);

CREATE TABLE cell (
  sheet_id TEXT NOT NULL,
  row INTEGER NOT NULL,
  col INTEGER NOT NULL,
  type TEXT NOT NULL,
  value TEXT,
  formula TEXT,
  style_id INTEGER,
  PRIMARY KEY (sheet_id, row, col),
  FOREIGN KEY (sheet_id) REFERENCES sheet(id)
);

CREATE INDEX ix_cell_sheet_row ON cell(sheet_id, row);
CREATE INDEX ix_cell_formula ON cell(formula) WHERE formula IS NOT NULL;
"""

_CELL_INSERT = "INSERT INTO cell (sheet_id, row, col, type, value, formula, style_id) VALUES "


def escape_sql(text: str) -> str:
    return text.replace("'", "''")


def _text(value: str | None) -> str:
    if value is None:
        return "NULL"
    return f"'{escape_sql(value)}'"


def _integer(value: int | None) -> str:
    if value is None:
        return "NULL"
    return str(int(value))


def _cell_tuple(sheet_id: str, cell: Cell) -> str:
    return (
        f"({_text(sheet_id)}, {_integer(cell.row)}, {_integer(cell.col)}, {_text(cell.type)}, "
        f"{_text(cell.value)}, {_text(cell.formula)}, {_integer(cell.style_id)})"
    )


def validate_workbook(workbook: Workbook) -> None:
    """Reject documents the cell/sheet primary keys would refuse."""

    seen_sheets: set[str] = set()
    for sheet in workbook.sheets:
        if sheet.id in seen_sheets:
            raise StoreValidationError(f"Duplicate sheet id: {sheet.id}")
        seen_sheets.add(sheet.id)
        seen_cells: set[tuple[int, int]] = set()
        for cell in sheet.cells:
            if cell.key in seen_cells:
                raise StoreValidationError(
                    f"Duplicate cell ({cell.row}, {cell.col}) in sheet {sheet.name!r}"
                )
            seen_cells.add(cell.key)


def generate_sql_dump(workbook: Workbook) -> Iterator[str]:
    """Yield the statement batch that recreates *workbook* in an empty database."""

    validate_workbook(workbook)
    yield "BEGIN TRANSACTION;\n"
    yield SCHEMA_DDL
    yield f"\nINSERT INTO workbook (id) VALUES ({_text(workbook.id)});\n"

    for sheet in workbook.sheets:
        yield (
            "INSERT INTO sheet (id, workbook_id, name, sheet_order) VALUES "
            f"({_text(sheet.id)}, {_text(workbook.id)}, {_text(sheet.name)}, {_integer(sheet.order)});\n"
        )
        batch: list[str] = []
        for cell in sheet.cells:
            batch.append(_cell_tuple(sheet.id, cell))
            if len(batch) >= CELL_BATCH_SIZE:
                yield _CELL_INSERT + ", ".join(batch) + ";\n"
                batch.clear()
        if batch:
            yield _CELL_INSERT + ", ".join(batch) + ";\n"

    yield "COMMIT;\n"


def build_sql_dump(workbook: Workbook) -> str:
    return "".join(generate_sql_dump(workbook))
