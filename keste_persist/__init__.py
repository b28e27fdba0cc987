"""
Persistence facade exposing the SQLite workbook reader and writer.
"""

from .schemas.query import CellQuery
from .schemas.workbook import DEFAULT_WORKBOOK_ID, Cell, SaveResult, Sheet, Workbook
from .stores.base_store import (
    PersistHealth,
    StoreError,
    StoreFilesystemError,
    StoreOpenError,
    StoreQueryError,
    StoreStatementError,
    StoreValidationError,
)
from .stores.sqlite_reader import WorkbookReader, load_workbook, query_cells, read_sqlite
from .stores.sqlite_writer import WorkbookWriter, save_sqlite, save_workbook, write_sqlite
from .utils.sql_dump import build_sql_dump, generate_sql_dump

__all__ = [
    "Cell",
    "CellQuery",
    "DEFAULT_WORKBOOK_ID",
    "PersistHealth",
    "SaveResult",
    "Sheet",
    "StoreError",
    "StoreFilesystemError",
    "StoreOpenError",
    "StoreQueryError",
    "StoreStatementError",
    "StoreValidationError",
    "Workbook",
    "WorkbookReader",
    "WorkbookWriter",
    "build_sql_dump",
    "generate_sql_dump",
    "load_workbook",
    "query_cells",
    "read_sqlite",
    "save_sqlite",
    "save_workbook",
    "write_sqlite",
]
