from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from keste_persist.schemas.query import CellQuery
from keste_persist.schemas.workbook import DEFAULT_WORKBOOK_ID
from keste_persist.stores.base_store import StoreOpenError, StoreQueryError
from keste_persist.stores.sqlite_reader import (
    WorkbookReader,
    load_workbook,
    query_cells,
    read_sqlite,
)


def test_sheets_and_cells_come_back_ordered(make_db, schema: str) -> None:
    path = make_db(
        schema
        + """
        INSERT INTO workbook (id) VALUES ('wb-42');
        INSERT INTO sheet VALUES ('s-b', 'Second', 7);
        INSERT INTO sheet VALUES ('s-a', 'First', 2);
        INSERT INTO sheet VALUES ('s-c', 'Third', 30);
        INSERT INTO cell VALUES ('s-a', 2, 0, 's', 'c', NULL, NULL);
        INSERT INTO cell VALUES ('s-a', 0, 5, 's', 'b', NULL, NULL);
        INSERT INTO cell VALUES ('s-a', 0, 1, 's', 'a', NULL, NULL);
        INSERT INTO cell VALUES ('s-b', 1, 1, 'n', '3', NULL, NULL);
        """
    )

    document = json.loads(read_sqlite(path))

    assert document["id"] == "wb-42"
    assert [sheet["name"] for sheet in document["sheets"]] == ["First", "Second", "Third"]
    assert [sheet["sheetId"] for sheet in document["sheets"]] == [2, 7, 30]
    first = document["sheets"][0]
    assert [(cell["row"], cell["col"]) for cell in first["cells"]] == [(0, 1), (0, 5), (2, 0)]
    assert [cell["value"] for cell in first["cells"]] == ["a", "b", "c"]
    assert document["sheets"][2]["cells"] == []


def test_json_payload_uses_contract_field_names(make_db, schema: str) -> None:
    path = make_db(
        schema
        + """
        INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);
        INSERT INTO cell VALUES ('s1', 1, 1, 'n', '2', 'A1+1', 4);
        """
    )

    document = json.loads(read_sqlite(path))

    assert set(document) == {"id", "sheets"}
    sheet = document["sheets"][0]
    assert set(sheet) == {"id", "name", "sheetId", "cells"}
    assert sheet["cells"][0] == {
        "row": 1,
        "col": 1,
        "type": "n",
        "value": "2",
        "formula": "A1+1",
        "styleId": 4,
    }


def test_missing_metadata_row_defaults_workbook_id(make_db, schema: str) -> None:
    path = make_db(schema + "INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);")

    assert load_workbook(path).id == DEFAULT_WORKBOOK_ID


def test_missing_metadata_table_defaults_workbook_id(make_db) -> None:
    path = make_db(
        """
        CREATE TABLE sheet (id TEXT, name TEXT, sheet_order INTEGER);
        CREATE TABLE cell (sheet_id TEXT, row INTEGER, col INTEGER, type TEXT,
                           value TEXT, formula TEXT, style_id INTEGER);
        """
    )

    workbook = load_workbook(path)

    assert workbook.id == "workbook-1"
    assert workbook.sheets == []


def test_missing_sheet_table_fails(make_db) -> None:
    path = make_db("CREATE TABLE workbook (id TEXT); INSERT INTO workbook VALUES ('wb');")

    with pytest.raises(StoreQueryError):
        read_sqlite(path)


def test_missing_cell_table_fails(make_db) -> None:
    path = make_db(
        """
        CREATE TABLE sheet (id TEXT, name TEXT, sheet_order INTEGER);
        INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);
        """
    )

    with pytest.raises(StoreQueryError):
        read_sqlite(path)


def test_missing_column_fails(make_db) -> None:
    path = make_db(
        """
        CREATE TABLE sheet (id TEXT, name TEXT, sheet_order INTEGER);
        CREATE TABLE cell (sheet_id TEXT, row INTEGER, col INTEGER, type TEXT, value TEXT);
        INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);
        """
    )

    with pytest.raises(StoreQueryError):
        read_sqlite(path)


def test_undecodable_row_aborts_import(make_db, schema: str) -> None:
    path = make_db(
        schema
        + """
        INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);
        INSERT INTO cell VALUES ('s1', 0, 0, 's', 'ok', NULL, NULL);
        INSERT INTO cell VALUES ('s1', 0, 1, 's', 'bad', NULL, 'not-a-style');
        """
    )

    with pytest.raises(StoreQueryError, match="style_id"):
        read_sqlite(path)


def test_missing_file_is_open_failure(tmp_path: Path) -> None:
    target = tmp_path / "absent.kst"

    with pytest.raises(StoreOpenError):
        read_sqlite(target)
    assert not target.exists()


def test_corrupt_file_is_open_failure(tmp_path: Path) -> None:
    target = tmp_path / "garbage.kst"
    target.write_bytes(b"this is definitely not a sqlite database" * 64)

    with pytest.raises(StoreOpenError):
        read_sqlite(target)


def test_optional_fields_stay_null(make_db, schema: str) -> None:
    path = make_db(
        schema
        + """
        INSERT INTO sheet VALUES ('s1', 'Sheet1', 0);
        INSERT INTO cell (sheet_id, row, col, type) VALUES ('s1', 3, 3, 's');
        """
    )

    cell = json.loads(read_sqlite(path))["sheets"][0]["cells"][0]

    assert cell["value"] is None
    assert cell["formula"] is None
    assert cell["styleId"] is None


def test_query_filters_cells(make_db, schema: str, tmp_path: Path) -> None:
    path = make_db(
        schema
        + """
        INSERT INTO sheet VALUES ('s1', 'Data', 0);
        INSERT INTO sheet VALUES ('s2', 'Other', 1);
        INSERT INTO cell VALUES ('s1', 1, 1, 's', 'name', NULL, NULL);
        INSERT INTO cell VALUES ('s1', 2, 1, 'n', '10', NULL, 2);
        INSERT INTO cell VALUES ('s1', 3, 1, 'n', '20', NULL, NULL);
        INSERT INTO cell VALUES ('s2', 2, 1, 'n', '99', NULL, NULL);
        """
    )

    frame = query_cells(path, CellQuery(sheet_name="Data", min_row=2, cell_type="n"), root=tmp_path / "home")

    assert list(frame["value"]) == ["10", "20"]
    assert list(frame["row"]) == [2, 3]
    assert frame["style_id"].iloc[0] == 2
    assert frame["style_id"].isna().iloc[1]

    everything = WorkbookReader(tmp_path / "home").query(path)
    assert list(everything["sheet_name"]) == ["Data", "Data", "Data", "Other"]


def test_reader_healthcheck(tmp_path: Path) -> None:
    health = WorkbookReader(tmp_path / "home").healthcheck()

    assert health.is_healthy()
    assert health.dependencies["sqlite3"]


def test_null_metadata_id_defaults_workbook_id(make_db) -> None:
    path = make_db(
        """
        CREATE TABLE workbook (id TEXT);
        CREATE TABLE sheet (id TEXT, name TEXT, sheet_order INTEGER);
        CREATE TABLE cell (sheet_id TEXT, row INTEGER, col INTEGER, type TEXT,
                           value TEXT, formula TEXT, style_id INTEGER);
        INSERT INTO workbook VALUES (NULL);
        """
    )

    assert json.loads(read_sqlite(path))["id"] == "workbook-1"


def test_exclusively_locked_file_is_open_failure(make_db, schema: str) -> None:
    path = make_db(schema + "INSERT INTO workbook VALUES ('wb');")

    with closing(sqlite3.connect(str(path), isolation_level=None)) as holder:
        holder.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(StoreOpenError):
                read_sqlite(path)
        finally:
            holder.execute("ROLLBACK")
