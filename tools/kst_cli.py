"""
RESPONSIBILITIES
- Typer CLI for reading, writing and converting .kst workbook files.
- Stands in for the desktop command layer: every command hands a path and a payload to the engine.
PROCESS OVERVIEW
1. read -> print the JSON document of a .kst file.
2. save -> apply a SQL dump file and publish it atomically at the output path.
3. dump -> turn a workbook JSON document into a SQL statement batch.
4. convert -> .xlsx to .kst or .kst to .xlsx.
5. query -> preview cells as a table.
6. autosave-path -> print (and create) the autosave location.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn, Optional

import typer

from keste_persist.schemas.query import CellQuery
from keste_persist.schemas.workbook import Workbook
from keste_persist.stores.base_store import StoreError
from keste_persist.stores.sqlite_reader import load_workbook, query_cells, read_sqlite
from keste_persist.stores.sqlite_writer import save_sqlite, save_workbook
from keste_persist.utils.log import get_logger
from keste_persist.utils.paths import autosave_path
from keste_persist.utils.sql_dump import build_sql_dump
from keste_persist.utils.xlsx_bridge import workbook_from_xlsx, workbook_to_xlsx

app = typer.Typer(help="Read and write Keste (.kst) SQLite workbooks.")
logger = get_logger("tools.kst_cli")

_KST_SUFFIXES = {".kst", ".db", ".sqlite"}


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _load_json_workbook(path: Path) -> Workbook:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise typer.BadParameter(f"Invalid workbook JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter("Workbook JSON must be an object")
    try:
        return Workbook.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise typer.BadParameter(f"Invalid workbook JSON: {exc}") from exc


@app.command("read")
def read_command(
    path: Path = typer.Argument(..., help="The .kst file to read."),
    pretty: bool = typer.Option(False, help="Indent the JSON output."),
) -> None:
    """Print the workbook document stored in a .kst file."""

    try:
        payload = read_sqlite(path)
    except StoreError as exc:
        _fail(exc)
    if pretty:
        payload = json.dumps(json.loads(payload), ensure_ascii=False, indent=2)
    typer.echo(payload)


@app.command("save")
def save_command(
    dump_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="SQL dump to apply."),
    out_path: Path = typer.Argument(..., help="Destination .kst file."),
) -> None:
    """Apply a SQL statement batch to a fresh database published at OUT_PATH."""

    try:
        sql_dump = dump_file.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"SQL dump is not UTF-8 text: {exc}") from exc
    try:
        result = save_sqlite(sql_dump, out_path)
    except StoreError as exc:
        _fail(exc)
    typer.echo(json.dumps(result.to_dict()))


@app.command("dump")
def dump_command(
    json_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Workbook JSON document."),
    output: Optional[Path] = typer.Option(None, help="Write the SQL batch here instead of stdout."),
) -> None:
    """Generate the SQL statement batch for a workbook JSON document."""

    workbook = _load_json_workbook(json_file)
    try:
        sql_dump = build_sql_dump(workbook)
    except StoreError as exc:
        _fail(exc)
    if output is None:
        typer.echo(sql_dump, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sql_dump, encoding="utf-8")
    typer.echo(f"Wrote {len(sql_dump)} characters to {output}")


@app.command("convert")
def convert_command(
    source: Path = typer.Argument(..., help="Source .xlsx or .kst file."),
    dest: Path = typer.Argument(..., help="Destination .kst or .xlsx file."),
    workbook_id: Optional[str] = typer.Option(None, help="Workbook id used when importing xlsx."),
) -> None:
    """Convert between .xlsx and .kst files."""

    src_suffix = source.suffix.lower()
    dest_suffix = dest.suffix.lower()
    try:
        if src_suffix == ".xlsx" and dest_suffix in _KST_SUFFIXES:
            workbook = workbook_from_xlsx(source, workbook_id)
            result = save_workbook(workbook, dest)
            typer.echo(f"Saved {dest} ({result.bytes_written} bytes)")
        elif src_suffix in _KST_SUFFIXES and dest_suffix == ".xlsx":
            workbook = load_workbook(source)
            workbook_to_xlsx(workbook, dest)
            typer.echo(f"Saved {dest}")
        else:
            raise typer.BadParameter(f"Unsupported conversion: {src_suffix or '?'} -> {dest_suffix or '?'}")
    except StoreError as exc:
        _fail(exc)
    logger.info("Converted %s -> %s", source, dest)


@app.command("query")
def query_command(
    path: Path = typer.Argument(..., help="The .kst file to query."),
    sheet: Optional[str] = typer.Option(None, help="Sheet name filter."),
    min_row: Optional[int] = typer.Option(None, help="Lowest row inclusive."),
    max_row: Optional[int] = typer.Option(None, help="Highest row inclusive."),
    cell_type: Optional[str] = typer.Option(None, "--type", help="Cell type tag filter."),
    limit: int = typer.Option(20, help="Preview row limit."),
) -> None:
    """Run a filtered cell query and show a quick preview."""

    query = CellQuery(sheet_name=sheet, min_row=min_row, max_row=max_row, cell_type=cell_type)
    try:
        frame = query_cells(path, query)
    except StoreError as exc:
        _fail(exc)
    typer.echo(f"Matched {len(frame)} cells")
    if not frame.empty:
        typer.echo(frame.head(limit).to_string(index=False))


@app.command("autosave-path")
def autosave_path_command(
    root: Optional[Path] = typer.Option(None, help="Alternate persistence root (defaults to ~/Keste)."),
) -> None:
    """Print the autosave workbook location, creating its directory."""

    typer.echo(str(autosave_path(root)))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
