"""
RESPONSIBILITIES
- Convert between Workbook documents and .xlsx files via openpyxl.
- Save xlsx output atomically using a temporary file swap.
PROCESS OVERVIEW
1. workbook_to_xlsx() writes one worksheet per sheet with 1-based coordinates.
2. Typed values are restored from their text encoding (n -> number, b -> bool).
3. workbook_from_xlsx() reads values and formulas back into Cell records.
"""

from __future__ import annotations

import os
from datetime import date, datetime, time
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import Workbook as XlsxWorkbook
from openpyxl import load_workbook as load_xlsx
from openpyxl.utils.exceptions import InvalidFileException

from keste_persist.schemas.workbook import DEFAULT_WORKBOOK_ID, Cell, Sheet, Workbook
from keste_persist.stores.base_store import StoreFilesystemError, StoreOpenError, StoreValidationError
from keste_persist.utils.paths import temp_path_for

_TRUE_TOKENS = {"1", "true"}


def _atomic_save(workbook: XlsxWorkbook, path: Path) -> None:
    tmp_path = temp_path_for(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        workbook.save(tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        raise StoreFilesystemError(f"Cannot save {path}: {exc}") from exc


def _number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as exc:
        raise StoreValidationError(f"Invalid numeric cell value: {text!r}") from exc


def _xlsx_value(cell: Cell) -> object:
    if cell.formula:
        return f"={cell.formula}"
    if cell.value is None:
        return None
    if cell.type == "n":
        return _number(cell.value)
    if cell.type == "b":
        return cell.value.strip().lower() in _TRUE_TOKENS
    return cell.value


def workbook_to_xlsx(workbook: Workbook, path: str | os.PathLike[str]) -> Path:
    """Write *workbook* to an .xlsx file and return its path."""

    target = Path(path)
    book = XlsxWorkbook()
    book.remove(book.active)
    for sheet in workbook.sheets:
        try:
            worksheet = book.create_sheet(title=sheet.name)
        except ValueError as exc:
            raise StoreValidationError(f"Invalid sheet name {sheet.name!r}: {exc}") from exc
        for cell in sheet.cells:
            if cell.row < 1 or cell.col < 1:
                raise StoreValidationError(
                    f"Cell ({cell.row}, {cell.col}) in sheet {sheet.name!r} has no xlsx address"
                )
            value = _xlsx_value(cell)
            xl_cell = worksheet.cell(row=cell.row, column=cell.col, value=value)
            if isinstance(value, str) and not cell.formula:
                # openpyxl treats any "=..." string as a formula.
                xl_cell.data_type = "s"
    if not workbook.sheets:
        book.create_sheet(title="Sheet1")
    _atomic_save(book, target)
    return target


def _formula_text(raw: object) -> str:
    # Array and data-table formulas carry their source in .text.
    text = raw if isinstance(raw, str) else getattr(raw, "text", None) or str(raw)
    return text[1:] if text.startswith("=") else text


def _cell_from_xlsx(
    raw: object, row: int, col: int, style_id: int | None, *, is_formula: bool = False
) -> Cell | None:
    if raw is None:
        return None
    if is_formula:
        return Cell(row=row, col=col, type="str", formula=_formula_text(raw), style_id=style_id)
    if isinstance(raw, bool):
        return Cell(row=row, col=col, type="b", value="1" if raw else "0", style_id=style_id)
    if isinstance(raw, (int, float)):
        return Cell(row=row, col=col, type="n", value=repr(raw), style_id=style_id)
    if isinstance(raw, (datetime, date, time)):
        return Cell(row=row, col=col, type="d", value=raw.isoformat(), style_id=style_id)
    return Cell(row=row, col=col, type="s", value=str(raw), style_id=style_id)


def workbook_from_xlsx(path: str | os.PathLike[str], workbook_id: str | None = None) -> Workbook:
    """Read an .xlsx file into a Workbook document (1-based coordinates)."""

    source = Path(path)
    if not source.is_file():
        raise StoreOpenError(f"Workbook file not found: {source}")
    try:
        book = load_xlsx(source)
    except (OSError, ValueError, KeyError, BadZipFile, InvalidFileException) as exc:
        raise StoreOpenError(f"Cannot open workbook {source}: {exc}") from exc
    try:
        result = Workbook(id=workbook_id or DEFAULT_WORKBOOK_ID)
        for index, worksheet in enumerate(book.worksheets, start=1):
            sheet = Sheet(id=f"sheet-{index}", name=worksheet.title, order=index)
            for row in worksheet.iter_rows():
                for xl_cell in row:
                    if xl_cell.value is None:
                        continue
                    style_id = xl_cell.style_id if xl_cell.has_style else None
                    cell = _cell_from_xlsx(
                        xl_cell.value,
                        xl_cell.row,
                        xl_cell.column,
                        style_id,
                        is_formula=xl_cell.data_type == "f",
                    )
                    if cell is not None:
                        sheet.cells.append(cell)
            result.sheets.append(sheet)
        return result
    finally:
        book.close()
