"""
RESPONSIBILITIES
- Provide typed containers for the workbook -> sheets -> cells document.
- Fix the JSON field names exchanged with callers (sheetId, styleId, bytesWritten).
PROCESS OVERVIEW
1. The importer builds Workbook/Sheet/Cell records from ordered SQL rows.
2. to_dict() produces the canonical JSON shape; absent optionals stay None.
3. from_dict() rebuilds records from that shape for dumps and conversions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_WORKBOOK_ID = "workbook-1"


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _optional_int(value: object) -> int | None:
    if value is None:
        return None
    return int(value)  # type: ignore[call-overload]


@dataclass(slots=True)
class Cell:
    row: int
    col: int
    type: str
    value: str | None = None
    formula: str | None = None
    style_id: int | None = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "row": self.row,
            "col": self.col,
            "type": self.type,
            "value": self.value,
            "formula": self.formula,
            "styleId": self.style_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cell":
        return cls(
            row=int(data["row"]),
            col=int(data["col"]),
            type=str(data["type"]),
            value=_optional_text(data.get("value")),
            formula=_optional_text(data.get("formula")),
            style_id=_optional_int(data.get("styleId")),
        )


@dataclass(slots=True)
class Sheet:
    id: str
    name: str
    order: int
    cells: list[Cell] = field(default_factory=list)

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "sheetId": self.order,
            "cells": [cell.to_dict() for cell in self.cells],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Sheet":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            order=int(data["sheetId"]),
            cells=[Cell.from_dict(item) for item in data.get("cells", [])],
        )


@dataclass(slots=True)
class Workbook:
    id: str = DEFAULT_WORKBOOK_ID
    sheets: list[Sheet] = field(default_factory=list)

    def cell_count(self) -> int:
        return sum(len(sheet.cells) for sheet in self.sheets)

    def to_dict(self) -> MutableMapping[str, object]:
        return {
            "id": self.id,
            "sheets": [sheet.to_dict() for sheet in self.sheets],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workbook":
        raw_id = data.get("id")
        return cls(
            id=str(raw_id) if raw_id is not None else DEFAULT_WORKBOOK_ID,
            sheets=[Sheet.from_dict(item) for item in data.get("sheets", [])],
        )


class SaveResult(BaseModel):
    """Outcome of an export returned to the command layer."""

    model_config = ConfigDict(populate_by_name=True)

    bytes_written: int = Field(alias="bytesWritten", ge=0)

    def to_dict(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)
