"""
RESPONSIBILITIES
- Provide the typed filter container used by cell queries.
PROCESS OVERVIEW
1. Callers instantiate CellQuery with the filters they need.
2. to_dict() exposes the canonical keys consumed by WorkbookReader.query().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


@dataclass(slots=True)
class CellQuery:
    sheet_name: str | None = None
    min_row: int | None = None
    max_row: int | None = None
    cell_type: str | None = None

    def to_dict(self) -> Mapping[str, object]:
        return {
            "sheet_name": self.sheet_name,
            "min_row": self.min_row,
            "max_row": self.max_row,
            "cell_type": self.cell_type,
        }
