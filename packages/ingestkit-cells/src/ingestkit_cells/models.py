"""Pydantic data models and enumerations for ingestkit-cells.

This module defines the data model layer shared by every stage of the
pipeline: the native record kinds handed over by the container sources, the
ordered cell/column type enumerations, the raw cell and style table models,
and the resolved/materialized column models returned to callers.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict, PrivateAttr

from ingestkit_cells.errors import IngestError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class RecordKind(IntEnum):
    """Native cell record ids, using the BIFF numbering for both containers.

    The ``.xlsx`` source maps its cell types onto the same ids so that the
    classifier only ever deals with one vocabulary.  Integers outside this
    enum are unknown record kinds.
    """

    FORMULA = 6
    MUL_RK = 189
    MUL_BLANK = 190
    LABEL_SST = 253
    BLANK = 513
    NUMBER = 515
    LABEL = 516
    RK = 638
    FORMULA_ALT = 1030


# Not a recognized kind: booleans and error values in legacy files.
BOOLERR_RECORD = 517


class DateSystem(str, Enum):
    """Workbook date system (epoch) used to interpret date serials."""

    SYSTEM_1900 = "1900"
    SYSTEM_1904 = "1904"


class CellType(str, Enum):
    """Type of a single classified cell.

    Members are ordered ``BLANK < DATE < NUMERIC < TEXT``: a later type can
    hold the evidence of any earlier one.
    """

    BLANK = "blank"
    DATE = "date"
    NUMERIC = "numeric"
    TEXT = "text"

    @property
    def rank(self) -> int:
        return _CELL_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CellType):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, CellType):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, CellType):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, CellType):
            return NotImplemented
        return self.rank >= other.rank


_CELL_RANK: dict[CellType, int] = {
    CellType.BLANK: 0,
    CellType.DATE: 1,
    CellType.NUMERIC: 2,
    CellType.TEXT: 3,
}


class ColumnType(str, Enum):
    """Resolved type of an output column.

    ``BLANK`` is a column full of blank cells (guessed); ``LIST`` and
    ``SKIP`` can only be requested by the caller.
    """

    BLANK = "blank"
    DATE = "date"
    NUMERIC = "numeric"
    TEXT = "text"
    LIST = "list"
    SKIP = "skip"


_CELL_TO_COLUMN: dict[CellType, ColumnType] = {
    CellType.BLANK: ColumnType.BLANK,
    CellType.DATE: ColumnType.DATE,
    CellType.NUMERIC: ColumnType.NUMERIC,
    CellType.TEXT: ColumnType.TEXT,
}

_COLUMN_TO_CELL: dict[ColumnType, CellType] = {
    column: cell for cell, column in _CELL_TO_COLUMN.items()
}


def cell_to_column(cell_type: CellType) -> ColumnType:
    """Widen a cell type into the column type of the same name."""
    return _CELL_TO_COLUMN[cell_type]


def column_to_cell(column_type: ColumnType) -> CellType | None:
    """Narrow a column type back to its cell type (``None`` for list/skip)."""
    return _COLUMN_TO_CELL.get(column_type)


def max_cell_type(types: Iterable[CellType]) -> CellType:
    """Promote a sequence of cell types to the widest one (``BLANK`` if empty)."""
    result = CellType.BLANK
    for cell_type in types:
        if cell_type > result:
            result = cell_type
    return result


# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------


class RawCell(BaseModel):
    """One decoded spreadsheet cell, before type resolution.

    Exactly one of ``numeric_value`` / ``text_value`` is meaningful for a
    non-blank record.  For formula records a populated ``text_value`` marks
    a text-valued cached result.
    """

    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    record_kind: int
    numeric_value: float | None = None
    text_value: str | None = None
    format_id: int | None = None


class NaSet(BaseModel):
    """Ordered set of strings that mean "missing".

    Text cells match by exact string equality.  Numeric cells match any NA
    string that parses as the same number.
    """

    values: tuple[str, ...] = ("",)

    _numbers: frozenset[float] = PrivateAttr(default=frozenset())

    def model_post_init(self, __context: Any) -> None:
        self.values = tuple(dict.fromkeys(self.values))
        numbers: set[float] = set()
        for value in self.values:
            try:
                numbers.add(float(value))
            except ValueError:
                continue
        self._numbers = frozenset(numbers)

    def contains(self, text: str | None) -> bool:
        return text is not None and text in self.values

    def contains_number(self, value: float | None) -> bool:
        return value is not None and value in self._numbers


class StyleTable(BaseModel):
    """Workbook style lookup used for date detection.

    ``xf_formats[i]`` is the number-format id of style (XF) record ``i``;
    ``number_formats`` maps number-format ids to their format strings.
    """

    xf_formats: list[int] = []
    number_formats: dict[int, str] = {}

    def number_format_id(self, format_id: int | None) -> int | None:
        if format_id is None or format_id < 0 or format_id >= len(self.xf_formats):
            return None
        return self.xf_formats[format_id]


class SheetCells(BaseModel):
    """A decoded worksheet as handed over by a container source."""

    name: str
    cells: list[RawCell] = []
    styles: StyleTable | None = None
    date_system: DateSystem = DateSystem.SYSTEM_1900


# ---------------------------------------------------------------------------
# Resolution and output
# ---------------------------------------------------------------------------


class CellValue(BaseModel):
    """A singleton, independently typed value stored in a list column."""

    type: CellType
    value: float | datetime | str | None = None


class ResolvedColumn(BaseModel):
    """Name and resolved type of one input column."""

    name: str
    type: ColumnType


class TypedColumn(BaseModel):
    """A materialized column; ``values`` holds one entry per row, ``None`` = missing."""

    name: str
    type: ColumnType
    values: list[Any]


class ReadResult(BaseModel):
    """Final result returned after reading one sheet."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    sheet_name: str
    frame: pd.DataFrame
    columns: list[ResolvedColumn]
    rows_read: int
    warnings: list[str] = []
    error_details: list[IngestError] = []
