"""Typed column materialization.

Fills one fixed-length buffer per resolved column from the full set of data
rows.  Cells whose natural type fits the column type are converted; cells
that are wider than the column type are reported with a ``W_TYPE_COERCED``
warning and stored as missing.  Date serials outside the years 1 to 9999
are stored as missing with a ``W_DATE_OUT_OF_RANGE`` warning.  List columns
keep every cell as an independently typed
:class:`~ingestkit_cells.models.CellValue`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ingestkit_cells.classifier import CellClassifier
from ingestkit_cells.dates import serial_to_datetime
from ingestkit_cells.errors import ErrorCode, IngestError
from ingestkit_cells.models import (
    CellType,
    CellValue,
    ColumnType,
    DateSystem,
    RawCell,
    ResolvedColumn,
    TypedColumn,
    column_to_cell,
)

logger = logging.getLogger("ingestkit_cells")


def format_number(value: float) -> str:
    """Render a number as text with up to 15 significant digits."""
    return f"{value:.15g}"


class ColumnMaterializer:
    """Materializes resolved columns of one worksheet.

    Parameters
    ----------
    classifier:
        Classifier bound to the sheet's style table and NA set.
    date_system:
        Workbook epoch used to convert date serials.
    sheet_name:
        Used for diagnostic context only.
    log_cell_values:
        When ``False`` cell values are redacted from log records.  The
        returned diagnostics always carry the value.
    """

    def __init__(
        self,
        classifier: CellClassifier,
        date_system: DateSystem = DateSystem.SYSTEM_1900,
        sheet_name: str | None = None,
        log_cell_values: bool = False,
    ) -> None:
        self._classifier = classifier
        self._date_system = date_system
        self._sheet_name = sheet_name
        self._log_cell_values = log_cell_values

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def materialize(
        self,
        column: ResolvedColumn,
        cells: Sequence[RawCell],
        first_row: int,
        n_rows: int,
    ) -> tuple[TypedColumn | None, list[IngestError]]:
        """Materialize *column* from its data cells.

        Args:
            column: Name and resolved type of the column.
            cells: The column's data cells in increasing row order.
            first_row: Sheet row index of the first data row.
            n_rows: Number of data rows; the output has exactly this length.

        Returns:
            The typed column, or ``None`` for skip and blank columns, and
            the warnings raised while filling it.
        """
        if column.type is ColumnType.LIST:
            return self._materialize_list(column, cells, first_row, n_rows)

        target = column_to_cell(column.type)
        if target is None:
            # Skip columns are never read.
            return None, []

        values: list[Any] = [None] * n_rows
        diagnostics: list[IngestError] = []

        for cell in cells:
            i = cell.row - first_row
            if i < 0 or i >= n_rows:
                continue
            cell_type = self._classifier.classify(cell)
            if cell_type is CellType.BLANK:
                continue
            if cell_type > target:
                diagnostics.append(self._coercion_warning(column, cell, cell_type))
                continue
            if target is not CellType.NUMERIC and self._date_out_of_range(cell, cell_type):
                diagnostics.append(self._range_warning(column, cell))
                continue
            values[i] = self._convert(cell, cell_type, target)

        if column.type is ColumnType.BLANK:
            return None, diagnostics
        return TypedColumn(name=column.name, type=column.type, values=values), diagnostics

    def render(self, cell: RawCell, cell_type: CellType) -> str | None:
        """Render a classified cell as text.

        Numbers use up to 15 significant digits and dates ISO 8601 with a
        ``Z`` suffix.  A date serial outside the representable range falls
        back to its number.
        """
        if cell_type is CellType.TEXT:
            return cell.text_value
        if cell.numeric_value is None:
            return None
        if cell_type is CellType.DATE:
            moment = serial_to_datetime(cell.numeric_value, self._date_system)
            if moment is not None:
                return moment.isoformat().replace("+00:00", "Z")
        return format_number(cell.numeric_value)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _materialize_list(
        self,
        column: ResolvedColumn,
        cells: Sequence[RawCell],
        first_row: int,
        n_rows: int,
    ) -> tuple[TypedColumn, list[IngestError]]:
        values: list[Any] = [CellValue(type=CellType.BLANK) for _ in range(n_rows)]
        diagnostics: list[IngestError] = []
        for cell in cells:
            i = cell.row - first_row
            if i < 0 or i >= n_rows:
                continue
            cell_type = self._classifier.classify(cell)
            if cell_type is CellType.BLANK:
                continue
            if self._date_out_of_range(cell, cell_type):
                diagnostics.append(self._range_warning(column, cell))
                continue
            values[i] = CellValue(
                type=cell_type, value=self._convert(cell, cell_type, cell_type)
            )
        return TypedColumn(name=column.name, type=ColumnType.LIST, values=values), diagnostics

    def _convert(self, cell: RawCell, cell_type: CellType, target: CellType) -> Any:
        if target is CellType.TEXT:
            return self.render(cell, cell_type)
        if cell.numeric_value is None:
            return None
        if target is CellType.DATE:
            return serial_to_datetime(cell.numeric_value, self._date_system)
        return float(cell.numeric_value)

    def _date_out_of_range(self, cell: RawCell, cell_type: CellType) -> bool:
        return (
            cell_type is CellType.DATE
            and cell.numeric_value is not None
            and serial_to_datetime(cell.numeric_value, self._date_system) is None
        )

    def _coercion_warning(
        self, column: ResolvedColumn, cell: RawCell, cell_type: CellType
    ) -> IngestError:
        rendered = self.render(cell, cell_type)
        location = f"[{cell.row + 1}, {cell.col + 1}]"
        message = f"{location}: expecting {column.type.value}: got '{rendered}'"
        logger.warning(
            "%s: expecting %s: got %s (sheet=%s, column=%s)",
            location,
            column.type.value,
            repr(rendered) if self._log_cell_values else f"<{cell_type.value}>",
            self._sheet_name,
            column.name,
        )
        return IngestError(
            code=ErrorCode.W_TYPE_COERCED,
            message=message,
            sheet_name=self._sheet_name,
            stage="materialize",
            row=cell.row,
            col=cell.col,
            recoverable=True,
        )

    def _range_warning(self, column: ResolvedColumn, cell: RawCell) -> IngestError:
        rendered = format_number(cell.numeric_value)
        location = f"[{cell.row + 1}, {cell.col + 1}]"
        message = f"{location}: date serial out of range: got '{rendered}'"
        logger.warning(
            "%s: date serial out of range: got %s (sheet=%s, column=%s)",
            location,
            repr(rendered) if self._log_cell_values else "<date>",
            self._sheet_name,
            column.name,
        )
        return IngestError(
            code=ErrorCode.W_DATE_OUT_OF_RANGE,
            message=message,
            sheet_name=self._sheet_name,
            stage="materialize",
            row=cell.row,
            col=cell.col,
            recoverable=True,
        )
