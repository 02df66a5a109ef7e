"""Per-cell type classification.

Maps one raw cell record to a :class:`~ingestkit_cells.models.CellType`
using the record kind, the workbook style table and the caller's NA set.
Unknown record kinds never fail the read: they classify as numeric and a
``W_UNKNOWN_RECORD_KIND`` diagnostic is collected on the classifier.
"""

from __future__ import annotations

import logging

from ingestkit_cells.errors import ErrorCode, IngestError
from ingestkit_cells.formats import build_custom_date_formats, is_datetime_format_id
from ingestkit_cells.models import CellType, NaSet, RawCell, RecordKind, StyleTable

logger = logging.getLogger("ingestkit_cells")

_BLANK_KINDS = frozenset({RecordKind.BLANK, RecordKind.MUL_BLANK})
_LABEL_KINDS = frozenset({RecordKind.LABEL_SST, RecordKind.LABEL})
_FORMULA_KINDS = frozenset({RecordKind.FORMULA, RecordKind.FORMULA_ALT})
_NUMBER_KINDS = frozenset({RecordKind.NUMBER, RecordKind.RK, RecordKind.MUL_RK})


class CellClassifier:
    """Classifies raw cells of one worksheet.

    Parameters
    ----------
    styles:
        The workbook style table, or ``None`` when the container was decoded
        without formatting information (dates cannot be detected then).
    na:
        Strings to treat as missing.
    sheet_name:
        Used for diagnostic context only.
    """

    def __init__(
        self,
        styles: StyleTable | None,
        na: NaSet,
        sheet_name: str | None = None,
    ) -> None:
        self._styles = styles
        self._na = na
        self._sheet_name = sheet_name
        self._custom_formats: frozenset[int] = (
            build_custom_date_formats(styles.number_formats)
            if styles is not None
            else frozenset()
        )
        self._reported: set[tuple[int, int]] = set()
        self.diagnostics: list[IngestError] = []

    @property
    def custom_formats(self) -> frozenset[int]:
        return self._custom_formats

    def classify(self, cell: RawCell) -> CellType:
        kind = cell.record_kind

        if kind in _BLANK_KINDS:
            return CellType.BLANK

        if kind in _LABEL_KINDS:
            return CellType.BLANK if self._na.contains(cell.text_value) else CellType.TEXT

        if kind in _FORMULA_KINDS:
            if cell.text_value is not None:
                return CellType.BLANK if self._na.contains(cell.text_value) else CellType.TEXT
            if self._na.contains_number(cell.numeric_value):
                return CellType.BLANK
            return CellType.NUMERIC

        if kind in _NUMBER_KINDS:
            if self._na.contains_number(cell.numeric_value):
                return CellType.BLANK
            if self._styles is None:
                return CellType.NUMERIC
            format_id = self._styles.number_format_id(cell.format_id)
            if format_id is not None and is_datetime_format_id(
                format_id, self._custom_formats
            ):
                return CellType.DATE
            return CellType.NUMERIC

        self._report_unknown(cell)
        return CellType.NUMERIC

    def _report_unknown(self, cell: RawCell) -> None:
        key = (cell.row, cell.col)
        if key in self._reported:
            return
        self._reported.add(key)
        message = f"Unknown type: {cell.record_kind} at [{cell.row + 1}, {cell.col + 1}]"
        logger.warning("%s (sheet=%s); reading as numeric.", message, self._sheet_name)
        self.diagnostics.append(
            IngestError(
                code=ErrorCode.W_UNKNOWN_RECORD_KIND,
                message=message,
                sheet_name=self._sheet_name,
                stage="classify",
                row=cell.row,
                col=cell.col,
                recoverable=True,
            )
        )
