"""Modern-format (.xlsx / .xlsm) container source built on openpyxl.

The workbook is opened with ``data_only=True`` so formula cells yield their
cached results.  openpyxl converts date-formatted numbers to Python
date/time objects; the underlying serial is restored under the workbook epoch
so that date detection stays with the classifier.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any

import openpyxl
from openpyxl.styles.numbers import BUILTIN_FORMATS_REVERSE
from openpyxl.utils.datetime import MAC_EPOCH, to_excel
from openpyxl.worksheet.worksheet import Worksheet

from ingestkit_cells.formats import FIRST_CUSTOM_FORMAT_ID
from ingestkit_cells.models import DateSystem, RawCell, RecordKind, SheetCells, StyleTable

logger = logging.getLogger("ingestkit_cells")


class _FormatInterner:
    """Assigns style indexes to number-format strings as they are met."""

    def __init__(self) -> None:
        self._index: dict[str, int] = {}
        self._next_custom = FIRST_CUSTOM_FORMAT_ID
        self.styles = StyleTable()

    def intern(self, format_string: str | None) -> int:
        format_string = format_string or "General"
        if format_string in self._index:
            return self._index[format_string]
        format_id = BUILTIN_FORMATS_REVERSE.get(format_string)
        if format_id is None:
            format_id = self._next_custom
            self._next_custom += 1
        self.styles.number_formats[format_id] = format_string
        self.styles.xf_formats.append(format_id)
        style_index = len(self.styles.xf_formats) - 1
        self._index[format_string] = style_index
        return style_index


class XlsxCellSource:
    """Decodes ``.xlsx`` worksheets into raw cell records using openpyxl."""

    def sheet_names(self, path: str) -> list[str]:
        wb = openpyxl.load_workbook(path, data_only=True)
        try:
            return [ws.title for ws in wb.worksheets]
        finally:
            wb.close()

    def load_sheet(self, path: str, sheet_index: int) -> SheetCells:
        wb = openpyxl.load_workbook(path, data_only=True)
        try:
            ws = wb.worksheets[sheet_index]
            epoch = wb.epoch
            date_system = (
                DateSystem.SYSTEM_1904 if epoch == MAC_EPOCH else DateSystem.SYSTEM_1900
            )
            interner = _FormatInterner()
            cells = self._read_cells(ws, interner, epoch)
        finally:
            wb.close()

        logger.debug(
            "Decoded %d cells from sheet '%s' (%s date system).",
            len(cells),
            ws.title,
            date_system.value,
        )
        return SheetCells(
            name=ws.title,
            cells=cells,
            styles=interner.styles,
            date_system=date_system,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_cells(
        self, ws: Worksheet, interner: _FormatInterner, epoch: datetime.datetime
    ) -> list[RawCell]:
        cells: list[RawCell] = []
        for row in ws.iter_rows():
            for cell in row:
                if cell.value is None:
                    # Styled but empty cells still mark the sheet extent.
                    if not cell.has_style:
                        continue
                    kind, numeric, text = RecordKind.BLANK, None, None
                else:
                    kind, numeric, text = self._decode(cell.value, cell.data_type, epoch)
                cells.append(
                    RawCell(
                        row=cell.row - 1,
                        col=cell.column - 1,
                        record_kind=kind,
                        numeric_value=numeric,
                        text_value=text,
                        format_id=interner.intern(cell.number_format),
                    )
                )
        return cells

    @staticmethod
    def _decode(
        value: Any, data_type: str, epoch: datetime.datetime
    ) -> tuple[int, float | None, str | None]:
        if data_type == "e":
            return RecordKind.LABEL, None, str(value)
        if isinstance(value, str):
            return RecordKind.LABEL_SST, None, value
        if isinstance(value, bool):
            return RecordKind.NUMBER, float(value), None
        if isinstance(value, (int, float)):
            return RecordKind.NUMBER, float(value), None
        if isinstance(
            value,
            (datetime.datetime, datetime.date, datetime.time, datetime.timedelta),
        ):
            return RecordKind.NUMBER, float(to_excel(value, epoch)), None
        return RecordKind.LABEL_SST, None, str(value)
