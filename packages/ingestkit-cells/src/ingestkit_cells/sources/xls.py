"""Legacy-format (.xls) container source built on xlrd.

The workbook is opened with formatting information so that each cell keeps
its style (XF) index and the style table can be handed to the classifier.
When formatting information cannot be loaded the workbook is reopened
without it and dates can no longer be detected (minimal mode).
"""

from __future__ import annotations

import logging

from ingestkit_cells.errors import CellReadException, ErrorCode, IngestError
from ingestkit_cells.models import (
    BOOLERR_RECORD,
    DateSystem,
    RawCell,
    RecordKind,
    SheetCells,
    StyleTable,
)

logger = logging.getLogger("ingestkit_cells")

# Import guard: xlrd is an optional dependency
try:
    import xlrd  # type: ignore[import-untyped]
except ImportError:
    xlrd = None  # type: ignore[assignment]


class XlsCellSource:
    """Decodes ``.xls`` worksheets into raw cell records using xlrd.

    Diagnostics raised while opening the workbook (for example missing
    formatting information) are collected on ``diagnostics``.
    """

    def __init__(self) -> None:
        self.diagnostics: list[IngestError] = []

    def sheet_names(self, path: str) -> list[str]:
        book = self._open(path, formatting_info=False)
        return list(book.sheet_names())

    def load_sheet(self, path: str, sheet_index: int) -> SheetCells:
        styles: StyleTable | None = None
        try:
            book = self._open(path, formatting_info=True)
            styles = StyleTable(
                xf_formats=[xf.format_key for xf in book.xf_list],
                number_formats={
                    key: fmt.format_str for key, fmt in book.format_map.items()
                },
            )
        except CellReadException:
            raise
        except Exception as exc:
            logger.warning(
                "Formatting information unavailable for %s: %s; "
                "dates will read as numbers.",
                path,
                exc,
            )
            self.diagnostics.append(
                IngestError(
                    code=ErrorCode.W_STYLES_UNAVAILABLE,
                    message=f"Formatting information unavailable: {exc}",
                    stage="decode",
                    recoverable=True,
                )
            )
            book = self._open(path, formatting_info=False)

        sheet = book.sheet_by_index(sheet_index)
        date_system = (
            DateSystem.SYSTEM_1904 if book.datemode == 1 else DateSystem.SYSTEM_1900
        )
        cells = self._read_cells(sheet, with_styles=styles is not None)

        logger.debug(
            "Decoded %d cells from sheet '%s' (%s date system).",
            len(cells),
            sheet.name,
            date_system.value,
        )
        return SheetCells(
            name=sheet.name,
            cells=cells,
            styles=styles,
            date_system=date_system,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _open(path: str, formatting_info: bool):
        if xlrd is None:
            raise CellReadException(
                code=ErrorCode.E_XLRD_UNAVAILABLE,
                message=(
                    "xlrd is required to read .xls files. "
                    "Install it with: pip install xlrd"
                ),
                stage="decode",
            )
        return xlrd.open_workbook(path, formatting_info=formatting_info)

    @staticmethod
    def _read_cells(sheet, with_styles: bool) -> list[RawCell]:
        kinds = {
            xlrd.XL_CELL_TEXT: RecordKind.LABEL_SST,
            xlrd.XL_CELL_NUMBER: RecordKind.NUMBER,
            xlrd.XL_CELL_DATE: RecordKind.NUMBER,
            xlrd.XL_CELL_BLANK: RecordKind.BLANK,
            xlrd.XL_CELL_BOOLEAN: BOOLERR_RECORD,
            xlrd.XL_CELL_ERROR: BOOLERR_RECORD,
        }

        cells: list[RawCell] = []
        for r in range(sheet.nrows):
            types = sheet.row_types(r)
            values = sheet.row_values(r)
            for c, (ctype, value) in enumerate(zip(types, values)):
                kind = kinds.get(ctype)
                if kind is None:
                    # XL_CELL_EMPTY
                    continue
                text = value if kind == RecordKind.LABEL_SST else None
                numeric = (
                    float(value)
                    if kind in (RecordKind.NUMBER, BOOLERR_RECORD)
                    else None
                )
                cells.append(
                    RawCell(
                        row=r,
                        col=c,
                        record_kind=kind,
                        numeric_value=numeric,
                        text_value=text,
                        format_id=sheet.cell_xf_index(r, c) if with_styles else None,
                    )
                )
        return cells
