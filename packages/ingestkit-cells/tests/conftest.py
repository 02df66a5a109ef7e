"""Shared test fixtures for ingestkit-cells tests.

Provides a default ``CellReaderConfig``, a style table with built-in and
custom date formats, and a factory that writes ``.xlsx`` workbooks to a
temporary directory with openpyxl.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import openpyxl
import pytest
from openpyxl.utils.datetime import MAC_EPOCH

from ingestkit_cells.config import CellReaderConfig
from ingestkit_cells.models import NaSet, StyleTable


@pytest.fixture()
def default_config() -> CellReaderConfig:
    """Return a CellReaderConfig with all defaults."""
    return CellReaderConfig()


@pytest.fixture()
def styles() -> StyleTable:
    """Style table indexed 0=General, 1=built-in date, 2=custom date,
    3=built-in fixed, 4=custom number.
    """
    return StyleTable(
        xf_formats=[0, 14, 164, 2, 165],
        number_formats={
            0: "General",
            14: "m/d/yy",
            2: "0.00",
            164: "yyyy-mm-dd",
            165: "#,##0.000",
        },
    )


@pytest.fixture()
def default_na() -> NaSet:
    return NaSet()


@pytest.fixture()
def write_xlsx(tmp_path: Path):
    """Factory fixture writing rows to a .xlsx file and returning its path.

    ``sheets`` maps sheet names to row lists; ``None`` values leave the
    cell empty.  ``mac_epoch`` switches the workbook to the 1904 date system.
    """

    def _write(
        sheets: dict[str, Sequence[Sequence[Any]]],
        filename: str = "test.xlsx",
        mac_epoch: bool = False,
    ) -> str:
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        if mac_epoch:
            wb.epoch = MAC_EPOCH
        for name, rows in sheets.items():
            ws = wb.create_sheet(title=name)
            for r, row in enumerate(rows, start=1):
                for c, value in enumerate(row, start=1):
                    if value is not None:
                        ws.cell(row=r, column=c, value=value)
        file_path = tmp_path / filename
        wb.save(file_path)
        return str(file_path)

    return _write
