"""Container source protocol for the ingestkit-cells pipeline.

A container source decodes a workbook file into raw cell records.  The
protocol is ``@runtime_checkable`` so callers can optionally verify
conformance with ``isinstance`` checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ingestkit_cells.models import SheetCells


@runtime_checkable
class CellSource(Protocol):
    """Interface for container decoders (e.g. openpyxl for .xlsx, xlrd for .xls)."""

    def sheet_names(self, path: str) -> list[str]:
        """Return the worksheet names of the workbook, in workbook order."""
        ...

    def load_sheet(self, path: str, sheet_index: int) -> SheetCells:
        """Decode the worksheet at *sheet_index* (0-based) into raw cells."""
        ...
