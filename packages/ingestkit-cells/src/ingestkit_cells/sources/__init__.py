"""Container sources that decode workbook files into raw cell records."""

from ingestkit_cells.sources.xls import XlsCellSource
from ingestkit_cells.sources.xlsx import XlsxCellSource

__all__ = ["XlsCellSource", "XlsxCellSource"]
