"""ingestkit-cells -- typed column extraction from .xls and .xlsx worksheets.

Public API exports for models, enums, errors, configuration, the typing
engine components and the reader entry points.
"""

from ingestkit_cells.assembler import align_names, assemble, repair_names
from ingestkit_cells.classifier import CellClassifier
from ingestkit_cells.config import CellReaderConfig
from ingestkit_cells.dates import serial_to_datetime
from ingestkit_cells.errors import CellReadException, ErrorCode, IngestError
from ingestkit_cells.formats import (
    build_custom_date_formats,
    is_date_format,
    is_datetime_format_id,
)
from ingestkit_cells.materializer import ColumnMaterializer
from ingestkit_cells.models import (
    CellType,
    CellValue,
    ColumnType,
    DateSystem,
    NaSet,
    RawCell,
    ReadResult,
    RecordKind,
    ResolvedColumn,
    SheetCells,
    StyleTable,
    TypedColumn,
    cell_to_column,
    max_cell_type,
)
from ingestkit_cells.protocols import CellSource
from ingestkit_cells.reader import (
    excel_sheets,
    read_cells,
    read_excel,
    read_xls,
    read_xlsx,
)
from ingestkit_cells.resolver import ColumnTypeResolver
from ingestkit_cells.sources import XlsCellSource, XlsxCellSource

__all__ = [
    # Enums
    "CellType",
    "ColumnType",
    "DateSystem",
    "RecordKind",
    "cell_to_column",
    "max_cell_type",
    # Models
    "RawCell",
    "NaSet",
    "StyleTable",
    "SheetCells",
    "CellValue",
    "ResolvedColumn",
    "TypedColumn",
    "ReadResult",
    # Engine
    "build_custom_date_formats",
    "is_date_format",
    "is_datetime_format_id",
    "serial_to_datetime",
    "CellClassifier",
    "ColumnTypeResolver",
    "ColumnMaterializer",
    "align_names",
    "repair_names",
    "assemble",
    # Reader
    "read_excel",
    "read_xls",
    "read_xlsx",
    "read_cells",
    "excel_sheets",
    # Sources
    "CellSource",
    "XlsCellSource",
    "XlsxCellSource",
    # Errors
    "ErrorCode",
    "IngestError",
    "CellReadException",
    # Config
    "CellReaderConfig",
]
