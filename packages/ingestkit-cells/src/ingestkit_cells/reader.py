"""Read one worksheet into a typed DataFrame.

``read_excel`` picks a container source from the file extension,
``read_xls`` / ``read_xlsx`` force one, and ``read_cells`` runs the engine
on an already decoded :class:`~ingestkit_cells.models.SheetCells`.  Every
entry point validates its options before any cell is read, then runs the
same pipeline:

1. locate the first data row (``skip`` plus leading empty rows);
2. derive column names from the header row, defaults or the caller;
3. resolve column types from ``col_types`` or a ``guess_max`` row sample;
4. materialize every column over all data rows;
5. assemble the DataFrame and collect diagnostics into a ``ReadResult``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from ingestkit_cells.assembler import align_names, assemble
from ingestkit_cells.classifier import CellClassifier
from ingestkit_cells.config import CellReaderConfig
from ingestkit_cells.errors import CellReadException, ErrorCode, IngestError
from ingestkit_cells.materializer import ColumnMaterializer
from ingestkit_cells.models import (
    CellType,
    ColumnType,
    NaSet,
    RawCell,
    ReadResult,
    RecordKind,
    ResolvedColumn,
    SheetCells,
    TypedColumn,
)
from ingestkit_cells.options import (
    check_col_names,
    check_col_types,
    check_guess_max,
    check_na,
    check_skip,
)
from ingestkit_cells.protocols import CellSource
from ingestkit_cells.resolver import ColumnTypeResolver
from ingestkit_cells.sources import XlsCellSource, XlsxCellSource

logger = logging.getLogger("ingestkit_cells")

_EMPTY_KINDS = frozenset({RecordKind.BLANK, RecordKind.MUL_BLANK})


class ReadOptions(BaseModel):
    """Validated per-read options."""

    col_names: bool | list[str] = True
    col_types: list[ColumnType] | None = None
    na: NaSet = NaSet()
    skip: int = 0
    guess_max: int = 1000
    diagnostics: list[IngestError] = []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def read_excel(
    path: str,
    sheet: int | str = 0,
    col_names: bool | Sequence[str] = True,
    col_types: Sequence[str] | str | None = None,
    na: Sequence[str] | str | None = None,
    skip: int = 0,
    guess_max: int | None = None,
    config: CellReaderConfig | None = None,
) -> ReadResult:
    """Read a worksheet of an ``.xls``, ``.xlsx`` or ``.xlsm`` file.

    Args:
        path: Path to the workbook.  The container is chosen from the
            file extension.
        sheet: 0-based worksheet index or worksheet name.
        col_names: ``True`` to use the first data row as names, ``False``
            for generated names, or one name per column (or per unskipped
            column).
        col_types: ``None`` to guess, or one of ``"skip"``, ``"numeric"``,
            ``"date"``, ``"text"``, ``"list"`` per column.  A single entry is
            recycled across all columns.
        na: Strings to read as missing.  Defaults to ``config.na``.
        skip: Number of rows to skip before reading.  Leading empty rows
            are skipped automatically.
        guess_max: Maximum number of data rows used for guessing.  Defaults
            to ``config.guess_max``.
        config: Reader configuration.  Uses defaults when *None*.

    Returns:
        A :class:`ReadResult` with the DataFrame and collected diagnostics.

    Raises:
        CellReadException: For invalid options, an unknown extension, a
            missing sheet, or name/type count mismatches.
    """
    return _read_with(
        None, path, sheet, col_names, col_types, na, skip, guess_max, config
    )


def read_xls(
    path: str,
    sheet: int | str = 0,
    col_names: bool | Sequence[str] = True,
    col_types: Sequence[str] | str | None = None,
    na: Sequence[str] | str | None = None,
    skip: int = 0,
    guess_max: int | None = None,
    config: CellReaderConfig | None = None,
) -> ReadResult:
    """Like :func:`read_excel`, always decoding *path* as a legacy ``.xls`` file."""
    return _read_with(
        XlsCellSource(), path, sheet, col_names, col_types, na, skip, guess_max, config
    )


def read_xlsx(
    path: str,
    sheet: int | str = 0,
    col_names: bool | Sequence[str] = True,
    col_types: Sequence[str] | str | None = None,
    na: Sequence[str] | str | None = None,
    skip: int = 0,
    guess_max: int | None = None,
    config: CellReaderConfig | None = None,
) -> ReadResult:
    """Like :func:`read_excel`, always decoding *path* as an ``.xlsx`` file."""
    return _read_with(
        XlsxCellSource(), path, sheet, col_names, col_types, na, skip, guess_max, config
    )


def excel_sheets(path: str) -> list[str]:
    """List the worksheet names of a workbook."""
    _check_path(path)
    return _source_for(excel_format(path)).sheet_names(path)


def read_cells(
    sheet: SheetCells,
    col_names: bool | Sequence[str] = True,
    col_types: Sequence[str] | str | None = None,
    na: Sequence[str] | str | None = None,
    skip: int = 0,
    guess_max: int | None = None,
    config: CellReaderConfig | None = None,
) -> ReadResult:
    """Run the typing engine on an already decoded worksheet."""
    config = config or CellReaderConfig()
    options = validate_options(col_names, col_types, na, skip, guess_max, config)
    return read_sheet(sheet, options, config)


def excel_format(path: str) -> str:
    """Return ``"xls"`` or ``"xlsx"`` for *path* based on its extension."""
    ext = Path(path).suffix.lower().lstrip(".")
    if ext == "xls":
        return "xls"
    if ext in ("xlsx", "xlsm"):
        return "xlsx"
    if ext:
        message = f"Unknown file extension: {ext}"
    else:
        message = "Missing file extension."
    raise CellReadException(
        code=ErrorCode.E_FORMAT_UNKNOWN, message=message, stage="dispatch"
    )


def standardise_sheet(sheet: int | str, sheet_names: Sequence[str]) -> int:
    """Resolve a sheet name or 0-based index to a 0-based index."""
    if isinstance(sheet, bool) or not isinstance(sheet, (int, str)):
        raise CellReadException(
            code=ErrorCode.E_SHEET_INVALID,
            message="`sheet` must be either an integer or a string.",
            stage="dispatch",
        )
    if isinstance(sheet, int):
        if sheet < 0:
            raise CellReadException(
                code=ErrorCode.E_SHEET_INVALID,
                message="`sheet` must be non-negative",
                stage="dispatch",
            )
        if sheet >= len(sheet_names):
            raise CellReadException(
                code=ErrorCode.E_SHEET_NOT_FOUND,
                message=(
                    f"Sheet {sheet} not found: workbook has "
                    f"{len(sheet_names)} sheet(s)."
                ),
                stage="dispatch",
            )
        return sheet
    if sheet not in sheet_names:
        raise CellReadException(
            code=ErrorCode.E_SHEET_NOT_FOUND,
            message=f"Sheet '{sheet}' not found",
            sheet_name=sheet,
            stage="dispatch",
        )
    return list(sheet_names).index(sheet)


def validate_options(
    col_names: object,
    col_types: Sequence[str] | str | None,
    na: Sequence[str] | str | None,
    skip: object,
    guess_max: object,
    config: CellReaderConfig,
) -> ReadOptions:
    """Validate caller options, falling back to *config* for unset ones."""
    types, type_diagnostics = check_col_types(col_types)
    checked_guess_max, guess_diagnostics = check_guess_max(
        config.guess_max if guess_max is None else guess_max,
        config.guess_max_limit,
    )
    return ReadOptions(
        col_names=check_col_names(col_names),
        col_types=types,
        na=check_na(na, config.na),
        skip=check_skip(skip),
        guess_max=checked_guess_max,
        diagnostics=[*type_diagnostics, *guess_diagnostics],
    )


def read_sheet(
    sheet: SheetCells,
    options: ReadOptions,
    config: CellReaderConfig,
    source_diagnostics: Sequence[IngestError] = (),
) -> ReadResult:
    """Resolve, materialize and assemble one decoded worksheet."""
    start = time.monotonic()
    diagnostics: list[IngestError] = [*options.diagnostics, *source_diagnostics]

    classifier = CellClassifier(sheet.styles, options.na, sheet.name)
    cells = sorted(
        (cell for cell in sheet.cells if cell.row >= options.skip),
        key=lambda cell: (cell.row, cell.col),
    )

    first_row = _first_content_row(cells)
    if first_row is None:
        logger.info("Sheet '%s' has no data after skipping %d rows.", sheet.name, options.skip)
        first_row = options.skip

    header: list[RawCell] = []
    data_start = first_row
    if options.col_names is True:
        header = [cell for cell in cells if cell.row == first_row]
        data_start = first_row + 1
    data_cells = [cell for cell in cells if cell.row >= data_start]

    n_cols = max((cell.col + 1 for cell in (*header, *data_cells)), default=0)
    n_rows = max((cell.row - data_start + 1 for cell in data_cells), default=0)

    columns: list[list[RawCell]] = [[] for _ in range(n_cols)]
    for cell in data_cells:
        columns[cell.col].append(cell)

    materializer = ColumnMaterializer(
        classifier,
        date_system=sheet.date_system,
        sheet_name=sheet.name,
        log_cell_values=config.log_cell_values,
    )

    if options.col_names is True:
        names = _header_names(header, n_cols, classifier, materializer)
    elif options.col_names is False:
        names = [""] * n_cols
    else:
        names = list(options.col_names)

    resolver = ColumnTypeResolver(classifier, options.guess_max)
    types = resolver.resolve_types(columns, data_start, options.col_types)
    resolved = [
        ResolvedColumn(name=name, type=col_type)
        for name, col_type in zip(align_names(names, types), types)
    ]

    materialized: list[TypedColumn | None] = []
    coercions: list[IngestError] = []
    for column, column_cells in zip(resolved, columns):
        typed, column_diagnostics = materializer.materialize(
            column, column_cells, data_start, n_rows
        )
        materialized.append(typed)
        coercions.extend(column_diagnostics)

    frame = assemble(resolved, materialized, n_rows, config.name_prefix, config.name_sep)

    diagnostics.extend(classifier.diagnostics)
    diagnostics.extend(coercions)

    logger.info(
        "Read sheet '%s': %d rows, %d columns, %d warnings (%.3fs).",
        sheet.name,
        n_rows,
        frame.shape[1],
        len(diagnostics),
        time.monotonic() - start,
    )
    return ReadResult(
        sheet_name=sheet.name,
        frame=frame,
        columns=resolved,
        rows_read=n_rows,
        warnings=[diagnostic.render() for diagnostic in diagnostics],
        error_details=diagnostics,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_with(
    source: CellSource | None,
    path: str,
    sheet: int | str,
    col_names: bool | Sequence[str],
    col_types: Sequence[str] | str | None,
    na: Sequence[str] | str | None,
    skip: int,
    guess_max: int | None,
    config: CellReaderConfig | None,
) -> ReadResult:
    config = config or CellReaderConfig()
    options = validate_options(col_names, col_types, na, skip, guess_max, config)
    if source is None:
        source = _source_for(excel_format(path))
    _check_path(path)

    sheet_index = standardise_sheet(sheet, source.sheet_names(path))
    sheet_cells = source.load_sheet(path, sheet_index)
    source_diagnostics: list[IngestError] = list(getattr(source, "diagnostics", []))
    return read_sheet(sheet_cells, options, config, source_diagnostics)


def _source_for(container: str) -> CellSource:
    if container == "xls":
        return XlsCellSource()
    return XlsxCellSource()


def _check_path(path: str) -> None:
    if not Path(path).exists():
        raise CellReadException(
            code=ErrorCode.E_FILE_NOT_FOUND,
            message=f"`path` does not exist: '{path}'",
            stage="dispatch",
        )


def _first_content_row(cells: Sequence[RawCell]) -> int | None:
    for cell in cells:
        if cell.record_kind not in _EMPTY_KINDS:
            return cell.row
    return None


def _header_names(
    header: Sequence[RawCell],
    n_cols: int,
    classifier: CellClassifier,
    materializer: ColumnMaterializer,
) -> list[str]:
    names = [""] * n_cols
    for cell in header:
        if cell.text_value is not None:
            names[cell.col] = cell.text_value
            continue
        cell_type = classifier.classify(cell)
        if cell_type is not CellType.BLANK:
            names[cell.col] = materializer.render(cell, cell_type) or ""
    return names
