"""Output assembly: name alignment, name repair and DataFrame construction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd

from ingestkit_cells.errors import CellReadException, ErrorCode
from ingestkit_cells.models import CellValue, ColumnType, ResolvedColumn, TypedColumn

logger = logging.getLogger("ingestkit_cells")

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def align_names(names: Sequence[str], types: Sequence[ColumnType]) -> list[str]:
    """Expand *names* to one entry per input column.

    Names may be given for every column or only for the columns that are not
    skipped; skipped columns then get an empty placeholder name.

    Raises:
        CellReadException: If the name count matches neither.
    """
    n_cols = len(types)
    kept = [j for j, col_type in enumerate(types) if col_type is not ColumnType.SKIP]

    if len(names) == n_cols:
        return list(names)
    if len(names) == len(kept):
        aligned = [""] * n_cols
        for j, name in zip(kept, names):
            aligned[j] = name
        return aligned

    raise CellReadException(
        code=ErrorCode.E_NAMES_LENGTH,
        message=f"Received {len(names)} names but {n_cols} columns.",
        stage="assemble",
    )


def repair_names(names: Sequence[str], prefix: str = "X", sep: str = "__") -> list[str]:
    """Fill empty names and make every name unique.

    Empty names become ``<prefix><sep><position>`` (1-based).  Repeated
    names get ``<sep>1``, ``<sep>2`` ... suffixes in order of appearance.
    """
    filled = [
        name if name else f"{prefix}{sep}{i}" for i, name in enumerate(names, start=1)
    ]

    taken = set(filled)
    seen: set[str] = set()
    counters: dict[str, int] = {}
    result: list[str] = []
    for name in filled:
        if name not in seen:
            seen.add(name)
            result.append(name)
            continue
        k = counters.get(name, 0)
        while True:
            k += 1
            candidate = f"{name}{sep}{k}"
            if candidate not in taken:
                break
        counters[name] = k
        taken.add(candidate)
        seen.add(candidate)
        result.append(candidate)
    return result


def to_series(column: TypedColumn | None, col_type: ColumnType, n_rows: int) -> pd.Series:
    """Convert a materialized column to a pandas Series of the matching dtype."""
    if column is None:
        return pd.Series([None] * n_rows, dtype=object)
    if col_type is ColumnType.NUMERIC:
        return pd.Series(column.values, dtype="float64")
    if col_type is ColumnType.DATE:
        return _date_series(column.values)
    if col_type is ColumnType.LIST:
        return pd.Series(
            [value.value if isinstance(value, CellValue) else value for value in column.values],
            dtype=object,
        )
    return pd.Series(column.values, dtype=object)


def _date_series(values: Sequence[datetime | None]) -> pd.Series:
    # Millisecond resolution spans years 1 to 9999; nanoseconds stop at 2262.
    stamps = np.array(
        [
            np.datetime64((value - _UNIX_EPOCH) // _ONE_MS, "ms")
            if value is not None
            else np.datetime64("NaT", "ms")
            for value in values
        ],
        dtype="datetime64[ms]",
    )
    return pd.Series(stamps).dt.tz_localize("UTC")


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def assemble(
    columns: Sequence[ResolvedColumn],
    materialized: Sequence[TypedColumn | None],
    n_rows: int,
    prefix: str = "X",
    sep: str = "__",
) -> pd.DataFrame:
    """Build the output DataFrame.

    Skip columns are removed; blank columns are kept as all-missing object
    columns.  Names are repaired after skipped columns are dropped.
    """
    kept = [
        (resolved, typed)
        for resolved, typed in zip(columns, materialized)
        if resolved.type is not ColumnType.SKIP
    ]
    names = repair_names([resolved.name for resolved, _ in kept], prefix, sep)

    data = {
        name: to_series(typed, resolved.type, n_rows)
        for name, (resolved, typed) in zip(names, kept)
    }
    frame = pd.DataFrame(data, index=pd.RangeIndex(n_rows))
    logger.debug(
        "Assembled frame with %d rows and %d columns (%d skipped).",
        n_rows,
        len(kept),
        len(columns) - len(kept),
    )
    return frame
