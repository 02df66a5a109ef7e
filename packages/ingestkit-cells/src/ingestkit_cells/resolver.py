"""Column type resolution ("guessing").

Reconciles the caller's optional per-column types with a guess derived from
classifying at most ``guess_max`` data rows of each column.  The guess for a
column is the widest cell type observed under ``BLANK < DATE < NUMERIC <
TEXT``; a column with no non-blank sampled cells resolves to ``BLANK``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ingestkit_cells.classifier import CellClassifier
from ingestkit_cells.errors import CellReadException, ErrorCode
from ingestkit_cells.models import (
    ColumnType,
    RawCell,
    ResolvedColumn,
    cell_to_column,
    max_cell_type,
)

logger = logging.getLogger("ingestkit_cells")


class ColumnTypeResolver:
    """Resolves one :class:`ColumnType` per input column.

    Parameters
    ----------
    classifier:
        Classifier bound to the sheet's style table and NA set.
    guess_max:
        Maximum number of data rows sampled per column.
    """

    def __init__(self, classifier: CellClassifier, guess_max: int) -> None:
        self._classifier = classifier
        self._guess_max = guess_max

    # -- public API ----------------------------------------------------------

    def resolve_types(
        self,
        columns: Sequence[Sequence[RawCell]],
        first_row: int,
        col_types: Sequence[ColumnType] | None = None,
    ) -> list[ColumnType]:
        """Return the resolved type of every column.

        Args:
            columns: Data cells of each column in increasing row order.
            first_row: Sheet row index of the first data row; the guess
                sample covers rows ``first_row`` to
                ``first_row + guess_max - 1``.
            col_types: Caller-declared types, either one per column or a
                single type recycled across all columns.

        Raises:
            CellReadException: If ``col_types`` has any other length.
        """
        n_cols = len(columns)
        declared = self._recycle(col_types, n_cols)

        resolved: list[ColumnType] = []
        for j, cells in enumerate(columns):
            if declared is not None:
                resolved.append(declared[j])
                continue
            guessed = self.guess(cells, first_row)
            logger.debug("Column %d guessed as %s.", j, guessed.value)
            resolved.append(guessed)
        return resolved

    def resolve(
        self,
        columns: Sequence[Sequence[RawCell]],
        first_row: int,
        names: Sequence[str],
        col_types: Sequence[ColumnType] | None = None,
    ) -> list[ResolvedColumn]:
        """Pair resolved types with *names* (one name per input column)."""
        types = self.resolve_types(columns, first_row, col_types)
        return [
            ResolvedColumn(name=name, type=col_type)
            for name, col_type in zip(names, types)
        ]

    def guess(self, cells: Sequence[RawCell], first_row: int) -> ColumnType:
        """Guess a column type from the cells inside the sampling window."""
        limit = first_row + self._guess_max
        sampled = []
        for cell in cells:
            if cell.row >= limit:
                break
            sampled.append(self._classifier.classify(cell))
        return cell_to_column(max_cell_type(sampled))

    # -- internal helpers ----------------------------------------------------

    @staticmethod
    def _recycle(
        col_types: Sequence[ColumnType] | None, n_cols: int
    ) -> list[ColumnType] | None:
        if col_types is None:
            return None
        if len(col_types) == 1:
            return [col_types[0]] * n_cols
        if len(col_types) != n_cols:
            raise CellReadException(
                code=ErrorCode.E_TYPES_LENGTH,
                message=(
                    f"Sheet has {n_cols} columns, but types has length "
                    f"{len(col_types)}."
                ),
                stage="resolve",
            )
        return list(col_types)
