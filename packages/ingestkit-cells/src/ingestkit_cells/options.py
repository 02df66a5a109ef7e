"""Validation of caller-supplied read options.

Every check either returns the normalized value together with any non-fatal
diagnostics, or raises :class:`~ingestkit_cells.errors.CellReadException`
before anything is read.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ingestkit_cells.errors import CellReadException, ErrorCode, IngestError
from ingestkit_cells.models import ColumnType, NaSet

logger = logging.getLogger("ingestkit_cells")

ACCEPTED_TYPES: tuple[str, ...] = ("skip", "numeric", "date", "text", "list")


def _fail(code: ErrorCode, message: str) -> CellReadException:
    return CellReadException(code=code, message=message, stage="options")


def check_col_types(
    col_types: Sequence[str] | str | None,
) -> tuple[list[ColumnType] | None, list[IngestError]]:
    """Normalize ``col_types`` tokens into :class:`ColumnType` members.

    The deprecated ``"blank"`` token is rewritten to ``"skip"`` with a single
    warning.  Unknown tokens abort with every offending token and its
    1-based position listed.
    """
    if col_types is None:
        return None, []
    if isinstance(col_types, str):
        col_types = [col_types]
    if not isinstance(col_types, Sequence):
        raise _fail(ErrorCode.E_TYPES_INVALID, "`col_types` must be a sequence of strings.")

    tokens = list(col_types)
    if not tokens:
        raise _fail(ErrorCode.E_TYPES_INVALID, "`col_types` must not be empty.")
    if not all(isinstance(token, str) for token in tokens):
        raise _fail(ErrorCode.E_TYPES_INVALID, "`col_types` must contain only strings.")

    diagnostics: list[IngestError] = []
    if "blank" in tokens:
        message = '`col_type = "blank"` deprecated. Use "skip" instead.'
        logger.warning(message)
        diagnostics.append(
            IngestError(
                code=ErrorCode.W_BLANK_TYPE_DEPRECATED,
                message=message,
                stage="options",
                recoverable=True,
            )
        )
        tokens = ["skip" if token == "blank" else token for token in tokens]

    illegal = [
        f"'{token}' [{i}]"
        for i, token in enumerate(tokens, start=1)
        if token not in ACCEPTED_TYPES
    ]
    if illegal:
        raise _fail(
            ErrorCode.E_TYPES_ILLEGAL, "Illegal column type: " + ", ".join(illegal)
        )

    return [ColumnType(token) for token in tokens], diagnostics


def check_guess_max(guess_max: object, max_limit: int) -> tuple[int, list[IngestError]]:
    """Validate ``guess_max`` and clamp it to *max_limit*."""
    if (
        isinstance(guess_max, bool)
        or not isinstance(guess_max, (int, float))
        or not math.isfinite(guess_max)
        or guess_max < 0
        or int(guess_max) != guess_max
    ):
        raise _fail(
            ErrorCode.E_GUESS_MAX_INVALID, "`guess_max` must be a positive integer"
        )

    guess_max = int(guess_max)
    if guess_max > max_limit:
        message = (
            f"`guess_max` is a very large value, setting to `{max_limit}` "
            "to avoid exhausting memory"
        )
        logger.warning(message)
        return max_limit, [
            IngestError(
                code=ErrorCode.W_GUESS_MAX_CLAMPED,
                message=message,
                stage="options",
                recoverable=True,
            )
        ]
    return guess_max, []


def check_na(na: Sequence[str] | str | None, default: Sequence[str]) -> NaSet:
    if na is None:
        return NaSet(values=tuple(default))
    if isinstance(na, str):
        na = [na]
    values = list(na)
    if not all(isinstance(value, str) for value in values):
        raise _fail(ErrorCode.E_NA_INVALID, "`na` must contain only strings.")
    return NaSet(values=tuple(values))


def check_skip(skip: object) -> int:
    if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
        raise _fail(ErrorCode.E_SKIP_INVALID, "`skip` must be a non-negative integer.")
    return skip


def check_col_names(col_names: object) -> bool | list[str]:
    if isinstance(col_names, bool):
        return col_names
    if isinstance(col_names, str) or not isinstance(col_names, Sequence):
        raise _fail(
            ErrorCode.E_NAMES_INVALID,
            "`col_names` must be True, False or a sequence of strings.",
        )
    names = list(col_names)
    if not all(isinstance(name, str) for name in names):
        raise _fail(ErrorCode.E_NAMES_INVALID, "`col_names` must contain only strings.")
    return names
