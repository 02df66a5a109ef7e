"""Normalized error codes and structured error model for the ingestkit-cells pipeline.

``IngestError`` is a Pydantic model (data structure) collected alongside read
results.  Fatal conditions are raised as ``CellReadException``, which wraps an
``IngestError`` and can be used with ``raise``/``except``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Normalized error codes for the ingestkit-cells pipeline.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.  Codes prefixed with ``E_`` abort the read;
    codes prefixed with ``W_`` are non-fatal warnings.
    """

    # Argument errors
    E_TYPES_ILLEGAL = "E_TYPES_ILLEGAL"
    E_TYPES_INVALID = "E_TYPES_INVALID"
    E_TYPES_LENGTH = "E_TYPES_LENGTH"
    E_NAMES_LENGTH = "E_NAMES_LENGTH"
    E_NAMES_INVALID = "E_NAMES_INVALID"
    E_GUESS_MAX_INVALID = "E_GUESS_MAX_INVALID"
    E_SKIP_INVALID = "E_SKIP_INVALID"
    E_NA_INVALID = "E_NA_INVALID"

    # Workbook errors
    E_FILE_NOT_FOUND = "E_FILE_NOT_FOUND"
    E_FORMAT_UNKNOWN = "E_FORMAT_UNKNOWN"
    E_SHEET_NOT_FOUND = "E_SHEET_NOT_FOUND"
    E_SHEET_INVALID = "E_SHEET_INVALID"
    E_XLRD_UNAVAILABLE = "E_XLRD_UNAVAILABLE"

    # Warnings (non-fatal)
    W_TYPE_COERCED = "W_TYPE_COERCED"
    W_DATE_OUT_OF_RANGE = "W_DATE_OUT_OF_RANGE"
    W_UNKNOWN_RECORD_KIND = "W_UNKNOWN_RECORD_KIND"
    W_BLANK_TYPE_DEPRECATED = "W_BLANK_TYPE_DEPRECATED"
    W_GUESS_MAX_CLAMPED = "W_GUESS_MAX_CLAMPED"
    W_STYLES_UNAVAILABLE = "W_STYLES_UNAVAILABLE"


class IngestError(BaseModel):
    """Structured error with code, message, and cell location context.

    ``row`` and ``col`` are zero-based sheet coordinates of the offending
    cell, when the diagnostic concerns a single cell.
    """

    code: ErrorCode
    message: str
    sheet_name: str | None = None
    stage: str | None = None
    row: int | None = None
    col: int | None = None
    recoverable: bool = False

    def render(self) -> str:
        """Flat ``"CODE: message"`` form used in ``ReadResult.warnings``."""
        return f"{self.code.value}: {self.message}"


class CellReadException(Exception):
    """Raisable exception wrapping an ``IngestError`` data model.

    Carries the structured error as the ``.error`` attribute.  Convenience
    properties delegate to the underlying model.
    """

    def __init__(self, **kwargs: object) -> None:
        self.error = IngestError(**kwargs)  # type: ignore[arg-type]
        super().__init__(self.error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage
