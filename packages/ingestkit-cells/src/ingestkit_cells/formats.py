"""Number-format date detection.

Built-in number-format ids are dates when they fall in one of the ECMA-376
date/time ranges (section 18.8.30).  Workbook-defined formats start at id
164 and are dates when their format string contains any date/time character.
The character test does not parse quoted literals or locale tokens, so a
literal ``"M"`` inside a custom format still counts as a date signal.
"""

from __future__ import annotations

from collections.abc import Mapping

FIRST_CUSTOM_FORMAT_ID = 164

BUILTIN_DATE_RANGES: tuple[tuple[int, int], ...] = (
    (14, 22),
    (27, 36),
    (45, 47),
    (50, 58),
    (71, 81),
)

_DATE_CHARS = frozenset("dDmMyYhHsS")


def is_date_format(format_string: str) -> bool:
    """Return ``True`` if *format_string* contains a date/time character."""
    return any(ch in _DATE_CHARS for ch in format_string)


def is_builtin_date_format(format_id: int) -> bool:
    return any(lo <= format_id <= hi for lo, hi in BUILTIN_DATE_RANGES)


def build_custom_date_formats(number_formats: Mapping[int, str]) -> frozenset[int]:
    """Collect the workbook-defined format ids that denote dates.

    Args:
        number_formats: Number-format id to format string, as read from the
            workbook's style table.  Built-in ids are ignored.

    Returns:
        The immutable set of custom ids whose format string looks like a
        date or time format.
    """
    return frozenset(
        format_id
        for format_id, format_string in number_formats.items()
        if format_id >= FIRST_CUSTOM_FORMAT_ID and is_date_format(format_string)
    )


def is_datetime_format_id(format_id: int, custom: frozenset[int]) -> bool:
    """Return ``True`` if *format_id* displays its number as a date or time."""
    if is_builtin_date_format(format_id):
        return True
    # Built-in format that's not a date
    if format_id < FIRST_CUSTOM_FORMAT_ID:
        return False
    return format_id in custom
