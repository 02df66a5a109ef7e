"""Conversion of spreadsheet date serials to UTC timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ingestkit_cells.models import DateSystem

_EPOCHS: dict[DateSystem, datetime] = {
    DateSystem.SYSTEM_1900: datetime(1899, 12, 30, tzinfo=timezone.utc),
    DateSystem.SYSTEM_1904: datetime(1904, 1, 1, tzinfo=timezone.utc),
}

_MS_PER_DAY = 86_400_000


def serial_to_datetime(serial: float, date_system: DateSystem) -> datetime | None:
    """Convert a date serial to a timezone-aware UTC ``datetime``.

    The 1900 system counts the non-existent 1900-02-29, so serials before
    61 are shifted forward by one day.  The result is rounded to the
    nearest millisecond; no time-zone shifting is applied.

    Returns ``None`` when the serial falls outside the years 1 to 9999.
    """
    if date_system is DateSystem.SYSTEM_1900 and serial < 61:
        serial += 1
    try:
        return _EPOCHS[date_system] + timedelta(milliseconds=round(serial * _MS_PER_DAY))
    except (OverflowError, ValueError):
        return None
