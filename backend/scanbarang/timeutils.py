"""
Scan Barang Backend — Date & Clock Helpers
============================================

What:  Conversion between the client's DD-MM-YYYY dates and ISO dates, and
       the local (WIB by default) clock used for event/scan timestamps.
Why:   The mobile client sends and displays DD-MM-YYYY; the database stores
       DATE columns. Every route that accepts a date goes through here so a
       malformed value is always a 400, never a crash.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from scanbarang.config import settings
from scanbarang.exceptions import ValidationError

DATE_FORMAT_HINT = "Invalid date format. Use DD-MM-YYYY"


def parse_client_date(value: str, field: str = "tanggal") -> date:
    """
    Parse a DD-MM-YYYY string into a date, e.g. "05-03-2024" → date(2024, 3, 5).

    Raises:
        ValidationError: wrong number of '-' separated parts, non-numeric
        parts, a year that isn't four digits, or an impossible calendar date.
    """
    parts = value.strip().split("-") if value else []
    if len(parts) != 3:
        raise ValidationError(message=DATE_FORMAT_HINT, field=field, context={"value": value})

    day, month, year = parts
    if not (day.isdigit() and month.isdigit() and year.isdigit()) or len(year) != 4:
        raise ValidationError(message=DATE_FORMAT_HINT, field=field, context={"value": value})

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise ValidationError(message=DATE_FORMAT_HINT, field=field, context={"value": value})


def now_local() -> datetime:
    """Current wall-clock time in the configured application timezone."""
    return datetime.now(ZoneInfo(settings.app_timezone))


def to_local(value: datetime) -> datetime:
    """
    Express a stored timestamp in the application timezone.

    PostgreSQL hands back aware UTC datetimes; SQLite drops the offset and
    returns the wall time as written, which is already local.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(settings.app_timezone))
