"""Calendar dates, GMT offsets and UTC windows."""

import re
from datetime import date, datetime, timedelta, timezone

import dateparser

from taskq.exceptions import ValidationError
from taskq.models.paging import DateWindow

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

UTC_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def normalize_gmt_offset(gmt_offset: str | None) -> str:
    """Normalize an offset such as "+0530" or "-03:00" to "+HH:MM".

    Args:
        gmt_offset: Signed offset string; None or empty means UTC.

    Returns:
        The offset in "+HH:MM" form.

    Raises:
        ValidationError: If the offset is malformed or out of range.
    """
    if not gmt_offset:
        return "+00:00"
    match = _OFFSET_RE.match(gmt_offset.strip())
    if match is None:
        raise ValidationError(f"Invalid GMT offset: {gmt_offset}")
    sign, hours, minutes = match.groups()
    if int(hours) > 14 or int(minutes) > 59:
        raise ValidationError(f"Invalid GMT offset: {gmt_offset}")
    return f"{sign}{hours}:{minutes}"


def offset_to_timezone(gmt_offset: str | None) -> timezone:
    """Build a fixed-offset tzinfo from a GMT offset string."""
    sign, hours, minutes = _OFFSET_RE.match(normalize_gmt_offset(gmt_offset)).groups()
    delta = timedelta(hours=int(hours), minutes=int(minutes))
    return timezone(-delta if sign == "-" else delta)


def _to_utc(local: str) -> str:
    return datetime.fromisoformat(local).astimezone(timezone.utc).strftime(UTC_FORMAT)


def normalize_date_window(since: str, until: str, gmt_offset: str | None) -> DateWindow:
    """Convert an inclusive local date range into an absolute UTC range.

    ``since`` is anchored at local midnight and ``until`` at local 23:59:59,
    so both endpoint days are covered in full for any offset, including
    half-hour ones.

    Args:
        since: First local day, YYYY-MM-DD.
        until: Last local day, YYYY-MM-DD.
        gmt_offset: The caller's GMT offset, e.g. "+02:00".

    Returns:
        DateWindow with ``YYYY-MM-DDTHH:MM:SSZ`` instants.

    Raises:
        ValidationError: If a date or the offset is malformed, or if
            ``until`` is earlier than ``since``.
    """
    offset = normalize_gmt_offset(gmt_offset)
    try:
        since_day = date.fromisoformat(since)
        until_day = date.fromisoformat(until)
    except ValueError as e:
        raise ValidationError(f"Dates must be YYYY-MM-DD: {e}") from e
    if until_day < since_day:
        raise ValidationError(f"until ({until}) is earlier than since ({since})")

    return DateWindow(
        since_utc=_to_utc(f"{since_day.isoformat()}T00:00:00{offset}"),
        until_utc=_to_utc(f"{until_day.isoformat()}T23:59:59{offset}"),
    )


def local_today(gmt_offset: str | None, now: datetime | None = None) -> date:
    """Today's calendar date as seen from the given offset.

    Args:
        gmt_offset: The user's GMT offset.
        now: Reference instant; defaults to the current time.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(offset_to_timezone(gmt_offset)).date()


def parse_local_date(value: str, today: date) -> date:
    """Parse a YYYY-MM-DD date or a natural language date like "tomorrow".

    Relative expressions are resolved against ``today``, which should be the
    user's local date rather than the server's.

    Raises:
        ValidationError: If the string cannot be parsed.
    """
    if not value or not value.strip():
        raise ValidationError("Date string cannot be empty")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        pass

    result = dateparser.parse(
        value,
        settings={
            "PREFER_DATES_FROM": "future",
            "RELATIVE_BASE": datetime.combine(today, datetime.min.time()),
            "RETURN_AS_TIMEZONE_AWARE": False,
        },
    )
    if result is None:
        raise ValidationError(f"Could not parse date: {value}")
    return result.date()


def add_days(day: date, days: int) -> str:
    """Shift a date by a number of days and format it as YYYY-MM-DD."""
    return (day + timedelta(days=days)).isoformat()
