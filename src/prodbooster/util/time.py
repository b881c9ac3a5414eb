from datetime import datetime, timedelta

from pyresults import Err, Ok, Result

ISO_FMT = "%Y-%m-%dT%H:%M:%S"
FORM_FMT = "%Y-%m-%d %H:%M"
DISPLAY_FMT = "%a, %b %d %H:%M"


def now() -> datetime:
    return datetime.now().replace(microsecond=0)


def to_iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.strftime(ISO_FMT)


def from_iso(s: str | None) -> datetime | None:
    if not s:
        return None
    # sqlite may hand back "YYYY-MM-DD HH:MM:SS" for rows written by other tools
    return datetime.fromisoformat(s)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def today_window(current: datetime) -> tuple[datetime, datetime]:
    """Return [midnight today, midnight tomorrow) for the given instant."""
    start = start_of_day(current)
    return start, start + timedelta(days=1)


def in_today(dt: datetime, current: datetime) -> bool:
    start, end = today_window(current)
    return start <= dt < end


def format_form_datetime(dt: datetime | None) -> str:
    if dt is None:
        return ""
    return dt.strftime(FORM_FMT)


def parse_form_datetime(s: str) -> Result[datetime | None, str]:
    """Parse a "YYYY-MM-DD HH:MM" form value.

    Blank input is not an error: it yields Ok(None) so optional fields can stay empty.
    """
    s = s.strip()
    if not s:
        return Ok[datetime | None, str](None)
    try:
        return Ok[datetime | None, str](datetime.strptime(s, FORM_FMT))
    except ValueError:
        return Err[datetime | None, str](f"Invalid date/time '{s}' (expected YYYY-MM-DD HH:MM)")
