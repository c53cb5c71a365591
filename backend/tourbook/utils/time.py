from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from ..domain.errors import InvalidArgumentError


def agency_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def parse_calendar_date(value: date | datetime | str) -> date:
    """Return the calendar date as written, without normalising to UTC."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        pass
    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"invalid date: {value!r}") from exc


def parse_slot_time(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"invalid time: {value!r}") from exc


def local_start(day: date, slot_time: str, tz: ZoneInfo) -> datetime:
    """Activity start as an aware datetime in the agency timezone."""
    return datetime.combine(day, parse_slot_time(slot_time), tzinfo=tz)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
