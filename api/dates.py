"""
Date-range rules for dashboard queries.
All dates are YYYY-MM-DD strings; "today" is the current UTC date.
"""

import re
from datetime import date, datetime, timedelta, timezone

from api.errors import ValidationError

MAX_RANGE_DAYS = 365
TRENDS_DEFAULT_DAYS = 30

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Filter-menu presets -> days back from today
TIME_RANGES = {
    "1h": 1,
    "24h": 1,
    "7d": 7,
    "30d": 30,
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def is_valid_iso_date(value: str | None) -> bool:
    """True for YYYY-MM-DD strings that name a real calendar date."""
    if not value or not _ISO_DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def validate_date_range(
    from_date: str | None,
    to_date: str | None,
    *,
    today: date | None = None,
) -> None:
    """
    Validate an optional date pair. Raises ValidationError with a user-facing message.

    Any date given must be YYYY-MM-DD and not in the future. When both are given,
    from_date must not be after to_date and the span must not exceed 365 days.
    """
    today = today or utc_today()
    if from_date and not is_valid_iso_date(from_date):
        raise ValidationError("from_date must be in YYYY-MM-DD format")
    if to_date and not is_valid_iso_date(to_date):
        raise ValidationError("to_date must be in YYYY-MM-DD format")

    if from_date and to_date:
        start = parse_date(from_date)
        end = parse_date(to_date)
        if start > end:
            raise ValidationError("from_date must be before or equal to to_date")
        if (end - start).days > MAX_RANGE_DAYS:
            raise ValidationError("Date range cannot exceed 1 year")
        if end > today:
            raise ValidationError("to_date cannot be in the future")
    elif from_date:
        if parse_date(from_date) > today:
            raise ValidationError("from_date cannot be in the future")
    elif to_date:
        if parse_date(to_date) > today:
            raise ValidationError("to_date cannot be in the future")


def require_date_range(
    from_date: str | None,
    to_date: str | None,
    *,
    today: date | None = None,
) -> tuple[str, str]:
    """Both dates are mandatory; then the usual range rules apply."""
    if not from_date or not to_date:
        raise ValidationError("from_date and to_date are required parameters")
    validate_date_range(from_date, to_date, today=today)
    return from_date, to_date


def default_date_range(today: date | None = None) -> tuple[str, str]:
    """First day of the current month through today."""
    today = today or utc_today()
    return format_date(today.replace(day=1)), format_date(today)


def default_trends_range(today: date | None = None) -> tuple[str, str]:
    """The last 30 days, ending today."""
    today = today or utc_today()
    return format_date(today - timedelta(days=TRENDS_DEFAULT_DAYS)), format_date(today)


def resolve_time_range(code: str, today: date | None = None) -> tuple[str, str]:
    """Turn a filter-menu preset (1h, 24h, 7d, 30d) into a from/to pair. Day granularity."""
    days = TIME_RANGES.get(code)
    if days is None:
        raise ValidationError(f"Unknown time range: {code}. Expected one of {', '.join(TIME_RANGES)}")
    today = today or utc_today()
    return format_date(today - timedelta(days=days)), format_date(today)
