# hrbo_api/common/parsing.py
"""
Boundary parsing for query args and JSON bodies.

Blank values, None and the literal "all" mean "no constraint" for optional
filter values; anything present but malformed raises ValidationError (422).
"""
from __future__ import annotations

from datetime import date, datetime, timezone

from hrbo_api.common.errors import ValidationError

_NO_VALUE = (None, "", "all", "null")
_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y", "%Y/%m/%d")
_DATETIME_FORMATS = ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M")


def _blank(v) -> bool:
    return v in _NO_VALUE or (isinstance(v, str) and v.strip().lower() in _NO_VALUE)


def parse_date(val, name: str = "date", required: bool = False):
    if _blank(val):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    s = str(val).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    raise ValidationError(f"{name} must be a date (YYYY-MM-DD)")


def _naive_utc(dt: datetime) -> datetime:
    """Offset-aware values are converted to UTC; the DB stores naive UTC, same as created_at."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(val, name: str = "datetime", required: bool = False):
    if _blank(val):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(val, datetime):
        return _naive_utc(val)
    s = str(val).strip()
    try:
        return _naive_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            pass
    raise ValidationError(f"{name} must be an ISO datetime (YYYY-MM-DDTHH:MM)")


def parse_int(val, name: str, required: bool = False):
    if _blank(val):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    if isinstance(val, bool):
        raise ValidationError(f"{name} must be integer")
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be integer")


def parse_enum(val, name: str, enum_cls, required: bool = False):
    """Return the enum's string value, or None for blank/"all"."""
    if _blank(val):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    member = enum_cls.parse(val)
    if member is None:
        raise ValidationError(
            f"{name} must be one of: {', '.join(enum_cls.values())}",
            payload={"field": name, "allowed": enum_cls.values()},
        )
    return member.value


def clean_text(val):
    """Strip strings; blank becomes None."""
    if val is None:
        return None
    s = str(val).strip()
    return s or None
