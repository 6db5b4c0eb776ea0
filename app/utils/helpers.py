"""Shared utility functions for services and blueprints.

parse_date:          lenient date parsing (returns None on bad input)
parse_date_input:    strict date parsing (raises ValueError on bad input)
parse_bool:          query-string boolean parsing
"""
from datetime import date, datetime


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD (ISO format)
    - YYYY-MM-DDTHH:MM:SS (datetime ISO → .date())
    - DD.MM.YYYY (Turkish/European format)
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises ValueError instead of returning None,
    so callers can report the offending value.

    Supports: YYYY-MM-DD, DD.MM.YYYY, date objects.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(
            f"Invalid date format: {value!r}. Use YYYY-MM-DD or DD.MM.YYYY."
        )
    return parsed


def parse_bool(value, default=None):
    """Interpret a query-string flag ("true", "1", "yes")."""
    if value is None:
        return default
    return str(value).lower() in ("true", "1", "yes")

