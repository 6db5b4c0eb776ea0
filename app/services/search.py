"""
Filter/Search helper for resource pickers and catalog lists.

    filter_items(tests, ("name", "category"), "odyo")

Empty term returns the input unchanged (same order). Otherwise an item is
kept when ANY listed field contains the term, case-insensitively. Missing or
None fields never match and never raise.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

# Field sets per picker
TEST_SEARCH_FIELDS = ("name", "category")
STAFF_SEARCH_FIELDS = ("name", "role")
EQUIPMENT_SEARCH_FIELDS = ("name", "serial_number")
COMPANY_SEARCH_FIELDS = ("name", "authorized_person", "sector")


def _field_value(item: Any, field: str) -> Any:
    if isinstance(item, dict):
        return item.get(field)
    return getattr(item, field, None)


def matches(item: Any, fields: Iterable[str], term: str) -> bool:
    """Return True if any of the fields contains term (case-insensitive)."""
    needle = term.casefold()
    for field in fields:
        value = _field_value(item, field)
        if value is None:
            continue
        if needle in str(value).casefold():
            return True
    return False


def filter_items(items: Sequence[Any], fields: Iterable[str], term: str | None) -> list[Any]:
    """Filter items by a case-insensitive substring search over fields."""
    if not term:
        return list(items)
    fields = tuple(fields)
    return [item for item in items if matches(item, fields, term)]
