"""
Selection Set — duplicate-free toggle-membership container.

Used identically for staff, tests and equipment/vehicles in the operation
wizard and in lifecycle edits. Insertion order is kept for display only;
equality ignores it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class SelectionSet:
    """Immutable set of foreign identities supporting toggle."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] | None = None) -> None:
        seen: dict[str, None] = {}
        for item in items or ():
            if item is None or item == "":
                continue
            seen.setdefault(str(item), None)
        self._items = tuple(seen)

    def toggle(self, item_id: str) -> "SelectionSet":
        """Return a new set with item_id added if absent, removed if present."""
        item_id = str(item_id)
        if item_id in self._items:
            return SelectionSet(i for i in self._items if i != item_id)
        return SelectionSet(self._items + (item_id,))

    def contains(self, item_id: str) -> bool:
        return str(item_id) in self._items

    def to_list(self) -> list[str]:
        return list(self._items)

    def __contains__(self, item_id: object) -> bool:
        return isinstance(item_id, str) and item_id in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SelectionSet):
            return frozenset(self._items) == frozenset(other._items)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items))

    def __repr__(self) -> str:
        return f"SelectionSet({list(self._items)!r})"


def toggle(ids: Iterable[str] | None, item_id: str) -> list[str]:
    """Toggle item_id in a plain id list and return the new duplicate-free list."""
    return SelectionSet(ids).toggle(item_id).to_list()


def contains(ids: Iterable[str] | None, item_id: str) -> bool:
    return SelectionSet(ids).contains(item_id)


def normalize(ids: Iterable[str] | None) -> list[str]:
    """Drop duplicates and blanks, keeping first-seen order."""
    return SelectionSet(ids).to_list()
