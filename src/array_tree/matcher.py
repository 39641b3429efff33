"""Parent matching: the one place that decides whether a record belongs under a value.

Matching rules:
- ``start_with is ROOT``: delegate to the converter's RootMarker.
- ``start_with`` absent-like (None or ""): match records whose parent value
  is None, "" or missing from the mapping.
- otherwise: plain equality, except that a bool never equals a non-bool
  (``True == 1`` holds in Python but an id of 1 is not a parent of True).

ChildIndex groups records by parent value once so that each lookup during a
traversal is a dict hit instead of a full scan.
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from array_tree.config import RootMarker
    from array_tree.nodes import Record

__all__ = ["ROOT", "ChildIndex", "is_absent", "parent_matches", "values_equal"]


class _Root(Enum):
    ROOT = "ROOT"

    def __repr__(self) -> str:
        return "ROOT"


# Default starting value for every operation: "whatever the root marker says".
ROOT: Final = _Root.ROOT


def is_absent(value: Any) -> bool:
    """Return True for the absent-like parent values: None and ""."""
    return value is None or (isinstance(value, str) and value == "")


def values_equal(left: Any, right: Any) -> bool:
    """Equality where a bool never equals a non-bool; failed comparisons are False."""
    if isinstance(left, bool) is not isinstance(right, bool):
        return False
    try:
        return bool(left == right)
    except (TypeError, ValueError):
        # e.g. numpy arrays, whose == is elementwise
        return False


def parent_matches(parent_value: Any, start_with: Any, marker: RootMarker) -> bool:
    """Return True if a record with ``parent_value`` sits directly under ``start_with``.

    Args:
        parent_value: The record's parent field (None when the field is missing).
        start_with:   The value being expanded: ROOT, an absent-like value or
                      the identifier of a parent record.
        marker:       Root marker policy used when ``start_with is ROOT``.
    """
    if start_with is ROOT:
        return marker.matches(parent_value)
    if is_absent(start_with):
        return is_absent(parent_value)
    return values_equal(parent_value, start_with)


def _bucket_key(value: Any) -> tuple[bool, Hashable]:
    # bool and int hash alike; tag them apart
    return (isinstance(value, bool), value)


class ChildIndex:
    """Records grouped by parent value, in input order within each group.

    Falls back to linear scans through ``parent_matches`` when a parent
    value is unhashable, so grouping never changes which records match or
    their order.

    Example::

        index = ChildIndex(rows, "parent_id", RootMarker())
        index.match(ROOT)       # top-level rows
        index.children_of(7)    # rows whose parent_id == 7
    """

    def __init__(
        self, records: Sequence[Record], parent_key: str, marker: RootMarker
    ) -> None:
        self._records = records
        self._parent_key = parent_key
        self._marker = marker
        self._absent: list[Record] = []
        self._groups: dict[tuple[bool, Hashable], list[Record]] = {}
        self._linear = False

        for record in records:
            parent = record.get(parent_key)
            if is_absent(parent):
                self._absent.append(record)
                continue
            try:
                self._groups.setdefault(_bucket_key(parent), []).append(record)
            except TypeError:
                self._linear = True
                break

    def __len__(self) -> int:
        return len(self._records)

    def _scan(self, start_with: Any) -> list[Record]:
        return [
            r
            for r in self._records
            if parent_matches(r.get(self._parent_key), start_with, self._marker)
        ]

    def match(self, start_with: Any) -> list[Record]:
        """Return the records directly under ``start_with`` (ROOT, absent or an id)."""
        if self._linear:
            return self._scan(start_with)
        if start_with is ROOT:
            if self._marker.kind != "custom":
                return list(self._absent)
            start_with = self._marker.value
        if is_absent(start_with):
            return list(self._absent)
        try:
            return list(self._groups.get(_bucket_key(start_with), ()))
        except TypeError:
            return self._scan(start_with)

    def children_of(self, identifier: Any) -> list[Record]:
        """Return the children of a record whose id is ``identifier``.

        A record without an identifier has no children; looking it up as
        an absent-like value would otherwise re-match the top level.
        """
        if is_absent(identifier):
            return []
        return self.match(identifier)
