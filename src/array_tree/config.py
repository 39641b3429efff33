"""ConverterConfig, FieldNames and RootMarker for TreeConverter configuration.

All three are frozen (immutable) dataclasses.  FieldNames holds the names of
the metadata fields written onto output nodes; RootMarker decides which
parent values denote a top-level record; ConverterConfig bundles both with
the mutation policy.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass, field, fields
from enum import StrEnum, auto
from typing import Any

from array_tree.matcher import is_absent, values_equal
from array_tree.nodes import NodeField

__all__ = ["ConverterConfig", "FieldNames", "RootMarker", "RootMarkerKind"]


class RootMarkerKind(StrEnum):
    """Which parent values mark a record as top-level.

    - NONE:   None, a missing parent field, or "" (three-way equivalence).
    - EMPTY:  Same matching as NONE; writes "" as the generated root parent.
    - CUSTOM: Exactly ``RootMarker.value`` (e.g. 0).
    """

    NONE = auto()
    EMPTY = auto()
    CUSTOM = auto()


@dataclass(frozen=True, slots=True)
class RootMarker:
    """Root marker policy.

    Attributes:
        kind:  One of RootMarkerKind.  Defaults to NONE.
        value: The parent value denoting a root.  Only meaningful (and then
            required) for CUSTOM; must not be None or "" there.
    """

    kind: RootMarkerKind = RootMarkerKind.NONE
    value: Any = None

    def __post_init__(self) -> None:
        if self.kind == RootMarkerKind.CUSTOM and is_absent(self.value):
            msg = (
                f"CUSTOM root marker needs a concrete value, got {self.value!r}; "
                "use RootMarkerKind.NONE or RootMarkerKind.EMPTY instead"
            )
            raise ValueError(msg)

    @classmethod
    def custom(cls, value: Any) -> RootMarker:
        """Shorthand for ``RootMarker(RootMarkerKind.CUSTOM, value)``."""
        return cls(RootMarkerKind.CUSTOM, value)

    @property
    def written_value(self) -> Any:
        """Parent value assigned to generated roots (``$parent_id``)."""
        if self.kind == RootMarkerKind.EMPTY:
            return ""
        if self.kind == RootMarkerKind.CUSTOM:
            return self.value
        return None

    def matches(self, parent_value: Any) -> bool:
        """Return True if ``parent_value`` marks a top-level record."""
        if self.kind == RootMarkerKind.CUSTOM:
            return values_equal(parent_value, self.value)
        return is_absent(parent_value)


@dataclass(frozen=True, slots=True)
class FieldNames:
    """Names of the metadata fields written onto output nodes.

    Defaults are the NodeField values (``$children``, ``$level`` ...).
    Every name must be a non-empty string and all names must be distinct.
    """

    children: str = NodeField.CHILDREN
    level: str = NodeField.LEVEL
    is_leaf: str = NodeField.IS_LEAF
    index: str = NodeField.INDEX
    tree_index: str = NodeField.TREE_INDEX
    sum_weight: str = NodeField.SUM_WEIGHT
    weight_percent: str = NodeField.WEIGHT_PERCENT
    parent_weight_percent: str = NodeField.PARENT_WEIGHT_PERCENT
    root_weight_percent: str = NodeField.ROOT_WEIGHT_PERCENT
    id: str = NodeField.ID
    parent_id: str = NodeField.PARENT_ID

    def __post_init__(self) -> None:
        for f in fields(self):
            name = getattr(self, f.name)
            if not isinstance(name, str) or not name:
                msg = f"field name for {f.name!r} must be a non-empty str, got {name!r}"
                raise ValueError(msg)
        names = astuple(self)
        if len(set(names)) != len(names):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            msg = f"metadata field names must be distinct, duplicated: {duplicates}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ConverterConfig:
    """Immutable configuration for TreeConverter.

    Attributes:
        fields: Output metadata field names.
        root_marker: Which parent values denote a top-level record.
        in_place: When True, build_tree and the flatteners annotate the input
            mappings themselves instead of shallow copies.  Side-effecting;
            the records must be mutable mappings.  Default False.
    """

    fields: FieldNames = field(default_factory=FieldNames)
    root_marker: RootMarker = field(default_factory=RootMarker)
    in_place: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.fields, FieldNames):
            msg = f"fields must be a FieldNames instance, got {type(self.fields)!r}"
            raise ValueError(msg)
        if not isinstance(self.root_marker, RootMarker):
            msg = (
                "root_marker must be a RootMarker instance, "
                f"got {type(self.root_marker)!r}"
            )
            raise ValueError(msg)
