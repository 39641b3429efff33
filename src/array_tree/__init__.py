"""array-tree - convert flat parent/child records to hierarchies and back."""

from __future__ import annotations

from array_tree.api import (
    build_tree,
    flatten_hierarchical,
    flatten_tree_to_array,
    flatten_weighted,
)
from array_tree.config import ConverterConfig, FieldNames, RootMarker, RootMarkerKind
from array_tree.converter import TreeConverter
from array_tree.counter import IdCounter
from array_tree.matcher import ROOT
from array_tree.nodes import NodeField
from array_tree.validation import check_hierarchy

__version__: str = "0.1.0"
__all__: list[str] = [
    "ROOT",
    "ConverterConfig",
    "FieldNames",
    "IdCounter",
    "NodeField",
    "RootMarker",
    "RootMarkerKind",
    "TreeConverter",
    "build_tree",
    "check_hierarchy",
    "flatten_hierarchical",
    "flatten_tree_to_array",
    "flatten_weighted",
]
