"""Public API functions for array-tree.

This module provides the four user-facing conversions as plain functions:
build_tree, flatten_hierarchical, flatten_weighted and flatten_tree_to_array.
Each call creates a fresh TreeConverter to guarantee zero state shared
between calls; in particular flatten_tree_to_array() here always numbers
from 1.  Use a TreeConverter directly for ids that stay unique across calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from array_tree.config import ConverterConfig
from array_tree.converter import TreeConverter
from array_tree.matcher import ROOT
from array_tree.nodes import Record, TreeNode

__all__ = [
    "build_tree",
    "flatten_hierarchical",
    "flatten_tree_to_array",
    "flatten_weighted",
]


def build_tree(
    records: Iterable[Record],
    id_key: str,
    parent_key: str,
    start_with: Any = ROOT,
    level: int = 1,
    config: ConverterConfig | None = None,
) -> list[TreeNode]:
    """Nest a flat record collection into a tree of ``$children`` lists.

    Args:
        records:    Flat collection of mappings.
        id_key:     Name of the identifier field.
        parent_key: Name of the parent-reference field.
        start_with: Parent value of the top of the tree.  Defaults to ROOT.
        level:      Depth of the top nodes.  Defaults to 1.
        config:     Converter configuration.  Defaults to ``ConverterConfig()``.

    Returns:
        The top nodes; an empty list when nothing matches ``start_with``.
    """
    return TreeConverter(config=config).build_tree(
        records, id_key, parent_key, start_with=start_with, level=level
    )


def flatten_hierarchical(
    records: Iterable[Record],
    id_key: str,
    parent_key: str,
    start_with: Any = ROOT,
    level: int = 1,
    accumulator: list[TreeNode] | None = None,
    path_prefix: str | None = None,
    config: ConverterConfig | None = None,
) -> list[TreeNode]:
    """Return the records in CONNECT BY order with ``$index``/``$tree_index``."""
    return TreeConverter(config=config).flatten_hierarchical(
        records,
        id_key,
        parent_key,
        start_with=start_with,
        level=level,
        accumulator=accumulator,
        path_prefix=path_prefix,
    )


def flatten_weighted(
    records: Iterable[Record],
    id_key: str,
    parent_key: str,
    weight_key: str,
    start_with: Any = ROOT,
    level: int = 1,
    inherited_share: float = 1.0,
    accumulator: list[TreeNode] | None = None,
    path_prefix: str | None = None,
    config: ConverterConfig | None = None,
) -> list[TreeNode]:
    """Return the records in CONNECT BY order with per-group weight shares.

    See ``TreeConverter.flatten_weighted()`` for the weight fields.  A
    sibling group whose weights total 0 gets 0.0 shares throughout.
    """
    return TreeConverter(config=config).flatten_weighted(
        records,
        id_key,
        parent_key,
        weight_key,
        start_with=start_with,
        level=level,
        inherited_share=inherited_share,
        accumulator=accumulator,
        path_prefix=path_prefix,
    )


def flatten_tree_to_array(
    tree: Iterable[Record] | Record,
    children_key: str,
    parent_value: Any = ROOT,
    level: int = 1,
    config: ConverterConfig | None = None,
) -> list[TreeNode]:
    """Flatten a nested tree into records linked by ``$id``/``$parent_id``.

    Ids start at 1 on every call because each call uses a fresh converter.

    Args:
        tree:         Root nodes (or a single root mapping).
        children_key: Field holding each node's children.
        parent_value: ``$parent_id`` of the roots.  Defaults to the root
                      marker's written value.
        level:        Depth of the roots.  Defaults to 1.
        config:       Converter configuration.  Defaults to ``ConverterConfig()``.
    """
    return TreeConverter(config=config).flatten_tree_to_array(
        tree, children_key, parent_value=parent_value, level=level
    )
