"""check_hierarchy: consistency checks for flattened hierarchies.

Inspects the *output* of flatten_hierarchical() / flatten_weighted() and
reports every broken invariant as a readable string.  Input records are not
checked: orphans and cycles in caller data remain the caller's concern.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from typing import Any

from array_tree.config import FieldNames
from array_tree.nodes import TreeNode

__all__ = ["check_hierarchy"]

_TREE_INDEX = re.compile(r"[1-9]\d*(\.[1-9]\d*)*")


def _parent_path(path: str) -> str | None:
    head, sep, _ = path.rpartition(".")
    return head if sep else None


def check_hierarchy(
    nodes: Sequence[TreeNode],
    fields: FieldNames | None = None,
    tolerance: float = 1e-9,
) -> list[str]:
    """Return the problems found in a flattened hierarchy (empty when consistent).

    Checks:
    - every ``$tree_index`` is a dotted path of positive integers and unique;
    - paths are in strict pre-order (each subtree is contiguous and follows
      its parent);
    - ``$is_leaf`` agrees with the depth of the next node;
    - within each sibling group with a nonzero ``$sum_weight``, the
      ``$weight_percent`` values sum to 1.0;
    - ``$root_weight_percent == $parent_weight_percent * $weight_percent``.

    Weight checks run only for nodes carrying the weight fields.

    Args:
        nodes:     Output of a flatten call.
        fields:    Metadata field names used to produce ``nodes``.
        tolerance: Absolute tolerance for the float checks.
    """
    f = fields if fields is not None else FieldNames()
    problems: list[str] = []
    if not nodes:
        return problems

    top_level = min(node.get(f.level, 1) for node in nodes)
    seen: set[str] = set()
    open_paths: list[str] = []
    group_shares: dict[str | None, list[float]] = {}

    for position, node in enumerate(nodes):
        path = node.get(f.tree_index)
        if not isinstance(path, str) or not _TREE_INDEX.fullmatch(path):
            problems.append(f"node {position}: malformed {f.tree_index} {path!r}")
            continue
        if path in seen:
            problems.append(f"node {position}: duplicate {f.tree_index} {path!r}")
        seen.add(path)

        parent = _parent_path(path)
        if node.get(f.level, top_level) <= top_level:
            open_paths.clear()
        else:
            while open_paths and open_paths[-1] != parent:
                open_paths.pop()
            if not open_paths:
                problems.append(
                    f"node {position}: {path!r} is not inside its parent's subtree"
                )
        open_paths.append(path)

        problems.extend(_check_leaf(nodes, position, f))

        if f.weight_percent in node:
            problems.extend(_check_weights(node, position, f, tolerance))
            if node.get(f.sum_weight):
                group_shares.setdefault(parent, []).append(
                    float(node[f.weight_percent])
                )

    for parent, shares in group_shares.items():
        total = math.fsum(shares)
        if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=tolerance):
            label = "top level" if parent is None else f"children of {parent!r}"
            problems.append(f"{label}: weight shares sum to {total!r}, not 1.0")

    return problems


def _check_leaf(nodes: Sequence[TreeNode], position: int, f: FieldNames) -> list[str]:
    node = nodes[position]
    if f.is_leaf not in node:
        return []
    level = node.get(f.level, 0)
    following: Any = (
        nodes[position + 1].get(f.level, 0) if position + 1 < len(nodes) else None
    )
    has_children = following is not None and following > level
    if bool(node[f.is_leaf]) == has_children:
        state = "leaf" if node[f.is_leaf] else "non-leaf"
        return [
            f"node {position}: marked {state} but "
            f"{'has' if has_children else 'has no'} children after it"
        ]
    return []


def _check_weights(
    node: TreeNode, position: int, f: FieldNames, tolerance: float
) -> list[str]:
    try:
        expected = float(node[f.parent_weight_percent]) * float(node[f.weight_percent])
        actual = float(node[f.root_weight_percent])
    except (KeyError, TypeError, ValueError):
        return [f"node {position}: incomplete weight fields"]
    if not math.isclose(actual, expected, rel_tol=0.0, abs_tol=tolerance):
        return [
            f"node {position}: {f.root_weight_percent}={actual!r} but "
            f"{f.parent_weight_percent} * {f.weight_percent} = {expected!r}"
        ]
    return []
