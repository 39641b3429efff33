"""TreeConverter: flat record collections to hierarchies and back.

Four operations share one data model (records linked through an identifier
field and a parent-reference field) and one matcher (ChildIndex):

- build_tree():             flat -> nested tree under ``$children``.
- flatten_hierarchical():   flat -> pre-order list (Oracle CONNECT BY order)
                            with sibling ranks and dotted path indices.
- flatten_weighted():       as flatten_hierarchical(), plus per-group weight
                            shares chained multiplicatively from the root.
- flatten_tree_to_array():  nested tree -> flat list with generated ids.

Architecture:
- Traversals run on an explicit stack, not native recursion, so deep
  hierarchies do not hit the interpreter's recursion limit.  Children are
  pushed in reverse so that pops come out in pre-order, exactly as the
  recursive definition would emit them.
- Output nodes are shallow copies of the input records unless
  ``ConverterConfig.in_place`` is set.  flatten_tree_to_array() always
  deep-copies and never touches the caller's tree.
- Expansion guard: once a call has emitted more nodes than there are input
  records the input must be cyclic; remaining nodes are emitted without
  expanding their children and a warning is logged.  This bounds the work,
  it does not detect cycles.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from array_tree.config import ConverterConfig
from array_tree.counter import IdCounter
from array_tree.matcher import ROOT, ChildIndex, is_absent, values_equal
from array_tree.nodes import Record, TreeNode
from array_tree.weights import weigh_group

__all__ = ["TreeConverter"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Frame:
    """A record waiting on the traversal stack, with its position metadata."""

    record: Record
    level: int
    index: int
    tree_index: str
    root_share: float = 1.0
    weights: dict[str, float] = field(default_factory=dict)


class TreeConverter:
    """Converts between flat record collections and hierarchies.

    Holds the configuration and the identifier counter used by
    ``flatten_tree_to_array()``.  The counter persists across calls, so
    ids stay unique across repeated conversions on the same instance until
    ``reset_id_counter()``.  All other operations keep no state between
    calls.

    Example::

        from array_tree import TreeConverter

        rows = [
            {"id": 1, "parent_id": None},
            {"id": 2, "parent_id": 1},
            {"id": 3, "parent_id": 1},
        ]
        conv = TreeConverter()
        tree = conv.build_tree(rows, "id", "parent_id")
        tree[0]["$children"][0]["$is_leaf"]   # True
        flat = conv.flatten_hierarchical(rows, "id", "parent_id")
        [n["$tree_index"] for n in flat]      # ["1", "1.1", "1.2"]
    """

    def __init__(self, config: ConverterConfig | None = None) -> None:
        """Initialise the converter.

        Args:
            config: Field names, root marker and mutation policy.  Defaults
                to ``ConverterConfig()`` when None.
        """
        self._config: ConverterConfig = (
            config if config is not None else ConverterConfig()
        )
        self._counter = IdCounter()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> ConverterConfig:
        """The configuration this converter was created with."""
        return self._config

    @property
    def id_counter(self) -> IdCounter:
        """The identifier counter used by ``flatten_tree_to_array()``."""
        return self._counter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_tree(
        self,
        records: Iterable[Record],
        id_key: str,
        parent_key: str,
        start_with: Any = ROOT,
        level: int = 1,
    ) -> list[TreeNode]:
        """Nest a flat record collection into a tree.

        Every returned node carries ``$level``, ``$children`` (an empty list
        for leaves) and ``$is_leaf``.

        Args:
            records:    Flat collection of mappings.
            id_key:     Name of the identifier field.
            parent_key: Name of the parent-reference field.
            start_with: Parent value of the top of the tree.  Defaults to
                        ROOT, i.e. whatever the configured root marker matches.
            level:      Depth assigned to the top nodes.  Defaults to 1.

        Returns:
            The top nodes in input order.  An empty list (never None) when no
            record matches ``start_with``.  With ``in_place`` set, the record whose
            identifier equals ``start_with`` is then flagged ``$is_leaf``.
        """
        fields = self._config.fields
        if not id_key or not parent_key:
            logger.debug("build_tree: empty id_key or parent_key, nothing to do")
            return []

        rows = self._prepare(records)
        index = ChildIndex(rows, parent_key, self._config.root_marker)
        roots = [self._node(record) for record in index.match(start_with)]
        if not roots and self._config.in_place:
            # the record being expanded has no children
            record = self._find_by_id(rows, id_key, start_with)
            if record is not None:
                self._node(record)[fields.is_leaf] = True

        produced = len(roots)
        guard_tripped = False
        stack: list[tuple[TreeNode, int]] = [
            (node, level) for node in reversed(roots)
        ]
        while stack:
            node, depth = stack.pop()
            node[fields.level] = depth
            if produced > len(rows):
                guard_tripped = True
                node[fields.children] = []
                node[fields.is_leaf] = False
                continue
            children = [self._node(r) for r in index.children_of(node.get(id_key))]
            produced += len(children)
            node[fields.children] = children
            node[fields.is_leaf] = not children
            stack.extend((child, depth + 1) for child in reversed(children))

        if guard_tripped:
            self._warn_guard("build_tree", len(rows))
        logger.debug("build_tree: %d records -> %d roots", len(rows), len(roots))
        return roots

    def flatten_hierarchical(
        self,
        records: Iterable[Record],
        id_key: str,
        parent_key: str,
        start_with: Any = ROOT,
        level: int = 1,
        accumulator: list[TreeNode] | None = None,
        path_prefix: str | None = None,
    ) -> list[TreeNode]:
        """Order a flat collection the way Oracle's CONNECT BY does.

        Siblings keep their input order and each is immediately followed by
        its whole subtree.  Every node gets ``$level``, ``$index`` (1-based
        rank among its siblings), ``$tree_index`` (dotted path such as
        ``"1.2.3"``) and ``$is_leaf``.

        Args:
            records:     Flat collection of mappings.
            id_key:      Name of the identifier field.
            parent_key:  Name of the parent-reference field.
            start_with:  Parent value of the top level.  Defaults to ROOT.
            level:       Depth of the top level.  Defaults to 1.
            accumulator: List to append to (and return).  Lets several calls
                         stack into one sequence.  A new list when None.
                         When nothing matches ``start_with``, the node
                         already in it with that identifier is flagged
                         ``$is_leaf``.
            path_prefix: Dotted path prepended to the top level's
                         ``$tree_index`` values.  None for no prefix.

        Returns:
            The accumulator.
        """
        acc: list[TreeNode] = accumulator if accumulator is not None else []
        if not id_key or not parent_key:
            logger.debug("flatten_hierarchical: empty id_key or parent_key")
            return acc
        rows = self._prepare(records)
        self._walk(
            rows,
            id_key,
            parent_key,
            start_with,
            level,
            acc,
            path_prefix,
            weight_key=None,
            inherited_share=1.0,
            operation="flatten_hierarchical",
        )
        return acc

    def flatten_weighted(
        self,
        records: Iterable[Record],
        id_key: str,
        parent_key: str,
        weight_key: str,
        start_with: Any = ROOT,
        level: int = 1,
        inherited_share: float = 1.0,
        accumulator: list[TreeNode] | None = None,
        path_prefix: str | None = None,
    ) -> list[TreeNode]:
        """Order like ``flatten_hierarchical()`` and attach weight shares.

        Per sibling group (weights that are not finite numbers count as 0):

        - ``$sum_weight``: total weight of the group.
        - ``$weight_percent``: own weight / group total; 0.0 for every
          member when the total is 0.
        - ``$parent_weight_percent``: the share inherited from the parent.
        - ``$root_weight_percent``: inherited share * own share.  This is
          what the node's own children inherit, so at any depth it is the
          product of the shares along the path from the top.

        Args:
            records:         Flat collection of mappings.
            id_key:          Name of the identifier field.
            parent_key:      Name of the parent-reference field.
            weight_key:      Name of the weight field.
            start_with:      Parent value of the top level.  Defaults to ROOT.
            level:           Depth of the top level.  Defaults to 1.
            inherited_share: Share inherited by the top level.  Defaults to 1.0.
            accumulator:     List to append to (and return).
            path_prefix:     Dotted path prepended to top-level ``$tree_index``.

        Returns:
            The accumulator.
        """
        acc: list[TreeNode] = accumulator if accumulator is not None else []
        if not id_key or not parent_key:
            logger.debug("flatten_weighted: empty id_key or parent_key")
            return acc
        rows = self._prepare(records)
        self._walk(
            rows,
            id_key,
            parent_key,
            start_with,
            level,
            acc,
            path_prefix,
            weight_key=weight_key,
            inherited_share=inherited_share,
            operation="flatten_weighted",
        )
        return acc

    def flatten_tree_to_array(
        self,
        tree: Iterable[Record] | Record,
        children_key: str,
        parent_value: Any = ROOT,
        level: int = 1,
    ) -> list[TreeNode]:
        """Flatten a nested tree into a list linked by generated ids.

        Pre-order: each node is followed by its descendants.  Every output
        record is a deep copy of the node without ``children_key``, plus
        ``$id`` (next value of this converter's counter), ``$parent_id`` and
        ``$level``.  The input tree is never modified.

        Args:
            tree:         Root nodes (a single mapping counts as one root).
            children_key: Field holding each node's children.  A mapping there
                          counts as a single child.
            parent_value: ``$parent_id`` of the roots.  Defaults to ROOT, i.e.
                          the root marker's written value (None, "" or the
                          custom value).
            level:        Depth of the roots.  Defaults to 1.

        Returns:
            New flat list of records.
        """
        fields = self._config.fields
        if parent_value is ROOT:
            parent_value = self._config.root_marker.written_value

        out: list[TreeNode] = []
        stack: list[tuple[Record, Any, int]] = [
            (node, parent_value, level)
            for node in reversed(self._tree_items(tree, "tree"))
        ]
        while stack:
            node, parent, depth = stack.pop()
            flat: TreeNode = {
                key: copy.deepcopy(value)
                for key, value in node.items()
                if key != children_key
            }
            flat[fields.id] = self._counter.next()
            flat[fields.parent_id] = parent
            flat[fields.level] = depth
            out.append(flat)

            children = self._tree_items(node.get(children_key), children_key)
            stack.extend(
                (child, flat[fields.id], depth + 1) for child in reversed(children)
            )

        logger.debug(
            "flatten_tree_to_array: %d records, last id %d",
            len(out),
            self._counter.current,
        )
        return out

    def reset_id_counter(self) -> None:
        """Reset the identifier counter so the next generated ``$id`` is 1."""
        self._counter.reset()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _walk(
        self,
        rows: list[Record],
        id_key: str,
        parent_key: str,
        start_with: Any,
        level: int,
        acc: list[TreeNode],
        path_prefix: str | None,
        weight_key: str | None,
        inherited_share: float,
        operation: str,
    ) -> None:
        """Pre-order traversal shared by both flatteners."""
        fields = self._config.fields
        index = ChildIndex(rows, parent_key, self._config.root_marker)
        start = len(acc)
        guard_tripped = False

        top = index.match(start_with)
        if not top:
            emitted = self._find_by_id(reversed(acc), id_key, start_with)
            if isinstance(emitted, MutableMapping):
                emitted[fields.is_leaf] = True

        stack: list[_Frame] = []
        self._push_group(
            stack,
            top,
            level,
            path_prefix,
            weight_key,
            inherited_share,
        )
        while stack:
            frame = stack.pop()
            node = self._node(frame.record)
            node.update(frame.weights)
            node[fields.level] = frame.level
            node[fields.index] = frame.index
            node[fields.tree_index] = frame.tree_index
            node[fields.is_leaf] = False
            acc.append(node)

            if len(acc) - start > len(rows):
                guard_tripped = True
                continue
            children = index.children_of(node.get(id_key))
            if not children:
                node[fields.is_leaf] = True
                continue
            self._push_group(
                stack,
                children,
                frame.level + 1,
                frame.tree_index,
                weight_key,
                frame.root_share,
            )

        if guard_tripped:
            self._warn_guard(operation, len(rows))
        logger.debug(
            "%s: %d records -> %d nodes", operation, len(rows), len(acc) - start
        )

    def _push_group(
        self,
        stack: list[_Frame],
        members: Sequence[Record],
        level: int,
        prefix: str | None,
        weight_key: str | None,
        inherited_share: float,
    ) -> None:
        """Push one sibling group so that its first member is popped first."""
        if not members:
            return
        fields = self._config.fields
        group = (
            weigh_group(members, weight_key, inherited_share)
            if weight_key is not None
            else None
        )

        frames: list[_Frame] = []
        for position, record in enumerate(members, start=1):
            frame = _Frame(
                record=record,
                level=level,
                index=position,
                tree_index=f"{prefix}.{position}" if prefix else str(position),
                root_share=inherited_share,
            )
            if group is not None:
                share = group.shares[position - 1]
                frame.root_share = group.root_shares[position - 1]
                frame.weights = {
                    fields.sum_weight: group.sum_weight,
                    fields.weight_percent: share,
                    fields.parent_weight_percent: group.inherited_share,
                    fields.root_weight_percent: frame.root_share,
                }
            frames.append(frame)
        stack.extend(reversed(frames))

    def _node(self, record: Record) -> TreeNode:
        """Return the mapping to annotate: a shallow copy, or the record itself."""
        if not self._config.in_place:
            return dict(record)
        if not isinstance(record, MutableMapping):
            msg = (
                "in_place=True needs mutable mappings, "
                f"got {type(record).__name__}"
            )
            raise TypeError(msg)
        return record  # type: ignore[return-value]

    @staticmethod
    def _find_by_id(candidates: Iterable[Any], id_key: str, identifier: Any) -> Any:
        """Return the first mapping whose ``id_key`` equals ``identifier``, or None."""
        if identifier is ROOT or is_absent(identifier):
            return None
        for candidate in candidates:
            if isinstance(candidate, Mapping) and values_equal(
                candidate.get(id_key), identifier
            ):
                return candidate
        return None

    @staticmethod
    def _prepare(records: Iterable[Any]) -> list[Record]:
        """Materialise the input, dropping items that are not mappings."""
        if records is None:
            return []
        rows: list[Record] = []
        for position, record in enumerate(records):
            if isinstance(record, Mapping):
                rows.append(record)
            else:
                logger.warning(
                    "skipping item %d: expected a mapping, got %s",
                    position,
                    type(record).__name__,
                )
        return rows

    @staticmethod
    def _tree_items(value: Any, where: str) -> list[Record]:
        """Normalise a tree or children value to a list of node mappings."""
        if value is None:
            return []
        if isinstance(value, Mapping):
            return [value]
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            logger.warning(
                "ignoring %r value of type %s: expected a list of nodes",
                where,
                type(value).__name__,
            )
            return []
        items: list[Record] = []
        for position, item in enumerate(value):
            if isinstance(item, Mapping):
                items.append(item)
            else:
                logger.warning(
                    "skipping %r item %d: expected a mapping, got %s",
                    where,
                    position,
                    type(item).__name__,
                )
        return items

    @staticmethod
    def _warn_guard(operation: str, size: int) -> None:
        logger.warning(
            "%s: emitted more nodes than the %d input records; parent "
            "references are probably cyclic, stopped expanding",
            operation,
            size,
        )
