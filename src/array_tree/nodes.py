"""NodeField StrEnum and record type aliases.

A record is any mapping from field name to value; a tree node is a plain
dict holding a record's fields plus the metadata fields named by NodeField.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

__all__ = ["NodeField", "Record", "TreeNode"]

Record = Mapping[str, Any]
TreeNode = dict[str, Any]


class NodeField(StrEnum):
    """Default names of the metadata fields written onto output nodes.

    - CHILDREN               -> "$children"               : nested child nodes
    - LEVEL                  -> "$level"                  : 1-based depth
    - IS_LEAF                -> "$is_leaf"                : True when childless
    - INDEX                  -> "$index"                  : 1-based sibling rank
    - TREE_INDEX             -> "$tree_index"             : dotted path, "1.2.3"
    - SUM_WEIGHT             -> "$sum_weight"             : sibling-group total
    - WEIGHT_PERCENT         -> "$weight_percent"         : share of the group
    - PARENT_WEIGHT_PERCENT  -> "$parent_weight_percent"  : inherited share
    - ROOT_WEIGHT_PERCENT    -> "$root_weight_percent"    : cumulative share
    - ID                     -> "$id"                     : generated identifier
    - PARENT_ID              -> "$parent_id"              : generated parent id
    """

    CHILDREN = "$children"
    LEVEL = "$level"
    IS_LEAF = "$is_leaf"
    INDEX = "$index"
    TREE_INDEX = "$tree_index"
    SUM_WEIGHT = "$sum_weight"
    WEIGHT_PERCENT = "$weight_percent"
    PARENT_WEIGHT_PERCENT = "$parent_weight_percent"
    ROOT_WEIGHT_PERCENT = "$root_weight_percent"
    ID = "$id"
    PARENT_ID = "$parent_id"
