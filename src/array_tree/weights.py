"""Weight shares for one sibling group.

For a sibling group with weights ``w_i``:
    sum_weight     = sum(w_i)
    weight_percent = w_i / sum_weight   (0.0 for every member when sum_weight == 0)
    root_percent   = inherited_share * weight_percent

Weights that are not finite real numbers (None, strings, bools, NaN, inf,
integers too large for a float) count as 0.0.  Shares are computed on the
weights scaled by a power of two near the largest magnitude in the group, so
a group whose raw sum overflows float64 still gets shares summing to 1 (its
``sum_weight`` is then inf).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from numbers import Real
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from array_tree.nodes import Record

__all__ = ["WeightGroup", "coerce_weight", "weigh_group"]


def coerce_weight(value: Any) -> float:
    """Return ``value`` as a finite float, or 0.0 when it is not a usable number."""
    # CRITICAL: bool is a Real (subclass of int) but is not a weight
    if isinstance(value, bool) or not isinstance(value, Real):
        return 0.0
    try:
        result = float(value)
    except OverflowError:
        # ints and Fractions beyond the float range
        return 0.0
    if not math.isfinite(result):
        return 0.0
    return result


@dataclass(frozen=True, slots=True)
class WeightGroup:
    """Weight figures for one sibling group.

    Attributes:
        sum_weight: Total of the coerced weights.
        shares:     Per-member share of the total, in member order.
        root_shares: ``inherited_share * share`` per member.
        inherited_share: The share passed down from the group's parent.
    """

    sum_weight: float
    shares: tuple[float, ...]
    root_shares: tuple[float, ...]
    inherited_share: float


def weigh_group(
    members: Sequence[Record], weight_key: str, inherited_share: float = 1.0
) -> WeightGroup:
    """Compute sum, shares and cumulative root shares for a sibling group.

    Args:
        members:         Records of one sibling group, in output order.
        weight_key:      Field holding each record's weight.
        inherited_share: Cumulative root share of the group's parent (1.0 at
                         the top level).

    Returns:
        A WeightGroup.  When the group total is 0 every share is 0.0.
    """
    weights = np.fromiter(
        (coerce_weight(m.get(weight_key)) for m in members),
        dtype=np.float64,
        count=len(members),
    )
    peak = float(np.abs(weights).max()) if weights.size else 0.0
    if peak == 0.0:
        total = 0.0
        shares = np.zeros_like(weights)
    else:
        # power-of-two scale: exact, and keeps the partial sums finite
        scale = math.ldexp(1.0, math.frexp(peak)[1] - 1)
        scaled = weights / scale
        scaled_total = float(scaled.sum())
        total = scaled_total * scale  # inf when the true sum overflows
        if scaled_total == 0.0:
            shares = np.zeros_like(weights)
        else:
            shares = scaled / scaled_total
    root_shares = shares * inherited_share
    return WeightGroup(
        sum_weight=total,
        shares=tuple(float(s) for s in shares),
        root_shares=tuple(float(s) for s in root_shares),
        inherited_share=float(inherited_share),
    )
