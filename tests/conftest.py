"""Shared fixtures and deterministic record generators.

All generators produce fixed, reproducible record lists.  No random values.
Forests are emitted breadth-first (optionally reversed) so that input order
never coincides with the pre-order the flatteners must produce.
"""

from __future__ import annotations

from typing import Any

import pytest

from array_tree import TreeConverter


def make_forest(
    roots: int,
    branching: int,
    depth: int,
    *,
    sparse: bool = False,
    reverse: bool = False,
) -> list[dict[str, Any]]:
    """Generate a forest of ``{"id", "parent_id", "name", "weight"}`` records.

    Args:
        roots:     Number of top-level records (parent_id None).
        branching: Children per expanded record.
        depth:     Maximum depth (1 = roots only).
        sparse:    When True, records whose id is a multiple of 3 get no children.
        reverse:   When True, the breadth-first listing is reversed.

    Weights cycle through ``(id * 37) % 11`` so some are 0, which makes
    some sibling groups sum to zero.
    """
    records: list[dict[str, Any]] = []
    frontier: list[tuple[int, int]] = []
    next_id = 1

    def _add(parent: int | None, level: int) -> None:
        nonlocal next_id
        records.append(
            {
                "id": next_id,
                "parent_id": parent,
                "name": f"node-{next_id}",
                "weight": (next_id * 37) % 11,
            }
        )
        frontier.append((next_id, level))
        next_id += 1

    for _ in range(roots):
        _add(None, 1)
    while frontier:
        parent, level = frontier.pop(0)
        if level >= depth or (sparse and parent % 3 == 0):
            continue
        for _ in range(branching):
            _add(parent, level + 1)

    if reverse:
        records.reverse()
    return records


def make_chain(length: int) -> list[dict[str, Any]]:
    """Generate a single path 1 <- 2 <- ... <- length, listed deepest first."""
    return [
        {"id": i, "parent_id": i - 1 if i > 1 else None, "weight": 1}
        for i in range(length, 0, -1)
    ]


FOREST_SHAPES: dict[str, dict[str, Any]] = {
    "single-root": {"roots": 1, "branching": 2, "depth": 3},
    "wide-reversed": {"roots": 3, "branching": 3, "depth": 3, "reverse": True},
    "sparse": {"roots": 2, "branching": 3, "depth": 4, "sparse": True},
    "chain-like": {"roots": 2, "branching": 1, "depth": 6},
    "roots-only": {"roots": 4, "branching": 0, "depth": 1},
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def converter() -> TreeConverter:
    """A fresh TreeConverter with the default configuration."""
    return TreeConverter()


@pytest.fixture
def simple_rows() -> list[dict[str, Any]]:
    """One root (1) with two children (2, 3); weights 100/60/40."""
    return [
        {"id": 1, "parent_id": None, "weight": 100},
        {"id": 2, "parent_id": 1, "weight": 60},
        {"id": 3, "parent_id": 1, "weight": 40},
    ]


@pytest.fixture
def menu_rows() -> list[dict[str, Any]]:
    """Two roots listed out of pre-order.

    Pre-order: 1, 2, 4, 5, 3, 6  ->  "1", "1.1", "1.1.1", "1.2", "2", "2.1"
    """
    return [
        {"id": 1, "parent_id": None, "title": "Home"},
        {"id": 2, "parent_id": 1, "title": "Products"},
        {"id": 3, "parent_id": None, "title": "About"},
        {"id": 4, "parent_id": 2, "title": "Widgets"},
        {"id": 5, "parent_id": 1, "title": "Pricing"},
        {"id": 6, "parent_id": 3, "title": "Team"},
    ]


@pytest.fixture(params=sorted(FOREST_SHAPES), ids=sorted(FOREST_SHAPES))
def forest(request: pytest.FixtureRequest) -> list[dict[str, Any]]:
    """Each generated forest shape in turn."""
    return make_forest(**FOREST_SHAPES[request.param])


@pytest.fixture
def chain_factory() -> Any:
    """The ``make_chain`` generator, for tests that need a custom length."""
    return make_chain
