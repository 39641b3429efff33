"""pytest plugin for array-tree.

Auto-discovered by pytest via the pytest11 entry point declared in pyproject.toml.
When the package is installed (even in editable mode), pytest discovers this plugin
automatically -- no conftest.py changes are needed.

Source: https://docs.pytest.org/en/stable/how-to/writing_plugins.html
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from array_tree import FieldNames, check_hierarchy
from array_tree.nodes import TreeNode


@pytest.fixture(scope="session")
def assert_valid_hierarchy() -> Any:
    """Fixture that returns a callable flattened-hierarchy asserter.

    The fixture is session-scoped because the returned callable is stateless
    (delegates to check_hierarchy()).

    Usage in tests::

        def test_menu_order(assert_valid_hierarchy):
            nodes = flatten_weighted(rows, "id", "parent_id", "weight")
            assert_valid_hierarchy(nodes)

    Returns:
        A callable ``_assert(nodes, fields=None, tolerance=1e-9) -> None``
        that raises ``AssertionError`` listing every problem found.
    """

    def _assert(
        nodes: Sequence[TreeNode],
        fields: FieldNames | None = None,
        tolerance: float = 1e-9,
    ) -> None:
        """Assert that a flattened hierarchy is internally consistent.

        Args:
            nodes:     Output of flatten_hierarchical() or flatten_weighted().
            fields:    Metadata field names, when not the defaults.
            tolerance: Absolute tolerance for the weight checks.

        Raises:
            AssertionError: When check_hierarchy() reports problems; the
                message lists each of them.
        """
        problems = check_hierarchy(nodes, fields=fields, tolerance=tolerance)
        if problems:
            listing = "\n".join(f"  - {p}" for p in problems)
            raise AssertionError(
                f"hierarchy is inconsistent ({len(problems)} problems):\n{listing}"
            )

    return _assert
