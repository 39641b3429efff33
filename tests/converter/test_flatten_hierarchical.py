"""Tests for TreeConverter.flatten_hierarchical (CONNECT BY ordering)."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from array_tree import ConverterConfig, RootMarker, TreeConverter


def _column(nodes: list[dict[str, Any]], key: str) -> list[Any]:
    return [n[key] for n in nodes]


# ---------------------------------------------------------------------------
# Ordering and indices
# ---------------------------------------------------------------------------


class TestFlattenOrder:
    """menu_rows pre-order: 1, 2, 4, 5, 3, 6."""

    @pytest.fixture
    def flat(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        return converter.flatten_hierarchical(menu_rows, "id", "parent_id")

    def test_pre_order(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "id") == [1, 2, 4, 5, 3, 6]

    def test_levels(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "$level") == [1, 2, 3, 2, 1, 2]

    def test_sibling_indices(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "$index") == [1, 1, 1, 2, 2, 1]

    def test_tree_indices(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "$tree_index") == ["1", "1.1", "1.1.1", "1.2", "2", "2.1"]

    def test_leaf_flags(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "$is_leaf") == [False, False, True, True, False, True]

    def test_no_children_field(self, flat: list[dict[str, Any]]) -> None:
        assert all("$children" not in n for n in flat)

    def test_original_fields_kept(self, flat: list[dict[str, Any]]) -> None:
        assert _column(flat, "title") == [
            "Home",
            "Products",
            "Widgets",
            "Pricing",
            "About",
            "Team",
        ]


class TestFlattenArguments:
    def test_start_with_and_prefix(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        flat = converter.flatten_hierarchical(
            menu_rows, "id", "parent_id", start_with=1, level=2, path_prefix="3"
        )
        assert _column(flat, "id") == [2, 4, 5]
        assert _column(flat, "$tree_index") == ["3.1", "3.1.1", "3.2"]
        assert _column(flat, "$level") == [2, 3, 2]

    def test_empty_prefix_means_no_prefix(
        self, converter: TreeConverter, simple_rows: list[dict[str, Any]]
    ) -> None:
        flat = converter.flatten_hierarchical(
            simple_rows, "id", "parent_id", path_prefix=""
        )
        assert _column(flat, "$tree_index") == ["1", "1.1", "1.2"]

    def test_accumulator_is_returned(
        self, converter: TreeConverter, simple_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = []
        result = converter.flatten_hierarchical(
            simple_rows, "id", "parent_id", accumulator=acc
        )
        assert result is acc
        assert len(acc) == 3

    def test_calls_stack_into_one_sequence(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = []
        converter.flatten_hierarchical(
            menu_rows, "id", "parent_id", start_with=1, accumulator=acc
        )
        converter.flatten_hierarchical(
            menu_rows, "id", "parent_id", start_with=3, accumulator=acc
        )
        assert _column(acc, "id") == [2, 4, 5, 6]

    def test_childless_start_flags_emitted_node(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = [{"id": 4, "$is_leaf": False}]
        result = converter.flatten_hierarchical(
            menu_rows, "id", "parent_id", start_with=4, accumulator=acc
        )
        assert result == [{"id": 4, "$is_leaf": True}]

    def test_childless_start_without_emitted_node(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = [{"id": 1, "$is_leaf": False}]
        converter.flatten_hierarchical(
            menu_rows, "id", "parent_id", start_with=4, accumulator=acc
        )
        assert acc == [{"id": 1, "$is_leaf": False}]

    def test_prefilled_accumulator_does_not_trip_guard(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = [{"filler": i} for i in range(50)]
        converter.flatten_hierarchical(menu_rows, "id", "parent_id", accumulator=acc)
        flat = acc[50:]
        assert _column(flat, "id") == [1, 2, 4, 5, 3, 6]
        assert _column(flat, "$is_leaf") == [False, False, True, True, False, True]

    def test_empty_key_names_return_accumulator(
        self, converter: TreeConverter, simple_rows: list[dict[str, Any]]
    ) -> None:
        acc: list[dict[str, Any]] = [{"x": 1}]
        result = converter.flatten_hierarchical(simple_rows, "", "", accumulator=acc)
        assert result is acc
        assert acc == [{"x": 1}]

    def test_no_matches_gives_empty_list(self, converter: TreeConverter) -> None:
        rows = [{"id": 1, "parent_id": 5}]
        assert converter.flatten_hierarchical(rows, "id", "parent_id") == []

    def test_custom_root_marker(self) -> None:
        rows = [{"id": 2, "parent_id": 1}, {"id": 1, "parent_id": -1}]
        conv = TreeConverter(ConverterConfig(root_marker=RootMarker.custom(-1)))
        flat = conv.flatten_hierarchical(rows, "id", "parent_id")
        assert _column(flat, "id") == [1, 2]


# ---------------------------------------------------------------------------
# Mutation policy
# ---------------------------------------------------------------------------


class TestFlattenMutation:
    def test_input_untouched_by_default(
        self, converter: TreeConverter, menu_rows: list[dict[str, Any]]
    ) -> None:
        before = [dict(r) for r in menu_rows]
        converter.flatten_hierarchical(menu_rows, "id", "parent_id")
        assert menu_rows == before

    def test_in_place(self, menu_rows: list[dict[str, Any]]) -> None:
        conv = TreeConverter(ConverterConfig(in_place=True))
        flat = conv.flatten_hierarchical(menu_rows, "id", "parent_id")
        assert flat[0] is menu_rows[0]
        assert menu_rows[3]["$tree_index"] == "1.1.1"


# ---------------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------------


class TestFlattenDegenerate:
    def test_self_parent_is_bounded(
        self, converter: TreeConverter, caplog: pytest.LogCaptureFixture
    ) -> None:
        rows = [{"id": 1, "parent_id": 1}]
        with caplog.at_level(logging.WARNING, logger="array_tree.converter"):
            flat = converter.flatten_hierarchical(rows, "id", "parent_id", start_with=1)
        assert _column(flat, "$tree_index") == ["1", "1.1"]
        assert flat[-1]["$is_leaf"] is False
        assert "cyclic" in caplog.text

    def test_two_cycle_output_bounded(self, converter: TreeConverter) -> None:
        rows = [{"id": "a", "parent_id": "b"}, {"id": "b", "parent_id": "a"}]
        flat = converter.flatten_hierarchical(rows, "id", "parent_id", start_with="a")
        assert len(flat) == len(rows) + 1

    def test_non_mapping_items_skipped(self, converter: TreeConverter) -> None:
        rows: list[Any] = [{"id": 1, "parent_id": None}, ["not", "a", "record"]]
        flat = converter.flatten_hierarchical(rows, "id", "parent_id")
        assert _column(flat, "id") == [1]

    def test_deep_chain(self, converter: TreeConverter, chain_factory: Any) -> None:
        flat = converter.flatten_hierarchical(chain_factory(3000), "id", "parent_id")
        assert _column(flat, "id") == list(range(1, 3001))
        assert flat[-1]["$tree_index"] == ".".join(["1"] * 3000)
        assert flat[-1]["$is_leaf"] is True
