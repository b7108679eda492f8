"""
Tests for functional ViewState updates.

Every update returns a new snapshot and leaves the old one untouched.
"""

import pytest

from gridview.views.core import (
    ConfigurationError,
    FilterSpec,
    PageWindow,
    SelectionMode,
    SortDirection,
    SortKey,
    ViewState,
)
from gridview.views import state as ops


@pytest.fixture
def paged():
    """A state on page 3."""
    return ViewState(page=PageWindow(index=3, size=5))


class TestSnapshots:
    """Test immutability of ViewState."""

    def test_state_is_frozen(self):
        state = ViewState()
        with pytest.raises(Exception):
            state.search = "x"

    def test_lists_become_tuples(self):
        state = ViewState(sort=[SortKey("a")], group_fields=["g"], collapsed=["p"])
        assert state.sort == (SortKey("a"),)
        assert state.group_fields == ("g",)
        assert state.collapsed == frozenset({"p"})

    def test_update_leaves_original(self):
        state = ViewState()
        new = ops.with_sort(state, "a")
        assert state.sort == ()
        assert new.sort == (SortKey("a"),)

    def test_referenced_fields(self):
        state = ViewState(
            sort=[SortKey("a")],
            filters=[FilterSpec("b", "eq", "1"), FilterSpec("a", "eq", "2")],
            group_fields=["c"],
        )
        assert state.referenced_fields() == ["a", "b", "c"]


class TestSortUpdates:
    """Test sort updates."""

    def test_sort_keeps_page(self, paged):
        assert ops.with_sort(paged, "a").page.index == 3

    def test_additive(self):
        state = ops.with_sort(ViewState(), "a")
        state = ops.with_sort(state, "b", additive=True)
        assert [k.field for k in state.sort] == ["a", "b"]


class TestFilterUpdates:
    """Test filter upserts and removal rules."""

    def test_set_filter_resets_page(self, paged):
        state = ops.with_filter(paged, "n", "gt", "5")
        assert state.page == PageWindow(index=1, size=5)
        assert state.filters == (FilterSpec("n", "gt", "5"),)

    def test_replaces_in_place(self):
        state = ViewState(filters=[FilterSpec("a", "eq", "1"), FilterSpec("b", "eq", "2")])
        state = ops.with_filter(state, "a", "gt", "9")
        assert state.filters == (FilterSpec("a", "gt", "9"), FilterSpec("b", "eq", "2"))

    def test_empty_value_removes_filter(self):
        state = ops.with_filter(ViewState(), "a", "eq", "1")
        state = ops.with_filter(state, "a", "eq", "")
        assert state.filters == ()

    def test_is_empty_needs_no_value(self):
        state = ops.with_filter(ViewState(), "a", "isEmpty")
        assert state.filters == (FilterSpec("a", "isEmpty"),)

    def test_empty_range_is_kept_unless_cleared(self):
        state = ops.with_filter(ViewState(), "n", "between", "", "")
        assert state.filters == (FilterSpec("n", "between", "", ""),)
        assert state.filters[0].is_inert
        state = ops.with_filter(state, "n", "between", "", "", clear=True)
        assert state.filters == ()

    def test_range_with_one_bound_is_kept(self):
        state = ops.with_filter(ViewState(), "n", "between", "", "10", clear=True)
        assert state.filter_for("n").second_value == "10"

    def test_without_filter(self, paged):
        state = ops.with_filter(paged, "a", "eq", "1")
        state = ops.with_filter(state, "b", "eq", "1")
        state = ops.without_filter(state, "a")
        assert [f.field for f in state.filters] == ["b"]

    def test_without_filters(self, paged):
        state = ops.with_filter(paged, "a", "eq", "1")
        state = ops.with_page(state, 4)
        state = ops.without_filters(state)
        assert state.filters == ()
        assert state.page.index == 1


class TestGroupUpdates:
    """Test group field and collapse updates."""

    def test_group_fields_reset_collapse_and_page(self, paged):
        state = ops.with_toggled_group(paged, "A")
        state = ops.with_group_fields(state, ["dept"])
        assert state.group_fields == ("dept",)
        assert state.collapsed == frozenset()
        assert state.page.index == 1

    def test_toggle_flips_membership(self):
        state = ops.with_toggled_group(ViewState(), "A")
        assert state.collapsed == {"A"}
        state = ops.with_toggled_group(state, "A")
        assert state.collapsed == frozenset()

    def test_toggle_only_touches_collapse_state(self, paged):
        state = ops.with_sort(paged, "a")
        toggled = ops.with_toggled_group(state, "A")
        assert toggled.sort == state.sort
        assert toggled.page == state.page
        assert toggled.filters == state.filters


class TestPageUpdates:
    """Test page and page size updates."""

    def test_with_page(self, paged):
        assert ops.with_page(paged, 7).page == PageWindow(index=7, size=5)

    def test_with_page_size_keeps_index(self, paged):
        assert ops.with_page_size(paged, 20).page == PageWindow(index=3, size=20)

    def test_with_page_size_rejects_zero(self, paged):
        with pytest.raises(ConfigurationError):
            ops.with_page_size(paged, 0)


class TestSearchUpdates:
    """Test search updates."""

    def test_search_resets_page(self, paged):
        state = ops.with_search(paged, "ann")
        assert state.search == "ann"
        assert state.page.index == 1

    def test_search_fields_kept_when_not_given(self):
        state = ops.with_search(ViewState(), "a", ["name"])
        state = ops.with_search(state, "b")
        assert state.search_fields == ("name",)


class TestSelectionUpdates:
    """Test row selection updates per selection mode."""

    def test_selection_is_frozen(self):
        assert ViewState(selected=[1, 2]).selected == frozenset({1, 2})

    def test_none_mode_ignores_changes(self):
        state = ViewState()
        assert ops.with_toggled_selection(state, 1, SelectionMode.NONE) is state
        assert ops.with_selection(state, [1, 2], SelectionMode.NONE) is state

    def test_single_mode_keeps_one_key(self):
        state = ops.with_toggled_selection(ViewState(), 1, SelectionMode.SINGLE)
        state = ops.with_toggled_selection(state, 2, SelectionMode.SINGLE)
        assert state.selected == {2}

    def test_single_mode_toggle_clears(self):
        state = ops.with_toggled_selection(ViewState(selected=[2]), 2, SelectionMode.SINGLE)
        assert state.selected == frozenset()

    def test_multiple_mode_flips_keys(self):
        state = ops.with_toggled_selection(ViewState(selected=[1]), 2, SelectionMode.MULTIPLE)
        assert state.selected == {1, 2}
        state = ops.with_toggled_selection(state, 1, SelectionMode.MULTIPLE)
        assert state.selected == {2}

    def test_select_all_then_clear(self):
        state = ops.with_all_selected(ViewState(selected=[1]), [0, 1, 2], SelectionMode.MULTIPLE)
        assert state.selected == {0, 1, 2}
        state = ops.with_all_selected(state, [0, 1, 2], SelectionMode.MULTIPLE)
        assert state.selected == frozenset()

    def test_select_all_needs_multiple_mode(self):
        state = ViewState()
        assert ops.with_all_selected(state, [0, 1], SelectionMode.SINGLE) is state

    def test_with_selection_single_takes_first(self):
        state = ops.with_selection(ViewState(), [3, 4], SelectionMode.SINGLE)
        assert state.selected == {3}

    def test_deselect_and_clear(self):
        state = ops.without_selected(ViewState(selected=[1, 2, 3]), [2, 9])
        assert state.selected == {1, 3}
        assert ops.without_selection(state).selected == frozenset()

    def test_selection_keeps_page(self, paged):
        state = ops.with_toggled_selection(paged, 1, SelectionMode.MULTIPLE)
        assert state.page == paged.page
