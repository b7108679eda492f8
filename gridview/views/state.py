"""
Functional updates over ViewState.

Each function takes a snapshot and returns a new one; snapshots are never
modified in place. Page indexes are stored as requested (at least 1) and
clamped against the record count by the engine after recomputation.
"""

from dataclasses import replace
from typing import Any, Iterable, Optional, Sequence

from gridview.views.core import (
    IS_EMPTY,
    RANGE_OPERATORS,
    FilterSpec,
    PageWindow,
    SelectionMode,
    ViewState,
    has_value,
)
from gridview.views.ordering import toggle_sort


def _first_page(state: ViewState) -> PageWindow:
    return PageWindow(index=1, size=state.page.size)


def with_sort(state: ViewState, field: str, additive: bool = False) -> ViewState:
    """Apply a header click (plain or modified) to the sort keys."""
    return replace(state, sort=toggle_sort(state.sort, field, additive))


def with_filter(
    state: ViewState,
    field: str,
    operator: str,
    value: str = "",
    second_value: Optional[str] = None,
    clear: bool = False,
) -> ViewState:
    """
    Upsert the filter on one field and go back to the first page.

    A single-value operator with no value removes the field's filter. A
    range with neither bound is kept as an inert entry, so a widget can
    hold its operator while both boxes are empty, unless `clear` is set.
    """
    spec = FilterSpec(field, operator, value, second_value)

    remove = False
    if operator in RANGE_OPERATORS:
        remove = clear and not has_value(spec.value) and not has_value(spec.second_value)
    elif operator != IS_EMPTY:
        remove = not has_value(spec.value)

    filters = []
    placed = False
    for existing in state.filters:
        if existing.field == field:
            if not remove and not placed:
                filters.append(spec)
                placed = True
            continue
        filters.append(existing)
    if not remove and not placed:
        filters.append(spec)

    return replace(state, filters=tuple(filters), page=_first_page(state))


def without_filter(state: ViewState, field: str) -> ViewState:
    filters = tuple(f for f in state.filters if f.field != field)
    return replace(state, filters=filters, page=_first_page(state))


def without_filters(state: ViewState) -> ViewState:
    return replace(state, filters=(), page=_first_page(state))


def with_group_fields(state: ViewState, fields: Sequence[str]) -> ViewState:
    """Replace the group fields; collapse state starts over, all expanded."""
    return replace(
        state,
        group_fields=tuple(fields),
        collapsed=frozenset(),
        page=_first_page(state),
    )


def with_toggled_group(state: ViewState, path: str) -> ViewState:
    """Flip one group path between collapsed and expanded."""
    collapsed = set(state.collapsed)
    if path in collapsed:
        collapsed.remove(path)
    else:
        collapsed.add(path)
    return replace(state, collapsed=frozenset(collapsed))


def with_collapsed(state: ViewState, paths: Iterable[str]) -> ViewState:
    return replace(state, collapsed=frozenset(paths))


def with_page(state: ViewState, index: int) -> ViewState:
    return replace(state, page=PageWindow(index=index, size=state.page.size))


def with_page_size(state: ViewState, size: int) -> ViewState:
    """Change the page size, keeping the index (clamped later)."""
    return replace(state, page=PageWindow(index=state.page.index, size=size))


def with_search(state: ViewState, query: str, fields: Optional[Sequence[str]] = None) -> ViewState:
    search_fields = state.search_fields if fields is None else tuple(fields)
    return replace(
        state,
        search=query or "",
        search_fields=search_fields,
        page=_first_page(state),
    )


# =============================================================================
# Row selection
# =============================================================================

def with_toggled_selection(state: ViewState, key: Any, mode: SelectionMode) -> ViewState:
    """
    Flip one row key in the selection.

    Single mode keeps at most one key: selecting a row drops the others,
    and toggling the selected row clears the selection.
    """
    if mode is SelectionMode.NONE:
        return state
    if mode is SelectionMode.SINGLE:
        selected = frozenset() if key in state.selected else frozenset([key])
    else:
        selected = state.selected ^ {key}
    return replace(state, selected=selected)


def with_all_selected(state: ViewState, keys: Iterable[Any], mode: SelectionMode) -> ViewState:
    """Select every key, or clear when every key is already selected."""
    if mode is not SelectionMode.MULTIPLE:
        return state
    keys = frozenset(keys)
    if keys and keys <= state.selected:
        return replace(state, selected=frozenset())
    return replace(state, selected=keys)


def with_selection(state: ViewState, keys: Sequence[Any], mode: SelectionMode) -> ViewState:
    """Replace the selection; single mode keeps only the first key."""
    if mode is SelectionMode.NONE:
        return state
    keys = list(keys)
    if mode is SelectionMode.SINGLE:
        keys = keys[:1]
    return replace(state, selected=frozenset(keys))


def without_selected(state: ViewState, keys: Iterable[Any]) -> ViewState:
    return replace(state, selected=state.selected - frozenset(keys))


def without_selection(state: ViewState) -> ViewState:
    return replace(state, selected=frozenset())
