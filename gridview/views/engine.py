"""
View Engine - the filter -> sort -> group -> paginate pipeline.

compute_view() is the pure pipeline: records, field descriptors and a
ViewState in, a ViewOutput out. ViewEngine owns one ViewState, exposes the
mutators a table surface needs and recomputes eagerly after each of them.
Every mutator returns the new immutable snapshot.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from gridview.constants import DEFAULT_PAGE_SIZE, NULL_GROUP_LABEL
from gridview.views.core import (
    ConfigurationError,
    DisplayRow,
    FieldDescriptor,
    FilterSpec,
    GroupOrder,
    GroupOrderError,
    InvalidOperatorError,
    PageWindow,
    SortDirection,
    SortKey,
    UnknownFieldError,
    ViewConfiguration,
    ViewOutput,
    ViewState,
    SelectionMode,
    RANGE_OPERATORS,
    IS_EMPTY,
)
from gridview.views.expression import resolve_filter_text
from gridview.views.fields import get_value, index_fields, infer_fields
from gridview.views.grouping import group_rows, header_paths
from gridview.views.ordering import (
    lead_with_groups,
    leads_with_groups,
    sort_direction_for,
    sort_order_for,
    sort_records,
)
from gridview.views.paging import count_records, paginate
from gridview.views.predicates import apply_filters, default_operator, is_valid_operator
from gridview.views.search import search_records, searchable_fields
from gridview.views import state as ops

logger = logging.getLogger(__name__)


def compute_view(
    records: Iterable[Any],
    fields: Mapping[str, FieldDescriptor],
    state: ViewState,
    group_order: GroupOrder = GroupOrder.CALLER,
    null_label: str = NULL_GROUP_LABEL,
) -> ViewOutput:
    """
    Run the full pipeline once.

    Search and filters narrow the records, the sort keys order them, the
    group fields interleave headers, and the page window picks one page
    of the result. The page index in the output is clamped to the pages
    that exist.
    """
    records = list(records)

    searched = search_records(records, state.search, searchable_fields(fields, state.search_fields))
    filtered = apply_filters(searched, state.filters, fields)

    keys = state.sort
    if group_order is GroupOrder.AUTO and state.group_fields:
        keys = lead_with_groups(keys, state.group_fields)
    ordered = sort_records(filtered, keys, fields)

    display = group_rows(ordered, state.group_fields, state.collapsed, null_label)
    total = count_records(display)
    page = state.page.clamped(total)
    rows = paginate(display, page)

    logger.debug(
        f"View computed: {len(records)} records, {len(filtered)} after filters, "
        f"{total} visible, page {page.index}/{page.total_pages(total)}"
    )

    return ViewOutput(
        rows=tuple(rows),
        display_rows=tuple(display),
        records=tuple(ordered),
        page=page,
        total_items=total,
        total_pages=page.total_pages(total),
    )


@dataclass(frozen=True)
class Pagination:
    """Pager read-out for the current computation."""
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    start_item: int
    end_item: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


class ViewEngine:
    """
    Stateful orchestrator over compute_view().

    Records and field descriptors are supplied by the caller and never
    modified. Sort keys, filters, group fields, collapse state, search, the
    row selection and the page window are engine-owned and change only
    through the mutators below. Field ids are checked against the
    descriptors; an unknown field, a disabled capability or a foreign
    operator raises a ConfigurationError naming the field.

    Example:
        engine = ViewEngine(records, fields)
        engine.set_sort("dept")
        engine.set_group_fields(["dept"])
        engine.set_filter_text("salary", ">=50000")

        for row in engine.paginated_rows:
            if is_group_header(row):
                ...
    """

    def __init__(
        self,
        records: Iterable[Any] = (),
        fields: Optional[Sequence[FieldDescriptor]] = None,
        *,
        state: Optional[ViewState] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        group_order: Union[GroupOrder, str] = GroupOrder.CALLER,
        null_label: str = NULL_GROUP_LABEL,
        selection_mode: Union[SelectionMode, str] = SelectionMode.NONE,
        row_key: Optional[str] = None,
        max_selections: Optional[int] = None,
    ):
        self.group_order = GroupOrder.from_string(group_order)
        self.null_label = null_label
        self.selection_mode = SelectionMode.from_string(selection_mode)
        self.row_key = row_key
        self.max_selections = max_selections
        self._records: Tuple[Any, ...] = tuple(records)
        if fields is None:
            fields = infer_fields(self._records)
        self._fields: Dict[str, FieldDescriptor] = index_fields(fields)
        self.visible_columns: List[str] = list(self._fields)

        if state is None:
            state = ViewState(page=PageWindow(size=page_size))
        self._state = state
        self._output: Optional[ViewOutput] = None
        self._commit(state, check_order=True)

    @classmethod
    def from_config(
        cls,
        records: Iterable[Any] = (),
        fields: Optional[Sequence[FieldDescriptor]] = None,
        config=None,
    ) -> "ViewEngine":
        """Build an engine with page size, group order and labels from config."""
        from gridview.config import get_config

        config = config or get_config()
        return cls(
            records,
            fields,
            page_size=config.page_size,
            group_order=config.group_order,
            null_label=config.null_group_label,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    def _descriptor(self, field: str, capability: Optional[str] = None) -> FieldDescriptor:
        descriptor = self._fields.get(field)
        if descriptor is None:
            raise UnknownFieldError(field)
        if capability and not getattr(descriptor, capability):
            raise ConfigurationError(f"Field {field!r} is not {capability}", field=field)
        return descriptor

    def _check_operator(self, field: str, operator: str) -> FieldDescriptor:
        descriptor = self._descriptor(field, "filterable")
        if not is_valid_operator(descriptor.domain, operator):
            raise InvalidOperatorError(field, operator, descriptor.domain)
        return descriptor

    def _validate(self, state: ViewState) -> None:
        seen = set()
        for key in state.sort:
            self._descriptor(key.field, "sortable")
            if key.field in seen:
                raise ConfigurationError(f"Field {key.field!r} appears twice in the sort keys", field=key.field)
            seen.add(key.field)
        for spec in state.filters:
            self._check_operator(spec.field, spec.operator)
        for name in state.group_fields:
            self._descriptor(name, "groupable")
        for name in state.search_fields:
            self._descriptor(name)

    def _check_group_order(self, state: ViewState) -> None:
        if not state.group_fields or self.group_order in (GroupOrder.CALLER, GroupOrder.AUTO):
            return
        if leads_with_groups(state.sort, state.group_fields):
            return
        message = (
            f"Sort keys {[k.field for k in state.sort]} do not lead with "
            f"group fields {list(state.group_fields)}"
        )
        if self.group_order is GroupOrder.STRICT:
            raise GroupOrderError(message, field=state.group_fields[0])
        logger.warning(message)

    def _commit(self, state: ViewState, check_order: bool = False) -> ViewState:
        self._validate(state)
        if check_order:
            self._check_group_order(state)
        output = compute_view(self._records, self._fields, state, self.group_order, self.null_label)
        if output.page != state.page:
            state = replace(state, page=output.page)
        self._state = state
        self._output = output
        return state

    # =========================================================================
    # Mutators
    # =========================================================================

    def set_sort(self, field: str, additive: bool = False) -> ViewState:
        """Header click: plain replaces the sort keys, additive appends or cycles."""
        self._descriptor(field, "sortable")
        return self._commit(ops.with_sort(self._state, field, additive), check_order=True)

    def set_sort_keys(self, keys: Sequence[SortKey]) -> ViewState:
        """Replace the sort keys outright."""
        return self._commit(replace(self._state, sort=tuple(keys)), check_order=True)

    def set_filter(
        self,
        field: str,
        operator: str,
        value: Any = "",
        second_value: Any = None,
        clear: bool = False,
    ) -> ViewState:
        self._check_operator(field, operator)
        return self._commit(
            ops.with_filter(self._state, field, operator, value, second_value, clear)
        )

    def set_filter_text(self, field: str, text: Optional[str]) -> ViewState:
        """
        Commit raw filter widget text.

        Numeric fields go through the filter expression grammar. Text that
        does not parse, and text for any other domain, becomes the value
        under the field's current operator (or its domain default).
        """
        descriptor = self._descriptor(field, "filterable")
        current = self._state.filter_for(field)
        operator = current.operator if current else default_operator(descriptor.domain)
        if operator in RANGE_OPERATORS or operator == IS_EMPTY:
            operator = default_operator(descriptor.domain)

        parsed = resolve_filter_text(text, descriptor.domain, operator)
        second_value = parsed.second_value if parsed.operator in RANGE_OPERATORS else None
        return self.set_filter(field, parsed.operator, parsed.value, second_value)

    def clear_filter(self, field: str) -> ViewState:
        self._descriptor(field)
        return self._commit(ops.without_filter(self._state, field))

    def clear_filters(self) -> ViewState:
        return self._commit(ops.without_filters(self._state))

    def set_group_fields(self, fields: Sequence[str]) -> ViewState:
        """Replace the group fields; every group starts expanded."""
        for name in fields:
            self._descriptor(name, "groupable")
        return self._commit(ops.with_group_fields(self._state, fields), check_order=True)

    def toggle_group(self, path: str) -> ViewState:
        return self._commit(ops.with_toggled_group(self._state, path))

    def collapse_all(self) -> ViewState:
        """Collapse every group, nested groups included."""
        display = group_rows(self._output.records, self._state.group_fields, frozenset(), self.null_label)
        return self._commit(ops.with_collapsed(self._state, header_paths(display)))

    def expand_all(self) -> ViewState:
        return self._commit(ops.with_collapsed(self._state, ()))

    def set_page(self, index: int) -> ViewState:
        return self._commit(ops.with_page(self._state, index))

    def next_page(self) -> ViewState:
        return self.set_page(self._state.page.index + 1)

    def previous_page(self) -> ViewState:
        return self.set_page(self._state.page.index - 1)

    def set_page_size(self, size: int) -> ViewState:
        return self._commit(ops.with_page_size(self._state, size))

    def set_search(self, query: str, fields: Optional[Sequence[str]] = None) -> ViewState:
        """Global free-text search across the given (or all filterable) fields."""
        for name in fields or ():
            self._descriptor(name)
        return self._commit(ops.with_search(self._state, query, fields))

    def configure(
        self,
        records: Optional[Iterable[Any]] = None,
        fields: Optional[Sequence[FieldDescriptor]] = None,
    ) -> ViewState:
        """
        Replace the record set and/or field descriptors.

        The current state is kept and checked against the new fields.
        Records given without fields keep the current descriptors, or infer
        new ones when there are none yet.
        """
        previous = (self._records, self._fields, self.visible_columns)
        if records is not None:
            self._records = tuple(records)
        if fields is not None:
            self._fields = index_fields(fields)
        elif not self._fields:
            self._fields = index_fields(infer_fields(self._records))
        self.visible_columns = [c for c in self.visible_columns if c in self._fields] or list(self._fields)

        state = self._state if records is None else ops.without_selection(self._state)
        try:
            return self._commit(state, check_order=True)
        except ConfigurationError:
            self._records, self._fields, self.visible_columns = previous
            raise

    def apply_view(self, configuration: ViewConfiguration) -> ViewState:
        """Load a saved view: sort, filters, groups and visible columns."""
        for name in configuration.visible_columns:
            self._descriptor(name)

        state = ViewState(
            sort=configuration.sort_config,
            filters=configuration.filter_config,
            group_fields=configuration.group_by,
            collapsed=frozenset(),
            page=PageWindow(index=1, size=self._state.page.size),
            search=self._state.search,
            search_fields=self._state.search_fields,
            selected=self._state.selected,
        )
        state = self._commit(state, check_order=True)
        self.visible_columns = list(configuration.visible_columns) or list(self._fields)
        logger.debug(f"Applied view {configuration.id!r}")
        return state

    def snapshot(
        self,
        id: str,
        name: str,
        visible_columns: Optional[Sequence[str]] = None,
    ) -> ViewConfiguration:
        """Serializable view of the current state."""
        columns = self.visible_columns if visible_columns is None else visible_columns
        return ViewConfiguration(
            id=id,
            name=name,
            visible_columns=list(columns),
            group_by=list(self._state.group_fields),
            sort_config=list(self._state.sort),
            filter_config=list(self._state.filters),
        )

    # =========================================================================
    # Row selection
    # =========================================================================

    def _row_key_of(self, record: Any) -> Any:
        """The selection key of a record: its row key value or its position."""
        if self.row_key is not None:
            key = get_value(record, self.row_key)
            if key is None:
                raise ConfigurationError(f"Record has no value for row key {self.row_key!r}", field=self.row_key)
            return key
        for position, candidate in enumerate(self._records):
            if candidate is record:
                return position
        raise ConfigurationError("Record is not part of this view")

    def _all_row_keys(self) -> List[Any]:
        if self.row_key is None:
            return list(range(len(self._records)))
        return [get_value(r, self.row_key) for r in self._records]

    def _select(self, state: ViewState) -> ViewState:
        if self.max_selections is not None and len(state.selected) > self.max_selections:
            logger.warning(f"Selection is limited to {self.max_selections} rows; change ignored")
            return self._state
        self._state = state
        return state

    def toggle_row_selection(self, record: Any) -> ViewState:
        """Select or deselect one record according to the selection mode."""
        key = self._row_key_of(record)
        return self._select(ops.with_toggled_selection(self._state, key, self.selection_mode))

    def toggle_all_selection(self) -> ViewState:
        """Select every record, or clear when all are selected (multiple mode only)."""
        return self._select(ops.with_all_selected(self._state, self._all_row_keys(), self.selection_mode))

    def select_rows(self, records: Iterable[Any]) -> ViewState:
        keys = [self._row_key_of(r) for r in records]
        return self._select(ops.with_selection(self._state, keys, self.selection_mode))

    def deselect_rows(self, records: Iterable[Any]) -> ViewState:
        keys = [self._row_key_of(r) for r in records]
        return self._select(ops.without_selected(self._state, keys))

    def clear_selection(self) -> ViewState:
        return self._select(ops.without_selection(self._state))

    @property
    def selected_rows(self) -> List[Any]:
        """Selected records in record order."""
        selected = self._state.selected
        if not selected:
            return []
        return [r for r, key in zip(self._records, self._all_row_keys()) if key in selected]

    def is_row_selected(self, record: Any) -> bool:
        return self._row_key_of(record) in self._state.selected

    @property
    def selected_count(self) -> int:
        return len(self._state.selected)

    @property
    def is_all_selected(self) -> bool:
        return 0 < self.selected_count == len(self._records)

    @property
    def is_indeterminate(self) -> bool:
        return 0 < self.selected_count < len(self._records)

    @property
    def can_select_more(self) -> bool:
        return self.max_selections is None or self.selected_count < self.max_selections

    def selection_summary(self) -> Dict[str, int]:
        total = len(self._records)
        selected = self.selected_count
        percentage = round(selected / total * 100) if total else 0
        return {"total": total, "selected": selected, "percentage": percentage}

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def output(self) -> ViewOutput:
        return self._output

    @property
    def records(self) -> Tuple[Any, ...]:
        return self._records

    @property
    def fields(self) -> Dict[str, FieldDescriptor]:
        return dict(self._fields)

    @property
    def visible_fields(self) -> List[FieldDescriptor]:
        return [self._fields[c] for c in self.visible_columns if c in self._fields]

    @property
    def paginated_rows(self) -> List[DisplayRow]:
        return list(self._output.rows)

    @property
    def page_records(self) -> List[Any]:
        """Records on the current page, group headers dropped."""
        return self._output.page_records

    @property
    def display_rows(self) -> List[DisplayRow]:
        """Grouped rows before pagination."""
        return list(self._output.display_rows)

    @property
    def all_filtered_sorted_rows(self) -> List[Any]:
        """Filtered and sorted records before grouping and pagination."""
        return list(self._output.records)

    def sort_direction_for(self, field: str) -> Optional[SortDirection]:
        return sort_direction_for(self._state.sort, field)

    def sort_order_for(self, field: str) -> Optional[int]:
        return sort_order_for(self._state.sort, field)

    @property
    def active_filters(self) -> List[FilterSpec]:
        """Filters that currently constrain the records."""
        return [f for f in self._state.filters if not f.is_inert]

    def filter_for(self, field: str) -> Optional[FilterSpec]:
        return self._state.filter_for(field)

    @property
    def collapsed_groups(self) -> FrozenSet[str]:
        return self._state.collapsed

    @property
    def pagination(self) -> Pagination:
        output = self._output
        return Pagination(
            current_page=output.page.index,
            page_size=output.page.size,
            total_items=output.total_items,
            total_pages=output.total_pages,
            start_item=output.start_item,
            end_item=output.end_item,
        )

    def __repr__(self) -> str:
        return (
            f"ViewEngine({len(self._records)} records, {len(self._fields)} fields, "
            f"page {self._state.page.index}/{self._output.total_pages})"
        )
