"""
Gridview View Engine - Tabular View Computation

A view turns a caller-owned list of records into display rows through a
fixed pipeline:

1. Search: free-text match across fields
2. Filter: typed predicates per field, AND-combined
3. Sort: multi-key, stable, ties in input order
4. Group: nested group headers with counts and collapse state
5. Paginate: page windows counted in records, headers kept for context

Example:
    from gridview.views import ViewEngine, FieldDescriptor

    engine = ViewEngine(records, [
        FieldDescriptor("name"),
        FieldDescriptor("dept"),
        FieldDescriptor("salary", "currency"),
    ])
    engine.set_sort("dept")
    engine.set_group_fields(["dept"])
    engine.set_filter_text("salary", "20000><50000")

    for row in engine.paginated_rows:
        print(row)
"""

from gridview.views.core import (
    GridviewError,
    ConfigurationError,
    UnknownFieldError,
    InvalidOperatorError,
    GroupOrderError,
    DataDomain,
    SortDirection,
    GroupOrder,
    SelectionMode,
    FieldDescriptor,
    SortKey,
    FilterSpec,
    GroupHeader,
    PageWindow,
    ViewState,
    ViewOutput,
    ViewConfiguration,
    is_group_header,
    strip_headers,
)

from gridview.views.fields import (
    get_value,
    detect_domain,
    infer_fields,
)

from gridview.views.expression import (
    ParsedFilter,
    parse_filter_text,
    resolve_filter_text,
)

from gridview.views.predicates import (
    evaluate,
    apply_filters,
    operators_for,
    default_operator,
    describe_filter,
)

from gridview.views.ordering import (
    compare_values,
    sort_records,
    toggle_sort,
    parse_sort_string,
)

from gridview.views.grouping import group_rows, group_path
from gridview.views.paging import paginate, page_numbers
from gridview.views.search import search_records
from gridview.views.engine import ViewEngine, Pagination, compute_view
from gridview.views.parser import ViewParseError, load_views, dump_views, parse_views_file

__all__ = [
    # Errors
    "GridviewError",
    "ConfigurationError",
    "UnknownFieldError",
    "InvalidOperatorError",
    "GroupOrderError",
    "ViewParseError",
    # Core
    "DataDomain",
    "SortDirection",
    "GroupOrder",
    "SelectionMode",
    "FieldDescriptor",
    "SortKey",
    "FilterSpec",
    "GroupHeader",
    "PageWindow",
    "ViewState",
    "ViewOutput",
    "ViewConfiguration",
    "is_group_header",
    "strip_headers",
    # Fields
    "get_value",
    "detect_domain",
    "infer_fields",
    # Filter expressions
    "ParsedFilter",
    "parse_filter_text",
    "resolve_filter_text",
    # Predicates
    "evaluate",
    "apply_filters",
    "operators_for",
    "default_operator",
    "describe_filter",
    # Ordering
    "compare_values",
    "sort_records",
    "toggle_sort",
    "parse_sort_string",
    # Grouping and paging
    "group_rows",
    "group_path",
    "paginate",
    "page_numbers",
    "search_records",
    # Engine
    "ViewEngine",
    "Pagination",
    "compute_view",
    # Parser
    "load_views",
    "dump_views",
    "parse_views_file",
]
