"""
Core view abstractions.

This module defines the data model shared by every stage of the view
pipeline:
- DataDomain, SortDirection, GroupOrder, SelectionMode: enumerations
- FieldDescriptor: a named, typed slot on a record
- SortKey, FilterSpec: declarative view configuration entries
- GroupHeader: a synthesized separator row
- PageWindow: the active page
- ViewState: immutable snapshot of engine-owned configuration
- ViewOutput: the result of one pipeline pass
- ViewConfiguration: the serializable save/restore shape of a view

Records themselves are opaque and owned by the caller; nothing in the
pipeline mutates them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Tuple,
    Union,
)

from gridview.constants import DEFAULT_PAGE_SIZE


# =============================================================================
# Errors
# =============================================================================

class GridviewError(Exception):
    """Base class for gridview errors."""
    pass


class ConfigurationError(GridviewError):
    """A view configuration does not fit the configured fields."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnknownFieldError(ConfigurationError):
    """A sort, filter, group or search field is not among the known fields."""

    def __init__(self, field: str):
        super().__init__(f"Unknown field: {field!r}", field=field)


class InvalidOperatorError(ConfigurationError):
    """A filter operator is not part of the field's operator vocabulary."""

    def __init__(self, field: str, operator: str, domain: "DataDomain"):
        super().__init__(
            f"Operator {operator!r} is not valid for field {field!r} "
            f"({domain.value})",
            field=field,
        )
        self.operator = operator
        self.domain = domain


class GroupOrderError(ConfigurationError):
    """The sort keys do not lead with the group fields."""
    pass


# =============================================================================
# Enumerations
# =============================================================================

class DataDomain(Enum):
    """
    Data domain of a field.

    Currency behaves as number and datetime as date for comparison
    purposes; date compares at day granularity, datetime by instant.
    """
    STRING = "string"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    DATETIME = "datetime"
    COLLECTION = "collection"
    BOOLEAN = "boolean"

    @classmethod
    def from_string(cls, s: Union[str, "DataDomain"]) -> "DataDomain":
        """Parse a data domain from string."""
        if isinstance(s, cls):
            return s
        s = str(s).lower().strip()
        mapping = {
            'string': cls.STRING,
            'text': cls.STRING,
            'str': cls.STRING,
            'number': cls.NUMBER,
            'numeric': cls.NUMBER,
            'int': cls.NUMBER,
            'float': cls.NUMBER,
            'currency': cls.CURRENCY,
            'money': cls.CURRENCY,
            'date': cls.DATE,
            'datetime': cls.DATETIME,
            'timestamp': cls.DATETIME,
            'collection': cls.COLLECTION,
            'list': cls.COLLECTION,
            'tags': cls.COLLECTION,
            'boolean': cls.BOOLEAN,
            'bool': cls.BOOLEAN,
        }
        if s in mapping:
            return mapping[s]
        raise ValueError(f"Unknown data domain: {s}")

    @property
    def is_numeric(self) -> bool:
        return self in (DataDomain.NUMBER, DataDomain.CURRENCY)

    @property
    def is_temporal(self) -> bool:
        return self in (DataDomain.DATE, DataDomain.DATETIME)


class SortDirection(Enum):
    """Sort direction of a single sort key."""
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def from_string(cls, s: Union[str, "SortDirection"]) -> "SortDirection":
        """Parse a direction from 'asc', 'ascending', 'desc' or 'descending'."""
        if isinstance(s, cls):
            return s
        s = str(s).lower().strip()
        if s in ("asc", "ascending"):
            return cls.ASCENDING
        if s in ("desc", "descending"):
            return cls.DESCENDING
        raise ValueError(f"Unknown sort direction: {s}")

    @property
    def short(self) -> str:
        return "asc" if self is SortDirection.ASCENDING else "desc"


class GroupOrder(Enum):
    """
    How the engine treats sort keys that do not lead with the group fields.

    Grouping is a single pass over the sorted records, so groups are only
    contiguous when the sort keys start with the group fields in order.

    - CALLER: documented contract, not checked
    - WARN: log a warning when misordered
    - STRICT: raise GroupOrderError from the offending mutator
    - AUTO: prepend the missing group fields to the effective sort keys
    """
    CALLER = "caller"
    WARN = "warn"
    STRICT = "strict"
    AUTO = "auto"

    @classmethod
    def from_string(cls, s: Union[str, "GroupOrder"]) -> "GroupOrder":
        if isinstance(s, cls):
            return s
        s = str(s).lower().strip()
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown group order mode: {s}")


class SelectionMode(Enum):
    """How many rows may be selected at once."""
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"

    @classmethod
    def from_string(cls, s: Union[str, "SelectionMode"]) -> "SelectionMode":
        if isinstance(s, cls):
            return s
        s = str(s).lower().strip()
        for member in cls:
            if member.value == s:
                return member
        raise ValueError(f"Unknown selection mode: {s}")


# =============================================================================
# Fields and configuration entries
# =============================================================================

@dataclass(frozen=True)
class FieldDescriptor:
    """
    A named, typed slot on a record.

    `id` is the lookup key on the record (dotted paths reach into nested
    records). The capability flags mirror what a table column allows.
    """
    id: str
    domain: DataDomain = DataDomain.STRING
    header: Optional[str] = None
    sortable: bool = True
    filterable: bool = True
    groupable: bool = True
    editable: bool = False
    cell_type: Optional[str] = None  # 'checkbox' or 'toggle'
    renderer: Optional[Callable[..., Any]] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "domain", DataDomain.from_string(self.domain))

    @property
    def label(self) -> str:
        """Human-readable header, falling back to the field id."""
        return self.header or self.id

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"id": self.id, "domain": self.domain.value}
        if self.header:
            result["header"] = self.header
        for flag in ("sortable", "filterable", "groupable"):
            if not getattr(self, flag):
                result[flag] = False
        if self.editable:
            result["editable"] = True
        if self.cell_type:
            result["cell_type"] = self.cell_type
        return result


@dataclass(frozen=True)
class SortKey:
    """One entry of a sort specification; list position encodes priority."""
    field: str
    direction: SortDirection = SortDirection.ASCENDING

    def __post_init__(self):
        object.__setattr__(self, "direction", SortDirection.from_string(self.direction))

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.field, "direction": self.direction.value}


IS_EMPTY = "isEmpty"
RANGE_OPERATORS = frozenset({"between", "dateRange"})


def has_value(value: Optional[str]) -> bool:
    """True when a filter value carries text."""
    return value is not None and value != ""


def _filter_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class FilterSpec:
    """
    Filter on a single field.

    `second_value` is only read by the range operators ('between',
    'dateRange'). A spec with no value and an operator other than
    'isEmpty' is inert: it constrains nothing.
    """
    field: str
    operator: str
    value: str = ""
    second_value: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "value", _filter_text(self.value) or "")
        object.__setattr__(self, "second_value", _filter_text(self.second_value))

    @property
    def is_range(self) -> bool:
        return self.operator in RANGE_OPERATORS

    @property
    def is_inert(self) -> bool:
        """True when this filter imposes no constraint."""
        if self.operator == IS_EMPTY:
            return False
        if has_value(self.value):
            return False
        return not (self.is_range and has_value(self.second_value))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "key": self.field,
            "operator": self.operator,
            "value": self.value,
        }
        if self.second_value is not None:
            result["secondValue"] = self.second_value
        return result


# =============================================================================
# Display rows
# =============================================================================

@dataclass(frozen=True)
class GroupHeader:
    """
    A synthesized separator row for one group value at one nesting level.

    `path` joins the ancestor group values and is the only key used for
    collapse state. `count` is the number of records under the header,
    including records hidden by a collapsed group.
    """
    path: str
    level: int
    group_field: str
    group_value: Any
    count: int
    label: str
    collapsed: bool = False


DisplayRow = Any  # a caller-owned record or a GroupHeader


def is_group_header(row: DisplayRow) -> bool:
    """Tag check for the Record | GroupHeader union."""
    return isinstance(row, GroupHeader)


def strip_headers(rows) -> List[Any]:
    """Drop group headers, keeping records in order."""
    return [row for row in rows if not isinstance(row, GroupHeader)]


# =============================================================================
# Pagination and state
# =============================================================================

@dataclass(frozen=True)
class PageWindow:
    """The active page: 1-based index and a page size of at least one."""
    index: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if int(self.size) < 1:
            raise ConfigurationError(f"Page size must be at least 1, got {self.size}")
        object.__setattr__(self, "size", int(self.size))
        object.__setattr__(self, "index", max(1, int(self.index)))

    def total_pages(self, total_items: int) -> int:
        """Number of pages for a record count; never less than one."""
        return max(1, -(-total_items // self.size))

    def clamped(self, total_items: int) -> "PageWindow":
        """Return a window whose index lies within [1, total_pages]."""
        index = min(self.index, self.total_pages(total_items))
        if index == self.index:
            return self
        return PageWindow(index=index, size=self.size)


@dataclass(frozen=True)
class ViewState:
    """
    Immutable snapshot of engine-owned view configuration.

    Mutations go through the functions in gridview.views.state, each of
    which returns a new snapshot.
    """
    sort: Tuple[SortKey, ...] = ()
    filters: Tuple[FilterSpec, ...] = ()
    group_fields: Tuple[str, ...] = ()
    collapsed: FrozenSet[str] = frozenset()
    page: PageWindow = field(default_factory=PageWindow)
    search: str = ""
    search_fields: Tuple[str, ...] = ()
    selected: FrozenSet[Any] = frozenset()

    def __post_init__(self):
        object.__setattr__(self, "sort", tuple(self.sort))
        object.__setattr__(self, "filters", tuple(self.filters))
        object.__setattr__(self, "group_fields", tuple(self.group_fields))
        object.__setattr__(self, "collapsed", frozenset(self.collapsed))
        object.__setattr__(self, "search_fields", tuple(self.search_fields))
        object.__setattr__(self, "selected", frozenset(self.selected))

    def filter_for(self, field_id: str) -> Optional[FilterSpec]:
        for spec in self.filters:
            if spec.field == field_id:
                return spec
        return None

    def referenced_fields(self) -> List[str]:
        """Every field id this state refers to, in a stable order."""
        names = [k.field for k in self.sort]
        names += [f.field for f in self.filters]
        names += list(self.group_fields)
        names += list(self.search_fields)
        return list(dict.fromkeys(names))


@dataclass(frozen=True)
class ViewOutput:
    """Result of one filter -> sort -> group -> paginate pass."""
    rows: Tuple[DisplayRow, ...]
    display_rows: Tuple[DisplayRow, ...]
    records: Tuple[Any, ...]
    page: PageWindow
    total_items: int
    total_pages: int

    @property
    def start_item(self) -> int:
        """1-based position of the first record on the page (0 if none)."""
        if self.total_items == 0:
            return 0
        return (self.page.index - 1) * self.page.size + 1

    @property
    def end_item(self) -> int:
        return min(self.page.index * self.page.size, self.total_items)

    @property
    def page_records(self) -> List[Any]:
        return strip_headers(self.rows)


# =============================================================================
# Saved views
# =============================================================================

@dataclass
class ViewConfiguration:
    """
    Serializable snapshot of a view for save/restore.

    The dictionary form uses the keys id, name, visibleColumns, groupBy,
    sortConfig and filterConfig.
    """
    id: str
    name: str
    visible_columns: List[str] = field(default_factory=list)
    group_by: List[str] = field(default_factory=list)
    sort_config: List[SortKey] = field(default_factory=list)
    filter_config: List[FilterSpec] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "visibleColumns": list(self.visible_columns),
            "groupBy": list(self.group_by),
            "sortConfig": [k.to_dict() for k in self.sort_config],
            "filterConfig": [f.to_dict() for f in self.filter_config],
        }
