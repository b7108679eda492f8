"""
Predicate evaluation for view filtering.

A filter is evaluated against one field value under the field's data
domain. Operators by domain:

- string: contains, doesNotContain, equals, startsWith, endsWith, isEmpty
  (case-insensitive)
- number/currency: eq, neq, gt, lt, gte, lte, between, isEmpty
- date/datetime: is, isNot, isBefore, isAfter, dateRange, isEmpty
  (day granularity for date, instant for datetime)
- collection: contains, doesNotContain, containsAny, containsAll, isEmpty
- boolean: equals, isEmpty

Two rules hold for every domain:
- 'isEmpty' ignores the filter values and matches null, "" and empty
  collections.
- A filter without a value is inert and matches everything, so a
  half-typed filter never hides all rows.

Range operators with only one bound act as half-open ranges. Filter
values that cannot be read in the field's domain (a non-numeric bound, an
unparseable date) leave the filter inert; field values that cannot be read
never match.
"""

import logging
import operator
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from gridview.constants import COLLECTION_FILTER_SEPARATOR
from gridview.views.core import (
    IS_EMPTY,
    DataDomain,
    FieldDescriptor,
    FilterSpec,
)
from gridview.views.fields import (
    get_value,
    is_blank,
    to_bool,
    to_collection,
    to_datetime,
    to_day,
    to_number,
)

logger = logging.getLogger(__name__)


STRING_OPERATORS = ("contains", "doesNotContain", "equals", "startsWith", "endsWith", IS_EMPTY)
NUMBER_OPERATORS = ("eq", "neq", "gt", "lt", "gte", "lte", "between", IS_EMPTY)
DATE_OPERATORS = ("is", "isNot", "isBefore", "isAfter", "dateRange", IS_EMPTY)
COLLECTION_OPERATORS = ("contains", "doesNotContain", "containsAny", "containsAll", IS_EMPTY)
BOOLEAN_OPERATORS = ("equals", IS_EMPTY)

OPERATORS: Dict[DataDomain, Tuple[str, ...]] = {
    DataDomain.STRING: STRING_OPERATORS,
    DataDomain.NUMBER: NUMBER_OPERATORS,
    DataDomain.CURRENCY: NUMBER_OPERATORS,
    DataDomain.DATE: DATE_OPERATORS,
    DataDomain.DATETIME: DATE_OPERATORS,
    DataDomain.COLLECTION: COLLECTION_OPERATORS,
    DataDomain.BOOLEAN: BOOLEAN_OPERATORS,
}

DEFAULT_OPERATORS: Dict[DataDomain, str] = {
    DataDomain.STRING: "contains",
    DataDomain.NUMBER: "eq",
    DataDomain.CURRENCY: "eq",
    DataDomain.DATE: "is",
    DataDomain.DATETIME: "is",
    DataDomain.COLLECTION: "contains",
    DataDomain.BOOLEAN: "equals",
}

OPERATOR_LABELS = {
    "contains": "contains",
    "doesNotContain": "does not contain",
    "equals": "equals",
    "startsWith": "starts with",
    "endsWith": "ends with",
    "eq": "=",
    "neq": "!=",
    "gt": ">",
    "lt": "<",
    "gte": ">=",
    "lte": "<=",
    "is": "is",
    "isNot": "is not",
    "isBefore": "is before",
    "isAfter": "is after",
    "containsAny": "contains any of",
    "containsAll": "contains all of",
}

_ORDERED = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "lt": operator.lt,
    "gte": operator.ge,
    "lte": operator.le,
    "is": operator.eq,
    "isNot": operator.ne,
    "isBefore": operator.lt,
    "isAfter": operator.gt,
}


def operators_for(domain: Union[DataDomain, str]) -> Tuple[str, ...]:
    """Operator vocabulary of a data domain."""
    return OPERATORS[DataDomain.from_string(domain)]


def default_operator(domain: Union[DataDomain, str]) -> str:
    """Operator a filter widget starts with for a data domain."""
    return DEFAULT_OPERATORS[DataDomain.from_string(domain)]


def is_valid_operator(domain: Union[DataDomain, str], op: str) -> bool:
    return op in operators_for(domain)


def split_values(text: str) -> List[str]:
    """Split a comma-separated filter value, dropping blanks."""
    return [v.strip() for v in text.split(COLLECTION_FILTER_SEPARATOR) if v.strip()]


def evaluate(value: Any, domain: Union[DataDomain, str], spec: FilterSpec) -> bool:
    """
    Test one field value against a filter.

    Returns True when the value matches or when the filter supplies no
    constraint.
    """
    if spec.operator == IS_EMPTY:
        return is_blank(value)

    if spec.is_inert:
        return True

    domain = DataDomain.from_string(domain)

    if domain.is_numeric:
        return _evaluate_ordered(value, spec, to_number)
    if domain is DataDomain.DATE:
        return _evaluate_ordered(value, spec, to_day)
    if domain is DataDomain.DATETIME:
        return _evaluate_ordered(value, spec, to_datetime)
    if domain is DataDomain.COLLECTION:
        return _evaluate_collection(value, spec)
    if domain is DataDomain.BOOLEAN:
        return _evaluate_boolean(value, spec)
    return _evaluate_string(value, spec)


def _evaluate_ordered(value: Any, spec: FilterSpec, coerce: Callable[[Any], Any]) -> bool:
    """Numbers and dates: comparisons and inclusive ranges."""
    if spec.is_range:
        low = coerce(spec.value)
        high = coerce(spec.second_value)
        if low is None and high is None:
            return True
        actual = coerce(value)
        if actual is None:
            return False
        if low is not None and actual < low:
            return False
        if high is not None and actual > high:
            return False
        return True

    compare = _ORDERED.get(spec.operator)
    if compare is None:
        logger.debug(f"Ignoring unknown operator {spec.operator!r} on {spec.field!r}")
        return True

    expected = coerce(spec.value)
    if expected is None:
        return True

    actual = coerce(value)
    if actual is None:
        return False

    return compare(actual, expected)


def _evaluate_string(value: Any, spec: FilterSpec) -> bool:
    actual = "" if value is None else str(value).lower()
    expected = spec.value.lower()
    op = spec.operator

    if op == "contains":
        return expected in actual
    elif op == "doesNotContain":
        return expected not in actual
    elif op == "equals":
        return actual == expected
    elif op == "startsWith":
        return actual.startswith(expected)
    elif op == "endsWith":
        return actual.endswith(expected)

    logger.debug(f"Ignoring unknown operator {op!r} on {spec.field!r}")
    return True


def _evaluate_collection(value: Any, spec: FilterSpec) -> bool:
    members = to_collection(value)
    op = spec.operator

    if op == "contains":
        return spec.value in members
    elif op == "doesNotContain":
        return spec.value not in members
    elif op in ("containsAny", "containsAll"):
        wanted = split_values(spec.value)
        if not wanted:
            return True
        if op == "containsAny":
            return any(w in members for w in wanted)
        return all(w in members for w in wanted)

    logger.debug(f"Ignoring unknown operator {op!r} on {spec.field!r}")
    return True


def _evaluate_boolean(value: Any, spec: FilterSpec) -> bool:
    expected = to_bool(spec.value)
    if expected is None or spec.operator != "equals":
        return True
    actual = to_bool(value)
    if actual is None:
        return False
    return actual == expected


def matches_filters(
    record: Any,
    specs: Iterable[FilterSpec],
    fields: Mapping[str, FieldDescriptor],
) -> bool:
    """A record passes when it satisfies every filter (logical AND)."""
    for spec in specs:
        descriptor = fields.get(spec.field)
        domain = descriptor.domain if descriptor else DataDomain.STRING
        if not evaluate(get_value(record, spec.field), domain, spec):
            return False
    return True


def apply_filters(
    records: Iterable[Any],
    specs: Iterable[FilterSpec],
    fields: Mapping[str, FieldDescriptor],
) -> List[Any]:
    """Filter stage: keep records that pass every active filter."""
    active = [s for s in specs if not s.is_inert]
    if not active:
        return list(records)
    return [r for r in records if matches_filters(r, active, fields)]


def describe_filter(spec: FilterSpec, header: Optional[str] = None) -> str:
    """Human-readable text for an active filter."""
    subject = header or spec.field
    if spec.operator == IS_EMPTY:
        return f"{subject} is empty"
    if spec.is_range:
        if spec.value and spec.second_value:
            return f"{subject} between {spec.value} and {spec.second_value}"
        if spec.value:
            return f"{subject} from {spec.value}"
        if spec.second_value:
            return f"{subject} up to {spec.second_value}"
    label = OPERATOR_LABELS.get(spec.operator, spec.operator)
    return f"{subject} {label} {spec.value}"
