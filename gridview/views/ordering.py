"""
Multi-key record ordering.

Sort keys are applied in priority order. Records that compare equal on
every key keep their input order, so sorting is stable and idempotent.
Descending keys negate the key comparison only; the input-order tie-break
is always ascending.

Comparison by domain:
- string: case-insensitive, locale collation
- number/currency: numeric
- date/datetime: by instant
- collection: by length, then by first member (case-insensitive)
- boolean: False before True

A value that cannot be read in the key's domain (None, text in a number
column) compares greater than every readable value, so it lands at one
end instead of failing the sort.
"""

import locale
from functools import cmp_to_key
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from gridview.views.core import (
    DataDomain,
    FieldDescriptor,
    SortDirection,
    SortKey,
)
from gridview.views.fields import (
    get_value,
    to_bool,
    to_collection,
    to_datetime,
    to_number,
)


def _sign(n: float) -> int:
    return (n > 0) - (n < 0)


def _compare_present(a: Any, b: Any) -> int:
    """Compare two coerced values; None sorts after everything else."""
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return (a > b) - (a < b)


def _collate(a: str, b: str) -> int:
    left, right = a.lower(), b.lower()
    try:
        return _sign(locale.strcoll(left, right))
    except ValueError:
        # strcoll rejects embedded null characters
        return (left > right) - (left < right)


def compare_values(a: Any, b: Any, domain: Union[DataDomain, str] = DataDomain.STRING) -> int:
    """Three-way comparison of two field values under a data domain."""
    domain = DataDomain.from_string(domain)

    if domain.is_numeric:
        return _compare_present(to_number(a), to_number(b))

    if domain.is_temporal:
        return _compare_present(to_datetime(a), to_datetime(b))

    if domain is DataDomain.COLLECTION:
        # Length first, then first member. Kept for compatibility with the
        # existing table behaviour; not a meaningful order for sets.
        left, right = to_collection(a), to_collection(b)
        if len(left) != len(right):
            return _sign(len(left) - len(right))
        first_left = left[0] if left else ""
        first_right = right[0] if right else ""
        return _collate(first_left, first_right)

    if domain is DataDomain.BOOLEAN:
        return _compare_present(to_bool(a), to_bool(b))

    if a is None or b is None:
        return _compare_present(a, b)
    return _collate(str(a), str(b))


def sort_records(
    records: Iterable[Any],
    keys: Sequence[SortKey],
    fields: Mapping[str, FieldDescriptor],
) -> List[Any]:
    """Return the records ordered by the sort keys, ties in input order."""
    records = list(records)
    if not keys:
        return records

    domains = []
    for key in keys:
        descriptor = fields.get(key.field)
        domains.append(descriptor.domain if descriptor else DataDomain.STRING)

    decorated = [
        (index, tuple(get_value(record, key.field) for key in keys), record)
        for index, record in enumerate(records)
    ]

    def compare(left: Tuple, right: Tuple) -> int:
        for position, key in enumerate(keys):
            result = compare_values(left[1][position], right[1][position], domains[position])
            if result:
                return -result if key.descending else result
        return _sign(left[0] - right[0])

    decorated.sort(key=cmp_to_key(compare))
    return [entry[2] for entry in decorated]


# =============================================================================
# Sort specification transitions
# =============================================================================

def toggle_sort(keys: Sequence[SortKey], field: str, additive: bool = False) -> Tuple[SortKey, ...]:
    """
    Apply a header click to a sort specification.

    A plain click makes `field` the only key; clicking the sole active key
    again cycles ascending -> descending -> removed. A modified click
    appends `field` ascending, or cycles an existing entry in place the
    same way.
    """
    keys = tuple(keys)
    existing = next((k for k in keys if k.field == field), None)

    if additive:
        if existing is None:
            return keys + (SortKey(field, SortDirection.ASCENDING),)
        if existing.direction is SortDirection.ASCENDING:
            return tuple(
                SortKey(field, SortDirection.DESCENDING) if k.field == field else k
                for k in keys
            )
        return tuple(k for k in keys if k.field != field)

    if existing is not None and len(keys) == 1:
        if existing.direction is SortDirection.ASCENDING:
            return (SortKey(field, SortDirection.DESCENDING),)
        return ()

    return (SortKey(field, SortDirection.ASCENDING),)


def sort_direction_for(keys: Sequence[SortKey], field: str) -> Optional[SortDirection]:
    for key in keys:
        if key.field == field:
            return key.direction
    return None


def sort_order_for(keys: Sequence[SortKey], field: str) -> Optional[int]:
    """1-based priority of a field in the sort keys, or None."""
    for position, key in enumerate(keys, start=1):
        if key.field == field:
            return position
    return None


def leads_with_groups(keys: Sequence[SortKey], group_fields: Sequence[str]) -> bool:
    """True when the sort keys start with the group fields, in order."""
    leading = [k.field for k in list(keys)[:len(group_fields)]]
    return leading == list(group_fields)


def lead_with_groups(keys: Sequence[SortKey], group_fields: Sequence[str]) -> Tuple[SortKey, ...]:
    """
    Effective sort keys for grouped output.

    Group fields come first, keeping the direction of an existing key for
    that field (ascending otherwise); the remaining keys follow in their
    original priority.
    """
    by_field = {k.field: k for k in keys}
    leading = [by_field.get(f, SortKey(f)) for f in group_fields]
    rest = [k for k in keys if k.field not in group_fields]
    return tuple(leading + rest)


def parse_sort_string(spec_str: str) -> Tuple[SortKey, ...]:
    """
    Parse sort keys from a string.

    Examples:
        "dept"
        "dept asc, salary desc"
    """
    keys = []
    seen = set()
    for part in spec_str.split(","):
        part = part.strip()
        if not part:
            continue

        tokens = part.split()
        field_name = tokens[0]
        direction = tokens[1] if len(tokens) > 1 else "asc"

        try:
            direction = SortDirection.from_string(direction)
        except ValueError:
            direction = SortDirection.ASCENDING

        if field_name in seen:
            continue
        seen.add(field_name)
        keys.append(SortKey(field=field_name, direction=direction))

    return tuple(keys)
