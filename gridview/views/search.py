"""
Global free-text search.

A case-insensitive substring match of one query against the text form of
several fields. A record matches when any searched field contains the
query. Runs ahead of the filter stage.
"""

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Sequence

from gridview.views.core import DataDomain, FieldDescriptor
from gridview.views.fields import get_value, to_collection


def search_text(value: Any, domain: DataDomain = DataDomain.STRING) -> str:
    """Lower-cased text a value is searched by."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if domain is DataDomain.COLLECTION or isinstance(value, (list, tuple, set, frozenset)):
        return " ".join(to_collection(value)).lower()
    if isinstance(value, (datetime, date)):
        return value.isoformat().lower()
    return str(value).lower()


def matches_search(record: Any, query: str, fields: Sequence[FieldDescriptor]) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return any(needle in search_text(get_value(record, f.id), f.domain) for f in fields)


def searchable_fields(
    fields: Mapping[str, FieldDescriptor],
    names: Sequence[str] = (),
) -> List[FieldDescriptor]:
    """The named fields, or every filterable field when none are named."""
    if names:
        return [fields[name] for name in names if name in fields]
    return [f for f in fields.values() if f.filterable]


def search_records(
    records: Iterable[Any],
    query: str,
    fields: Sequence[FieldDescriptor],
) -> List[Any]:
    """Search stage: keep records matching the query; an empty query is inert."""
    records = list(records)
    if not query or not query.strip():
        return records
    return [r for r in records if matches_search(r, query, fields)]
