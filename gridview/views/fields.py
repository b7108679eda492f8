"""
Field access and value coercion.

The accessor resolves a field id on a record. Records may be mappings or
plain objects; dotted ids ("address.city") reach into nested records when
no key with the literal id exists.

The coercion helpers turn raw record and filter values into comparable
Python values for one data domain. They never raise: anything that cannot
be coerced comes back as None.
"""

import logging
import math
import re
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional, Sequence

from gridview.views.core import (
    ConfigurationError,
    DataDomain,
    FieldDescriptor,
)

logger = logging.getLogger(__name__)

_MISSING = object()

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
)


def get_value(record: Any, field_id: str, default: Any = None) -> Any:
    """
    Resolve a field id on a record.

    Exact keys and attributes win; dotted ids are only walked when the
    literal id is absent.
    """
    if isinstance(record, Mapping):
        if field_id in record:
            return record[field_id]
    elif record is not None:
        try:
            return getattr(record, field_id)
        except AttributeError:
            pass

    if "." in field_id:
        current = record
        for part in field_id.split("."):
            current = get_value(current, part, _MISSING)
            if current is _MISSING:
                return default
        return current

    return default


def is_blank(value: Any) -> bool:
    """True for None, the empty string and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def to_number(value: Any) -> Optional[float]:
    """Coerce to float; booleans, non-finite and non-numeric values give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (Real, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except (OverflowError, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce to a naive UTC datetime.

    Accepts datetime, date and ISO-8601 text (a trailing 'Z' is allowed).
    Aware values are converted to UTC; naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        parsed = _parse_datetime_text(text)
        if parsed is None:
            logger.debug(f"Cannot parse date value: {text!r}")
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _parse_datetime_text(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def to_day(value: Any) -> Optional[date]:
    """Coerce to a calendar day (UTC)."""
    parsed = to_datetime(value)
    return parsed.date() if parsed is not None else None


def to_collection(value: Any) -> List[str]:
    """
    Normalize a collection value to a list of strings.

    None and "" give an empty list, a scalar gives a one-element list.
    Sets are sorted so the result is deterministic.
    """
    if value is None:
        return []
    if isinstance(value, (set, frozenset)):
        return sorted(str(v) for v in value if v is not None)
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    text = str(value)
    if not text:
        return []
    return [text]


def to_bool(value: Any) -> Optional[bool]:
    """Coerce to bool; only real booleans and 'true'/'false' text qualify."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    return None


def detect_domain(value: Any) -> DataDomain:
    """Guess the data domain of a sample value."""
    if value is None:
        return DataDomain.STRING
    if isinstance(value, (list, tuple, set, frozenset)):
        return DataDomain.COLLECTION
    if isinstance(value, bool):
        return DataDomain.BOOLEAN
    if isinstance(value, (Real, Decimal)):
        return DataDomain.NUMBER
    if isinstance(value, datetime):
        return DataDomain.DATETIME
    if isinstance(value, date):
        return DataDomain.DATE
    if isinstance(value, str) and _ISO_DATE.match(value):
        return DataDomain.DATETIME if "T" in value else DataDomain.DATE
    return DataDomain.STRING


def _record_items(record: Any) -> Iterable:
    if isinstance(record, Mapping):
        return record.items()
    try:
        return vars(record).items()
    except TypeError:
        return ()


def infer_fields(records: Iterable[Any]) -> List[FieldDescriptor]:
    """
    Build field descriptors from the records themselves.

    Keys are taken in first-seen order; the domain of each key comes from
    its first non-null value.
    """
    samples: Dict[str, Any] = {}
    for record in records:
        for key, value in _record_items(record):
            if str(key).startswith("_"):
                continue
            if samples.get(key) is None:
                samples[key] = value
    return [FieldDescriptor(id=key, domain=detect_domain(value)) for key, value in samples.items()]


def index_fields(fields: Sequence[FieldDescriptor]) -> Dict[str, FieldDescriptor]:
    """Map field ids to descriptors, rejecting duplicate ids."""
    result: Dict[str, FieldDescriptor] = {}
    for descriptor in fields:
        if descriptor.id in result:
            raise ConfigurationError(f"Duplicate field: {descriptor.id!r}", field=descriptor.id)
        result[descriptor.id] = descriptor
    return result
