"""
Exporters for computed views.

Exports take the filtered, sorted records of a view (group headers and
pagination are not part of an export) and the fields to write, in column
order. Value formatting is done here, per data domain.
"""
import csv
import io
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from gridview.constants import COLLECTION_EXPORT_JOINER
from gridview.views.core import DataDomain, FieldDescriptor, strip_headers
from gridview.views.fields import get_value, to_collection, to_datetime, to_day


def format_value(value: Any, descriptor: FieldDescriptor) -> str:
    """
    Text form of a value for flat exports.

    None is empty, booleans are true/false, collections are joined with
    ', ' and dates are ISO 8601. Unparseable dates are written as given.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"

    domain = descriptor.domain
    if domain is DataDomain.COLLECTION or isinstance(value, (list, tuple, set, frozenset)):
        return COLLECTION_EXPORT_JOINER.join(to_collection(value))
    if domain is DataDomain.DATE:
        day = to_day(value)
        return day.isoformat() if day else str(value)
    if domain is DataDomain.DATETIME:
        instant = to_datetime(value)
        return instant.isoformat() if instant else str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def json_value(value: Any, descriptor: FieldDescriptor) -> Any:
    """JSON-safe form of a value; collections stay lists."""
    if value is None or isinstance(value, (bool, int, float, str)):
        if descriptor.domain is DataDomain.COLLECTION and value is not None:
            return to_collection(value)
        return value
    if descriptor.domain is DataDomain.COLLECTION or isinstance(value, (list, tuple, set, frozenset)):
        return to_collection(value)
    return format_value(value, descriptor)


def _records(rows: Sequence[Any]) -> List[Any]:
    return strip_headers(rows)


def write_csv(records: Sequence[Any], fields: Sequence[FieldDescriptor], stream) -> None:
    writer = csv.writer(stream)
    writer.writerow([f.label for f in fields])
    for record in _records(records):
        writer.writerow([format_value(get_value(record, f.id), f) for f in fields])


def write_json(records: Sequence[Any], fields: Sequence[FieldDescriptor], stream, pretty: bool = True) -> None:
    data = [
        {f.id: json_value(get_value(record, f.id), f) for f in fields}
        for record in _records(records)
    ]
    json.dump(data, stream, indent=2 if pretty else None, ensure_ascii=False)


def write_text(records: Sequence[Any], fields: Sequence[FieldDescriptor], stream) -> None:
    """Tab-separated lines, header first."""
    stream.write("\t".join(f.label for f in fields) + "\n")
    for record in _records(records):
        stream.write("\t".join(format_value(get_value(record, f.id), f) for f in fields) + "\n")


def export_csv(records: Sequence[Any], fields: Sequence[FieldDescriptor], path: Path) -> None:
    """Export records to CSV."""
    with open(path, "w", encoding="utf-8", newline="") as f:
        write_csv(records, fields, f)


def export_json(records: Sequence[Any], fields: Sequence[FieldDescriptor], path: Path, pretty: bool = True) -> None:
    """Export records to JSON."""
    with open(path, "w", encoding="utf-8") as f:
        write_json(records, fields, f, pretty=pretty)


def export_text(records: Sequence[Any], fields: Sequence[FieldDescriptor], path: Path) -> None:
    """Export records as plain tab-separated text."""
    with open(path, "w", encoding="utf-8") as f:
        write_text(records, fields, f)


EXPORTERS: Dict[str, Callable[..., None]] = {
    "csv": export_csv,
    "json": export_json,
    "text": export_text,
}


def export_file(
    records: Sequence[Any],
    fields: Sequence[FieldDescriptor],
    path: Path,
    format: str,
    pretty: bool = True,
) -> None:
    """
    Export records to a file.

    Args:
        records: Records to export, typically all_filtered_sorted_rows
        fields: Fields to write, in column order
        path: Output file path
        format: Export format (csv, json, text)
        pretty: Indent JSON output
    """
    exporter = EXPORTERS.get(format)
    if not exporter:
        raise ValueError(f"Unknown format: {format}")

    # Ensure parent directory exists
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if format == "json":
        exporter(records, fields, path, pretty=pretty)
    else:
        exporter(records, fields, path)


def export_to_string(
    records: Sequence[Any],
    fields: Sequence[FieldDescriptor],
    format: str,
    pretty: bool = True,
) -> str:
    """
    Export records to a string in the specified format.

    Returns:
        Exported content as string
    """
    output = io.StringIO()
    if format == "csv":
        write_csv(records, fields, output)
    elif format == "json":
        write_json(records, fields, output, pretty=pretty)
    elif format == "text":
        write_text(records, fields, output)
    else:
        raise ValueError(f"Unknown format: {format}")
    return output.getvalue()
