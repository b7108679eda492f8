"""
YAML parser for view files.

A view file declares the fields of a record set and any number of saved
views over them. Views may be written in a short hand-edited form or in
the serialized ViewConfiguration form, which is what dump_views() writes.

Example YAML:

    fields:
      - id: name
      - id: dept
        header: Department
      - id: salary
        domain: currency
      - id: tags
        domain: collection
        sortable: false

    views:
      by_dept:
        name: By department
        columns: [name, dept, salary]
        group: dept
        order: dept asc, salary desc
        filter:
          salary: ">=50000"
          tags:
            operator: containsAny
            value: [remote, senior]

      saved:
        name: Saved view
        visibleColumns: [name, salary]
        groupBy: []
        sortConfig:
          - {key: salary, direction: descending}
        filterConfig:
          - {key: salary, operator: between, value: "20", secondValue: "50"}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from gridview.views.core import (
    ConfigurationError,
    DataDomain,
    FieldDescriptor,
    FilterSpec,
    GridviewError,
    SortKey,
    ViewConfiguration,
)
from gridview.views.expression import resolve_filter_text
from gridview.views.fields import index_fields
from gridview.views.ordering import parse_sort_string
from gridview.views.predicates import default_operator

logger = logging.getLogger(__name__)

_FIELD_FLAGS = ("sortable", "filterable", "groupable", "editable")


class ViewParseError(GridviewError):
    """Error parsing a view file or view definition."""
    pass


def parse_views_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML (or JSON) view file.

    Returns:
        The raw document, a dictionary
    """
    path = Path(path)

    if not path.exists():
        raise ViewParseError(f"Views file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ViewParseError(f"Invalid views file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ViewParseError(f"Views file must contain a dictionary, got {type(data).__name__}")

    return data


def load_views(path: Union[str, Path]) -> Tuple[List[FieldDescriptor], Dict[str, ViewConfiguration]]:
    """Load field descriptors and saved views from a file."""
    parser = ViewParser()
    return parser.parse_document(parse_views_file(path))


def dump_views(
    path: Union[str, Path],
    fields: List[FieldDescriptor],
    views: Mapping[str, ViewConfiguration],
) -> None:
    """Write fields and views in the serialized form load_views() reads back."""
    path = Path(path)
    document = {
        "fields": [f.to_dict() for f in fields],
        "views": {},
    }
    for view_id, config in views.items():
        entry = config.to_dict()
        entry.pop("id")
        document["views"][view_id] = entry

    with open(path, "w", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            json.dump(document, f, indent=2)
        else:
            yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)

    logger.debug(f"Wrote {len(views)} views to {path}")


def parse_view(
    view_id: str,
    definition: Dict[str, Any],
    fields: Optional[List[FieldDescriptor]] = None,
) -> ViewConfiguration:
    """Parse a single view definition."""
    parser = ViewParser(fields)
    return parser.parse(view_id, definition)


class ViewParser:
    """
    Parser for view definitions.

    Field descriptors are needed to read raw filter text, since only
    numeric fields go through the filter expression grammar.
    """

    def __init__(self, fields: Optional[List[FieldDescriptor]] = None):
        self.fields: Dict[str, FieldDescriptor] = index_fields(fields or [])

    def parse_document(
        self,
        data: Dict[str, Any],
    ) -> Tuple[List[FieldDescriptor], Dict[str, ViewConfiguration]]:
        fields = self.parse_fields(data.get("fields") or [])
        try:
            self.fields = index_fields(fields)
        except ConfigurationError as e:
            raise ViewParseError(str(e)) from e

        views_def = data.get("views") or {}
        if not isinstance(views_def, dict):
            raise ViewParseError(f"'views' must be a dictionary, got {type(views_def).__name__}")

        views = {}
        for view_id, definition in views_def.items():
            views[str(view_id)] = self.parse(str(view_id), definition or {})
        return fields, views

    def parse_fields(self, fields_def: Any) -> List[FieldDescriptor]:
        """Parse the 'fields' list; a bare string is a string field."""
        if not isinstance(fields_def, list):
            raise ViewParseError(f"'fields' must be a list, got {type(fields_def).__name__}")

        fields = []
        for field_def in fields_def:
            if isinstance(field_def, str):
                fields.append(FieldDescriptor(id=field_def))
                continue
            if not isinstance(field_def, dict) or "id" not in field_def:
                raise ViewParseError(f"Field definition needs an 'id': {field_def}")

            try:
                domain = DataDomain.from_string(field_def.get("domain", field_def.get("type", "string")))
            except ValueError as e:
                raise ViewParseError(f"Field {field_def['id']!r}: {e}") from e

            kwargs = {flag: bool(field_def[flag]) for flag in _FIELD_FLAGS if flag in field_def}
            fields.append(FieldDescriptor(
                id=str(field_def["id"]),
                domain=domain,
                header=field_def.get("header"),
                cell_type=field_def.get("cell_type", field_def.get("cellType")),
                **kwargs,
            ))
        return fields

    def parse(self, view_id: str, definition: Dict[str, Any]) -> ViewConfiguration:
        """Parse one view definition into a ViewConfiguration."""
        if not isinstance(definition, dict):
            raise ViewParseError(f"View {view_id!r} must be a dictionary, got {type(definition).__name__}")

        columns = definition.get("visibleColumns", definition.get("columns", []))
        group_def = definition.get("groupBy", definition.get("groupByKeys", definition.get("group", [])))
        order_def = definition.get("sortConfig", definition.get("order", definition.get("sort", [])))
        filter_def = definition.get("filterConfig", definition.get("filter", definition.get("filters", [])))

        return ViewConfiguration(
            id=str(definition.get("id", view_id)),
            name=str(definition.get("name", view_id)),
            visible_columns=self._parse_names(columns, "columns"),
            group_by=self._parse_names(group_def, "group"),
            sort_config=self._parse_order(order_def),
            filter_config=self._parse_filters(filter_def),
        )

    def _parse_names(self, names_def: Any, what: str) -> List[str]:
        if names_def is None:
            return []
        if isinstance(names_def, str):
            return [n.strip() for n in names_def.split(",") if n.strip()]
        if isinstance(names_def, list):
            return [str(n) for n in names_def]
        raise ViewParseError(f"Invalid {what} definition: {names_def}")

    def _parse_order(self, order_def: Any) -> List[SortKey]:
        """Parse 'field desc, other asc', a list of such strings, or dicts."""
        if not order_def:
            return []

        if isinstance(order_def, str):
            return list(parse_sort_string(order_def))

        if isinstance(order_def, dict):
            order_def = [order_def]

        if not isinstance(order_def, list):
            raise ViewParseError(f"Invalid order definition: {order_def}")

        keys: List[SortKey] = []
        seen = set()
        for spec in order_def:
            if isinstance(spec, str):
                parsed = parse_sort_string(spec)
                if not parsed:
                    continue
                key = parsed[0]
            elif isinstance(spec, dict):
                field = spec.get("key", spec.get("field"))
                if not field:
                    raise ViewParseError(f"Sort entry needs a 'key' or 'field': {spec}")
                try:
                    key = SortKey(field=str(field), direction=spec.get("direction", "asc"))
                except ValueError as e:
                    raise ViewParseError(f"Sort entry for {field!r}: {e}") from e
            else:
                raise ViewParseError(f"Invalid sort entry: {spec}")

            if key.field in seen:
                continue
            seen.add(key.field)
            keys.append(key)
        return keys

    def _parse_filters(self, filter_def: Any) -> List[FilterSpec]:
        """
        Parse filters.

        Either a list of {key, operator, value, secondValue} entries, or a
        mapping of field to raw text (read the way a filter box reads it)
        or to an {operator, value, secondValue} entry.
        """
        if not filter_def:
            return []

        if isinstance(filter_def, dict):
            specs = []
            for field, entry in filter_def.items():
                if isinstance(entry, dict):
                    specs.append(self._filter_entry(dict(entry, key=field)))
                else:
                    specs.append(self._filter_text(str(field), entry))
            return specs

        if isinstance(filter_def, list):
            return [self._filter_entry(entry) for entry in filter_def]

        raise ViewParseError(f"Invalid filter definition: {filter_def}")

    def _filter_entry(self, entry: Any) -> FilterSpec:
        if not isinstance(entry, dict):
            raise ViewParseError(f"Invalid filter entry: {entry}")
        field = entry.get("key", entry.get("field"))
        if not field:
            raise ViewParseError(f"Filter entry needs a 'key' or 'field': {entry}")

        operator = entry.get("operator", entry.get("op"))
        if not operator:
            operator = default_operator(self._domain(str(field)))

        return FilterSpec(
            field=str(field),
            operator=str(operator),
            value=entry.get("value", ""),
            second_value=entry.get("secondValue", entry.get("second_value")),
        )

    def _filter_text(self, field: str, text: Any) -> FilterSpec:
        domain = self._domain(field)
        if isinstance(text, (list, tuple)):
            return FilterSpec(field, default_operator(domain), text)
        raw = "" if text is None else str(text)
        parsed = resolve_filter_text(raw, domain, default_operator(domain))
        return FilterSpec(field, parsed.operator, parsed.value, parsed.second_value or None)

    def _domain(self, field: str) -> DataDomain:
        descriptor = self.fields.get(field)
        return descriptor.domain if descriptor else DataDomain.STRING
