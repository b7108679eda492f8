#!/usr/bin/env python3
"""
Gridview - tabular views from the command line.

Loads records from JSON, CSV or YAML, applies sort/filter/group/page
settings (and saved views) and prints one page or exports the full
filtered, sorted result.
"""
import sys
import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from rich.console import Console
from rich.table import Table

from gridview.config import init_config, get_config
from gridview.exporters import export_file, export_to_string, format_value, json_value
from gridview.views.core import (
    GridviewError,
    GroupHeader,
    RANGE_OPERATORS,
    FieldDescriptor,
)
from gridview.views.engine import ViewEngine
from gridview.views.expression import parse_filter_text
from gridview.views.fields import get_value, infer_fields
from gridview.views.ordering import parse_sort_string
from gridview.views.paging import page_numbers
from gridview.views.parser import load_views
from gridview.views.predicates import describe_filter, operators_for

logger = logging.getLogger(__name__)


console = Console()


# =============================================================================
# Loading
# =============================================================================

def _csv_value(text: str) -> Any:
    """Read a CSV cell: empty is None, numbers and true/false are typed."""
    if text == "":
        return None
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            continue
    return text


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Load records from a .json, .csv, .yaml or .yml file."""
    path = Path(path)
    if not path.exists():
        raise GridviewError(f"Data file not found: {path}")

    suffix = path.suffix.lower()
    with open(path, encoding="utf-8", newline="" if suffix == ".csv" else None) as f:
        if suffix == ".csv":
            return [{k: _csv_value(v or "") for k, v in row.items()} for row in csv.DictReader(f)]
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise GridviewError(f"Unsupported data format: {suffix or path.name}")

    if isinstance(data, dict):
        data = data.get("records", data.get("data"))
    if not isinstance(data, list):
        raise GridviewError(f"Data file must hold a list of records: {path}")
    return data


def _split_assignment(item: str) -> Tuple[str, str]:
    if "=" not in item:
        raise GridviewError(f"Expected FIELD=VALUE, got {item!r}")
    field, value = item.split("=", 1)
    return field.strip(), value


def _range_bounds(text: str) -> Tuple[str, Optional[str]]:
    for separator in ("..", ","):
        if separator in text:
            low, high = text.split(separator, 1)
            return low.strip(), high.strip()
    return text.strip(), None


def build_engine(args) -> ViewEngine:
    """Create an engine for a data file and apply the view arguments."""
    config = get_config()

    fields: Optional[List[FieldDescriptor]] = None
    view = None
    if getattr(args, "view", None):
        fields, views = load_views(Path(args.view))
        if args.name:
            if args.name not in views:
                raise GridviewError(f"View {args.name!r} not found in {args.view}")
            view = views[args.name]
        elif len(views) == 1:
            view = next(iter(views.values()))

    records = load_records(Path(args.data))
    engine = ViewEngine.from_config(records, fields or None, config)

    if view is not None:
        engine.apply_view(view)
    if args.sort:
        engine.set_sort_keys(parse_sort_string(args.sort))
    if args.group:
        engine.set_group_fields([g.strip() for g in args.group.split(",") if g.strip()])

    operators = dict(_split_assignment(item) for item in args.op or [])
    texts = dict(_split_assignment(item) for item in args.filter or [])

    for field in list(dict.fromkeys(list(texts) + list(operators))):
        text = texts.get(field, "")
        operator = operators.get(field)
        if operator is None:
            engine.set_filter_text(field, text)
        elif operator in RANGE_OPERATORS:
            low, high = _range_bounds(text)
            engine.set_filter(field, operator, low, high)
        else:
            engine.set_filter(field, operator, text)

    if args.search:
        engine.set_search(args.search)
    for path in args.collapse or []:
        engine.toggle_group(path)
    if args.page_size:
        if args.page_size not in config.page_size_options:
            logger.warning(f"Page size {args.page_size} is not one of {config.page_size_options}")
        engine.set_page_size(args.page_size)
    if args.page:
        engine.set_page(args.page)

    return engine


# =============================================================================
# Output
# =============================================================================

def _truncate(text: str, width: int) -> str:
    if width and len(text) > width:
        return text[:max(width - 1, 0)] + "…"
    return text


def _header_text(header: GroupHeader) -> str:
    marker = "▸" if header.collapsed else "▾"
    return f"{'  ' * header.level}{marker} {header.group_field}: {header.label} ({header.count})"


def _pager_text(engine: ViewEngine) -> str:
    p = engine.pagination
    pages = " ".join("…" if n is None else (f"[{n}]" if n == p.current_page else str(n))
                     for n in page_numbers(p.current_page, p.total_pages))
    return f"Showing {p.start_item}-{p.end_item} of {p.total_items}   {pages}"


def output_rows(engine: ViewEngine, format: str = "table"):
    """Output the current page in the specified format."""
    config = get_config()
    fields = engine.visible_fields
    rows = engine.paginated_rows

    if format == "table":
        table = Table(title="View", caption=_pager_text(engine))
        for f in fields:
            justify = "right" if f.domain.is_numeric else "left"
            table.add_column(f.label, style="cyan" if f.id in engine.state.group_fields else None,
                             justify=justify)

        for row in rows:
            if isinstance(row, GroupHeader):
                cells = [_header_text(row)] + [""] * (len(fields) - 1)
                table.add_row(*cells, style="bold magenta")
            else:
                table.add_row(*[
                    _truncate(format_value(get_value(row, f.id), f), config.max_column_width)
                    for f in fields
                ])

        for spec in engine.active_filters:
            descriptor = engine.fields.get(spec.field)
            console.print(f"[yellow]Filter: {describe_filter(spec, descriptor.label if descriptor else None)}[/yellow]")
        console.print(table)

    elif format == "json":
        data = []
        for row in rows:
            if isinstance(row, GroupHeader):
                data.append({
                    "group": row.path,
                    "field": row.group_field,
                    "label": row.label,
                    "level": row.level,
                    "count": row.count,
                    "collapsed": row.collapsed,
                })
            else:
                data.append({f.id: json_value(get_value(row, f.id), f) for f in fields})
        print(json.dumps(data, indent=2 if config.export_pretty else None, ensure_ascii=False))

    elif format == "csv":
        sys.stdout.write(export_to_string(engine.page_records, fields, "csv"))

    else:  # plain
        for row in rows:
            if isinstance(row, GroupHeader):
                print(_header_text(row))
            else:
                print("\t".join(format_value(get_value(row, f.id), f) for f in fields))


# =============================================================================
# Commands
# =============================================================================

def cmd_show(args):
    """Print one page of a view."""
    engine = build_engine(args)
    output_rows(engine, args.output)


def cmd_export(args):
    """Export the filtered, sorted records of a view."""
    config = get_config()
    engine = build_engine(args)
    format = args.format or config.export_format
    records = engine.all_filtered_sorted_rows

    export_file(records, engine.visible_fields, Path(args.file), format, pretty=config.export_pretty)
    if not args.quiet:
        console.print(f"[green]Exported {len(records)} records to {args.file}[/green]")


def cmd_parse(args):
    """Show how filter text is read."""
    parsed = parse_filter_text(args.text, numeric=not args.literal)
    if args.output == "json":
        if parsed is None:
            print(json.dumps({"literal": args.text}))
        else:
            data = {"operator": parsed.operator, "value": parsed.value}
            if parsed.second_value:
                data["secondValue"] = parsed.second_value
            print(json.dumps(data))
        return

    if parsed is None:
        console.print(f"literal [cyan]{args.text!r}[/cyan]")
    elif parsed.second_value:
        console.print(f"[green]{parsed.operator}[/green] {parsed.value} and {parsed.second_value}")
    else:
        console.print(f"[green]{parsed.operator}[/green] {parsed.value}")


def cmd_fields(args):
    """List the fields of a data file."""
    if getattr(args, "view", None):
        fields, _ = load_views(Path(args.view))
    else:
        fields = infer_fields(load_records(Path(args.data)))

    if args.output == "json":
        print(json.dumps([f.to_dict() for f in fields], indent=2))
        return

    table = Table(title="Fields")
    table.add_column("ID", style="cyan")
    table.add_column("Domain", style="green")
    table.add_column("Header")
    table.add_column("Flags", style="yellow")
    table.add_column("Operators", style="dim")

    for f in fields:
        flags = [name for name in ("sortable", "filterable", "groupable", "editable") if getattr(f, name)]
        table.add_row(f.id, f.domain.value, f.label, ", ".join(flags), ", ".join(operators_for(f.domain)))

    console.print(table)


def cmd_config(args):
    """Manage configuration."""
    config = get_config()

    if args.action == "show":
        print(json.dumps(config.to_dict(), indent=2))

    elif args.action == "get":
        if not args.key or not hasattr(config, args.key):
            console.print(f"[red]Unknown config key: {args.key}[/red]")
            sys.exit(1)
        print(getattr(config, args.key))

    elif args.action == "set":
        if not args.key or args.value is None:
            console.print("[red]Usage: gridview config set KEY VALUE[/red]")
            sys.exit(1)
        config.set(args.key, args.value)
        config.validate()
        config.save()
        if not args.quiet:
            console.print(f"[green]Set {args.key} = {getattr(config, args.key)}[/green]")


def add_view_arguments(parser: argparse.ArgumentParser):
    """Arguments shared by commands that compute a view."""
    parser.add_argument("data", help="Records file (.json, .csv, .yaml)")
    parser.add_argument("--view", help="View file with fields and saved views")
    parser.add_argument("--name", help="Saved view to apply")
    parser.add_argument("--sort", help='Sort keys, e.g. "dept asc, salary desc"')
    parser.add_argument("--filter", action="append", metavar="FIELD=TEXT",
                        help="Filter text for a field (numeric fields accept >=, <, 20..50)")
    parser.add_argument("--op", action="append", metavar="FIELD=OPERATOR",
                        help="Filter operator for a field")
    parser.add_argument("--group", help="Comma-separated group fields")
    parser.add_argument("--collapse", action="append", metavar="PATH", help="Collapse a group path")
    parser.add_argument("--search", help="Free-text search across fields")
    parser.add_argument("--page", type=int, help="Page number")
    parser.add_argument("--page-size", type=int, help="Records per page")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Gridview - sort, filter, group and page tabular data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gridview show people.json --sort "dept asc, salary desc" --group dept
  gridview show people.json --filter "salary=>=50000" --page 2
  gridview show people.csv --filter "age=20..40" -o json
  gridview show people.json --view views.yaml --name by_dept
  gridview export people.json out.csv --filter "name=ann"
  gridview parse "20><50"
  gridview fields people.json

Configuration:
  Config file: ~/.config/gridview/config.toml, ./gridview.toml
  Environment: GRIDVIEW_PAGE_SIZE, GRIDVIEW_GROUP_ORDER
        """
    )

    # Global options
    parser.add_argument("--config", help="Config file path")
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal output")
    parser.add_argument("-o", "--output", choices=["table", "json", "csv", "plain"],
                        help="Output format")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Commands")

    show_parser = subparsers.add_parser("show", help="Print one page of a view")
    add_view_arguments(show_parser)
    show_parser.set_defaults(func=cmd_show)

    export_parser = subparsers.add_parser("export", help="Export filtered, sorted records")
    add_view_arguments(export_parser)
    export_parser.add_argument("file", help="Output file")
    export_parser.add_argument("--format", choices=["csv", "json", "text"], help="Export format")
    export_parser.set_defaults(func=cmd_export)

    parse_parser = subparsers.add_parser("parse", help="Show how filter text is read")
    parse_parser.add_argument("text", help="Filter text, e.g. '>=10' or '20><50'")
    parse_parser.add_argument("--literal", action="store_true",
                              help="Read as a text field (no expression grammar)")
    parse_parser.set_defaults(func=cmd_parse)

    fields_parser = subparsers.add_parser("fields", help="List fields of a data file")
    fields_parser.add_argument("data", nargs="?", help="Records file")
    fields_parser.add_argument("--view", help="View file declaring the fields")
    fields_parser.set_defaults(func=cmd_fields)

    config_parser = subparsers.add_parser("config", help="Manage configuration")
    config_parser.add_argument("action", nargs="?", default="show", choices=["show", "get", "set"])
    config_parser.add_argument("key", nargs="?", help="Config key")
    config_parser.add_argument("value", nargs="?", help="New value")
    config_parser.set_defaults(func=cmd_config)

    # Parse arguments
    args = parser.parse_args()

    if args.command == "fields" and not args.data and not args.view:
        parser.error("fields needs a data file or --view")

    try:
        # Initialize configuration with CLI overrides
        config = init_config(
            config_file=Path(args.config) if args.config else None,
            output_format=args.output,
            log_level=args.log_level,
        )
    except GridviewError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, str(config.log_level).upper(), logging.WARNING),
        format="%(levelname)s: %(message)s",
    )

    # Set default output format if not specified
    if not args.output:
        args.output = config.output_format

    # Execute command
    try:
        args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except (GridviewError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
