"""
Per-cell render decisions.

The rendering layer asks resolve_render() how to show one cell and
branches on the returned kind. Decisions are plain values computed from
the cell value, its row and the field descriptor; they never touch the
view engine's state.

A field's own renderer wins when it returns something; otherwise the
decision follows the field's cell type and data domain.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Sequence, Tuple

from gridview.views.core import DataDomain, FieldDescriptor
from gridview.views.fields import get_value

logger = logging.getLogger(__name__)

KINDS = (
    "text",
    "collection",
    "checkbox",
    "toggle",
    "date",
    "datetime",
    "currency",
    "number",
    "custom",
)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class RenderContext:
    """What a renderer sees for one cell."""
    value: Any
    row: Any
    field: FieldDescriptor


@dataclass(frozen=True)
class RenderDecision:
    """How to show one cell."""
    kind: str
    content: Any = None
    props: Dict[str, Any] = field(default_factory=dict)
    editable: bool = False

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown render kind: {self.kind}")


Renderer = Callable[[RenderContext], Any]

_DOMAIN_KINDS = {
    DataDomain.CURRENCY: "currency",
    DataDomain.DATE: "date",
    DataDomain.DATETIME: "datetime",
    DataDomain.NUMBER: "number",
    DataDomain.COLLECTION: "collection",
}


def _text(value: Any) -> str:
    return "" if value is None or value == "" else str(value)


def resolve_render(value: Any, row: Any, descriptor: FieldDescriptor) -> RenderDecision:
    """
    Decide how to render one cell.

    A renderer that raises degrades to a text decision; the failure is
    logged, never propagated to the table.
    """
    context = RenderContext(value=value, row=row, field=descriptor)

    try:
        if descriptor.renderer is not None:
            result = descriptor.renderer(context)
            if isinstance(result, RenderDecision):
                return result
            if isinstance(result, (str, int, float)):
                return RenderDecision("custom", content=result, editable=descriptor.editable)
        return default_render(context)
    except Exception as e:
        logger.warning(f"Renderer for field {descriptor.id!r} failed: {e}")
        return RenderDecision("text", content=_text(value), editable=descriptor.editable)


def default_render(context: RenderContext) -> RenderDecision:
    """Decision from the field's cell type and data domain alone."""
    descriptor = context.field

    if descriptor.cell_type in ("checkbox", "toggle"):
        return RenderDecision(descriptor.cell_type, content=context.value, editable=descriptor.editable)

    if descriptor.domain is DataDomain.BOOLEAN:
        return RenderDecision("checkbox", content=context.value, editable=descriptor.editable)

    kind = _DOMAIN_KINDS.get(descriptor.domain)
    if kind is not None:
        return RenderDecision(kind, content=context.value, editable=descriptor.editable)

    return RenderDecision("text", content=context.value, editable=descriptor.editable)


def detect_data_type(value: Any) -> str:
    """Guess a render kind from a raw value."""
    if value is None:
        return "text"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "collection"
    if isinstance(value, bool):
        return "checkbox"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str) and _ISO_DATE.match(value):
        return "datetime" if "T" in value else "date"
    return "text"


def mixed_content_renderer(
    rules: Sequence[Tuple[Callable[[RenderContext], bool], Renderer]],
) -> Renderer:
    """
    Pick a renderer per row.

    Rules are (condition, renderer) pairs tried in order; the first whose
    condition holds renders the cell. With no match the cell is read-only
    text.
    """
    rules = list(rules)

    def render(context: RenderContext) -> RenderDecision:
        for condition, renderer in rules:
            if condition(context):
                return renderer(context)
        return RenderDecision("text", content=_text(context.value), editable=False)

    return render


def conditional_edit_renderer(
    base: Renderer,
    editable_when: Callable[[RenderContext], bool],
) -> Renderer:
    """Wrap a renderer so editability follows the row."""

    def render(context: RenderContext) -> RenderDecision:
        decision = base(context)
        return replace(decision, editable=bool(editable_when(context)))

    return render


def render_row(row: Any, fields: Sequence[FieldDescriptor]) -> List[RenderDecision]:
    """Decisions for every cell of a row, in field order."""
    return [resolve_render(get_value(row, f.id), row, f) for f in fields]
