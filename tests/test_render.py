"""
Tests for per-cell render decisions.

Tests cover:
- Default decisions by cell type and data domain
- Custom renderers and their fallbacks
- Mixed-content and conditional-edit renderers
- Kind detection from raw values
"""

import logging

import pytest

from gridview.render import (
    RenderContext,
    RenderDecision,
    conditional_edit_renderer,
    detect_data_type,
    mixed_content_renderer,
    render_row,
    resolve_render,
)
from gridview.views.core import FieldDescriptor


class TestDefaultDecisions:
    """Test decisions without a custom renderer."""

    @pytest.mark.parametrize("domain,kind", [
        ("string", "text"),
        ("number", "number"),
        ("currency", "currency"),
        ("date", "date"),
        ("datetime", "datetime"),
        ("collection", "collection"),
        ("boolean", "checkbox"),
    ])
    def test_domain_kinds(self, domain, kind):
        decision = resolve_render("v", {}, FieldDescriptor("f", domain))
        assert decision.kind == kind
        assert decision.content == "v"

    def test_cell_type_wins(self):
        descriptor = FieldDescriptor("f", "boolean", cell_type="toggle", editable=True)
        decision = resolve_render(True, {}, descriptor)
        assert decision == RenderDecision("toggle", content=True, editable=True)

    def test_checkbox_cell_type_on_string(self):
        decision = resolve_render("yes", {}, FieldDescriptor("f", cell_type="checkbox"))
        assert decision.kind == "checkbox"

    def test_editable_follows_descriptor(self):
        assert resolve_render("x", {}, FieldDescriptor("f", editable=True)).editable is True
        assert resolve_render("x", {}, FieldDescriptor("f")).editable is False

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            RenderDecision("sparkline")


class TestCustomRenderers:
    """Test a field's own renderer."""

    def test_decision_is_used_as_is(self):
        decision = RenderDecision("number", content=1, props={"precision": 2})
        descriptor = FieldDescriptor("f", renderer=lambda ctx: decision)
        assert resolve_render(1, {}, descriptor) is decision

    def test_plain_result_is_custom(self):
        descriptor = FieldDescriptor("f", renderer=lambda ctx: f"<{ctx.value}>")
        decision = resolve_render("a", {}, descriptor)
        assert decision.kind == "custom"
        assert decision.content == "<a>"

    def test_renderer_sees_row_and_field(self):
        seen = []
        descriptor = FieldDescriptor("f", renderer=lambda ctx: seen.append(ctx))
        row = {"f": 1, "g": 2}
        resolve_render(1, row, descriptor)
        assert seen == [RenderContext(value=1, row=row, field=descriptor)]

    def test_none_falls_back_to_default(self):
        descriptor = FieldDescriptor("f", "number", renderer=lambda ctx: None)
        assert resolve_render(3, {}, descriptor).kind == "number"

    def test_failing_renderer_degrades_to_text(self, caplog):
        def broken(ctx):
            raise RuntimeError("boom")

        descriptor = FieldDescriptor("f", "number", renderer=broken)
        with caplog.at_level(logging.WARNING, logger="gridview.render"):
            decision = resolve_render(7, {}, descriptor)
        assert decision == RenderDecision("text", content="7")
        assert "boom" in caplog.text


class TestComposedRenderers:
    """Test mixed-content and conditional-edit renderers."""

    def test_mixed_content_first_match_wins(self):
        render = mixed_content_renderer([
            (lambda ctx: ctx.row["type"] == "flag", lambda ctx: RenderDecision("checkbox", content=ctx.value)),
            (lambda ctx: ctx.row["type"] == "money", lambda ctx: RenderDecision("currency", content=ctx.value)),
        ])
        descriptor = FieldDescriptor("value", renderer=render)

        assert resolve_render(True, {"type": "flag"}, descriptor).kind == "checkbox"
        assert resolve_render(5, {"type": "money"}, descriptor).kind == "currency"

        fallback = resolve_render(None, {"type": "other"}, descriptor)
        assert fallback == RenderDecision("text", content="", editable=False)

    def test_conditional_edit(self):
        base = lambda ctx: RenderDecision("number", content=ctx.value)
        render = conditional_edit_renderer(base, lambda ctx: not ctx.row.get("locked"))
        descriptor = FieldDescriptor("n", "number", renderer=render)

        assert resolve_render(1, {"locked": False}, descriptor).editable is True
        assert resolve_render(1, {"locked": True}, descriptor).editable is False

    def test_render_row(self, people, people_fields):
        decisions = render_row(people[0], people_fields)
        assert [d.kind for d in decisions] == [
            "number", "text", "text", "currency", "date", "collection", "checkbox",
        ]
        assert decisions[5].content == ["python", "sql"]


class TestDetectDataType:
    """Test kind detection from raw values."""

    @pytest.mark.parametrize("value,kind", [
        (None, "text"),
        (["a"], "collection"),
        (True, "checkbox"),
        (3, "number"),
        (2.5, "number"),
        ("2024-05-01", "date"),
        ("2024-05-01T10:00:00", "datetime"),
        ("hello", "text"),
    ])
    def test_detect(self, value, kind):
        assert detect_data_type(value) == kind
