"""
Tests for the filter expression parser.

Tests cover:
- Range forms (><, <>, ..) and whitespace around separators
- Comparison prefixes and their precedence
- Bare operators and non-numeric input staying literal
- resolve_filter_text fallback to the current operator
"""

import pytest

from gridview.views.core import DataDomain
from gridview.views.expression import (
    ParsedFilter,
    parse_filter_text,
    resolve_filter_text,
)


class TestRangeExpressions:
    """Test the range grammar."""

    @pytest.mark.parametrize("text", ["20><50", "20<>50", "20..50", "20 >< 50", "20 .. 50  "])
    def test_range_forms_parse_to_between(self, text):
        """Every range separator should give a between filter."""
        assert parse_filter_text(text) == ParsedFilter("between", "20", "50")

    def test_range_with_decimals(self):
        """Decimal bounds should be kept as written."""
        assert parse_filter_text("1.5..2.75") == ParsedFilter("between", "1.5", "2.75")

    def test_range_with_trailing_dot(self):
        """A bound may end with a dot."""
        assert parse_filter_text("10.><20") == ParsedFilter("between", "10.", "20")

    def test_range_needs_both_bounds(self):
        """A missing bound is not a range."""
        assert parse_filter_text("20..") is None
        assert parse_filter_text("..50") is None

    def test_negative_bounds_are_not_ranges(self):
        """The range grammar only accepts unsigned numbers."""
        assert parse_filter_text("-5..5") is None

    def test_leading_whitespace_is_not_a_range(self):
        """The range must start at the first character."""
        assert parse_filter_text(" 20..50") is None


class TestComparisonExpressions:
    """Test the comparison prefixes."""

    @pytest.mark.parametrize("text,operator,value", [
        (">=50", "gte", "50"),
        ("<=50", "lte", "50"),
        ("!=50", "neq", "50"),
        (">50", "gt", "50"),
        ("<50", "lt", "50"),
        ("=50", "eq", "50"),
    ])
    def test_prefixes(self, text, operator, value):
        """Each prefix should map to its operator."""
        assert parse_filter_text(text) == ParsedFilter(operator, value)

    def test_two_char_prefix_wins_over_one_char(self):
        """'>=' must not be read as '>' followed by '=5'."""
        parsed = parse_filter_text(">=5")
        assert parsed.operator == "gte"
        assert parsed.value == "5"

    def test_value_is_stripped(self):
        """Whitespace after the operator is dropped."""
        assert parse_filter_text(">   12 ") == ParsedFilter("gt", "12")

    def test_value_is_not_validated(self):
        """Text after a prefix is kept even when it is not a number."""
        assert parse_filter_text(">abc") == ParsedFilter("gt", "abc")

    def test_range_takes_precedence(self):
        """Range forms are tried before any prefix."""
        assert parse_filter_text("5<>9").operator == "between"


class TestLiteralInput:
    """Test input that is not an expression."""

    @pytest.mark.parametrize("text", [">", "<", ">=", "<=", "!=", "=", ">   "])
    def test_bare_operator_is_literal(self, text):
        """An operator with nothing after it does not parse."""
        assert parse_filter_text(text) is None

    @pytest.mark.parametrize("text", ["", "   ", None, "42", "abc", "5-10"])
    def test_plain_text_is_literal(self, text):
        """Plain values are not expressions."""
        assert parse_filter_text(text) is None

    def test_non_numeric_fields_skip_the_grammar(self):
        """Text fields keep operator characters as literal text."""
        assert parse_filter_text(">=50", numeric=False) is None
        assert parse_filter_text("20..50", numeric=False) is None


class TestResolveFilterText:
    """Test reading raw widget text for a field."""

    def test_numeric_field_parses(self):
        """Number fields go through the grammar."""
        assert resolve_filter_text("20><50", DataDomain.NUMBER, "eq") == ParsedFilter("between", "20", "50")

    def test_currency_field_parses(self):
        """Currency behaves as a number."""
        assert resolve_filter_text("<10", "currency", "eq") == ParsedFilter("lt", "10")

    def test_bare_operator_falls_back_to_current_operator(self):
        """A lone '>' is the literal value under the selected operator."""
        assert resolve_filter_text(">", DataDomain.NUMBER, "eq") == ParsedFilter("eq", ">")

    def test_string_field_keeps_text(self):
        """String fields never parse."""
        assert resolve_filter_text(">=5", DataDomain.STRING, "contains") == ParsedFilter("contains", ">=5")

    def test_empty_text(self):
        """No text means an empty value under the current operator."""
        assert resolve_filter_text(None, DataDomain.NUMBER, "gte") == ParsedFilter("gte", "")
