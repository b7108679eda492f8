"""
Filter expression parser.

Turns the raw text typed into a numeric filter box into a structured
operator/value pair. Recognized forms, tried in order:

    20><50, 20<>50, 20..50   -> between 20 and 50
    >=X                      -> gte X
    <=X                      -> lte X
    !=X                      -> neq X
    >X                       -> gt X
    <X                       -> lt X
    =X                       -> eq X

An operator with nothing after it (a bare '>') is not an expression yet;
it stays literal text until a value follows. Text fields never go through
this grammar. The parser never raises: input it does not recognize is
valid literal input.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

from gridview.views.core import DataDomain

RANGE_PATTERN = re.compile(r"^(\d+\.?\d*)\s*(><|<>|\.\.)\s*(\d+\.?\d*)\s*$")

# Longer prefixes first so '>=' is never read as '>' followed by '='.
PREFIX_OPERATORS = (
    (">=", "gte"),
    ("<=", "lte"),
    ("!=", "neq"),
    (">", "gt"),
    ("<", "lt"),
    ("=", "eq"),
)


@dataclass(frozen=True)
class ParsedFilter:
    """Structured result of parsing filter text."""
    operator: str
    value: str
    second_value: str = ""

    def __repr__(self):
        if self.second_value:
            return f"ParsedFilter({self.operator} {self.value!r} and {self.second_value!r})"
        return f"ParsedFilter({self.operator} {self.value!r})"


def parse_filter_text(text: Optional[str], numeric: bool = True) -> Optional[ParsedFilter]:
    """
    Parse raw filter text.

    Returns None when the text is not an expression (empty text, a
    non-numeric field, or nothing matched); the caller then keeps the raw
    text as a literal value.
    """
    if not text or not text.strip():
        return None

    if not numeric:
        return None

    match = RANGE_PATTERN.match(text)
    if match:
        return ParsedFilter("between", match.group(1), match.group(3))

    for prefix, operator in PREFIX_OPERATORS:
        if text.startswith(prefix):
            rest = text[len(prefix):].strip()
            if not rest:
                return None
            return ParsedFilter(operator, rest)

    return None


def resolve_filter_text(
    text: Optional[str],
    domain: Union[DataDomain, str],
    current_operator: str,
) -> ParsedFilter:
    """
    Interpret raw widget text for a field.

    Numeric fields are parsed; when nothing matches, or for any other
    domain, the raw text becomes the value under the operator that is
    currently selected for the field.
    """
    domain = DataDomain.from_string(domain)
    parsed = parse_filter_text(text, numeric=domain.is_numeric)
    if parsed is not None:
        return parsed
    return ParsedFilter(current_operator, text or "")
