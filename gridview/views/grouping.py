"""
Group synthesis over sorted records.

Grouping walks the sorted records once and opens a new header whenever a
record's value for a group field differs from the active group at that
level (and for every deeper level below it). Members of one group are
therefore only contiguous when the records are sorted by the group fields
first; the engine runs grouping after sorting and leaves the key order to
its GroupOrder mode.

Header paths join the ancestor group values with '|'. Separator and
backslash characters inside values are escaped, and a null group value
has its own segment, so paths are unique within the tree. Null values form
a group of their own and are never merged with other values.
"""

from dataclasses import dataclass
from typing import AbstractSet, Any, Iterable, List, Optional, Sequence

from gridview.constants import GROUP_PATH_SEPARATOR, NULL_GROUP_LABEL
from gridview.views.core import GroupHeader
from gridview.views.fields import get_value, to_collection

NULL_SEGMENT = "\\0"


def path_segment(value: Any) -> str:
    """Path segment for one group value."""
    if value is None:
        return NULL_SEGMENT
    if isinstance(value, (list, tuple, set, frozenset)):
        text = ", ".join(to_collection(value))
    else:
        text = str(value)
    return text.replace("\\", "\\\\").replace(GROUP_PATH_SEPARATOR, "\\" + GROUP_PATH_SEPARATOR)


def join_path(parent: Optional[str], segment: str) -> str:
    if parent is None:
        return segment
    return f"{parent}{GROUP_PATH_SEPARATOR}{segment}"


def group_path(*values: Any) -> str:
    """Path of the group reached by a chain of group values."""
    path = None
    for value in values:
        path = join_path(path, path_segment(value))
    return path or ""


@dataclass
class _OpenGroup:
    """A header under construction while its records are counted."""
    segment: str
    path: str
    level: int
    field: str
    value: Any
    collapsed: bool
    suppressed: bool
    count: int = 0

    @property
    def hides_children(self) -> bool:
        return self.collapsed or self.suppressed


def group_rows(
    records: Iterable[Any],
    group_fields: Sequence[str],
    collapsed: AbstractSet[str] = frozenset(),
    null_label: str = NULL_GROUP_LABEL,
) -> List[Any]:
    """
    Interleave group headers with records.

    A collapsed header stays in the output but its records and nested
    headers do not. Counts include records hidden by collapsing.
    """
    records = list(records)
    if not group_fields:
        return records

    rows: List[Any] = []
    stack: List[_OpenGroup] = []

    for record in records:
        values = [get_value(record, f) for f in group_fields]
        segments = [path_segment(v) for v in values]

        level = 0
        while level < len(stack) and stack[level].segment == segments[level]:
            level += 1
        del stack[level:]

        for depth in range(level, len(group_fields)):
            parent = stack[-1] if stack else None
            path = join_path(parent.path if parent else None, segments[depth])
            group = _OpenGroup(
                segment=segments[depth],
                path=path,
                level=depth,
                field=group_fields[depth],
                value=values[depth],
                collapsed=path in collapsed,
                suppressed=parent is not None and parent.hides_children,
            )
            stack.append(group)
            if not group.suppressed:
                rows.append(group)

        for group in stack:
            group.count += 1

        if not stack[-1].hides_children:
            rows.append(record)

    return [_materialize(row, null_label) if isinstance(row, _OpenGroup) else row for row in rows]


def _materialize(group: _OpenGroup, null_label: str) -> GroupHeader:
    if group.value is None:
        label = null_label
    elif isinstance(group.value, (list, tuple, set, frozenset)):
        label = ", ".join(to_collection(group.value)) or null_label
    else:
        label = str(group.value)
    return GroupHeader(
        path=group.path,
        level=group.level,
        group_field=group.field,
        group_value=group.value,
        count=group.count,
        label=label,
        collapsed=group.collapsed,
    )


def header_paths(rows: Iterable[Any]) -> List[str]:
    """Paths of every header in a display sequence, in order."""
    return [row.path for row in rows if isinstance(row, GroupHeader)]
