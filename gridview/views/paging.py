"""
Pagination over grouped display rows.

Only records count toward the page size; group headers ride along with
the page that shows any of their records, so a page may hold more rows
than its size. A header repeats at the top of every page its records
span.
"""

from typing import Any, Dict, List, Optional, Sequence

from gridview.constants import PAGER_SIBLINGS
from gridview.views.core import GroupHeader, PageWindow


def count_records(rows: Sequence[Any]) -> int:
    """Number of record rows in a display sequence."""
    return sum(1 for row in rows if not isinstance(row, GroupHeader))


def total_pages(total_items: int, size: int) -> int:
    return max(1, -(-total_items // size))


def clamp_page(index: int, total_items: int, size: int) -> int:
    """Clamp a 1-based page index into [1, total_pages]."""
    return min(max(1, index), total_pages(total_items, size))


def _header_spans(rows: Sequence[Any]) -> Dict[int, List[int]]:
    """
    Record positions spanned by each header, keyed by row index.

    A collapsed header has no records below it in the display sequence;
    it is anchored to the position of the next visible record, or to the
    last record when none follows.
    """
    total = count_records(rows)
    last = max(total - 1, 0)
    spans: Dict[int, List[int]] = {}
    stack: List[int] = []
    position = 0

    def touch(pos: int) -> None:
        for index in stack:
            span = spans.get(index)
            if span is None:
                spans[index] = [pos, pos]
            else:
                span[0] = min(span[0], pos)
                span[1] = max(span[1], pos)

    for index, row in enumerate(rows):
        if isinstance(row, GroupHeader):
            while stack and rows[stack[-1]].level >= row.level:
                stack.pop()
            stack.append(index)
            if row.collapsed:
                touch(min(position, last))
        else:
            touch(position)
            position += 1

    return spans


def paginate(rows: Sequence[Any], window: PageWindow) -> List[Any]:
    """Rows of the active page, with the headers of every record shown."""
    start = (window.index - 1) * window.size
    end = start + window.size

    if not any(isinstance(row, GroupHeader) for row in rows):
        return list(rows[start:end])

    spans = _header_spans(rows)
    page: List[Any] = []
    position = 0
    for index, row in enumerate(rows):
        if isinstance(row, GroupHeader):
            span = spans.get(index)
            if span is not None and span[0] < end and span[1] >= start:
                page.append(row)
        else:
            if start <= position < end:
                page.append(row)
            position += 1
    return page


def page_numbers(current: int, total: int, siblings: int = PAGER_SIBLINGS) -> List[Optional[int]]:
    """
    Compact list of page numbers for pager controls.

    The first and last pages are always present, plus `siblings` pages on
    each side of the current one. None marks an elided run; a gap of a
    single page shows that page instead of a marker.

        page_numbers(6, 12) -> [1, None, 5, 6, 7, None, 12]
    """
    if total < 1:
        return []
    current = min(max(1, current), total)

    shown = {1, total}
    shown.update(range(max(1, current - siblings), min(total, current + siblings) + 1))

    result: List[Optional[int]] = []
    previous = 0
    for number in sorted(shown):
        gap = number - previous
        if gap == 2:
            result.append(previous + 1)
        elif gap > 2:
            result.append(None)
        result.append(number)
        previous = number
    return result
