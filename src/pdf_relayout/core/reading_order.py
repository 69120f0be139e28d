# SPDX-License-Identifier: Apache-2.0
"""Reading-order sorting: column by column, top to bottom, left to right."""

from __future__ import annotations

import functools
from typing import Optional, Sequence

from .models import TextItem

# Items whose baselines differ by at most this many points share a line
LINE_TOLERANCE = 5.0


def compare_reading_order(
    first: TextItem,
    second: TextItem,
    line_tolerance: float = LINE_TOLERANCE,
) -> int:
    """Three-way comparison of two items in reading order."""
    first_column = first.column_index if first.column_index is not None else 0
    second_column = second.column_index if second.column_index is not None else 0
    if first_column != second_column:
        return -1 if first_column < second_column else 1

    # PDF Y grows upward: higher items are read first
    if abs(first.y - second.y) > line_tolerance:
        return -1 if first.y > second.y else 1

    if first.x != second.x:
        return -1 if first.x < second.x else 1
    return 0


def sort_by_reading_order(
    items: Optional[Sequence[TextItem]],
    line_tolerance: float = LINE_TOLERANCE,
) -> list[TextItem]:
    """Return the items in reading order without modifying the input.

    Args:
        items: Text items, usually with ``column_index`` assigned.
        line_tolerance: Maximum baseline difference for one line.

    Returns:
        A new list; empty for None or empty input.
    """
    if not items:
        return []
    key = functools.cmp_to_key(
        functools.partial(compare_reading_order, line_tolerance=line_tolerance)
    )
    return sorted(items, key=key)
