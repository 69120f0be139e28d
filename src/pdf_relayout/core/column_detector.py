# SPDX-License-Identifier: Apache-2.0
"""Multi-column layout detection from text positions.

Column bands are found by clustering the left-edge X positions of a
page's text items: wide gaps between consecutive left edges mark
candidate gutters, nearby candidates are merged, and the survivors
partition ``[0, page_width]`` into columns. Whenever the evidence is
thin the page is reported as a single column.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .models import ColumnInfo, ColumnLayout, TextItem
from .outcome import Outcome

logger = logging.getLogger(__name__)


@dataclass
class ColumnDetectionConfig:
    """Column detection thresholds.

    Attributes:
        min_column_width: Narrowest accepted column in points
        min_gutter_width: Narrowest gap between left edges that can
            separate columns
        max_columns: Upper bound on detected columns
        min_items_per_column: Items a column needs to count as evidence
        cluster_tolerance_ratio: Gaps closer than this fraction of
            ``min_gutter_width`` are merged
    """

    min_column_width: float = 100.0
    min_gutter_width: float = 20.0
    max_columns: int = 4
    min_items_per_column: int = 5
    cluster_tolerance_ratio: float = 0.2

    @property
    def cluster_threshold(self) -> float:
        return self.min_gutter_width * self.cluster_tolerance_ratio


@dataclass(frozen=True)
class Gap:
    """Gap between two consecutive left edges."""

    position: float
    width: float


@dataclass
class ColumnDistribution:
    """How evenly items are spread over the columns of a layout."""

    column_count: int
    items_per_column: list[int]
    total_items: int
    balance_ratio: float
    is_balanced: bool


def find_significant_gaps(x_positions: Sequence[float], min_gutter_width: float) -> list[Gap]:
    """Find gaps of at least ``min_gutter_width`` between sorted positions."""
    gaps = []
    for left, right in zip(x_positions, x_positions[1:]):
        width = right - left
        if width >= min_gutter_width:
            gaps.append(Gap(position=(left + right) / 2, width=width))
    return gaps


def cluster_gaps(
    gaps: Sequence[Gap],
    page_width: float,
    config: ColumnDetectionConfig,
) -> list[float]:
    """Reduce candidate gaps to ordered column boundaries.

    Args:
        gaps: Significant gaps.
        page_width: Page width in points.
        config: Detection thresholds.

    Returns:
        Boundary X positions, ascending, at most ``max_columns - 1``.
    """
    if not gaps:
        return []

    ordered = sorted(gaps, key=lambda gap: gap.position)
    threshold = config.cluster_threshold

    clusters: list[list[Gap]] = [[ordered[0]]]
    for gap in ordered[1:]:
        if gap.position - clusters[-1][-1].position < threshold:
            clusters[-1].append(gap)
        else:
            clusters.append([gap])

    # Widest gap in each cluster; first one wins ties
    candidates = []
    for cluster in clusters:
        widest = cluster[0]
        for gap in cluster[1:]:
            if gap.width > widest.width:
                widest = gap
        candidates.append(widest)

    boundaries = [
        gap
        for gap in candidates
        if config.min_column_width < gap.position < page_width - config.min_column_width
    ]

    if len(boundaries) >= config.max_columns:
        widest_first = sorted(boundaries, key=lambda gap: gap.width, reverse=True)
        boundaries = sorted(
            widest_first[: config.max_columns - 1], key=lambda gap: gap.position
        )

    return [gap.position for gap in boundaries]


def build_columns(
    boundaries: Sequence[float],
    page_width: float,
    items: Sequence[TextItem],
    config: ColumnDetectionConfig,
) -> list[ColumnInfo]:
    """Partition the page at the boundaries and collect each band's items.

    Bands narrower than ``min_column_width`` are dropped; the next band
    still starts at the dropped band's right edge.
    """
    columns: list[ColumnInfo] = []
    left_bound = 0.0

    for right_bound in list(sorted(boundaries)) + [page_width]:
        if right_bound - left_bound >= config.min_column_width:
            columns.append(
                ColumnInfo(
                    index=len(columns),
                    left_bound=left_bound,
                    right_bound=right_bound,
                    text_items=[
                        item for item in items if left_bound <= item.x < right_bound
                    ],
                )
            )
        left_bound = right_bound

    for current, following in zip(columns, columns[1:]):
        current.gap_to_next = following.left_bound - current.right_bound

    return columns


def average_gutter(columns: Sequence[ColumnInfo]) -> float:
    """Mean of the positive gaps between adjacent columns."""
    gaps = [column.gap_to_next for column in columns[:-1] if column.gap_to_next > 0]
    if not gaps:
        return 0.0
    return sum(gaps) / len(gaps)


def _detect(
    items: Sequence[TextItem],
    page_width: float,
    page_index: int,
    config: ColumnDetectionConfig,
) -> Outcome[ColumnLayout]:
    def single(reason: str) -> Outcome[ColumnLayout]:
        return Outcome.fallback(
            ColumnLayout.single(page_width, page_index=page_index, items=items), reason
        )

    x_positions = sorted(item.x for item in items if 0 <= item.x <= page_width)
    if not x_positions:
        return single("no left edges inside the page")

    gaps = find_significant_gaps(x_positions, config.min_gutter_width)
    if not gaps:
        return single("no gap wide enough for a gutter")

    boundaries = cluster_gaps(gaps, page_width, config)
    columns = build_columns(boundaries, page_width, items, config)

    if not 1 <= len(columns) <= config.max_columns:
        return single(f"{len(columns)} columns outside 1..{config.max_columns}")

    supported = [c for c in columns if len(c.text_items) >= config.min_items_per_column]
    if len(supported) < 2:
        return single("fewer than two columns with enough items")

    return Outcome.ok(
        ColumnLayout(
            page_index=page_index,
            column_count=len(columns),
            columns=columns,
            gutter_width=average_gutter(columns),
            is_multi_column=len(columns) > 1,
        )
    )


def detect_columns(
    items: Optional[Sequence[TextItem]],
    page_width: float,
    config: Optional[ColumnDetectionConfig] = None,
    page_index: Optional[int] = None,
) -> Outcome[ColumnLayout]:
    """Detect the column layout of one page.

    A single column spanning the page is returned, marked degraded,
    whenever the items do not support a multi-column claim. This
    function does not raise.

    Args:
        items: Text items of one page.
        page_width: Page width in points.
        config: Detection thresholds (defaults when None).
        page_index: Page index for the layout; taken from the first
            item when None.

    Returns:
        The detected layout.
    """
    config = config or ColumnDetectionConfig()
    items = list(items or [])
    if page_index is None:
        page_index = getattr(items[0], "page_index", 0) if items else 0

    if not items:
        return Outcome.fallback(
            ColumnLayout.single(page_width, page_index=page_index), "no text items"
        )

    if len(items) < config.min_items_per_column * 2:
        return Outcome.fallback(
            ColumnLayout.single(page_width, page_index=page_index, items=items),
            f"{len(items)} items is too few for column detection",
        )

    try:
        return _detect(items, page_width, page_index, config)
    except Exception as e:
        logger.warning("Column detection failed, using single column: %s", e)
        return Outcome.fallback(
            ColumnLayout.single(page_width, page_index=page_index, items=items),
            f"detection failed: {e}",
        )


def find_column_for_position(x: float, columns: Sequence[ColumnInfo]) -> int:
    """Return the index of the column containing X, else the nearest one."""
    for column in columns:
        if column.contains(x):
            return column.index

    nearest = 0
    nearest_distance = math.inf
    for column in columns:
        distance = min(abs(x - column.left_bound), abs(x - column.right_bound))
        if distance < nearest_distance:
            nearest_distance = distance
            nearest = column.index
    return nearest


def assign_items_to_columns(
    items: Optional[Sequence[TextItem]],
    layout: Optional[ColumnLayout],
) -> list[TextItem]:
    """Return copies of the items with ``column_index`` set.

    Items outside every band go to the nearest column; without a usable
    layout every item goes to column 0.
    """
    if not items:
        return []
    if layout is None or not layout.columns:
        return [replace(item, column_index=0) for item in items]
    return [
        replace(item, column_index=find_column_for_position(item.x, layout.columns))
        for item in items
    ]


def analyze_column_distribution(layout: Optional[ColumnLayout]) -> ColumnDistribution:
    """Measure how evenly items are spread across a layout's columns."""
    if layout is None or not layout.columns or layout.column_count <= 0:
        return ColumnDistribution(
            column_count=0,
            items_per_column=[],
            total_items=0,
            balance_ratio=0.0,
            is_balanced=False,
        )

    counts = [len(column.text_items) for column in layout.columns]
    total = sum(counts)
    average = total / layout.column_count
    variance = sum((count - average) ** 2 for count in counts) / layout.column_count
    balance = max(0.0, 1 - math.sqrt(variance) / average) if average > 0 else 0.0

    return ColumnDistribution(
        column_count=layout.column_count,
        items_per_column=counts,
        total_items=total,
        balance_ratio=balance,
        is_balanced=balance > 0.7,
    )


def is_likely_multi_column(items: Optional[Sequence[TextItem]], page_width: float) -> bool:
    """Quick check: few left edges in the middle of the page suggests columns.

    Pages with fewer than 20 items are never considered multi-column.
    """
    if not items or len(items) < 20:
        return False

    middle_start = page_width * 0.3
    middle_end = page_width * 0.7
    in_middle = sum(1 for item in items if middle_start <= item.x <= middle_end)
    return in_middle / len(items) < 0.2
