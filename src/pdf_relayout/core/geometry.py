# SPDX-License-Identifier: Apache-2.0
"""Geometry helpers: transform decoding, units, page sizes and margins."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .models import Margins, TextItem, Transform
from .outcome import Outcome

# Standard page sizes in points (portrait width, height)
PAGE_SIZES: dict[str, tuple[float, float]] = {
    "A4": (595.28, 841.89),
    "A3": (841.89, 1190.55),
    "A5": (419.53, 595.28),
    "LETTER": (612.0, 792.0),
    "LEGAL": (612.0, 1008.0),
    "TABLOID": (792.0, 1224.0),
}

DEFAULT_PAGE_SIZE_TOLERANCE = 5.0

POINTS_PER_INCH = 72.0
MM_PER_POINT = 0.352778
POINTS_PER_MM = 2.83465


@dataclass(frozen=True)
class ParsedTransform:
    """Position, size and rotation decoded from a text transform.

    Attributes:
        x: Horizontal translation (e)
        y: Vertical translation (f)
        font_size: Absolute vertical scale |d|
        rotation: Rotation in degrees, atan2(b, a)
    """

    x: float = 0.0
    y: float = 0.0
    font_size: float = 12.0
    rotation: float = 0.0


IDENTITY_PARSED = ParsedTransform()


def parse_transform(
    matrix: Union[Sequence[float], Transform, None],
) -> Outcome[ParsedTransform]:
    """Decode a six-element affine transform.

    Args:
        matrix: ``[a, b, c, d, e, f]`` or a ``Transform``.

    Returns:
        The decoded transform, or the identity defaults (x=0, y=0,
        font_size=12, rotation=0) marked degraded when the input is
        missing, short or not numeric.
    """
    if matrix is None:
        return Outcome.fallback(IDENTITY_PARSED, "missing transform")

    if isinstance(matrix, Transform):
        values: Sequence[float] = matrix.as_tuple()
    else:
        values = matrix

    try:
        if len(values) < 6:
            return Outcome.fallback(
                IDENTITY_PARSED, f"transform has {len(values)} elements"
            )
        a, b, _c, d, e, f = (float(v) for v in values[:6])
    except (TypeError, ValueError):
        return Outcome.fallback(IDENTITY_PARSED, "transform is not numeric")
    if not all(math.isfinite(v) for v in (a, b, d, e, f)):
        return Outcome.fallback(IDENTITY_PARSED, "transform is not finite")

    return Outcome.ok(
        ParsedTransform(
            x=e,
            y=f,
            font_size=abs(d),
            rotation=math.degrees(math.atan2(b, a)),
        )
    )


def invert_y_coordinate(y: float, page_height: float, item_height: float = 0.0) -> float:
    """Convert a bottom-up Y to a top-down Y."""
    return page_height - y - item_height


def detect_page_size(
    width: float,
    height: float,
    tolerance: float = DEFAULT_PAGE_SIZE_TOLERANCE,
) -> Optional[str]:
    """Match page dimensions against the standard size table.

    Args:
        width: Page width in points.
        height: Page height in points.
        tolerance: Allowed difference per dimension in points.

    Returns:
        The size name (``"A4"``), the name with ``"_LANDSCAPE"`` for a
        rotated match, or None.
    """
    for name, (std_width, std_height) in PAGE_SIZES.items():
        if abs(width - std_width) <= tolerance and abs(height - std_height) <= tolerance:
            return name
        if abs(width - std_height) <= tolerance and abs(height - std_width) <= tolerance:
            return f"{name}_LANDSCAPE"
    return None


def points_to_mm(points: float) -> float:
    return points * MM_PER_POINT


def mm_to_points(mm: float) -> float:
    return mm * POINTS_PER_MM


def points_to_inches(points: float) -> float:
    return points / POINTS_PER_INCH


def inches_to_points(inches: float) -> float:
    return inches * POINTS_PER_INCH


def compute_margins(
    items: Iterable[TextItem],
    page_width: float,
    page_height: float,
) -> Optional[Margins]:
    """Derive page margins from the bounding box of its text items.

    Args:
        items: Text items of one page.
        page_width: Page width in points.
        page_height: Page height in points.

    Returns:
        Margins clamped at zero, or None when there are no items.
    """
    min_x = page_width
    max_x = 0.0
    min_y = page_height
    max_y = 0.0
    seen = False

    for item in items:
        seen = True
        min_x = min(min_x, item.x)
        max_x = max(max_x, item.x + item.width)
        min_y = min(min_y, item.y)
        max_y = max(max_y, item.y + item.height)

    if not seen:
        return None

    return Margins(
        left=max(0.0, min_x),
        right=max(0.0, page_width - max_x),
        top=max(0.0, page_height - max_y),
        bottom=max(0.0, min_y),
    )
