# SPDX-License-Identifier: Apache-2.0
"""Fill-color recovery from page content-stream operators.

Text extraction APIs rarely report the fill color a run was painted
with. This module replays a page's drawing operators in order, tracking
the graphics state, and records the fill color in effect at each
text-showing operator keyed by the rounded text position. Text items
are then matched against that map by their own position.

The replay is a left fold ``(state, operator) -> state``: every step
returns a new immutable ``ColorState`` and, for text-showing operators,
a ``ColorRecord`` to collect.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Sequence

from .models import BLACK, Color, TextItem
from .outcome import Outcome

logger = logging.getLogger(__name__)

# Neighbourhood searched around a text item when no exact key matches
COLOR_MATCH_TOLERANCE = 3

# Component threshold for black/white/equality checks
COLOR_THRESHOLD = 0.01

IDENTITY_MATRIX: tuple[float, ...] = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

# Text-showing operators that record a color
SHOW_TEXT_OPERATORS = frozenset({"Tj", "TJ", "'", '"'})


class ContentOperator(NamedTuple):
    """One content-stream instruction."""

    opcode: str
    operands: Sequence[Any] = ()


@dataclass(frozen=True)
class SavedState:
    """Graphics state pushed by ``q`` and popped by ``Q``."""

    color: Color
    text_matrix: tuple[float, ...]


@dataclass(frozen=True)
class ColorState:
    """Graphics state threaded through the operator fold.

    Attributes:
        color: Current fill color
        text_matrix: Current text matrix (e, f hold the text position)
        leading: Text leading set by TL/TD, used by T*, ' and "
        in_text: Whether a BT/ET block is open
        stack: Saved states, innermost last
        color_changes: Number of fill-color changes seen
    """

    color: Color = BLACK
    text_matrix: tuple[float, ...] = IDENTITY_MATRIX
    leading: float = 0.0
    in_text: bool = False
    stack: tuple[SavedState, ...] = ()
    color_changes: int = 0

    @property
    def position(self) -> tuple[float, float]:
        return self.text_matrix[4], self.text_matrix[5]


@dataclass(frozen=True)
class ColorRecord:
    """Color in effect at one text-showing operator."""

    key: str
    color: Color


@dataclass
class ColorExtraction:
    """Result of replaying one page's operators.

    Attributes:
        color_map: Position key to fill color (last write wins)
        default_color: Color used when no position matches
        has_color_data: Whether any fill color was set
        color_changes: Number of fill-color changes seen
    """

    color_map: dict[str, Color]
    default_color: Color = BLACK
    has_color_data: bool = False
    color_changes: int = 0


def cmyk_to_rgb(c: float, m: float, y: float, k: float) -> Color:
    """Convert CMYK components (0-1) to an RGB color."""
    return Color(
        r=(1 - c) * (1 - k),
        g=(1 - m) * (1 - k),
        b=(1 - y) * (1 - k),
    ).clamped()


def gray_to_rgb(gray: float) -> Color:
    """Convert a gray level (0 black, 1 white) to an RGB color."""
    return Color(r=gray, g=gray, b=gray).clamped()


def position_key(x: float, y: float) -> str:
    """Key a position by its coordinates rounded half up."""
    return f"{math.floor(x + 0.5)}_{math.floor(y + 0.5)}"


def _numbers(operands: Sequence[Any]) -> list[float]:
    """Return the numeric operands as floats, skipping names and strings.

    A non-finite operand empties the list so the operator is skipped.
    """
    values = []
    for operand in operands:
        if isinstance(operand, bool):
            continue
        if isinstance(operand, (int, float, Decimal)):
            value = float(operand)
            if not math.isfinite(value):
                return []
            values.append(value)
    return values


def _with_color(state: ColorState, color: Color) -> ColorState:
    return replace(state, color=color, color_changes=state.color_changes + 1)


def _translate(state: ColorState, dx: float, dy: float) -> tuple[float, ...]:
    a, b, c, d, e, f = state.text_matrix
    return (a, b, c, d, e + dx, f + dy)


def _record(state: ColorState) -> Optional[ColorRecord]:
    x, y = state.position
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    if state.in_text or x != 0 or y != 0:
        return ColorRecord(key=position_key(x, y), color=state.color)
    return None


def apply_operator(
    state: ColorState,
    operator: ContentOperator,
) -> tuple[ColorState, Optional[ColorRecord]]:
    """Apply one operator to the graphics state.

    Operators with missing or non-numeric arguments leave the state
    unchanged.

    Args:
        state: State before the operator.
        operator: Operator to apply.

    Returns:
        The new state, and a color record for text-showing operators.
    """
    op = operator.opcode
    args = _numbers(operator.operands)

    if op == "rg":
        if len(args) >= 3:
            return _with_color(state, Color(r=args[0], g=args[1], b=args[2]).clamped()), None
    elif op == "g":
        if len(args) >= 1:
            return _with_color(state, gray_to_rgb(args[0])), None
    elif op == "k":
        if len(args) >= 4:
            return _with_color(state, cmyk_to_rgb(args[0], args[1], args[2], args[3])), None
    elif op in ("cs", "sc", "scn"):
        # Color space unknown here: 3+ components read as RGB, 1 as gray
        if len(args) >= 3:
            return _with_color(state, Color(r=args[0], g=args[1], b=args[2]).clamped()), None
        if len(args) == 1:
            return _with_color(state, gray_to_rgb(args[0])), None
    elif op == "BT":
        return replace(state, in_text=True, text_matrix=IDENTITY_MATRIX), None
    elif op == "ET":
        return replace(state, in_text=False), None
    elif op == "Tm":
        if len(args) >= 6:
            return replace(state, text_matrix=tuple(args[:6])), None
    elif op == "Td":
        if len(args) >= 2:
            return replace(state, text_matrix=_translate(state, args[0], args[1])), None
    elif op == "TD":
        if len(args) >= 2:
            return (
                replace(
                    state,
                    text_matrix=_translate(state, args[0], args[1]),
                    leading=-args[1],
                ),
                None,
            )
    elif op == "TL":
        if len(args) >= 1:
            return replace(state, leading=args[0]), None
    elif op == "T*":
        return replace(state, text_matrix=_translate(state, 0.0, -state.leading)), None
    elif op in ("'", '"'):
        moved = replace(state, text_matrix=_translate(state, 0.0, -state.leading))
        return moved, _record(moved)
    elif op in SHOW_TEXT_OPERATORS:
        return state, _record(state)
    elif op == "q":
        saved = SavedState(color=state.color, text_matrix=state.text_matrix)
        return replace(state, stack=state.stack + (saved,)), None
    elif op == "Q":
        if state.stack:
            saved = state.stack[-1]
            return (
                replace(
                    state,
                    color=saved.color,
                    text_matrix=saved.text_matrix,
                    stack=state.stack[:-1],
                ),
                None,
            )

    return state, None


def extract_text_colors(
    operators: Optional[Iterable[ContentOperator]],
) -> ColorExtraction:
    """Replay a page's operators and map text positions to fill colors.

    Args:
        operators: The page's operators in stream order, or None when
            the content stream could not be read.

    Returns:
        The color map. With no operators the map is empty,
        ``has_color_data`` is False and the default color is black.
    """
    if operators is None:
        return ColorExtraction(color_map={})

    state = ColorState()
    color_map: dict[str, Color] = {}
    for operator in operators:
        state, record = apply_operator(state, operator)
        if record is not None:
            color_map[record.key] = record.color

    return ColorExtraction(
        color_map=color_map,
        has_color_data=state.color_changes > 0,
        color_changes=state.color_changes,
    )


def match_color_to_text_item(
    item: Optional[TextItem],
    color_map: Optional[Mapping[str, Color]],
    default: Optional[Color] = None,
) -> Outcome[Color]:
    """Find the recorded fill color for a text item.

    Tries the exact rounded position first, then every key in the
    square of ``COLOR_MATCH_TOLERANCE`` points around it.

    Args:
        item: Text item to color.
        color_map: Position key to color map.
        default: Color for unmatched items (black when None).

    Returns:
        The matched color, or the default marked degraded.
    """
    fallback = default if default is not None else BLACK

    if item is None:
        return Outcome.fallback(fallback, "no text item")
    if not color_map:
        return Outcome.fallback(fallback, "empty color map")
    if not (math.isfinite(item.x) and math.isfinite(item.y)):
        return Outcome.fallback(fallback, "item position is not finite")

    exact = color_map.get(position_key(item.x, item.y))
    if exact is not None:
        return Outcome.ok(exact)

    span = range(-COLOR_MATCH_TOLERANCE, COLOR_MATCH_TOLERANCE + 1)
    for dx in span:
        for dy in span:
            nearby = color_map.get(position_key(item.x + dx, item.y + dy))
            if nearby is not None:
                return Outcome.ok(nearby)

    return Outcome.fallback(fallback, f"no color recorded near ({item.x:.1f}, {item.y:.1f})")


def extract_and_merge_colors(
    items: Sequence[TextItem],
    operators: Optional[Iterable[ContentOperator]],
) -> list[TextItem]:
    """Color a page's text items from its operators.

    ``color_from_operator_list`` is set only on items whose color was
    actually matched; the rest keep the default black.

    Args:
        items: Text items of one page.
        operators: The page's operators, or None if unreadable.

    Returns:
        New text items with colors assigned.
    """
    if not items:
        return list(items)

    extraction = extract_text_colors(operators)
    if not extraction.has_color_data:
        logger.debug("No color data found, using default black")
        return [
            replace(item, color=extraction.default_color, color_from_operator_list=False)
            for item in items
        ]

    logger.debug(
        "Extracted %d color changes, %d color positions",
        extraction.color_changes,
        len(extraction.color_map),
    )

    merged = []
    for item in items:
        outcome = match_color_to_text_item(
            item, extraction.color_map, extraction.default_color
        )
        merged.append(
            replace(item, color=outcome.value, color_from_operator_list=not outcome.degraded)
        )
    return merged


def is_black(color: Optional[Color], threshold: float = COLOR_THRESHOLD) -> bool:
    """Check whether every component is near zero (None counts as black)."""
    if color is None:
        return True
    return abs(color.r) < threshold and abs(color.g) < threshold and abs(color.b) < threshold


def is_white(color: Optional[Color], threshold: float = COLOR_THRESHOLD) -> bool:
    """Check whether every component is near one."""
    if color is None:
        return False
    return (
        abs(color.r - 1) < threshold
        and abs(color.g - 1) < threshold
        and abs(color.b - 1) < threshold
    )


def colors_equal(
    first: Optional[Color],
    second: Optional[Color],
    threshold: float = COLOR_THRESHOLD,
) -> bool:
    """Compare two colors component-wise within a threshold."""
    if first is None or second is None:
        return first is second
    return (
        abs(first.r - second.r) < threshold
        and abs(first.g - second.g) < threshold
        and abs(first.b - second.b) < threshold
    )
