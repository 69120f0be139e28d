# SPDX-License-Identifier: Apache-2.0
"""Text layout engine for fitting substituted text into its original slot.

This module provides:
- Text measurement against pluggable font metrics (PDFium, TrueType or
  heuristic estimates)
- Word wrapping for space-delimited scripts and character wrapping for
  CJK text or text without spaces
- Font size scaling and truncation with an ellipsis
- Overflow strategy selection in ``layout_text``
"""

from __future__ import annotations

import ctypes
import io
import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import pypdfium2 as pdfium  # type: ignore[import-untyped]
from fontTools.ttLib import TTFont  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

DEFAULT_FONT_SIZE = 12.0
DEFAULT_AVAILABLE_WIDTH = 500.0
ELLIPSIS = "…"

# Slack for floating-point noise when a width is compared with its own budget
FIT_TOLERANCE = 0.01

# Height factor used when a font reports no vertical metrics
FALLBACK_HEIGHT_FACTOR = 1.2

# Heuristic advance widths as a fraction of the font size
CJK_WIDTH_FACTOR = 1.0
LATIN_WIDTH_FACTOR = 0.6

_CJK_PATTERN = re.compile(
    "["
    "\u4e00-\u9fff"  # CJK Unified Ideographs
    "\u3400-\u4dbf"  # CJK Extension A
    "\u3040-\u309f"  # Hiragana
    "\u30a0-\u30ff"  # Katakana
    "\uac00-\ud7af"  # Hangul Syllables
    "\u3100-\u312f"  # Bopomofo
    "\u3000-\u303f"  # CJK Symbols and Punctuation
    "]"
)
_WHITESPACE = re.compile(r"\s")
_WORD_SPLIT = re.compile(r"(\s+)")


def contains_cjk(text: Optional[str]) -> bool:
    """Check whether the text contains any CJK character."""
    if not text:
        return False
    return _CJK_PATTERN.search(text) is not None


def heuristic_char_width(char: str, font_size: float) -> float:
    """Estimated advance width for a character the font cannot measure."""
    factor = CJK_WIDTH_FACTOR if contains_cjk(char) else LATIN_WIDTH_FACTOR
    return font_size * factor


@runtime_checkable
class FontMetrics(Protocol):
    """Per-glyph metrics needed for layout."""

    def glyph_width(self, char: str, font_size: float) -> Optional[float]:
        """Advance width of one character, or None if the font lacks it."""
        ...

    def height_at_size(self, font_size: float) -> Optional[float]:
        """Ascent minus descent at a size, or None if unknown."""
        ...


class EstimatedFontMetrics:
    """Metrics without a font: every width is the heuristic estimate."""

    def glyph_width(self, char: str, font_size: float) -> Optional[float]:
        return heuristic_char_width(char, font_size)

    def height_at_size(self, font_size: float) -> Optional[float]:
        return None


class PdfiumFontMetrics:
    """Metrics read from a font loaded into a PDFium document.

    Args:
        font_handle: PDFium font handle (FPDF_FONT).
    """

    def __init__(self, font_handle: ctypes.c_void_p) -> None:
        self._font_handle = font_handle

    def glyph_width(self, char: str, font_size: float) -> Optional[float]:
        width_out = ctypes.c_float()
        result = pdfium.raw.FPDFFont_GetGlyphWidth(
            self._font_handle,
            ord(char),
            ctypes.c_float(font_size),
            ctypes.byref(width_out),
        )
        if not result:
            return None
        return width_out.value

    def height_at_size(self, font_size: float) -> Optional[float]:
        ascent = ctypes.c_float()
        descent = ctypes.c_float()
        has_ascent = pdfium.raw.FPDFFont_GetAscent(
            self._font_handle,
            ctypes.c_float(font_size),
            ctypes.byref(ascent),
        )
        has_descent = pdfium.raw.FPDFFont_GetDescent(
            self._font_handle,
            ctypes.c_float(font_size),
            ctypes.byref(descent),
        )
        if not (has_ascent and has_descent):
            return None
        # descent is negative
        return ascent.value - descent.value


class TrueTypeFontMetrics:
    """Metrics read from TrueType/OpenType font bytes with fontTools.

    Args:
        font_bytes: Raw font file contents.
    """

    def __init__(self, font_bytes: bytes) -> None:
        font = TTFont(io.BytesIO(font_bytes), lazy=True)
        self._cmap = font.getBestCmap() or {}
        self._hmtx = font["hmtx"]
        self._units_per_em = font["head"].unitsPerEm
        self._ascent = font["hhea"].ascent
        self._descent = font["hhea"].descent

    def has_glyph(self, char: str) -> bool:
        return ord(char) in self._cmap

    def glyph_width(self, char: str, font_size: float) -> Optional[float]:
        glyph_name = self._cmap.get(ord(char))
        if glyph_name is None:
            return None
        advance, _lsb = self._hmtx[glyph_name]
        return advance * font_size / self._units_per_em

    def height_at_size(self, font_size: float) -> Optional[float]:
        return (self._ascent - self._descent) * font_size / self._units_per_em


class OverflowStrategy(str, Enum):
    """What to do with text wider than its slot."""

    WRAP = "wrap"
    SCALE = "scale"
    TRUNCATE = "truncate"


class LayoutStrategy(str, Enum):
    """Strategy ``layout_text`` actually applied."""

    NORMAL = "normal"
    WRAPPED = "wrapped"
    SCALED = "scaled"
    TRUNCATED = "truncated"


@dataclass
class TextMeasurement:
    """Measured extent of a string."""

    width: float
    height: float
    char_count: int
    char_widths: list[float] = field(default_factory=list)


@dataclass(frozen=True)
class WrappedLine:
    """One output line and its ``[start, end)`` range in the input text."""

    text: str
    width: float
    start: int
    end: int


EMPTY_LINE = WrappedLine(text="", width=0.0, start=0, end=0)


@dataclass
class LayoutConstraints:
    """Horizontal budget for a text block.

    Attributes:
        page_width: Page width in points
        max_width: Explicit width budget; derived from the page and
            margins when None
        left_margin: Left margin in points
        right_margin: Right margin in points
        page_height: Page height in points, if known
    """

    page_width: float
    max_width: Optional[float] = None
    left_margin: float = 0.0
    right_margin: float = 0.0
    page_height: Optional[float] = None

    def available_width(self) -> float:
        if self.max_width is not None:
            return self.max_width
        return self.page_width - self.left_margin - self.right_margin


@dataclass
class LayoutOptions:
    """Layout behaviour.

    Attributes:
        overflow_strategy: Strategy for text wider than its slot
        line_height: Line spacing as a multiple of the font height
        min_font_size: Smallest size scaling may produce
    """

    overflow_strategy: OverflowStrategy = OverflowStrategy.WRAP
    line_height: float = 1.2
    min_font_size: float = 6.0


@dataclass
class ScaledFontSize:
    font_size: float
    fits: bool


@dataclass
class TruncatedText:
    text: str
    width: float
    end_index: int


@dataclass
class LayoutResult:
    """Result of laying out one text block.

    Attributes:
        strategy: Strategy applied
        lines: Output lines, top to bottom
        font_size: Effective font size
        total_height: Height of the whole block
        overflow: Whether the text did not fit as-is
        line_height: Baseline-to-baseline step in points
        degraded: True when layout failed and the text was returned as a
            single unwrapped line
    """

    strategy: LayoutStrategy
    lines: list[WrappedLine]
    font_size: float
    total_height: float
    overflow: bool
    line_height: float = 0.0
    degraded: bool = False


def _valid_font_size(font_size: float) -> float:
    if isinstance(font_size, bool) or not isinstance(font_size, (int, float)):
        logger.warning("Invalid font size %r, using %s", font_size, DEFAULT_FONT_SIZE)
        return DEFAULT_FONT_SIZE
    if not math.isfinite(font_size) or font_size <= 0:
        logger.warning("Invalid font size %r, using %s", font_size, DEFAULT_FONT_SIZE)
        return DEFAULT_FONT_SIZE
    return float(font_size)


class TextLayoutEngine:
    """Engine for laying out text within a horizontal budget.

    Widths of a string are always the left-to-right sum of its
    character widths, so a line built token by token measures exactly
    like the same text measured at once.

    Example:
        >>> engine = TextLayoutEngine()
        >>> result = engine.layout_text(
        ...     "Hello World", EstimatedFontMetrics(), 12, LayoutConstraints(600, max_width=45)
        ... )
        >>> [line.text for line in result.lines]
        ['Hello ', 'World']
    """

    def __init__(self, options: Optional[LayoutOptions] = None) -> None:
        """Initialize TextLayoutEngine.

        Args:
            options: Default layout options for ``layout_text``.
        """
        self.options = options or LayoutOptions()
        self._estimated = EstimatedFontMetrics()

    def _metrics(self, font: Optional[FontMetrics]) -> FontMetrics:
        return font if font is not None else self._estimated

    def char_width(self, char: str, font: Optional[FontMetrics], font_size: float) -> float:
        """Width of one character, estimated when the font lacks it."""
        width = self._metrics(font).glyph_width(char, font_size)
        if width is None:
            return heuristic_char_width(char, font_size)
        return width

    def text_width(self, text: str, font: Optional[FontMetrics], font_size: float) -> float:
        """Width of a string as the sum of its character widths."""
        total = 0.0
        for char in text:
            total += self.char_width(char, font, font_size)
        return total

    def height_at_size(self, font: Optional[FontMetrics], font_size: float) -> float:
        """Font height at a size, ``size * 1.2`` when the font has none."""
        height = self._metrics(font).height_at_size(font_size)
        if height is None:
            return font_size * FALLBACK_HEIGHT_FACTOR
        return height

    def measure_text(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
    ) -> TextMeasurement:
        """Measure a string.

        Args:
            text: Text to measure.
            font: Font metrics; heuristic estimates when None.
            font_size: Font size in points (12 when invalid).

        Returns:
            Total width, height and per-character widths.
        """
        if not text:
            return TextMeasurement(width=0.0, height=0.0, char_count=0)

        font_size = _valid_font_size(font_size)
        char_widths = []
        total = 0.0
        for char in text:
            width = self.char_width(char, font, font_size)
            char_widths.append(width)
            total += width

        return TextMeasurement(
            width=total,
            height=self.height_at_size(font, font_size),
            char_count=len(text),
            char_widths=char_widths,
        )

    def text_fits(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        available_width: float,
    ) -> bool:
        if not text or available_width <= 0:
            return True
        return self.measure_text(text, font, font_size).width <= available_width + FIT_TOLERANCE

    @staticmethod
    def calculate_available_width(x: float, constraints: Optional[LayoutConstraints]) -> float:
        """Width from X to the right margin, never negative.

        Returns 500 points when no constraints are given.
        """
        if constraints is None:
            logger.warning("No layout constraints, using %s", DEFAULT_AVAILABLE_WIDTH)
            return DEFAULT_AVAILABLE_WIDTH
        right_boundary = constraints.page_width - constraints.right_margin
        return max(0.0, right_boundary - x)

    def _wrap_by_characters(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        max_width: float,
        char_widths: Optional[list[float]] = None,
    ) -> list[WrappedLine]:
        lines: list[WrappedLine] = []
        current = ""
        current_width = 0.0
        start = 0

        for i, char in enumerate(text):
            if char_widths is not None and i < len(char_widths):
                width = char_widths[i]
            else:
                width = self.char_width(char, font, font_size)

            if current_width + width <= max_width + FIT_TOLERANCE:
                current += char
                current_width += width
                continue

            if current:
                lines.append(WrappedLine(current, current_width, start, start + len(current)))
                start += len(current)
            # A character wider than the line still gets a line of its own
            current = char
            current_width = width

        if current:
            lines.append(WrappedLine(current, current_width, start, start + len(current)))

        return lines or [EMPTY_LINE]

    def _wrap_by_words(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        max_width: float,
    ) -> list[WrappedLine]:
        lines: list[WrappedLine] = []
        current = ""
        current_width = 0.0
        line_start = 0
        index = 0

        for token in _WORD_SPLIT.split(text):
            if not token:
                continue
            token_width = self.text_width(token, font, font_size)

            if current_width + token_width <= max_width + FIT_TOLERANCE:
                current += token
                current_width += token_width
            else:
                if current:
                    lines.append(WrappedLine(current, current_width, line_start, index))
                    line_start = index
                    current = ""
                    current_width = 0.0

                if token_width <= max_width + FIT_TOLERANCE:
                    current = token
                    current_width = token_width
                else:
                    pieces = self._wrap_by_characters(token, font, font_size, max_width)
                    for piece in pieces[:-1]:
                        lines.append(
                            WrappedLine(
                                piece.text, piece.width, index + piece.start, index + piece.end
                            )
                        )
                    last = pieces[-1]
                    current = last.text
                    current_width = last.width
                    line_start = index + last.start

            index += len(token)

        if current:
            lines.append(WrappedLine(current, current_width, line_start, index))

        return lines or [EMPTY_LINE]

    def wrap_text(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        max_width: float,
    ) -> list[WrappedLine]:
        """Break text into lines no wider than ``max_width``.

        Space-delimited, non-CJK text wraps at word boundaries, breaking
        over-long words by character. CJK text and text without spaces
        wraps by character. Joining the lines' text gives back the input.

        Args:
            text: Text to wrap.
            font: Font metrics; heuristic estimates when None.
            font_size: Font size in points.
            max_width: Line width budget in points.

        Returns:
            Lines with their widths and offsets into ``text``.
        """
        if not text:
            return [EMPTY_LINE]

        measurement = self.measure_text(text, font, font_size)
        if max_width <= 0:
            logger.warning("wrap_text: max_width must be positive, got %s", max_width)
            return [WrappedLine(text, measurement.width, 0, len(text))]

        if measurement.width <= max_width + FIT_TOLERANCE:
            return [WrappedLine(text, measurement.width, 0, len(text))]

        font_size = _valid_font_size(font_size)
        if _WHITESPACE.search(text) and not contains_cjk(text):
            return self._wrap_by_words(text, font, font_size, max_width)
        return self._wrap_by_characters(
            text, font, font_size, max_width, measurement.char_widths
        )

    def calculate_scaled_font_size(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        target_width: float,
        min_font_size: Optional[float] = None,
    ) -> ScaledFontSize:
        """Shrink the font size so the text fits ``target_width``.

        The size is scaled linearly and floored to a whole point. Below
        ``min_font_size`` the minimum is returned with ``fits=False``.
        """
        if min_font_size is None:
            min_font_size = self.options.min_font_size
        if not text or target_width <= 0:
            return ScaledFontSize(font_size=font_size, fits=True)

        original_width = self.text_width(text, font, font_size)
        if original_width <= target_width:
            return ScaledFontSize(font_size=font_size, fits=True)

        scaled = math.floor(font_size * (target_width / original_width))
        if scaled >= min_font_size:
            return ScaledFontSize(font_size=float(scaled), fits=True)
        return ScaledFontSize(font_size=min_font_size, fits=False)

    def truncate_to_fit(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        max_width: float,
    ) -> TruncatedText:
        """Cut text from the end so it fits with a trailing ellipsis."""
        ellipsis_width = self.char_width(ELLIPSIS, font, font_size)
        target_width = max_width - ellipsis_width
        if target_width <= 0:
            return TruncatedText(text=ELLIPSIS, width=ellipsis_width, end_index=0)

        current_width = 0.0
        for i, char in enumerate(text):
            width = self.char_width(char, font, font_size)
            if current_width + width > target_width:
                return TruncatedText(
                    text=text[:i] + ELLIPSIS,
                    width=current_width + ellipsis_width,
                    end_index=i,
                )
            current_width += width

        return TruncatedText(text=text, width=current_width, end_index=len(text))

    def layout_text(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        constraints: LayoutConstraints,
        options: Optional[LayoutOptions] = None,
    ) -> LayoutResult:
        """Lay out a text block, applying the overflow strategy if needed.

        ``scale`` falls through to ``wrap`` when even the minimum size
        does not fit. Any failure returns the text as one unwrapped line
        marked ``degraded``.

        Args:
            text: Text to lay out.
            font: Font metrics; heuristic estimates when None.
            font_size: Font size in points.
            constraints: Width budget.
            options: Overrides the engine's default options.

        Returns:
            The layout result.
        """
        options = options or self.options
        try:
            return self._layout(text, font, _valid_font_size(font_size), constraints, options)
        except Exception as e:
            logger.warning("Layout failed, returning single-line fallback: %s", e)
            size = font_size if isinstance(font_size, (int, float)) else DEFAULT_FONT_SIZE
            line_text = "" if text is None else str(text)
            return LayoutResult(
                strategy=LayoutStrategy.NORMAL,
                lines=[WrappedLine(line_text, 0.0, 0, len(line_text))],
                font_size=size,
                total_height=size * FALLBACK_HEIGHT_FACTOR,
                overflow=True,
                line_height=size * FALLBACK_HEIGHT_FACTOR,
                degraded=True,
            )

    def _layout(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        constraints: LayoutConstraints,
        options: LayoutOptions,
    ) -> LayoutResult:
        line_step = self.height_at_size(font, font_size) * options.line_height

        if not text:
            return LayoutResult(
                strategy=LayoutStrategy.NORMAL,
                lines=[EMPTY_LINE],
                font_size=font_size,
                total_height=0.0,
                overflow=False,
                line_height=line_step,
            )

        available_width = constraints.available_width()
        if available_width <= 0:
            logger.debug("No available width for %r", text[:20])
            return LayoutResult(
                strategy=LayoutStrategy.NORMAL,
                lines=[WrappedLine(text, 0.0, 0, len(text))],
                font_size=font_size,
                total_height=font_size * options.line_height,
                overflow=True,
                line_height=line_step,
            )

        measurement = self.measure_text(text, font, font_size)
        if measurement.width <= available_width + FIT_TOLERANCE:
            return LayoutResult(
                strategy=LayoutStrategy.NORMAL,
                lines=[WrappedLine(text, measurement.width, 0, len(text))],
                font_size=font_size,
                total_height=measurement.height,
                overflow=False,
                line_height=line_step,
            )

        strategy = OverflowStrategy(options.overflow_strategy)

        if strategy is OverflowStrategy.SCALE:
            scaled = self.calculate_scaled_font_size(
                text, font, font_size, available_width, options.min_font_size
            )
            if scaled.fits:
                scaled_measurement = self.measure_text(text, font, scaled.font_size)
                return LayoutResult(
                    strategy=LayoutStrategy.SCALED,
                    lines=[WrappedLine(text, scaled_measurement.width, 0, len(text))],
                    font_size=scaled.font_size,
                    total_height=scaled_measurement.height,
                    overflow=True,
                    line_height=self.height_at_size(font, scaled.font_size) * options.line_height,
                )

        if strategy is OverflowStrategy.TRUNCATE:
            truncated = self.truncate_to_fit(text, font, font_size, available_width)
            return LayoutResult(
                strategy=LayoutStrategy.TRUNCATED,
                lines=[WrappedLine(truncated.text, truncated.width, 0, truncated.end_index)],
                font_size=font_size,
                total_height=measurement.height,
                overflow=True,
                line_height=line_step,
            )

        lines = self.wrap_text(text, font, font_size, available_width)
        return LayoutResult(
            strategy=LayoutStrategy.WRAPPED,
            lines=lines,
            font_size=font_size,
            total_height=len(lines) * line_step,
            overflow=True,
            line_height=line_step,
        )

    def layout_text_at_position(
        self,
        text: str,
        font: Optional[FontMetrics],
        font_size: float,
        x: float,
        constraints: LayoutConstraints,
        options: Optional[LayoutOptions] = None,
    ) -> LayoutResult:
        """Lay out text starting at X, budgeted up to the right margin."""
        available = self.calculate_available_width(x, constraints)
        adjusted = LayoutConstraints(
            page_width=constraints.page_width,
            max_width=available,
            left_margin=constraints.left_margin,
            right_margin=constraints.right_margin,
            page_height=constraints.page_height,
        )
        return self.layout_text(text, font, font_size, adjusted, options)
