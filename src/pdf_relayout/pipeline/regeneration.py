# SPDX-License-Identifier: Apache-2.0
"""Regeneration pipeline: substituted text back onto the original layout.

Each original text item receives the slice of the substituted text that
covers its original character offsets. The slice is laid out at the
item's position with the page's remaining width as budget; when it no
longer fits, the layout engine wraps (or scales, or truncates) it and
the wrapped lines step down the page until the bottom margin.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from pdf_relayout.core.font_resolver import DEFAULT_FALLBACK_FONT, get_fallback_font
from pdf_relayout.core.font_subsetter import FontSubsetter
from pdf_relayout.core.models import BLACK, ExtractedDocument, FontStyle, PageLayout, TextItem
from pdf_relayout.core.pdf_writer import PdfRenderer
from pdf_relayout.core.text_layout import (
    FontMetrics,
    LayoutConstraints,
    LayoutOptions,
    LayoutResult,
    OverflowStrategy,
    TextLayoutEngine,
    TrueTypeFontMetrics,
)
from pdf_relayout.core.text_normalize import normalize_unicode_spaces, sanitize_for_winansi
from pdf_relayout.core.unicode_coverage import (
    DEFAULT_UNICODE_FONT,
    get_required_fonts_for_text,
    order_fonts,
)
from pdf_relayout.pipeline.errors import FontLoadError, RegenerationError, RenderError
from pdf_relayout.pipeline.progress import STAGE_FONTS, STAGE_REGENERATE, ProgressCallback

if TYPE_CHECKING:
    from pdf_relayout.fonts.base import FontSource

logger = logging.getLogger(__name__)

STYLE_WEIGHTS: dict[FontStyle, str] = {
    FontStyle.NORMAL: "regular",
    FontStyle.BOLD: "bold",
    FontStyle.ITALIC: "italic",
    FontStyle.BOLD_ITALIC: "boldItalic",
}


@dataclass
class RegenerationConfig:
    """Regeneration pipeline configuration."""

    layout_options: LayoutOptions = field(default_factory=LayoutOptions)

    # Used wherever a page layout has no (or zero) margin
    default_margin: float = 72.0

    use_unicode_fonts: bool = True
    subset_fonts: bool = True

    # Size for items without one and for pages without items
    fallback_font_size: float = 12.0
    plain_line_height: float = 1.5


@dataclass
class RegenerationResult:
    """Regeneration pipeline result."""

    pdf_bytes: bytes
    stats: dict[str, Any] | None = None


@dataclass(frozen=True)
class PlacedLine:
    """One line ready to draw, baseline origin at (x, y)."""

    text: str
    x: float
    y: float
    font_size: float


@dataclass
class LoadedFont:
    """A font embedded in the output document."""

    handle: Any
    metrics: FontMetrics
    is_unicode: bool = False


def project_item_text(item: TextItem, text: str) -> str:
    """Return the part of the substituted text that belongs to an item.

    The text is sliced by the item's original offsets. A slice shorter
    than the original run is padded with the original characters at the
    same positions.
    """
    start = item.char_offset_start
    end = item.char_offset_end
    projected = text[start:end] if end > start else ""

    original_length = len(item.text)
    if len(projected) < original_length:
        padding = item.text[len(projected):original_length]
        projected += padding
    return projected


def item_constraints(layout: PageLayout, default_margin: float) -> LayoutConstraints:
    """Width budget for items on a page; zero margins use the default."""
    left = layout.margins.left or default_margin
    right = layout.margins.right or default_margin
    return LayoutConstraints(
        page_width=layout.width,
        max_width=layout.width - left - right,
        left_margin=left,
        right_margin=right,
        page_height=layout.height,
    )


def place_item_lines(
    result: LayoutResult,
    x: float,
    y: float,
    bottom_margin: float,
) -> list[PlacedLine]:
    """Position the lines of a layout result below (x, y).

    The first line always lands on the original baseline. Each further
    line steps down by the result's line height; placement stops at the
    first line whose baseline would fall below the bottom margin.
    """
    placed = []
    current_y = y
    for line_index, line in enumerate(result.lines):
        if line_index > 0 and current_y < bottom_margin:
            logger.warning(
                "Wrapped text extends beyond bottom margin, dropped %d lines",
                len(result.lines) - line_index,
            )
            break
        if line.text:
            placed.append(PlacedLine(line.text, x, current_y, result.font_size))
        current_y -= result.line_height
    return placed


def plain_page_text(document: ExtractedDocument, page_index: int, text: str) -> str:
    """Substituted text for a page that has no items.

    A document without any items puts all text on its first page.
    """
    if not document.text_items:
        return text if page_index == 0 else ""
    layout = document.page_layouts[page_index]
    return text[layout.text_offset_start:layout.text_offset_end]


class FontBook:
    """Fonts embedded in one output document.

    With Unicode font data available every item is drawn with a Noto
    font picked for its script; otherwise each item gets the standard
    font its original font falls back to, and text is sanitized for
    WinAnsi.
    """

    def __init__(
        self,
        renderer: PdfRenderer,
        font_data: dict[tuple[str, str], bytes],
        subsetter: FontSubsetter | None = None,
        subset_texts: Sequence[str] = (),
    ) -> None:
        self._renderer = renderer
        self._unicode: dict[tuple[str, str], LoadedFont] = {}

        for (family, weight), data in font_data.items():
            if subsetter is not None:
                data = subsetter.subset_for_texts(data, subset_texts) or data
            try:
                handle = renderer.load_truetype_font(f"{family}-{weight}", data)
                metrics = TrueTypeFontMetrics(data)
            except Exception as e:
                logger.warning("Cannot embed font %s-%s: %s", family, weight, e)
                continue
            self._unicode[(family, weight)] = LoadedFont(handle, metrics, is_unicode=True)

    @property
    def has_unicode_support(self) -> bool:
        return bool(self._unicode)

    def standard(self, font_name: str) -> LoadedFont:
        """Load a standard font, falling back to Helvetica."""
        try:
            handle = self._renderer.load_standard_font(font_name)
        except ValueError as e:
            logger.warning("%s, using %s", e, DEFAULT_FALLBACK_FONT)
            handle = self._renderer.load_standard_font(DEFAULT_FALLBACK_FONT)
        return LoadedFont(handle, PdfRenderer.metrics_for(handle))

    def default(self) -> LoadedFont:
        return self.font_for("", FontStyle.NORMAL, DEFAULT_FALLBACK_FONT)

    def font_for(self, text: str, style: FontStyle, fallback_font: str) -> LoadedFont:
        """Pick the font to draw a piece of text.

        Args:
            text: Text to draw (after space normalization).
            style: Style of the original font.
            fallback_font: Standard font for the non-Unicode path.
        """
        if not self._unicode:
            return self.standard(fallback_font)

        # A script-specific family also covers Latin
        for family in order_fonts(get_required_fonts_for_text(text)):
            if family == DEFAULT_UNICODE_FONT:
                continue
            loaded = self._unicode.get((family, "regular"))
            if loaded is not None:
                return loaded

        for weight in (STYLE_WEIGHTS.get(style, "regular"), "regular"):
            loaded = self._unicode.get((DEFAULT_UNICODE_FONT, weight))
            if loaded is not None:
                return loaded
        return next(iter(self._unicode.values()))


class DocumentRegenerator:
    """Renders substituted text with the layout of an extracted document.

    Example:
        regenerator = DocumentRegenerator()
        result = await regenerator.regenerate(document, new_text)
        Path("out.pdf").write_bytes(result.pdf_bytes)
    """

    def __init__(
        self,
        config: RegenerationConfig | None = None,
        font_source: FontSource | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize DocumentRegenerator.

        Args:
            config: Regeneration configuration.
            font_source: Source of Unicode fonts; standard fonts only
                when None.
            progress_callback: Called once per rendered page.
        """
        self._config = config or RegenerationConfig()
        self._font_source = font_source
        self._progress_callback = progress_callback
        self._engine = TextLayoutEngine(self._config.layout_options)
        self._subsetter = FontSubsetter()

    async def regenerate(
        self,
        document: ExtractedDocument,
        text: str,
        output_path: Path | None = None,
    ) -> RegenerationResult:
        """Render substituted text onto the document's layout.

        Args:
            document: Extraction result providing layout and offsets.
            text: Substituted text; offsets of ``document.full_text``
                select each item's part of it.
            output_path: Also write the PDF here when given.

        Raises:
            RegenerationError: If the document has no page layouts.
            RenderError: If the output document cannot be produced.
        """
        if not document.page_layouts:
            raise RegenerationError("No page layout data available", stage="layout")

        font_data = await self._stage_fonts(document, text)
        pdf_bytes, stats = await asyncio.to_thread(self.render, document, text, font_data)

        if output_path is not None:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(pdf_bytes)

        return RegenerationResult(pdf_bytes=pdf_bytes, stats=stats)

    async def _stage_fonts(
        self, document: ExtractedDocument, text: str
    ) -> dict[tuple[str, str], bytes]:
        source = self._font_source
        if source is None or not self._config.use_unicode_fonts:
            return {}

        families = order_fonts(get_required_fonts_for_text(text))
        styled_weights = sorted(
            {STYLE_WEIGHTS[info.style] for info in document.fonts.values()} - {"regular"}
        )
        requests = [(family, "regular") for family in families]
        requests += [(DEFAULT_UNICODE_FONT, weight) for weight in styled_weights]

        results = await asyncio.gather(
            *(self._load_font(source, family, weight) for family, weight in requests)
        )
        loaded = {
            request: data for request, data in zip(requests, results) if data is not None
        }
        self._notify(STAGE_FONTS, len(loaded), len(requests))
        if not loaded:
            logger.warning("No Unicode fonts available, using standard fonts")
        return loaded

    @staticmethod
    async def _load_font(source: FontSource, family: str, weight: str) -> bytes | None:
        try:
            return await source.load(family, weight)
        except FontLoadError as exc:
            logger.warning("Font %s-%s unavailable: %s", family, weight, exc)
            return None

    def render(
        self,
        document: ExtractedDocument,
        text: str,
        font_data: dict[tuple[str, str], bytes] | None = None,
    ) -> tuple[bytes, dict[str, Any]]:
        """Draw every page synchronously.

        Args:
            document: Extraction result.
            text: Substituted text.
            font_data: ``(family, weight)`` -> font bytes to embed.

        Returns:
            PDF bytes and rendering statistics.

        Raises:
            RenderError: If the output document cannot be produced.
        """
        stats: dict[str, Any] = {
            "pages": 0,
            "items": 0,
            "rendered_items": 0,
            "skipped_items": 0,
            "overflowed_items": 0,
            "lines": 0,
            "unicode_fonts": False,
        }

        items_by_page: dict[int, list[TextItem]] = {}
        for item in document.text_items:
            items_by_page.setdefault(item.page_index, []).append(item)

        total = len(document.page_layouts)
        try:
            with PdfRenderer() as renderer:
                subset_texts = [normalize_unicode_spaces(text), document.full_text]
                fonts = FontBook(
                    renderer,
                    font_data or {},
                    self._subsetter if self._config.subset_fonts else None,
                    subset_texts,
                )
                stats["unicode_fonts"] = fonts.has_unicode_support

                for layout_index, layout in enumerate(document.page_layouts):
                    page_number = renderer.new_page(layout.width, layout.height)
                    page_items = items_by_page.get(layout.page_index, [])
                    if page_items:
                        self._render_items(
                            renderer, fonts, page_number, layout, page_items, document, text, stats
                        )
                    else:
                        page_text = plain_page_text(document, layout_index, text)
                        stats["lines"] += self._render_plain_text(
                            renderer, fonts, page_number, layout, page_text
                        )
                    stats["pages"] += 1
                    self._notify(STAGE_REGENERATE, layout_index + 1, total)

                pdf_bytes = renderer.to_bytes()
        except Exception as exc:
            raise RenderError(f"PDF generation failed: {exc}", cause=exc) from exc

        logger.info(
            "Rendered %d pages, %d/%d items",
            stats["pages"],
            stats["rendered_items"],
            stats["items"],
        )
        return pdf_bytes, stats

    def _render_items(
        self,
        renderer: PdfRenderer,
        fonts: FontBook,
        page_number: int,
        layout: PageLayout,
        items: Sequence[TextItem],
        document: ExtractedDocument,
        text: str,
        stats: dict[str, Any],
    ) -> None:
        constraints = item_constraints(layout, self._config.default_margin)
        bottom_margin = layout.margins.bottom or self._config.default_margin

        for item in items:
            stats["items"] += 1
            try:
                render_text = normalize_unicode_spaces(project_item_text(item, text))
                font_info = document.fonts.get(item.font_id)
                fallback_font = (
                    font_info.fallback_font if font_info else get_fallback_font(item.font_name)
                )
                font = fonts.font_for(render_text, item.font_style, fallback_font)
                if not font.is_unicode:
                    render_text = sanitize_for_winansi(render_text)
                if not render_text:
                    continue

                result = self._engine.layout_text_at_position(
                    render_text,
                    font.metrics,
                    item.font_size or self._config.fallback_font_size,
                    item.x,
                    constraints,
                )
                if result.overflow:
                    stats["overflowed_items"] += 1
                    logger.debug(
                        "Overflow of %r handled with %s (%d lines)",
                        render_text[:50],
                        result.strategy.value,
                        len(result.lines),
                    )

                for line in place_item_lines(result, item.x, item.y, bottom_margin):
                    renderer.draw_text(
                        page_number,
                        line.text,
                        line.x,
                        line.y,
                        font.handle,
                        line.font_size,
                        item.color,
                    )
                    stats["lines"] += 1
                stats["rendered_items"] += 1
            except Exception as e:
                stats["skipped_items"] += 1
                logger.warning("Failed to render text item %r: %s", item.text[:20], e)

    def _render_plain_text(
        self,
        renderer: PdfRenderer,
        fonts: FontBook,
        page_number: int,
        layout: PageLayout,
        text: str,
    ) -> int:
        """Flow text from the top margin of an item-less page."""
        if not text:
            return 0

        margin = self._config.default_margin
        font_size = self._config.fallback_font_size
        line_step = font_size * self._config.plain_line_height
        options = LayoutOptions(
            overflow_strategy=OverflowStrategy.WRAP,
            line_height=self._config.plain_line_height,
            min_font_size=self._config.layout_options.min_font_size,
        )
        constraints = LayoutConstraints(
            page_width=layout.width,
            max_width=layout.width - margin * 2,
            left_margin=margin,
            right_margin=margin,
            page_height=layout.height,
        )
        font = fonts.default()

        drawn = 0
        y = layout.height - margin
        for paragraph in text.split("\n"):
            if y < margin:
                break
            line_text = normalize_unicode_spaces(paragraph)
            if not font.is_unicode:
                line_text = sanitize_for_winansi(line_text)
            if not line_text:
                y -= line_step
                continue

            result = self._engine.layout_text_at_position(
                line_text, font.metrics, font_size, margin, constraints, options
            )
            for line in result.lines:
                if y < margin:
                    break
                if line.text:
                    renderer.draw_text(
                        page_number, line.text, margin, y, font.handle, result.font_size, BLACK
                    )
                    drawn += 1
                y -= line_step
        return drawn

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, current, total, message)
