# SPDX-License-Identifier: Apache-2.0
"""Extraction pipeline: PDF pages to an ExtractedDocument."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Sequence

from pdf_relayout.core.color_extractor import extract_and_merge_colors
from pdf_relayout.core.column_detector import (
    ColumnDetectionConfig,
    assign_items_to_columns,
    detect_columns,
)
from pdf_relayout.core.font_resolver import FontResolver, map_font_style
from pdf_relayout.core.geometry import compute_margins, detect_page_size, parse_transform
from pdf_relayout.core.models import (
    ColumnLayout,
    DocumentMetadata,
    ExtractedDocument,
    FontInfo,
    Margins,
    PageLayout,
    TextItem,
    Transform,
)
from pdf_relayout.core.pdf_source import PdfPageSource, RawPage, RawTextItem
from pdf_relayout.core.reading_order import LINE_TOLERANCE, sort_by_reading_order
from pdf_relayout.pipeline.errors import ExtractionError
from pdf_relayout.pipeline.progress import STAGE_EXTRACT, ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class ExtractionConfig:
    """Extraction pipeline configuration."""

    column_config: ColumnDetectionConfig = field(default_factory=ColumnDetectionConfig)
    line_tolerance: float = LINE_TOLERANCE
    extract_colors: bool = True

    # Keep going past a page that cannot be read (empty layout + warning)
    skip_failed_pages: bool = True


@dataclass
class PageExtraction:
    """Items and layout records of one page before offsets are assigned."""

    layout: PageLayout
    column_layout: ColumnLayout
    items: list[TextItem] = field(default_factory=list)


def build_text_item(raw: RawTextItem, page_index: int) -> TextItem:
    """Convert a parser record into a text item.

    A malformed transform places the item at the identity defaults and
    logs a warning.
    """
    parsed = parse_transform(raw.transform)
    if parsed.degraded:
        logger.warning(
            "Page %d: bad transform for %r (%s)", page_index, raw.text[:20], parsed.reason
        )
        transform = Transform()
    else:
        transform = Transform.from_sequence(raw.transform)

    position = parsed.value
    return TextItem(
        text=raw.text,
        x=position.x,
        y=position.y,
        width=raw.width,
        height=raw.height,
        font_size=position.font_size,
        font_id=raw.font_id,
        font_name=raw.font_name,
        font_style=map_font_style(raw.font_name),
        page_index=page_index,
        transform=transform,
    )


def extract_page(raw_page: RawPage, config: ExtractionConfig) -> PageExtraction:
    """Run geometry, color and column analysis for one page.

    Items keep their extraction order; reading order is only applied to
    the per-page display text.
    """
    items = [build_text_item(raw, raw_page.index) for raw in raw_page.items]

    if config.extract_colors and items:
        if raw_page.operators.degraded:
            logger.warning(
                "Page %d: no operators (%s), colors default to black",
                raw_page.index,
                raw_page.operators.reason,
            )
        items = extract_and_merge_colors(items, raw_page.operators.value)

    margins = compute_margins(items, raw_page.width, raw_page.height) or Margins()
    layout = PageLayout(
        page_index=raw_page.index,
        width=raw_page.width,
        height=raw_page.height,
        margins=margins,
        size_name=detect_page_size(raw_page.width, raw_page.height),
    )

    detection = detect_columns(
        items, raw_page.width, config.column_config, page_index=raw_page.index
    )
    if detection.degraded:
        logger.debug("Page %d: single column (%s)", raw_page.index, detection.reason)
    column_layout = detection.value

    items = assign_items_to_columns(items, column_layout)
    for column in column_layout.columns:
        column.text_items = [item for item in items if item.column_index == column.index]

    return PageExtraction(layout=layout, column_layout=column_layout, items=items)


def assign_offsets(
    pages: Sequence[PageExtraction], start: int = 0
) -> tuple[list[TextItem], str]:
    """Assign running character offsets across all pages.

    Offsets follow extraction order, page by page, so that every item's
    ``[char_offset_start, char_offset_end)`` indexes the returned text.
    Page layouts get the span of their own items.

    Returns:
        All items with offsets, and their concatenated text.
    """
    offset = start
    all_items: list[TextItem] = []
    parts: list[str] = []

    for page in pages:
        page.layout.text_offset_start = offset
        placed = []
        for item in page.items:
            placed.append(item.with_offsets(offset))
            parts.append(item.text)
            offset += len(item.text)
        page.items = placed
        page.layout.text_offset_end = offset
        for column in page.column_layout.columns:
            column.text_items = [item for item in placed if item.column_index == column.index]
        all_items.extend(placed)

    return all_items, "".join(parts)


def page_display_text(items: Sequence[TextItem], line_tolerance: float = LINE_TOLERANCE) -> str:
    """Join a page's items in reading order with single spaces."""
    ordered = sort_by_reading_order(items, line_tolerance)
    return " ".join(item.text.strip() for item in ordered if item.text.strip())


class DocumentExtractor:
    """Extracts positioned, colored, column-assigned text from a PDF.

    Example:
        extractor = DocumentExtractor()
        document = extractor.extract("paper.pdf")
        print(document.page_texts[0])
    """

    def __init__(
        self,
        config: ExtractionConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize DocumentExtractor."""
        self._config = config or ExtractionConfig()
        self._progress_callback = progress_callback
        self._resolver = FontResolver()

    def extract(self, pdf_source: Path | str | bytes) -> ExtractedDocument:
        """Extract a PDF from path or bytes.

        Raises:
            ExtractionError: If the document cannot be opened, or a page
                fails while ``skip_failed_pages`` is off.
        """
        try:
            source = PdfPageSource(pdf_source)
        except (FileNotFoundError, TypeError, ValueError) as exc:
            raise ExtractionError(f"Cannot open PDF: {exc}", stage="open", cause=exc) from exc

        with source:
            metadata = self._stage_metadata(source)
            total = source.page_count
            pages = []
            for page_index in range(total):
                pages.append(self._stage_page(source, page_index))
                self._notify(STAGE_EXTRACT, page_index + 1, total)

        return self.extract_from_pages(pages, source.source_name, metadata)

    async def extract_async(self, pdf_source: Path | str | bytes) -> ExtractedDocument:
        """Run ``extract`` in a worker thread."""
        return await asyncio.to_thread(self.extract, pdf_source)

    def extract_from_pages(
        self,
        pages: Sequence[RawPage],
        file_name: str,
        metadata: DocumentMetadata | None = None,
    ) -> ExtractedDocument:
        """Build the document from already parsed pages.

        Args:
            pages: Parser output in page order.
            file_name: Source file name.
            metadata: Document metadata (empty when None).
        """
        extractions = [extract_page(page, self._config) for page in pages]
        items, full_text = assign_offsets(extractions)

        fonts: dict[str, FontInfo] = {}
        for page in pages:
            for raw in page.items:
                if raw.font_id and raw.font_id not in fonts:
                    info = self._resolver.parse_font_reference(raw.font_id, raw.font_name)
                    fonts[raw.font_id] = replace(info, is_embedded=raw.is_embedded)

        page_texts = [
            page_display_text(extraction.items, self._config.line_tolerance)
            for extraction in extractions
        ]

        logger.info(
            "Extracted %d items from %d pages (%d fonts)", len(items), len(pages), len(fonts)
        )
        return ExtractedDocument(
            file_name=file_name,
            page_count=len(pages),
            text_items=items,
            page_layouts=[extraction.layout for extraction in extractions],
            column_layouts=[extraction.column_layout for extraction in extractions],
            fonts=fonts,
            metadata=metadata or DocumentMetadata(),
            full_text=full_text,
            page_texts=page_texts,
        )

    def _stage_metadata(self, source: PdfPageSource) -> DocumentMetadata:
        try:
            return source.read_metadata()
        except Exception as exc:
            if not self._config.skip_failed_pages:
                raise ExtractionError(
                    "Metadata extraction failed", stage="metadata", cause=exc
                ) from exc
            logger.warning("Cannot read metadata: %s", exc)
            return DocumentMetadata()

    def _stage_page(self, source: PdfPageSource, page_index: int) -> RawPage:
        try:
            return source.read_page(page_index)
        except Exception as exc:
            if not self._config.skip_failed_pages:
                raise ExtractionError(
                    f"Page {page_index} extraction failed", stage="page", cause=exc
                ) from exc
            logger.warning("Skipping page %d: %s", page_index, exc)
            return RawPage(index=page_index, width=PageLayout.width, height=PageLayout.height)

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is not None:
            self._progress_callback(stage, current, total, message)
