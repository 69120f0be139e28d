# SPDX-License-Identifier: Apache-2.0
"""Page parser adapter.

Reads, per page, the raw text runs (string, transform, size, font name)
through pypdfium2 and the content-stream operators through pikepdf.
Everything downstream works on these plain records.
"""

from __future__ import annotations

import ctypes
import logging
import math
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Iterator, Optional, Union

import pikepdf  # type: ignore[import-untyped]
import pypdfium2 as pdfium  # type: ignore[import-untyped]

from .color_extractor import ContentOperator
from .helpers import from_utf16_buffer
from .models import DocumentMetadata
from .outcome import Outcome

logger = logging.getLogger(__name__)

# PDFium object type constant for text
FPDF_PAGEOBJ_TEXT = 1

FONT_NAME_BUFFER_SIZE = 256

# PDF info dictionary key -> DocumentMetadata field
METADATA_KEYS: dict[str, str] = {
    "Title": "title",
    "Author": "author",
    "Subject": "subject",
    "Keywords": "keywords",
    "Creator": "creator",
    "Producer": "producer",
    "CreationDate": "creation_date",
    "ModDate": "modification_date",
}


@dataclass
class RawTextItem:
    """One text run as reported by the page parser.

    Attributes:
        text: Text content
        transform: ``[a, b, c, d, e, f]`` with the font size folded into
            the scale, so ``|d|`` is the effective size and ``(e, f)``
            the baseline origin
        width: Advance width of the run (bounding box width when a glyph
            cannot be measured)
        height: Height of the run's bounding box
        font_name: Base font name
        font_id: Document-wide font reference
        is_embedded: Whether the font program is embedded
    """

    text: str
    transform: tuple[float, ...]
    width: float = 0.0
    height: float = 0.0
    font_name: str = ""
    font_id: str = ""
    is_embedded: bool = False


@dataclass
class RawPage:
    """Parser output for one page."""

    index: int
    width: float
    height: float
    items: list[RawTextItem] = field(default_factory=list)
    operators: Outcome[Optional[list[ContentOperator]]] = field(
        default_factory=lambda: Outcome.fallback(None, "operators not read")
    )


class PdfPageSource:
    """Reads pages of a PDF for extraction.

    Example:
        >>> with PdfPageSource("paper.pdf") as source:
        ...     for page in source.iter_pages():
        ...         print(page.index, len(page.items))
    """

    def __init__(self, pdf_source: Union[Path, str, bytes]) -> None:
        """Open a PDF.

        Args:
            pdf_source: Path to PDF file or PDF bytes

        Raises:
            TypeError: If pdf_source is not Path, str, or bytes
            FileNotFoundError: If the file path doesn't exist
            ValueError: If the PDF cannot be loaded
        """
        self._font_ids: dict[str, str] = {}
        self._pikepdf: Optional[pikepdf.Pdf] = None
        self._pdf: Optional[pdfium.PdfDocument] = None

        if isinstance(pdf_source, bytes):
            self._pdf_bytes = pdf_source
            self.source_name = "bytes"
        elif isinstance(pdf_source, (str, Path)):
            path = Path(pdf_source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            self._pdf_bytes = path.read_bytes()
            self.source_name = path.name
        else:
            raise TypeError(
                f"pdf_source must be Path, str, or bytes, got {type(pdf_source).__name__}"
            )

        try:
            self._pdf = pdfium.PdfDocument(self._pdf_bytes)
        except pdfium.PdfiumError as e:
            raise ValueError(f"Cannot load PDF {self.source_name}: {e}") from e

    def __enter__(self) -> PdfPageSource:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close both document handles."""
        if self._pikepdf is not None:
            self._pikepdf.close()
            self._pikepdf = None
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None

    def _ensure_open(self) -> pdfium.PdfDocument:
        if self._pdf is None:
            raise RuntimeError("PDF document is not open")
        return self._pdf

    @property
    def page_count(self) -> int:
        return len(self._ensure_open())

    def _font_id(self, font_name: str) -> str:
        font_id = self._font_ids.get(font_name)
        if font_id is None:
            font_id = f"F{len(self._font_ids) + 1}"
            self._font_ids[font_name] = font_id
        return font_id

    @staticmethod
    def _object_text(obj: pdfium.PdfObject, textpage: pdfium.PdfTextPage) -> str:
        # First call returns the required buffer size in bytes
        length = pdfium.raw.FPDFTextObj_GetText(obj.raw, textpage.raw, None, 0)
        if length <= 0:
            return ""
        buffer = (ctypes.c_ushort * length)()
        pdfium.raw.FPDFTextObj_GetText(obj.raw, textpage.raw, buffer, length)
        return from_utf16_buffer(buffer, length // 2)

    @staticmethod
    def _font_size(obj: pdfium.PdfObject) -> float:
        size = ctypes.c_float()
        if not pdfium.raw.FPDFTextObj_GetFontSize(obj.raw, ctypes.byref(size)):
            return 0.0
        return size.value

    @staticmethod
    def _font_details(font_handle: Any) -> tuple[str, bool]:
        if not font_handle:
            return "", False

        buffer = ctypes.create_string_buffer(FONT_NAME_BUFFER_SIZE)
        length = pdfium.raw.FPDFFont_GetBaseFontName(
            font_handle, buffer, FONT_NAME_BUFFER_SIZE
        )
        name = buffer.value.decode("utf-8", errors="replace") if length > 0 else ""
        is_embedded = bool(pdfium.raw.FPDFFont_GetIsEmbedded(font_handle))
        return name, is_embedded

    @staticmethod
    def _advance_width(font_handle: Any, text: str, size: float) -> Optional[float]:
        """Sum of glyph advances at ``size``, or None if any glyph is unknown."""
        if not font_handle or size <= 0:
            return None
        total = 0.0
        width = ctypes.c_float()
        for char in text:
            if not pdfium.raw.FPDFFont_GetGlyphWidth(
                font_handle, ord(char), ctypes.c_float(size), ctypes.byref(width)
            ):
                return None
            total += width.value
        return total

    def _read_item(
        self, obj: pdfium.PdfObject, textpage: pdfium.PdfTextPage
    ) -> Optional[RawTextItem]:
        text = self._object_text(obj, textpage)
        if not text:
            return None

        bounds = obj.get_bounds()
        if bounds is None:
            return None
        left, bottom, right, top = bounds

        matrix = obj.get_matrix()
        size = self._font_size(obj)
        font_handle = pdfium.raw.FPDFTextObj_GetFont(obj.raw)
        font_name, is_embedded = self._font_details(font_handle)

        # Glyph boxes omit side bearings; the advance is the run's real extent
        width = right - left
        advance = self._advance_width(font_handle, text, size)
        if advance is not None:
            width = max(width, advance * math.hypot(matrix.a, matrix.b))

        return RawTextItem(
            text=text,
            transform=(
                matrix.a * size,
                matrix.b * size,
                matrix.c * size,
                matrix.d * size,
                matrix.e,
                matrix.f,
            ),
            width=width,
            height=top - bottom,
            font_name=font_name,
            font_id=self._font_id(font_name) if font_name else "",
            is_embedded=is_embedded,
        )

    def read_operators(self, page_index: int) -> Outcome[Optional[list[ContentOperator]]]:
        """Parse a page's content stream into operators.

        Returns:
            The operators in stream order, or None marked degraded when
            the stream cannot be parsed.
        """
        try:
            if self._pikepdf is None:
                self._pikepdf = pikepdf.open(BytesIO(self._pdf_bytes))
            page = self._pikepdf.pages[page_index]
            operators = [
                ContentOperator(opcode=str(operator), operands=tuple(operands))
                for operands, operator in pikepdf.parse_content_stream(page)
            ]
        except (pikepdf.PdfError, IndexError, ValueError) as e:
            logger.warning("Cannot read operators of page %d: %s", page_index, e)
            return Outcome.fallback(None, f"unreadable content stream: {e}")
        return Outcome.ok(operators)

    def read_page(self, page_index: int, with_operators: bool = True) -> RawPage:
        """Read one page.

        Args:
            page_index: Zero-based page index
            with_operators: Also parse the content stream

        Raises:
            IndexError: If page_index is out of range
        """
        pdf = self._ensure_open()
        if page_index < 0 or page_index >= len(pdf):
            raise IndexError(f"Page number {page_index} out of range")

        page = pdf[page_index]
        try:
            width, height = page.get_size()
            items = []
            textpage = page.get_textpage()
            try:
                for obj in page.get_objects(filter=[FPDF_PAGEOBJ_TEXT]):
                    item = self._read_item(obj, textpage)
                    if item is not None:
                        items.append(item)
            finally:
                textpage.close()
        finally:
            page.close()

        raw_page = RawPage(index=page_index, width=width, height=height, items=items)
        if with_operators:
            raw_page.operators = self.read_operators(page_index)
        return raw_page

    def iter_pages(self, with_operators: bool = True) -> Iterator[RawPage]:
        """Yield every page in order."""
        for page_index in range(self.page_count):
            yield self.read_page(page_index, with_operators=with_operators)

    def read_metadata(self) -> DocumentMetadata:
        """Read the document information dictionary; empty entries are None."""
        info = self._ensure_open().get_metadata_dict()
        values = {
            attribute: info.get(key) or None for key, attribute in METADATA_KEYS.items()
        }
        return DocumentMetadata(**values)
