# SPDX-License-Identifier: Apache-2.0
"""Renderer adapter: draws positioned text into a new PDF with pypdfium2."""

from __future__ import annotations

import ctypes
import logging
import math
from io import BytesIO
from typing import Any, Optional

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from .helpers import to_byte_array, to_widestring
from .models import BLACK, Color
from .text_layout import PdfiumFontMetrics

logger = logging.getLogger(__name__)


class PdfRenderer:
    """Builds a PDF page by page from positioned text runs.

    Content is generated once per page when the document is serialized,
    so drawing many runs stays cheap.

    Example:
        >>> with PdfRenderer() as renderer:
        ...     page = renderer.new_page(595.28, 841.89)
        ...     font = renderer.load_standard_font("Helvetica")
        ...     renderer.draw_text(page, "Hello", 72, 770, font, 12)
        ...     data = renderer.to_bytes()
    """

    def __init__(self) -> None:
        self._pdf: Optional[pdfium.PdfDocument] = pdfium.PdfDocument.new()
        self._pages: list[pdfium.PdfPage] = []
        self._dirty_pages: set[int] = set()
        self._fonts: dict[str, Any] = {}
        # PDFium does not copy font data; buffers must outlive the document
        self._font_buffers: dict[str, ctypes.Array[Any]] = {}

    def __enter__(self) -> PdfRenderer:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the document and release resources."""
        for page in self._pages:
            page.close()
        self._pages.clear()
        if self._pdf is not None:
            self._pdf.close()
            self._pdf = None
        self._fonts.clear()
        self._font_buffers.clear()

    def _ensure_open(self) -> pdfium.PdfDocument:
        if self._pdf is None:
            raise RuntimeError("PDF document is not open")
        return self._pdf

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def new_page(self, width: float, height: float) -> int:
        """Append a blank page and return its index."""
        pdf = self._ensure_open()
        page = pdf.new_page(width, height)
        self._pages.append(page)
        return len(self._pages) - 1

    def load_standard_font(self, font_name: str) -> Any:
        """Load one of the fourteen standard fonts.

        Raises:
            ValueError: If PDFium does not know the font.
        """
        cached = self._fonts.get(font_name)
        if cached is not None:
            return cached

        pdf = self._ensure_open()
        font_handle = pdfium.raw.FPDFText_LoadStandardFont(pdf.raw, font_name.encode("utf-8"))
        if not font_handle:
            raise ValueError(f"Cannot load standard font {font_name}")

        self._fonts[font_name] = font_handle
        return font_handle

    def load_truetype_font(self, key: str, font_data: bytes) -> Any:
        """Embed a TrueType font as a CID font.

        Args:
            key: Cache key, e.g. ``"NotoSansSC-regular"``.
            font_data: Font file contents.

        Raises:
            ValueError: If PDFium rejects the font data.
        """
        cached = self._fonts.get(key)
        if cached is not None:
            return cached

        pdf = self._ensure_open()
        font_arr = to_byte_array(font_data)
        # CID mode covers every script the font has glyphs for
        font_handle = pdfium.raw.FPDFText_LoadFont(
            pdf.raw,
            font_arr,
            ctypes.c_uint(len(font_data)),
            ctypes.c_int(pdfium.raw.FPDF_FONT_TRUETYPE),
            ctypes.c_int(1),
        )
        if not font_handle:
            raise ValueError(f"Cannot load font {key} ({len(font_data)} bytes)")

        self._font_buffers[key] = font_arr
        self._fonts[key] = font_handle
        return font_handle

    @staticmethod
    def metrics_for(font_handle: Any) -> PdfiumFontMetrics:
        """Layout metrics for a loaded font."""
        return PdfiumFontMetrics(font_handle)

    def draw_text(
        self,
        page_index: int,
        text: str,
        x: float,
        y: float,
        font_handle: Any,
        font_size: float,
        color: Color = BLACK,
        rotation: float = 0.0,
    ) -> None:
        """Draw one line of text with its baseline origin at (x, y).

        Args:
            page_index: Page returned by ``new_page``.
            text: Text to draw.
            x: Baseline origin X in points.
            y: Baseline origin Y in points (bottom-up).
            font_handle: Handle from one of the ``load_*`` methods.
            font_size: Font size in points.
            color: Fill color; clamped before use.
            rotation: Rotation in degrees, counter-clockwise.

        Raises:
            IndexError: If page_index is out of range.
            ValueError: If PDFium cannot create the text object.
        """
        if page_index < 0 or page_index >= len(self._pages):
            raise IndexError(f"Page number {page_index} out of range")
        if not text:
            return

        pdf = self._ensure_open()
        page = self._pages[page_index]

        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            pdf.raw, font_handle, ctypes.c_float(font_size)
        )
        if not text_obj:
            raise ValueError("Cannot create text object")

        if not pdfium.raw.FPDFText_SetText(text_obj, to_widestring(text)):
            pdfium.raw.FPDFPageObj_Destroy(text_obj)
            raise ValueError(f"Cannot set text {text[:20]!r}")

        r, g, b, a = color.to_rgba255()
        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, r, g, b, a)

        radians = math.radians(rotation)
        cos_r = math.cos(radians)
        sin_r = math.sin(radians)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(cos_r),
            ctypes.c_double(sin_r),
            ctypes.c_double(-sin_r),
            ctypes.c_double(cos_r),
            ctypes.c_double(x),
            ctypes.c_double(y),
        )

        pdfium.raw.FPDFPage_InsertObject(page.raw, text_obj)
        self._dirty_pages.add(page_index)

    def to_bytes(self) -> bytes:
        """Generate page content and serialize the document."""
        pdf = self._ensure_open()
        for page_index in sorted(self._dirty_pages):
            self._pages[page_index].gen_content()
        self._dirty_pages.clear()

        buffer = BytesIO()
        pdf.save(buffer)
        logger.debug("Rendered %d pages", len(self._pages))
        return buffer.getvalue()
