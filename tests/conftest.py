# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: synthetic fonts, text items and PDFs."""

from __future__ import annotations

import io
from typing import Any

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from pdf_relayout.core.models import Color, TextItem
from pdf_relayout.core.pdf_writer import PdfRenderer

# Every glyph of the synthetic font advances 600 units on a 1000 em
TEST_FONT_ADVANCE = 600
TEST_FONT_CHARS = (
    " !\"'(),-.0123456789:;?"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "你好世界"
)

LETTER_WIDTH = 612.0
LETTER_HEIGHT = 792.0


def build_test_font(chars: str = TEST_FONT_CHARS) -> bytes:
    """Build a monospaced TrueType font covering ``chars``."""
    glyph_names = {ord(char): f"uni{ord(char):04X}" for char in chars}
    glyph_order = [".notdef"] + sorted(set(glyph_names.values()))

    glyphs = {}
    for name in glyph_order:
        pen = TTGlyphPen(None)
        pen.moveTo((50, 0))
        pen.lineTo((50, 700))
        pen.lineTo((550, 700))
        pen.lineTo((550, 0))
        pen.closePath()
        glyphs[name] = pen.glyph()

    builder = FontBuilder(1000, isTTF=True)
    builder.setupGlyphOrder(glyph_order)
    builder.setupCharacterMap(glyph_names)
    builder.setupGlyf(glyphs)
    builder.setupHorizontalMetrics({name: (TEST_FONT_ADVANCE, 50) for name in glyph_order})
    builder.setupHorizontalHeader(ascent=800, descent=-200)
    builder.setupNameTable({"familyName": "RelayoutTest", "styleName": "Regular"})
    builder.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    builder.setupPost()

    buffer = io.BytesIO()
    builder.save(buffer)
    return buffer.getvalue()


def make_item(text: str, x: float, y: float, **kwargs: Any) -> TextItem:
    """Create a text item with sensible defaults."""
    kwargs.setdefault("width", len(text) * 6.0)
    kwargs.setdefault("height", 12.0)
    kwargs.setdefault("font_size", 12.0)
    kwargs.setdefault("font_name", "Helvetica")
    return TextItem(text=text, x=x, y=y, **kwargs)


def two_column_items(per_column: int = 6, page_index: int = 0) -> list[TextItem]:
    """Items in two columns at x=72 and x=320, top to bottom."""
    items = []
    for row in range(per_column):
        y = 700.0 - row * 20.0
        items.append(make_item(f"L{row}", 72.0, y, page_index=page_index))
        items.append(make_item(f"R{row}", 320.0, y, page_index=page_index))
    return items


def build_pdf(pages: list[list[tuple[str, float, float, Color]]]) -> bytes:
    """Draw Helvetica text runs onto Letter pages and return the PDF."""
    with PdfRenderer() as renderer:
        font = renderer.load_standard_font("Helvetica")
        for runs in pages:
            page = renderer.new_page(LETTER_WIDTH, LETTER_HEIGHT)
            for text, x, y, color in runs:
                renderer.draw_text(page, text, x, y, font, 12.0, color)
        return renderer.to_bytes()


@pytest.fixture(scope="session")
def test_font_bytes() -> bytes:
    """Synthetic monospaced TrueType font."""
    return build_test_font()


@pytest.fixture
def sample_items() -> list[TextItem]:
    """Twelve items in two columns of six."""
    return two_column_items()


@pytest.fixture(scope="session")
def two_column_pdf() -> bytes:
    """One Letter page with two columns of six runs each, plus a red title."""
    black = Color()
    runs = [("Title", 72.0, 740.0, Color(r=1.0))]
    for row in range(6):
        y = 700.0 - row * 20.0
        runs.append((f"Left {row}", 72.0, y, black))
        runs.append((f"Right {row}", 320.0, y, black))
    return build_pdf([runs])


@pytest.fixture(scope="session")
def two_page_pdf() -> bytes:
    """Two pages with two runs each."""
    black = Color()
    return build_pdf(
        [
            [("Hello", 72.0, 700.0, black), ("World", 72.0, 680.0, black)],
            [("Second", 72.0, 700.0, black), ("Page", 72.0, 680.0, black)],
        ]
    )
