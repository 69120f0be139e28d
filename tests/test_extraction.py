# SPDX-License-Identifier: Apache-2.0
"""Tests for the extraction pipeline."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from conftest import LETTER_WIDTH
from pdf_relayout.core.color_extractor import ContentOperator
from pdf_relayout.core.models import Color, FontStyle
from pdf_relayout.core.outcome import Outcome
from pdf_relayout.core.pdf_source import PdfPageSource, RawPage, RawTextItem
from pdf_relayout.pipeline import (
    DocumentExtractor,
    ExtractionConfig,
    ExtractionError,
    PipelineError,
)
from pdf_relayout.pipeline.extraction import build_text_item, page_display_text


def _raw(
    text: str, x: float, y: float, font_name: str = "Helvetica", size: float = 12.0
) -> RawTextItem:
    return RawTextItem(
        text=text,
        transform=(size, 0.0, 0.0, size, x, y),
        width=len(text) * size * 0.5,
        height=size,
        font_name=font_name,
        font_id="F1" if font_name == "Helvetica" else "F2",
    )


class TestExtractionConfig:
    """Tests for ExtractionConfig dataclass."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = ExtractionConfig()

        assert config.line_tolerance == 5.0
        assert config.extract_colors is True
        assert config.skip_failed_pages is True
        assert config.column_config.min_column_width == 100.0


class TestBuildTextItem:
    """Tests for build_text_item()."""

    def test_position_and_size(self) -> None:
        """Position and size come from the transform."""
        item = build_text_item(_raw("Hi", 72.0, 700.0, "Arial-BoldMT", 10.0), page_index=1)

        assert (item.x, item.y, item.font_size) == (72.0, 700.0, 10.0)
        assert item.font_style is FontStyle.BOLD
        assert item.page_index == 1
        assert item.transform.as_tuple() == (10.0, 0.0, 0.0, 10.0, 72.0, 700.0)

    def test_bad_transform(self) -> None:
        """A short transform places the item at the identity defaults."""
        raw = RawTextItem(text="Oops", transform=(1.0, 0.0))
        item = build_text_item(raw, page_index=0)

        assert (item.x, item.y, item.font_size) == (0.0, 0.0, 12.0)
        assert item.transform.is_identity()


class TestExtractFromPages:
    """Tests for DocumentExtractor.extract_from_pages()."""

    def test_offsets_index_full_text(self) -> None:
        """Every item's offsets select its own text from full_text."""
        pages = [
            RawPage(
                index=0,
                width=612,
                height=792,
                items=[_raw("Hello ", 72, 700), _raw("World", 72, 680)],
            ),
            RawPage(index=1, width=612, height=792, items=[_raw("Again", 72, 700)]),
        ]
        document = DocumentExtractor().extract_from_pages(pages, "doc.pdf")

        assert document.full_text == "Hello WorldAgain"
        for item in document.text_items:
            assert document.full_text[item.char_offset_start : item.char_offset_end] == item.text
        assert [layout.text_offset_start for layout in document.page_layouts] == [0, 11]
        assert [layout.text_offset_end for layout in document.page_layouts] == [11, 16]

    def test_page_texts_in_reading_order(self) -> None:
        """Display text joins stripped runs top to bottom."""
        items = [_raw("second ", 72, 600), _raw(" first", 72, 700)]
        pages = [RawPage(index=0, width=612, height=792, items=items)]
        document = DocumentExtractor().extract_from_pages(pages, "doc.pdf")

        assert document.page_texts == ["first second"]
        assert document.full_text == "second  first"

    def test_fonts_collected(self) -> None:
        """Fonts are keyed by their document-wide id."""
        pages = [
            RawPage(
                index=0,
                width=612,
                height=792,
                items=[_raw("a", 72, 700), _raw("b", 72, 680, "TimesNewRomanPS-ItalicMT")],
            )
        ]
        document = DocumentExtractor().extract_from_pages(pages, "doc.pdf")

        assert set(document.fonts) == {"F1", "F2"}
        assert document.fonts["F2"].style is FontStyle.ITALIC
        assert document.fonts["F2"].fallback_font == "Times-Italic"

    def test_non_finite_numbers_do_not_abort(self) -> None:
        """Non-finite transforms and operands degrade instead of raising."""
        nan = float("nan")
        broken = RawTextItem(text="Broken", transform=(12.0, 0.0, 0.0, nan, nan, 700.0))
        operators = [
            ContentOperator("rg", (1, 0, 0)),
            ContentOperator("BT"),
            ContentOperator("Tm", (12, 0, 0, 12, float("inf"), 700)),
            ContentOperator("Tj", (b"Broken",)),
            ContentOperator("Tm", (12, 0, 0, 12, 72, 680)),
            ContentOperator("Tj", (b"Red",)),
            ContentOperator("ET"),
        ]
        page = RawPage(
            index=0,
            width=612,
            height=792,
            items=[broken, _raw("Red", 72, 680)],
            operators=Outcome.ok(operators),
        )
        document = DocumentExtractor().extract_from_pages([page], "doc.pdf")

        first, red = document.text_items
        assert (first.x, first.y, first.font_size) == (0.0, 0.0, 12.0)
        assert red.color == Color(r=1.0)
        assert document.full_text == "BrokenRed"

    def test_colors_from_operators(self) -> None:
        """Fill colors are matched to runs by position."""
        operators = [
            ContentOperator("rg", (0, 0, 1)),
            ContentOperator("BT"),
            ContentOperator("Tm", (12, 0, 0, 12, 72, 700)),
            ContentOperator("Tj", (b"Blue",)),
            ContentOperator("ET"),
        ]
        page = RawPage(
            index=0,
            width=612,
            height=792,
            items=[_raw("Blue", 72, 700), _raw("Plain", 300, 400)],
            operators=Outcome.ok(operators),
        )
        document = DocumentExtractor().extract_from_pages([page], "doc.pdf")

        blue, plain = document.text_items
        assert blue.color == Color(b=1.0)
        assert blue.color_from_operator_list is True
        assert plain.color == Color()
        assert plain.color_from_operator_list is False

    def test_colors_disabled(self) -> None:
        """Color extraction can be turned off."""
        page = RawPage(
            index=0,
            width=612,
            height=792,
            items=[_raw("Blue", 72, 700)],
            operators=Outcome.ok([ContentOperator("rg", (0, 0, 1))]),
        )
        extractor = DocumentExtractor(ExtractionConfig(extract_colors=False))
        document = extractor.extract_from_pages([page], "doc.pdf")
        assert document.text_items[0].color_from_operator_list is False

    def test_empty_page(self) -> None:
        """A page without runs keeps default margins and one column."""
        document = DocumentExtractor().extract_from_pages(
            [RawPage(index=0, width=612, height=792)], "empty.pdf"
        )

        assert document.text_items == []
        assert document.full_text == ""
        assert document.page_texts == [""]
        assert document.page_layouts[0].margins.left == 72.0
        assert document.page_layouts[0].size_name == "LETTER"
        assert document.column_layouts[0].column_count == 1


class TestExtract:
    """Tests for DocumentExtractor.extract() on real PDFs."""

    def test_two_columns(self, two_column_pdf: bytes) -> None:
        """Two text columns are detected and read column by column."""
        document = DocumentExtractor().extract(two_column_pdf)

        assert document.page_count == 1
        assert len(document.text_items) == 13
        layout = document.column_layouts[0]
        assert layout.is_multi_column is True
        assert layout.column_count == 2
        assert len(layout.columns[0].text_items) == 7
        assert len(layout.columns[1].text_items) == 6

        expected = ["Title"] + [f"Left {row}" for row in range(6)]
        expected += [f"Right {row}" for row in range(6)]
        assert document.page_texts[0] == " ".join(expected)

    def test_offsets_and_page_layout(self, two_column_pdf: bytes) -> None:
        """Offsets index full_text and the page size is recognized."""
        document = DocumentExtractor().extract(two_column_pdf)

        for item in document.text_items:
            assert document.full_text[item.char_offset_start : item.char_offset_end] == item.text
        layout = document.page_layouts[0]
        assert layout.width == pytest.approx(LETTER_WIDTH)
        assert layout.size_name == "LETTER"
        assert layout.margins.left == pytest.approx(72.0, abs=0.5)
        assert layout.text_offset_end == len(document.full_text)

    def test_title_color(self, two_column_pdf: bytes) -> None:
        """Matched colors come from the content stream."""
        document = DocumentExtractor().extract(two_column_pdf)

        title = next(item for item in document.text_items if item.text.strip() == "Title")
        if title.color_from_operator_list:
            assert title.color.r == pytest.approx(1.0, abs=0.01)
            assert title.color.g == pytest.approx(0.0, abs=0.01)
        else:
            assert title.color == Color()

    def test_extract_path(self, tmp_path: Path, two_page_pdf: bytes) -> None:
        """Extraction from a path records the file name."""
        pdf_path = tmp_path / "two.pdf"
        pdf_path.write_bytes(two_page_pdf)

        document = DocumentExtractor().extract(pdf_path)

        assert document.file_name == "two.pdf"
        assert document.page_count == 2
        assert [item.page_index for item in document.text_items] == [0, 0, 1, 1]

    def test_missing_file(self, tmp_path: Path) -> None:
        """Opening a missing file raises ExtractionError."""
        with pytest.raises(ExtractionError) as exc_info:
            DocumentExtractor().extract(tmp_path / "missing.pdf")

        assert exc_info.value.stage == "open"
        assert isinstance(exc_info.value.cause, FileNotFoundError)
        assert isinstance(exc_info.value, PipelineError)

    def test_invalid_pdf(self) -> None:
        """Bytes that are not a PDF raise ExtractionError."""
        with pytest.raises(ExtractionError):
            DocumentExtractor().extract(b"not a pdf")

    def test_skip_failed_pages(self, two_page_pdf: bytes) -> None:
        """A failing page yields an empty layout when skipping is on."""
        original = PdfPageSource.read_page

        def flaky(self: PdfPageSource, page_index: int, with_operators: bool = True) -> RawPage:
            if page_index == 1:
                raise RuntimeError("broken page")
            return original(self, page_index, with_operators)

        with patch.object(PdfPageSource, "read_page", flaky):
            document = DocumentExtractor().extract(two_page_pdf)

        assert document.page_count == 2
        assert {item.page_index for item in document.text_items} == {0}
        assert document.page_texts[1] == ""

    def test_failed_page_raises(self, two_page_pdf: bytes) -> None:
        """A failing page raises when skipping is off."""
        extractor = DocumentExtractor(ExtractionConfig(skip_failed_pages=False))
        with patch.object(PdfPageSource, "read_page", side_effect=RuntimeError("broken")):
            with pytest.raises(ExtractionError) as exc_info:
                extractor.extract(two_page_pdf)

        assert exc_info.value.stage == "page"

    def test_progress_callback(self, two_page_pdf: bytes) -> None:
        """Progress is reported once per page."""
        callback = MagicMock()
        DocumentExtractor(progress_callback=callback).extract(two_page_pdf)

        assert [call.args[:3] for call in callback.call_args_list] == [
            ("extract", 1, 2),
            ("extract", 2, 2),
        ]

    @pytest.mark.asyncio
    async def test_extract_async(self, two_page_pdf: bytes) -> None:
        """The async variant returns the same document."""
        document = await DocumentExtractor().extract_async(two_page_pdf)
        assert document.page_texts == ["Hello World", "Second Page"]


def test_page_display_text_skips_blank_runs() -> None:
    """Whitespace-only runs do not add separators."""
    items = [build_text_item(_raw(" ", 72, 700), 0), build_text_item(_raw("word", 100, 700), 0)]
    assert page_display_text(items) == "word"
