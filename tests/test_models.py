# SPDX-License-Identifier: Apache-2.0
"""Tests for data models and tagged outcomes."""

from __future__ import annotations

import dataclasses
import json

import pytest

from pdf_relayout.core.models import (
    SCHEMA_VERSION,
    Color,
    ColumnInfo,
    ColumnLayout,
    DocumentMetadata,
    ExtractedDocument,
    FontInfo,
    FontStyle,
    PageLayout,
    TextItem,
    Transform,
)
from pdf_relayout.core.outcome import Outcome


class TestOutcome:
    """Tests for Outcome."""

    def test_ok(self) -> None:
        outcome = Outcome.ok(5)
        assert outcome.value == 5
        assert outcome.degraded is False
        assert outcome.reason is None

    def test_fallback(self) -> None:
        outcome = Outcome.fallback(0, "missing input")
        assert outcome.unwrap() == 0
        assert outcome.degraded is True
        assert outcome.reason == "missing input"


class TestFontStyle:
    """Tests for FontStyle."""

    @pytest.mark.parametrize(
        ("is_bold", "is_italic", "expected"),
        [
            (False, False, FontStyle.NORMAL),
            (True, False, FontStyle.BOLD),
            (False, True, FontStyle.ITALIC),
            (True, True, FontStyle.BOLD_ITALIC),
        ],
    )
    def test_from_flags(self, is_bold: bool, is_italic: bool, expected: FontStyle) -> None:
        assert FontStyle.from_flags(is_bold, is_italic) is expected

    def test_bold_italic_flags(self) -> None:
        assert FontStyle.BOLD_ITALIC.is_bold
        assert FontStyle.BOLD_ITALIC.is_italic
        assert not FontStyle.NORMAL.is_bold

    def test_string_values(self) -> None:
        assert FontStyle.BOLD_ITALIC.value == "bolditalic"


class TestColor:
    """Tests for Color."""

    def test_default_is_opaque_black(self) -> None:
        color = Color()
        assert (color.r, color.g, color.b, color.a) == (0.0, 0.0, 0.0, 1.0)

    def test_clamped(self) -> None:
        color = Color(r=1.5, g=-0.2, b=0.5).clamped()
        assert color == Color(r=1.0, g=0.0, b=0.5)

    def test_to_rgba255(self) -> None:
        assert Color(r=1.0, g=0.5, b=0.0).to_rgba255() == (255, 128, 0, 255)

    def test_to_rgba255_clamps(self) -> None:
        assert Color(r=2.0, g=-1.0, b=0.0).to_rgba255() == (255, 0, 0, 255)


class TestTransform:
    """Tests for Transform."""

    def test_identity(self) -> None:
        assert Transform().is_identity()
        assert not Transform(e=10.0).is_identity()

    def test_from_sequence(self) -> None:
        transform = Transform.from_sequence([12, 0, 0, 12, 72, 700])
        assert transform.as_tuple() == (12.0, 0.0, 0.0, 12.0, 72.0, 700.0)

    def test_from_short_sequence_raises(self) -> None:
        with pytest.raises(ValueError):
            Transform.from_sequence([1, 0, 0])


class TestTextItem:
    """Tests for TextItem."""

    def test_frozen(self) -> None:
        item = TextItem(text="Hello", x=72.0, y=700.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.column_index = 1  # type: ignore[misc]

    def test_with_offsets(self) -> None:
        item = TextItem(text="Hello", x=72.0, y=700.0).with_offsets(10)
        assert item.char_offset_start == 10
        assert item.char_offset_end == 15

    def test_with_column_returns_copy(self) -> None:
        item = TextItem(text="Hello", x=72.0, y=700.0)
        assigned = item.with_column(1)
        assert assigned.column_index == 1
        assert item.column_index is None

    def test_to_dict_omits_missing_column(self) -> None:
        data = TextItem(text="Hi", x=1.0, y=2.0).to_dict()
        assert "column_index" not in data
        assert data["font_style"] == "normal"

    def test_from_dict_defaults(self) -> None:
        item = TextItem.from_dict({"text": "Hi", "x": 1, "y": 2})
        assert item.font_size == 12.0
        assert item.color == Color()
        assert item.transform.is_identity()
        assert item.column_index is None


class TestPageLayout:
    """Tests for PageLayout."""

    def test_defaults_are_a4_with_inch_margins(self) -> None:
        layout = PageLayout()
        assert layout.width == pytest.approx(595.28)
        assert layout.height == pytest.approx(841.89)
        assert layout.margins.left == 72.0
        assert layout.content_width == pytest.approx(595.28 - 144)


class TestColumnLayout:
    """Tests for ColumnLayout."""

    def test_single_spans_page(self) -> None:
        items = [TextItem(text="a", x=10.0, y=10.0)]
        layout = ColumnLayout.single(612.0, page_index=2, items=items)
        assert layout.column_count == 1
        assert layout.is_multi_column is False
        assert layout.columns[0].left_bound == 0.0
        assert layout.columns[0].right_bound == 612.0
        assert layout.columns[0].text_items == items

    def test_column_contains_is_half_open(self) -> None:
        column = ColumnInfo(index=0, left_bound=0.0, right_bound=100.0)
        assert column.contains(0.0)
        assert not column.contains(100.0)
        assert column.width == 100.0


def _document() -> ExtractedDocument:
    items = [
        TextItem(text="Left", x=72.0, y=700.0, column_index=0).with_offsets(0),
        TextItem(text="Right", x=320.0, y=700.0, column_index=1).with_offsets(4),
    ]
    layout = ColumnLayout(
        page_index=0,
        column_count=2,
        columns=[
            ColumnInfo(index=0, left_bound=0.0, right_bound=196.0, text_items=[items[0]]),
            ColumnInfo(index=1, left_bound=196.0, right_bound=612.0, text_items=[items[1]]),
        ],
        is_multi_column=True,
    )
    return ExtractedDocument(
        file_name="doc.pdf",
        page_count=1,
        text_items=items,
        page_layouts=[PageLayout(width=612.0, height=792.0, text_offset_end=9)],
        column_layouts=[layout],
        fonts={"F1": FontInfo(name="Helvetica", id="F1")},
        metadata=DocumentMetadata(title="Doc"),
        full_text="LeftRight",
        page_texts=["Left Right"],
    )


class TestExtractedDocument:
    """Tests for ExtractedDocument."""

    def test_json_round_trip(self) -> None:
        document = _document()
        restored = ExtractedDocument.from_json(document.to_json())

        assert restored.text_items == document.text_items
        assert restored.page_layouts == document.page_layouts
        assert restored.fonts == document.fonts
        assert restored.metadata.title == "Doc"
        assert restored.metadata.author is None
        assert restored.full_text == "LeftRight"

    def test_columns_reattached_on_load(self) -> None:
        restored = ExtractedDocument.from_json(_document().to_json())
        columns = restored.column_layouts[0].columns
        assert [item.text for item in columns[0].text_items] == ["Left"]
        assert [item.text for item in columns[1].text_items] == ["Right"]

    def test_schema_version_written(self) -> None:
        data = json.loads(_document().to_json())
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["column_layouts"][0]["columns"][0]["item_count"] == 1

    def test_schema_version_mismatch_raises(self) -> None:
        data = _document().to_dict()
        data["schema_version"] = "0.1.0"
        with pytest.raises(ValueError, match="schema version"):
            ExtractedDocument.from_dict(data)

    def test_missing_required_field_raises_value_error(self) -> None:
        data = _document().to_dict()
        del data["file_name"]
        with pytest.raises(ValueError, match="file_name"):
            ExtractedDocument.from_dict(data)

    def test_malformed_item_raises_value_error(self) -> None:
        data = _document().to_dict()
        data["text_items"] = [42]
        with pytest.raises(ValueError, match="Malformed"):
            ExtractedDocument.from_dict(data)

    def test_non_object_json_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            ExtractedDocument.from_json("[1, 2]")

    def test_offsets_index_full_text(self) -> None:
        document = _document()
        for item in document.text_items:
            assert document.full_text[item.char_offset_start : item.char_offset_end] == item.text

    def test_reading_order(self) -> None:
        document = _document()
        assert [item.text for item in document.reading_order(0)] == ["Left", "Right"]
        assert document.items_for_page(1) == []
