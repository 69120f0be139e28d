# SPDX-License-Identifier: Apache-2.0
"""Data models for the layout reconstruction format.

This module defines the records produced by extraction and consumed by
regeneration: positioned text items, page layouts, column layouts, font
information and the extracted document that ties them together.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Sequence

SCHEMA_VERSION = "1.0.0"


class FontStyle(str, Enum):
    """Font style detected from a font name."""

    NORMAL = "normal"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bolditalic"

    @classmethod
    def from_flags(cls, is_bold: bool, is_italic: bool) -> FontStyle:
        """Combine independent bold/italic flags into a style."""
        if is_bold and is_italic:
            return cls.BOLD_ITALIC
        if is_bold:
            return cls.BOLD
        if is_italic:
            return cls.ITALIC
        return cls.NORMAL

    @property
    def is_bold(self) -> bool:
        return self in (FontStyle.BOLD, FontStyle.BOLD_ITALIC)

    @property
    def is_italic(self) -> bool:
        return self in (FontStyle.ITALIC, FontStyle.BOLD_ITALIC)


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class Color:
    """RGBA color value.

    Attributes:
        r: Red component (0-1)
        g: Green component (0-1)
        b: Blue component (0-1)
        a: Alpha component (0-1)
    """

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    def clamped(self) -> Color:
        """Return a copy with every component clamped to [0, 1]."""
        return Color(
            r=_clamp_unit(self.r),
            g=_clamp_unit(self.g),
            b=_clamp_unit(self.b),
            a=_clamp_unit(self.a),
        )

    def to_rgba255(self) -> tuple[int, int, int, int]:
        """Convert to 0-255 integer components for PDFium."""
        c = self.clamped()
        return (
            round(c.r * 255),
            round(c.g * 255),
            round(c.b * 255),
            round(c.a * 255),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"r": self.r, "g": self.g, "b": self.b, "a": self.a}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Color:
        """Create from dictionary."""
        return cls(
            r=float(data.get("r", 0.0)),
            g=float(data.get("g", 0.0)),
            b=float(data.get("b", 0.0)),
            a=float(data.get("a", 1.0)),
        )


BLACK = Color()


@dataclass(frozen=True)
class Transform:
    """Affine transformation matrix [a, b, c, d, e, f].

    The matrix transforms coordinates as:
        x' = a*x + c*y + e
        y' = b*x + d*y + f

    For a text item, (e, f) is the baseline origin and |d| the
    effective font size.

    Attributes:
        a: Horizontal scale
        b: Vertical skew
        c: Horizontal skew
        d: Vertical scale
        e: Horizontal translation
        f: Vertical translation
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def is_identity(self) -> bool:
        """Check if this is an identity transformation."""
        return all(
            abs(value - expected) < 1e-6
            for value, expected in zip(self.as_tuple(), (1.0, 0.0, 0.0, 1.0, 0.0, 0.0))
        )

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        """Return the matrix as a six-element tuple."""
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Transform:
        """Create from the first six numbers of a sequence.

        Raises:
            ValueError: If fewer than six values are given.
        """
        if len(values) < 6:
            raise ValueError(f"Transform needs 6 values, got {len(values)}")
        a, b, c, d, e, f = (float(v) for v in values[:6])
        return cls(a=a, b=b, c=c, d=d, e=e, f=f)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "d": self.d,
            "e": self.e,
            "f": self.f,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transform:
        """Create from dictionary."""
        return cls(
            a=float(data.get("a", 1.0)),
            b=float(data.get("b", 0.0)),
            c=float(data.get("c", 0.0)),
            d=float(data.get("d", 1.0)),
            e=float(data.get("e", 0.0)),
            f=float(data.get("f", 0.0)),
        )


@dataclass(frozen=True)
class TextItem:
    """One atomic run of text as drawn on a page.

    Coordinates are in PDF points with the origin at the bottom-left
    corner; (x, y) is the baseline origin of the run.

    Attributes:
        text: Text content
        x: Left edge of the run
        y: Baseline of the run
        width: Advance width of the run
        height: Height of the run
        font_size: Effective font size in points
        font_id: Parser-internal font reference
        font_name: Base font name as found in the document
        font_style: Style detected from the font name
        page_index: Zero-based page index
        transform: Raw text transform
        color: Fill color in effect when the run was drawn
        color_from_operator_list: Whether the color was recovered from
            the page's drawing operators rather than defaulted
        char_offset_start: Start of this run in the document text
        char_offset_end: End (exclusive) of this run in the document text
        column_index: Column assigned by column detection
    """

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    font_size: float = 12.0
    font_id: str = ""
    font_name: str = ""
    font_style: FontStyle = FontStyle.NORMAL
    page_index: int = 0
    transform: Transform = field(default_factory=Transform)
    color: Color = BLACK
    color_from_operator_list: bool = False
    char_offset_start: int = 0
    char_offset_end: int = 0
    column_index: Optional[int] = None

    def with_offsets(self, start: int) -> TextItem:
        """Return a copy spanning ``[start, start + len(text))``."""
        return replace(
            self,
            char_offset_start=start,
            char_offset_end=start + len(self.text),
        )

    def with_column(self, column_index: int) -> TextItem:
        """Return a copy assigned to the given column."""
        return replace(self, column_index=column_index)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "font_size": self.font_size,
            "font_id": self.font_id,
            "font_name": self.font_name,
            "font_style": self.font_style.value,
            "page_index": self.page_index,
            "transform": self.transform.to_dict(),
            "color": self.color.to_dict(),
            "color_from_operator_list": self.color_from_operator_list,
            "char_offset_start": self.char_offset_start,
            "char_offset_end": self.char_offset_end,
        }
        if self.column_index is not None:
            result["column_index"] = self.column_index
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TextItem:
        """Create from dictionary."""
        transform = (
            Transform.from_dict(data["transform"]) if "transform" in data else Transform()
        )
        color = Color.from_dict(data["color"]) if "color" in data else BLACK
        column_index = data.get("column_index")
        return cls(
            text=data["text"],
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data.get("width", 0.0)),
            height=float(data.get("height", 0.0)),
            font_size=float(data.get("font_size", 12.0)),
            font_id=data.get("font_id", ""),
            font_name=data.get("font_name", ""),
            font_style=FontStyle(data.get("font_style", FontStyle.NORMAL.value)),
            page_index=int(data.get("page_index", 0)),
            transform=transform,
            color=color,
            color_from_operator_list=bool(data.get("color_from_operator_list", False)),
            char_offset_start=int(data.get("char_offset_start", 0)),
            char_offset_end=int(data.get("char_offset_end", 0)),
            column_index=int(column_index) if column_index is not None else None,
        )


@dataclass
class Margins:
    """Page margins in points."""

    left: float = 72.0
    right: float = 72.0
    top: float = 72.0
    bottom: float = 72.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "left": self.left,
            "right": self.right,
            "top": self.top,
            "bottom": self.bottom,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Margins:
        """Create from dictionary."""
        return cls(
            left=float(data.get("left", 72.0)),
            right=float(data.get("right", 72.0)),
            top=float(data.get("top", 72.0)),
            bottom=float(data.get("bottom", 72.0)),
        )


@dataclass
class PageLayout:
    """Geometry of one page.

    Defaults describe an A4 page with one-inch margins.

    Attributes:
        page_index: Zero-based page index
        width: Page width in points
        height: Page height in points
        margins: Margins derived from the content bounds
        text_offset_start: Start of this page's span in the document text
        text_offset_end: End (exclusive) of this page's span
        size_name: Standard page size name, if the page matches one
    """

    page_index: int = 0
    width: float = 595.28
    height: float = 841.89
    margins: Margins = field(default_factory=Margins)
    text_offset_start: int = 0
    text_offset_end: int = 0
    size_name: Optional[str] = None

    @property
    def content_width(self) -> float:
        """Width between the left and right margins."""
        return self.width - self.margins.left - self.margins.right

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "page_index": self.page_index,
            "width": self.width,
            "height": self.height,
            "margins": self.margins.to_dict(),
            "text_offset_start": self.text_offset_start,
            "text_offset_end": self.text_offset_end,
            "size_name": self.size_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PageLayout:
        """Create from dictionary."""
        return cls(
            page_index=int(data.get("page_index", 0)),
            width=float(data.get("width", 595.28)),
            height=float(data.get("height", 841.89)),
            margins=Margins.from_dict(data.get("margins", {})),
            text_offset_start=int(data.get("text_offset_start", 0)),
            text_offset_end=int(data.get("text_offset_end", 0)),
            size_name=data.get("size_name"),
        )


@dataclass
class ColumnInfo:
    """One vertical column band on a page.

    Attributes:
        index: Left-to-right column index
        left_bound: Left X bound (inclusive)
        right_bound: Right X bound (exclusive)
        gap_to_next: Distance to the next column's left bound
        text_items: Items whose X falls inside the band
    """

    index: int
    left_bound: float
    right_bound: float
    gap_to_next: float = 0.0
    text_items: list[TextItem] = field(default_factory=list)

    @property
    def width(self) -> float:
        """Width of the column band."""
        return self.right_bound - self.left_bound

    def contains(self, x: float) -> bool:
        """Check whether X falls inside ``[left_bound, right_bound)``."""
        return self.left_bound <= x < self.right_bound

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (items are stored on the document)."""
        return {
            "index": self.index,
            "left_bound": self.left_bound,
            "right_bound": self.right_bound,
            "gap_to_next": self.gap_to_next,
            "item_count": len(self.text_items),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnInfo:
        """Create from dictionary."""
        return cls(
            index=int(data["index"]),
            left_bound=float(data["left_bound"]),
            right_bound=float(data["right_bound"]),
            gap_to_next=float(data.get("gap_to_next", 0.0)),
        )


@dataclass
class ColumnLayout:
    """Column structure detected on one page.

    Attributes:
        page_index: Zero-based page index
        column_count: Number of columns (1-4)
        columns: Columns ordered left to right
        gutter_width: Mean of the positive inter-column gaps
        is_multi_column: Whether more than one column was detected
    """

    page_index: int
    column_count: int
    columns: list[ColumnInfo]
    gutter_width: float = 0.0
    is_multi_column: bool = False

    @classmethod
    def single(
        cls,
        page_width: float,
        page_index: int = 0,
        items: Sequence[TextItem] = (),
    ) -> ColumnLayout:
        """Create the single-column layout spanning the whole page."""
        column = ColumnInfo(
            index=0,
            left_bound=0.0,
            right_bound=page_width,
            text_items=list(items),
        )
        return cls(page_index=page_index, column_count=1, columns=[column])

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "page_index": self.page_index,
            "column_count": self.column_count,
            "columns": [column.to_dict() for column in self.columns],
            "gutter_width": self.gutter_width,
            "is_multi_column": self.is_multi_column,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnLayout:
        """Create from dictionary."""
        return cls(
            page_index=int(data.get("page_index", 0)),
            column_count=int(data["column_count"]),
            columns=[ColumnInfo.from_dict(c) for c in data.get("columns", [])],
            gutter_width=float(data.get("gutter_width", 0.0)),
            is_multi_column=bool(data.get("is_multi_column", False)),
        )


@dataclass
class FontInfo:
    """Font referenced by text items.

    Attributes:
        name: Display name
        style: Detected style
        is_embedded: Whether the source embeds the font program
        fallback_font: Standard font used when the original is unavailable
        id: Parser-internal font reference
    """

    name: str
    style: FontStyle = FontStyle.NORMAL
    is_embedded: bool = False
    fallback_font: str = "Helvetica"
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "style": self.style.value,
            "is_embedded": self.is_embedded,
            "fallback_font": self.fallback_font,
            "id": self.id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FontInfo:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            style=FontStyle(data.get("style", FontStyle.NORMAL.value)),
            is_embedded=bool(data.get("is_embedded", False)),
            fallback_font=data.get("fallback_font", "Helvetica"),
            id=data.get("id", ""),
        )


@dataclass
class DocumentMetadata:
    """Document information dictionary entries; every field may be absent."""

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    creator: Optional[str] = None
    producer: Optional[str] = None
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "title": self.title,
            "author": self.author,
            "subject": self.subject,
            "keywords": self.keywords,
            "creator": self.creator,
            "producer": self.producer,
            "creation_date": self.creation_date,
            "modification_date": self.modification_date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentMetadata:
        """Create from dictionary."""
        return cls(
            title=data.get("title"),
            author=data.get("author"),
            subject=data.get("subject"),
            keywords=data.get("keywords"),
            creator=data.get("creator"),
            producer=data.get("producer"),
            creation_date=data.get("creation_date"),
            modification_date=data.get("modification_date"),
        )


@dataclass
class ExtractedDocument:
    """Everything regeneration needs to re-place substituted text.

    ``full_text`` is the concatenation of every item's text in
    extraction order; each item's ``[char_offset_start,
    char_offset_end)`` indexes into it.

    Attributes:
        file_name: Source file name
        page_count: Number of pages
        text_items: Items of all pages in extraction order
        page_layouts: One layout per page
        column_layouts: One column layout per page
        fonts: Font id to font information
        metadata: Document metadata
        full_text: Concatenated item text referenced by the offsets
        page_texts: Whitespace-joined display text per page
    """

    file_name: str
    page_count: int = 0
    text_items: list[TextItem] = field(default_factory=list)
    page_layouts: list[PageLayout] = field(default_factory=list)
    column_layouts: list[ColumnLayout] = field(default_factory=list)
    fonts: dict[str, FontInfo] = field(default_factory=dict)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    full_text: str = ""
    page_texts: list[str] = field(default_factory=list)

    def items_for_page(self, page_index: int) -> list[TextItem]:
        """Return the page's items in extraction order."""
        return [item for item in self.text_items if item.page_index == page_index]

    def reading_order(self, page_index: int) -> list[TextItem]:
        """Return the page's items column by column, top to bottom."""
        from .reading_order import sort_by_reading_order

        return sort_by_reading_order(self.items_for_page(page_index))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "schema_version": SCHEMA_VERSION,
            "file_name": self.file_name,
            "page_count": self.page_count,
            "text_items": [item.to_dict() for item in self.text_items],
            "page_layouts": [layout.to_dict() for layout in self.page_layouts],
            "column_layouts": [layout.to_dict() for layout in self.column_layouts],
            "fonts": {font_id: info.to_dict() for font_id, info in self.fonts.items()},
            "metadata": self.metadata.to_dict(),
            "full_text": self.full_text,
            "page_texts": list(self.page_texts),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractedDocument:
        """Create from dictionary.

        Raises:
            ValueError: If the schema version does not match, or required
                fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported schema version: {version} (expected {SCHEMA_VERSION})"
            )

        try:
            return cls._from_valid_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed document field: {e!r}") from e

    @classmethod
    def _from_valid_dict(cls, data: dict[str, Any]) -> ExtractedDocument:
        items = [TextItem.from_dict(item) for item in data.get("text_items", [])]
        column_layouts = [
            ColumnLayout.from_dict(layout) for layout in data.get("column_layouts", [])
        ]
        for layout in column_layouts:
            for column in layout.columns:
                column.text_items = [
                    item
                    for item in items
                    if item.page_index == layout.page_index
                    and item.column_index == column.index
                ]

        return cls(
            file_name=data["file_name"],
            page_count=int(data.get("page_count", 0)),
            text_items=items,
            page_layouts=[PageLayout.from_dict(p) for p in data.get("page_layouts", [])],
            column_layouts=column_layouts,
            fonts={
                font_id: FontInfo.from_dict(info)
                for font_id, info in data.get("fonts", {}).items()
            },
            metadata=DocumentMetadata.from_dict(data.get("metadata", {})),
            full_text=data.get("full_text", ""),
            page_texts=list(data.get("page_texts", [])),
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> ExtractedDocument:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
