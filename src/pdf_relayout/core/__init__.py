# SPDX-License-Identifier: Apache-2.0
"""Core layout reconstruction modules."""

from .column_detector import ColumnDetectionConfig, detect_columns
from .font_resolver import FontResolver
from .font_subsetter import FontSubsetter, SubsetConfig
from .models import (
    Color,
    ColumnInfo,
    ColumnLayout,
    DocumentMetadata,
    ExtractedDocument,
    FontInfo,
    FontStyle,
    Margins,
    PageLayout,
    TextItem,
    Transform,
)
from .outcome import Outcome
from .pdf_source import PdfPageSource
from .pdf_writer import PdfRenderer
from .reading_order import sort_by_reading_order
from .text_layout import LayoutConstraints, LayoutOptions, OverflowStrategy, TextLayoutEngine

__all__ = [
    "Color",
    "ColumnDetectionConfig",
    "ColumnInfo",
    "ColumnLayout",
    "DocumentMetadata",
    "ExtractedDocument",
    "FontInfo",
    "FontResolver",
    "FontStyle",
    "FontSubsetter",
    "LayoutConstraints",
    "LayoutOptions",
    "Margins",
    "Outcome",
    "OverflowStrategy",
    "PageLayout",
    "PdfPageSource",
    "PdfRenderer",
    "SubsetConfig",
    "TextItem",
    "TextLayoutEngine",
    "Transform",
    "detect_columns",
    "sort_by_reading_order",
]
