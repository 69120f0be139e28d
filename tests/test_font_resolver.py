# SPDX-License-Identifier: Apache-2.0
"""Tests for font name resolution."""

from __future__ import annotations

import pytest

from pdf_relayout.core.font_resolver import (
    STANDARD_FONTS,
    FontResolver,
    detect_font_family,
    get_fallback_font,
    get_styled_font_name,
    is_standard_font,
    map_font_style,
)
from pdf_relayout.core.models import FontStyle


class TestStandardFonts:
    """Tests for standard font recognition."""

    def test_fourteen_fonts(self) -> None:
        assert len(STANDARD_FONTS) == 14

    @pytest.mark.parametrize(
        "name", ["Helvetica-Bold", "helvetica bold", "TIMES-ROMAN", "zapfdingbats"]
    )
    def test_is_standard(self, name: str) -> None:
        assert is_standard_font(name)

    @pytest.mark.parametrize("name", ["Arial", "", None])
    def test_not_standard(self, name: str | None) -> None:
        assert not is_standard_font(name)


class TestFontStyle:
    """Tests for map_font_style()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Arial", FontStyle.NORMAL),
            ("Arial-BoldMT", FontStyle.BOLD),
            ("Helvetica-Oblique", FontStyle.ITALIC),
            ("TimesNewRomanPS-BoldItalicMT", FontStyle.BOLD_ITALIC),
            ("Montserrat SemiBold", FontStyle.BOLD),
            ("", FontStyle.NORMAL),
        ],
    )
    def test_map_font_style(self, name: str, expected: FontStyle) -> None:
        assert map_font_style(name) is expected


class TestFamilies:
    """Tests for family detection and styling."""

    @pytest.mark.parametrize(
        ("name", "family"),
        [
            ("ArialMT", "helvetica"),
            ("DejaVu Sans-Serif", "helvetica"),
            ("Georgia", "georgia"),
            ("TimesNewRoman", "times"),
            ("Consolas", "courier"),
            ("SimSun", "cjk"),
            ("Wingdings", None),
        ],
    )
    def test_detect_font_family(self, name: str, family: str | None) -> None:
        assert detect_font_family(name) == family

    def test_styled_name(self) -> None:
        assert get_styled_font_name("Times-Roman", FontStyle.BOLD) == "Times-Bold"
        assert get_styled_font_name("Courier", FontStyle.ITALIC) == "Courier-Oblique"
        assert get_styled_font_name("Symbol", FontStyle.BOLD) == "Symbol"


class TestFallbackFont:
    """Tests for get_fallback_font()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Arial-BoldMT", "Helvetica-Bold"),
            ("Georgia-Italic", "Times-Italic"),
            ("TimesNewRomanPS-BoldItalicMT", "Times-BoldItalic"),
            ("CourierNewPSMT", "Courier"),
            ("helvetica-boldoblique", "Helvetica-BoldOblique"),
            ("SimHei", "Helvetica"),
            ("Wingdings", "Helvetica"),
            (None, "Helvetica"),
        ],
    )
    def test_get_fallback_font(self, name: str | None, expected: str) -> None:
        assert get_fallback_font(name) == expected


class TestFontResolver:
    """Tests for FontResolver."""

    def test_font_info_from_name(self) -> None:
        info = FontResolver().font_info_from_name("Arial-BoldMT", "F1")
        assert info.name == "Arial-BoldMT"
        assert info.style is FontStyle.BOLD
        assert info.fallback_font == "Helvetica-Bold"
        assert info.id == "F1"

    def test_cached_by_id(self) -> None:
        resolver = FontResolver()
        first = resolver.font_info_from_name("Arial", "F1")
        assert resolver.font_info_from_name("Georgia", "F1") is first
        resolver.clear_cache()
        assert resolver.font_info_from_name("Georgia", "F1").fallback_font == "Times-Roman"

    def test_parse_reference_without_name(self) -> None:
        info = FontResolver().parse_font_reference("g_d0_f1")
        assert info.name == "Unknown"
        assert info.style is FontStyle.NORMAL
        assert info.fallback_font == "Helvetica"
        assert info.id == "g_d0_f1"

    def test_parse_reference_with_name(self) -> None:
        info = FontResolver().parse_font_reference("g_d0_f2", "Times-Italic")
        assert info.style is FontStyle.ITALIC
        assert info.fallback_font == "Times-Italic"
