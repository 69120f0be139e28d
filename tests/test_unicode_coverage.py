# SPDX-License-Identifier: Apache-2.0
"""Tests for Unicode script classification."""

from __future__ import annotations

import pytest

from pdf_relayout.core.unicode_coverage import (
    DEFAULT_UNICODE_FONT,
    classify_character,
    get_font_for_character,
    get_required_fonts_for_text,
    order_fonts,
)


class TestClassifyCharacter:
    """Tests for classify_character()."""

    @pytest.mark.parametrize(
        ("char", "category"),
        [
            ("A", None),
            ("é", None),
            ("中", "cjk"),
            ("あ", "japanese"),
            ("カ", "japanese"),
            ("한", "korean"),
            ("ع", "arabic"),
            ("ש", "hebrew"),
            ("ก", "thai"),
            ("∑", "math"),
            ("☃", "symbols"),
            ("→", "symbols2"),
            ("\u2014", "symbols2"),
            ("", None),
        ],
    )
    def test_categories(self, char: str, category: str | None) -> None:
        assert classify_character(char) == category

    def test_font_for_character(self) -> None:
        assert get_font_for_character("中") == "NotoSansSC"
        assert get_font_for_character("a") == DEFAULT_UNICODE_FONT


class TestRequiredFonts:
    """Tests for get_required_fonts_for_text()."""

    def test_latin_only(self) -> None:
        assert get_required_fonts_for_text("Hello") == {"NotoSans"}

    def test_empty(self) -> None:
        assert get_required_fonts_for_text("") == {"NotoSans"}
        assert get_required_fonts_for_text(None) == {"NotoSans"}

    def test_mixed_scripts(self) -> None:
        required = get_required_fonts_for_text("Hello 世界 こんにちは 안녕")
        assert required == {"NotoSans", "NotoSansSC", "NotoSansJP", "NotoSansKR"}

    def test_order_fonts(self) -> None:
        assert order_fonts({"NotoSansKR", "Custom", "NotoSans", "NotoSansSC"}) == [
            "NotoSans",
            "NotoSansSC",
            "NotoSansKR",
            "Custom",
        ]
