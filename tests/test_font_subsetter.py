# SPDX-License-Identifier: Apache-2.0
"""Tests for font_subsetter module."""

import io

from fontTools.ttLib import TTFont

from pdf_relayout.core.font_subsetter import FontSubsetter, SubsetConfig


def _cmap_chars(font_bytes: bytes) -> set[str]:
    font = TTFont(io.BytesIO(font_bytes))
    try:
        return {chr(code_point) for code_point in font.getBestCmap()}
    finally:
        font.close()


# =============================================================================
# Tests for FontSubsetter
# =============================================================================


class TestFontSubsetter:
    """Tests for FontSubsetter.subset_for_texts()."""

    def test_keeps_used_characters(self, test_font_bytes: bytes) -> None:
        """Subset contains the text's characters plus common punctuation."""
        subset = FontSubsetter().subset_for_texts(test_font_bytes, ["你好", "Hi"])

        assert subset is not None
        chars = _cmap_chars(subset)
        assert {"你", "好", "H", "i", ".", "0"} <= chars
        assert "世" not in chars
        assert "Z" not in chars

    def test_subset_is_smaller(self, test_font_bytes: bytes) -> None:
        """Dropping glyphs shrinks the font."""
        subset = FontSubsetter().subset_for_texts(test_font_bytes, ["a"])
        assert subset is not None
        assert len(subset) < len(test_font_bytes)

    def test_without_punctuation(self, test_font_bytes: bytes) -> None:
        """Common punctuation can be left out."""
        subsetter = FontSubsetter(SubsetConfig(include_common_punctuation=False))
        subset = subsetter.subset_for_texts(test_font_bytes, ["ab"])
        assert subset is not None
        assert _cmap_chars(subset) == {"a", "b"}

    def test_cached(self, test_font_bytes: bytes) -> None:
        """Same font and characters return the cached subset."""
        subsetter = FontSubsetter()
        first = subsetter.subset_for_texts(test_font_bytes, ["ab"])
        second = subsetter.subset_for_texts(test_font_bytes, ["ba"])
        assert first is second

        subsetter.clear()
        assert subsetter.subset_for_texts(test_font_bytes, ["ab"]) is not first

    def test_empty_texts(self, test_font_bytes: bytes) -> None:
        """Nothing to keep returns None."""
        assert FontSubsetter().subset_for_texts(test_font_bytes, ["", ""]) is None
        assert FontSubsetter().subset_for_texts(test_font_bytes, []) is None

    def test_invalid_font(self) -> None:
        """Unparseable font data returns None."""
        assert FontSubsetter().subset_for_texts(b"not a font", ["abc"]) is None
