# SPDX-License-Identifier: Apache-2.0
"""Script classification for selecting extended-coverage fonts.

Each code point is classified into a script category; each category
maps to one Noto family. The set of families a string needs lets the
regenerator fetch and embed only the coverage it actually uses.
"""

from __future__ import annotations

from typing import Optional

DEFAULT_UNICODE_FONT = "NotoSans"

# Categories in lookup order; the first category whose ranges contain
# a code point wins. Ranges are inclusive.
UNICODE_RANGES: tuple[tuple[str, tuple[tuple[int, int], ...]], ...] = (
    (
        "cjk",
        (
            (0x4E00, 0x9FFF),  # Unified Ideographs
            (0x3400, 0x4DBF),  # Extension A
            (0x20000, 0x2A6DF),  # Extension B
            (0x2A700, 0x2B73F),  # Extension C
            (0x2B740, 0x2B81F),  # Extension D
            (0xF900, 0xFAFF),  # Compatibility Ideographs
            (0x2F00, 0x2FDF),  # Kangxi Radicals
        ),
    ),
    (
        "japanese",
        (
            (0x3040, 0x309F),  # Hiragana
            (0x30A0, 0x30FF),  # Katakana
            (0x31F0, 0x31FF),  # Katakana Phonetic Extensions
            (0xFF65, 0xFF9F),  # Halfwidth Katakana
        ),
    ),
    (
        "korean",
        (
            (0xAC00, 0xD7AF),  # Hangul Syllables
            (0x1100, 0x11FF),  # Hangul Jamo
            (0x3130, 0x318F),  # Compatibility Jamo
            (0xA960, 0xA97F),  # Jamo Extended-A
            (0xD7B0, 0xD7FF),  # Jamo Extended-B
        ),
    ),
    (
        "arabic",
        (
            (0x0600, 0x06FF),
            (0x0750, 0x077F),
            (0x08A0, 0x08FF),
            (0xFB50, 0xFDFF),  # Presentation Forms-A
            (0xFE70, 0xFEFF),  # Presentation Forms-B
        ),
    ),
    ("hebrew", ((0x0590, 0x05FF), (0xFB1D, 0xFB4F))),
    ("thai", ((0x0E00, 0x0E7F),)),
    (
        "math",
        (
            (0x2200, 0x22FF),  # Mathematical Operators
            (0x2A00, 0x2AFF),  # Supplemental Operators
            (0x27C0, 0x27EF),  # Misc Mathematical Symbols-A
            (0x2980, 0x29FF),  # Misc Mathematical Symbols-B
            (0x2100, 0x214F),  # Letterlike Symbols
            (0x1D400, 0x1D7FF),  # Mathematical Alphanumerics
        ),
    ),
    (
        "symbols",
        (
            (0x2300, 0x23FF),  # Misc Technical
            (0x2600, 0x26FF),  # Misc Symbols
            (0x2700, 0x27BF),  # Dingbats
            (0x2B00, 0x2BFF),  # Misc Symbols and Arrows
            (0x1F300, 0x1F5FF),  # Pictographs
            (0x1F600, 0x1F64F),  # Emoticons
            (0x1F680, 0x1F6FF),  # Transport and Map
            (0x1F900, 0x1F9FF),  # Supplemental Pictographs
        ),
    ),
    (
        "symbols2",
        (
            (0x2500, 0x257F),  # Box Drawing
            (0x2580, 0x259F),  # Block Elements
            (0x25A0, 0x25FF),  # Geometric Shapes
            (0x2190, 0x21FF),  # Arrows
            (0x2000, 0x206F),  # General Punctuation
        ),
    ),
)

CATEGORY_FONTS: dict[str, str] = {
    "cjk": "NotoSansSC",
    "japanese": "NotoSansJP",
    "korean": "NotoSansKR",
    "arabic": "NotoSansArabic",
    "hebrew": "NotoSansHebrew",
    "thai": "NotoSansThai",
    "math": "NotoSansMath",
    "symbols": "NotoSansSymbols",
    "symbols2": "NotoSansSymbols2",
}

# Priority when a glyph is missing from the primary font
UNICODE_FONT_FALLBACK_ORDER: tuple[str, ...] = (
    "NotoSans",
    "NotoSansSC",
    "NotoSansTC",
    "NotoSansJP",
    "NotoSansKR",
    "NotoSansArabic",
    "NotoSansHebrew",
    "NotoSansThai",
    "NotoSansSymbols",
    "NotoSansSymbols2",
    "NotoSansMath",
)


def classify_character(char: str) -> Optional[str]:
    """Return the script category of a character's first code point.

    Returns:
        The category name, or None for Latin and everything else the
        default font covers.
    """
    if not char:
        return None
    code_point = ord(char[0])
    for category, ranges in UNICODE_RANGES:
        for start, end in ranges:
            if start <= code_point <= end:
                return category
    return None


def get_font_for_character(char: str) -> str:
    """Return the Noto family that covers a character."""
    category = classify_character(char)
    if category is None:
        return DEFAULT_UNICODE_FONT
    return CATEGORY_FONTS.get(category, DEFAULT_UNICODE_FONT)


def get_required_fonts_for_text(text: Optional[str]) -> set[str]:
    """Collect the Noto families needed to render a string.

    The default family is always included.
    """
    required = {DEFAULT_UNICODE_FONT}
    if not text:
        return required
    for char in text:
        required.add(get_font_for_character(char))
    return required


def order_fonts(families: set[str]) -> list[str]:
    """Order families by fallback priority; unknown families go last."""
    priority = {name: i for i, name in enumerate(UNICODE_FONT_FALLBACK_ORDER)}
    return sorted(families, key=lambda name: (priority.get(name, len(priority)), name))
