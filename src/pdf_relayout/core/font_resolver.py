# SPDX-License-Identifier: Apache-2.0
"""Font family and style resolution.

Font names found in documents ("ABCDEF+ArialMT-BoldItalic",
"TimesNewRomanPS-ItalicMT", "SimSun") are classified into a family and
a style by ordered pattern tables, then mapped to one of the standard
fonts every PDF renderer provides.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import FontInfo, FontStyle

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_FONT = "Helvetica"

# The fourteen fonts every conforming renderer provides
STANDARD_FONTS: tuple[str, ...] = (
    "Helvetica",
    "Helvetica-Bold",
    "Helvetica-Oblique",
    "Helvetica-BoldOblique",
    "Times-Roman",
    "Times-Bold",
    "Times-Italic",
    "Times-BoldItalic",
    "Courier",
    "Courier-Bold",
    "Courier-Oblique",
    "Courier-BoldOblique",
    "Symbol",
    "ZapfDingbats",
)

# Base font -> style -> standard font name
STYLED_STANDARD_FONTS: dict[str, dict[FontStyle, str]] = {
    "helvetica": {
        FontStyle.NORMAL: "Helvetica",
        FontStyle.BOLD: "Helvetica-Bold",
        FontStyle.ITALIC: "Helvetica-Oblique",
        FontStyle.BOLD_ITALIC: "Helvetica-BoldOblique",
    },
    "times": {
        FontStyle.NORMAL: "Times-Roman",
        FontStyle.BOLD: "Times-Bold",
        FontStyle.ITALIC: "Times-Italic",
        FontStyle.BOLD_ITALIC: "Times-BoldItalic",
    },
    "courier": {
        FontStyle.NORMAL: "Courier",
        FontStyle.BOLD: "Courier-Bold",
        FontStyle.ITALIC: "Courier-Oblique",
        FontStyle.BOLD_ITALIC: "Courier-BoldOblique",
    },
}

# (pattern, family, fallback base font), first match wins
FAMILY_PATTERNS: tuple[tuple[re.Pattern[str], str, str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), family, fallback)
    for pattern, family, fallback in (
        # Sans-serif
        (r"helvetica|arial|sans[-\s]?serif|swiss|nimbus\s*sans", "helvetica", "Helvetica"),
        (r"arial|arimo", "arial", "Helvetica"),
        (r"verdana", "verdana", "Helvetica"),
        (r"tahoma", "tahoma", "Helvetica"),
        (r"trebuchet", "trebuchet", "Helvetica"),
        (r"calibri", "calibri", "Helvetica"),
        (r"segoe", "segoe", "Helvetica"),
        (r"roboto", "roboto", "Helvetica"),
        (r"open\s*sans", "opensans", "Helvetica"),
        (r"lato", "lato", "Helvetica"),
        # Serif
        (r"times|times\s*new\s*roman|serif|roman|nimbus\s*roman", "times", "Times-Roman"),
        (r"georgia", "georgia", "Times-Roman"),
        (r"palatino", "palatino", "Times-Roman"),
        (r"garamond", "garamond", "Times-Roman"),
        (r"cambria", "cambria", "Times-Roman"),
        (r"bookman", "bookman", "Times-Roman"),
        # Monospace
        (r"courier|mono|consolas|menlo|monaco|source\s*code|fira\s*code", "courier", "Courier"),
        # CJK needs an embedded font; the standard fallback only keeps metrics sane
        (
            r"simsun|simhei|mingliu|heiti|songti|kaiti|fangsong|ms\s*(mincho|gothic)"
            r"|noto\s*(sans|serif)\s*(cjk|sc|tc|jp|kr)",
            "cjk",
            "Helvetica",
        ),
    )
)

BOLD_PATTERN = re.compile(
    r"bold|black|heavy|semibold|demibold|extrabold|ultrabold"
    r"|\bbd\b|\bw[5-9]\b|\bw[1-9][0-9]+\b",
    re.IGNORECASE,
)
ITALIC_PATTERN = re.compile(r"italic|oblique|slanted|inclined|\bit\b|\bital\b", re.IGNORECASE)

_SEPARATORS = re.compile(r"[-\s]")


def normalize_font_name(name: str) -> str:
    """Lowercase a font name and drop hyphens and whitespace."""
    return _SEPARATORS.sub("", name).lower()


_NORMALIZED_STANDARD = {normalize_font_name(name): name for name in STANDARD_FONTS}


def canonical_standard_font(name: Optional[str]) -> Optional[str]:
    """Return the canonical spelling of a standard font name, or None."""
    if not name:
        return None
    if name in STANDARD_FONTS:
        return name
    return _NORMALIZED_STANDARD.get(normalize_font_name(name))


def is_standard_font(name: Optional[str]) -> bool:
    """Check whether the name is one of the fourteen standard fonts.

    The comparison ignores case, hyphens and whitespace.
    """
    return canonical_standard_font(name) is not None


def detect_font_family(name: Optional[str]) -> Optional[str]:
    """Return the family key of the first matching pattern, or None."""
    if not name:
        return None
    for pattern, family, _fallback in FAMILY_PATTERNS:
        if pattern.search(name):
            return family
    return None


def map_font_style(name: Optional[str]) -> FontStyle:
    """Detect bold and italic independently from a font name."""
    if not name:
        return FontStyle.NORMAL
    return FontStyle.from_flags(
        is_bold=BOLD_PATTERN.search(name) is not None,
        is_italic=ITALIC_PATTERN.search(name) is not None,
    )


def get_styled_font_name(base_font: str, style: FontStyle) -> str:
    """Apply a style to a standard base font.

    ``"Times-Roman"`` with BOLD gives ``"Times-Bold"``. Bases outside
    the Helvetica, Times and Courier families are returned unchanged.
    """
    family = base_font.split("-", 1)[0].lower()
    styles = STYLED_STANDARD_FONTS.get(family)
    if styles is None:
        return base_font
    return styles.get(style, styles[FontStyle.NORMAL])


def _family_fallback(family: str) -> str:
    for _pattern, key, fallback in FAMILY_PATTERNS:
        if key == family:
            return fallback
    return DEFAULT_FALLBACK_FONT


def get_fallback_font(name: Optional[str]) -> str:
    """Map any font name to a standard font of matching family and style.

    Standard names pass through in their canonical spelling. Unknown
    families fall back to Helvetica.
    """
    if not name:
        return DEFAULT_FALLBACK_FONT

    canonical = canonical_standard_font(name)
    if canonical is not None:
        return canonical

    family = detect_font_family(name)
    if family is None:
        return DEFAULT_FALLBACK_FONT

    return get_styled_font_name(_family_fallback(family), map_font_style(name))


class FontResolver:
    """Builds ``FontInfo`` records, caching them per font id.

    Example:
        >>> resolver = FontResolver()
        >>> resolver.font_info_from_name("Arial-BoldMT", "F1").fallback_font
        'Helvetica-Bold'
    """

    def __init__(self) -> None:
        self._cache: dict[str, FontInfo] = {}

    def font_info_from_name(self, name: str, font_id: str = "") -> FontInfo:
        """Create (or return the cached) ``FontInfo`` for a font name."""
        key = font_id or name
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        info = FontInfo(
            name=name,
            style=map_font_style(name),
            is_embedded=False,
            fallback_font=get_fallback_font(name),
            id=font_id,
        )
        self._cache[key] = info
        return info

    def parse_font_reference(self, internal_id: str, display_name: str = "") -> FontInfo:
        """Create ``FontInfo`` for a parser-internal font reference.

        Without a display name the style is normal and the fallback is
        Helvetica.
        """
        if not display_name:
            return FontInfo(
                name="Unknown",
                style=FontStyle.NORMAL,
                fallback_font=DEFAULT_FALLBACK_FONT,
                id=internal_id,
            )
        return FontInfo(
            name=display_name,
            style=map_font_style(display_name),
            is_embedded=False,
            fallback_font=get_fallback_font(display_name),
            id=internal_id,
        )

    def clear_cache(self) -> None:
        self._cache.clear()
