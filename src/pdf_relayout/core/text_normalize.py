# SPDX-License-Identifier: Apache-2.0
"""Text normalization before drawing.

Substituted text often carries Unicode spacing and typographic
punctuation that the standard fonts (WinAnsi encoded) cannot draw.
"""

from __future__ import annotations

import re

# Unicode spaces -> ASCII space, zero-width characters -> removed
UNICODE_SPACE_MAP: dict[int, str] = {
    0x00A0: " ",  # no-break space
    0x1680: " ",  # ogham space mark
    0x2000: " ",  # en quad
    0x2001: " ",  # em quad
    0x2002: " ",  # en space
    0x2003: " ",  # em space
    0x2004: " ",  # three-per-em space
    0x2005: " ",  # four-per-em space
    0x2006: " ",  # six-per-em space
    0x2007: " ",  # figure space
    0x2008: " ",  # punctuation space
    0x2009: " ",  # thin space
    0x200A: " ",  # hair space
    0x202F: " ",  # narrow no-break space
    0x205F: " ",  # medium mathematical space
    0x3000: " ",  # ideographic space
    0x200B: "",  # zero-width space
    0x2060: "",  # word joiner
    0xFEFF: "",  # zero-width no-break space (BOM)
}

# Characters outside WinAnsi with a close printable equivalent
WINANSI_REPLACEMENTS: dict[int, str] = {
    0x25AA: "*",  # small black square
    0x25AB: "*",  # small white square
    0x2022: "*",  # bullet
    0x2023: ">",  # triangular bullet
    0x2043: "-",  # hyphen bullet
    0x25E6: "o",  # white bullet
    0x0130: "I",  # dotted capital I
    0x0131: "i",  # dotless i
    0x2013: "-",  # en dash
    0x2014: "-",  # em dash
    0x2018: "'",
    0x2019: "'",
    0x201C: '"',
    0x201D: '"',
    0x2026: "...",
    0x00B7: ".",  # middle dot
}

_NOT_WINANSI_SAFE = re.compile(r"[^\x20-\x7E\xA0-\xFF\n\r\t]")


def normalize_unicode_spaces(text: str) -> str:
    """Replace Unicode spaces with ASCII spaces and drop zero-width characters."""
    if not text:
        return text
    return text.translate(UNICODE_SPACE_MAP)


def sanitize_for_winansi(text: str) -> str:
    """Reduce text to what the standard fonts can encode.

    Spaces are normalized first, then common typographic characters are
    replaced, and anything left outside printable ASCII and Latin-1 is
    removed.
    """
    if not text:
        return text
    result = normalize_unicode_spaces(text).translate(WINANSI_REPLACEMENTS)
    return _NOT_WINANSI_SAFE.sub("", result)
