# SPDX-License-Identifier: Apache-2.0
"""Font source protocol."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from pdf_relayout.pipeline.errors import FontLoadError

__all__ = ["FONT_WEIGHTS", "FontLoadError", "FontSource"]

FONT_WEIGHTS = ("regular", "bold", "italic", "boldItalic")


@runtime_checkable
class FontSource(Protocol):
    """Protocol for font catalogs used during regeneration.

    A source returns raw TrueType/OpenType data for a family and weight,
    or None when it has nothing to offer. Sources report their own
    failures as None; callers fall back to the standard fonts.
    """

    async def load(self, family: str, weight: str = "regular") -> Optional[bytes]:
        """Load font data.

        Args:
            family: Family name, e.g. ``"NotoSansSC"``.
            weight: One of ``FONT_WEIGHTS``.

        Returns:
            Font file contents, or None if unavailable.
        """
        ...
