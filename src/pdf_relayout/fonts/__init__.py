# SPDX-License-Identifier: Apache-2.0
"""Font sources for regeneration.

Usage:
    from pdf_relayout.fonts import get_noto_loader
    NotoFontLoader = get_noto_loader()
    async with NotoFontLoader() as loader:
        data = await loader.load("NotoSansJP")
"""

from pdf_relayout.fonts.base import FONT_WEIGHTS, FontLoadError, FontSource

__all__ = [
    "FONT_WEIGHTS",
    "FontLoadError",
    "FontSource",
    # Lazy import functions
    "get_noto_loader",
]


def get_noto_loader() -> type:
    """Get NotoFontLoader class with lazy import.

    Returns:
        NotoFontLoader class.

    Raises:
        ImportError: If aiohttp is not installed.
    """
    from pdf_relayout.fonts.noto import NotoFontLoader

    return NotoFontLoader
