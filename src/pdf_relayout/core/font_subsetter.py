# SPDX-License-Identifier: Apache-2.0
"""Font subsetting using fonttools.

Fetched Noto fonts are large (the CJK families run to several
megabytes); embedding only the glyphs the substituted text uses keeps
regenerated PDFs small.
"""

from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from fontTools.subset import Options, Subsetter  # type: ignore[import-untyped]
from fontTools.ttLib import TTFont  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Punctuation and digits kept in every subset
SAFETY_MARGIN_CHARS = " .,;:!?'\"-()[]0123456789…"


@dataclass
class SubsetConfig:
    """Font subsetting configuration."""

    include_common_punctuation: bool = True


class FontSubsetter:
    """In-memory font subsetter with a cache keyed by font and characters.

    Example:
        subsetter = FontSubsetter()
        subset = subsetter.subset_for_texts(noto_bytes, ["你好", "世界"])
    """

    def __init__(self, config: Optional[SubsetConfig] = None) -> None:
        """Initialize the font subsetter.

        Args:
            config: Subsetting configuration. Uses defaults if None.
        """
        self._config = config or SubsetConfig()
        self._cache: dict[str, bytes] = {}

    def subset_for_texts(
        self,
        font_bytes: bytes,
        texts: Iterable[str],
    ) -> Optional[bytes]:
        """Create a subset font containing only characters used in texts.

        Args:
            font_bytes: TrueType/OpenType font data.
            texts: Texts to extract characters from.

        Returns:
            Subset font data, or None if there is nothing to keep or
            subsetting failed.
        """
        chars: set[str] = set()
        for text in texts:
            if text:
                chars.update(text)

        if not chars:
            return None

        if self._config.include_common_punctuation:
            chars.update(SAFETY_MARGIN_CHARS)

        cache_key = self._get_cache_key(font_bytes, chars)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            font = TTFont(io.BytesIO(font_bytes))

            options = Options()
            options.layout_features = ["*"]
            options.name_IDs = ["*"]
            options.notdef_glyph = True
            options.notdef_outline = True

            subsetter = Subsetter(options=options)
            subsetter.populate(text="".join(chars))
            subsetter.subset(font)

            output = io.BytesIO()
            font.save(output)
            font.close()
        except Exception as e:
            logger.warning("Font subsetting failed: %s", e)
            return None

        subset = output.getvalue()
        self._cache[cache_key] = subset
        logger.info(
            "Created subset font: %d chars, %d -> %d bytes",
            len(chars),
            len(font_bytes),
            len(subset),
        )
        return subset

    @staticmethod
    def _get_cache_key(font_bytes: bytes, chars: set[str]) -> str:
        digest = hashlib.sha256(font_bytes)
        digest.update("".join(sorted(chars)).encode("utf-8"))
        return digest.hexdigest()[:16]

    def clear(self) -> None:
        self._cache.clear()
