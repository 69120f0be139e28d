# SPDX-License-Identifier: Apache-2.0
"""Noto font loader backed by the Google Fonts CDN."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from pdf_relayout.core.unicode_coverage import get_required_fonts_for_text, order_fonts
from pdf_relayout.fonts.base import FontLoadError

if TYPE_CHECKING:
    import aiohttp

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 10.0

# Smallest buffer that can hold an sfnt header
MIN_FONT_BYTES = 12

TRUETYPE_SIGNATURE = b"\x00\x01\x00\x00"
OPENTYPE_SIGNATURE = b"OTTO"

_GSTATIC = "https://fonts.gstatic.com/s"

FONT_CDN_URLS: dict[str, dict[str, str]] = {
    "NotoSans": {
        "regular": f"{_GSTATIC}/notosans/v36/o-0mIpQlx3QUlC5A4PNB6Ryti20_6n1iPHjcz6L1SoM-jCpoiyD9A-9a6Vc.ttf",
        "bold": f"{_GSTATIC}/notosans/v36/o-0mIpQlx3QUlC5A4PNB6Ryti20_6n1iPHjcz6L1SoM-jCpoiyAaBO9a6Vc.ttf",
        "italic": f"{_GSTATIC}/notosans/v36/o-0kIpQlx3QUlC5A4PNr4C5OaxRsfNNlKbCePevHtVtX57DGjDU1QDce.ttf",
        "boldItalic": f"{_GSTATIC}/notosans/v36/o-0kIpQlx3QUlC5A4PNr4C5OaxRsfNNlKbCePevHtVtX5wvAjDU1QDce.ttf",
    },
    "NotoSansSC": {
        "regular": f"{_GSTATIC}/notosanssc/v37/k3kCo84MPvpLmixcA63oeAL7Iqp5IZJF9bmaG9_FnYxNbPzS5HE.ttf",
        "bold": f"{_GSTATIC}/notosanssc/v37/k3kCo84MPvpLmixcA63oeAL7Iqp5IZJF9bmaG9_Fn4BKbPzS5HE.ttf",
    },
    "NotoSansTC": {
        "regular": f"{_GSTATIC}/notosanstc/v36/-nFuOG829Oofr2wohFbTp9ifNAn722rq0MXz76Cy_CpOtma3uNQ.ttf",
        "bold": f"{_GSTATIC}/notosanstc/v36/-nFuOG829Oofr2wohFbTp9ifNAn722rq0MXz76Cy_N5LtmZ3uNQ.ttf",
    },
    "NotoSansJP": {
        "regular": f"{_GSTATIC}/notosansjp/v53/-F6jfjtqLzI2JPCgQBnw7HFyzSD-AsregP8VFBEj75vY0rw-oME.ttf",
        "bold": f"{_GSTATIC}/notosansjp/v53/-F6jfjtqLzI2JPCgQBnw7HFyzSD-AsregP8VFBEj757N0rw-oME.ttf",
    },
    "NotoSansKR": {
        "regular": f"{_GSTATIC}/notosanskr/v36/PbyxFmXiEBPT4ITbgNA5Cgms3VYcOA-vvnIzzuoyeLTq8H4hfeE.ttf",
        "bold": f"{_GSTATIC}/notosanskr/v36/PbyxFmXiEBPT4ITbgNA5Cgms3VYcOA-vvnIzzuoyeObv8H4hfeE.ttf",
    },
    "NotoSansArabic": {
        "regular": f"{_GSTATIC}/notosansarabic/v18/nwpxtLGrOAZMl5nJ_wfgRg3DrWFZWsnVBJ_sS6tlqHHFlhQ5l3sQWIHPqzCfyGyvu3CBFQLaig.ttf",
        "bold": f"{_GSTATIC}/notosansarabic/v18/nwpxtLGrOAZMl5nJ_wfgRg3DrWFZWsnVBJ_sS6tlqHHFlhQ5l3sQWIHPqzCf9m-vu3CBFQLaig.ttf",
    },
    "NotoSansHebrew": {
        "regular": f"{_GSTATIC}/notosanshebrew/v46/or3HQ7v33eiDljA1IufXTtVf7V6RvEEdhQlk0LlGxCyaeNKYZC0sqk3xXGiXd4qtpYRE.ttf",
        "bold": f"{_GSTATIC}/notosanshebrew/v46/or3HQ7v33eiDljA1IufXTtVf7V6RvEEdhQlk0LlGxCyaeNKYZC0sqk3xXGiX0IitpYRE.ttf",
    },
    "NotoSansThai": {
        "regular": f"{_GSTATIC}/notosansthai/v25/iJWnBXeUZi_OHPqn4wq6hQ2_hbJ1xyN9wd43SofNWcd1MKVQt_So_9CdU5RtpzF-QRvzzXg.ttf",
        "bold": f"{_GSTATIC}/notosansthai/v25/iJWnBXeUZi_OHPqn4wq6hQ2_hbJ1xyN9wd43SofNWcd1MKVQt_So_9CdU5Rt0TZ-QRvzzXg.ttf",
    },
    "NotoSansSymbols": {
        "regular": f"{_GSTATIC}/notosanssymbols/v44/rP2up3q65FkAtHfwd-eIS2brbDN6wkUUji_oNL4B_qdpFhdQw0Q.ttf",
    },
    "NotoSansSymbols2": {
        "regular": f"{_GSTATIC}/notosanssymbols2/v25/I_uyMoGduATTei9eI8daxVHDyfisHr71ypPqfX71-AI.ttf",
    },
    "NotoSansMath": {
        "regular": f"{_GSTATIC}/notosansmath/v15/7Aump_cpkSecTWaHRlH2hyV5UHkG-V048PW0.ttf",
    },
}


def validate_font_bytes(data: bytes) -> None:
    """Check that data looks like a TrueType or OpenType font.

    Raises:
        FontLoadError: If the data is too short or the signature is unknown.
    """
    if len(data) < MIN_FONT_BYTES:
        raise FontLoadError(f"Font data too small ({len(data)} bytes)")
    signature = data[:4]
    if signature not in (TRUETYPE_SIGNATURE, OPENTYPE_SIGNATURE):
        raise FontLoadError(f"Invalid font signature {signature.hex()}")


class NotoFontLoader:
    """Loads Noto fonts on demand from the Google Fonts CDN.

    Loaded fonts are cached for the loader's lifetime and concurrent
    requests for the same font share one download. After the first
    timeout or network error the CDN is treated as unreachable and every
    further load returns None until ``reset_cdn_status`` is called.

    Example:
        async with NotoFontLoader() as loader:
            data = await loader.load("NotoSansJP", "regular")
    """

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT,
        urls: dict[str, dict[str, str]] | None = None,
    ) -> None:
        """Initialize NotoFontLoader.

        Args:
            timeout: Per-request timeout in seconds.
            urls: Family -> weight -> URL catalog (default: FONT_CDN_URLS).

        Raises:
            ImportError: If aiohttp is not installed.
        """
        # Lazy import aiohttp
        try:
            import aiohttp as _aiohttp

            self._aiohttp = _aiohttp
        except ImportError:
            raise ImportError(
                "aiohttp is required for fetching fonts. Install with: pip install aiohttp"
            ) from None

        self._timeout = timeout
        self._urls = urls if urls is not None else FONT_CDN_URLS
        self._session: aiohttp.ClientSession | None = None
        self._cache: dict[str, bytes] = {}
        self._in_flight: dict[str, asyncio.Task[Optional[bytes]]] = {}
        self.cdn_failed = False

    async def __aenter__(self) -> NotoFontLoader:
        """Enter async context manager."""
        self._session = self._aiohttp.ClientSession()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = self._aiohttp.ClientSession()
        return self._session

    @property
    def available_families(self) -> list[str]:
        """Families present in the catalog."""
        return list(self._urls)

    def get_cached(self, family: str, weight: str = "regular") -> Optional[bytes]:
        """Return already loaded font data without fetching."""
        return self._cache.get(f"{family}-{weight}")

    def reset_cdn_status(self) -> None:
        """Allow CDN requests again after a failure."""
        self.cdn_failed = False

    def clear_cache(self) -> None:
        self._cache.clear()

    async def load(self, family: str, weight: str = "regular") -> Optional[bytes]:
        """Load a font, from cache when possible.

        Args:
            family: Family name, e.g. ``"NotoSansSC"``.
            weight: ``regular``, ``bold``, ``italic`` or ``boldItalic``.

        Returns:
            Font data, or None if the font is not in the catalog or could
            not be fetched.
        """
        key = f"{family}-{weight}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load_uncached(family, weight))
            self._in_flight[key] = task

        try:
            data = await task
        finally:
            self._in_flight.pop(key, None)

        if data is not None:
            self._cache[key] = data
        return data

    async def _load_uncached(self, family: str, weight: str) -> Optional[bytes]:
        key = f"{family}-{weight}"
        if self.cdn_failed:
            logger.debug("Skipping %s: CDN marked unavailable", key)
            return None

        url = self._urls.get(family, {}).get(weight)
        if url is None:
            logger.warning("No CDN URL for font %s", key)
            return None

        logger.info("Loading font %s from CDN", key)
        try:
            data = await self._fetch(url)
        except FontLoadError as e:
            if isinstance(e.cause, (asyncio.TimeoutError, self._aiohttp.ClientConnectionError)):
                self.cdn_failed = True
                logger.warning("Font CDN unreachable, using standard fonts: %s", e)
            else:
                logger.warning("Failed to load font %s: %s", key, e)
            return None

        logger.info("Loaded font %s (%d bytes)", key, len(data))
        return data

    async def _fetch(self, url: str) -> bytes:
        """Download and validate one font file.

        Raises:
            FontLoadError: On HTTP, network, timeout or format errors.
        """
        session = await self._ensure_session()
        timeout = self._aiohttp.ClientTimeout(total=self._timeout)
        try:
            async with session.get(url, timeout=timeout) as response:
                if response.status != 200:
                    raise FontLoadError(f"HTTP {response.status} fetching {url}")
                data = await response.read()
        except asyncio.TimeoutError as e:
            raise FontLoadError(f"Timed out after {self._timeout}s fetching {url}", cause=e) from e
        except self._aiohttp.ClientError as e:
            raise FontLoadError(f"Request failed: {e}", cause=e) from e

        validate_font_bytes(data)
        return data

    async def preload_fonts_for_text(
        self, text: str, weight: str = "regular"
    ) -> dict[str, bytes]:
        """Load every family the text needs.

        Args:
            text: Text whose scripts decide the families.
            weight: Weight to load for each family.

        Returns:
            Family -> font data for the families that loaded.
        """
        families = order_fonts(get_required_fonts_for_text(text))
        results = await asyncio.gather(*(self.load(family, weight) for family in families))
        return {
            family: data for family, data in zip(families, results) if data is not None
        }
