# SPDX-License-Identifier: Apache-2.0
"""Tests for the Noto font loader."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from pdf_relayout.fonts import FontLoadError, FontSource, get_noto_loader
from pdf_relayout.fonts.noto import FONT_CDN_URLS, validate_font_bytes

FONT_DATA = b"\x00\x01\x00\x00" + b"\x00" * 60
TEST_URLS = {"NotoSans": {"regular": "https://fonts.example/NotoSans-Regular.ttf"}}


def _mock_session(status: int = 200, data: bytes = FONT_DATA) -> MagicMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.read = AsyncMock(return_value=data)

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=AsyncMock())
    mock_session.get.return_value.__aenter__ = AsyncMock(return_value=mock_response)
    mock_session.get.return_value.__aexit__ = AsyncMock(return_value=None)
    mock_session.close = AsyncMock()
    return mock_session


def _loader(session: MagicMock) -> Any:
    NotoFontLoader = get_noto_loader()
    loader = NotoFontLoader(urls=TEST_URLS)
    loader._session = session
    return loader


class TestValidateFontBytes:
    """Tests for validate_font_bytes()."""

    def test_truetype_and_opentype(self) -> None:
        """Both sfnt signatures are accepted."""
        validate_font_bytes(FONT_DATA)
        validate_font_bytes(b"OTTO" + b"\x00" * 20)

    def test_too_small(self) -> None:
        """Truncated data is rejected."""
        with pytest.raises(FontLoadError, match="too small"):
            validate_font_bytes(b"\x00\x01")

    def test_bad_signature(self) -> None:
        """HTML error pages are not fonts."""
        with pytest.raises(FontLoadError, match="signature"):
            validate_font_bytes(b"<!DOCTYPE html><html></html>")


class TestNotoFontLoader:
    """Unit tests for NotoFontLoader (mocked)."""

    def test_implements_protocol(self) -> None:
        """NotoFontLoader should implement FontSource protocol."""
        NotoFontLoader = get_noto_loader()
        assert isinstance(NotoFontLoader(), FontSource)

    def test_catalog(self) -> None:
        """Every family has at least a regular weight."""
        NotoFontLoader = get_noto_loader()
        loader = NotoFontLoader()
        assert "NotoSansJP" in loader.available_families
        assert all("regular" in weights for weights in FONT_CDN_URLS.values())

    @pytest.mark.asyncio
    async def test_context_manager(self) -> None:
        """Entering creates a session and exiting closes it."""
        NotoFontLoader = get_noto_loader()
        async with NotoFontLoader() as loader:
            assert loader._session is not None
        assert loader._session is None

    @pytest.mark.asyncio
    async def test_load_and_cache(self) -> None:
        """Fetched fonts are cached per family and weight."""
        session = _mock_session()
        loader = _loader(session)

        first = await loader.load("NotoSans")
        second = await loader.load("NotoSans", "regular")

        assert first == FONT_DATA
        assert second == FONT_DATA
        assert session.get.call_count == 1
        assert loader.get_cached("NotoSans") == FONT_DATA

        loader.clear_cache()
        assert loader.get_cached("NotoSans") is None

    @pytest.mark.asyncio
    async def test_concurrent_loads_share_request(self) -> None:
        """Concurrent requests for one font share one download."""
        session = _mock_session()
        loader = _loader(session)

        results = await asyncio.gather(loader.load("NotoSans"), loader.load("NotoSans"))

        assert results == [FONT_DATA, FONT_DATA]
        assert session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_unknown_family(self) -> None:
        """Families outside the catalog return None without a request."""
        session = _mock_session()
        loader = _loader(session)

        assert await loader.load("NotoSansKlingon") is None
        assert await loader.load("NotoSans", "bold") is None
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        """HTTP errors return None but keep the CDN usable."""
        loader = _loader(_mock_session(status=404))

        assert await loader.load("NotoSans") is None
        assert loader.cdn_failed is False

    @pytest.mark.asyncio
    async def test_invalid_font_data(self) -> None:
        """Responses that are not fonts return None."""
        loader = _loader(_mock_session(data=b"<html>Not found</html>"))

        assert await loader.load("NotoSans") is None
        assert loader.get_cached("NotoSans") is None

    @pytest.mark.asyncio
    async def test_timeout_marks_cdn_failed(self) -> None:
        """A timeout disables further requests until reset."""
        session = _mock_session()
        session.get.side_effect = asyncio.TimeoutError()
        loader = _loader(session)

        assert await loader.load("NotoSans") is None
        assert loader.cdn_failed is True

        session.get.side_effect = None
        assert await loader.load("NotoSans") is None
        assert session.get.call_count == 1

        loader.reset_cdn_status()
        assert await loader.load("NotoSans") == FONT_DATA

    @pytest.mark.asyncio
    async def test_connection_error_marks_cdn_failed(self) -> None:
        """Connection errors disable the CDN too."""
        session = _mock_session()
        session.get.side_effect = aiohttp.ClientConnectionError("refused")
        loader = _loader(session)

        assert await loader.load("NotoSans") is None
        assert loader.cdn_failed is True

    @pytest.mark.asyncio
    async def test_fetch_wraps_client_errors(self) -> None:
        """Client errors surface from _fetch as FontLoadError with a cause."""
        session = _mock_session()
        session.get.side_effect = aiohttp.ClientPayloadError("truncated")
        loader = _loader(session)

        with pytest.raises(FontLoadError) as exc_info:
            await loader._fetch(TEST_URLS["NotoSans"]["regular"])

        assert isinstance(exc_info.value.cause, aiohttp.ClientPayloadError)
        assert exc_info.value.stage == "fonts"

    @pytest.mark.asyncio
    async def test_preload_fonts_for_text(self) -> None:
        """Preloading returns only the families that loaded."""
        loader = _loader(_mock_session())

        fonts = await loader.preload_fonts_for_text("Hello 世界")

        assert fonts == {"NotoSans": FONT_DATA}
