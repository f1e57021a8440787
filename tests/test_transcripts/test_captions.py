"""Tests for the hosted caption service provider."""

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest
import respx

from scriptmill.models import TranscriptSegment
from scriptmill.transcripts.base import ProviderError
from scriptmill.transcripts.captions import CaptionServiceProvider

_URL = "https://captions.test/"


async def _fetch(video_id: str = "AAAAAAAAAAA") -> list[TranscriptSegment]:
    async with httpx.AsyncClient() as client:
        return await CaptionServiceProvider(_URL, client).fetch(video_id, "en")


class TestCaptionServiceProvider:
    @respx.mock
    def test_segment_list(self) -> None:
        route = respx.get(_URL).mock(
            return_value=httpx.Response(
                200,
                json=[
                    {"text": "hello", "start": 0.0, "duration": 1.5},
                    {"text": "world", "start": 1.5, "duration": 1.0},
                ],
            )
        )
        segments = asyncio.run(_fetch())
        assert [s.text for s in segments] == ["hello", "world"]
        assert segments[0].duration == 1.5
        params = route.calls[0].request.url.params
        assert params["video_id"] == "AAAAAAAAAAA"
        assert params["lang"] == "en"

    @respx.mock
    def test_map_keyed_by_video_id(self) -> None:
        respx.get(_URL).mock(
            return_value=httpx.Response(
                200, json={"AAAAAAAAAAA": [{"text": "keyed"}]}
            )
        )
        segments = asyncio.run(_fetch())
        assert segments[0].text == "keyed"

    @respx.mock
    def test_non_2xx_raises_provider_error(self) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(404))
        with pytest.raises(ProviderError, match="HTTP 404"):
            asyncio.run(_fetch())

    @respx.mock
    def test_network_error(self) -> None:
        respx.get(_URL).mock(side_effect=httpx.ConnectError("boom"))
        with pytest.raises(ProviderError, match="request failed"):
            asyncio.run(_fetch())

    @respx.mock
    def test_malformed_payload(self) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderError, match="not JSON"):
            asyncio.run(_fetch())

    @respx.mock
    def test_empty_segment_list(self) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(200, json=[]))
        with pytest.raises(ProviderError, match="empty"):
            asyncio.run(_fetch())

    def test_unavailable_without_url(self) -> None:
        provider = CaptionServiceProvider("", MagicMock())
        assert provider.unavailable_reason is not None
