"""Hosted caption service provider."""

import logging

import httpx

from scriptmill.models import TranscriptSegment
from scriptmill.transcripts.base import (
    ProviderError,
    TranscriptProvider,
    parse_segments,
)

logger = logging.getLogger(__name__)


class CaptionServiceProvider(TranscriptProvider):
    """One GET per video against a hosted captions endpoint.

    The endpoint is called as ``<url>?video_id=<id>&lang=<lang>`` and may
    answer with a segment list, a ``{"transcript": [...]}`` wrapper or a
    map keyed by video ID.
    """

    name = "captions"

    def __init__(
        self, url: str, client: httpx.AsyncClient, timeout: float = 30.0
    ) -> None:
        self._url = url
        self._client = client
        self.timeout = timeout

    @property
    def unavailable_reason(self) -> str | None:
        return None if self._url else "no caption service URL configured"

    async def fetch(
        self, video_id: str, language: str = "en"
    ) -> list[TranscriptSegment]:
        try:
            response = await self._client.get(
                self._url,
                params={"video_id": video_id, "lang": language},
            )
        except httpx.HTTPError as e:
            msg = f"request failed: {e!r}"
            raise ProviderError(msg) from e

        if response.status_code >= 400:
            msg = f"HTTP {response.status_code}"
            raise ProviderError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            msg = "response is not JSON"
            raise ProviderError(msg) from e

        if isinstance(payload, dict):
            if video_id in payload:
                payload = payload[video_id]
            elif "transcript" in payload:
                payload = payload["transcript"]
            else:
                msg = "no transcript in response"
                raise ProviderError(msg)

        segments = parse_segments(payload)
        if not segments:
            msg = "empty segment list"
            raise ProviderError(msg)
        logger.debug(
            "Caption service returned %d segments for %s", len(segments), video_id
        )
        return segments
