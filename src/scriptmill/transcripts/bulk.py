"""Bulk transcript API provider."""

import asyncio
import logging

import httpx

from scriptmill.models import TranscriptSegment
from scriptmill.transcripts.base import (
    ProviderError,
    TranscriptProvider,
    parse_segments,
)

logger = logging.getLogger(__name__)


class BulkTranscriptProvider(TranscriptProvider):
    """Fetch transcripts for a whole batch in a single authorized POST.

    :meth:`prepare` records the batch. The first :meth:`fetch` issues the
    one call for every recorded ID, and each fetch looks its video up in
    the shared, read-only response, so the chain sees what looks like one
    independent call per video.
    """

    name = "bulk"

    def __init__(
        self,
        url: str,
        token: str,
        client: httpx.AsyncClient,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._token = token
        self._client = client
        self.timeout = timeout
        self._video_ids: list[str] = []
        self._batch: asyncio.Task[dict[str, object]] | None = None

    @property
    def unavailable_reason(self) -> str | None:
        if not self._token:
            return "missing transcript token"
        if not self._url:
            return "no bulk transcript URL configured"
        return None

    async def prepare(self, video_ids: list[str]) -> None:
        self._video_ids = list(video_ids)

    async def aclose(self) -> None:
        if self._batch is not None and not self._batch.done():
            self._batch.cancel()

    async def _fetch_batch(self, video_ids: list[str]) -> dict[str, object]:
        logger.info("Requesting %d transcripts from bulk API", len(video_ids))
        try:
            response = await self._client.post(
                self._url,
                headers={"Authorization": f"Basic {self._token}"},
                json={"ids": video_ids},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            msg = f"request failed: {e!r}"
            raise ProviderError(msg) from e

        if response.status_code >= 400:
            msg = f"HTTP {response.status_code}: {response.text[:200]}"
            raise ProviderError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            msg = "response is not JSON"
            raise ProviderError(msg) from e
        return _index_payload(payload)

    async def fetch(
        self, video_id: str, language: str = "en"
    ) -> list[TranscriptSegment]:
        if self._batch is None:
            video_ids = self._video_ids or [video_id]
            self._batch = asyncio.ensure_future(self._fetch_batch(video_ids))
        # shield keeps one video's timeout from cancelling the shared call
        results = await asyncio.shield(self._batch)

        entry = results.get(video_id)
        if entry is None:
            msg = "no transcript for this video"
            raise ProviderError(msg)

        if isinstance(entry, dict):
            body = entry.get("text") or entry.get("transcript")
            if not body:
                tracks = entry.get("tracks")
                for track in tracks if isinstance(tracks, list) else []:
                    if isinstance(track, dict) and track.get("transcript"):
                        body = track["transcript"]
                        break
        else:
            body = entry

        segments = parse_segments(body) if body else []
        if not segments:
            msg = "empty transcript"
            raise ProviderError(msg)
        return segments


def _index_payload(payload: object) -> dict[str, object]:
    """Key the response by video ID.

    The API answers either with an object keyed by ID or with a list of
    objects carrying an ``id`` field.
    """
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, list):
        return {
            str(item["id"]): item
            for item in payload
            if isinstance(item, dict) and "id" in item
        }
    msg = f"unexpected payload type {type(payload).__name__}"
    raise ProviderError(msg)
