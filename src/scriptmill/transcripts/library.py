"""Caption scraping through youtube-transcript-api."""

import asyncio
import logging

from scriptmill.models import TranscriptSegment
from scriptmill.transcripts.base import ProviderError, TranscriptProvider

logger = logging.getLogger(__name__)


class YouTubeCaptionsProvider(TranscriptProvider):
    """Read the captions YouTube shows in the player.

    The library is synchronous, so each fetch runs in a worker thread.
    """

    name = "library"

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    def _fetch_blocking(
        self, video_id: str, language: str
    ) -> list[TranscriptSegment]:
        from youtube_transcript_api import YouTubeTranscriptApi

        api = YouTubeTranscriptApi()
        languages = [language] if language == "en" else [language, "en"]
        transcript_data = api.fetch(video_id, languages=languages)
        return [
            TranscriptSegment(
                text=entry.text,
                start=entry.start,
                duration=entry.duration,
            )
            for entry in transcript_data
        ]

    async def fetch(
        self, video_id: str, language: str = "en"
    ) -> list[TranscriptSegment]:
        try:
            segments = await asyncio.to_thread(
                self._fetch_blocking, video_id, language
            )
        except Exception as e:
            logger.info("No captions available for %s: %s", video_id, type(e).__name__)
            msg = f"{type(e).__name__}: {e}".splitlines()[0]
            raise ProviderError(msg) from e

        if not segments:
            msg = "empty segment list"
            raise ProviderError(msg)
        return segments
