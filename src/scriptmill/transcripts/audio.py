"""Audio download plus speech-to-text provider."""

import asyncio
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

import httpx

from scriptmill.models import TranscriptSegment
from scriptmill.sources.youtube import download_audio
from scriptmill.transcription.base import Transcriber
from scriptmill.transcripts.base import ProviderError, TranscriptProvider

logger = logging.getLogger(__name__)


class AudioTranscriptionProvider(TranscriptProvider):
    """Download the audio track with yt-dlp and transcribe it.

    This is the slowest and most expensive provider, so it belongs at the
    end of the chain.
    """

    name = "audio"

    def __init__(self, transcriber: Transcriber, timeout: float = 600.0) -> None:
        self._transcriber = transcriber
        self.timeout = timeout

    @property
    def unavailable_reason(self) -> str | None:
        return self._transcriber.unavailable_reason

    async def fetch(
        self, video_id: str, language: str = "en"
    ) -> list[TranscriptSegment]:
        work_dir = Path(tempfile.mkdtemp(prefix="scriptmill_audio_"))
        try:
            try:
                audio_path = await asyncio.to_thread(
                    download_audio, video_id, work_dir
                )
            except subprocess.CalledProcessError as e:
                stderr = (e.stderr or b"").decode(errors="replace").strip()
                msg = f"yt-dlp failed: {stderr.splitlines()[-1] if stderr else e}"
                raise ProviderError(msg) from e
            except OSError as e:
                msg = f"audio download failed: {e}"
                raise ProviderError(msg) from e

            logger.info("Transcribing audio for %s", video_id)
            try:
                text, segments = await self._transcriber.transcribe(
                    audio_path, language=language
                )
            except (httpx.HTTPError, subprocess.CalledProcessError) as e:
                msg = f"speech-to-text failed: {e!r}"
                raise ProviderError(msg) from e
            except (
                ImportError,
                OSError,
                RuntimeError,
                ValueError,
                KeyError,
                TypeError,
                AttributeError,
            ) as e:
                msg = f"speech-to-text failed: {e}"
                raise ProviderError(msg) from e
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

        if not segments and text.strip():
            segments = [TranscriptSegment(text=text)]
        if not segments:
            msg = "speech-to-text returned no text"
            raise ProviderError(msg)
        return segments
