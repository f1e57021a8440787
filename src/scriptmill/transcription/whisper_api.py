"""Whisper HTTP API transcription backend."""

import asyncio
import logging
import subprocess
import tempfile
from pathlib import Path

import httpx

from scriptmill.config import WhisperConfig
from scriptmill.models import TranscriptSegment
from scriptmill.transcription.base import Transcriber

logger = logging.getLogger(__name__)

_MAX_FILE_SIZE = 25 * 1024 * 1024  # 25MB API limit
_CHUNK_SECONDS = 600
_UPLOAD_TIMEOUT = 600


class WhisperAPITranscriber(Transcriber):
    """Transcription through an OpenAI-compatible ``audio/transcriptions`` API."""

    def __init__(
        self,
        config: WhisperConfig,
        client: httpx.AsyncClient,
    ) -> None:
        self._config = config
        self._client = client
        if not config.api_key:
            self.unavailable_reason = "missing speech-to-text API key"

    async def transcribe(
        self, audio_path: Path, language: str = "en"
    ) -> tuple[str, list[TranscriptSegment]]:
        """Transcribe audio using the Whisper API.

        Files over the API upload limit are split with ffmpeg first.
        """
        if audio_path.stat().st_size > _MAX_FILE_SIZE:
            return await self._transcribe_chunked(audio_path, language)
        return await self._transcribe_single(audio_path, language)

    async def _transcribe_single(
        self, audio_path: Path, language: str
    ) -> tuple[str, list[TranscriptSegment]]:
        """Upload the raw audio bytes in one request."""
        headers = {"Authorization": f"Bearer {self._config.api_key}"}

        data: dict[str, str] = {
            "model": self._config.model,
            "response_format": "verbose_json",
        }
        if language != "auto":
            data["language"] = language

        audio_bytes = await asyncio.to_thread(audio_path.read_bytes)
        files = {"file": (audio_path.name, audio_bytes, "application/octet-stream")}
        response = await self._client.post(
            self._config.api_url,
            headers=headers,
            data=data,
            files=files,
            timeout=_UPLOAD_TIMEOUT,
        )
        response.raise_for_status()

        result = response.json()
        segments = self._parse_segments(result)
        full_text = str(result.get("text", "")).strip()
        logger.info(
            "Transcribed %s: %d segments, %d characters",
            audio_path.name,
            len(segments),
            len(full_text),
        )
        return full_text, segments

    async def _transcribe_chunked(
        self, audio_path: Path, language: str
    ) -> tuple[str, list[TranscriptSegment]]:
        """Transcribe a large file by splitting it into ten-minute chunks."""
        chunk_dir = Path(
            tempfile.mkdtemp(prefix="scriptmill_chunks_", dir=audio_path.parent)
        )
        suffix = audio_path.suffix or ".m4a"

        await asyncio.to_thread(
            subprocess.run,
            [
                "ffmpeg",
                "-i",
                str(audio_path),
                "-f",
                "segment",
                "-segment_time",
                str(_CHUNK_SECONDS),
                "-c",
                "copy",
                str(chunk_dir / f"chunk_%03d{suffix}"),
            ],
            check=True,
            capture_output=True,
        )

        all_text: list[str] = []
        all_segments: list[TranscriptSegment] = []
        time_offset = 0.0

        for chunk_path in sorted(chunk_dir.glob(f"chunk_*{suffix}")):
            text, segments = await self._transcribe_single(chunk_path, language)
            all_text.append(text)

            for seg in segments:
                all_segments.append(
                    TranscriptSegment(
                        text=seg.text,
                        start=(seg.start or 0.0) + time_offset,
                        duration=seg.duration,
                    )
                )
            time_offset += _CHUNK_SECONDS

        return " ".join(all_text), all_segments

    @staticmethod
    def _parse_segments(
        result: dict[str, object],
    ) -> list[TranscriptSegment]:
        """Parse segments from the verbose JSON response."""
        segments: list[TranscriptSegment] = []
        raw_segments: list[dict[str, object]] = result.get(  # type: ignore[assignment]
            "segments", []
        )
        for seg in raw_segments:
            start = float(seg["start"])  # type: ignore[arg-type]
            end = float(seg["end"])  # type: ignore[arg-type]
            segments.append(
                TranscriptSegment(
                    text=str(seg["text"]).strip(),
                    start=start,
                    duration=end - start,
                )
            )
        return segments
