"""Local Whisper model transcription backend."""

import asyncio
import logging
from pathlib import Path

from scriptmill.models import TranscriptSegment
from scriptmill.transcription.base import Transcriber

logger = logging.getLogger(__name__)


class WhisperLocalTranscriber(Transcriber):
    """Transcription using a locally-loaded Whisper model."""

    def __init__(self, model_name: str = "base") -> None:
        self._model_name = model_name
        self._model: object | None = None

    def _load_model(self) -> object:
        """Lazy-load the Whisper model."""
        if self._model is None:
            try:
                import whisper
            except ImportError:
                msg = (
                    "openai-whisper is not installed. "
                    "Install it with: pip install 'scriptmill[whisper]'"
                )
                raise ImportError(msg)  # noqa: B904

            logger.info("Loading Whisper model: %s", self._model_name)
            self._model = whisper.load_model(self._model_name)
        return self._model

    def _transcribe_blocking(
        self, audio_path: Path, language: str
    ) -> tuple[str, list[TranscriptSegment]]:
        model = self._load_model()

        options: dict[str, object] = {}
        if language != "auto":
            options["language"] = language

        result: dict[str, object] = model.transcribe(  # type: ignore[attr-defined]
            str(audio_path), **options
        )

        segments: list[TranscriptSegment] = []
        raw_segments: list[dict[str, object]] = result.get(  # type: ignore[assignment]
            "segments", []
        )
        for seg in raw_segments:
            start = float(seg["start"])  # type: ignore[arg-type]
            segments.append(
                TranscriptSegment(
                    text=str(seg["text"]).strip(),
                    start=start,
                    duration=float(seg["end"]) - start,  # type: ignore[arg-type]
                )
            )

        full_text = str(result.get("text", "")).strip()
        logger.info(
            "Transcribed %s: %d segments, %d characters",
            audio_path.name,
            len(segments),
            len(full_text),
        )
        return full_text, segments

    async def transcribe(
        self, audio_path: Path, language: str = "en"
    ) -> tuple[str, list[TranscriptSegment]]:
        """Transcribe audio with the local model in a worker thread."""
        return await asyncio.to_thread(
            self._transcribe_blocking, audio_path, language
        )
