"""Abstract base class for speech-to-text backends."""

from abc import ABC, abstractmethod
from pathlib import Path

from scriptmill.models import TranscriptSegment


class Transcriber(ABC):
    """Base class for audio-to-text transcription backends."""

    #: Why the backend cannot be used, or ``None`` when it is ready.
    unavailable_reason: str | None = None

    @abstractmethod
    async def transcribe(
        self, audio_path: Path, language: str = "en"
    ) -> tuple[str, list[TranscriptSegment]]:
        """Transcribe an audio file.

        Args:
            audio_path: Path to the audio file.
            language: Language code or "auto" for auto-detection.

        Returns:
            Tuple of (full_text, segments).
        """
        ...
