"""Tests for the audio download plus speech-to-text provider."""

import asyncio
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import httpx
import pytest

from scriptmill.models import TranscriptSegment
from scriptmill.transcription.base import Transcriber
from scriptmill.transcripts.audio import AudioTranscriptionProvider
from scriptmill.transcripts.base import ProviderError


class _FakeTranscriber(Transcriber):
    def __init__(
        self,
        text: str = "spoken words",
        error: Exception | None = None,
        unavailable_reason: str | None = None,
    ) -> None:
        self._text = text
        self._error = error
        self.unavailable_reason = unavailable_reason
        self.seen: list[Path] = []

    async def transcribe(
        self, audio_path: Path, language: str = "en"
    ) -> tuple[str, list[TranscriptSegment]]:
        self.seen.append(audio_path)
        if self._error:
            raise self._error
        return self._text, []


def _fake_download(video_id: str, output_dir: Path) -> Path:
    path = output_dir / f"{video_id}.webm"
    path.write_bytes(b"audio")
    return path


class TestAudioTranscriptionProvider:
    def test_unavailable_follows_transcriber(self) -> None:
        provider = AudioTranscriptionProvider(
            _FakeTranscriber(unavailable_reason="missing key")
        )
        assert provider.unavailable_reason == "missing key"

    @patch("scriptmill.transcripts.audio.download_audio", side_effect=_fake_download)
    def test_download_then_transcribe(self, _mock_download: object) -> None:
        transcriber = _FakeTranscriber(text="spoken words")
        provider = AudioTranscriptionProvider(transcriber)

        segments = asyncio.run(provider.fetch("AAAAAAAAAAA"))

        assert [s.text for s in segments] == ["spoken words"]
        assert transcriber.seen[0].name == "AAAAAAAAAAA.webm"
        # temporary audio is removed afterwards
        assert not transcriber.seen[0].exists()

    @patch("scriptmill.transcripts.audio.download_audio")
    def test_download_failure(self, mock_download: MagicMock) -> None:
        mock_download.side_effect = subprocess.CalledProcessError(
            1, ["yt-dlp"], stderr=b"ERROR: Video unavailable\n"
        )
        provider = AudioTranscriptionProvider(_FakeTranscriber())
        with pytest.raises(ProviderError, match="Video unavailable"):
            asyncio.run(provider.fetch("AAAAAAAAAAA"))

    @patch("scriptmill.transcripts.audio.download_audio", side_effect=_fake_download)
    def test_transcription_failure(self, _mock_download: object) -> None:
        request = httpx.Request("POST", "https://stt.test")
        error = httpx.HTTPStatusError(
            "server error", request=request, response=httpx.Response(500)
        )
        provider = AudioTranscriptionProvider(_FakeTranscriber(error=error))
        with pytest.raises(ProviderError, match="speech-to-text failed"):
            asyncio.run(provider.fetch("AAAAAAAAAAA"))

    @patch("scriptmill.transcripts.audio.download_audio", side_effect=_fake_download)
    def test_local_decoder_failure(self, _mock_download: object) -> None:
        error = RuntimeError("Failed to load audio: ffmpeg error")
        provider = AudioTranscriptionProvider(_FakeTranscriber(error=error))
        with pytest.raises(ProviderError, match="ffmpeg error"):
            asyncio.run(provider.fetch("AAAAAAAAAAA"))

    @patch("scriptmill.transcripts.audio.download_audio", side_effect=_fake_download)
    def test_blank_transcription(self, _mock_download: object) -> None:
        provider = AudioTranscriptionProvider(_FakeTranscriber(text="   "))
        with pytest.raises(ProviderError, match="no text"):
            asyncio.run(provider.fetch("AAAAAAAAAAA"))
