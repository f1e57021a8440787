"""Provider fallback chain: one transcript per video, never an exception."""

import asyncio
import logging

import httpx

from scriptmill.config import ScriptmillConfig
from scriptmill.models import Transcript, VideoReference
from scriptmill.transcription.base import Transcriber
from scriptmill.transcripts.audio import AudioTranscriptionProvider
from scriptmill.transcripts.base import (
    ProviderError,
    TranscriptProvider,
    segments_to_text,
)
from scriptmill.transcripts.bulk import BulkTranscriptProvider
from scriptmill.transcripts.captions import CaptionServiceProvider
from scriptmill.transcripts.library import YouTubeCaptionsProvider

logger = logging.getLogger(__name__)


class FallbackChain:
    """Try providers in priority order until one returns text.

    Each video gets exactly one :class:`Transcript`. Provider failures,
    timeouts, empty results and unexpected exceptions move on to the next
    provider. When all of them fail the transcript is marked unavailable
    with the collected reasons.
    """

    def __init__(
        self, providers: list[TranscriptProvider], language: str = "en"
    ) -> None:
        self._providers = providers
        self._language = language

    @property
    def providers(self) -> list[TranscriptProvider]:
        return list(self._providers)

    async def acquire(self, reference: VideoReference) -> Transcript:
        video_id = reference.video_id
        if video_id is None:
            msg = f"Reference was not resolved: {reference.raw!r}"
            raise ValueError(msg)

        failures: list[str] = []
        for provider in self._providers:
            skip_reason = provider.unavailable_reason
            if skip_reason:
                logger.debug(
                    "Skipping %s for %s: %s", provider.name, video_id, skip_reason
                )
                failures.append(f"{provider.name}: {skip_reason}")
                continue

            try:
                segments = await asyncio.wait_for(
                    provider.fetch(video_id, self._language),
                    timeout=provider.timeout,
                )
            except ProviderError as e:
                reason = e.reason
            except asyncio.TimeoutError:
                reason = f"timed out after {provider.timeout:g}s"
            except Exception as e:
                logger.exception(
                    "Unexpected error from %s for %s", provider.name, video_id
                )
                reason = f"{type(e).__name__}: {e}"
            else:
                text = segments_to_text(segments)
                if text:
                    logger.info(
                        "Transcript for %s from %s (%d characters)",
                        video_id,
                        provider.name,
                        len(text),
                    )
                    return Transcript(
                        video_id=video_id,
                        source_url=reference.source_url,
                        text=text,
                        provider=provider.name,
                    )
                reason = "empty transcript"

            logger.warning(
                "Provider %s failed for %s: %s", provider.name, video_id, reason
            )
            failures.append(f"{provider.name}: {reason}")

        reason = "; ".join(failures) or "no transcript providers configured"
        logger.warning("No transcript for %s", video_id)
        return Transcript(
            video_id=video_id,
            source_url=reference.source_url,
            status="unavailable",
            reason=reason,
        )

    async def acquire_all(
        self, references: list[VideoReference]
    ) -> list[Transcript]:
        """Acquire every transcript concurrently, keeping input order."""
        video_ids = [ref.video_id for ref in references if ref.video_id]
        for provider in self._providers:
            if provider.unavailable_reason is None:
                await provider.prepare(video_ids)
        try:
            return list(
                await asyncio.gather(*(self.acquire(ref) for ref in references))
            )
        finally:
            for provider in self._providers:
                await provider.aclose()


def build_transcriber(
    config: ScriptmillConfig, client: httpx.AsyncClient
) -> Transcriber:
    """Create the speech-to-text backend named in the config."""
    if config.whisper.backend == "local":
        from scriptmill.transcription.whisper_local import (
            WhisperLocalTranscriber,
        )

        return WhisperLocalTranscriber(model_name=config.whisper.local_model)

    from scriptmill.transcription.whisper_api import WhisperAPITranscriber

    return WhisperAPITranscriber(config.whisper, client)


def build_chain(
    config: ScriptmillConfig, client: httpx.AsyncClient
) -> FallbackChain:
    """Build a fresh chain for one pipeline run.

    Providers hold per-run state (the bulk batch call), so chains are not
    shared between runs.
    """
    settings = config.transcripts
    providers: list[TranscriptProvider] = []
    for name in settings.provider_order:
        if name == "bulk":
            providers.append(
                BulkTranscriptProvider(
                    settings.bulk_url,
                    settings.token,
                    client,
                    timeout=settings.timeout,
                )
            )
        elif name == "captions":
            providers.append(
                CaptionServiceProvider(
                    settings.captions_url, client, timeout=settings.timeout
                )
            )
        elif name == "library":
            providers.append(YouTubeCaptionsProvider(timeout=settings.timeout))
        elif name == "audio":
            providers.append(
                AudioTranscriptionProvider(
                    build_transcriber(config, client),
                    timeout=settings.audio_timeout,
                )
            )
        else:
            msg = f"Unknown transcript provider: {name}"
            raise ValueError(msg)
    return FallbackChain(providers, language=settings.language)
