"""Common interface for transcript providers."""

import re
from abc import ABC, abstractmethod

from scriptmill.models import TranscriptSegment

_WHITESPACE = re.compile(r"\s+")


class ProviderError(Exception):
    """A provider could not produce a transcript for one video."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TranscriptProvider(ABC):
    """Base class for everything that can turn a video ID into segments.

    Implementations catch their own network, payload and subprocess errors
    and re-raise them as :class:`ProviderError`.
    """

    name: str = "provider"
    #: Seconds the fallback chain waits before giving up on this provider.
    timeout: float = 30.0

    @property
    def unavailable_reason(self) -> str | None:
        """Why this provider cannot be used at all, or ``None``."""
        return None

    async def prepare(self, video_ids: list[str]) -> None:
        """Hook called once per batch before any :meth:`fetch`."""
        return None

    async def aclose(self) -> None:
        """Release per-run resources once the batch has settled."""
        return None

    @abstractmethod
    async def fetch(
        self, video_id: str, language: str = "en"
    ) -> list[TranscriptSegment]:
        """Return the transcript segments for ``video_id``."""
        ...


def normalize_text(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def segments_to_text(segments: list[TranscriptSegment]) -> str:
    return normalize_text(" ".join(seg.text for seg in segments))


def parse_segments(payload: object) -> list[TranscriptSegment]:
    """Parse a list of ``{text, start, duration}`` items.

    Plain strings are accepted as untimed segments. Anything else raises
    :class:`ProviderError`.
    """
    if isinstance(payload, str):
        return [TranscriptSegment(text=payload)]
    if not isinstance(payload, list):
        msg = f"expected a segment list, got {type(payload).__name__}"
        raise ProviderError(msg)

    segments: list[TranscriptSegment] = []
    for item in payload:
        if isinstance(item, str):
            segments.append(TranscriptSegment(text=item))
        elif isinstance(item, dict) and "text" in item:
            segments.append(
                TranscriptSegment(
                    text=str(item["text"]),
                    start=_as_float(item.get("start")),
                    duration=_as_float(item.get("duration", item.get("dur"))),
                )
            )
        else:
            msg = "malformed transcript segment"
            raise ProviderError(msg)
    return segments


def _as_float(value: object) -> float | None:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
