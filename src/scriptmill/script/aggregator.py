"""Combine per-video transcripts into one labeled document."""

import logging

from scriptmill.models import (
    NO_TRANSCRIPT_PLACEHOLDER,
    AggregatedDocument,
    DocumentBlock,
    Transcript,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS = 100_000
BLOCK_SEPARATOR = "\n\n"


def truncate_text(text: str, limit: int) -> str:
    """Cut ``text`` at the tail so it is at most ``limit`` characters.

    Always returns a prefix of ``text``, so applying it twice is the same
    as applying it once.
    """
    if limit < 0:
        msg = f"limit must be non-negative, got {limit}"
        raise ValueError(msg)
    return text if len(text) <= limit else text[:limit]


def aggregate(
    transcripts: list[Transcript], max_chars: int = DEFAULT_MAX_CHARS
) -> AggregatedDocument:
    """Join transcripts in input order under ``--- Video n: url ---`` headers.

    Unavailable transcripts keep their slot with a placeholder block.
    """
    blocks = tuple(
        DocumentBlock(
            index=i + 1,
            source_url=transcript.source_url,
            text=transcript.text if transcript.ok and transcript.text
            else NO_TRANSCRIPT_PLACEHOLDER,
        )
        for i, transcript in enumerate(transcripts)
    )
    full_text = BLOCK_SEPARATOR.join(block.render() for block in blocks)
    text = truncate_text(full_text, max_chars)
    truncated = len(text) < len(full_text)
    if truncated:
        logger.info(
            "Aggregated document truncated from %d to %d characters",
            len(full_text),
            len(text),
        )
    return AggregatedDocument(
        blocks=blocks,
        text=text,
        total_length=len(full_text),
        truncated=truncated,
    )
