"""End-to-end orchestration: URLs in, narration script out."""

import asyncio
import logging

import httpx

from scriptmill.config import ScriptmillConfig
from scriptmill.models import PipelineOutcome, VideoReference
from scriptmill.script.aggregator import aggregate
from scriptmill.script.rewriter import rewrite
from scriptmill.sources.youtube import resolve_reference
from scriptmill.transcripts.chain import build_chain

logger = logging.getLogger(__name__)


class InputError(ValueError):
    """The batch cannot be processed as submitted."""


def resolve_batch(
    raw_urls: list[str], max_batch_size: int
) -> tuple[list[str], list[VideoReference]]:
    """Validate the batch and resolve it to video references.

    Returns the non-blank inputs and the references that resolved.
    Raises :class:`InputError` for empty or oversized batches, or when
    nothing resolves.
    """
    inputs = [raw.strip() for raw in raw_urls if raw and raw.strip()]
    if not inputs:
        msg = "No URLs provided"
        raise InputError(msg)
    if len(inputs) > max_batch_size:
        msg = f"Too many URLs: {len(inputs)} (maximum {max_batch_size})"
        raise InputError(msg)

    references = [resolve_reference(raw) for raw in inputs]
    resolved = [ref for ref in references if ref.resolved]
    if not resolved:
        msg = "No valid YouTube video IDs found"
        raise InputError(msg)
    return inputs, resolved


async def run_pipeline(
    raw_urls: list[str],
    config: ScriptmillConfig,
    client: httpx.AsyncClient | None = None,
) -> PipelineOutcome:
    """Fetch transcripts for ``raw_urls`` and rewrite them into one script.

    Only input validation can fail the run. Provider and model failures
    degrade into placeholder and preview text.
    """
    inputs, references = resolve_batch(raw_urls, config.server.max_batch_size)
    dropped = len(inputs) - len(references)
    if dropped:
        logger.info("Dropped %d unresolvable input(s)", dropped)

    if client is None:
        async with httpx.AsyncClient(
            timeout=config.transcripts.timeout, follow_redirects=True
        ) as owned:
            return await _run(inputs, references, config, owned)
    return await _run(inputs, references, config, client)


async def _run(
    inputs: list[str],
    references: list[VideoReference],
    config: ScriptmillConfig,
    client: httpx.AsyncClient,
) -> PipelineOutcome:
    chain = build_chain(config, client)
    logger.info("Acquiring %d transcript(s)", len(references))
    transcripts = await chain.acquire_all(references)

    document = aggregate(transcripts, max_chars=config.transcripts.max_chars)
    result = await rewrite(document, config.llm, client)

    return PipelineOutcome(
        result=result,
        input_count=len(inputs),
        resolved_count=len(references),
        dropped_count=len(inputs) - len(references),
        raw_transcript_length=document.total_length,
        transcripts=transcripts,
    )


def run_pipeline_sync(
    raw_urls: list[str], config: ScriptmillConfig
) -> PipelineOutcome:
    """Blocking wrapper for callers without an event loop."""
    return asyncio.run(run_pipeline(raw_urls, config))
