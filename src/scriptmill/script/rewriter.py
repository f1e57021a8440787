"""Rewrite aggregated transcripts into a narration script with an LLM."""

import logging

import anthropic
import httpx

from scriptmill.config import LLMConfig
from scriptmill.models import AggregatedDocument, RewriteRequest, RewriteResult
from scriptmill.script.aggregator import truncate_text
from scriptmill.script.prompts import build_rewrite_prompt

logger = logging.getLogger(__name__)

_CHAT_ENDPOINTS = {
    "groq": "https://api.groq.com/openai/v1/chat/completions",
    "openai": "https://api.openai.com/v1/chat/completions",
}
_DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-6",
}
_PUBLIC_FALLBACK_MODEL = "public-fallback"


class RewriteError(Exception):
    """The completion endpoint did not produce a script."""


def resolve_model(config: LLMConfig) -> str:
    return config.model or _DEFAULT_MODELS.get(config.provider, "")


def build_request(
    document: AggregatedDocument, config: LLMConfig, model: str | None = None
) -> RewriteRequest:
    """Shape the completion request, cutting the document to the input cap."""
    text = truncate_text(document.text, config.max_input_chars)
    system, user = build_rewrite_prompt(document, text)
    return RewriteRequest(
        system_prompt=system,
        prompt_text=user,
        model=model or resolve_model(config),
        temperature=config.temperature,
        max_output_tokens=config.max_tokens,
    )


def chat_payload(request: RewriteRequest) -> dict[str, object]:
    """Serialize a request for an OpenAI-compatible ``chat/completions`` API."""
    return {
        "model": request.model,
        "temperature": request.temperature,
        "max_tokens": request.max_output_tokens,
        "messages": [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.prompt_text},
        ],
    }


def build_preview(document: AggregatedDocument, limit: int) -> str:
    """Local stand-in for a script: the start of the raw transcripts."""
    preview = truncate_text(document.text, limit).strip()
    if len(preview) < len(document.text.strip()):
        preview += "…"
    return preview


def _extract_content(payload: object) -> str:
    """Pull ``choices[0].message.content`` out of a completion response."""
    try:
        content = payload["choices"][0]["message"]["content"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError) as e:
        msg = "response has no choices[0].message.content"
        raise RewriteError(msg) from e
    if not isinstance(content, str) or not content.strip():
        msg = "completion content is empty"
        raise RewriteError(msg)
    return content.strip()


async def _call_chat_endpoint(
    client: httpx.AsyncClient,
    url: str,
    request: RewriteRequest,
    api_key: str | None,
    timeout: float,
) -> str:
    """Make one completion call. No retries."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        response = await client.post(
            url, headers=headers, json=chat_payload(request), timeout=timeout
        )
    except httpx.HTTPError as e:
        msg = f"request failed: {e!r}"
        raise RewriteError(msg) from e

    if response.status_code >= 400:
        msg = f"HTTP {response.status_code}: {response.text[:200]}"
        raise RewriteError(msg)

    try:
        payload = response.json()
    except ValueError as e:
        msg = "response is not JSON"
        raise RewriteError(msg) from e
    return _extract_content(payload)


async def _call_anthropic(
    request: RewriteRequest,
    config: LLMConfig,
    client: anthropic.AsyncAnthropic | None = None,
) -> str:
    """Make one Anthropic Messages API call. No retries."""
    if client is None:
        client = anthropic.AsyncAnthropic(
            api_key=config.api_key, timeout=config.timeout, max_retries=0
        )
    try:
        message = await client.messages.create(
            model=request.model,
            max_tokens=request.max_output_tokens,
            temperature=request.temperature,
            system=request.system_prompt,
            messages=[{"role": "user", "content": request.prompt_text}],
        )
    except anthropic.APIError as e:
        msg = f"Anthropic API error: {e}"
        raise RewriteError(msg) from e

    text = "".join(
        getattr(block, "text", "") for block in message.content
    ).strip()
    if not text:
        msg = "completion content is empty"
        raise RewriteError(msg)
    return text


def _degraded(
    document: AggregatedDocument, config: LLMConfig, reason: str
) -> RewriteResult:
    return RewriteResult(
        status="degraded",
        degraded_text=build_preview(document, config.preview_chars),
        reason=reason,
    )


async def rewrite(
    document: AggregatedDocument,
    config: LLMConfig,
    client: httpx.AsyncClient | None = None,
    anthropic_client: anthropic.AsyncAnthropic | None = None,
) -> RewriteResult:
    """Turn an aggregated document into a narration script.

    Never raises for endpoint failures: without a credential, or when the
    call fails, the result is degraded and carries a preview of the
    transcripts instead of a script.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=config.timeout) as owned:
            return await rewrite(document, config, owned, anthropic_client)

    if not config.api_key:
        return await _rewrite_without_credentials(document, config, client)

    request = build_request(document, config)
    logger.info(
        "Requesting rewrite from %s (%s, %d prompt characters)",
        config.provider,
        request.model,
        len(request.prompt_text),
    )
    try:
        if config.provider == "anthropic":
            script = await _call_anthropic(request, config, anthropic_client)
        elif config.provider in _CHAT_ENDPOINTS:
            script = await _call_chat_endpoint(
                client,
                _CHAT_ENDPOINTS[config.provider],
                request,
                config.api_key,
                config.timeout,
            )
        else:
            msg = f"unknown LLM provider: {config.provider}"
            raise RewriteError(msg)
    except RewriteError as e:
        logger.warning("Rewrite failed, returning transcript preview: %s", e)
        return _degraded(document, config, str(e))

    return RewriteResult(status="ok", script_text=script, model=request.model)


async def _rewrite_without_credentials(
    document: AggregatedDocument,
    config: LLMConfig,
    client: httpx.AsyncClient,
) -> RewriteResult:
    """Preview path, with one optional call to a public endpoint."""
    reason = f"no API key configured for {config.provider}"
    if not config.public_fallback_url:
        logger.info("%s, returning transcript preview", reason)
        return _degraded(document, config, reason)

    request = build_request(
        document, config, model=config.model or _PUBLIC_FALLBACK_MODEL
    )
    try:
        script = await _call_chat_endpoint(
            client,
            config.public_fallback_url,
            request,
            api_key=None,
            timeout=config.timeout,
        )
    except RewriteError as e:
        logger.info("Public fallback failed (%s), returning transcript preview", e)
        return _degraded(document, config, f"{reason}; public fallback: {e}")

    return RewriteResult(status="ok", script_text=script, model=request.model)
