"""HTTP API for the rewrite pipeline."""

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from scriptmill.config import ScriptmillConfig, load_config, validate_config
from scriptmill.models import PipelineOutcome
from scriptmill.pipeline import InputError, run_pipeline

logger = logging.getLogger(__name__)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type"
    ),
}
_REWRITE_PATHS = ("/api/rewrite", "/api")


async def read_urls(request: Request) -> list[str]:
    """Pull the URL list out of a request.

    Accepts, in order: a JSON body ``{"urls": [...]}`` or a bare JSON list
    of strings, a plain-text body with one URL per line, and a
    comma-separated ``urls`` query parameter. A JSON object without
    ``urls`` falls through to the query parameter.
    """
    text = (await request.body()).decode("utf-8", errors="replace").strip()
    if text:
        try:
            data = json.loads(text)
        except ValueError:
            return text.splitlines()
        if isinstance(data, dict) and "urls" in data:
            urls = data["urls"]
            if not isinstance(urls, list) or not all(
                isinstance(u, str) for u in urls
            ):
                msg = "'urls' must be a list of strings"
                raise InputError(msg)
            return urls
        if isinstance(data, list) and all(isinstance(u, str) for u in data):
            return data
        if not isinstance(data, dict):
            # a bare numeric ID or quoted string still parses as JSON
            return text.splitlines()

    query = request.query_params.get("urls", "")
    return query.split(",") if query else []


def outcome_payload(outcome: PipelineOutcome) -> dict[str, object]:
    return {
        "success": True,
        "inputVideos": outcome.resolved_count,
        "finalScript": outcome.result.text,
        "rawTranscriptsLength": outcome.raw_transcript_length,
        "rewriteStatus": outcome.result.status,
    }


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message},
        status_code=status_code,
        headers=_CORS_HEADERS,
    )


def create_app(config: ScriptmillConfig | None = None) -> FastAPI:
    """Build the FastAPI app. Configuration is resolved once, here."""
    if config is None:
        config = load_config()
    validate_config(config)

    app = FastAPI(title="scriptmill", version="0.1.0")
    app.state.config = config

    async def rewrite_endpoint(request: Request) -> JSONResponse:
        try:
            urls = await read_urls(request)
            outcome = await run_pipeline(urls, request.app.state.config)
        except InputError as e:
            logger.info("Rejected batch: %s", e)
            return _error(str(e), 400)
        except Exception as e:
            logger.exception("Pipeline failed")
            return _error(str(e) or type(e).__name__, 500)

        logger.info(
            "Rewrote %d video(s), status %s",
            outcome.resolved_count,
            outcome.result.status,
        )
        return JSONResponse(outcome_payload(outcome), headers=_CORS_HEADERS)

    async def preflight() -> Response:
        return Response(status_code=204, headers=_CORS_HEADERS)

    for path in _REWRITE_PATHS:
        app.add_api_route(path, rewrite_endpoint, methods=["POST"])
        app.add_api_route(path, preflight, methods=["OPTIONS"])

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    return app
