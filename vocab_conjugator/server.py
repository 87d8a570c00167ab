"""HTTP endpoint streaming pipeline progress as server-sent events."""

import contextlib
import json
from typing import Callable

import structlog
from aiohttp import web

from .config import (
    BATCH_SIZE,
    ENDPOINT_PATH,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from .errors import InputError
from .openai_client import OpenAIGenerator
from .pipeline import Pipeline
from .rate_limiter import SlidingWindowRateLimiter

log = structlog.get_logger()

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

PipelineFactory = Callable[[], Pipeline]
PIPELINE_FACTORY = web.AppKey("pipeline_factory", PipelineFactory)


def default_pipeline_factory() -> Pipeline:
    """A fresh pipeline, with its own rate limiter, for every request."""
    rate_limiter = SlidingWindowRateLimiter(RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS)
    return Pipeline(OpenAIGenerator(), rate_limiter=rate_limiter, batch_size=BATCH_SIZE)


async def read_csv_content(request: web.Request) -> str:
    """Extract ``csvContent`` from the JSON body, or raise :class:`InputError`."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputError("Request body must be JSON") from e

    csv_content = body.get("csvContent") if isinstance(body, dict) else None
    if not csv_content or not isinstance(csv_content, str):
        raise InputError("CSV content is required")
    return csv_content


async def process_csv(request: web.Request) -> web.StreamResponse:
    """POST handler: validate the body, then stream the run's events."""
    try:
        csv_content = await read_csv_content(request)
    except InputError as e:
        log.info("Rejected request", error=str(e))
        return web.json_response({"error": str(e)}, status=400)

    try:
        pipeline = request.app[PIPELINE_FACTORY]()
    except Exception as e:
        log.error("Failed to set up pipeline", error=str(e))
        return web.json_response({"error": "Failed to process CSV"}, status=500)

    response = web.StreamResponse(status=200, headers=SSE_HEADERS)
    await response.prepare(request)

    log.info("Streaming run", size=len(csv_content))
    try:
        async with contextlib.aclosing(pipeline.stream(csv_content)) as events:
            async for event in events:
                await response.write(event.to_frame().encode("utf-8"))
    except ConnectionResetError:
        log.info("Client disconnected mid-stream")
        return response

    await response.write_eof()
    return response


async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


def create_app(pipeline_factory: PipelineFactory = default_pipeline_factory) -> web.Application:
    """Build the aiohttp application."""
    app = web.Application()
    app[PIPELINE_FACTORY] = pipeline_factory
    app.router.add_post(ENDPOINT_PATH, process_csv)
    app.router.add_get("/health", health)
    return app
