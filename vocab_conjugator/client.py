"""Client for the progress stream served by :mod:`vocab_conjugator.server`."""

import json
from typing import Any, Callable, Dict, Optional

import aiohttp
import structlog

from .config import ENDPOINT_PATH, SERVER_HOST, SERVER_PORT
from .errors import StreamError

log = structlog.get_logger()

DATA_PREFIX = "data: "
DEFAULT_URL = f"http://{SERVER_HOST}:{SERVER_PORT}{ENDPOINT_PATH}"

ProgressCallback = Callable[[str, float], None]


def parse_frame(line: str) -> Optional[Dict[str, Any]]:
    """Decode one ``data:`` line; other lines and invalid JSON give ``None``."""
    if not line.startswith(DATA_PREFIX):
        return None
    try:
        data = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError as e:
        log.warning("Failed to parse stream frame", error=str(e), line=line[:200])
        return None
    if not isinstance(data, dict):
        log.warning("Ignoring non-object stream frame", line=line[:200])
        return None
    return data


async def process_csv(
    csv_content: str,
    url: str = DEFAULT_URL,
    on_progress: Optional[ProgressCallback] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """Submit a table and follow the stream until the final table arrives."""
    if session is None:
        async with aiohttp.ClientSession() as own_session:
            return await _consume(own_session, url, csv_content, on_progress)
    return await _consume(session, url, csv_content, on_progress)


async def _consume(
    session: aiohttp.ClientSession,
    url: str,
    csv_content: str,
    on_progress: Optional[ProgressCallback],
) -> str:
    final_csv = None
    async with session.post(url, json={"csvContent": csv_content}) as response:
        if response.status != 200:
            try:
                body = await response.json()
                detail = body.get("error") if isinstance(body, dict) else None
            except (aiohttp.ContentTypeError, json.JSONDecodeError):
                detail = None
            raise StreamError(detail or f"Failed to process CSV (HTTP {response.status})")

        # Frames can outgrow the reader's line limit, so split on newlines ourselves.
        buffer = b""
        async for chunk in response.content.iter_any():
            buffer += chunk
            *lines, buffer = buffer.split(b"\n")
            for line in lines:
                final_csv = _handle_line(line, on_progress) or final_csv
        if buffer:
            final_csv = _handle_line(buffer, on_progress) or final_csv

    if not final_csv:
        raise StreamError("No CSV content received")

    return final_csv


def _handle_line(line: bytes, on_progress: Optional[ProgressCallback]) -> Optional[str]:
    """Report one frame and return its ``csvContent``, if any."""
    data = parse_frame(line.decode("utf-8").rstrip("\r"))
    if data is None:
        return None

    if on_progress:
        on_progress(data.get("message", ""), data.get("progress", 0))

    if data.get("error"):
        raise StreamError(data["error"])

    return data.get("csvContent") or None
