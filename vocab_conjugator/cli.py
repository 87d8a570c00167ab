"""Command-line interface for the vocabulary conjugator."""

import asyncio
import logging
from pathlib import Path

import aiohttp
import click
import structlog
from aiohttp import web

from .client import DEFAULT_URL, process_csv
from .config import (
    BATCH_SIZE,
    MODEL_NAME,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    SERVER_HOST,
    SERVER_PORT,
)
from .errors import ConjugatorError
from .openai_client import OpenAIGenerator
from .pipeline import process
from .rate_limiter import SlidingWindowRateLimiter
from .server import create_app
from .utils import load_table_from_file, write_table

log = structlog.get_logger()


def configure_logging(verbose: bool = False):
    """JSON logs by default, human-readable console logs with ``--verbose``."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")
    renderer = structlog.dev.ConsoleRenderer() if verbose else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def echo_progress(message: str, progress: float):
    click.echo(f"[{progress:5.1f}%] {message}", err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def main(verbose: bool):
    """Expand verbs in a vocabulary table into conjugated example sentences."""
    configure_logging(verbose)


@main.command()
@click.option("--host", default=SERVER_HOST, help="Interface to bind")
@click.option("--port", type=int, default=SERVER_PORT, help="Port to listen on")
def serve(host: str, port: int):
    """Run the HTTP endpoint."""
    log.info("Starting server", host=host, port=port)
    web.run_app(create_app(), host=host, port=port, print=None)


@main.command()
@click.option(
    "-i", "--input", "input_path",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Two-column table to expand"
)
@click.option(
    "-o", "--output", "output_path",
    type=click.Path(path_type=Path),
    required=True,
    help="Where to write the expanded table"
)
@click.option("--model", default=MODEL_NAME, help="Model to use")
@click.option("--batch-size", type=int, default=BATCH_SIZE, help="Verbs per batch")
@click.option("--max-requests", type=int, default=RATE_LIMIT_MAX_REQUESTS, help="Requests allowed per window")
@click.option("--window", type=float, default=RATE_LIMIT_WINDOW_SECONDS, help="Rate limit window in seconds")
def convert(input_path: Path, output_path: Path, model: str, batch_size: int,
            max_requests: int, window: float):
    """Run the pipeline in-process on a local file."""
    log.info("Starting conversion",
             input_file=str(input_path),
             model=model,
             batch_size=batch_size,
             max_requests=max_requests,
             window=window)

    try:
        csv_content = load_table_from_file(input_path)
        final_csv = asyncio.run(process(
            csv_content,
            OpenAIGenerator(model=model),
            on_progress=echo_progress,
            rate_limiter=SlidingWindowRateLimiter(max_requests, window),
            batch_size=batch_size,
        ))
        write_table(final_csv, output_path)
    except ConjugatorError as e:
        log.error("Conversion failed", error=str(e))
        raise click.ClickException(str(e))


@main.command()
@click.option(
    "-i", "--input", "input_path",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Two-column table to expand"
)
@click.option(
    "-o", "--output", "output_path",
    type=click.Path(path_type=Path),
    required=True,
    help="Where to write the expanded table"
)
@click.option("--url", default=DEFAULT_URL, help="Endpoint of a running server")
def submit(input_path: Path, output_path: Path, url: str):
    """Send a file to a running server and save the result."""
    try:
        csv_content = load_table_from_file(input_path)
        final_csv = asyncio.run(process_csv(csv_content, url=url, on_progress=echo_progress))
        write_table(final_csv, output_path)
    except (ConjugatorError, aiohttp.ClientError) as e:
        log.error("Submission failed", error=str(e))
        raise click.ClickException(str(e))


if __name__ == "__main__":
    main()
