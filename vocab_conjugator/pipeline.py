"""Main pipeline: parse, classify, generate conjugations and merge the table."""

import asyncio
import time
from enum import Enum
from typing import AsyncIterator, Callable, List, Optional, Set

import structlog

from .config import BATCH_SIZE
from .errors import ChannelClosed, InputError, MalformedResponseError, PipelineFailure
from .models import BatchResult, OutputRow, ProgressEvent
from .openai_client import TextGenerator
from .progress import ProgressChannel
from .rate_limiter import SlidingWindowRateLimiter
from .scheduler import BatchScheduler
from .utils import classify, merge, parse_table, render_table, rows_from_response

log = structlog.get_logger()

# Runs whose consumer disconnected finish their current batch in the background.
_background_runs: Set[asyncio.Task] = set()


class Stage(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    BATCHING = "batching"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


class Pipeline:
    """Drive one request from raw table text to a final merged table."""

    def __init__(
        self,
        generator: TextGenerator,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        batch_size: int = BATCH_SIZE,
        timeout: Optional[float] = None,
    ):
        self.generator = generator
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self.scheduler = BatchScheduler(generator, self.rate_limiter, batch_size=batch_size, timeout=timeout)
        self.stage = Stage.IDLE

    async def run(self, csv_content: str, channel: ProgressChannel):
        """Produce every event of one run into ``channel``.

        Ends with exactly one terminal event unless the consumer closes the
        channel first, in which case the run stops after the batch in flight.
        """
        t0 = time.perf_counter()
        try:
            table = await self._run(csv_content, channel)
            self.stage = Stage.DONE
            channel.complete(table)
            log.info("Pipeline completed", elapsed_ms=1000 * (time.perf_counter() - t0))
        except ChannelClosed:
            log.info("Progress consumer disconnected, abandoning run", stage=self.stage.value)
        except Exception as e:
            failure = e if isinstance(e, (InputError, PipelineFailure)) else PipelineFailure(str(e) or type(e).__name__)
            log.error("Pipeline failed", stage=self.stage.value, error=str(failure))
            self.stage = Stage.FAILED
            if not channel.closed and not channel.terminated:
                channel.fail(str(failure))

    async def _run(self, csv_content: str, channel: ProgressChannel) -> str:
        self.stage = Stage.PARSING
        channel.send("Parsing CSV file...", 10)
        rows = parse_table(csv_content)
        if not rows:
            raise InputError("No data found in CSV")

        self.stage = Stage.CLASSIFYING
        verb_rows, non_verb_rows = classify(rows)
        log.info("Rows classified", total=len(rows), verbs=len(verb_rows), pass_through=len(non_verb_rows))
        channel.send(f"Found {len(verb_rows)} verbs to conjugate...", 20)

        self.stage = Stage.BATCHING
        batches: List[BatchResult] = []
        async for batch in self.scheduler.schedule(verb_rows):
            batches.append(batch)
            channel.send(
                f"Processed batch {batch.batch_index + 1} of {batch.total_batches}...",
                batch.progress,
            )

        self.stage = Stage.MERGING
        channel.send("Processing AI responses...", 90)
        generated = self._collect(batches)
        table = render_table(merge(non_verb_rows, generated))
        channel.send("Finalizing enhanced vocabulary...", 95)
        return table

    def _collect(self, batches: List[BatchResult]) -> List[OutputRow]:
        """Parse every successful response, batch by batch."""
        generated = []
        for batch in batches:
            for result in batch.results:
                if not result.ok:
                    continue
                try:
                    generated.extend(rows_from_response(result.text))
                except MalformedResponseError as e:
                    log.warning("Discarding malformed response", verb=result.request.row.source, error=str(e))
        return generated

    async def stream(self, csv_content: str) -> AsyncIterator[ProgressEvent]:
        """Start a run and yield its events as they are produced.

        If the caller stops iterating early, the run is not cancelled: it
        finishes the batch in flight and then stops.
        """
        channel = ProgressChannel()
        task = asyncio.create_task(self.run(csv_content, channel))
        _background_runs.add(task)
        task.add_done_callback(_background_runs.discard)
        try:
            async for event in channel:
                yield event
        finally:
            channel.close()


async def process(
    csv_content: str,
    generator: TextGenerator,
    on_progress: Optional[Callable[[str, float], None]] = None,
    **kwargs,
) -> str:
    """Convenience function: run a pipeline and return the final table."""
    pipeline = Pipeline(generator, **kwargs)
    final_table = None
    async for event in pipeline.stream(csv_content):
        if on_progress:
            on_progress(event.message, event.progress)
        if event.error is not None:
            raise PipelineFailure(event.error)
        if event.csv_content is not None:
            final_table = event.csv_content
    if final_table is None:
        raise PipelineFailure("Pipeline ended without a result")
    return final_table
