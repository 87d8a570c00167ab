"""Batch scheduling of generator calls."""

import asyncio
import time
from typing import AsyncIterator, List, Optional, Sequence

import structlog

from .config import BATCH_SIZE
from .errors import GenerationError
from .models import BatchResult, GenerationRequest, GenerationResult, VocabRow
from .openai_client import TextGenerator
from .prompts import build_conjugation_prompt
from .rate_limiter import SlidingWindowRateLimiter

log = structlog.get_logger()

BATCH_PROGRESS_START = 20
BATCH_PROGRESS_SPAN = 70


def make_batches(rows: Sequence[VocabRow], batch_size: int = BATCH_SIZE) -> List[List[VocabRow]]:
    """Split rows into contiguous groups of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(rows[i:i + batch_size]) for i in range(0, len(rows), batch_size)]


def batch_progress(completed: int, total: int) -> float:
    """Percentage reported once ``completed`` of ``total`` batches are done."""
    if total <= 0:
        return BATCH_PROGRESS_START + BATCH_PROGRESS_SPAN
    return round(BATCH_PROGRESS_START + (completed / total) * BATCH_PROGRESS_SPAN, 2)


class BatchScheduler:
    """Run generator calls batch by batch.

    Batches run strictly one after another; rows inside a batch are sent
    concurrently. The generator awaits the shared rate limiter before every
    request it sends, so retries count against the window too. ``timeout`` is
    an optional overall deadline per row, rate-limit waits included.
    """

    def __init__(
        self,
        generator: TextGenerator,
        rate_limiter: SlidingWindowRateLimiter,
        batch_size: int = BATCH_SIZE,
        timeout: Optional[float] = None,
    ):
        self.generator = generator
        self.rate_limiter = rate_limiter
        self.batch_size = batch_size
        self.timeout = timeout

    async def schedule(self, verb_rows: Sequence[VocabRow]) -> AsyncIterator[BatchResult]:
        """Yield one :class:`BatchResult` per batch, in batch order."""
        batches = make_batches(verb_rows, self.batch_size)
        total = len(batches)

        for batch_index, batch in enumerate(batches):
            log.info("Starting batch", batch=batch_index + 1, total=total, size=len(batch))
            t0 = time.perf_counter()

            requests = [GenerationRequest(row=row, batch_index=batch_index) for row in batch]
            results = await asyncio.gather(*(self._generate(request) for request in requests))

            elapsed = 1000 * (time.perf_counter() - t0)
            failed = sum(1 for result in results if not result.ok)
            log.info("Batch completed", batch=batch_index + 1, total=total,
                     elapsed_ms=elapsed, failed=failed)

            yield BatchResult(
                batch_index=batch_index,
                total_batches=total,
                results=list(results),
                progress=batch_progress(batch_index + 1, total),
            )

    async def _generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one rate-limited generator call; failures become failed results."""
        row = request.row
        try:
            text = await self._call(row)
        except GenerationError as e:
            log.warning("Generation failed", verb=row.source, error=str(e))
            return GenerationResult(request=request, error=str(e))
        return GenerationResult(request=request, text=text)

    async def _call(self, row: VocabRow) -> str:
        prompt = build_conjugation_prompt(row.source, row.gloss)
        call = self.generator.generate(prompt, admit=self.rate_limiter.acquire)
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Generation timed out after {self.timeout}s") from e
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(str(e) or type(e).__name__) from e
