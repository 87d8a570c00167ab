"""One-way progress channel between a pipeline run and its consumer."""

import asyncio
from typing import AsyncIterator, Optional

from .errors import ChannelClosed
from .models import ProgressEvent

_END = object()


class ProgressChannel:
    """Single-producer, single-consumer stream of :class:`ProgressEvent`.

    The producer calls :meth:`send` any number of times, then exactly one of
    :meth:`complete` or :meth:`fail`. Progress never decreases within a run.
    The consumer iterates the channel and may :meth:`close` it early, after
    which every producer call raises :class:`ChannelClosed`.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._terminated = False
        self._closed = False
        self._last_progress = 0.0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminated(self) -> bool:
        return self._terminated

    def send(self, message: str, progress: float):
        """Emit an intermediate status event."""
        self._put(ProgressEvent(message=message, progress=progress))

    def complete(self, csv_content: str):
        """Emit the terminal success event carrying the final table."""
        self._put(ProgressEvent.complete(csv_content))
        self._finish()

    def fail(self, reason: str):
        """Emit the terminal error event."""
        self._put(ProgressEvent.failed(reason))
        self._finish()

    def close(self):
        """Called by the consumer when it stops listening."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END)

    def _put(self, event: ProgressEvent):
        if self._closed:
            raise ChannelClosed("Progress consumer has gone away")
        if self._terminated:
            raise ChannelClosed("Run already terminated")
        if event.error is None:
            if event.progress < self._last_progress:
                raise ValueError(
                    f"Progress went backwards: {event.progress} < {self._last_progress}"
                )
            self._last_progress = event.progress
        self._queue.put_nowait(event)

    def _finish(self):
        self._terminated = True
        self._queue.put_nowait(_END)

    async def get(self) -> Optional[ProgressEvent]:
        """Next event, or ``None`` once the channel has ended."""
        item = await self._queue.get()
        if item is _END:
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self.get()
            if event is None:
                return
            yield event
