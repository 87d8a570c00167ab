"""Tests for the progress channel."""

import asyncio

import pytest

from vocab_conjugator.errors import ChannelClosed
from vocab_conjugator.progress import ProgressChannel


async def drain(channel):
    return [event async for event in channel]


def test_events_arrive_in_order_and_end_after_terminal():
    async def run():
        channel = ProgressChannel()
        channel.send("Parsing CSV file...", 10)
        channel.send("Found 0 verbs to conjugate...", 20)
        channel.complete('"дом","house"')
        return await drain(channel)

    events = asyncio.run(run())

    assert [e.progress for e in events] == [10, 20, 100]
    assert events[-1].csv_content == '"дом","house"'
    assert sum(e.is_terminal for e in events) == 1


def test_fail_is_terminal():
    async def run():
        channel = ProgressChannel()
        channel.send("Parsing CSV file...", 10)
        channel.fail("No data found in CSV")
        return channel, await drain(channel)

    channel, events = asyncio.run(run())

    assert events[-1].error == "No data found in CSV"
    assert events[-1].progress == 0
    assert channel.terminated


def test_no_events_after_terminal():
    async def run():
        channel = ProgressChannel()
        channel.complete("")
        with pytest.raises(ChannelClosed):
            channel.send("late", 100)
        with pytest.raises(ChannelClosed):
            channel.fail("late")

    asyncio.run(run())


def test_send_after_consumer_close_raises():
    async def run():
        channel = ProgressChannel()
        channel.close()
        with pytest.raises(ChannelClosed):
            channel.send("Processed batch 1 of 2...", 55)
        assert channel.closed

    asyncio.run(run())


def test_progress_must_not_go_backwards():
    async def run():
        channel = ProgressChannel()
        channel.send("a", 20)
        with pytest.raises(ValueError):
            channel.send("b", 10)

    asyncio.run(run())


def test_consumer_receives_events_while_producer_runs():
    async def producer(channel):
        for progress in (10, 20, 50):
            channel.send(f"at {progress}", progress)
            await asyncio.sleep(0.01)
        channel.complete("done")

    async def run():
        channel = ProgressChannel()
        task = asyncio.create_task(producer(channel))
        first = await channel.get()
        rest = await drain(channel)
        await task
        return first, rest

    first, rest = asyncio.run(run())

    assert first.progress == 10
    assert [e.progress for e in rest] == [20, 50, 100]
