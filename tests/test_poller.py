"""Tests for scrollpad.poller.poll_keys."""

from __future__ import annotations

import asyncio

import pytest

from scrollpad.channel import EventChannel
from scrollpad.errors import InputDecodeError
from scrollpad.events import Character, Exit, LineBreak, ScrollDown, ScrollUp
from scrollpad.keys import Key, KeyEvent
from scrollpad.poller import poll_keys
from scrollpad.shutdown import Shutdown

from .virtual_terminal import ScriptedKeySource


async def drain(channel: EventChannel) -> list:
    events = []
    while True:
        event = await asyncio.wait_for(channel.recv(), timeout=1)
        if event is None:
            return events
        events.append(event)


class TestForwarding:
    @pytest.mark.asyncio
    async def test_keys_become_events_in_order(self) -> None:
        source = ScriptedKeySource(
            ["h", "i", Key.enter, Key.up, Key.down, Key.left, "q"], end=True
        )
        channel = EventChannel()
        shutdown = Shutdown()

        await asyncio.wait_for(poll_keys(source, channel, shutdown), timeout=1)

        assert await drain(channel) == [
            Character("h"),
            Character("i"),
            LineBreak(),
            ScrollUp(),
            ScrollDown(),
            Exit(),
        ]

    @pytest.mark.asyncio
    async def test_releases_are_skipped(self) -> None:
        source = ScriptedKeySource(
            [KeyEvent("a"), KeyEvent("a", "release"), KeyEvent("b", "repeat")], end=True
        )
        channel = EventChannel()

        await asyncio.wait_for(poll_keys(source, channel, Shutdown()), timeout=1)

        assert await drain(channel) == [Character("a"), Character("b")]


class TestStopping:
    @pytest.mark.asyncio
    async def test_source_end_closes_channel_and_raises_shutdown(self) -> None:
        channel = EventChannel()
        shutdown = Shutdown()

        await asyncio.wait_for(
            poll_keys(ScriptedKeySource(end=True), channel, shutdown), timeout=1
        )

        assert channel.closed
        assert shutdown.triggered

    @pytest.mark.asyncio
    async def test_stops_on_shutdown_while_waiting_for_input(self) -> None:
        source = ScriptedKeySource()
        channel = EventChannel()
        shutdown = Shutdown()
        task = asyncio.ensure_future(poll_keys(source, channel, shutdown))
        await asyncio.sleep(0.01)
        assert not task.done()

        shutdown.trigger("test")
        await asyncio.wait_for(task, timeout=1)
        assert channel.closed

    @pytest.mark.asyncio
    async def test_stops_on_shutdown_while_channel_is_full(self) -> None:
        source = ScriptedKeySource(["a", "b", "c"])
        channel = EventChannel(1)
        shutdown = Shutdown()
        task = asyncio.ensure_future(poll_keys(source, channel, shutdown))
        await asyncio.sleep(0.01)
        assert not task.done()
        assert channel.qsize() == 1

        shutdown.trigger("test")
        await asyncio.wait_for(task, timeout=1)
        assert await channel.recv() == Character("a")
        assert await channel.recv() is None


class TestErrors:
    @pytest.mark.asyncio
    async def test_decode_error_propagates(self) -> None:
        source = ScriptedKeySource(["x"], error=InputDecodeError("bad byte"))
        channel = EventChannel()
        shutdown = Shutdown()

        with pytest.raises(InputDecodeError, match="bad byte"):
            await asyncio.wait_for(poll_keys(source, channel, shutdown), timeout=1)

        assert shutdown.triggered
        assert channel.closed
        assert await channel.recv() == Character("x")
