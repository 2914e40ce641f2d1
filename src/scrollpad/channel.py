"""Bounded FIFO channel carrying domain events to the render loop."""

from __future__ import annotations

import asyncio
import logging

from scrollpad.errors import ChannelClosed
from scrollpad.events import Event

logger = logging.getLogger(__name__)


class EventChannel:
    """Capacity-limited, single-consumer event queue.

    ``send`` suspends while the queue is full, so a slow consumer slows the
    producer down instead of losing events. Once closed, ``recv`` drains
    what is left and then returns ``None``.
    """

    def __init__(self, capacity: int = 16) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=capacity)
        self._closed = asyncio.Event()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    async def send(self, event: Event) -> None:
        if self.closed:
            raise ChannelClosed("send on closed channel")
        await self._queue.put(event)

    async def recv(self) -> Event | None:
        """Return the next event, or ``None`` once closed and empty."""
        if not self._queue.empty():
            return self._queue.get_nowait()
        if self.closed:
            return None

        get = asyncio.ensure_future(self._queue.get())
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({get, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not get.done():
                get.cancel()
        if get.done() and not get.cancelled():
            return get.result()
        return None

    def close(self) -> None:
        if not self.closed:
            logger.debug("event channel closed with %d pending", self.qsize())
            self._closed.set()
