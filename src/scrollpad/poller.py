"""Input polling task: decoded keys in, domain events out."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable

from scrollpad.events import event_for_key

if TYPE_CHECKING:
    from scrollpad.channel import EventChannel
    from scrollpad.shutdown import Shutdown
    from scrollpad.terminal import KeySource

logger = logging.getLogger(__name__)

_STOPPED = object()


async def _unless_stopped(awaitable: Awaitable[Any], stop: asyncio.Future[None]) -> Any:
    """Await *awaitable* unless *stop* resolves first.

    Returns ``_STOPPED`` when the stop future wins; the abandoned
    awaitable is cancelled.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        await asyncio.wait({task, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if not task.done():
            task.cancel()
    if task.done() and not task.cancelled():
        return task.result()
    return _STOPPED


async def poll_keys(
    source: KeySource,
    channel: EventChannel,
    shutdown: Shutdown,
) -> None:
    """Forward key presses from *source* to *channel* until told to stop.

    Stops when the shutdown signal fires or the source is exhausted.
    Errors from the source propagate unchanged. On every exit path the
    channel is closed and the shutdown signal raised, so the render loop
    never waits on a producer that is gone.
    """
    subscription = shutdown.subscribe()
    stop = asyncio.ensure_future(subscription.wait())
    logger.debug("input poller started")
    try:
        while True:
            key = await _unless_stopped(source.next(), stop)
            if key is _STOPPED:
                logger.debug("input poller observed shutdown")
                return
            if key is None:
                logger.debug("key source exhausted")
                return

            event = event_for_key(key)
            if event is None:
                continue
            logger.debug("key %r -> %r", key.code, event)

            # A full channel suspends us here; shutdown still gets through.
            if await _unless_stopped(channel.send(event), stop) is _STOPPED:
                logger.debug("input poller observed shutdown while sending")
                return
    finally:
        stop.cancel()
        subscription.close()
        channel.close()
        shutdown.trigger("input poller")
