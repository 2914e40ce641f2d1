"""Render/event loop task.

Owns the :class:`AppState`. Each iteration waits for whichever comes
first of the next event, the shutdown signal, or the refresh tick, then
draws exactly one frame.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from scrollpad.config import Config
from scrollpad.events import Event, Exit
from scrollpad.state import AppState

if TYPE_CHECKING:
    from scrollpad.channel import EventChannel
    from scrollpad.render import FrameSink
    from scrollpad.shutdown import Shutdown

logger = logging.getLogger(__name__)


async def draw_loop(
    channel: EventChannel,
    shutdown: Shutdown,
    renderer: FrameSink,
    config: Config | None = None,
) -> AppState:
    """Run until shutdown or an ``Exit`` event; return the final state.

    The pending receive survives iterations that the tick wins, so an
    event already taken off the channel is never dropped. When the
    shutdown signal is ready alongside anything else, it wins.
    """
    config = config or Config()
    state = AppState.seeded(config.greeting)
    subscription = shutdown.subscribe()
    stop = asyncio.ensure_future(subscription.wait())
    recv: asyncio.Future[Event | None] | None = None
    receiving = True
    logger.debug("render loop started")

    try:
        while True:
            if recv is None and receiving:
                recv = asyncio.ensure_future(channel.recv())
            tick = asyncio.ensure_future(asyncio.sleep(config.refresh_interval))
            waiters: set[asyncio.Future] = {stop, tick}
            if recv is not None:
                waiters.add(recv)
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                tick.cancel()

            if stop.done():
                logger.debug("render loop observed shutdown")
                return state

            if recv is not None and recv.done():
                event = recv.result()
                recv = None
                if event is None:
                    # Producer is gone; keep redrawing on the tick only.
                    logger.debug("event channel drained and closed")
                    receiving = False
                elif isinstance(event, Exit):
                    shutdown.trigger("exit event")
                    return state
                else:
                    state.apply(event)

            renderer.draw(state.visible_lines(), state.sync_scrollbar())
    finally:
        stop.cancel()
        subscription.close()
        if recv is not None:
            recv.cancel()
        shutdown.trigger("render loop")
