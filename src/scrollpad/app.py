"""Session wiring: terminal setup, the two tasks, join and teardown."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from scrollpad.channel import EventChannel
from scrollpad.config import Config
from scrollpad.errors import TerminalModeError
from scrollpad.loop import draw_loop
from scrollpad.poller import poll_keys
from scrollpad.shutdown import Shutdown
from scrollpad.state import AppState

if TYPE_CHECKING:
    from scrollpad.render import FrameSink
    from scrollpad.terminal import KeySource, Terminal

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a session once both tasks have stopped."""

    polling_error: BaseException | None = None
    drawing_error: BaseException | None = None
    terminal_error: BaseException | None = None
    state: AppState | None = None

    @property
    def ok(self) -> bool:
        return (
            self.polling_error is None
            and self.drawing_error is None
            and self.terminal_error is None
        )

    def error_messages(self) -> list[str]:
        messages: list[str] = []
        if self.polling_error is not None:
            messages.append(f"Polling error: {self.polling_error!r}")
        if self.drawing_error is not None:
            messages.append(f"Drawing error: {self.drawing_error!r}")
        if self.terminal_error is not None:
            messages.append(f"Terminal error: {self.terminal_error}")
        return messages


async def run_tasks(
    source: KeySource,
    renderer: FrameSink,
    config: Config | None = None,
) -> RunResult:
    """Run the input poller and the render loop until both have stopped.

    Neither task's failure cancels the other directly: a failing task
    raises the shutdown signal on its way out, and its exception is
    collected here once both are joined.
    """
    config = config or Config()
    channel = EventChannel(config.queue_capacity)
    shutdown = Shutdown()

    poll_task = asyncio.ensure_future(poll_keys(source, channel, shutdown))
    draw_task = asyncio.ensure_future(draw_loop(channel, shutdown, renderer, config))

    polling, drawing = await asyncio.gather(
        poll_task, draw_task, return_exceptions=True
    )

    result = RunResult()
    if isinstance(polling, BaseException):
        logger.warning("input poller failed: %r", polling)
        result.polling_error = polling
    if isinstance(drawing, BaseException):
        logger.warning("render loop failed: %r", drawing)
        result.drawing_error = drawing
    else:
        result.state = drawing
    return result


async def run(
    terminal: Terminal,
    renderer: FrameSink,
    config: Config | None = None,
) -> RunResult:
    """Run a full session on *terminal*.

    Raw mode is entered once before either task starts and left once
    after both have been joined, on every path out of this function.
    A failure to restore the terminal after a session is recorded on the
    result next to any task errors instead of replacing them.
    """
    terminal.enter()
    source: KeySource | None = None
    result: RunResult | None = None
    try:
        source = terminal.key_reader()
        result = await run_tasks(source, renderer, config)
    finally:
        if source is not None:
            source.close()
        try:
            terminal.leave()
        except TerminalModeError as exc:
            if result is None:
                raise
            logger.warning("restoring terminal failed: %s", exc)
            result.terminal_error = exc
    return result
