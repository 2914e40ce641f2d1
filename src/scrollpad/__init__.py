"""scrollpad: a scrollable terminal text buffer driven by two asyncio tasks."""

import logging

from scrollpad.app import RunResult, run, run_tasks
from scrollpad.channel import EventChannel
from scrollpad.config import Config
from scrollpad.errors import (
    ChannelClosed,
    DrawError,
    InputDecodeError,
    ScrollpadError,
    TerminalModeError,
)
from scrollpad.events import (
    Character,
    Event,
    Exit,
    LineBreak,
    ScrollDown,
    ScrollUp,
    event_for_key,
    map_key,
)
from scrollpad.keys import Key, KeyEvent, decode_key
from scrollpad.loop import draw_loop
from scrollpad.poller import poll_keys
from scrollpad.render import Renderer
from scrollpad.shutdown import Shutdown, Subscription
from scrollpad.state import AppState, ScrollbarState

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AppState",
    "ChannelClosed",
    "Character",
    "Config",
    "DrawError",
    "Event",
    "EventChannel",
    "Exit",
    "InputDecodeError",
    "Key",
    "KeyEvent",
    "LineBreak",
    "Renderer",
    "RunResult",
    "ScrollDown",
    "ScrollUp",
    "ScrollbarState",
    "ScrollpadError",
    "Shutdown",
    "Subscription",
    "TerminalModeError",
    "decode_key",
    "draw_loop",
    "event_for_key",
    "map_key",
    "poll_keys",
    "run",
    "run_tasks",
]
