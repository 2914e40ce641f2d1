"""Domain events and the key-code to event mapping.

Events are produced by the input poller and consumed by the render loop.
The mapping is a pure function over decoded key codes so it can be
exercised without a terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from scrollpad.keys import Key, KeyEvent

QUIT_KEY = "q"


@dataclass(frozen=True)
class Character:
    """A printable character typed by the user."""

    char: str


@dataclass(frozen=True)
class ScrollDown:
    pass


@dataclass(frozen=True)
class ScrollUp:
    pass


@dataclass(frozen=True)
class LineBreak:
    pass


@dataclass(frozen=True)
class Exit:
    pass


Event = Union[Character, ScrollDown, ScrollUp, LineBreak, Exit]

_NAMED_KEY_EVENTS: dict[str, Event] = {
    Key.up: ScrollUp(),
    Key.down: ScrollDown(),
    Key.enter: LineBreak(),
}


def map_key(code: str) -> Event | None:
    """Translate a decoded key code into a domain event.

    Single-character codes are characters (``q`` quits); a handful of
    named keys scroll or break the line. Everything else yields ``None``.
    """
    if len(code) == 1:
        if code == QUIT_KEY:
            return Exit()
        return Character(code)
    return _NAMED_KEY_EVENTS.get(code)


def event_for_key(key: KeyEvent) -> Event | None:
    """Map a decoded key event, ignoring key releases and modifiers."""
    if key.is_release:
        return None
    return map_key(key.code)
