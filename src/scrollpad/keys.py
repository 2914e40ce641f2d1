"""Decoding of raw terminal input sequences into key events.

Handles the kitty keyboard protocol (CSI u plus the modified arrow and
functional forms, which carry press/repeat/release event types) and the
legacy xterm/VT sequences emitted by terminals without it. Each call to
:func:`decode_key` receives one complete sequence as produced by
:class:`scrollpad.stdin_buffer.StdinBuffer`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

# ---------------------------------------------------------------------------
# Key names
# ---------------------------------------------------------------------------


class Key:
    """Named key codes. Character keys use the character itself."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"


KeyEventType = Literal["press", "repeat", "release"]

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

_EVENT_TYPES: dict[int, KeyEventType] = {
    1: "press",
    2: "repeat",
    3: "release",
}


@dataclass(frozen=True)
class KeyEvent:
    """A decoded key event.

    ``code`` is either a single character or one of the :class:`Key`
    names. ``modifiers`` holds any of ``"ctrl"``, ``"alt"``, ``"shift"``.
    """

    code: str
    kind: KeyEventType = "press"
    modifiers: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_release(self) -> bool:
        return self.kind == "release"


# ---------------------------------------------------------------------------
# Legacy sequences
# ---------------------------------------------------------------------------

LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": Key.up,
    "\x1b[B": Key.down,
    "\x1b[C": Key.right,
    "\x1b[D": Key.left,
    "\x1bOA": Key.up,
    "\x1bOB": Key.down,
    "\x1bOC": Key.right,
    "\x1bOD": Key.left,
    "\x1b[H": Key.home,
    "\x1b[F": Key.end,
    "\x1bOH": Key.home,
    "\x1bOF": Key.end,
    "\x1b[1~": Key.home,
    "\x1b[7~": Key.home,
    "\x1b[4~": Key.end,
    "\x1b[8~": Key.end,
    "\x1b[2~": Key.insert,
    "\x1b[3~": Key.delete,
    "\x1b[5~": Key.page_up,
    "\x1b[6~": Key.page_down,
    "\x1bOM": Key.enter,
}

# ---------------------------------------------------------------------------
# Kitty protocol
# ---------------------------------------------------------------------------

# CSI u: \x1b[<codepoint>(:<shifted>(:<base>))?(;<modifier>(:<event>))?u
_KITTY_CSI_U_RE = re.compile(
    r"^\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

# Arrows, home and end: \x1b[1;<modifier>(:<event>)?[ABCDHF]
_KITTY_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)(?::(\d+))?([ABCDHF])$")

# Functional keys: \x1b[<number>;<modifier>(:<event>)?~
_KITTY_FUNCTIONAL_RE = re.compile(r"^\x1b\[(\d+);(\d+)(?::(\d+))?~$")

_KITTY_CODEPOINT_TO_KEY: dict[int, str] = {
    13: Key.enter,
    9: Key.tab,
    27: Key.escape,
    127: Key.backspace,
    8: Key.backspace,
    57414: Key.enter,  # keypad enter
}

_LETTER_TO_KEY: dict[str, str] = {
    "A": Key.up,
    "B": Key.down,
    "C": Key.right,
    "D": Key.left,
    "H": Key.home,
    "F": Key.end,
}

_FUNCTIONAL_NUMBER_TO_KEY: dict[int, str] = {
    1: Key.home,
    2: Key.insert,
    3: Key.delete,
    4: Key.end,
    5: Key.page_up,
    6: Key.page_down,
    7: Key.home,
    8: Key.end,
}

# Private-use codepoints kitty assigns to modifier and lock keys
_KITTY_PRIVATE_USE_START = 57344


def _modifier_names(modifier: int) -> frozenset[str]:
    mod = (modifier - 1) & ~LOCK_MASK
    return frozenset(name for name, bit in MODIFIERS.items() if mod & bit)


def _event_type(raw: str | None) -> KeyEventType:
    if not raw:
        return "press"
    return _EVENT_TYPES.get(int(raw), "press")


def _decode_kitty(data: str) -> KeyEvent | None | Literal[False]:
    """Decode a kitty sequence; ``False`` means *data* is not one."""
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        codepoint = int(m.group(1))
        shifted = int(m.group(2)) if m.group(2) else None
        modifiers = _modifier_names(int(m.group(4)) if m.group(4) else 1)
        kind = _event_type(m.group(5))

        named = _KITTY_CODEPOINT_TO_KEY.get(codepoint)
        if named is not None:
            return KeyEvent(named, kind, modifiers)
        if codepoint >= _KITTY_PRIVATE_USE_START:
            return None

        if "shift" in modifiers and shifted is not None:
            ch = chr(shifted)
        else:
            ch = chr(codepoint)
            if "shift" in modifiers:
                ch = ch.upper()
        if not ch.isprintable():
            return None
        return KeyEvent(ch, kind, modifiers)

    m = _KITTY_LETTER_RE.match(data)
    if m:
        return KeyEvent(
            _LETTER_TO_KEY[m.group(3)],
            _event_type(m.group(2)),
            _modifier_names(int(m.group(1))),
        )

    m = _KITTY_FUNCTIONAL_RE.match(data)
    if m:
        key = _FUNCTIONAL_NUMBER_TO_KEY.get(int(m.group(1)))
        if key is None:
            return None
        return KeyEvent(
            key,
            _event_type(m.group(3)),
            _modifier_names(int(m.group(2))),
        )

    return False


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def decode_key(data: str) -> KeyEvent | None:
    """Decode one complete input sequence, or return ``None``.

    ``None`` means the sequence is well-formed but does not describe a
    key this module knows about (mouse reports, focus events, terminal
    query responses and so on).
    """
    if not data:
        return None

    kitty = _decode_kitty(data)
    if kitty is not False:
        return kitty

    legacy = LEGACY_KEY_SEQUENCES.get(data)
    if legacy is not None:
        return KeyEvent(legacy)

    if data == "\x1b":
        return KeyEvent(Key.escape)
    if data == "\r" or data == "\n":
        return KeyEvent(Key.enter)
    if data == "\t":
        return KeyEvent(Key.tab)
    if data == "\x1b[Z":
        return KeyEvent(Key.tab, modifiers=frozenset({"shift"}))
    if data == "\x7f" or data == "\x08":
        return KeyEvent(Key.backspace)

    # Ctrl + letter (0x01 - 0x1a)
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return KeyEvent(chr(ord(data) + ord("a") - 1), modifiers=frozenset({"ctrl"}))

    # Alt + key (ESC prefix)
    if len(data) == 2 and data[0] == "\x1b":
        inner = decode_key(data[1])
        if inner is None:
            return None
        return KeyEvent(inner.code, inner.kind, inner.modifiers | {"alt"})

    if len(data) == 1 and data.isprintable():
        return KeyEvent(data)

    return None
