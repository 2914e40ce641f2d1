"""Terminal abstraction: raw mode, alternate screen and key input.

Provides the ``Terminal`` and ``KeySource`` protocols used by the core,
and a concrete ``ProcessTerminal`` backed by ``sys.stdin``/``sys.stdout``
that manages raw mode via :mod:`tty` and :mod:`termios`, the alternate
screen, cursor visibility, bracketed paste and the kitty keyboard
protocol.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import re
import sys
import termios
import tty
from typing import Callable, Protocol, TextIO, Union

from scrollpad.errors import InputDecodeError, TerminalModeError
from scrollpad.keys import KeyEvent, decode_key
from scrollpad.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_KITTY_QUERY = "\x1b[?u"
# Disambiguate escape codes (1) + report event types (2)
_KITTY_ENABLE = "\x1b[>3u"
_KITTY_DISABLE = "\x1b[<u"

_KITTY_RESPONSE_RE = re.compile(r"^\x1b\[\?(\d+)u$")

_READ_SIZE = 4096


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for the terminal device shared by the session."""

    def enter(self) -> None: ...

    def leave(self) -> None: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def key_reader(self) -> KeySource: ...


class KeySource(Protocol):
    """Stream of decoded key events."""

    async def next(self) -> KeyEvent | None:
        """Return the next key event, or ``None`` once input has ended."""
        ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# KeyReader
# ---------------------------------------------------------------------------

_Item = Union[KeyEvent, InputDecodeError, None]


class KeyReader:
    """Async key source reading from a file descriptor.

    Registers the fd with the running event loop, decodes UTF-8
    incrementally, splits the text into sequences with a
    :class:`StdinBuffer` and decodes each sequence to a :class:`KeyEvent`.
    Read and decode failures are delivered in order, as an
    :class:`InputDecodeError` raised from :meth:`next`.
    """

    def __init__(
        self,
        fd: int,
        on_kitty_response: Callable[[int], None] | None = None,
    ) -> None:
        self._fd = fd
        self._on_kitty_response = on_kitty_response
        self._queue: asyncio.Queue[_Item] = asyncio.Queue()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="strict")
        self._buffer = StdinBuffer(timeout=0.01)
        self._buffer.on_data(self._on_sequence)
        self._buffer.on_paste(self._on_paste)
        self._loop = asyncio.get_running_loop()
        self._reading = True
        self._loop.add_reader(fd, self._on_readable)

    async def next(self) -> KeyEvent | None:
        item = await self._queue.get()
        if isinstance(item, InputDecodeError):
            raise item
        if item is None:
            # Keep reporting the end to any later caller.
            self._queue.put_nowait(None)
        return item

    def close(self) -> None:
        self._stop_reading()
        self._buffer.clear()

    def feed(self, data: bytes) -> None:
        """Process a chunk of raw input bytes."""
        try:
            text = self._decoder.decode(data)
        except UnicodeDecodeError as exc:
            # Keys typed before the bad byte are still delivered first.
            valid = exc.object[: exc.start]
            if valid:
                self._buffer.process(bytes(valid).decode("utf-8"))
            self._fail(InputDecodeError(f"invalid UTF-8 input: {exc.reason}"))
            return
        if text:
            self._buffer.process(text)

    def _on_readable(self) -> None:
        try:
            data = os.read(self._fd, _READ_SIZE)
        except BlockingIOError:
            return
        except OSError as exc:
            self._fail(InputDecodeError(f"reading input failed: {exc}"))
            return

        if not data:
            logger.debug("input reached end of file")
            for sequence in self._buffer.flush():
                self._on_sequence(sequence)
            self._stop_reading()
            self._queue.put_nowait(None)
            return

        self.feed(data)

    def _on_sequence(self, sequence: str) -> None:
        match = _KITTY_RESPONSE_RE.match(sequence)
        if match:
            if self._on_kitty_response is not None:
                self._on_kitty_response(int(match.group(1)))
            return
        key = decode_key(sequence)
        if key is not None:
            self._queue.put_nowait(key)

    def _on_paste(self, content: str) -> None:
        for ch in content:
            self._on_sequence(ch)

    def _fail(self, error: InputDecodeError) -> None:
        self._stop_reading()
        self._queue.put_nowait(error)

    def _stop_reading(self) -> None:
        if not self._reading:
            return
        self._reading = False
        try:
            self._loop.remove_reader(self._fd)
        except (RuntimeError, ValueError):
            pass


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin and stdout."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._original_termios: list | None = None
        self._kitty_protocol_active = False
        self._entered = False

    # -- properties ---------------------------------------------------------

    @property
    def kitty_protocol_active(self) -> bool:
        return self._kitty_protocol_active

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- enter / leave ------------------------------------------------------

    def enter(self) -> None:
        """Switch to raw mode and the alternate screen."""
        if self._entered:
            return
        try:
            fd = self._stdin.fileno()
            if not os.isatty(fd):
                raise TerminalModeError("stdin is not a terminal")
            self._original_termios = termios.tcgetattr(fd)
            tty.setraw(fd)
        except (termios.error, OSError, ValueError) as exc:
            raise TerminalModeError(f"cannot enable raw mode: {exc}") from exc

        self._entered = True
        self._write_quietly(
            _ALT_SCREEN_ENABLE + _HIDE_CURSOR + _CLEAR_SCREEN + _BRACKETED_PASTE_ENABLE
        )
        self._write_quietly(_KITTY_QUERY)
        logger.debug("entered raw mode and alternate screen")

    def leave(self) -> None:
        """Restore the terminal to the state found by :meth:`enter`."""
        if not self._entered:
            return
        self._entered = False

        if self._kitty_protocol_active:
            self._write_quietly(_KITTY_DISABLE)
            self._kitty_protocol_active = False
        self._write_quietly(_BRACKETED_PASTE_DISABLE + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)

        if self._original_termios is not None:
            try:
                termios.tcsetattr(
                    self._stdin.fileno(), termios.TCSADRAIN, self._original_termios
                )
            except (termios.error, OSError) as exc:
                raise TerminalModeError(f"cannot restore terminal: {exc}") from exc
            finally:
                self._original_termios = None
        logger.debug("left raw mode and alternate screen")

    # -- input --------------------------------------------------------------

    def key_reader(self) -> KeyReader:
        return KeyReader(self._stdin.fileno(), self._on_kitty_response)

    def _on_kitty_response(self, flags: int) -> None:
        if self._kitty_protocol_active or not self._entered:
            return
        logger.debug("kitty keyboard protocol supported (flags=%d)", flags)
        self._kitty_protocol_active = True
        self._write_quietly(_KITTY_ENABLE)

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._stdout.write(data)

    def flush(self) -> None:
        self._stdout.flush()

    def _write_quietly(self, data: str) -> None:
        try:
            self._stdout.write(data)
            self._stdout.flush()
        except OSError:
            pass
