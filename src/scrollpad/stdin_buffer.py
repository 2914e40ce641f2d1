"""Reassembly of raw stdin chunks into complete input sequences.

Reads from a tty can split an escape sequence across chunks. Without
buffering, the tail of an arrow key would be read as ordinary typing.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable, Literal

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

SequenceStatus = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_sequence(data: str) -> SequenceStatus:
    """Classify *data* as a complete or partial escape sequence."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    introducer = data[1]

    # CSI: ESC [ params final-byte
    if introducer == "[":
        if data.startswith(f"{ESC}[M"):
            # X10 mouse report, three payload bytes
            return "complete" if len(data) >= 6 else "incomplete"
        if len(data) < 3:
            return "incomplete"
        payload = data[2:]
        if not 0x40 <= ord(payload[-1]) <= 0x7E:
            return "incomplete"
        if payload.startswith("<") and not _SGR_MOUSE_RE.match(payload):
            return "incomplete"
        return "complete"

    # OSC: ESC ] ... (BEL | ST)
    if introducer == "]":
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # DCS and APC: terminated by ST
    if introducer in ("P", "_"):
        return "complete" if data.endswith(f"{ESC}\\") else "incomplete"

    # SS3: ESC O <char>
    if introducer == "O":
        return "complete" if len(data) >= 3 else "incomplete"

    # Meta: ESC <char>
    return "complete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and a trailing partial one."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while end <= len(buffer):
            if _is_complete_sequence(buffer[pos:end]) == "complete":
                break
            end += 1
        else:
            return sequences, buffer[pos:]

        sequences.append(buffer[pos:end])
        pos = end

    return sequences, ""


class StdinBuffer:
    """Buffers decoded stdin text and emits complete sequences.

    A lone trailing ESC (or any partial sequence) is held for *timeout*
    seconds; if nothing completes it in time it is emitted as-is, which
    is how a bare Escape key press gets through.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout: float = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for bracketed paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed a chunk of decoded input."""
        self._cancel_timeout()
        self._buffer += data

        if self._paste_mode:
            self._paste_buffer += self._buffer
            self._buffer = ""
            self._finish_paste()
            return

        start = self._buffer.find(BRACKETED_PASTE_START)
        if start != -1:
            sequences, _ = _extract_complete_sequences(self._buffer[:start])
            for sequence in sequences:
                self._emit_data(sequence)
            self._paste_mode = True
            self._paste_buffer = self._buffer[start + len(BRACKETED_PASTE_START):]
            self._buffer = ""
            self._finish_paste()
            return

        sequences, self._buffer = _extract_complete_sequences(self._buffer)
        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._flush_timeout()
            else:
                self._timeout_handle = loop.call_later(
                    self._timeout, self._flush_timeout
                )

    def _finish_paste(self) -> None:
        end = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content = self._paste_buffer[:end]
        remaining = self._paste_buffer[end + len(BRACKETED_PASTE_END):]
        self._paste_mode = False
        self._paste_buffer = ""
        self._emit_paste(content)
        if remaining:
            self.process(remaining)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        """Return and clear whatever partial input is buffered."""
        self._cancel_timeout()
        if not self._buffer:
            return []
        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def get_buffer(self) -> str:
        return self._buffer

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""
