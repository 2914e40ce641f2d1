"""Tests for scrollpad.terminal -- KeyReader over a pipe, ProcessTerminal."""

from __future__ import annotations

import asyncio
import io
import os
import termios

import pytest

from scrollpad.errors import InputDecodeError, TerminalModeError
from scrollpad.keys import Key, KeyEvent
from scrollpad.terminal import KeyReader, ProcessTerminal


class Pipe:
    """An os.pipe whose ends are closed at most once."""

    def __init__(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        self._open = {self.read_fd, self.write_fd}

    def write(self, data: bytes) -> None:
        os.write(self.write_fd, data)

    def close_write(self) -> None:
        if self.write_fd in self._open:
            self._open.discard(self.write_fd)
            os.close(self.write_fd)

    def close(self) -> None:
        for fd in list(self._open):
            os.close(fd)
        self._open.clear()


@pytest.fixture
def pipe():
    p = Pipe()
    yield p
    p.close()


@pytest.fixture
def pty_stdin():
    master, slave = os.openpty()
    stdin = os.fdopen(slave, "r")
    yield stdin
    stdin.close()
    os.close(master)


async def next_key(reader: KeyReader) -> KeyEvent | None:
    return await asyncio.wait_for(reader.next(), timeout=1)


class TestKeyReader:
    @pytest.mark.asyncio
    async def test_decodes_keys_in_order(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            pipe.write(b"a\x1b[A\r\x1b[B")
            assert await next_key(reader) == KeyEvent("a")
            assert await next_key(reader) == KeyEvent(Key.up)
            assert await next_key(reader) == KeyEvent(Key.enter)
            assert await next_key(reader) == KeyEvent(Key.down)
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_multibyte_character_split_across_reads(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            encoded = "é".encode()
            reader.feed(encoded[:1])
            reader.feed(encoded[1:])
            assert await next_key(reader) == KeyEvent("é")
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_lone_escape_arrives_after_timeout(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            pipe.write(b"\x1b")
            assert await next_key(reader) == KeyEvent(Key.escape)
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_a_decode_error(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            pipe.write(b"x\xff")
            assert await next_key(reader) == KeyEvent("x")
            with pytest.raises(InputDecodeError, match="invalid UTF-8"):
                await next_key(reader)
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_end_of_input(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            pipe.write(b"z")
            pipe.close_write()
            assert await next_key(reader) == KeyEvent("z")
            assert await next_key(reader) is None
            assert await next_key(reader) is None
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_paste_replays_characters(self, pipe) -> None:
        reader = KeyReader(pipe.read_fd)
        try:
            pipe.write(b"\x1b[200~ab\n\x1b[201~")
            keys = [await next_key(reader) for _ in range(3)]
            assert keys == [KeyEvent("a"), KeyEvent("b"), KeyEvent(Key.enter)]
        finally:
            reader.close()

    @pytest.mark.asyncio
    async def test_kitty_response_is_consumed(self, pipe) -> None:
        seen: list[int] = []
        reader = KeyReader(pipe.read_fd, on_kitty_response=seen.append)
        try:
            pipe.write(b"\x1b[?0uq")
            assert await next_key(reader) == KeyEvent("q")
            assert seen == [0]
        finally:
            reader.close()


class TestProcessTerminal:
    def test_enter_requires_a_tty(self, pipe) -> None:
        stdin = os.fdopen(os.dup(pipe.read_fd), "r")
        stdout = io.StringIO()
        try:
            terminal = ProcessTerminal(stdin=stdin, stdout=stdout)
            with pytest.raises(TerminalModeError, match="not a terminal"):
                terminal.enter()
            # Nothing was entered, so leaving is a no-op.
            terminal.leave()
            assert stdout.getvalue() == ""
        finally:
            stdin.close()

    def test_size_falls_back_without_a_tty(self) -> None:
        terminal = ProcessTerminal(stdin=io.StringIO(), stdout=io.StringIO())
        assert terminal.columns == 80
        assert terminal.rows == 24

    def test_write_goes_to_stdout(self) -> None:
        stdout = io.StringIO()
        terminal = ProcessTerminal(stdin=io.StringIO(), stdout=stdout)
        terminal.write("frame")
        terminal.flush()
        assert stdout.getvalue() == "frame"

    def test_enter_and_leave_toggle_bracketed_paste(self, pty_stdin) -> None:
        stdout = io.StringIO()
        terminal = ProcessTerminal(stdin=pty_stdin, stdout=stdout)

        terminal.enter()
        entered = stdout.getvalue()
        assert "\x1b[?1049h" in entered
        assert "\x1b[?2004h" in entered
        assert "\x1b[?2004l" not in entered

        terminal.leave()
        left = stdout.getvalue()[len(entered):]
        assert "\x1b[?2004l" in left
        assert left.endswith("\x1b[?1049l")

    def test_leave_restores_terminal_attributes(self, pty_stdin) -> None:
        fd = pty_stdin.fileno()
        before = termios.tcgetattr(fd)
        terminal = ProcessTerminal(stdin=pty_stdin, stdout=io.StringIO())

        terminal.enter()
        assert termios.tcgetattr(fd) != before
        terminal.leave()
        assert termios.tcgetattr(fd) == before
