"""Exception types raised by the scrollpad session."""

from __future__ import annotations


class ScrollpadError(Exception):
    """Base class for every error raised by scrollpad."""


class InputDecodeError(ScrollpadError):
    """The next raw input event could not be read or interpreted."""


class DrawError(ScrollpadError):
    """A frame could not be written to the terminal."""


class TerminalModeError(ScrollpadError):
    """Raw mode or the alternate screen could not be entered or left."""


class ChannelClosed(ScrollpadError):
    """An event was sent on a channel that has already been closed."""
