"""Frame rendering: a titled box of text with a vertical scrollbar.

The box covers the whole terminal. Visible lines are clipped to the inner
width by display cells, and the scrollbar is painted over the right-hand
border column. Frames are diffed line by line against the previous one
so only changed rows are rewritten.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Protocol

import grapheme
import wcwidth as _wcwidth

from scrollpad.errors import DrawError

if TYPE_CHECKING:
    from scrollpad.state import ScrollbarState
    from scrollpad.terminal import Terminal

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Glyphs
# ---------------------------------------------------------------------------

_TOP_LEFT = "┌"
_TOP_RIGHT = "┐"
_BOTTOM_LEFT = "└"
_BOTTOM_RIGHT = "┘"
_HORIZONTAL = "─"
_VERTICAL = "│"

SCROLLBAR_BEGIN = "↑"
SCROLLBAR_END = "↓"
SCROLLBAR_TRACK = "║"
SCROLLBAR_THUMB = "█"

_CLEAR_SCREEN = "\x1b[2J"
_MOVE_TO_FMT = "\x1b[{};1H"
_SYNC_BEGIN = "\x1b[?2026h"
_SYNC_END = "\x1b[?2026l"


class FrameSink(Protocol):
    """Anything that can draw one frame from lines and a scrollbar state."""

    def draw(self, lines: list[str], scroll_state: ScrollbarState) -> None: ...


# ---------------------------------------------------------------------------
# Width helpers
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Display width of one grapheme cluster; control characters are 0."""
    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)
    return max(_wcwidth.wcswidth(g), 0)


def visible_width(text: str) -> int:
    return sum(_grapheme_width(g) for g in grapheme.graphemes(text))


def fit_to_width(text: str, width: int) -> str:
    """Clip *text* to *width* cells and pad it with spaces to exactly that.

    A wide character that would straddle the edge is replaced by padding.
    """
    out: list[str] = []
    used = 0
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if w == 0:
            continue
        if used + w > width:
            break
        out.append(g)
        used += w
    return "".join(out) + " " * (width - used)


# ---------------------------------------------------------------------------
# Scrollbar geometry
# ---------------------------------------------------------------------------


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5))


def scrollbar_column(state: ScrollbarState, height: int) -> list[str] | None:
    """Return one glyph per row for a vertical scrollbar of *height* rows.

    ``None`` means nothing is drawn: there is no content, or the area is
    too short for both end markers and a track.
    """
    if state.content_length == 0 or height < 3:
        return None

    track_length = height - 2
    viewport_length = state.viewport_content_length or height
    max_position = max(state.content_length - 1, 0)
    position = min(state.position, max_position)

    max_viewport_position = max_position + viewport_length
    start = position * track_length / max_viewport_position
    end = (position + viewport_length) * track_length / max_viewport_position

    thumb_start = min(max(_round_half_away(start), 0), track_length - 1)
    thumb_end = min(max(_round_half_away(end), 0), track_length)
    thumb_length = max(thumb_end - thumb_start, 1)

    column = [SCROLLBAR_BEGIN]
    for i in range(track_length):
        inside = thumb_start <= i < thumb_start + thumb_length
        column.append(SCROLLBAR_THUMB if inside else SCROLLBAR_TRACK)
    column.append(SCROLLBAR_END)
    return column


# ---------------------------------------------------------------------------
# Frame layout
# ---------------------------------------------------------------------------


def layout_frame(
    lines: list[str],
    scroll_state: ScrollbarState,
    width: int,
    height: int,
    title: str = "",
) -> list[str]:
    """Lay out a full frame of *height* rows, each *width* cells wide."""
    if width < 2 or height < 2:
        return [" " * max(width, 0) for _ in range(max(height, 0))]

    inner_width = width - 2
    inner_height = height - 2

    top = _TOP_LEFT + fit_to_width(title, inner_width).rstrip(" ")
    top += _HORIZONTAL * (width - 1 - visible_width(top)) + _TOP_RIGHT

    rows = [top]
    for i in range(inner_height):
        text = lines[i] if i < len(lines) else ""
        rows.append(_VERTICAL + fit_to_width(text, inner_width) + _VERTICAL)
    rows.append(_BOTTOM_LEFT + _HORIZONTAL * inner_width + _BOTTOM_RIGHT)

    column = scrollbar_column(scroll_state, height)
    if column is not None:
        # Border glyphs are single-cell, so the last character is the last column.
        rows = [row[:-1] + glyph for row, glyph in zip(rows, column)]
    return rows


class Renderer:
    """Paints frames onto a :class:`Terminal`, rewriting only changed rows."""

    def __init__(self, terminal: Terminal, title: str = "") -> None:
        self.terminal = terminal
        self.title = title
        self._previous_rows: list[str] = []
        self._previous_size: tuple[int, int] | None = None
        self._frames = 0
        self._full_redraws = 0

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def full_redraws(self) -> int:
        return self._full_redraws

    def draw(self, lines: list[str], scroll_state: ScrollbarState) -> None:
        width = self.terminal.columns
        height = self.terminal.rows
        rows = layout_frame(lines, scroll_state, width, height, self.title)

        out: list[str] = [_SYNC_BEGIN]
        if (width, height) != self._previous_size:
            self._full_redraws += 1
            logger.debug("full redraw at %dx%d", width, height)
            out.append(_CLEAR_SCREEN)
            changed = range(len(rows))
        else:
            changed = [i for i, row in enumerate(rows) if row != self._previous_rows[i]]
        for i in changed:
            out.append(_MOVE_TO_FMT.format(i + 1))
            out.append(rows[i])
        out.append(_SYNC_END)

        try:
            self.terminal.write("".join(out))
            self.terminal.flush()
        except (OSError, UnicodeError) as exc:
            # Force a full redraw if a later frame gets through.
            self._previous_size = None
            raise DrawError(f"writing frame failed: {exc}") from exc

        self._previous_rows = rows
        self._previous_size = (width, height)
        self._frames += 1
