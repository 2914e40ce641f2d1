"""Application state owned by the render loop."""

from __future__ import annotations

from dataclasses import dataclass, field

from scrollpad.events import Character, Event, LineBreak, ScrollDown, ScrollUp


@dataclass
class ScrollbarState:
    """Display state of the vertical scrollbar.

    ``position`` is clamped to the last line of content, which is one
    less than the bound used for the text scroll offset.
    """

    content_length: int = 0
    position: int = 0
    viewport_content_length: int = 0

    def next(self) -> None:
        self.position = min(self.position + 1, max(self.content_length - 1, 0))

    def prev(self) -> None:
        self.position = max(self.position - 1, 0)


@dataclass
class AppState:
    """Text buffer plus scroll bookkeeping.

    ``scroll_position`` always stays within ``[0, line_count]``.
    """

    text: str = ""
    line_count: int = 0
    scroll_position: int = 0
    scroll_state: ScrollbarState = field(default_factory=ScrollbarState)

    @classmethod
    def seeded(cls, greeting: str) -> AppState:
        return cls(text=greeting + "\n", line_count=1)

    def push_char(self, char: str) -> None:
        self.text += char

    def line_break(self) -> None:
        self.text += "\n"
        self.line_count += 1

    def scroll_down(self) -> None:
        self.scroll_state.next()
        self.scroll_position = min(self.scroll_position + 1, self.line_count)

    def scroll_up(self) -> None:
        self.scroll_state.prev()
        self.scroll_position = max(self.scroll_position - 1, 0)

    def apply(self, event: Event) -> None:
        """Apply a state-changing event. ``Exit`` is handled by the loop."""
        if isinstance(event, Character):
            self.push_char(event.char)
        elif isinstance(event, LineBreak):
            self.line_break()
        elif isinstance(event, ScrollDown):
            self.scroll_down()
        elif isinstance(event, ScrollUp):
            self.scroll_up()

    def visible_lines(self) -> list[str]:
        return self.text.splitlines()[self.scroll_position:]

    def sync_scrollbar(self) -> ScrollbarState:
        """Refresh the scrollbar's content length before a frame."""
        self.scroll_state.content_length = self.line_count
        return self.scroll_state
