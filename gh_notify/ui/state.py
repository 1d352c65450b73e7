from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto


HEADER_ROWS = 1
HELP_ROWS = 1
STATUS_ROWS = 1
PREVIEW_ROWS = 8


class EventKind(Enum):
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    TOGGLE_PREVIEW = auto()
    TOGGLE_HELP = auto()
    OPEN = auto()
    RESIZE = auto()
    QUIT = auto()
    TOGGLE_SELECT = auto()
    RESIZE_PREVIEW = auto()
    LOAD = auto()


@dataclass(frozen=True)
class Event:
    kind: EventKind
    width: int = 0
    height: int = 0
    length: int = 0

    @classmethod
    def resize(cls, width: int, height: int) -> Event:
        return cls(EventKind.RESIZE, width=width, height=height)

    @classmethod
    def load(cls, length: int) -> Event:
        return cls(EventKind.LOAD, length=length)


@dataclass(frozen=True)
class NavigationState:
    """Cursor and visibility state of the interactive list."""

    length: int
    cursor: int | None = 0
    width: int | None = None
    height: int | None = None
    preview_visible: bool = False
    help_visible: bool = False
    preview_expanded: bool = False
    selected: frozenset[int] = field(default_factory=frozenset)
    running: bool = True

    @classmethod
    def initial(cls, length: int, preview_visible: bool = False) -> NavigationState:
        return cls(length=length, cursor=0 if length else None, preview_visible=preview_visible)

    @property
    def preview_height(self) -> int:
        if not self.preview_visible or self.height is None:
            return 0
        if self.preview_expanded:
            return max(PREVIEW_ROWS, self.height * 3 // 4)
        return min(PREVIEW_ROWS, self.height // 2)

    @property
    def viewport_height(self) -> int | None:
        if self.height is None:
            return None
        reserved = HEADER_ROWS + STATUS_ROWS + self.preview_height
        if self.help_visible:
            reserved += HELP_ROWS
        return max(1, self.height - reserved)

    def window(self) -> range:
        if self.cursor is None or self.viewport_height is None:
            return range(0)
        return visible_window(self.cursor, self.length, self.viewport_height)


def visible_window(cursor: int, length: int, height: int) -> range:
    """Rows to show so that the cursor stays inside a window of `height` rows."""
    if length <= 0 or height <= 0:
        return range(0)
    if length <= height:
        return range(length)
    half = height // 2
    if cursor < half:
        start = 0
    elif cursor >= length - half:
        start = length - height
    else:
        start = cursor - half
    return range(start, start + height)


def reduce(state: NavigationState, event: Event) -> NavigationState:
    kind = event.kind
    if kind is EventKind.QUIT:
        return replace(state, running=False)
    if kind is EventKind.RESIZE:
        return replace(state, width=event.width, height=event.height)
    if kind is EventKind.TOGGLE_PREVIEW:
        return replace(state, preview_visible=not state.preview_visible)
    if kind is EventKind.TOGGLE_HELP:
        return replace(state, help_visible=not state.help_visible)
    if kind is EventKind.OPEN:
        return replace(state, preview_visible=True)
    if kind is EventKind.RESIZE_PREVIEW:
        return replace(state, preview_expanded=not state.preview_expanded, preview_visible=True)
    if kind is EventKind.LOAD:
        return _load(state, event.length)

    if state.cursor is None:
        return state
    if kind is EventKind.MOVE_UP:
        return replace(state, cursor=max(state.cursor - 1, 0))
    if kind is EventKind.MOVE_DOWN:
        return replace(state, cursor=min(state.cursor + 1, state.length - 1))
    if kind is EventKind.TOGGLE_SELECT:
        selected = state.selected ^ {state.cursor}
        return replace(state, selected=selected, cursor=min(state.cursor + 1, state.length - 1))
    return state


def _load(state: NavigationState, length: int) -> NavigationState:
    if length <= 0:
        cursor = None
    elif state.cursor is None:
        cursor = 0
    else:
        cursor = min(state.cursor, length - 1)
    return replace(state, length=length, cursor=cursor, selected=frozenset())
