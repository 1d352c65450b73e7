from __future__ import annotations

import curses
import logging
import os
from typing import Callable

from ..actions.base import ActionError, Actions
from ..feeds.base import NotificationRecord
from .keys import KeyMap
from .render import Style, cell_width, render, truncate_cells
from .state import Event, EventKind, NavigationState, reduce


_EVENT_COMMANDS = {
    "move_up": EventKind.MOVE_UP,
    "move_down": EventKind.MOVE_DOWN,
    "toggle_preview": EventKind.TOGGLE_PREVIEW,
    "toggle_help": EventKind.TOGGLE_HELP,
    "resize_preview": EventKind.RESIZE_PREVIEW,
    "toggle": EventKind.TOGGLE_SELECT,
    "quit": EventKind.QUIT,
}


class InteractiveSession:
    """Curses loop around the navigation reducer; actions go through `Actions`."""

    def __init__(
        self,
        records: list[NotificationRecord],
        bindings: dict[str, str],
        actions: Actions,
        reload: Callable[[], list[NotificationRecord]],
        host: str = "github.com",
        preview: bool = False,
    ) -> None:
        self.records = records
        self.state = NavigationState.initial(len(records), preview_visible=preview)
        self.status = ""
        self._bindings = bindings
        self._keymap = KeyMap(bindings)
        self._actions = actions
        self._reload = reload
        self._host = host
        self._stdscr = None
        self._styles: dict[Style, int] = {}
        self._logger = logging.getLogger(__name__)

    def run(self) -> None:
        os.environ.setdefault("ESCDELAY", "25")
        curses.wrapper(self._loop)

    @property
    def current(self) -> NotificationRecord | None:
        if self.state.cursor is None:
            return None
        return self.records[self.state.cursor]

    def dispatch(self, event: Event) -> None:
        self.state = reduce(self.state, event)

    def handle_key(self, key: int) -> None:
        if key == curses.KEY_RESIZE and self._stdscr is not None:
            height, width = self._stdscr.getmaxyx()
            self.dispatch(Event.resize(width, height))
            return
        command = self._keymap.command_for(key)
        if command is not None:
            self.handle_command(command)

    def handle_command(self, command: str) -> None:
        self.status = ""
        kind = _EVENT_COMMANDS.get(command)
        if kind is not None:
            self.dispatch(Event(kind))
            return
        if command == "reload":
            self._refresh("Reloaded")
            return
        if command == "mark_all_read":
            self._mark_read(self.records)
            return

        record = self.current
        if record is None:
            return
        try:
            if command == "view":
                if not self.state.preview_visible:
                    self.dispatch(Event(EventKind.OPEN))
                else:
                    self._external(lambda: self._actions.view(record))
            elif command == "open_browser":
                self._external(lambda: self._actions.open_in_browser(record))
            elif command in ("view_diff", "view_patch"):
                patch = command == "view_patch"
                if not self._external(lambda: self._actions.view_diff(record, patch=patch)):
                    self.status = f"No diff for {record.subject_type or 'this notification'}"
            elif command == "mark_read":
                targets = [self.records[index] for index in sorted(self.state.selected)] or [record]
                self._mark_read(targets)
            elif command == "comment":
                self._external(lambda: self._actions.comment(record))
                self.dispatch(Event(EventKind.QUIT))
        except ActionError as exc:
            self._logger.debug("Action %s failed: %s", command, exc)
            self.status = str(exc)

    def _mark_read(self, targets: list[NotificationRecord]) -> None:
        if not targets:
            return
        try:
            for record in targets:
                self._actions.mark_read(record.id)
        except ActionError as exc:
            self.status = str(exc)
            return
        self._refresh(f"Marked {len(targets)} notification(s) as read")

    def _refresh(self, message: str) -> None:
        self.records = self._reload()
        self.dispatch(Event.load(len(self.records)))
        self.status = message

    def _external(self, action: Callable[[], object]) -> object:
        """Hand the terminal to a child process for the duration of `action`."""
        if self._stdscr is None:
            return action()
        curses.def_prog_mode()
        curses.endwin()
        try:
            return action()
        finally:
            curses.reset_prog_mode()
            self._stdscr.clear()

    def _loop(self, stdscr) -> None:
        self._stdscr = stdscr
        self._init_curses(stdscr)
        height, width = stdscr.getmaxyx()
        self.dispatch(Event.resize(width, height))
        while self.state.running:
            self._draw(stdscr)
            self.handle_key(stdscr.getch())
        self._stdscr = None

    def _init_curses(self, stdscr) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        stdscr.keypad(True)
        plain = curses.A_NORMAL
        self._styles = {style: plain for style in Style}
        if curses.has_colors():
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(1, curses.COLOR_GREEN, -1)  # header
            curses.init_pair(2, curses.COLOR_CYAN, -1)  # selected
            curses.init_pair(3, curses.COLOR_BLACK, curses.COLOR_CYAN)  # cursor
            curses.init_pair(4, curses.COLOR_YELLOW, -1)  # status
            self._styles.update(
                {
                    Style.HEADER: curses.color_pair(1) | curses.A_BOLD,
                    Style.SELECTED: curses.color_pair(2),
                    Style.CURSOR: curses.color_pair(3) | curses.A_BOLD,
                    Style.STATUS: curses.color_pair(4),
                }
            )
        self._styles[Style.ROW_UNREAD] = self._styles[Style.ROW_UNREAD] | curses.A_BOLD
        self._styles[Style.ROW] = self._styles[Style.ROW] | curses.A_DIM
        self._styles[Style.HELP] = self._styles[Style.HELP] | curses.A_DIM

    def _draw(self, stdscr) -> None:
        stdscr.erase()
        lines = render(self.state, self.records, self._bindings, self.status, self._host)
        for row, (text, style) in enumerate(lines):
            if style is Style.CURSOR and self.state.width:
                text += " " * max(0, self.state.width - cell_width(text))
            _safe_addstr(stdscr, row, 0, text, self._styles.get(style, curses.A_NORMAL))
        stdscr.refresh()


def _safe_addstr(win, y: int, x: int, text: str, attr: int = 0) -> None:
    """Clip to the window and never write the bottom-right cell, which scrolls."""
    height, width = win.getmaxyx()
    if y < 0 or y >= height or x < 0 or x >= width:
        return
    text = truncate_cells(text, width - x)
    if y == height - 1 and x + cell_width(text) >= width:
        text = truncate_cells(text, width - x - 1)
    if not text:
        return
    try:
        win.addstr(y, x, text, attr)
    except curses.error:
        pass
