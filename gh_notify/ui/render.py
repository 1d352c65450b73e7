from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, auto
import textwrap
import unicodedata

from ..feeds.base import NotificationRecord, html_url
from ..presenter import ELLIPSIS, FINAL_MESSAGE, NAME_WIDTH, OWNER_WIDTH, UNREAD_SYMBOL, abbreviate, time_ago
from .state import PREVIEW_ROWS, NavigationState


POINTER = "▶"
SELECTED_MARK = "+"

_HELP_ORDER = (
    ("view", "view"),
    ("toggle_preview", "preview"),
    ("resize_preview", "resize"),
    ("open_browser", "browser"),
    ("view_diff", "diff"),
    ("view_patch", "patch"),
    ("mark_read", "mark read"),
    ("mark_all_read", "mark all read"),
    ("toggle", "select"),
    ("comment", "comment"),
    ("reload", "reload"),
    ("toggle_help", "help"),
)


class Style(Enum):
    HEADER = auto()
    ROW = auto()
    ROW_UNREAD = auto()
    CURSOR = auto()
    SELECTED = auto()
    BLANK = auto()
    PREVIEW = auto()
    HELP = auto()
    STATUS = auto()


Line = tuple[str, Style]


def render(
    state: NavigationState,
    records: list[NotificationRecord],
    bindings: dict[str, str],
    status: str = "",
    host: str = "github.com",
    now: datetime | None = None,
) -> list[Line]:
    """Lay out one frame as (text, style) pairs, top to bottom."""
    if state.height is None or state.width is None:
        return []
    now = now or datetime.now(timezone.utc)
    width = state.width
    lines: list[Line] = [(_clip(_header(state, bindings), width), Style.HEADER)]

    viewport = state.viewport_height or 0
    rows: list[Line] = []
    if state.cursor is None:
        rows.append((_clip(FINAL_MESSAGE, width), Style.ROW))
    else:
        for index in state.window():
            record = records[index]
            text = format_list_row(record, index == state.cursor, index in state.selected, now)
            rows.append((_clip(text, width), _row_style(state, index, record)))
    rows.extend([("", Style.BLANK)] * (viewport - len(rows)))
    lines.extend(rows[:viewport])

    if state.preview_height and state.cursor is not None:
        preview = preview_lines(records[state.cursor], width, state.preview_height, host, now)
        lines.extend((text, Style.PREVIEW) for text in preview)
    if state.help_visible:
        lines.append((_clip(help_line(bindings), width), Style.HELP))
    lines.append((_clip(status, width), Style.STATUS))
    return lines[: state.height]


def format_list_row(record: NotificationRecord, is_cursor: bool, is_selected: bool, now: datetime) -> str:
    pointer = POINTER if is_cursor else " "
    mark = SELECTED_MARK if is_selected else " "
    glyph = UNREAD_SYMBOL if record.unread else " "
    repo = f"{abbreviate(record.repository_owner, OWNER_WIDTH)}/{abbreviate(record.repository_name, NAME_WIDTH)}"
    when = time_ago(record.last_read_at, record.updated_at, record.unread, now)
    number = f"#{record.number}" if record.number.isdigit() else ""
    return (
        f"{pointer}{mark}{glyph} {when:<13} {repo:<25} {record.subject_type:<12} "
        f"{number:>7}  {record.reason:<17} {record.subject_title}"
    )


def preview_lines(
    record: NotificationRecord, width: int, height: int, host: str, now: datetime
) -> list[str]:
    title_width = max(1, width - 8)
    title = textwrap.wrap(record.subject_title, title_width) or [""]
    # Only the expanded preview has room for a wrapped title.
    extra = max(0, height - PREVIEW_ROWS)
    title = title[: 1 + extra]
    lines = ["─" * width]
    lines.append(f"Title:  {title[0]}")
    lines.extend(f"        {part}" for part in title[1:])
    lines.extend(
        [
            f"Repo:   {record.repository_full_name}",
            f"Type:   {record.subject_type}",
            f"Reason: {record.reason}",
            f"URL:    {html_url(record, host)}",
            f"Time:   {time_ago(record.last_read_at, record.updated_at, record.unread, now)}",
            f"Unread: {'yes' if record.unread else 'no'}",
        ]
    )
    lines = [_clip(line, width) for line in lines[:height]]
    lines.extend([""] * (height - len(lines)))
    return lines


def help_line(bindings: dict[str, str]) -> str:
    parts = [f"{bindings[name]} {label}" for name, label in _HELP_ORDER if name in bindings]
    parts.append("esc quit")
    return " · ".join(parts)


def _header(state: NavigationState, bindings: dict[str, str]) -> str:
    text = f"GitHub Notifications ({state.length})"
    if state.selected:
        text += f" · {len(state.selected)} selected"
    return f"{text} · {bindings.get('toggle_help', '?')} help · esc quit"


def _row_style(state: NavigationState, index: int, record: NotificationRecord) -> Style:
    if index == state.cursor:
        return Style.CURSOR
    if index in state.selected:
        return Style.SELECTED
    return Style.ROW_UNREAD if record.unread else Style.ROW


def cell_width(text: str) -> int:
    """Terminal columns taken by text: wide East Asian characters use two, combining marks none."""
    total = 0
    for char in text:
        if unicodedata.combining(char):
            continue
        total += 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1
    return total


def truncate_cells(text: str, limit: int) -> str:
    """Longest prefix of text that fits in limit terminal columns."""
    used = 0
    for index, char in enumerate(text):
        used += cell_width(char)
        if used > limit:
            return text[:index]
    return text


def _clip(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if cell_width(text) <= width:
        return text
    return truncate_cells(text, width - 1) + ELLIPSIS
