from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import curses
import unittest

from gh_notify.config import KeyBindings
from gh_notify.feeds.base import NotificationRecord
from gh_notify.ui.keys import KeyMap, parse_key
from gh_notify.ui.render import Style, cell_width, help_line, render, truncate_cells
from gh_notify.ui.state import Event, EventKind, NavigationState, reduce, visible_window


NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _records(count: int) -> list[NotificationRecord]:
    return [
        NotificationRecord(
            id=str(i),
            unread=i % 2 == 0,
            updated_at="2024-05-01T11:30:00Z",
            last_read_at="",
            repository_full_name="octo/repo",
            repository_owner="octo",
            repository_name="repo",
            reason="mention",
            subject_type="Issue",
            subject_title=f"Title {i}",
            subject_url=f"https://api.github.com/repos/octo/repo/issues/{i}",
            subject_latest_comment_url="",
        )
        for i in range(count)
    ]


def _apply(state: NavigationState, *kinds: EventKind) -> NavigationState:
    for kind in kinds:
        state = reduce(state, Event(kind))
    return state


class ReducerTests(unittest.TestCase):
    def test_initial_state(self) -> None:
        state = NavigationState.initial(5)
        self.assertEqual(state.cursor, 0)
        self.assertFalse(state.preview_visible)
        self.assertFalse(state.help_visible)
        self.assertIsNone(state.viewport_height)
        self.assertIsNone(NavigationState.initial(0).cursor)

    def test_cursor_clamps_at_both_ends(self) -> None:
        state = NavigationState.initial(5)
        self.assertEqual(_apply(state, EventKind.MOVE_UP).cursor, 0)
        bottom = replace(state, cursor=4)
        self.assertEqual(_apply(bottom, EventKind.MOVE_DOWN).cursor, 4)
        self.assertEqual(_apply(state, EventKind.MOVE_DOWN, EventKind.MOVE_DOWN, EventKind.MOVE_UP).cursor, 1)

    def test_toggles_and_open(self) -> None:
        state = NavigationState.initial(3)
        self.assertTrue(_apply(state, EventKind.TOGGLE_PREVIEW).preview_visible)
        self.assertFalse(_apply(state, EventKind.TOGGLE_PREVIEW, EventKind.TOGGLE_PREVIEW).preview_visible)
        self.assertTrue(_apply(state, EventKind.TOGGLE_HELP).help_visible)
        self.assertTrue(_apply(state, EventKind.OPEN, EventKind.OPEN).preview_visible)

    def test_resize_keeps_cursor(self) -> None:
        state = replace(NavigationState.initial(10), cursor=7)
        resized = reduce(state, Event.resize(80, 24))
        self.assertEqual((resized.width, resized.height, resized.cursor), (80, 24, 7))

    def test_quit_stops_session(self) -> None:
        self.assertFalse(_apply(NavigationState.initial(1), EventKind.QUIT).running)

    def test_empty_list_ignores_movement(self) -> None:
        state = _apply(NavigationState.initial(0), EventKind.MOVE_DOWN, EventKind.MOVE_UP, EventKind.TOGGLE_SELECT)
        self.assertIsNone(state.cursor)

    def test_toggle_select_moves_down(self) -> None:
        state = _apply(NavigationState.initial(3), EventKind.TOGGLE_SELECT, EventKind.TOGGLE_SELECT)
        self.assertEqual(state.selected, frozenset({0, 1}))
        self.assertEqual(state.cursor, 2)
        state = _apply(state, EventKind.MOVE_UP, EventKind.TOGGLE_SELECT)
        self.assertEqual(state.selected, frozenset({0}))

    def test_load_clamps_cursor_and_clears_selection(self) -> None:
        state = replace(NavigationState.initial(10), cursor=8, selected=frozenset({1, 8}))
        loaded = reduce(state, Event.load(3))
        self.assertEqual((loaded.length, loaded.cursor, loaded.selected), (3, 2, frozenset()))
        self.assertIsNone(reduce(state, Event.load(0)).cursor)
        self.assertEqual(reduce(reduce(state, Event.load(0)), Event.load(4)).cursor, 0)

    def test_viewport_height_accounts_for_panels(self) -> None:
        state = reduce(NavigationState.initial(100), Event.resize(80, 30))
        self.assertEqual(state.viewport_height, 28)
        self.assertEqual(_apply(state, EventKind.TOGGLE_HELP).viewport_height, 27)
        self.assertEqual(_apply(state, EventKind.TOGGLE_PREVIEW).viewport_height, 20)
        self.assertEqual(_apply(state, EventKind.RESIZE_PREVIEW).viewport_height, 6)


class VisibleWindowTests(unittest.TestCase):
    def test_short_lists_show_everything(self) -> None:
        self.assertEqual(visible_window(2, 5, 10), range(0, 5))

    def test_top_middle_and_bottom(self) -> None:
        self.assertEqual(visible_window(0, 100, 10), range(0, 10))
        self.assertEqual(visible_window(4, 100, 10), range(0, 10))
        self.assertEqual(visible_window(50, 100, 10), range(45, 55))
        self.assertEqual(visible_window(95, 100, 10), range(90, 100))
        self.assertEqual(visible_window(99, 100, 10), range(90, 100))

    def test_cursor_always_visible(self) -> None:
        for height in (1, 2, 7, 10):
            for cursor in range(40):
                with self.subTest(height=height, cursor=cursor):
                    self.assertIn(cursor, visible_window(cursor, 40, height))

    def test_empty(self) -> None:
        self.assertEqual(visible_window(0, 0, 10), range(0))


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bindings = KeyBindings().as_dict()

    def test_nothing_before_first_resize(self) -> None:
        self.assertEqual(render(NavigationState.initial(3), _records(3), self.bindings, now=NOW), [])

    def test_frame_fills_terminal(self) -> None:
        state = reduce(NavigationState.initial(50), Event.resize(100, 12))
        lines = render(state, _records(50), self.bindings, status="ok", now=NOW)
        self.assertEqual(len(lines), 12)
        self.assertEqual(lines[0][1], Style.HEADER)
        self.assertIn("GitHub Notifications (50)", lines[0][0])
        self.assertEqual(lines[1][1], Style.CURSOR)
        self.assertTrue(lines[1][0].startswith("▶"))
        self.assertIn("Title 0", lines[1][0])
        self.assertEqual(lines[-1], ("ok", Style.STATUS))
        self.assertTrue(all(len(text) <= 100 for text, _ in lines))

    def test_row_styles_follow_read_state(self) -> None:
        state = reduce(NavigationState.initial(3), Event.resize(100, 10))
        lines = render(state, _records(3), self.bindings, now=NOW)
        self.assertEqual([style for _, style in lines[1:4]], [Style.CURSOR, Style.ROW, Style.ROW_UNREAD])
        self.assertIn("30min ago", lines[2][0])

    def test_preview_and_help(self) -> None:
        state = reduce(NavigationState.initial(5), Event.resize(120, 24))
        state = _apply(state, EventKind.MOVE_DOWN, EventKind.OPEN, EventKind.TOGGLE_HELP)
        lines = render(state, _records(5), self.bindings, now=NOW)
        texts = [text for text, _ in lines]
        self.assertEqual(len(lines), 24)
        self.assertIn("Title:  Title 1", texts)
        self.assertIn("URL:    https://github.com/octo/repo/issues/1", texts)
        self.assertIn("Unread: no", texts)
        self.assertEqual(lines[-2][1], Style.HELP)
        self.assertIn("ctrl-b browser", lines[-2][0])

    def test_scrolled_window(self) -> None:
        state = reduce(replace(NavigationState.initial(100), cursor=60), Event.resize(100, 12))
        lines = render(state, _records(100), self.bindings, now=NOW)
        cursor_rows = [text for text, style in lines if style is Style.CURSOR]
        self.assertEqual(len(cursor_rows), 1)
        self.assertIn("Title 60", cursor_rows[0])

    def test_empty_list_shows_final_message(self) -> None:
        state = reduce(NavigationState.initial(0), Event.resize(80, 5))
        lines = render(state, [], self.bindings, now=NOW)
        self.assertEqual(lines[1][0], "All caught up!")

    def test_help_line_lists_bindings(self) -> None:
        line = help_line(self.bindings)
        self.assertTrue(line.startswith("enter view · tab preview"))
        self.assertTrue(line.endswith("esc quit"))

    def test_wide_titles_fit_the_terminal(self) -> None:
        records = [replace(record, subject_title="修复通知列表" * 20) for record in _records(2)]
        state = _apply(reduce(NavigationState.initial(2), Event.resize(90, 20)), EventKind.OPEN)
        lines = render(state, records, self.bindings, now=NOW)
        self.assertTrue(all(cell_width(text) <= 90 for text, _ in lines))
        self.assertTrue(lines[1][0].endswith("…"))

    def test_cell_width(self) -> None:
        self.assertEqual(cell_width("abc"), 3)
        self.assertEqual(cell_width("日本"), 4)
        self.assertEqual(cell_width("e\u0301"), 1)
        self.assertEqual(truncate_cells("日本語", 5), "日本")
        self.assertEqual(truncate_cells("abc", 10), "abc")


class KeyTests(unittest.TestCase):
    def test_parse_key_tokens(self) -> None:
        self.assertEqual(parse_key("ctrl-a"), (1,))
        self.assertEqual(parse_key("ctrl-x"), (24,))
        self.assertEqual(parse_key("tab"), (9,))
        self.assertEqual(parse_key("btab"), (curses.KEY_BTAB,))
        self.assertIn(10, parse_key("enter"))
        self.assertEqual(parse_key("?"), (ord("?"),))
        self.assertEqual(parse_key("f2"), (curses.KEY_F0 + 2,))

    def test_invalid_tokens(self) -> None:
        for token in ("ctrl-", "ctrl-1", "alt-x", "f13", ""):
            with self.subTest(token=token):
                with self.assertRaises(ValueError):
                    parse_key(token)

    def test_keymap_defaults_and_builtins(self) -> None:
        keymap = KeyMap(KeyBindings().as_dict())
        self.assertEqual(keymap.command_for(1), "mark_all_read")
        self.assertEqual(keymap.command_for(9), "toggle_preview")
        self.assertEqual(keymap.command_for(13), "view")
        self.assertEqual(keymap.command_for(curses.KEY_UP), "move_up")
        self.assertEqual(keymap.command_for(ord("j")), "move_down")
        self.assertEqual(keymap.command_for(27), "quit")
        self.assertIsNone(keymap.command_for(ord("z")))

    def test_configured_binding_overrides_builtin(self) -> None:
        keymap = KeyMap({"reload": "q"})
        self.assertEqual(keymap.command_for(ord("q")), "reload")
