from __future__ import annotations

import curses


# Navigation keys that are not configurable.
BUILTIN_BINDINGS = {
    "up": "move_up",
    "k": "move_up",
    "down": "move_down",
    "j": "move_down",
    "esc": "quit",
    "q": "quit",
}

_NAMED_KEYS = {
    "enter": (10, 13, curses.KEY_ENTER),
    "tab": (9,),
    "btab": (curses.KEY_BTAB,),
    "esc": (27,),
    "space": (32,),
    "up": (curses.KEY_UP,),
    "down": (curses.KEY_DOWN,),
}


def parse_key(token: str) -> tuple[int, ...]:
    """Translate a key token such as 'ctrl-a', 'btab' or '?' into curses key codes."""
    normalized = token.strip().lower()
    if normalized in _NAMED_KEYS:
        return _NAMED_KEYS[normalized]
    if normalized.startswith("ctrl-") and len(normalized) == 6 and normalized[5].isalpha():
        return (ord(normalized[5]) - ord("a") + 1,)
    if normalized.startswith("f") and normalized[1:].isdigit() and 1 <= int(normalized[1:]) <= 12:
        return (curses.KEY_F0 + int(normalized[1:]),)
    if len(token) == 1:
        return (ord(token),)
    raise ValueError(f"unsupported key '{token}'")


class KeyMap:
    def __init__(self, bindings: dict[str, str]) -> None:
        self._commands: dict[int, str] = {}
        for token, command in BUILTIN_BINDINGS.items():
            for code in parse_key(token):
                self._commands[code] = command
        for command, token in bindings.items():
            for code in parse_key(token):
                self._commands[code] = command

    def command_for(self, key: int) -> str | None:
        return self._commands.get(key)
