from __future__ import annotations

from dataclasses import dataclass, fields
import os
from pathlib import Path
import re
from typing import Any, Mapping

import yaml

from .cache import default_cache_root
from .ui.keys import parse_key


DEFAULT_CACHE_DURATION_SECONDS = 5 * 60

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class KeyBindings:
    mark_all_read: str = "ctrl-a"
    open_browser: str = "ctrl-b"
    view_diff: str = "ctrl-d"
    view_patch: str = "ctrl-p"
    reload: str = "ctrl-r"
    mark_read: str = "ctrl-t"
    comment: str = "ctrl-x"
    toggle: str = "ctrl-y"
    resize_preview: str = "btab"
    view: str = "enter"
    toggle_preview: str = "tab"
    toggle_help: str = "?"

    def as_dict(self) -> dict[str, str]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


@dataclass
class CacheConfig:
    enabled: bool
    duration_seconds: float
    root: str


@dataclass
class Settings:
    host: str
    request_timeout_seconds: int
    user_agent: str
    pager: str


@dataclass
class Config:
    keys: KeyBindings
    debug: bool
    cache: CacheConfig
    settings: Settings


def default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "gh-notify" / "config.yaml"


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: _expand_env(val) for key, val in value.items()}
    return value


def _require_dict(value: Any, name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be a mapping")
    return value


def load_config(path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """Read the optional YAML file, then let GH_NOTIFY_* variables override it."""
    env = os.environ if environ is None else environ
    config_path = Path(path) if path else default_config_path()
    raw: Any = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}

    data = _expand_env(raw)
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")

    keys = _load_keys(_require_dict(data.get("keys"), "keys"), env)

    debug = _parse_bool(data.get("debug", False), "debug")
    if "GH_NOTIFY_DEBUG_MODE" in env:
        debug = _parse_bool(env["GH_NOTIFY_DEBUG_MODE"], "GH_NOTIFY_DEBUG_MODE")

    cache = _load_cache(_require_dict(data.get("cache"), "cache"), env)

    settings_raw = _require_dict(data.get("settings"), "settings")
    host = str(env.get("GH_HOST") or settings_raw.get("host", "github.com"))
    pager = settings_raw.get("pager") or env.get("PAGER") or "less -R"
    settings = Settings(
        host=host,
        request_timeout_seconds=int(settings_raw.get("request_timeout_seconds", 20)),
        user_agent=str(settings_raw.get("user_agent", "gh-notify/0.1")),
        pager=str(pager),
    )

    return Config(keys=keys, debug=debug, cache=cache, settings=settings)


def _load_keys(raw: dict[str, Any], env: Mapping[str, str]) -> KeyBindings:
    keys = KeyBindings()
    for item in fields(keys):
        value = raw.get(item.name)
        env_name = f"GH_NOTIFY_{item.name.upper()}_KEY"
        if env.get(env_name):
            value = env[env_name]
        if value is None:
            continue
        token = str(value)
        try:
            parse_key(token)
        except ValueError as exc:
            raise ValueError(f"keys.{item.name}: {exc}") from exc
        setattr(keys, item.name, token)
    unknown = set(raw) - {item.name for item in fields(keys)}
    if unknown:
        raise ValueError(f"keys: unknown binding(s) {', '.join(sorted(unknown))}")
    return keys


def _load_cache(raw: dict[str, Any], env: Mapping[str, str]) -> CacheConfig:
    enabled = _parse_bool(raw.get("enabled", True), "cache.enabled")
    if "GH_NOTIFY_CACHE_ENABLED" in env:
        enabled = _parse_bool(env["GH_NOTIFY_CACHE_ENABLED"], "GH_NOTIFY_CACHE_ENABLED")

    duration: Any = raw.get("duration", DEFAULT_CACHE_DURATION_SECONDS)
    name = "cache.duration"
    if env.get("GH_NOTIFY_CACHE_DURATION"):
        duration = env["GH_NOTIFY_CACHE_DURATION"]
        name = "GH_NOTIFY_CACHE_DURATION"

    root = env.get("GH_NOTIFY_CACHE_DIR") or raw.get("dir") or env.get("XDG_CACHE_HOME") or default_cache_root()
    return CacheConfig(
        enabled=enabled,
        duration_seconds=parse_duration(duration, name),
        root=str(root),
    )


def parse_duration(value: Any, name: str = "duration") -> float:
    """Accept bare seconds or Go-style durations such as '90s', '5m' or '1h30m'."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a duration")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip().lower()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(number + unit for number, unit in parts) != text:
                raise ValueError(f"{name} must be a duration like '5m' or '1h30m', got '{value}'")
            seconds = sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)
    if seconds < 0:
        raise ValueError(f"{name} must not be negative")
    return seconds


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")
