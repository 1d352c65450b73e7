from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
import tempfile
import threading
import time
from typing import Any, Callable


CACHE_NAMESPACE = "gh-notify"


@dataclass
class CacheSettings:
    enabled: bool
    ttl_seconds: float
    root: str


class ResponseCache:
    """Keyed JSON cache on disk, one file per key, expiring after a TTL.

    Caching is an optimization only: read failures are misses and write
    failures are dropped. A single lock serializes every read and write.
    """

    def __init__(self, settings: CacheSettings, clock: Callable[[], float] = time.time) -> None:
        self._settings = settings
        self._clock = clock
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)
        self.directory = Path(settings.root).expanduser() / CACHE_NAMESPACE

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        path = self.path_for(key)
        with self._lock:
            try:
                with open(path, "r", encoding="utf-8") as handle:
                    raw = json.load(handle)
            except FileNotFoundError:
                self._logger.debug("Cache miss for %s", key)
                return None
            except (OSError, ValueError) as exc:
                self._logger.debug("Unreadable cache entry %s: %s", path, exc)
                return None

            if not isinstance(raw, dict) or "data" not in raw:
                self._logger.debug("Malformed cache entry %s", path)
                return None
            stored_at = raw.get("timestamp")
            if isinstance(stored_at, bool) or not isinstance(stored_at, (int, float)):
                self._logger.debug("Cache entry %s has no timestamp", path)
                return None

            age = self._clock() - stored_at
            if age > self._settings.ttl_seconds:
                self._logger.debug("Cache entry %s expired %.0fs ago", key, age - self._settings.ttl_seconds)
                try:
                    path.unlink()
                except OSError as exc:
                    self._logger.debug("Unable to remove expired cache entry %s: %s", path, exc)
                return None

            self._logger.debug("Cache hit for %s", key)
            return raw["data"]

    def set(self, key: str, payload: Any) -> None:
        if not self.enabled:
            return
        entry = {"timestamp": self._clock(), "data": payload}
        with self._lock:
            tmp_path: str | None = None
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(entry, handle)
                os.replace(tmp_path, self.path_for(key))
            except (OSError, TypeError, ValueError) as exc:
                self._logger.debug("Unable to write cache entry %s: %s", key, exc)
                if tmp_path is not None:
                    try:
                        os.unlink(tmp_path)
                    except OSError:
                        pass

    def clear(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if not self.directory.exists():
                return
            for path in self.directory.glob("*.json"):
                try:
                    path.unlink()
                except OSError as exc:
                    self._logger.debug("Unable to remove cache entry %s: %s", path, exc)


def notifications_key(page: int, participating: bool, include_all: bool) -> str:
    return f"notifications-page{page}-participating-{str(participating).lower()}-all-{str(include_all).lower()}"


def default_cache_root() -> str:
    return os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
