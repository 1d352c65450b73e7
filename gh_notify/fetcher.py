from __future__ import annotations

import logging
import re
from typing import Any

from .cache import ResponseCache, notifications_key
from .feeds.base import NotificationRecord, NotificationSource


PER_PAGE = 50


class NotificationFetcher:
    """Pages through the notification feed, reading through the cache."""

    def __init__(self, source: NotificationSource, cache: ResponseCache, per_page: int = PER_PAGE) -> None:
        self._source = source
        self._cache = cache
        self._per_page = per_page
        self._logger = logging.getLogger(__name__)

    async def fetch(
        self,
        max_count: int,
        only_participating: bool = False,
        include_all: bool = False,
        exclude_pattern: str = "",
        include_pattern: str = "",
    ) -> list[NotificationRecord]:
        exclude = compile_pattern(exclude_pattern)
        include = compile_pattern(include_pattern)

        records: list[NotificationRecord] = []
        page = 1
        while len(records) < max_count:
            entries = await self._load_page(page, only_participating, include_all)
            if not entries:
                break
            remaining = max_count - len(records)
            records.extend(NotificationRecord.from_api(entry) for entry in entries[:remaining])
            if len(entries) < self._per_page:
                break
            page += 1

        self._logger.debug("Fetched %s notifications over %s page(s)", len(records), page)
        return [record for record in records if keep_record(record, exclude, include)]

    async def _load_page(self, page: int, participating: bool, include_all: bool) -> list[dict[str, Any]]:
        key = notifications_key(page, participating, include_all)
        cached = self._cache.get(key)
        if isinstance(cached, list):
            return cached
        entries = await self._source.list_notifications(page, self._per_page, participating, include_all)
        self._cache.set(key, entries)
        return entries


def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a title filter; invalid regular expressions match literally."""
    if not pattern:
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(pattern), re.IGNORECASE)


def keep_record(
    record: NotificationRecord,
    exclude: re.Pattern[str] | None,
    include: re.Pattern[str] | None,
) -> bool:
    title = record.subject_title
    if exclude is not None and exclude.search(title):
        return False
    if include is not None and not include.search(title):
        return False
    return True
