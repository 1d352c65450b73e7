from __future__ import annotations

from datetime import datetime, timezone

from .feeds.base import NotificationRecord, last_path_component


FINAL_MESSAGE = "All caught up!"
UNREAD_SYMBOL = "●"
ELLIPSIS = "…"
OWNER_WIDTH = 10
NAME_WIDTH = 13


def render_static(records: list[NotificationRecord], now: datetime | None = None) -> list[str]:
    now = now or datetime.now(timezone.utc)
    return [format_row(record, now) for record in records]


def format_row(record: NotificationRecord, now: datetime) -> str:
    """One tab-separated row; the column order is relied on by pipe consumers."""
    columns = [
        short_date(record.updated_at),
        to_iso(now),
        record.id,
        "UNREAD" if record.unread else "READ",
        last_path_component(record.subject_latest_comment_url),
        record.repository_full_name,
        UNREAD_SYMBOL if record.unread else " ",
        f"{abbreviate(record.repository_owner, OWNER_WIDTH)}/{abbreviate(record.repository_name, NAME_WIDTH)}",
        record.subject_type,
        record.subject_url,
        record.reason,
        record.subject_title,
    ]
    return "\t".join(columns)


def abbreviate(value: str, limit: int) -> str:
    if len(value) > limit:
        return value[: limit - 1] + ELLIPSIS
    return value


def short_date(value: str) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return "2020"
    return parsed.strftime("%Y-%m")


def time_ago(last_read_at: str, updated_at: str, unread: bool, now: datetime | None = None) -> str:
    """Last read time for unread threads, otherwise last update, relative to now."""
    value = last_read_at if unread and last_read_at else updated_at
    parsed = parse_timestamp(value)
    if parsed is None:
        return "Not available"
    now = now or datetime.now(timezone.utc)
    seconds = (now - parsed).total_seconds()
    if seconds < 3600:
        return f"{int(seconds // 60)}min ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h ago"
    return parsed.strftime("%d/%b %H:%M")


def parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
