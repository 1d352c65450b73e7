from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass
class NotificationRecord:
    id: str
    unread: bool
    updated_at: str
    last_read_at: str
    repository_full_name: str
    repository_owner: str
    repository_name: str
    reason: str
    subject_type: str
    subject_title: str
    subject_url: str
    subject_latest_comment_url: str

    @property
    def number(self) -> str:
        """Issue/PR number (or commit sha) taken from the subject URL."""
        return last_path_component(self.subject_url)

    @classmethod
    def from_api(cls, entry: dict[str, Any]) -> NotificationRecord:
        repository = entry.get("repository") or {}
        owner = repository.get("owner") or {}
        subject = entry.get("subject") or {}
        return cls(
            id=str(entry.get("id") or ""),
            unread=bool(entry.get("unread", False)),
            updated_at=entry.get("updated_at") or "",
            last_read_at=entry.get("last_read_at") or "",
            repository_full_name=repository.get("full_name") or "",
            repository_owner=owner.get("login") or "",
            repository_name=repository.get("name") or "",
            reason=entry.get("reason") or "",
            subject_type=subject.get("type") or "",
            subject_title=subject.get("title") or "",
            subject_url=subject.get("url") or "",
            subject_latest_comment_url=subject.get("latest_comment_url") or "",
        )


class NotificationSource(ABC):
    @abstractmethod
    async def list_notifications(
        self, page: int, per_page: int, participating: bool, include_all: bool
    ) -> list[dict[str, Any]]:
        """Fetch one raw page of the notification feed."""
        raise NotImplementedError


def last_path_component(url: str) -> str:
    if not url:
        return ""
    return url.split("/")[-1]


def html_url(record: NotificationRecord, host: str = "github.com") -> str:
    """Browser URL for the notification subject, falling back to the repository page."""
    repo_url = f"https://{host}/{record.repository_full_name}"
    parts = record.subject_url.split("/repos/", 1)
    if len(parts) != 2:
        return repo_url
    path = parts[1]
    for api_segment, web_segment in (("/pulls/", "/pull/"), ("/commits/", "/commit/"), ("/issues/", "/issues/")):
        if api_segment in path:
            url = f"https://{host}/{path.replace(api_segment, web_segment, 1)}"
            comment_id = last_path_component(record.subject_latest_comment_url)
            if "/issues/comments/" in record.subject_latest_comment_url and comment_id:
                url += f"#issuecomment-{comment_id}"
            return url
    return repo_url
