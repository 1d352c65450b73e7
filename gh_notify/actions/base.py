from __future__ import annotations

from abc import ABC, abstractmethod

from ..feeds.base import NotificationRecord


class ActionError(RuntimeError):
    pass


class Actions(ABC):
    """What the interactive list can do with the notification under the cursor."""

    @abstractmethod
    def view(self, record: NotificationRecord) -> None:
        """Show the subject and its comments in a pager."""
        raise NotImplementedError

    @abstractmethod
    def open_in_browser(self, record: NotificationRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def view_diff(self, record: NotificationRecord, patch: bool = False) -> bool:
        """Page the diff of a pull request or commit. Returns False when the subject has none."""
        raise NotImplementedError

    @abstractmethod
    def comment(self, record: NotificationRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def mark_read(self, thread_id: str) -> None:
        raise NotImplementedError
