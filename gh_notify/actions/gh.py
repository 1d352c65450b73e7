from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import subprocess
import webbrowser

from .base import ActionError, Actions
from ..feeds.base import NotificationRecord, html_url


@dataclass
class GhActionSettings:
    host: str
    pager: str


class GhActions(Actions):
    """Delegates every action to the gh CLI, the pager and the system browser."""

    def __init__(self, settings: GhActionSettings) -> None:
        self._settings = settings
        self._logger = logging.getLogger(__name__)

    def view(self, record: NotificationRecord) -> None:
        kind = _cli_kind(record)
        if kind:
            self._run(["gh", kind, "view", record.number, "--repo", record.repository_full_name, "--comments"])
        elif record.subject_url:
            self._run(["gh", "api", record.subject_url])
        else:
            raise ActionError(f"nothing to view for {record.subject_type or 'this notification'}")

    def open_in_browser(self, record: NotificationRecord) -> None:
        url = html_url(record, self._settings.host)
        self._logger.debug("Opening %s", url)
        if not webbrowser.open(url):
            raise ActionError(f"unable to open a browser for {url}")

    def view_diff(self, record: NotificationRecord, patch: bool = False) -> bool:
        if record.subject_type == "PullRequest":
            cmd = ["gh", "pr", "diff", record.number, "--repo", record.repository_full_name]
            if patch:
                cmd.append("--patch")
        elif record.subject_type == "Commit" and record.subject_url:
            accept = "application/vnd.github.patch" if patch else "application/vnd.github.diff"
            cmd = ["gh", "api", "-H", f"Accept: {accept}", record.subject_url]
        else:
            return False
        self._run(cmd)
        return True

    def comment(self, record: NotificationRecord) -> None:
        if _cli_kind(record) is None:
            raise ActionError(f"cannot comment on a {record.subject_type or 'notification'}")
        self._run(["gh", "issue", "comment", record.number, "--repo", record.repository_full_name, "--editor"])

    def mark_read(self, thread_id: str) -> None:
        self._run(
            ["gh", "api", "--method", "PATCH", "--silent", f"notifications/threads/{thread_id}"]
        )

    def _run(self, cmd: list[str]) -> None:
        env = dict(os.environ)
        env["GH_PAGER"] = self._settings.pager
        env["GH_HOST"] = self._settings.host
        self._logger.debug("Running %s", " ".join(cmd))
        try:
            subprocess.run(cmd, env=env, check=True)
        except FileNotFoundError as exc:
            raise ActionError(f"'{cmd[0]}' is not installed") from exc
        except subprocess.CalledProcessError as exc:
            raise ActionError(f"'{' '.join(cmd[:3])}' exited with status {exc.returncode}") from exc


def _cli_kind(record: NotificationRecord) -> str | None:
    if not record.number.isdigit():
        return None
    if record.subject_type == "PullRequest":
        return "pr"
    if record.subject_type == "Issue":
        return "issue"
    return None
