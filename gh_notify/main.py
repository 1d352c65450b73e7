from __future__ import annotations

import argparse
import asyncio
import curses
from datetime import datetime, timezone
import logging
import shutil
import sys

import httpx

from .actions.gh import GhActions, GhActionSettings
from .cache import CacheSettings, ResponseCache
from .config import Config, load_config
from .feeds.base import NotificationRecord
from .feeds.github import GitHubClient, GitHubError, GitHubSettings
from .fetcher import PER_PAGE, NotificationFetcher
from .presenter import FINAL_MESSAGE, render_static, to_iso
from .ui.session import InteractiveSession


MARK_READ_CONFLICT = (
    "ERROR: Can't mark all notifications as read when either the '-e' or '-f' flag was used, "
    "as it would also mark notifications as read that are filtered out."
)

_EPILOG = """\
key bindings (interactive mode, configurable):
  ?          toggle help            enter   preview, then view in pager
  tab        toggle preview         btab    resize the preview
  ctrl-a     mark all displayed notifications as read and reload
  ctrl-b     open in browser        ctrl-d  view diff
  ctrl-p     view diff as patch     ctrl-r  reload
  ctrl-t     mark the selected notifications as read and reload
  ctrl-x     write a comment with the editor and quit
  ctrl-y     toggle the selected notification
  up/down    move                   esc     quit

table format:
  unread symbol, time of last read (unread) or last update, repository,
  type, number, trigger reason, title

example:
  # display the last 20 notifications
  gh-notify -an 20
"""


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    if args.mark_all_read and (args.exclude or args.filter):
        raise SystemExit(MARK_READ_CONFLICT)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"ERROR: invalid configuration: {exc}")
    _configure_logging(args.verbose or config.debug)

    if shutil.which("gh") is None:
        raise SystemExit("ERROR: install 'gh'")

    client = _build_client(config)
    cache = _build_cache(config)
    try:
        if args.url:
            state = asyncio.run(client.toggle_subscription(args.url))
            verb = "Subscribed to" if state == "SUBSCRIBED" else "Unsubscribed from"
            print(f"{verb} {args.url}")
            return
        if args.mark_all_read:
            asyncio.run(client.mark_all_read(to_iso(datetime.now(timezone.utc))))
            cache.clear()
            print("All notifications have been marked as read.")
            return
        _show(args, config, client, cache)
    except (httpx.HTTPError, GitHubError, ValueError) as exc:
        raise SystemExit(f"ERROR: {exc}")


def _show(args: argparse.Namespace, config: Config, client: GitHubClient, cache: ResponseCache) -> None:
    fetcher = NotificationFetcher(client, cache)

    def fetch() -> list[NotificationRecord]:
        return asyncio.run(
            fetcher.fetch(
                args.max_count,
                only_participating=args.participating,
                include_all=args.all,
                exclude_pattern=args.exclude,
                include_pattern=args.filter,
            )
        )

    def reload() -> list[NotificationRecord]:
        cache.clear()
        return fetch()

    records = fetch()
    if not records:
        print(FINAL_MESSAGE)
        return
    if args.static:
        for row in render_static(records):
            print(row)
        return
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SystemExit("ERROR: interactive mode needs a terminal; use the -s flag")

    actions = GhActions(GhActionSettings(host=config.settings.host, pager=config.settings.pager))
    session = InteractiveSession(
        records,
        config.keys.as_dict(),
        actions,
        reload,
        host=config.settings.host,
        preview=args.preview,
    )
    try:
        session.run()
    except curses.error as exc:
        raise SystemExit(f"ERROR: terminal failure: {exc}")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gh-notify",
        description="View and triage GitHub notifications from the terminal",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-a", "--all", action="store_true", help="show all (read/unread) notifications")
    parser.add_argument("-e", "--exclude", default="", help="exclude notifications whose title matches (regex)")
    parser.add_argument("-f", "--filter", default="", help="only show notifications whose title matches (regex)")
    parser.add_argument(
        "-n", "--max-count", type=_positive_int, default=PER_PAGE, help="max number of notifications to show"
    )
    parser.add_argument("-p", "--participating", action="store_true", help="only participating or mentioned")
    parser.add_argument("-r", "--mark-all-read", action="store_true", help="mark all notifications as read")
    parser.add_argument("-s", "--static", action="store_true", help="print a static display")
    parser.add_argument("-u", "--url", help="(un)subscribe a URL, useful for issues/prs of interest")
    parser.add_argument("-w", "--preview", action="store_true", help="display the preview window in interactive mode")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number")
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _build_client(config: Config) -> GitHubClient:
    settings = config.settings
    return GitHubClient(
        GitHubSettings(
            host=settings.host,
            timeout_seconds=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
        )
    )


def _build_cache(config: Config) -> ResponseCache:
    return ResponseCache(
        CacheSettings(
            enabled=config.cache.enabled,
            ttl_seconds=config.cache.duration_seconds,
            root=config.cache.root,
        )
    )


if __name__ == "__main__":
    main()
