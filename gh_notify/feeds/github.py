from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import subprocess
from typing import Any

import httpx

from .base import NotificationSource


# The REST API is versioned; bump this when GitHub publishes a newer version.
GITHUB_API_VERSION = "2022-11-28"
DEFAULT_HOST = "github.com"

_SUBSCRIPTION_QUERY = """
query($url: URI!) {
  resource(url: $url) {
    ... on Subscribable { id viewerSubscription }
  }
}
"""

_SUBSCRIPTION_MUTATION = """
mutation($id: ID!, $state: SubscriptionState!) {
  updateSubscription(input: {subscribableId: $id, state: $state}) {
    subscribable { viewerSubscription }
  }
}
"""


class GitHubError(RuntimeError):
    pass


@dataclass
class GitHubSettings:
    host: str
    timeout_seconds: int
    user_agent: str
    token: str | None = None


class GitHubClient(NotificationSource):
    def __init__(self, settings: GitHubSettings) -> None:
        self._settings = settings
        self._token = settings.token
        self._logger = logging.getLogger(__name__)

    @property
    def api_url(self) -> str:
        return api_base_url(self._settings.host)

    async def list_notifications(
        self, page: int, per_page: int, participating: bool, include_all: bool
    ) -> list[dict[str, Any]]:
        params = {
            "per_page": per_page,
            "page": page,
            "participating": _flag(participating),
            "all": _flag(include_all),
        }
        self._logger.debug("GET notifications %s", params)
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            response = await client.get(
                f"{self.api_url}/notifications", headers=self._headers(), params=params
            )
            response.raise_for_status()
            payload = response.json()
        if not isinstance(payload, list):
            raise GitHubError("unexpected notifications payload: expected a list")
        return payload

    async def mark_all_read(self, last_read_at: str) -> None:
        body = {"last_read_at": last_read_at, "read": True}
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            response = await client.put(
                f"{self.api_url}/notifications", headers=self._headers(), json=body
            )
            response.raise_for_status()

    async def toggle_subscription(self, url: str) -> str:
        """Flip the viewer's subscription to the issue or pull request at url.

        Returns the new subscription state (SUBSCRIBED or UNSUBSCRIBED).
        """
        data = await self._graphql(_SUBSCRIPTION_QUERY, {"url": url})
        resource = data.get("resource") or {}
        subscribable_id = resource.get("id")
        if not subscribable_id:
            raise GitHubError(f"{url} is not a subscribable issue or pull request")
        current = resource.get("viewerSubscription")
        target = "UNSUBSCRIBED" if current == "SUBSCRIBED" else "SUBSCRIBED"
        await self._graphql(_SUBSCRIPTION_MUTATION, {"id": subscribable_id, "state": target})
        return target

    async def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            response = await client.post(
                _graphql_url(self._settings.host),
                headers=self._headers(),
                json={"query": query, "variables": variables},
            )
            response.raise_for_status()
            payload = response.json()
        errors = payload.get("errors")
        if errors:
            raise GitHubError("; ".join(str(err.get("message", err)) for err in errors))
        return payload.get("data") or {}

    def _headers(self) -> dict[str, str]:
        if not self._token:
            self._token = resolve_token(self._settings.host)
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self._settings.user_agent,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }


def resolve_token(host: str) -> str:
    """Reuse the credentials already stored by the gh CLI."""
    for name in ("GH_TOKEN", "GITHUB_TOKEN"):
        value = os.environ.get(name)
        if value:
            return value
    try:
        result = subprocess.run(
            ["gh", "auth", "token", "--hostname", host],
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise GitHubError(f"unable to read a token from gh; run 'gh auth login' ({exc})") from exc
    token = result.stdout.strip()
    if not token:
        raise GitHubError("gh returned an empty token; run 'gh auth login'")
    return token


def api_base_url(host: str) -> str:
    if host in ("", DEFAULT_HOST):
        return "https://api.github.com"
    return f"https://{host}/api/v3"


def _graphql_url(host: str) -> str:
    if host in ("", DEFAULT_HOST):
        return "https://api.github.com/graphql"
    return f"https://{host}/api/graphql"


def _flag(value: bool) -> str:
    return "true" if value else "false"
