"""GitHub REST API adapter — implements the RepoContents port."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from codelens.domain.entities import ContentEntry, FileBody
from codelens.domain.exceptions import (
    GitHubApiError,
    GitHubRateLimitError,
    NotFoundOrNoAccessError,
)

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"


class GitHubRestAdapter:
    """Concrete RepoContents backed by ``GET /repos/{owner}/{repo}/contents/{path}``."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._api_headers: dict[str, str] = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "codelens/1.0",
        }
        if token:
            self._api_headers["Authorization"] = f"Bearer {token}"

    async def list_or_get_content(
        self, owner: str, name: str, path: str = ""
    ) -> list[ContentEntry] | FileBody:
        """Directory → list of children; file → encoded body."""
        endpoint = f"/repos/{owner}/{name}/contents/{quote(path.strip('/'))}"
        resp = await self._api_get(endpoint)
        try:
            data = resp.json()
        except ValueError as exc:
            raise GitHubApiError(f"Invalid JSON from GitHub for {endpoint}: {exc}") from exc

        if isinstance(data, list):
            return [
                ContentEntry(
                    name=item.get("name", ""),
                    path=item.get("path", ""),
                    type=item.get("type", "file"),
                )
                for item in data
            ]
        return _file_body(data, path)

    async def _api_get(self, endpoint: str) -> httpx.Response:
        """Perform a GitHub API GET request with error translation."""
        url = f"{_GITHUB_API}{endpoint}"
        try:
            resp = await self._client.get(url, headers=self._api_headers)
        except httpx.HTTPError as exc:
            raise GitHubApiError(f"Network error fetching {url}: {exc}") from exc

        if resp.status_code == 200:
            return resp

        if resp.status_code == 404:
            raise NotFoundOrNoAccessError(f"Not found: {endpoint}")

        if resp.status_code == 403:
            remaining = resp.headers.get("x-ratelimit-remaining", "")
            if remaining == "0":
                reset_raw = resp.headers.get("x-ratelimit-reset", "")
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                except (ValueError, OSError):
                    reset_str = reset_raw or "unknown"
                raise GitHubRateLimitError(
                    f"GitHub API rate limit exceeded. Resets at {reset_str}."
                )
            raise NotFoundOrNoAccessError(f"Access denied: {endpoint}")

        if resp.status_code == 429:
            raise GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).")

        raise GitHubApiError(f"GitHub API returned HTTP {resp.status_code} for {url}")


def _file_body(data: Any, requested_path: str) -> FileBody:
    if not isinstance(data, dict) or "content" not in data:
        kind = data.get("type") if isinstance(data, dict) else type(data).__name__
        raise GitHubApiError(f"No file content at {requested_path!r} (got {kind})")
    return FileBody(
        path=data.get("path", requested_path),
        content=data.get("content") or "",
        encoding=data.get("encoding") or "",
    )
