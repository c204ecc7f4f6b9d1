"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses

Every request expects exactly one status code; anything else is an error.
"""

from __future__ import annotations

from typing import Any

import requests

from vanity.logging import get_logger
from vanity.models import File, Repository

logger = get_logger("github")


class GitHubError(RuntimeError):
    pass


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "vanity",
        }

    def _request(self, method: str, url: str, *, want_status: int = 200) -> Any:
        logger.debug("%s %s", method, url)
        r = requests.request(method, url, headers=self._headers(), timeout=30)
        if r.status_code != want_status:
            raise GitHubError(f"{method} {url}: want {want_status}, got {r.status_code}: {r.text}")
        try:
            return r.json()
        except ValueError as e:
            raise GitHubError(f"{method} {url}: malformed JSON response: {e}") from e

    def _request_list(self, method: str, url: str) -> list[Any]:
        data = self._request(method, url)
        if not isinstance(data, list):
            raise GitHubError(f"{method} {url}: expected a JSON array, got {type(data).__name__}")
        return data

    def list_user_repos(self, user: str) -> list[Repository]:
        """
        Return every repository `GET /users/{user}/repos` reports, in API order.
        """
        url = f"{self._api_base}/users/{user}/repos"
        repos: list[Repository] = []
        for item in self._request_list("GET", url):
            try:
                repos.append(Repository.from_api(item))
            except ValueError as e:
                raise GitHubError(f"GET {url}: {e}") from e
        return repos

    def list_contents(self, repo: Repository) -> list[File]:
        """
        Return the root-level entries of a repository (`GET {repo.url}/contents`).
        """
        url = f"{repo.url.rstrip('/')}/contents"
        files: list[File] = []
        for item in self._request_list("GET", url):
            if not isinstance(item, dict) or "path" not in item:
                raise GitHubError(f"GET {url}: content entry has no path")
            files.append(File(path=str(item["path"])))
        return files

    def has_file(self, repo: Repository, path: str) -> bool:
        """Whether `path` is among the repository's root-level entries."""
        return any(f.path == path for f in self.list_contents(repo))
