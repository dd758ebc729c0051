"""GitHub API client for default-branch lookup and zipball retrieval."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .config import GitPrismConfig
from .logging import get_logger

Opener = Callable[..., Any]


class GitHubError(RuntimeError):
    """Base class for failures talking to GitHub."""


class RepoNotFoundError(GitHubError):
    """Raised when the repository does not exist or is private."""


class ArchiveTooLargeError(GitHubError):
    """Raised when the zipball exceeds the configured size ceiling."""


class GitHubApiError(GitHubError):
    """Raised for any other non-success response from GitHub."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


@dataclass
class ArchivePayload:
    """Downloaded zipball bytes plus the rate-limit headers GitHub returned."""

    data: bytes
    rate_limit_remaining: str = ""
    rate_limit_reset: str = ""


class GitHubClient:
    """Minimal blocking client for the GitHub REST endpoints gitprism needs."""

    def __init__(self, config: GitPrismConfig | None = None, *, opener: Opener | None = None) -> None:
        self.config = config or GitPrismConfig()
        self._opener = opener or urlopen
        self.logger = get_logger("fetcher")

    def resolve_default_ref(self, owner: str, repo: str) -> str:
        """Return the repository's default branch name."""
        with self._request(owner, repo, self._repo_url(owner, repo)) as response:
            payload = json.loads(response.read().decode("utf-8"))
        branch = payload.get("default_branch") if isinstance(payload, dict) else None
        if not isinstance(branch, str) or not branch:
            raise GitHubApiError(502, f"GitHub did not report a default branch for {owner}/{repo}")
        self.logger.debug("Resolved default ref for %s/%s: %s", owner, repo, branch)
        return branch

    def check_archive_size(self, owner: str, repo: str, ref: str) -> None:
        """Issue a HEAD request and reject archives above ``max_zip_bytes``."""
        url = self._zipball_url(owner, repo, ref)
        with self._request(owner, repo, url, method="HEAD") as response:
            content_length = response.headers.get("Content-Length")
        if content_length:
            self._enforce_size(int(content_length))

    def fetch_archive(self, owner: str, repo: str, ref: str) -> ArchivePayload:
        """Download the zipball for ``ref``."""
        url = self._zipball_url(owner, repo, ref)
        with self._request(owner, repo, url) as response:
            data = response.read()
            headers = response.headers
        self._enforce_size(len(data))
        self.logger.debug("Downloaded %d bytes for %s/%s@%s", len(data), owner, repo, ref)
        return ArchivePayload(
            data=data,
            rate_limit_remaining=headers.get("X-RateLimit-Remaining") or "",
            rate_limit_reset=headers.get("X-RateLimit-Reset") or "",
        )

    def _enforce_size(self, size: int) -> None:
        limit = self.config.max_zip_bytes
        if size > limit:
            raise ArchiveTooLargeError(
                f"Repository archive exceeds {round(limit / 1024 / 1024)} MB limit. "
                "Use ?path= to target a subdirectory."
            )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/vnd.github+json",
        }
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _repo_url(self, owner: str, repo: str) -> str:
        return f"{self.config.api_base_url}/repos/{quote(owner)}/{quote(repo)}"

    def _zipball_url(self, owner: str, repo: str, ref: str) -> str:
        return f"{self._repo_url(owner, repo)}/zipball/{quote(ref, safe='/')}"

    def _request(self, owner: str, repo: str, url: str, *, method: str = "GET") -> Any:
        request = Request(url, headers=self._headers(), method=method)
        try:
            return self._opener(request, timeout=self.config.request_timeout)
        except HTTPError as exc:
            if exc.code == 404:
                raise RepoNotFoundError(
                    f"Repository {owner}/{repo} not found or is private."
                ) from exc
            raise GitHubApiError(exc.code, f"GitHub API returned {exc.code}") from exc
        except URLError as exc:
            raise GitHubApiError(502, f"Unable to reach GitHub: {exc.reason}") from exc


__all__ = [
    "ArchivePayload",
    "ArchiveTooLargeError",
    "GitHubApiError",
    "GitHubClient",
    "GitHubError",
    "RepoNotFoundError",
]
