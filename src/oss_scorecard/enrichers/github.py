"""GitHub API signal provider.

Fetches contributors, README, license, stars, issues and commit history for
a repository. Each signal is fetched independently; a failed call yields the
signal's documented default and an error marker instead of an exception.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

import httpx

from oss_scorecard import config

from .base import IssueInterval, SignalProvider, SignalResult

T = TypeVar("T")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO 8601 timestamp into an aware datetime."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class _RateLimitExhausted(Exception):
    """Raised when we should stop making GitHub API calls."""


class GitHubSignalProvider(SignalProvider):
    """Signal provider backed by the GitHub REST API.

    The caller owns the httpx client; requests share one semaphore so the
    number of in-flight calls stays bounded across all packages.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str,
        logger: logging.Logger,
        concurrency: int = config.GITHUB_CONCURRENT_REQUESTS,
    ) -> None:
        super().__init__(logger)
        self._client = client
        self._headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": config.GITHUB_API_VERSION,
            "Authorization": f"Bearer {token}",
        }

        self._semaphore = asyncio.Semaphore(concurrency)
        self._rate_remaining: int | None = None
        self._rate_lock = asyncio.Lock()
        self._exhausted = False

    @property
    def rate_remaining(self) -> int | None:
        return self._rate_remaining

    # ------------------------------------------------------------------
    # Rate-limit tracking
    # ------------------------------------------------------------------

    async def _update_rate_limit(self, response: httpx.Response) -> None:
        """Read X-RateLimit-Remaining from response headers and track it."""
        raw = response.headers.get("X-RateLimit-Remaining")
        if raw is None:
            return
        try:
            remaining = int(raw)
        except ValueError:
            return
        async with self._rate_lock:
            self._rate_remaining = remaining
            if remaining < config.GITHUB_RATE_LIMIT_BUFFER and not self._exhausted:
                self._exhausted = True
                self.logger.error(
                    f"GitHub rate limit buffer reached ({remaining} remaining); "
                    "further signals will be unavailable"
                )

    async def _check_rate_limit(self) -> None:
        """Raise _RateLimitExhausted if we are at or below the buffer."""
        async with self._rate_lock:
            if self._exhausted:
                raise _RateLimitExhausted()

    # ------------------------------------------------------------------
    # Low-level API helper
    # ------------------------------------------------------------------

    async def _get_json(
        self,
        path: str,
        params: dict[str, str | int] | None = None,
        allow_404: bool = False,
    ) -> dict | list | None:
        """GET a GitHub API path with semaphore and rate-limit checks.

        Returns the decoded JSON body, or None on a 404 when ``allow_404``.

        Raises:
            _RateLimitExhausted: when the rate-limit buffer has been reached.
            httpx.HTTPError: on transport errors and non-2xx statuses.
            httpx.InvalidURL: when owner/repo cannot form a valid URL.
        """
        await self._check_rate_limit()
        async with self._semaphore:
            resp = await self._client.get(
                f"{config.GITHUB_API_BASE}{path}",
                params=params,
                headers=self._headers,
            )
        await self._update_rate_limit(resp)
        if allow_404 and resp.status_code == 404:
            return None
        resp.raise_for_status()
        if resp.status_code == 204:
            return None
        return resp.json()

    async def _get_list(self, path: str, params: dict[str, str | int]) -> list[dict]:
        """GET a list endpoint; an empty body counts as an empty list."""
        data = await self._get_json(path, params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError(f"expected a list from {path}, got {type(data).__name__}")
        return data

    async def _fetch(
        self,
        signal: str,
        owner: str,
        repo: str,
        default: T,
        load: Callable[[], Awaitable[T]],
    ) -> SignalResult[T]:
        """Run one signal fetch, converting any failure into a default result."""
        try:
            value = await load()
        except _RateLimitExhausted:
            return SignalResult(default, error="rate limit exhausted")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.error(f"Error fetching {signal} for {owner}/{repo}: {e}")
            return SignalResult(default, error=str(e) or type(e).__name__)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self.logger.error(f"Malformed {signal} payload for {owner}/{repo}: {e!r}")
            return SignalResult(default, error=f"malformed payload: {e!r}")
        self.logger.debug(f"Fetched {signal} for {owner}/{repo}")
        return SignalResult(value)

    # ------------------------------------------------------------------
    # Per-signal fetchers
    # ------------------------------------------------------------------

    async def fetch_contributors(self, owner: str, repo: str) -> SignalResult[dict[str, int]]:
        async def _load() -> dict[str, int]:
            data = await self._get_list(
                f"/repos/{owner}/{repo}/contributors",
                params={"per_page": config.GITHUB_PER_PAGE},
            )
            contributors: dict[str, int] = {}
            for entry in data:
                login = entry.get("login")
                if login:
                    contributors[login] = int(entry.get("contributions") or 0)
            return contributors

        return await self._fetch("contributors", owner, repo, {}, _load)

    async def fetch_readme_length(self, owner: str, repo: str) -> SignalResult[int]:
        async def _load() -> int:
            data = await self._get_json(f"/repos/{owner}/{repo}/readme", allow_404=True)
            if data is None:
                # No README in the repository: known empty, not unavailable.
                return 0
            content = data.get("content") or ""
            try:
                raw = base64.b64decode(content)
            except binascii.Error as e:
                raise ValueError(f"README content is not base64: {e}") from e
            return len(raw)

        return await self._fetch("readme", owner, repo, -1, _load)

    async def fetch_license_presence(self, owner: str, repo: str) -> SignalResult[bool]:
        async def _load() -> bool:
            data = await self._get_json(f"/repos/{owner}/{repo}/license", allow_404=True)
            return data is not None

        return await self._fetch("license", owner, repo, False, _load)

    async def fetch_star_count(self, owner: str, repo: str) -> SignalResult[int]:
        async def _load() -> int:
            data = await self._get_json(f"/repos/{owner}/{repo}")
            stars = int(data.get("stargazers_count") or 0)
            self.logger.debug(f"Obtained user stars: {stars} stars")
            return stars

        return await self._fetch("stars", owner, repo, 0, _load)

    async def fetch_open_issue_count(self, owner: str, repo: str) -> SignalResult[int]:
        async def _load() -> int:
            data = await self._get_list(
                f"/repos/{owner}/{repo}/issues",
                params={"state": "open", "per_page": config.GITHUB_PER_PAGE},
            )
            # The issues endpoint also lists pull requests.
            return sum(1 for issue in data if "pull_request" not in issue)

        return await self._fetch("open issues", owner, repo, 0, _load)

    async def fetch_commit_timestamps(
        self, owner: str, repo: str
    ) -> SignalResult[list[datetime]]:
        async def _load() -> list[datetime]:
            data = await self._get_list(
                f"/repos/{owner}/{repo}/commits",
                params={"per_page": config.GITHUB_PER_PAGE},
            )
            timestamps = []
            for entry in data:
                author = (entry.get("commit") or {}).get("author") or {}
                ts = parse_timestamp(author.get("date"))
                if ts is not None:
                    timestamps.append(ts)
            return sorted(timestamps)

        return await self._fetch("commits", owner, repo, [], _load)

    async def fetch_resolved_issue_intervals(
        self, owner: str, repo: str
    ) -> SignalResult[list[IssueInterval]]:
        async def _load() -> list[IssueInterval]:
            data = await self._get_list(
                f"/repos/{owner}/{repo}/issues",
                params={"state": "closed", "per_page": config.GITHUB_PER_PAGE},
            )
            intervals: list[IssueInterval] = []
            for issue in data:
                if issue.get("state") != "closed" or "pull_request" in issue:
                    continue
                created = parse_timestamp(issue.get("created_at"))
                closed = parse_timestamp(issue.get("closed_at"))
                if created is not None and closed is not None:
                    intervals.append((created, closed))
            self.logger.info(f"issues: {len(intervals)} resolved for {owner}/{repo}")
            return intervals

        return await self._fetch("closed issues", owner, repo, [], _load)
