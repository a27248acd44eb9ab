"""Abstract base for signal providers and the signal containers they fill."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")

IssueInterval = tuple[datetime, datetime]

# Signal names, used as keys in RepositorySignals.failed_signals.
CONTRIBUTORS = "contributors"
README_LENGTH = "readme_length"
LICENSE = "license"
STARS = "stars"
OPEN_ISSUES = "open_issues"
COMMITS = "commits"
CLOSED_ISSUES = "closed_issues"


@dataclass(frozen=True)
class SignalResult(Generic[T]):
    """A fetched value, or the documented default plus the reason it failed."""

    value: T
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RepositorySignals(BaseModel):
    """Raw measurements for one repository, fully resolved before scoring."""

    model_config = ConfigDict(frozen=True)

    readme_length: int = Field(default=-1, ge=-1)
    contributors: Mapping[str, int] = Field(default_factory=dict, validate_default=True)
    has_license: bool = False
    star_count: int = Field(default=0, ge=0)
    open_issue_count: int = Field(default=0, ge=0)
    commit_timestamps: tuple[datetime, ...] = ()
    resolved_issue_intervals: tuple[IssueInterval, ...] = ()
    failed_signals: frozenset[str] = frozenset()

    @field_validator("contributors", mode="after")
    @classmethod
    def _freeze_contributors(cls, v: Mapping[str, int]) -> Mapping[str, int]:
        return MappingProxyType(dict(v))

    def failed(self, *names: str) -> bool:
        """True if any of the named signals could not be fetched."""
        return any(name in self.failed_signals for name in names)


class SignalProvider(ABC):
    """Base class for repository signal providers.

    Each fetch returns a SignalResult; failures are reported through the
    result and never raised to the caller.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    @abstractmethod
    async def fetch_contributors(self, owner: str, repo: str) -> SignalResult[dict[str, int]]:
        ...

    @abstractmethod
    async def fetch_readme_length(self, owner: str, repo: str) -> SignalResult[int]:
        ...

    @abstractmethod
    async def fetch_license_presence(self, owner: str, repo: str) -> SignalResult[bool]:
        ...

    @abstractmethod
    async def fetch_star_count(self, owner: str, repo: str) -> SignalResult[int]:
        ...

    @abstractmethod
    async def fetch_open_issue_count(self, owner: str, repo: str) -> SignalResult[int]:
        ...

    @abstractmethod
    async def fetch_commit_timestamps(
        self, owner: str, repo: str
    ) -> SignalResult[list[datetime]]:
        ...

    @abstractmethod
    async def fetch_resolved_issue_intervals(
        self, owner: str, repo: str
    ) -> SignalResult[list[IssueInterval]]:
        ...

    async def gather(self, owner: str, repo: str) -> RepositorySignals:
        """Fire every fetch concurrently and join them into RepositorySignals."""
        (
            contributors,
            readme,
            license_,
            stars,
            open_issues,
            commits,
            closed_issues,
        ) = await asyncio.gather(
            self.fetch_contributors(owner, repo),
            self.fetch_readme_length(owner, repo),
            self.fetch_license_presence(owner, repo),
            self.fetch_star_count(owner, repo),
            self.fetch_open_issue_count(owner, repo),
            self.fetch_commit_timestamps(owner, repo),
            self.fetch_resolved_issue_intervals(owner, repo),
        )

        results: dict[str, SignalResult] = {
            CONTRIBUTORS: contributors,
            README_LENGTH: readme,
            LICENSE: license_,
            STARS: stars,
            OPEN_ISSUES: open_issues,
            COMMITS: commits,
            CLOSED_ISSUES: closed_issues,
        }
        failed = frozenset(name for name, result in results.items() if not result.ok)
        if failed:
            self.logger.info(
                f"{owner}/{repo}: {len(failed)} signal(s) unavailable: {', '.join(sorted(failed))}"
            )

        return RepositorySignals(
            readme_length=readme.value,
            contributors=contributors.value,
            has_license=license_.value,
            star_count=stars.value,
            open_issue_count=open_issues.value,
            commit_timestamps=tuple(sorted(commits.value)),
            resolved_issue_intervals=tuple(closed_issues.value),
            failed_signals=failed,
        )
