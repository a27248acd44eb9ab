"""URL file collector.

Reads one package URL per line and resolves each to a GitHub owner/repo.
GitHub URLs are parsed directly; npm package URLs are resolved through the
npm registry's ``repository`` field.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import TypedDict
from urllib.parse import quote

import httpx

from oss_scorecard import config


class PackageTarget(TypedDict):
    url: str
    owner: str
    repo: str


# github.com/owner/repo, optional .git, trailing slash or deeper path.
_GITHUB_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com[/:](?P<owner>[^/\s]+)/(?P<repo>[^/\s#?]+)"
)
_GITHUB_SSH_RE = re.compile(r"^git@github\.com:(?P<owner>[^/\s]+)/(?P<repo>[^/\s]+)")
_SHORTHAND_RE = re.compile(r"^(?:github:)?(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+)$")
# npmjs.com/package/name or npmjs.com/package/@scope/name
_NPM_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?npmjs\.(?:com|org)/package/(?P<name>(?:@[^/\s]+/)?[^/\s#?]+)"
)


class UnresolvableURLError(Exception):
    """Raised when a URL cannot be mapped to a GitHub repository."""


class URLFileError(Exception):
    """Raised when the URL file cannot be read."""


def _clean_repo(repo: str) -> str:
    return repo.removesuffix("/").removesuffix(".git")


def parse_github_url(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub URL, or None if not a match."""
    url = url.strip()
    for pattern in (_GITHUB_RE, _GITHUB_SSH_RE):
        m = pattern.match(url)
        if m:
            owner, repo = m.group("owner"), _clean_repo(m.group("repo"))
            if repo and owner.isprintable() and repo.isprintable():
                return owner, repo
    return None


def parse_npm_url(url: str) -> str | None:
    """Extract the package name from an npmjs.com package URL."""
    m = _NPM_RE.match(url.strip())
    if m:
        return m.group("name")
    return None


def repository_to_github(repository: dict | str | None) -> tuple[str, str] | None:
    """Map an npm ``repository`` field to (owner, repo) when it points at GitHub.

    Handles:
    - {"type": "git", "url": "git+https://github.com/owner/repo.git"}
    - "git://github.com/owner/repo.git", "git@github.com:owner/repo.git"
    - "github:owner/repo" and bare "owner/repo" shorthand
    """
    if isinstance(repository, dict):
        url = repository.get("url") or ""
    elif isinstance(repository, str):
        url = repository
    else:
        return None

    url = url.strip().removeprefix("git+")
    if not url:
        return None
    if url.startswith("git://"):
        url = "https://" + url[len("git://"):]
    if url.startswith("ssh://git@"):
        url = "https://" + url[len("ssh://git@"):]

    parsed = parse_github_url(url)
    if parsed is not None:
        return parsed

    m = _SHORTHAND_RE.match(url)
    if m:
        return m.group("owner"), _clean_repo(m.group("repo"))
    return None


async def resolve_npm_package(
    client: httpx.AsyncClient, name: str
) -> tuple[str, str]:
    """Look up an npm package and return its GitHub (owner, repo).

    Raises:
        UnresolvableURLError: if the registry lookup fails or the package
            has no GitHub repository.
    """
    url = f"{config.NPM_REGISTRY_BASE}/{quote(name, safe='@')}"
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPError as e:
        raise UnresolvableURLError(f"npm registry lookup failed for {name}: {e}") from e
    except ValueError as e:
        raise UnresolvableURLError(f"npm registry returned invalid JSON for {name}") from e
    if not isinstance(data, dict):
        raise UnresolvableURLError(f"npm registry returned unexpected payload for {name}")

    latest = (data.get("dist-tags") or {}).get("latest", "")
    version_data = (data.get("versions") or {}).get(latest) or {}
    repository = data.get("repository") or version_data.get("repository")

    parsed = repository_to_github(repository)
    if parsed is None:
        raise UnresolvableURLError(f"npm package {name} has no GitHub repository")
    return parsed


def read_url_file(path: str | Path) -> list[str]:
    """Return the non-blank, stripped lines of a URL file.

    Raises:
        URLFileError: if the file cannot be read.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise URLFileError(f"cannot read URL file {path}: {e}") from e
    return [line.strip() for line in text.splitlines() if line.strip()]


async def resolve(
    client: httpx.AsyncClient, url: str
) -> PackageTarget:
    """Resolve one input URL to a PackageTarget.

    Raises:
        UnresolvableURLError: for URLs that are neither GitHub nor npm, or
            npm packages without a GitHub repository.
    """
    parsed = parse_github_url(url)
    if parsed is None:
        name = parse_npm_url(url)
        if name is None:
            raise UnresolvableURLError(f"Unsupported URL: {url}")
        parsed = await resolve_npm_package(client, name)
    owner, repo = parsed
    return PackageTarget(url=url, owner=owner, repo=repo)


async def collect(
    url_file: str | Path,
    client: httpx.AsyncClient,
    logger: logging.Logger,
) -> list[PackageTarget]:
    """Read a URL file and resolve every entry, skipping unresolvable ones.

    Registry lookups run concurrently; order of the returned targets
    follows the file.
    """
    urls = read_url_file(url_file)
    logger.info(f"Read {len(urls)} URLs from {url_file}")

    async def _resolve_one(url: str) -> PackageTarget | None:
        try:
            target = await resolve(client, url)
        except UnresolvableURLError as e:
            logger.error(f"Skipping {url}: {e}")
            return None
        logger.debug(f"Resolved {url} -> {target['owner']}/{target['repo']}")
        return target

    resolved = await asyncio.gather(*(_resolve_one(url) for url in urls))
    targets = [t for t in resolved if t is not None]

    logger.info(f"URL collection complete: {len(targets)} of {len(urls)} resolved")
    return targets
