"""Tests for URL file parsing and npm → GitHub resolution."""

from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from oss_scorecard.collectors.urls import (
    URLFileError,
    UnresolvableURLError,
    collect,
    parse_github_url,
    parse_npm_url,
    read_url_file,
    repository_to_github,
    resolve,
)

LOGGER = logging.getLogger("tests.collectors")

NPM_PACKAGES = {
    "/express": {
        "name": "express",
        "dist-tags": {"latest": "4.18.2"},
        "repository": {"type": "git", "url": "git+https://github.com/expressjs/express.git"},
    },
    "/@babel%2Fcore": {
        "name": "@babel/core",
        "dist-tags": {"latest": "7.0.0"},
        "versions": {
            "7.0.0": {"repository": {"type": "git", "url": "https://github.com/babel/babel.git"}},
        },
    },
    "/left-pad": {
        "name": "left-pad",
        "repository": "https://gitlab.com/someone/left-pad",
    },
}


def _npm_handler(request: httpx.Request) -> httpx.Response:
    body = NPM_PACKAGES.get(request.url.raw_path.decode())
    if body is None:
        return httpx.Response(404, json={"error": "Not found"})
    return httpx.Response(200, json=body)


def _with_client(fn):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(_npm_handler)) as client:
            return await fn(client)

    return asyncio.run(main())


# --- GitHub URL parsing ---


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/cloudinary/cloudinary_npm",
        "https://github.com/cloudinary/cloudinary_npm/",
        "https://github.com/cloudinary/cloudinary_npm.git",
        "http://www.github.com/cloudinary/cloudinary_npm",
        "https://github.com/cloudinary/cloudinary_npm/tree/master/lib",
        "git@github.com:cloudinary/cloudinary_npm.git",
        "  https://github.com/cloudinary/cloudinary_npm  ",
    ],
)
def test_parse_github_url_variants(url):
    assert parse_github_url(url) == ("cloudinary", "cloudinary_npm")


def test_parse_github_url_rejects_other_hosts():
    assert parse_github_url("https://gitlab.com/owner/repo") is None
    assert parse_github_url("https://github.com/owner-only") is None


def test_parse_github_url_rejects_control_characters():
    assert parse_github_url("https://github.com/bad\x7fowner/repo") is None
    assert parse_github_url("https://github.com/owner/re\x01po") is None


def test_parse_npm_url():
    assert parse_npm_url("https://www.npmjs.com/package/express") == "express"
    assert parse_npm_url("https://www.npmjs.com/package/@babel/core") == "@babel/core"
    assert parse_npm_url("https://github.com/owner/repo") is None


# --- npm repository field ---


@pytest.mark.parametrize(
    "repository",
    [
        {"type": "git", "url": "git+https://github.com/lodash/lodash.git"},
        "git://github.com/lodash/lodash.git",
        "git+ssh://git@github.com/lodash/lodash.git",
        "git@github.com:lodash/lodash.git",
        "github:lodash/lodash",
        "lodash/lodash",
    ],
)
def test_repository_to_github_formats(repository):
    assert repository_to_github(repository) == ("lodash", "lodash")


def test_repository_to_github_non_github():
    assert repository_to_github("https://gitlab.com/someone/left-pad") is None
    assert repository_to_github(None) is None
    assert repository_to_github({"type": "git"}) is None


# --- Resolution ---


def test_resolve_github_url_needs_no_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("unexpected request")

    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await resolve(client, "https://github.com/nullivex/nodist")

    target = asyncio.run(main())
    assert target == {"url": "https://github.com/nullivex/nodist", "owner": "nullivex", "repo": "nodist"}


def test_resolve_npm_package():
    target = _with_client(lambda c: resolve(c, "https://www.npmjs.com/package/express"))
    assert target["owner"] == "expressjs"
    assert target["repo"] == "express"
    assert target["url"] == "https://www.npmjs.com/package/express"


def test_resolve_scoped_npm_package_from_latest_version():
    target = _with_client(lambda c: resolve(c, "https://www.npmjs.com/package/@babel/core"))
    assert (target["owner"], target["repo"]) == ("babel", "babel")


def test_resolve_npm_without_github_repo():
    with pytest.raises(UnresolvableURLError):
        _with_client(lambda c: resolve(c, "https://www.npmjs.com/package/left-pad"))


def test_resolve_unknown_npm_package():
    with pytest.raises(UnresolvableURLError):
        _with_client(lambda c: resolve(c, "https://www.npmjs.com/package/does-not-exist"))


def test_resolve_unsupported_url():
    with pytest.raises(UnresolvableURLError):
        _with_client(lambda c: resolve(c, "https://pypi.org/project/requests"))


# --- URL file ---


def test_read_url_file_skips_blank_lines(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text("https://github.com/a/b\n\n   \nhttps://www.npmjs.com/package/express\n")
    assert read_url_file(path) == [
        "https://github.com/a/b",
        "https://www.npmjs.com/package/express",
    ]


def test_read_url_file_missing(tmp_path):
    with pytest.raises(URLFileError):
        read_url_file(tmp_path / "missing.txt")


def test_collect_keeps_order_and_skips_unresolvable(tmp_path, caplog):
    path = tmp_path / "urls.txt"
    path.write_text(
        "\n".join(
            [
                "https://www.npmjs.com/package/express",
                "https://pypi.org/project/requests",
                "https://github.com/lodash/lodash",
                "https://www.npmjs.com/package/left-pad",
            ]
        )
    )

    with caplog.at_level(logging.ERROR, logger=LOGGER.name):
        targets = _with_client(lambda c: collect(path, c, LOGGER))

    assert [(t["owner"], t["repo"]) for t in targets] == [
        ("expressjs", "express"),
        ("lodash", "lodash"),
    ]
    skipped = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert len(skipped) == 2


def test_collect_resolves_npm_packages_concurrently(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text(
        "https://www.npmjs.com/package/express\n"
        "https://www.npmjs.com/package/@babel/core\n"
    )
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return _npm_handler(request)

    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await collect(path, client, LOGGER)

    targets = asyncio.run(main())

    assert [t["repo"] for t in targets] == ["express", "babel"]
    assert peak == 2
