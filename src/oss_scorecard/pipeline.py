"""Pipeline orchestrator — collect → fetch signals → score → emit."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

import httpx

from oss_scorecard import config
from oss_scorecard.collectors.urls import PackageTarget, collect
from oss_scorecard.config import Settings
from oss_scorecard.enrichers.base import SignalProvider
from oss_scorecard.enrichers.github import GitHubSignalProvider
from oss_scorecard.output.models import ResultRecord
from oss_scorecard.output.writer import write_all
from oss_scorecard.scoring.calculator import calculate_scores


async def score_package(
    provider: SignalProvider,
    target: PackageTarget,
    semaphore: asyncio.Semaphore,
    logger: logging.Logger,
) -> ResultRecord:
    """Fetch every signal for one package, then score it."""
    label = f"{target['owner']}/{target['repo']}"
    async with semaphore:
        signals = await provider.gather(target["owner"], target["repo"])
    scores = calculate_scores(signals, logger, label=label)
    return ResultRecord.from_scores(target["url"], scores)


async def score_all(
    provider: SignalProvider,
    targets: list[PackageTarget],
    logger: logging.Logger,
    concurrency: int = config.PACKAGE_CONCURRENCY,
) -> list[ResultRecord]:
    """Score targets concurrently; records come back in input order."""
    semaphore = asyncio.Semaphore(concurrency)
    return list(
        await asyncio.gather(
            *(score_package(provider, t, semaphore, logger) for t in targets)
        )
    )


async def run(
    url_file: str | Path,
    settings: Settings,
    logger: logging.Logger,
    output: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[ResultRecord]:
    """Score every package listed in ``url_file`` and write NDJSON records.

    ``client`` is used as-is when given (and left open); otherwise one is
    created for the run.
    """
    t0 = time.monotonic()

    if client is None:
        async with httpx.AsyncClient(timeout=config.GITHUB_TIMEOUT_SECONDS) as owned:
            records = await _run(url_file, settings, logger, owned)
    else:
        records = await _run(url_file, settings, logger, client)

    written = write_all(records, output)
    logger.info(f"Wrote {written} records to {output or 'stdout'}")

    elapsed = time.monotonic() - t0
    logger.info(f"Pipeline complete in {elapsed:.1f}s")
    return records


async def _run(
    url_file: str | Path,
    settings: Settings,
    logger: logging.Logger,
    client: httpx.AsyncClient,
) -> list[ResultRecord]:
    # Stage 1: Collect
    logger.info("STAGE 1: COLLECT")
    targets = await collect(url_file, client, logger)

    # Stage 2 + 3: Fetch signals and score
    logger.info("STAGE 2: FETCH AND SCORE")
    provider = GitHubSignalProvider(client, settings.github_token, logger)
    records = await score_all(provider, targets, logger)
    remaining = provider.rate_remaining
    logger.info(
        f"Scored {len(records)} packages "
        f"(rate limit: {remaining if remaining is not None else 'unknown'} remaining)"
    )
    return records
