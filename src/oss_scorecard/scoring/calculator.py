"""Aggregate score computation — combines sub-metrics into a net score."""

from __future__ import annotations

import asyncio
import logging

from oss_scorecard.config import NET_SCORE_WEIGHTS, SENTINEL_UNAVAILABLE
from oss_scorecard.enrichers.base import (
    CLOSED_ISSUES,
    COMMITS,
    OPEN_ISSUES,
    STARS,
    RepositorySignals,
    SignalProvider,
)
from oss_scorecard.output.models import ScoreSet

from .metrics import (
    bus_factor,
    correctness,
    ramp_up,
    responsive_maintainer,
    round_score,
)


def net_score(
    ramp_up_score: float,
    bus_factor_score: float,
    correctness_score: float,
    responsive_maintainer_score: float,
    has_license: bool,
) -> float:
    """Weighted sum of the sub-metrics and license flag.

    Not clamped: sentinel -1 inputs and negative freshness pass straight
    through into the result.
    """
    weighted = (
        NET_SCORE_WEIGHTS["responsive_maintainer"] * responsive_maintainer_score
        + NET_SCORE_WEIGHTS["ramp_up"] * ramp_up_score
        + NET_SCORE_WEIGHTS["correctness"] * correctness_score
        + NET_SCORE_WEIGHTS["bus_factor"] * bus_factor_score
        + NET_SCORE_WEIGHTS["license"] * int(has_license)
    )
    return round_score(weighted)


def calculate_scores(
    signals: RepositorySignals, logger: logging.Logger, label: str = ""
) -> ScoreSet:
    """Run every sub-metric against ``signals`` and aggregate them.

    Correctness and responsive maintainer fall back to the sentinel when
    any of their input signals failed to fetch.
    """
    prefix = f"{label}: " if label else ""

    ramp = ramp_up(signals.readme_length)
    logger.debug(f"{prefix}Calculated rampup value of: {ramp}")

    bus = bus_factor(signals.readme_length, signals.contributors)
    logger.debug(f"{prefix}Calculated bus factor of: {bus}")

    if signals.failed(STARS, OPEN_ISSUES):
        correct = float(SENTINEL_UNAVAILABLE)
        logger.error(f"{prefix}Correctness unavailable: star or issue signal failed")
    else:
        correct = correctness(signals.star_count, signals.open_issue_count)
        logger.debug(f"{prefix}Calculated correctness value of: {correct}")

    if signals.failed(COMMITS, CLOSED_ISSUES):
        responsive = float(SENTINEL_UNAVAILABLE)
        logger.error(f"{prefix}Responsive maintainer unavailable: commit or issue signal failed")
    else:
        responsive = responsive_maintainer(
            signals.commit_timestamps, signals.resolved_issue_intervals
        )
        logger.debug(f"{prefix}Calculated responsive maintainer score of: {responsive}")

    net = net_score(ramp, bus, correct, responsive, signals.has_license)
    logger.info(f"{prefix}Calculated net-score: {net}")

    return ScoreSet(
        ramp_up=ramp,
        bus_factor=bus,
        correctness=correct,
        responsive_maintainer=responsive,
        has_license=signals.has_license,
        net_score=net,
    )


async def fetch_correctness(
    provider: SignalProvider, owner: str, repo: str
) -> float:
    """Fetch stars and open issues, then score correctness (sentinel on failure)."""
    stars, open_issues = await asyncio.gather(
        provider.fetch_star_count(owner, repo),
        provider.fetch_open_issue_count(owner, repo),
    )
    if not (stars.ok and open_issues.ok):
        provider.logger.error(f"Error calculating correctness metric for {owner}/{repo}")
        return float(SENTINEL_UNAVAILABLE)
    return correctness(stars.value, open_issues.value)


async def fetch_responsive_maintainer(
    provider: SignalProvider, owner: str, repo: str
) -> float:
    """Fetch commits and closed issues, then score responsiveness (sentinel on failure)."""
    commits, intervals = await asyncio.gather(
        provider.fetch_commit_timestamps(owner, repo),
        provider.fetch_resolved_issue_intervals(owner, repo),
    )
    if not (commits.ok and intervals.ok):
        provider.logger.error(
            f"Error calculating responsive maintainer score for {owner}/{repo}"
        )
        return float(SENTINEL_UNAVAILABLE)
    return responsive_maintainer(commits.value, intervals.value)
