"""Sub-metric scorers: ramp-up, bus factor, correctness, responsive maintainer.

Each scorer is a pure function of raw signal values and returns a float
rounded with ``round_score``. Scores are nominally in [0, 1] but correctness
and responsive maintainer are not clamped.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta

from oss_scorecard.config import (
    BUS_FACTOR_CONTRIBUTOR_CAP,
    BUS_FACTOR_LONGEST_README_LENGTH,
    CORRECTNESS_ISSUES_BASE,
    CORRECTNESS_ISSUES_WEIGHT,
    CORRECTNESS_SCALE,
    CORRECTNESS_STARS_WEIGHT,
    ONE_YEAR,
    RAMP_UP_LONGEST_README_LENGTH,
    RAMP_UP_TARGET_README_LENGTH,
    RESPONSIVE_WEIGHTS,
    ROUND_PRECISION,
)


def round_score(value: float, precision: int = ROUND_PRECISION) -> float:
    """Round half away from zero to ``precision`` decimals.

    Built-in round() uses banker's rounding, so 2.5 -> 2; here 2.5 -> 3 and
    -2.5 -> -3. The result is a plain float (no trailing-zero padding).
    """
    factor = 10 ** precision
    scaled = math.floor(abs(value) * factor + 0.5)
    return math.copysign(scaled / factor, value) if scaled else 0.0


# ---------------------------------------------------------------------------
# Ramp-up
# ---------------------------------------------------------------------------


def ramp_up(readme_length: int) -> float:
    """Triangular score peaking at the target README length.

    1.0 at exactly RAMP_UP_TARGET_README_LENGTH, decaying linearly to 0 once
    the distance reaches RAMP_UP_LONGEST_README_LENGTH.
    """
    difference = abs(RAMP_UP_TARGET_README_LENGTH - readme_length)
    return round_score(1 - min(1.0, difference / RAMP_UP_LONGEST_README_LENGTH))


# ---------------------------------------------------------------------------
# Bus factor
# ---------------------------------------------------------------------------


def _readme_adequacy(readme_length: int) -> float:
    """0-100 ramp, saturating at BUS_FACTOR_LONGEST_README_LENGTH."""
    if readme_length > BUS_FACTOR_LONGEST_README_LENGTH:
        return 100.0
    shortfall = BUS_FACTOR_LONGEST_README_LENGTH - readme_length
    return 100 - (shortfall / BUS_FACTOR_LONGEST_README_LENGTH) * 100


def _contributor_distribution(contributors: Mapping[str, int]) -> float:
    """0-100 score: 2/3 evenness of commit shares, 1/3 contributor headcount."""
    counts = list(contributors.values())
    total = sum(counts)
    if not counts or total <= 0:
        return 0.0

    evenness = sum(100 - (count / total) * 100 for count in counts) / len(counts)
    breadth = min(len(counts), BUS_FACTOR_CONTRIBUTOR_CAP) / BUS_FACTOR_CONTRIBUTOR_CAP * 100
    return breadth / 3 + 2 * evenness / 3


def bus_factor(readme_length: int, contributors: Mapping[str, int]) -> float:
    """Average of README adequacy and contributor distribution, scaled to [0, 1]."""
    readme_val = _readme_adequacy(readme_length)
    contributors_val = _contributor_distribution(contributors)
    return round_score((readme_val + contributors_val) / 2 / 100)


# ---------------------------------------------------------------------------
# Correctness
# ---------------------------------------------------------------------------


def correctness(stars: int, open_issues: int) -> float:
    """Stars raise the score, open issues lower it; flattened by CORRECTNESS_SCALE."""
    stars_term = stars * CORRECTNESS_STARS_WEIGHT / 100
    issues_term = CORRECTNESS_ISSUES_BASE - (
        CORRECTNESS_ISSUES_BASE * open_issues * CORRECTNESS_ISSUES_WEIGHT / 100
    )
    return round_score((stars_term + issues_term) / CORRECTNESS_SCALE)


# ---------------------------------------------------------------------------
# Responsive maintainer
# ---------------------------------------------------------------------------


def freshness(average_interval: timedelta) -> float:
    """Map an average interval to (ONE_YEAR - avg) / ONE_YEAR.

    Near 1 for very frequent activity, 0 at one year, negative beyond.
    """
    return (ONE_YEAR - average_interval) / ONE_YEAR


def commit_frequency(commit_timestamps: Sequence[datetime]) -> float:
    """Freshness of the average gap between consecutive commits; 0 if < 2 commits."""
    if len(commit_timestamps) < 2:
        return 0.0
    ordered = sorted(commit_timestamps)
    total = sum(
        (later - earlier for earlier, later in zip(ordered, ordered[1:])),
        timedelta(),
    )
    return freshness(total / (len(ordered) - 1))


def issue_resolution(resolved_issue_intervals: Sequence[tuple[datetime, datetime]]) -> float:
    """Freshness of the average create-to-close latency; 0 with no resolved issues."""
    if not resolved_issue_intervals:
        return 0.0
    total = sum(
        (closed - created for created, closed in resolved_issue_intervals),
        timedelta(),
    )
    return freshness(total / len(resolved_issue_intervals))


def responsive_maintainer(
    commit_timestamps: Sequence[datetime],
    resolved_issue_intervals: Sequence[tuple[datetime, datetime]],
) -> float:
    """Weighted blend of commit frequency and issue resolution freshness."""
    score = (
        commit_frequency(commit_timestamps) * RESPONSIVE_WEIGHTS["commit_frequency"]
        + issue_resolution(resolved_issue_intervals) * RESPONSIVE_WEIGHTS["issue_resolution"]
    )
    return round_score(score)
