"""Scoring constants, weights, API settings and environment loading."""

from __future__ import annotations

import os
from datetime import timedelta

from dotenv import load_dotenv
from pydantic import BaseModel

# --- Rounding ---
# Scores are rounded half away from zero, no trailing-zero padding.
ROUND_PRECISION = 5

# --- README model (chars = paragraphs * words/paragraph * chars/word) ---
WORDS_PER_PARAGRAPH = 150
CHARS_PER_WORD = 5
RAMP_UP_TARGET_README_LENGTH = 2.5 * WORDS_PER_PARAGRAPH * CHARS_PER_WORD   # 1875
RAMP_UP_LONGEST_README_LENGTH = 20 * WORDS_PER_PARAGRAPH * CHARS_PER_WORD  # 15000
BUS_FACTOR_LONGEST_README_LENGTH = 15 * WORDS_PER_PARAGRAPH * CHARS_PER_WORD  # 11250

# --- Bus factor ---
BUS_FACTOR_CONTRIBUTOR_CAP = 20

# --- Correctness ---
CORRECTNESS_STARS_WEIGHT = 0.4
CORRECTNESS_ISSUES_WEIGHT = 0.6
CORRECTNESS_ISSUES_BASE = 0.6
CORRECTNESS_SCALE = 1000

# --- Responsive maintainer ---
ONE_YEAR = timedelta(days=365)
RESPONSIVE_WEIGHTS = {
    "commit_frequency": 0.3,
    "issue_resolution": 0.7,
}

# --- Net score weights (must sum to 1.0) ---
NET_SCORE_WEIGHTS = {
    "responsive_maintainer": 0.40,
    "ramp_up": 0.30,
    "correctness": 0.15,
    "bus_factor": 0.10,
    "license": 0.05,
}

# Returned by a calculator whose signals could not be fetched.
SENTINEL_UNAVAILABLE = -1

# --- GitHub API ---
GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_RATE_LIMIT_BUFFER = 100     # stop this many before limit
GITHUB_CONCURRENT_REQUESTS = 10
GITHUB_PER_PAGE = 100
GITHUB_TIMEOUT_SECONDS = 30.0

# --- npm registry ---
NPM_REGISTRY_BASE = "https://registry.npmjs.org"

# --- Pipeline ---
PACKAGE_CONCURRENCY = 4

# --- Environment ---
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_LOG_FILE = "LOG_FILE"
ENV_LOG_LEVEL = "LOG_LEVEL"

# LOG_LEVEL values: 0 silent, 1 informational, 2 debug
LOG_LEVEL_SILENT = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_DEBUG = 2


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


class Settings(BaseModel):
    github_token: str
    log_file: str | None = None
    log_level: int = LOG_LEVEL_SILENT


def load_settings(env: dict[str, str] | None = None) -> Settings:
    """Build Settings from the process environment (after reading .env).

    Pass ``env`` to read from an explicit mapping instead; .env is then
    not consulted.

    Raises:
        ConfigError: if GITHUB_TOKEN is missing or LOG_LEVEL is not 0/1/2.
    """
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    token = (env.get(ENV_GITHUB_TOKEN) or "").strip()
    if not token:
        raise ConfigError(
            f"GitHub API key not found in environment variables ({ENV_GITHUB_TOKEN})."
        )

    raw_level = (env.get(ENV_LOG_LEVEL) or "").strip()
    if raw_level:
        try:
            log_level = int(raw_level)
        except ValueError:
            raise ConfigError(f"{ENV_LOG_LEVEL} must be 0, 1 or 2, got {raw_level!r}")
        if log_level not in (LOG_LEVEL_SILENT, LOG_LEVEL_INFO, LOG_LEVEL_DEBUG):
            raise ConfigError(f"{ENV_LOG_LEVEL} must be 0, 1 or 2, got {log_level}")
    else:
        log_level = LOG_LEVEL_SILENT

    log_file = (env.get(ENV_LOG_FILE) or "").strip() or None

    return Settings(github_token=token, log_file=log_file, log_level=log_level)
