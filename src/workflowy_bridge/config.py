"""Configuration constants for the Workflowy bridge."""

import os
from pathlib import Path

from loguru import logger

API_BASE_URL: str = "https://beta.workflowy.com/api/v1"

API_KEY_ENV: str = "WORKFLOWY_API_KEY"
API_URL_ENV: str = "WORKFLOWY_API_URL"
CACHE_TTL_ENV: str = "WORKFLOWY_CACHE_TTL"

# API key location when the environment variable is unset. First file found is used.
API_KEY_FILES: list[Path] = [
    Path("~/.config/workflowy-api-key.txt").expanduser(),
    Path("~/.config/secret/workflowy-api-key.txt").expanduser(),
]

# Workflowy allows roughly one /nodes-export call per minute.
EXPORT_RATE_LIMIT_INTERVAL: float = 60.0
DEFAULT_CACHE_TTL: float = 90.0
DEFAULT_RETRY_AFTER: int = 60

REQUEST_TIMEOUT: float = 30.0

MAX_TREE_DEPTH: int = 5
DEFAULT_MAX_RESULTS: int = 100

LAYOUT_MODES: tuple[str, ...] = ("bullets", "todo", "h1", "h2", "h3", "code-block", "quote-block")


def resolve_api_key() -> str:
    """Return the API key from the environment or the first key file found."""
    env_key = os.environ.get(API_KEY_ENV, "").strip()
    if env_key:
        return env_key
    for key_path in API_KEY_FILES:
        try:
            key = key_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            continue
        if key:
            logger.debug("Using API key from {}", key_path)
            return key
    msg = f"Cannot find Workflowy API key: set {API_KEY_ENV} or create one of {API_KEY_FILES!r}"
    raise RuntimeError(msg)


def resolve_base_url() -> str:
    """Return the API base URL, honoring the override variable."""
    return os.environ.get(API_URL_ENV) or API_BASE_URL


def resolve_cache_ttl() -> float:
    """Return the snapshot freshness window in seconds.

    Raises:
        ValueError: If the override is not a positive number.
    """
    raw = os.environ.get(CACHE_TTL_ENV)
    if raw is None or not raw.strip():
        return DEFAULT_CACHE_TTL

    try:
        ttl = float(raw)
    except ValueError:
        msg = f"{CACHE_TTL_ENV} must be a number of seconds, got {raw!r}"
        raise ValueError(msg) from None
    if ttl <= 0:
        msg = f"{CACHE_TTL_ENV} must be positive, got {raw!r}"
        raise ValueError(msg)

    if ttl < EXPORT_RATE_LIMIT_INTERVAL:
        logger.warning(
            "Cache TTL {}s is below the {}s export rate limit; expect stale reads",
            ttl,
            EXPORT_RATE_LIMIT_INTERVAL,
        )
    return ttl
