from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Tuple

from dotenv import load_dotenv

from frontend.utils.logging import get_logger

PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")
load_dotenv()

LOGGER = get_logger(__name__)

# docker-compose service name first, then a locally started backend.
DEFAULT_API_URLS: Tuple[str, ...] = ("http://backend:8502", "http://localhost:8502")


@dataclass(frozen=True)
class AppConfig:
    """Dashboard settings: where the API lives and how long to wait for analyses."""

    api_base_url: str
    fallback_api_urls: Tuple[str, ...]
    request_timeout: float = 30.0
    analysis_poll_interval: float = 1.5
    analysis_timeout_seconds: int = 180

    @property
    def api_base_url_candidates(self) -> Tuple[str, ...]:
        return (self.api_base_url, *self.fallback_api_urls)


def _normalise_urls(urls: Iterable[str]) -> Tuple[str, ...]:
    """Strip whitespace and trailing slashes, drop blanks and duplicates (order kept)."""
    cleaned = (url.strip().rstrip("/") for url in urls)
    return tuple(dict.fromkeys(url for url in cleaned if url))


def _positive_number(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        LOGGER.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value <= 0:
        LOGGER.warning("Ignoring %s=%r: must be positive", name, raw)
        return default
    return value


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the cached dashboard configuration."""
    configured = _normalise_urls([os.getenv("VIBES_API_BASE_URL", "")])
    extra = _normalise_urls(os.getenv("VIBES_API_FALLBACKS", "").split(","))
    candidates = _normalise_urls((*configured, *extra, *DEFAULT_API_URLS))

    return AppConfig(
        api_base_url=candidates[0],
        fallback_api_urls=candidates[1:],
        request_timeout=_positive_number("VIBES_REQUEST_TIMEOUT", 30.0),
        analysis_poll_interval=_positive_number("VIBES_POLL_INTERVAL", 1.5),
        analysis_timeout_seconds=int(_positive_number("VIBES_ANALYSIS_TIMEOUT", 180)),
    )


def get_api_base_url_candidates() -> Tuple[str, ...]:
    return get_config().api_base_url_candidates
