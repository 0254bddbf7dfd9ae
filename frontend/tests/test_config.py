from __future__ import annotations

from frontend.core.config import get_config


def test_configured_url_comes_first_then_defaults() -> None:
    config = get_config()

    assert config.api_base_url == "http://testserver"
    assert config.fallback_api_urls == ("http://backend:8502", "http://localhost:8502")


def test_fallbacks_are_normalised_and_deduplicated(monkeypatch) -> None:
    monkeypatch.setenv("VIBES_API_BASE_URL", "http://api.local:8502/")
    monkeypatch.setenv("VIBES_API_FALLBACKS", " http://spare:8502/ ,,http://api.local:8502,http://localhost:8502")
    get_config.cache_clear()

    config = get_config()

    assert config.api_base_url_candidates == (
        "http://api.local:8502",
        "http://spare:8502",
        "http://localhost:8502",
        "http://backend:8502",
    )


def test_missing_base_url_uses_first_default(monkeypatch) -> None:
    monkeypatch.setenv("VIBES_API_BASE_URL", "")
    get_config.cache_clear()

    assert get_config().api_base_url == "http://backend:8502"


def test_invalid_timings_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("VIBES_REQUEST_TIMEOUT", "soon")
    monkeypatch.setenv("VIBES_POLL_INTERVAL", "-1")
    monkeypatch.setenv("VIBES_ANALYSIS_TIMEOUT", "90")
    get_config.cache_clear()

    config = get_config()

    assert config.request_timeout == 30.0
    assert config.analysis_poll_interval == 1.5
    assert config.analysis_timeout_seconds == 90
