from __future__ import annotations

from typing import Any, Dict, Iterator

import pytest

from frontend.core import config as core_config


@pytest.fixture(autouse=True)
def reset_config_cache(monkeypatch) -> Iterator[None]:
    """Reset cached configuration and fix the API base URL for tests."""
    monkeypatch.setenv("VIBES_API_BASE_URL", "http://testserver")
    monkeypatch.delenv("VIBES_API_FALLBACKS", raising=False)
    core_config.get_config.cache_clear()
    yield
    core_config.get_config.cache_clear()


@pytest.fixture
def success_payload() -> Dict[str, Any]:
    return {
        "status": "success",
        "request_id": 2,
        "updated_at": "2025-01-17T22:15:00Z",
        "error": None,
        "result": {
            "participants": {"person1": "Mia", "person2": "Leo"},
            "moodMetrics": {"happy": 70, "neutral": 20, "sad": 10},
            "relationshipMetrics": {
                "compatibilityScore": 88,
                "redFlags": 1,
                "greenFlags": 5,
            },
            "emojiStats": [
                {"emoji": "😂", "count": 12},
                {"emoji": "❤️", "count": 4},
            ],
            "petNames": ["bub"],
        },
    }
