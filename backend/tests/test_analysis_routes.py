"""Tests for the analysis HTTP endpoints."""

from __future__ import annotations

import time
from typing import Iterator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.analyzer import AnalysisStore
from backend.app import app
from backend.providers.base import GenerateResult, LLMProvider

TRANSCRIPT = "[17/01/25, 10:12:01 PM] Mia: hi\n[17/01/25, 10:12:09 PM] Leo: hey you"


def _make_provider(content: str = '{"moodMetrics": {"happy": 75}}') -> MagicMock:
    provider = MagicMock(spec=LLMProvider)
    provider.get_provider_name.return_value = "gemini"
    provider.supports_json_mode.return_value = True
    provider.get_unavailable_reason.return_value = None
    provider.generate.return_value = GenerateResult(content=content, model="gemini-1.5-flash", provider="gemini")
    return provider


@pytest.fixture
def provider() -> MagicMock:
    return _make_provider()


@pytest.fixture
def client(provider: MagicMock) -> Iterator[TestClient]:
    app.state.analysis_store = AnalysisStore(provider, "gemini-1.5-flash")
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.analysis_store = None


def _wait_for_terminal(client: TestClient, timeout: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        snapshot = client.get("/api/v1/analysis").json()
        if snapshot["status"] != "loading" or time.monotonic() > deadline:
            return snapshot
        time.sleep(0.02)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_initial_state_is_idle(client: TestClient) -> None:
    response = client.get("/api/v1/analysis")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "idle"
    assert body["result"] is None
    assert body["error"] is None
    assert body["request_id"] == 0


def test_submit_returns_loading_then_success(client: TestClient, provider: MagicMock) -> None:
    response = client.post("/api/v1/analysis", json={"transcript": TRANSCRIPT})

    assert response.status_code == 202
    accepted = response.json()
    assert accepted["status"] in {"loading", "success"}
    assert accepted["request_id"] == 1

    snapshot = _wait_for_terminal(client)
    assert snapshot["status"] == "success"
    assert snapshot["result"]["moodMetrics"]["happy"] == 75
    assert snapshot["result"]["relationshipMetrics"]["redFlags"] == 0
    provider.generate.assert_called_once()


def test_invalid_transcript_rejected_without_model_call(client: TestClient, provider: MagicMock) -> None:
    response = client.post("/api/v1/analysis", json={"transcript": "just some notes\nnothing here"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid chat format"
    assert client.get("/api/v1/analysis").json()["status"] == "idle"
    provider.generate.assert_not_called()


def test_malformed_reply_surfaces_failure(client: TestClient, provider: MagicMock) -> None:
    provider.generate.return_value = GenerateResult(content="not json at all", model="m", provider="gemini")

    client.post("/api/v1/analysis", json={"transcript": TRANSCRIPT})
    snapshot = _wait_for_terminal(client)

    assert snapshot["status"] == "failure"
    assert snapshot["error"] == {"kind": "malformed_response", "message": "Invalid response format"}
    assert snapshot["result"] is None


def test_transport_error_surfaces_failure(client: TestClient, provider: MagicMock) -> None:
    provider.generate.side_effect = ConnectionError("quota exceeded")

    client.post("/api/v1/analysis", json={"transcript": TRANSCRIPT})
    snapshot = _wait_for_terminal(client)

    assert snapshot["status"] == "failure"
    assert snapshot["error"]["kind"] == "transport_failure"
    assert snapshot["error"]["message"] == "quota exceeded"


def test_missing_transcript_field_is_rejected(client: TestClient) -> None:
    response = client.post("/api/v1/analysis", json={})
    assert response.status_code == 422


@pytest.mark.parametrize(
    ("transcript", "expected"),
    [
        (TRANSCRIPT, True),
        ("hello there", False),
        ("", False),
    ],
)
def test_validate_endpoint(client: TestClient, provider: MagicMock, transcript: str, expected: bool) -> None:
    response = client.post("/api/v1/analysis/validate", json={"transcript": transcript})

    assert response.status_code == 200
    assert response.json() == {"valid": expected}
    provider.generate.assert_not_called()


def test_provider_status(client: TestClient, provider: MagicMock) -> None:
    provider.get_unavailable_reason.return_value = "API key not configured (set GEMINI_API_KEY)"

    response = client.get("/api/v1/provider")

    assert response.status_code == 200
    assert response.json() == {
        "provider": "gemini",
        "model": "gemini-1.5-flash",
        "available": False,
        "reason": "API key not configured (set GEMINI_API_KEY)",
    }


def test_provider_connections(client: TestClient, monkeypatch) -> None:
    registry = MagicMock()
    registry.get_available_connections.return_value = [
        {"type": "gemini", "available": True, "reason": None},
    ]
    monkeypatch.setattr("backend.routes.get_provider_registry", lambda: registry)

    response = client.get("/api/v1/providers")

    assert response.status_code == 200
    assert response.json() == [{"type": "gemini", "available": True, "reason": None}]


def test_store_missing_returns_503() -> None:
    app.state.analysis_store = None
    test_client = TestClient(app)

    response = test_client.get("/api/v1/analysis")

    assert response.status_code == 503
