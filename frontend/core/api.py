from __future__ import annotations

import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from .config import get_api_base_url_candidates, get_config
from .models import AnalysisSnapshot


class BackendError(Exception):
    """Raised when the backend API is unreachable or returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause
        self.detail = detail


class InvalidTranscriptError(BackendError):
    """Raised when the backend rejects a transcript that is not a chat export."""


def is_backend_unavailable_error(error: Optional[BackendError]) -> bool:
    """Return True if the error likely represents a transient backend outage."""
    if error is None:
        return False

    if error.status_code in {502, 503, 504}:
        return True

    cause = getattr(error, "cause", None)
    transient_exceptions: Iterable[type[BaseException]] = (
        requests.exceptions.ConnectionError,
        requests.exceptions.Timeout,
    )
    return isinstance(cause, tuple(transient_exceptions))


def _request(
    path: str,
    *,
    method: str = "GET",
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> Any:
    """Execute an HTTP request against the backend service."""
    config = get_config()
    timeout = timeout or config.request_timeout
    last_exc: Optional[BaseException] = None

    for base_url in get_api_base_url_candidates():
        url = f"{base_url.rstrip('/')}{path}"
        try:
            response = requests.request(method=method.upper(), url=url, timeout=timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            detail = ""
            status_code = None
            if exc.response is not None:
                status_code = exc.response.status_code
                try:
                    payload = exc.response.json()
                except ValueError:
                    payload = None

                if isinstance(payload, dict) and payload.get("detail"):
                    detail = str(payload["detail"])
                if not detail:
                    detail = exc.response.text.strip()

            message = f"Backend request failed: {exc}"
            if detail:
                message = f"{message} - {detail}"
            error_cls = InvalidTranscriptError if status_code == 422 else BackendError
            raise error_cls(message, status_code=status_code, cause=exc, detail=detail or None) from exc
        except requests.exceptions.RequestException as exc:
            last_exc = exc
            continue
        else:
            break
    else:
        raise BackendError(f"Backend request failed: {last_exc}", cause=last_exc) from last_exc

    if response.status_code == 204:
        return {}

    try:
        return response.json()
    except ValueError as exc:
        raise BackendError("Backend returned an invalid JSON response.", cause=exc) from exc


def get_analysis() -> AnalysisSnapshot:
    """Fetch the current analysis state."""
    return AnalysisSnapshot.from_dict(_request("/api/v1/analysis"))


def submit_analysis(transcript: str) -> AnalysisSnapshot:
    """Submit a transcript for analysis.

    Raises:
        InvalidTranscriptError: If the backend rejects the chat format.
        BackendError: For any other failure.
    """
    payload = _request("/api/v1/analysis", method="POST", json={"transcript": transcript})
    return AnalysisSnapshot.from_dict(payload)


def validate_transcript(transcript: str) -> bool:
    """Ask the backend whether ``transcript`` looks like a chat export."""
    payload = _request("/api/v1/analysis/validate", method="POST", json={"transcript": transcript})
    return bool(isinstance(payload, dict) and payload.get("valid"))


def get_provider_status() -> Dict[str, Any]:
    """Fetch the configured analysis provider and its availability."""
    payload = _request("/api/v1/provider")
    return payload if isinstance(payload, dict) else {}


def get_provider_connections() -> List[Dict[str, Any]]:
    payload = _request("/api/v1/providers")
    return payload if isinstance(payload, list) else []


def poll_analysis(
    *,
    request_id: Optional[int] = None,
    timeout: Optional[int] = None,
    poll_interval: Optional[float] = None,
    on_update: Optional[Callable[[AnalysisSnapshot], None]] = None,
) -> AnalysisSnapshot:
    """Poll the backend until the analysis leaves LOADING or the timeout elapses.

    When ``request_id`` is given, polling also continues while the backend
    still reports an older request.
    """
    config = get_config()
    timeout = timeout or config.analysis_timeout_seconds
    poll_interval = poll_interval or config.analysis_poll_interval

    start_time = time.monotonic()
    while True:
        snapshot = get_analysis()
        if on_update:
            on_update(snapshot)

        stale = request_id is not None and snapshot.request_id < request_id
        if snapshot.is_terminal and not stale:
            return snapshot

        if time.monotonic() - start_time >= timeout:
            return snapshot

        time.sleep(poll_interval)
