"""Chat analysis lifecycle: format gate, model request and reply parsing.

``AnalysisStore`` owns the single ``LifecycleState`` for a session. Every
transition replaces the whole state object, so readers on any thread observe
either the previous or the next snapshot and never a partial update.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from .models import AnalysisError, AnalysisResult, AnalysisSnapshot
from .prompts import build_analysis_prompt
from .providers.base import LLMProvider
from .validator import validate

_logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to analyze chat"
INVALID_RESPONSE_MESSAGE = "Invalid response format"
INVALID_FORMAT_MESSAGE = "Invalid chat format"

_DEBUG_TEXT_LIMIT = 2048
_FENCE_OPEN_RE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")


class FormatRejectedError(ValueError):
    """Raised when a transcript does not look like a chat export."""

    def __init__(self, message: str = INVALID_FORMAT_MESSAGE):
        super().__init__(message)


class StructuredResponseError(RuntimeError):
    """Raised when a provider response cannot be parsed into the expected structure."""

    def __init__(self, message: str, response_text: str = ""):
        super().__init__(message)
        self.response_text = response_text or ""


class LifecycleStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class FailureKind(str, Enum):
    FORMAT_REJECTED = "format_rejected"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass(frozen=True)
class ErrorDetail:
    """Failure description attached to a FAILURE state.

    Attributes:
        kind: Failure category.
        message: Human-readable message safe to show to the user.
        raw_response: Provider output kept for diagnostics only.
    """
    kind: FailureKind
    message: str
    raw_response: Optional[str] = field(default=None, repr=False)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LifecycleState:
    """Immutable snapshot of the most recent analysis request."""
    status: LifecycleStatus = LifecycleStatus.IDLE
    result: Optional[AnalysisResult] = None
    error: Optional[ErrorDetail] = None
    request_id: int = 0
    updated_at: datetime = field(default_factory=_utcnow)

    def to_snapshot(self) -> AnalysisSnapshot:
        """Return the client-facing representation (raw replies excluded)."""
        error = None
        if self.error is not None:
            error = AnalysisError(kind=self.error.kind.value, message=self.error.message)
        return AnalysisSnapshot(
            status=self.status.value,
            request_id=self.request_id,
            updated_at=self.updated_at,
            result=self.result,
            error=error,
        )


StateListener = Callable[[LifecycleState], None]


def _format_debug_text(text: Optional[str]) -> str:
    """Return a truncated text preview for debug logging."""
    if text is None:
        return "<none>"
    if len(text) > _DEBUG_TEXT_LIMIT:
        return f"{text[:_DEBUG_TEXT_LIMIT]}…(truncated)"
    return text


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (optionally language-tagged)."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def default_analysis_payload() -> Dict[str, Any]:
    """Return every known metric group populated with its default value."""
    return AnalysisResult().model_dump(by_alias=True)


def merge_defaults(defaults: Mapping[str, Any], parsed: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay ``parsed`` on ``defaults``, recursing into nested mappings.

    ``None`` values in ``parsed`` keep the default. Keys unknown to
    ``defaults`` are carried over and later ignored by the model.
    """
    merged = dict(defaults)
    for key, value in parsed.items():
        if value is None:
            continue
        base = defaults.get(key)
        if isinstance(base, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_defaults(base, value)
        else:
            merged[key] = value
    return merged


def parse_analysis_response(response_text: str) -> AnalysisResult:
    """Parse a model reply into an ``AnalysisResult``.

    The reply is expected to be a single JSON object, optionally wrapped in a
    markdown code fence. Missing fields fall back to their defaults, and so do
    fields holding a value of the wrong type (see ``VibesModel``).

    Raises:
        StructuredResponseError: When the reply is empty or is not a JSON object.
    """
    if not response_text or not response_text.strip():
        raise StructuredResponseError("LLM response was empty", response_text or "")

    cleaned = strip_code_fences(response_text)
    try:
        parsed = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as exc:
        raise StructuredResponseError("LLM response was not valid JSON", response_text) from exc

    if not isinstance(parsed, dict):
        raise StructuredResponseError("LLM response JSON was not an object", response_text)

    merged = merge_defaults(default_analysis_payload(), parsed)
    return AnalysisResult.model_validate(merged)


class AnalysisStore:
    """Single-writer, many-reader owner of the analysis lifecycle.

    ``submit`` and ``analyze`` are the only mutation entry points. Readers use
    ``state`` or register a listener with ``subscribe``.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        *,
        temperature: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._model = model
        self._options: Dict[str, Any] = {}
        if temperature is not None:
            self._options["temperature"] = temperature
        if provider.supports_json_mode() is True:
            self._options["json_mode"] = True
        self._state = LifecycleState()
        self._latest_request_id = 0
        self._listeners: List[StateListener] = []
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    @property
    def model(self) -> str:
        return self._model

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for every new state; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit(self, text: str) -> "asyncio.Task[None]":
        """Validate ``text``, enter LOADING and schedule the model request.

        Must be called from a running event loop. Returns immediately with the
        task that completes once the state has left LOADING.

        Raises:
            FormatRejectedError: If the transcript fails the export-format check.
                The state is left untouched and no request is sent.
        """
        loop = asyncio.get_running_loop()
        if not validate(text):
            _logger.info("Rejected transcript that does not look like a chat export")
            raise FormatRejectedError()

        self._latest_request_id += 1
        request_id = self._latest_request_id
        self._set_state(LifecycleState(status=LifecycleStatus.LOADING, request_id=request_id))
        _logger.info("Analysis request %d started (%d characters)", request_id, len(text))

        task = loop.create_task(self._run(request_id, build_analysis_prompt(text)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def analyze(self, text: str) -> None:
        """Run a full analysis of ``text``; the outcome is published on ``state``."""
        await self.submit(text)

    async def _run(self, request_id: int, prompt: str) -> None:
        outcome = await self._request_analysis(request_id, prompt)
        if request_id != self._latest_request_id:
            _logger.info(
                "Discarding analysis request %d; superseded by request %d",
                request_id,
                self._latest_request_id,
            )
            return
        self._set_state(outcome)

    async def _request_analysis(self, request_id: int, prompt: str) -> LifecycleState:
        try:
            generated = await asyncio.to_thread(
                self._provider.generate,
                self._model,
                prompt,
                None,
                dict(self._options),
            )
        except Exception as exc:  # pylint: disable=broad-except
            message = str(exc).strip() or GENERIC_FAILURE_MESSAGE
            _logger.error(
                "Analysis request %d failed calling %s: %s",
                request_id,
                self.provider_name,
                message,
                exc_info=exc,
            )
            return self._failure(request_id, FailureKind.TRANSPORT_FAILURE, message)

        content = getattr(generated, "content", None)
        if not isinstance(content, str):
            _logger.error(
                "Analysis request %d: %s returned a non-text response (%s)",
                request_id,
                self.provider_name,
                type(content).__name__,
            )
            return self._failure(request_id, FailureKind.MALFORMED_RESPONSE, INVALID_RESPONSE_MESSAGE)

        try:
            result = parse_analysis_response(content)
        except StructuredResponseError as exc:
            _logger.error(
                "Analysis request %d response parsing failed: %s\nResponse: %s",
                request_id,
                exc,
                _format_debug_text(exc.response_text),
            )
            return self._failure(
                request_id,
                FailureKind.MALFORMED_RESPONSE,
                INVALID_RESPONSE_MESSAGE,
                raw_response=exc.response_text,
            )

        _logger.info("Analysis request %d completed", request_id)
        return LifecycleState(status=LifecycleStatus.SUCCESS, result=result, request_id=request_id)

    @staticmethod
    def _failure(
        request_id: int,
        kind: FailureKind,
        message: str,
        *,
        raw_response: Optional[str] = None,
    ) -> LifecycleState:
        return LifecycleState(
            status=LifecycleStatus.FAILURE,
            error=ErrorDetail(kind=kind, message=message, raw_response=raw_response),
            request_id=request_id,
        )

    def _set_state(self, state: LifecycleState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # pylint: disable=broad-except
                _logger.exception("Analysis state listener failed")
