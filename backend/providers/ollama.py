"""Ollama provider implementation for locally hosted models."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from requests import Response, Session

from .. import config
from .base import GenerateResult, LLMProvider, ProviderError

LOGGER = logging.getLogger(__name__)


class OllamaProvider(LLMProvider):
    """Thin wrapper around the Ollama REST API (``/api/generate``)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[Session] = None,
    ):
        """Initialize Ollama provider.

        Args:
            base_url: Ollama base URL (defaults to config.OLLAMA_BASE_URL)
            timeout: Request timeout in seconds (defaults to config.ANALYZER_TIMEOUT_SECONDS)
            session: Optional requests session (for testing/DI)
        """
        self.base_url = (base_url or config.OLLAMA_BASE_URL).rstrip("/")
        self.timeout = timeout or config.ANALYZER_TIMEOUT_SECONDS
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> Response:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method=method, url=url, json=json, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Ollama request failed: {exc}") from exc

        if response.status_code >= 400:
            error_detail = ""
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                error_detail = str(payload.get("error") or "")
            raise ProviderError(
                f"Ollama responded with {response.status_code} for {method} {path}: "
                f"{error_detail or response.text}"
            )
        return response

    def is_available(self) -> bool:
        return self.get_unavailable_reason() is None

    def get_unavailable_reason(self) -> Optional[str]:
        try:
            self._request("GET", "/api/tags")
            return None
        except ProviderError as exc:
            error_str = str(exc).lower()
            if "connection" in error_str or "refused" in error_str:
                return f"Connection failed (check OLLAMA_BASE_URL: {self.base_url})"
            if "timeout" in error_str or "timed out" in error_str:
                return "Service timeout (Ollama not responding)"
            return f"Service error: {exc}"

    def generate(
        self,
        model: str,
        prompt: str,
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        """Generate a completion from Ollama.

        Args:
            model: Model name to use
            prompt: User prompt
            system: Optional system prompt
            options: Optional generation parameters (temperature, max_tokens, json_mode)

        Returns:
            GenerateResult with generated content and the raw payload as metadata.

        Raises:
            ProviderError: If the request fails or Ollama reports an error.
        """
        LOGGER.debug("Generating completion with Ollama model: %s", model)
        options = dict(options or {})

        payload: Dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        if system:
            payload["system"] = system
        if options.pop("json_mode", False):
            payload["format"] = "json"
        if "max_tokens" in options:
            options["num_predict"] = options.pop("max_tokens")
        if options:
            payload["options"] = options
        if config.OLLAMA_KEEP_ALIVE is not None:
            payload["keep_alive"] = str(config.OLLAMA_KEEP_ALIVE)

        data = self._request("POST", "/api/generate", json=payload).json()
        return GenerateResult(
            content=str(data.get("response", "")).strip(),
            model=data.get("model") or model,
            provider="ollama",
            metadata=data,
        )

    def get_provider_name(self) -> str:
        return "ollama"

    def supports_json_mode(self) -> bool:
        """Ollama supports the ``format="json"`` parameter."""
        return True
