"""Google Gemini provider implementation.

Talks to the Generative Language REST API directly with ``requests`` so the
provider shares its HTTP stack with the other integrations.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .. import config
from .base import GenerateResult, LLMProvider, ProviderError

LOGGER = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Gemini ``generateContent`` provider.

    Authentication is via the ``x-goog-api-key`` header.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key (defaults to config.GEMINI_API_KEY)
            base_url: API base URL (defaults to config.GEMINI_API_BASE)
            timeout: Request timeout in seconds (defaults to config.ANALYZER_TIMEOUT_SECONDS)
        """
        self.api_key = api_key or config.GEMINI_API_KEY
        self.base_url = (base_url or config.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout or config.ANALYZER_TIMEOUT_SECONDS

    def is_available(self) -> bool:
        return self.get_unavailable_reason() is None

    def get_unavailable_reason(self) -> Optional[str]:
        if not self.api_key:
            return "API key not configured (set GEMINI_API_KEY)"

        try:
            response = requests.get(
                f"{self.base_url}/models",
                headers=self._get_headers(),
                timeout=10,
            )
        except requests.exceptions.Timeout:
            return "Service timeout (unreachable)"
        except requests.exceptions.ConnectionError:
            return "Connection failed (check GEMINI_API_BASE)"
        except requests.exceptions.RequestException as exc:
            return f"Service error: {exc}"

        if response.status_code in (400, 401, 403):
            return "Authentication failed (invalid API key)"
        if response.status_code != 200:
            return f"Service returned status {response.status_code}"
        return None

    def generate(
        self,
        model: str,
        prompt: str,
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        """Generate content from a Gemini model.

        Args:
            model: Model ID to use (e.g. "gemini-1.5-flash")
            prompt: User message content
            system: Optional system instruction
            options: Optional parameters (temperature, max_tokens, json_mode)

        Returns:
            GenerateResult with the concatenated text parts of the first candidate.

        Raises:
            ProviderError: If no API key is configured or the prompt was blocked.
            requests.exceptions.RequestException: If the API call fails.
        """
        if not self.api_key:
            raise ProviderError("Gemini API key not configured (set GEMINI_API_KEY)")

        LOGGER.debug("Generating content with Gemini model: %s", model)
        options = options or {}

        request_body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system:
            request_body["systemInstruction"] = {"parts": [{"text": system}]}

        generation_config: Dict[str, Any] = {}
        if "temperature" in options:
            generation_config["temperature"] = options["temperature"]
        if "max_tokens" in options:
            generation_config["maxOutputTokens"] = options["max_tokens"]
        if options.get("json_mode"):
            generation_config["responseMimeType"] = "application/json"
        if generation_config:
            request_body["generationConfig"] = generation_config

        response = requests.post(
            f"{self.base_url}/models/{model}:generateContent",
            headers=self._get_headers(),
            json=request_body,
            timeout=self.timeout,
        )
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            detail = response.text.strip()
            raise requests.exceptions.HTTPError(f"{exc} Response: {detail}") from exc

        data = response.json()
        candidates: List[Dict[str, Any]] = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                raise ProviderError(f"Gemini blocked the request ({block_reason})")
            LOGGER.warning("Gemini returned no candidates; keys=%s", list(data.keys()))

        content = ""
        finish_reason = None
        if candidates:
            primary = candidates[0] or {}
            finish_reason = primary.get("finishReason")
            parts = (primary.get("content") or {}).get("parts") or []
            content = "".join(
                part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
            )

        return GenerateResult(
            content=content,
            model=model,
            provider="gemini",
            metadata={
                "finish_reason": finish_reason,
                "usage": data.get("usageMetadata", {}),
                "model_version": data.get("modelVersion"),
            },
        )

    def get_provider_name(self) -> str:
        return "gemini"

    def supports_json_mode(self) -> bool:
        """Gemini accepts ``responseMimeType=application/json``."""
        return True

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
