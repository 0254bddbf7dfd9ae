"""OpenAI provider implementation.

This module provides integration with OpenAI-compatible chat completion APIs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .. import config
from .base import GenerateResult, LLMProvider, ProviderError

LOGGER = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation.

    Supports OpenAI-compatible APIs by allowing custom base URLs.
    Authentication is via Bearer token (API key).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (defaults to config.OPENAI_API_KEY)
            base_url: API base URL (defaults to config.OPENAI_API_BASE)
            timeout: Request timeout in seconds (defaults to config.ANALYZER_TIMEOUT_SECONDS)
        """
        self.api_key = api_key or config.OPENAI_API_KEY
        self.base_url = (base_url or config.OPENAI_API_BASE).rstrip("/")
        self.timeout = timeout or config.ANALYZER_TIMEOUT_SECONDS

    def is_available(self) -> bool:
        return self.get_unavailable_reason() is None

    def get_unavailable_reason(self) -> Optional[str]:
        """Get human-readable reason why provider is unavailable.

        Returns:
            Error message if unavailable, None if available.
        """
        if not self.api_key:
            return "API key not configured (set OPENAI_API_KEY)"

        try:
            response = requests.get(
                f"{self.base_url}/models",
                headers=self._get_headers(),
                timeout=10,
            )
        except requests.exceptions.Timeout:
            return "Service timeout (unreachable)"
        except requests.exceptions.ConnectionError:
            return "Connection failed (check OPENAI_API_BASE)"
        except requests.exceptions.RequestException as exc:
            return f"Service error: {exc}"

        if response.status_code == 401:
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
        """Generate a chat completion from OpenAI.

        Args:
            model: Model ID to use
            prompt: User message content
            system: Optional system message
            options: Optional parameters (temperature, max_tokens, json_mode)

        Returns:
            GenerateResult with generated content and metadata.

        Raises:
            ProviderError: If no API key is configured.
            requests.exceptions.RequestException: If API call fails.
        """
        if not self.api_key:
            raise ProviderError("OpenAI API key not configured (set OPENAI_API_KEY)")

        LOGGER.debug("Generating completion with OpenAI model: %s", model)
        options = options or {}

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        request_body: Dict[str, Any] = {
            "model": model,
            "messages": messages,
        }
        if "temperature" in options:
            request_body["temperature"] = options["temperature"]
        if "max_tokens" in options:
            request_body["max_tokens"] = options["max_tokens"]
        if options.get("json_mode"):
            request_body["response_format"] = {"type": "json_object"}

        response = requests.post(
            f"{self.base_url}/chat/completions",
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

        # Content may be a string or a list of text parts.
        content = ""
        finish_reason = None
        choices: List[Dict[str, Any]] = data.get("choices") or []
        if choices:
            primary = choices[0] or {}
            finish_reason = primary.get("finish_reason")
            message_content = (primary.get("message") or {}).get("content")
            if isinstance(message_content, str):
                content = message_content
            elif isinstance(message_content, list):
                content = "".join(
                    part["text"]
                    for part in message_content
                    if isinstance(part, dict) and isinstance(part.get("text"), str)
                )
            if not content:
                LOGGER.warning(
                    "OpenAI completion returned empty content; finish_reason=%s",
                    finish_reason,
                )

        return GenerateResult(
            content=content,
            model=model,
            provider="openai",
            metadata={
                "finish_reason": finish_reason,
                "usage": data.get("usage", {}),
                "model_used": data.get("model"),
            },
        )

    def get_provider_name(self) -> str:
        return "openai"

    def supports_json_mode(self) -> bool:
        """OpenAI supports response_format={"type": "json_object"}."""
        return True

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
