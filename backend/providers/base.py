"""Base provider interface for LLM providers.

This module defines the abstract base class and data structures shared by the
text-generation services the analyzer can delegate to (Gemini, OpenAI, Ollama).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ProviderError(RuntimeError):
    """Raised when a provider cannot service a generation request."""


@dataclass
class GenerateResult:
    """Result from a completion/generation request.

    Attributes:
        content: Generated text content
        model: Model name that was used
        provider: Provider that generated the response
        metadata: Additional response metadata (tokens, finish reason, etc.)
    """
    content: str
    model: str
    provider: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations are synchronous and blocking; callers that must stay
    responsive run ``generate`` in a worker thread.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and reachable.

        Returns:
            True if provider can be used, False otherwise.
        """
        pass

    @abstractmethod
    def get_unavailable_reason(self) -> Optional[str]:
        """Get human-readable reason why provider is unavailable.

        Returns:
            None if available, otherwise a message like:
            - "API key not configured"
            - "Service unreachable"
            - "Authentication failed"
        """
        pass

    @abstractmethod
    def generate(
        self,
        model: str,
        prompt: str,
        system: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> GenerateResult:
        """Generate a completion from the model.

        Args:
            model: Model name/identifier to use
            prompt: User prompt/message
            system: Optional system prompt
            options: Provider-specific options (temperature, max_tokens, json_mode)

        Returns:
            GenerateResult with the generated content and metadata.

        Raises:
            Exception: If generation fails (missing key, API error, timeout, etc.)
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider identifier ("gemini", "openai" or "ollama")."""
        pass

    @abstractmethod
    def supports_json_mode(self) -> bool:
        """Check if provider supports native JSON-structured output."""
        pass
