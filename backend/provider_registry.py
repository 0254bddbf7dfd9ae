"""Provider registry for the text-generation services the analyzer can use."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from . import config
from .providers import GeminiProvider, LLMProvider, OllamaProvider, OpenAIProvider

LOGGER = logging.getLogger(__name__)

PROVIDER_FACTORIES: Dict[str, Callable[[], LLMProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
}


class ProviderRegistry:
    """Lazily constructs providers and reports on their availability.

    Providers without credentials are still constructed; they raise when asked
    to generate and report the missing key through ``get_unavailable_reason``.
    """

    def __init__(self):
        self._providers: Dict[str, LLMProvider] = {}

    def get_provider(self, connection_type: str) -> LLMProvider:
        """Return the provider registered under ``connection_type``.

        Raises:
            ValueError: If the provider name is unknown.
        """
        provider = self._providers.get(connection_type)
        if provider is not None:
            return provider

        factory = PROVIDER_FACTORIES.get(connection_type)
        if factory is None:
            raise ValueError(
                f"Unknown provider: {connection_type} (expected one of {', '.join(PROVIDER_FACTORIES)})"
            )
        provider = factory()
        self._providers[connection_type] = provider
        LOGGER.info("Registered %s provider", connection_type)
        return provider

    def get_available_connections(self) -> List[Dict[str, Any]]:
        """Get status of every known provider.

        Example:
            [
                {"type": "gemini", "available": True, "reason": None},
                {"type": "openai", "available": False, "reason": "API key not configured (set OPENAI_API_KEY)"},
            ]
        """
        connections = []
        for name in PROVIDER_FACTORIES:
            reason = self.get_provider(name).get_unavailable_reason()
            connections.append({"type": name, "available": reason is None, "reason": reason})
        return connections


_registry: Optional[ProviderRegistry] = None


def get_provider_registry() -> ProviderRegistry:
    """Return the process-wide provider registry."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry


def get_configured_provider() -> LLMProvider:
    """Return the provider selected by ``ANALYZER_PROVIDER``."""
    return get_provider_registry().get_provider(config.ANALYZER_PROVIDER)
