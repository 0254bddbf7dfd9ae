"""LLM Provider abstraction layer.

This package provides a unified interface over the text-generation services
that perform the chat analysis (Gemini, OpenAI, Ollama).
"""

from .base import (
    GenerateResult,
    LLMProvider,
    ProviderError,
)
from .gemini import GeminiProvider
from .ollama import OllamaProvider
from .openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "GenerateResult",
    "ProviderError",
    "GeminiProvider",
    "OllamaProvider",
    "OpenAIProvider",
]
