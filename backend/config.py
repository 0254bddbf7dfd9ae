"""Configuration helpers for the Chat Vibes Analyzer backend."""

from __future__ import annotations

import os
from typing import Dict, List

from dotenv import load_dotenv

# Load environment variables from a .env file if present.
load_dotenv()


def _split_origins(value: str) -> List[str]:
    """Convert a comma-separated origin string into a clean list.

    Args:
        value (str): One or many origins separated by commas.
    Returns:
        List[str]: Normalized origin values with whitespace removed.
    """
    return [origin.strip() for origin in value.split(",") if origin.strip()]


DEFAULT_ALLOWED_ORIGINS = "http://localhost:8501,http://127.0.0.1:8501"

API_HOST = os.getenv("VIBES_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("VIBES_API_PORT", "8502"))
API_ALLOWED_ORIGINS = _split_origins(os.getenv("VIBES_API_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS))

# Provider used to run the chat analysis ("gemini" | "openai" | "ollama").
ANALYZER_PROVIDER = os.getenv("ANALYZER_PROVIDER", "gemini").strip().lower() or "gemini"

DEFAULT_MODELS: Dict[str, str] = {
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-4o-mini",
    "ollama": "llama3.1:8b",
}


def get_analyzer_model(provider: str = ANALYZER_PROVIDER) -> str:
    """Return the configured model name, falling back to the provider default."""
    explicit = os.getenv("ANALYZER_MODEL", "").strip()
    if explicit:
        return explicit
    return DEFAULT_MODELS.get(provider, "")


ANALYZER_TEMPERATURE = float(os.getenv("ANALYZER_TEMPERATURE", "0.7"))
ANALYZER_TIMEOUT_SECONDS = float(os.getenv("ANALYZER_TIMEOUT_SECONDS", "60"))

# Gemini Configuration
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")

# OpenAI Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_API_BASE = os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1").rstrip("/")

# Ollama Configuration
OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
OLLAMA_KEEP_ALIVE = os.getenv("OLLAMA_KEEP_ALIVE")
