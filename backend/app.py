"""FastAPI application for the Chat Vibes Analyzer backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .analyzer import AnalysisStore
from .logging_config import configure_logging
from .provider_registry import get_configured_provider
from .routes import router

configure_logging()
LOGGER = logging.getLogger(__name__)
LOGGER.info("Creating Chat Vibes Analyzer FastAPI application")

app = FastAPI(
    title="Chat Vibes Analyzer API",
    version="1.0.0",
    description="Backend service that runs chat transcript analysis for the Chat Vibes dashboard.",
)

# The allow list is configuration driven so deployments can constrain access.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.API_ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


def build_analysis_store() -> AnalysisStore:
    """Create the session store for the configured provider and model."""
    provider = get_configured_provider()
    model = config.get_analyzer_model(config.ANALYZER_PROVIDER)
    LOGGER.info("Using %s provider with model %s", provider.get_provider_name(), model)
    return AnalysisStore(provider, model, temperature=config.ANALYZER_TEMPERATURE)


@app.on_event("startup")
def create_analysis_store() -> None:
    """Attach a fresh ``AnalysisStore`` to the application state."""
    if getattr(app.state, "analysis_store", None) is None:
        app.state.analysis_store = build_analysis_store()
    LOGGER.info("Analysis store ready")


@app.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    """Report a simple OK status used for readiness checks.

    Returns:
        dict[str, str]: A service status payload.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    LOGGER.info("Launching Uvicorn development server on %s:%s", config.API_HOST, config.API_PORT)
    uvicorn.run("backend.app:app", host=config.API_HOST, port=config.API_PORT, reload=True)
