"""API routes for the Chat Vibes Analyzer backend."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .analyzer import AnalysisStore, FormatRejectedError
from .models import AnalysisSnapshot, AnalyzeRequest, ProviderStatus, ValidateResponse
from .provider_registry import get_provider_registry
from .validator import validate

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")


def get_analysis_store(request: Request) -> AnalysisStore:
    """Return the store owned by the running application."""
    store = getattr(request.app.state, "analysis_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analysis service is not initialised",
        )
    return store


@router.post(
    "/analysis",
    response_model=AnalysisSnapshot,
    status_code=status.HTTP_202_ACCEPTED,
    tags=["analysis"],
)
async def submit_analysis(
    payload: AnalyzeRequest,
    store: AnalysisStore = Depends(get_analysis_store),
) -> AnalysisSnapshot:
    """Start analysing a transcript and return the LOADING snapshot.

    The request returns immediately; poll ``GET /api/v1/analysis`` for the outcome.
    """
    try:
        store.submit(payload.transcript)
    except FormatRejectedError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return store.state.to_snapshot()


@router.get("/analysis", response_model=AnalysisSnapshot, tags=["analysis"])
def get_analysis(store: AnalysisStore = Depends(get_analysis_store)) -> AnalysisSnapshot:
    """Return the current lifecycle state."""
    return store.state.to_snapshot()


@router.post("/analysis/validate", response_model=ValidateResponse, tags=["analysis"])
def validate_transcript(payload: AnalyzeRequest) -> ValidateResponse:
    """Report whether a transcript passes the export-format check."""
    return ValidateResponse(valid=validate(payload.transcript))


@router.get("/provider", response_model=ProviderStatus, tags=["providers"])
def get_provider_status(store: AnalysisStore = Depends(get_analysis_store)) -> ProviderStatus:
    """Describe the provider used for analysis and whether it is reachable."""
    reason = store.provider.get_unavailable_reason()
    return ProviderStatus(
        provider=store.provider_name,
        model=store.model,
        available=reason is None,
        reason=reason,
    )


@router.get("/providers", tags=["providers"])
def list_provider_connections() -> List[Dict[str, Any]]:
    """Return availability for every supported provider."""
    return get_provider_registry().get_available_connections()
