from __future__ import annotations

from typing import Optional

import streamlit as st

from frontend.core.models import AnalysisSnapshot


TRANSCRIPT_KEY = "transcript_text"
FORMAT_ERROR_KEY = "transcript_format_error"
SNAPSHOT_KEY = "analysis_snapshot"
PENDING_REQUEST_KEY = "analysis_pending_request_id"


def trigger_rerun() -> None:
    """Trigger a Streamlit rerun using the most compatible API."""
    rerun_fn = getattr(st, "rerun", None) or getattr(st, "experimental_rerun", None)
    if rerun_fn:
        rerun_fn()


def ensure_analysis_state() -> None:
    """Initialise the per-session analysis keys."""
    st.session_state.setdefault(TRANSCRIPT_KEY, "")
    st.session_state.setdefault(FORMAT_ERROR_KEY, False)
    st.session_state.setdefault(SNAPSHOT_KEY, None)
    st.session_state.setdefault(PENDING_REQUEST_KEY, None)


def get_transcript() -> str:
    ensure_analysis_state()
    return str(st.session_state.get(TRANSCRIPT_KEY) or "")


def set_format_error(flag: bool) -> None:
    ensure_analysis_state()
    st.session_state[FORMAT_ERROR_KEY] = bool(flag)


def has_format_error() -> bool:
    ensure_analysis_state()
    return bool(st.session_state.get(FORMAT_ERROR_KEY))


def set_snapshot(snapshot: AnalysisSnapshot) -> None:
    ensure_analysis_state()
    st.session_state[SNAPSHOT_KEY] = snapshot


def get_snapshot() -> Optional[AnalysisSnapshot]:
    ensure_analysis_state()
    return st.session_state.get(SNAPSHOT_KEY)


def set_pending_request(request_id: Optional[int]) -> None:
    ensure_analysis_state()
    st.session_state[PENDING_REQUEST_KEY] = request_id


def get_pending_request() -> Optional[int]:
    ensure_analysis_state()
    return st.session_state.get(PENDING_REQUEST_KEY)


def reset_analysis() -> None:
    """Return to the input step, keeping the pasted transcript."""
    ensure_analysis_state()
    st.session_state[SNAPSHOT_KEY] = None
    st.session_state[PENDING_REQUEST_KEY] = None
    st.session_state[FORMAT_ERROR_KEY] = False
