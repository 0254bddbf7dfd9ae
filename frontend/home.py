from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Ensure the project root is available on sys.path for `frontend.*` imports.
APP_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = APP_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from frontend.core.api import (
    BackendError,
    InvalidTranscriptError,
    get_provider_connections,
    get_provider_status,
    is_backend_unavailable_error,
    poll_analysis,
    submit_analysis,
    validate_transcript,
)
from frontend.core.config import get_config
from frontend.ui import components
from frontend.utils import state as app_state
from frontend.utils.logging import get_logger


LOGGER = get_logger("frontend.home")


def _render_sidebar() -> None:
    sidebar = st.sidebar
    components.render_sidebar_branding(sidebar)
    try:
        components.render_provider_status(get_provider_status(), container=sidebar)
    except BackendError as exc:
        LOGGER.warning("Unable to fetch provider status: %s", exc)
        sidebar.caption("Analysis provider status unavailable.")
        return
    try:
        components.render_provider_connections(get_provider_connections(), container=sidebar)
    except BackendError as exc:
        LOGGER.warning("Unable to fetch provider connections: %s", exc)


def _passes_format_check(transcript: str) -> bool:
    """Ask the backend to check the export format before submitting.

    When the check itself cannot be reached the transcript is let through;
    the submit endpoint applies the same check.
    """
    try:
        return validate_transcript(transcript)
    except BackendError as exc:
        LOGGER.warning("Format pre-check unavailable: %s", exc)
        return True


def _submit(transcript: str) -> None:
    config = get_config()
    try:
        snapshot = submit_analysis(transcript)
    except InvalidTranscriptError:
        LOGGER.info("Transcript rejected by format check")
        app_state.set_format_error(True)
        app_state.trigger_rerun()
        return
    except BackendError as exc:
        LOGGER.error("Unable to submit transcript: %s", exc)
        if is_backend_unavailable_error(exc):
            components.render_backend_wait_splash(config.api_base_url, exc)
        else:
            st.error(f"Unable to start the analysis.\n\nDetails: {exc}")
        st.stop()

    app_state.set_snapshot(snapshot)
    app_state.set_pending_request(snapshot.request_id)
    app_state.trigger_rerun()


def _render_input_step() -> None:
    st.title("💞 Chat Vibes")
    st.caption("Relationship Analyzer: paste an exported chat and see what the vibes say.")

    st.text_area(
        "Chat export",
        key=app_state.TRANSCRIPT_KEY,
        height=280,
        placeholder=components.EXPORT_FORMAT_EXAMPLE,
    )
    if st.button("Analyze Chat ✨", type="primary"):
        transcript = app_state.get_transcript()
        if not transcript.strip():
            st.warning("Paste a chat export first.")
            return
        if not _passes_format_check(transcript):
            LOGGER.info("Transcript failed the format pre-check")
            app_state.set_format_error(True)
            app_state.trigger_rerun()
            return
        _submit(transcript)


def _await_result(request_id: int) -> None:
    config = get_config()
    with st.spinner("Analyzing your chat..."):
        try:
            snapshot = poll_analysis(request_id=request_id)
        except BackendError as exc:
            LOGGER.error("Polling analysis state failed: %s", exc)
            components.render_backend_wait_splash(config.api_base_url, exc)
            st.stop()

    app_state.set_snapshot(snapshot)
    if snapshot.is_loading:
        components.render_loading()
        if st.button("Check again"):
            app_state.trigger_rerun()
        st.stop()
    app_state.set_pending_request(None)


def main() -> None:
    st.set_page_config(
        page_title="Chat Vibes Analyzer",
        page_icon="💞",
        layout="wide",
        initial_sidebar_state="expanded",
    )
    app_state.ensure_analysis_state()
    _render_sidebar()

    if app_state.has_format_error():
        components.render_invalid_chat()
        return

    pending = app_state.get_pending_request()
    if pending is not None:
        _await_result(pending)

    snapshot = app_state.get_snapshot()
    if snapshot is not None and snapshot.status == "success":
        components.render_analysis_dashboard(snapshot)
        if st.button("Analyze another chat"):
            app_state.reset_analysis()
            app_state.trigger_rerun()
        return
    if snapshot is not None and snapshot.status == "failure":
        components.render_failure(snapshot)
        return

    _render_input_step()


if __name__ == "__main__":
    main()
