from __future__ import annotations

import html
from typing import Any, Dict, List, Optional

import streamlit as st
from streamlit.delta_generator import DeltaGenerator

from frontend.core.models import AnalysisSnapshot
from frontend.ui import charts
from frontend.utils import state as app_state

EXPORT_FORMAT_EXAMPLE = "[26/01/24, 10:30:45 PM] Person: Message"


def render_sidebar_branding(container: Optional[DeltaGenerator] = None) -> None:
    """Render a compact app title in the sidebar."""
    target = container or st.sidebar
    target.markdown(
        (
            "<div style=\"font-size:0.85rem;font-weight:600;color:#2D2D2D;"
            "letter-spacing:0.015em;margin:0.25rem 0 0.75rem 0;\">"
            "💞 Chat Vibes Analyzer"
            "</div>"
            "<hr/>"
        ),
        unsafe_allow_html=True,
    )


def render_provider_status(status: Dict[str, Any], *, container: Optional[DeltaGenerator] = None) -> None:
    """Show which model performs the analysis and whether it is reachable."""
    target = container or st.sidebar
    if not status:
        target.caption("Analysis provider: unknown")
        return
    icon = "🟢" if status.get("available") else "🔴"
    target.markdown(f"{icon} **{status.get('provider', 'unknown')}** · `{status.get('model', '')}`")
    reason = status.get("reason")
    if reason:
        target.caption(str(reason))


def render_provider_connections(
    connections: List[Dict[str, Any]], *, container: Optional[DeltaGenerator] = None
) -> None:
    """List every supported provider with its availability."""
    if not connections:
        return
    target = container or st.sidebar
    with target.expander("Provider connections"):
        for connection in connections:
            icon = "🟢" if connection.get("available") else "⚪"
            st.markdown(f"{icon} {connection.get('type', 'unknown')}")
            if connection.get("reason"):
                st.caption(str(connection["reason"]))


def render_backend_wait_splash(base_url: str, error: Optional[Exception] = None) -> None:
    """Render a splash screen while the backend service is unreachable."""
    st.info(
        "We're standing by until the API responds. Once the service at "
        f"`{base_url}` is reachable, click \"Retry now\" or refresh the page."
    )
    retry_col, hint_col = st.columns([1, 1])
    with retry_col:
        if st.button("Retry now"):
            app_state.trigger_rerun()
    with hint_col:
        st.caption("Start the FastAPI backend service, then retry once it's ready.")

    if error is not None:
        with st.expander("Technical details"):
            st.code(str(error), language="text")
            status_code = getattr(error, "status_code", None)
            if status_code is not None:
                st.caption(f"HTTP status: {status_code}")


def render_invalid_chat() -> None:
    """Explain the expected export format after a rejected transcript."""
    st.error("Invalid chat format")
    st.markdown(
        "Please ensure you're using the WhatsApp chat export format.\n\n"
        f"Example: `{EXPORT_FORMAT_EXAMPLE}`"
    )
    if st.button("Try Again", key="invalid_chat_retry"):
        app_state.set_format_error(False)
        app_state.trigger_rerun()


def render_loading() -> None:
    st.markdown("### ⏳ Analyzing your chat...")
    st.caption("This might take a moment")


def render_failure(snapshot: AnalysisSnapshot) -> None:
    message = snapshot.error.message if snapshot.error else "Failed to analyze chat"
    st.error(f"Analysis Failed: {message}")
    if st.button("Try Again", key="analysis_failure_retry"):
        app_state.reset_analysis()
        app_state.trigger_rerun()


def render_percentage_meter(label: str, value: Any) -> None:
    """Labelled progress bar for a 0-100 score."""
    try:
        score = max(0.0, min(100.0, float(value)))
    except (TypeError, ValueError):
        score = 0.0
    st.markdown(f"**{html.escape(label)}** · {score:.0f}%")
    st.progress(int(round(score)))


def _participant_label(participants: Dict[str, Any], key: str) -> str:
    return str(participants.get(key) or key)


def format_exchanges(items: List[Any], participants: Dict[str, Any], text_key: str) -> List[str]:
    """Render compliment or apology entries as escaped "from → to: text" lines."""
    lines = []
    for item in items:
        if not isinstance(item, dict) or not item.get(text_key):
            continue
        sender = _participant_label(participants, str(item.get("from") or "?"))
        recipient = _participant_label(participants, str(item.get("to") or "?"))
        lines.append(
            f"**{html.escape(sender)}** → {html.escape(recipient)}: {html.escape(str(item[text_key]))}"
        )
    return lines


def render_analysis_dashboard(snapshot: AnalysisSnapshot) -> None:
    """Render the success dashboards; every field tolerates absence."""
    participants = snapshot.group("participants")
    person1 = _participant_label(participants, "person1")
    person2 = _participant_label(participants, "person2")
    st.subheader(f"{person1} 💬 {person2}")

    relationship = snapshot.group("relationshipMetrics")
    score_cols = st.columns(4)
    score_cols[0].metric("Compatibility", f"{relationship.get('compatibilityScore', 0)}%")
    score_cols[1].metric("Breakup risk", f"{relationship.get('breakupProbability', 0)}%")
    score_cols[2].metric("🚩 Red flags", relationship.get("redFlags", 0))
    score_cols[3].metric("🌟 Green flags", relationship.get("greenFlags", 0))

    mood_col, flow_col = st.columns(2)
    with mood_col:
        mood_fig = charts.create_mood_chart(snapshot.group("moodMetrics"))
        if mood_fig.data:
            st.plotly_chart(mood_fig, use_container_width=True)
        else:
            st.caption("No mood data returned.")
    with flow_col:
        st.markdown("#### Conversation Flow")
        flow = snapshot.group("conversationFlow")
        render_percentage_meter("Dry texting", flow.get("dryTexting", 0))
        render_percentage_meter("Excitement", flow.get("excitementLevel", 0))
        render_percentage_meter("Mutual interest", flow.get("mutualInterest", 0))
        render_percentage_meter("Topic variety", flow.get("topicVariety", 0))
        render_percentage_meter("Banter", relationship.get("banterLevel", 0))
        render_percentage_meter("Flirting", relationship.get("flirtScore", 0))

    styles_fig = charts.create_texting_style_chart(snapshot.group("textingStyles"), participants)
    if styles_fig.data:
        st.plotly_chart(styles_fig, use_container_width=True)

    emoji_fig = charts.create_emoji_chart(snapshot.items("emojiStats"))
    if emoji_fig.data:
        st.plotly_chart(emoji_fig, use_container_width=True)

    texting_styles = snapshot.group("textingStyles")
    person_emoji_cols = st.columns(2)
    for column, key in zip(person_emoji_cols, ("person1", "person2")):
        style = texting_styles.get(key)
        stats = style.get("emojiStats") if isinstance(style, dict) else None
        fig = charts.create_emoji_chart(
            stats or [], title=f"{_participant_label(participants, key)}'s Emojis"
        )
        if fig.data:
            column.plotly_chart(fig, use_container_width=True)

    word_fig = charts.create_word_chart(snapshot.items("wordCloud"))
    if word_fig.data:
        st.plotly_chart(word_fig, use_container_width=True)

    fun_stats = snapshot.group("funStats")
    if fun_stats:
        st.markdown("#### Fun Stats")
        labels = {
            "whoTextedFirst": "Texts first",
            "whoSendsMoreEmojis": "Emoji champion",
            "whoGhostsMore": "Ghosts more",
            "whoIsMoreClingy": "More clingy",
        }
        fun_cols = st.columns(len(labels))
        for column, (key, label) in zip(fun_cols, labels.items()):
            value = str(fun_stats.get(key) or "")
            column.metric(label, _participant_label(participants, value) if value else "—")

    response_time = snapshot.group("responseTime")
    if any(response_time.values()):
        st.markdown("#### Response Time")
        rt_cols = st.columns(3)
        rt_cols[0].metric("Average", response_time.get("average") or "—")
        rt_cols[1].metric("Fastest", response_time.get("fastest") or "—")
        rt_cols[2].metric("Slowest", response_time.get("slowest") or "—")

    list_sections = (
        ("petNames", "💕 Pet Names"),
        ("insideJokes", "😂 Inside Jokes"),
    )
    for key, title in list_sections:
        values = [str(item) for item in snapshot.items(key) if item]
        if values:
            st.markdown(f"#### {title}")
            st.markdown("\n".join(f"- {html.escape(value)}" for value in values))

    debates = [item for item in snapshot.items("debates") if isinstance(item, dict) and item.get("topic")]
    if debates:
        st.markdown("#### 🥊 Debates")
        for debate in debates:
            render_percentage_meter(str(debate["topic"]), debate.get("intensity", 0))

    exchange_sections = (
        ("compliments", "💐 Compliments", "text"),
        ("apologies", "🙏 Apologies", "reason"),
    )
    for key, title, text_key in exchange_sections:
        lines = format_exchanges(snapshot.items(key), participants, text_key)
        if lines:
            st.markdown(f"#### {title}")
            st.markdown("\n".join(f"- {line}" for line in lines))

    memories = [item for item in snapshot.items("memoryLane") if isinstance(item, dict)]
    if memories:
        with st.expander("🕰️ Memory Lane"):
            for memory in memories:
                st.markdown(f"**{memory.get('date', '')}** · {memory.get('event', '')}")

    media = snapshot.group("media")
    if any(media.values()):
        media_cols = st.columns(3)
        media_cols[0].metric("GIFs", media.get("gifs", 0))
        media_cols[1].metric("Images", media.get("images", 0))
        media_cols[2].metric("Videos", media.get("videos", 0))
