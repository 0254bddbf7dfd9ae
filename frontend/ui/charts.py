from __future__ import annotations

from typing import Any, Dict, List, Mapping

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

MOOD_COLORS = {"happy": "#4ECDC4", "neutral": "#FFE66D", "sad": "#FF6B6B"}
PERSON_COLORS = ["#FFB5DA", "#6C63FF"]


def _apply_layout(fig: go.Figure, **overrides: Any) -> go.Figure:
    layout = dict(
        template="plotly_white",
        title_font_size=18,
        title_font_color="#2D2D2D",
        font=dict(family="Inter, sans-serif"),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        margin=dict(t=60, l=40, r=40, b=40),
    )
    layout.update(overrides)
    fig.update_layout(**layout)
    return fig


def _to_number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def build_emoji_frame(emoji_stats: List[Any]) -> pd.DataFrame:
    """Normalise ``[{"emoji", "count"}]`` entries into a sorted dataframe."""
    rows = [
        {"emoji": str(entry.get("emoji") or ""), "count": _to_number(entry.get("count"))}
        for entry in emoji_stats
        if isinstance(entry, Mapping) and entry.get("emoji")
    ]
    if not rows:
        return pd.DataFrame(columns=["emoji", "count"])
    frame = pd.DataFrame(rows).groupby("emoji", as_index=False)["count"].sum()
    return frame.sort_values("count", ascending=False).reset_index(drop=True)


def create_mood_chart(mood_metrics: Dict[str, Any]) -> go.Figure:
    """Donut chart of the happy/neutral/sad split."""
    values = {mood: _to_number(mood_metrics.get(mood)) for mood in MOOD_COLORS}
    if not any(values.values()):
        return go.Figure()

    fig = px.pie(
        names=[mood.capitalize() for mood in values],
        values=list(values.values()),
        title="Mood Matcher",
        hole=0.5,
        color_discrete_sequence=list(MOOD_COLORS.values()),
    )
    return _apply_layout(fig)


def create_emoji_chart(emoji_stats: List[Any], *, title: str = "Emoji Leaderboard") -> go.Figure:
    """Horizontal bar chart of emoji counts."""
    frame = build_emoji_frame(emoji_stats)
    if frame.empty:
        return go.Figure()

    fig = px.bar(
        frame.head(10),
        x="count",
        y="emoji",
        orientation="h",
        title=title,
    )
    fig.update_traces(marker_color="#6C63FF")
    return _apply_layout(fig, yaxis=dict(autorange="reversed", title=""), xaxis_title="Uses")


def create_texting_style_chart(texting_styles: Dict[str, Any], participants: Dict[str, Any]) -> go.Figure:
    """Grouped bars comparing enthusiasm, emoji usage and ghosting per person."""
    metrics = {
        "enthusiasm": "Enthusiasm",
        "emojiUsage": "Emoji usage",
        "ghostingScore": "Ghosting",
    }
    rows = []
    for key in ("person1", "person2"):
        style = texting_styles.get(key)
        if not isinstance(style, Mapping):
            continue
        label = str(participants.get(key) or key)
        for field, metric_label in metrics.items():
            rows.append({"person": label, "metric": metric_label, "score": _to_number(style.get(field))})

    if not rows or not any(row["score"] for row in rows):
        return go.Figure()

    fig = px.bar(
        pd.DataFrame(rows),
        x="metric",
        y="score",
        color="person",
        barmode="group",
        title="Texting Styles",
        color_discrete_sequence=PERSON_COLORS,
    )
    return _apply_layout(fig, yaxis=dict(range=[0, 100], title="Score"), xaxis_title="")


def build_word_frame(word_cloud: List[Any], limit: int = 15) -> pd.DataFrame:
    """Top ``limit`` words from ``[{"word", "frequency"}]`` entries, case-folded."""
    rows = [
        {"word": str(entry.get("word")).strip().lower(), "frequency": _to_number(entry.get("frequency"))}
        for entry in word_cloud
        if isinstance(entry, Mapping) and str(entry.get("word") or "").strip()
    ]
    if not rows:
        return pd.DataFrame(columns=["word", "frequency"])
    frame = pd.DataFrame(rows).groupby("word", as_index=False)["frequency"].sum()
    frame = frame.sort_values(["frequency", "word"], ascending=[False, True])
    return frame.head(limit).reset_index(drop=True)


def create_word_chart(word_cloud: List[Any]) -> go.Figure:
    """Bar chart standing in for the word cloud."""
    frame = build_word_frame(word_cloud)
    if frame.empty:
        return go.Figure()

    fig = px.bar(frame, x="word", y="frequency", title="Word Cloud")
    fig.update_traces(marker_color="#FFB5DA")
    return _apply_layout(fig, xaxis_title="", yaxis_title="Mentions")
