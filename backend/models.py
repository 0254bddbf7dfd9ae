"""Pydantic models for the Chat Vibes Analyzer backend.

Field names follow Python conventions while aliases match the camelCase keys
the analysis model is asked to return. Every field carries a default so that a
partial reply still yields a complete result.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, List, Literal, Optional, get_origin

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

LOGGER = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _salvage_number(value: Any, annotation: Any) -> Optional[float]:
    """Pull a number out of values like ``2.5`` for int fields or ``"5 minutes"``."""
    if annotation not in (int, float) or isinstance(value, bool):
        return None
    number: Optional[float] = None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match:
            number = float(match.group())
    if number is None:
        return None
    return round(number) if annotation is int else float(number)


class VibesModel(BaseModel):
    """Base model accepting both field names and camelCase aliases.

    A value of the wrong type never rejects the whole result: numbers are
    salvaged where possible, invalid list items are dropped and anything else
    falls back to the field default.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            pass

        field = cls.model_fields[info.field_name]
        salvaged = _salvage_number(value, field.annotation)
        if salvaged is not None:
            LOGGER.warning("Coerced %s.%s value %r to %r", cls.__name__, info.field_name, value, salvaged)
            return salvaged

        if isinstance(value, list) and get_origin(field.annotation) is list:
            kept: List[Any] = []
            for item in value:
                try:
                    kept.extend(handler([item]))
                except ValidationError:
                    LOGGER.warning("Dropped invalid %s.%s item: %r", cls.__name__, info.field_name, item)
            return kept

        LOGGER.warning(
            "Invalid %s.%s value %r, using default", cls.__name__, info.field_name, value
        )
        return field.get_default(call_default_factory=True)


class EmojiCount(VibesModel):
    emoji: str = ""
    count: int = 0


class Participants(VibesModel):
    person1: str = ""
    person2: str = ""


class TextingStyle(VibesModel):
    """Per-participant texting habits."""

    enthusiasm: float = 0
    response_time: float = Field(default=0, alias="responseTime")
    emoji_usage: float = Field(default=0, alias="emojiUsage")
    emoji_stats: List[EmojiCount] = Field(default_factory=list, alias="emojiStats")
    text_length: str = Field(default="", alias="textLength")
    ghosting_score: float = Field(default=0, alias="ghostingScore")


class TextingStyles(VibesModel):
    person1: TextingStyle = Field(default_factory=TextingStyle)
    person2: TextingStyle = Field(default_factory=TextingStyle)


class MoodMetrics(VibesModel):
    happy: float = 0
    neutral: float = 0
    sad: float = 0


class RelationshipMetrics(VibesModel):
    # Older prompts asked for "compatibility"; it wins when both keys are present.
    compatibility_score: float = Field(
        default=0,
        validation_alias=AliasChoices("compatibility", "compatibilityScore", "compatibility_score"),
        serialization_alias="compatibilityScore",
    )
    breakup_probability: float = Field(default=0, alias="breakupProbability")
    banter_level: float = Field(default=0, alias="banterLevel")
    flirt_score: float = Field(default=0, alias="flirtScore")
    tension: float = 0
    red_flags: int = Field(default=0, alias="redFlags")
    green_flags: int = Field(default=0, alias="greenFlags")


class ConversationFlow(VibesModel):
    dry_texting: float = Field(default=0, alias="dryTexting")
    excitement_level: float = Field(default=0, alias="excitementLevel")
    mutual_interest: float = Field(default=0, alias="mutualInterest")
    topic_variety: float = Field(default=0, alias="topicVariety")


class ResponseTime(VibesModel):
    average: str = ""
    fastest: str = ""
    slowest: str = ""


class FunStats(VibesModel):
    who_texted_first: str = Field(default="", alias="whoTextedFirst")
    who_sends_more_emojis: str = Field(default="", alias="whoSendsMoreEmojis")
    who_ghosts_more: str = Field(default="", alias="whoGhostsMore")
    who_is_more_clingy: str = Field(default="", alias="whoIsMoreClingy")


class Debate(VibesModel):
    topic: str = ""
    intensity: float = 0


class Compliment(VibesModel):
    sender: str = Field(default="", alias="from")
    recipient: str = Field(default="", alias="to")
    text: str = ""


class Memory(VibesModel):
    date: str = ""
    event: str = ""


class WordFrequency(VibesModel):
    word: str = ""
    frequency: int = 0


class Apology(VibesModel):
    sender: str = Field(default="", alias="from")
    recipient: str = Field(default="", alias="to")
    reason: str = ""


class MediaCounts(VibesModel):
    gifs: int = 0
    images: int = 0
    videos: int = 0


class AnalysisResult(VibesModel):
    """Structured chat analysis as returned by the analysis model.

    Attributes:
        participants: Names of the two people in the chat.
        texting_styles: Per-person enthusiasm, emoji habits and ghosting scores.
        mood_metrics: Happy/neutral/sad percentages.
        relationship_metrics: Compatibility, banter and flag counts.
        conversation_flow: Dry texting, excitement and mutual interest scores.
        response_time: Average/fastest/slowest reply times as free text.
        fun_stats: Who texted first, who ghosts more, and so on.
        emoji_stats: Most used emojis with counts.
        pet_names: Nicknames the participants use for each other.
        debates: Recurring disagreements with an intensity score.
        inside_jokes: Running jokes.
        compliments: Notable compliments, sender and recipient.
        memory_lane: Dated highlights.
        word_cloud: Frequent words.
        apologies: Apologies, sender and recipient.
        media: Counts of shared gifs, images and videos.
    """

    participants: Participants = Field(default_factory=Participants)
    texting_styles: TextingStyles = Field(default_factory=TextingStyles, alias="textingStyles")
    mood_metrics: MoodMetrics = Field(default_factory=MoodMetrics, alias="moodMetrics")
    relationship_metrics: RelationshipMetrics = Field(
        default_factory=RelationshipMetrics, alias="relationshipMetrics"
    )
    conversation_flow: ConversationFlow = Field(
        default_factory=ConversationFlow, alias="conversationFlow"
    )
    response_time: ResponseTime = Field(default_factory=ResponseTime, alias="responseTime")
    fun_stats: FunStats = Field(default_factory=FunStats, alias="funStats")
    emoji_stats: List[EmojiCount] = Field(default_factory=list, alias="emojiStats")
    pet_names: List[str] = Field(default_factory=list, alias="petNames")
    debates: List[Debate] = Field(default_factory=list)
    inside_jokes: List[str] = Field(default_factory=list, alias="insideJokes")
    compliments: List[Compliment] = Field(default_factory=list)
    memory_lane: List[Memory] = Field(default_factory=list, alias="memoryLane")
    word_cloud: List[WordFrequency] = Field(default_factory=list, alias="wordCloud")
    apologies: List[Apology] = Field(default_factory=list)
    media: MediaCounts = Field(default_factory=MediaCounts)


class AnalyzeRequest(BaseModel):
    """Request body for submitting a transcript."""

    transcript: str = Field(..., description="Exported chat transcript text")


class ValidateResponse(BaseModel):
    valid: bool = Field(..., description="Whether the transcript looks like a chat export")


class AnalysisError(BaseModel):
    """Client-facing failure details. Raw model output is never included."""

    kind: Literal["format_rejected", "transport_failure", "malformed_response"]
    message: str


class AnalysisSnapshot(BaseModel):
    """Serialized lifecycle state exposed to the dashboard.

    Attributes:
        status: One of idle, loading, success or failure.
        request_id: Counter of accepted analysis requests (0 before the first).
        updated_at: When the state last changed.
        result: Analysis payload, only present on success.
        error: Failure details, only present on failure.
    """

    status: Literal["idle", "loading", "success", "failure"]
    request_id: int = Field(default=0, description="Identifier of the request that produced this state")
    updated_at: Optional[datetime] = Field(default=None, description="Timestamp of the last transition")
    result: Optional[AnalysisResult] = None
    error: Optional[AnalysisError] = None


class ProviderStatus(BaseModel):
    provider: str
    model: str
    available: bool
    reason: Optional[str] = None
