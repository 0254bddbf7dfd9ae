"""Tests for the analysis lifecycle store and reply parsing."""

from __future__ import annotations

import asyncio
import threading
from typing import List, Optional
from unittest.mock import MagicMock

import pytest
import requests

from backend.analyzer import (
    GENERIC_FAILURE_MESSAGE,
    INVALID_RESPONSE_MESSAGE,
    AnalysisStore,
    FailureKind,
    FormatRejectedError,
    LifecycleState,
    LifecycleStatus,
    StructuredResponseError,
    default_analysis_payload,
    merge_defaults,
    parse_analysis_response,
    strip_code_fences,
)
from backend.prompts import ANALYSIS_PROMPT, TRANSCRIPT_DELIMITER
from backend.providers.base import GenerateResult

TRANSCRIPT = (
    "[17/01/25, 10:12:01 PM] Maya: hi 😊\n"
    "[17/01/25, 10:12:30 PM] Leo: heyyy\n"
    "[17/01/25, 10:13:02 PM] Maya: dinner tomorrow?"
)


def _result(content: Optional[str]) -> GenerateResult:
    return GenerateResult(content=content, model="test-model", provider="test")


def _make_provider(content: Optional[str] = None) -> MagicMock:
    provider = MagicMock()
    provider.get_provider_name.return_value = "test"
    provider.supports_json_mode.return_value = True
    provider.get_unavailable_reason.return_value = None
    if content is not None:
        provider.generate.return_value = _result(content)
    return provider


class TestStripCodeFences:
    """Fence removal around JSON replies."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('```json\n{"a": 1}\n```', '{"a": 1}'),
            ('```\n{"a": 1}\n```', '{"a": 1}'),
            ('```JSON\n{"a": 1}```', '{"a": 1}'),
            ('  ```json\n{"a": 1}\n```  \n', '{"a": 1}'),
            ('{"a": 1}', '{"a": 1}'),
            ('{"code": "```"}', '{"code": "```"}'),
        ],
    )
    def test_strip(self, raw: str, expected: str) -> None:
        assert strip_code_fences(raw) == expected


class TestParseAnalysisResponse:
    """Parsing and default merging of model replies."""

    def test_partial_reply_is_filled_with_defaults(self) -> None:
        result = parse_analysis_response('```json\n{"moodMetrics":{"happy":80}}\n```')

        assert result.mood_metrics.happy == 80
        assert result.mood_metrics.neutral == 0
        assert result.mood_metrics.sad == 0
        assert result.relationship_metrics.compatibility_score == 0
        assert result.texting_styles.person1.emoji_stats == []
        assert result.participants.person1 == ""
        assert result.emoji_stats == []
        assert result.media.gifs == 0

    def test_full_field_set_round_trips_through_aliases(self) -> None:
        result = parse_analysis_response(
            '{"participants": {"person1": "Maya", "person2": "Leo"},'
            ' "relationshipMetrics": {"compatibilityScore": 91, "redFlags": 1},'
            ' "compliments": [{"from": "Leo", "to": "Maya", "text": "you are the best"}],'
            ' "funStats": {"whoTextedFirst": "person1"}}'
        )
        payload = result.model_dump(by_alias=True)

        assert payload["participants"] == {"person1": "Maya", "person2": "Leo"}
        assert payload["relationshipMetrics"]["compatibilityScore"] == 91
        assert payload["relationshipMetrics"]["greenFlags"] == 0
        assert payload["compliments"] == [{"from": "Leo", "to": "Maya", "text": "you are the best"}]
        assert payload["funStats"]["whoTextedFirst"] == "person1"
        assert payload["funStats"]["whoIsMoreClingy"] == ""

    def test_null_values_keep_defaults(self) -> None:
        result = parse_analysis_response('{"moodMetrics": null, "petNames": ["Bub"], "media": {"gifs": null}}')

        assert result.mood_metrics.happy == 0
        assert result.pet_names == ["Bub"]
        assert result.media.gifs == 0

    def test_partial_list_entries_are_defaulted(self) -> None:
        result = parse_analysis_response('{"emojiStats": [{"emoji": "😂"}]}')

        assert result.emoji_stats[0].emoji == "😂"
        assert result.emoji_stats[0].count == 0

    def test_unknown_keys_are_ignored(self) -> None:
        result = parse_analysis_response('{"vibeCheck": "immaculate", "moodMetrics": {"sad": 5}}')

        assert result.mood_metrics.sad == 5
        assert "vibeCheck" not in result.model_dump(by_alias=True)

    def test_wrongly_typed_groups_fall_back_to_defaults(self) -> None:
        result = parse_analysis_response(
            '{"moodMetrics": "very happy", "petNames": "Bub", "media": {"gifs": "lots"},'
            ' "participants": {"person1": "Maya", "person2": ["Leo"]}}'
        )

        assert result.mood_metrics.happy == 0
        assert result.pet_names == []
        assert result.media.gifs == 0
        assert result.participants.person1 == "Maya"
        assert result.participants.person2 == ""

    def test_numbers_are_salvaged_from_drifted_values(self) -> None:
        result = parse_analysis_response(
            '{"relationshipMetrics": {"redFlags": 2.6, "greenFlags": "7 flags"},'
            ' "textingStyles": {"person1": {"responseTime": "5 minutes"}}}'
        )

        assert result.relationship_metrics.red_flags == 3
        assert result.relationship_metrics.green_flags == 7
        assert result.texting_styles.person1.response_time == 5.0

    def test_invalid_list_items_are_dropped(self) -> None:
        result = parse_analysis_response(
            '{"petNames": ["Bub", null, "Sunshine"],'
            ' "emojiStats": [{"emoji": "😂", "count": null}, "🔥", {"emoji": "❤️", "count": 4}]}'
        )

        assert result.pet_names == ["Bub", "Sunshine"]
        assert [(entry.emoji, entry.count) for entry in result.emoji_stats] == [("😂", 0), ("❤️", 4)]

    def test_compatibility_key_is_accepted(self) -> None:
        result = parse_analysis_response('{"relationshipMetrics": {"compatibility": 85}}')

        assert result.relationship_metrics.compatibility_score == 85
        assert result.model_dump(by_alias=True)["relationshipMetrics"]["compatibilityScore"] == 85

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "not json at all",
            '{"moodMetrics": {"happy": 80}',
            "[1, 2, 3]",
            '"just a string"',
        ],
    )
    def test_malformed_replies_raise(self, raw: str) -> None:
        with pytest.raises(StructuredResponseError) as exc_info:
            parse_analysis_response(raw)
        assert exc_info.value.response_text == raw


class TestMergeDefaults:
    def test_nested_merge_keeps_sibling_defaults(self) -> None:
        defaults = {"a": {"x": 0, "y": 0}, "b": []}
        merged = merge_defaults(defaults, {"a": {"x": 5}})

        assert merged == {"a": {"x": 5, "y": 0}, "b": []}
        assert defaults == {"a": {"x": 0, "y": 0}, "b": []}

    def test_default_payload_covers_every_metric_group(self) -> None:
        payload = default_analysis_payload()

        assert set(payload) == {
            "participants",
            "textingStyles",
            "moodMetrics",
            "relationshipMetrics",
            "conversationFlow",
            "responseTime",
            "funStats",
            "emojiStats",
            "petNames",
            "debates",
            "insideJokes",
            "compliments",
            "memoryLane",
            "wordCloud",
            "apologies",
            "media",
        }


class TestAnalysisStore:
    """Lifecycle transitions driven by ``AnalysisStore``."""

    def test_initial_state_is_idle(self) -> None:
        store = AnalysisStore(_make_provider(), "test-model")

        assert store.state.status is LifecycleStatus.IDLE
        assert store.state.result is None
        assert store.state.error is None
        assert store.state.request_id == 0

    @pytest.mark.asyncio
    async def test_invalid_transcript_is_rejected_without_request(self) -> None:
        provider = _make_provider('{"moodMetrics": {"happy": 1}}')
        store = AnalysisStore(provider, "test-model")
        initial = store.state

        with pytest.raises(FormatRejectedError):
            await store.analyze("hello\nhow are you")

        assert store.state is initial
        assert store.state.status is LifecycleStatus.IDLE
        provider.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_fenced_reply_produces_success_with_defaults(self) -> None:
        provider = _make_provider('```json\n{"moodMetrics":{"happy":80}}\n```')
        store = AnalysisStore(provider, "test-model", temperature=0.3)

        await store.analyze(TRANSCRIPT)

        state = store.state
        assert state.status is LifecycleStatus.SUCCESS
        assert state.error is None
        assert state.request_id == 1
        assert state.result is not None
        assert state.result.mood_metrics.happy == 80
        assert state.result.mood_metrics.neutral == 0
        assert state.result.debates == []
        assert state.result.media.videos == 0
        provider.generate.assert_called_once()

    @pytest.mark.asyncio
    async def test_request_contains_template_delimiter_and_transcript(self) -> None:
        provider = _make_provider("{}")
        store = AnalysisStore(provider, "gemini-test", temperature=0.3)

        await store.analyze(TRANSCRIPT)

        model, prompt, system, options = provider.generate.call_args[0]
        assert model == "gemini-test"
        assert prompt == f"{ANALYSIS_PROMPT}{TRANSCRIPT_DELIMITER}{TRANSCRIPT}"
        assert system is None
        assert options == {"temperature": 0.3, "json_mode": True}

    @pytest.mark.asyncio
    async def test_unparseable_reply_produces_malformed_failure(self) -> None:
        provider = _make_provider("not json at all")
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)

        state = store.state
        assert state.status is LifecycleStatus.FAILURE
        assert state.result is None
        assert state.error.kind is FailureKind.MALFORMED_RESPONSE
        assert state.error.message == INVALID_RESPONSE_MESSAGE
        assert state.error.raw_response == "not json at all"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "drifted_field",
        [
            '"relationshipMetrics": {"redFlags": 2.5}',
            '"textingStyles": {"person1": {"responseTime": "5 minutes"}}',
            '"emojiStats": [{"emoji": "😂", "count": null}]',
            '"petNames": ["Bub", null]',
        ],
    )
    async def test_valid_json_with_type_drift_still_succeeds(self, drifted_field: str) -> None:
        provider = _make_provider(f'{{"moodMetrics": {{"happy": 80}}, {drifted_field}}}')
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)

        state = store.state
        assert state.status is LifecycleStatus.SUCCESS
        assert state.error is None
        assert state.result.mood_metrics.happy == 80

    @pytest.mark.asyncio
    async def test_non_text_reply_produces_malformed_failure(self) -> None:
        provider = _make_provider()
        provider.generate.return_value = _result(None)
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)

        assert store.state.status is LifecycleStatus.FAILURE
        assert store.state.error.kind is FailureKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_transport_error_message_is_surfaced(self) -> None:
        provider = _make_provider()
        provider.generate.side_effect = requests.exceptions.ConnectionError("connection refused")
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)

        state = store.state
        assert state.status is LifecycleStatus.FAILURE
        assert state.error.kind is FailureKind.TRANSPORT_FAILURE
        assert state.error.message == "connection refused"
        assert state.error.raw_response is None

    @pytest.mark.asyncio
    async def test_transport_error_without_message_uses_generic_text(self) -> None:
        provider = _make_provider()
        provider.generate.side_effect = RuntimeError()
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)

        assert store.state.error.message == GENERIC_FAILURE_MESSAGE

    @pytest.mark.asyncio
    async def test_new_request_replaces_previous_outcome(self) -> None:
        provider = _make_provider()
        provider.generate.side_effect = [
            _result("not json at all"),
            _result('{"moodMetrics": {"sad": 12}}'),
        ]
        store = AnalysisStore(provider, "test-model")

        await store.analyze(TRANSCRIPT)
        assert store.state.status is LifecycleStatus.FAILURE

        await store.analyze(TRANSCRIPT)
        assert store.state.status is LifecycleStatus.SUCCESS
        assert store.state.error is None
        assert store.state.result.mood_metrics.sad == 12
        assert store.state.request_id == 2

    @pytest.mark.asyncio
    async def test_submit_enters_loading_before_reply(self) -> None:
        release = threading.Event()

        def slow_generate(model, prompt, system=None, options=None):
            release.wait(timeout=5)
            return _result('{"moodMetrics": {"happy": 50}}')

        provider = _make_provider()
        provider.generate.side_effect = slow_generate
        store = AnalysisStore(provider, "test-model")

        task = store.submit(TRANSCRIPT)
        assert store.state.status is LifecycleStatus.LOADING
        assert store.state.result is None
        assert store.state.error is None

        release.set()
        await task
        assert store.state.status is LifecycleStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_stale_completion_does_not_overwrite_newer_request(self) -> None:
        release_first = threading.Event()

        def generate(model, prompt, system=None, options=None):
            if prompt.endswith("first"):
                release_first.wait(timeout=5)
                return _result('{"moodMetrics": {"happy": 10, "sad": 90}}')
            return _result('{"moodMetrics": {"happy": 95}}')

        provider = _make_provider()
        provider.generate.side_effect = generate
        store = AnalysisStore(provider, "test-model")

        first = store.submit(f"{TRANSCRIPT}\n[17/01/25, 10:14:00 PM] Leo: first")
        second = store.submit(f"{TRANSCRIPT}\n[17/01/25, 10:14:00 PM] Leo: second")

        await second
        assert store.state.status is LifecycleStatus.SUCCESS
        assert store.state.request_id == 2

        release_first.set()
        await first

        state = store.state
        assert state.request_id == 2
        assert state.result.mood_metrics.happy == 95
        assert state.result.mood_metrics.sad == 0
        assert provider.generate.call_count == 2

    @pytest.mark.asyncio
    async def test_listeners_observe_each_transition(self) -> None:
        store = AnalysisStore(_make_provider('{"media": {"gifs": 3}}'), "test-model")
        seen: List[LifecycleState] = []
        unsubscribe = store.subscribe(seen.append)

        await store.analyze(TRANSCRIPT)
        unsubscribe()
        await store.analyze(TRANSCRIPT)

        assert [state.status for state in seen] == [LifecycleStatus.LOADING, LifecycleStatus.SUCCESS]
        assert seen[-1].result.media.gifs == 3

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_store(self) -> None:
        store = AnalysisStore(_make_provider("{}"), "test-model")

        def broken(_state: LifecycleState) -> None:
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        await store.analyze(TRANSCRIPT)

        assert store.state.status is LifecycleStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_snapshot_hides_raw_response(self) -> None:
        store = AnalysisStore(_make_provider("definitely not json"), "test-model")

        await store.analyze(TRANSCRIPT)
        payload = store.state.to_snapshot().model_dump(mode="json")

        assert payload["status"] == "failure"
        assert payload["error"] == {"kind": "malformed_response", "message": INVALID_RESPONSE_MESSAGE}
        assert "definitely not json" not in str(payload)

    def test_submit_requires_running_loop(self) -> None:
        store = AnalysisStore(_make_provider("{}"), "test-model")

        with pytest.raises(RuntimeError):
            store.submit(TRANSCRIPT)
        assert store.state.status is LifecycleStatus.IDLE

    def test_analyze_can_be_driven_with_asyncio_run(self) -> None:
        store = AnalysisStore(_make_provider('{"conversationFlow": {"dryTexting": 7}}'), "test-model")

        asyncio.run(store.analyze(TRANSCRIPT))

        assert store.state.result.conversation_flow.dry_texting == 7
