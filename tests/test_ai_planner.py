"""
Unit tests for services/ai_planner.py

litellm.completion is patched; nothing reaches a model provider.
"""
import json
import pytest
from unittest.mock import MagicMock, patch

from mock_data import MOCK_SUGGESTIONS, mock_trip_plan
from schemas import (
    AssistantContext, ChatTurn, CurrentTrip, SuggestionRequest, TripPlanRequest,
)
from services import ai_planner
from services.ai_planner import AIServiceError
from TripPreferences import TripPreferences


def _completion(text):
    response = MagicMock()
    response.choices[0].message.content = text
    return response


@pytest.fixture
def llm_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")


class TestLlmName:
    def test_openai_model_is_unprefixed(self, monkeypatch):
        monkeypatch.delenv("LLM_MODEL", raising=False)
        assert ai_planner.llm_name() == "gpt-4o-mini"

    def test_other_providers_are_prefixed(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "gemini")
        monkeypatch.setenv("LLM_MODEL", "gemini-2.0-flash")
        assert ai_planner.llm_name() == "gemini/gemini-2.0-flash"

    def test_unknown_provider_defaults_to_openai(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "nonsense")
        assert ai_planner.llm_provider() == "openai"


class TestSafeJsonParse:
    def test_plain_json(self):
        assert ai_planner.safe_json_parse('{"a": 1}') == {"a": 1}

    def test_json_fence(self):
        assert ai_planner.safe_json_parse('Sure!\n```json\n[1, 2]\n```\nEnjoy') == [1, 2]

    def test_bare_fence(self):
        assert ai_planner.safe_json_parse('```\n{"ok": true}\n```') == {"ok": True}

    def test_garbage_raises(self):
        with pytest.raises(json.JSONDecodeError):
            ai_planner.safe_json_parse("not json at all")


class TestLlmComplete:
    def test_unconfigured_raises_without_calling(self):
        with patch.object(ai_planner.litellm, "completion") as completion:
            with pytest.raises(AIServiceError):
                ai_planner.llm_call("sys", "user")
        completion.assert_not_called()

    def test_provider_exception_is_wrapped(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", side_effect=RuntimeError("rate limited")):
            with pytest.raises(AIServiceError, match="rate limited"):
                ai_planner.llm_call("sys", "user")

    def test_empty_content_raises(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=_completion("")):
            with pytest.raises(AIServiceError):
                ai_planner.llm_call("sys", "user")

    def test_response_without_choices_raises(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=MagicMock(choices=[])):
            with pytest.raises(AIServiceError, match="Malformed LLM response"):
                ai_planner.llm_call("sys", "user")

    def test_passes_model_and_messages(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=_completion("hi")) as completion:
            assert ai_planner.llm_call("sys", "user", max_tokens=50) == "hi"
        kwargs = completion.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
        assert kwargs["messages"][1] == {"role": "user", "content": "user"}
        assert kwargs["max_tokens"] == 50


class TestGenerateSuggestions:
    def _prefs(self):
        req = SuggestionRequest.model_validate({"from": "Vancouver", "vibes": ["food", "beach"]})
        return TripPreferences.from_request(req)

    def test_bare_array_is_wrapped(self, llm_key):
        text = "```json\n" + json.dumps(MOCK_SUGGESTIONS) + "\n```"
        with patch.object(ai_planner.litellm, "completion", return_value=_completion(text)):
            result = ai_planner.generate_suggestions(self._prefs())
        assert len(result.suggestions) == len(MOCK_SUGGESTIONS)
        assert result.suggestions[0].city == MOCK_SUGGESTIONS[0]["city"]

    def test_prompt_carries_preferences(self, llm_key):
        text = json.dumps(MOCK_SUGGESTIONS)
        with patch.object(ai_planner.litellm, "completion", return_value=_completion(text)) as completion:
            ai_planner.generate_suggestions(self._prefs())
        prompt = completion.call_args.kwargs["messages"][1]["content"]
        assert "Vancouver" in prompt
        assert "food, beach" in prompt

    def test_unparseable_output_raises(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=_completion("no idea")):
            with pytest.raises(AIServiceError):
                ai_planner.generate_suggestions(self._prefs())

    def test_wrong_shape_raises(self, llm_key):
        with patch.object(ai_planner.litellm, "completion",
                          return_value=_completion('[{"destination": "Lisbon"}]')):
            with pytest.raises(AIServiceError):
                ai_planner.generate_suggestions(self._prefs())


class TestGenerateTripPlan:
    def test_mode_comes_from_request(self, llm_key):
        req = TripPlanRequest.model_validate({
            "departureCity": "Vancouver", "destination": "Lisbon", "travelers": 2,
            "planningMode": "fastest",
        })
        plan = mock_trip_plan("Vancouver", days=3, travelers=2, planning_mode="cheapest",
                              destination="Lisbon")
        with patch.object(ai_planner.litellm, "completion",
                          return_value=_completion(json.dumps(plan))) as completion:
            result = ai_planner.generate_trip_plan(req, 3)
        assert result.planning_mode == "fastest"
        prompt = completion.call_args.kwargs["messages"][1]["content"]
        assert "Plan a 3-day trip" in prompt
        assert "FASTEST" in prompt


class TestAssistant:
    def test_history_is_truncated(self):
        turns = [ChatTurn(role="user" if i % 2 == 0 else "assistant", content=f"m{i}")
                 for i in range(15)]
        context = AssistantContext(previous_messages=turns)
        messages = ai_planner.assistant_messages("latest", context)
        assert len(messages) == 1 + ai_planner.MAX_HISTORY + 1
        assert messages[1]["content"] == "m5"
        assert messages[-1] == {"role": "user", "content": "latest"}

    def test_trip_context_in_system_prompt(self):
        context = AssistantContext(
            current_location="Porto",
            current_trip=CurrentTrip(destination="Lisbon", start_date="2026-06-01",
                                     end_date="2026-06-05", budget=1500, interests=["food"]),
        )
        system = ai_planner.assistant_messages("hi", context)[0]["content"]
        assert "Destination: Lisbon" in system
        assert "2026-06-01 to 2026-06-05" in system
        assert "Current Location: Porto" in system

    def test_no_context(self):
        messages = ai_planner.assistant_messages("hi")
        assert [m["role"] for m in messages] == ["system", "user"]

    def test_chat_reply_strips_text(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=_completion("  Go!  ")):
            assert ai_planner.chat_reply("where?").response == "Go!"

    def test_travel_agent_reply_is_capped(self, llm_key):
        with patch.object(ai_planner.litellm, "completion", return_value=_completion("x" * 900)):
            reply = ai_planner.travel_agent_reply("hi", {"destination": "Rome"})
        assert len(reply) == ai_planner.AGENT_REPLY_LIMIT
