"""Unit tests for prompt templates and feedback parsing."""

import json

import pytest

from speechcoach.errors import ParseError
from speechcoach.models.feedback import Feedback
from speechcoach.prompts import (
    keyword_request,
    parse_feedback,
    parse_feedback_strict,
    simplify_request,
    speech_feedback_request,
    summary_request,
)


@pytest.mark.unit
class TestPromptTemplates:

    def test_feedback_request(self):
        request = speech_feedback_request("I goed to school.", "My Weekend")

        assert request.temperature == 0.7
        assert request.json_mode is True
        assert request.max_tokens is None
        assert request.user_message == "I goed to school."
        assert "Topic: My Weekend" in request.system_prompt
        assert '"grammarFeedback"' in request.system_prompt
        assert '"expressionSuggestions"' in request.system_prompt
        assert '"overallComment"' in request.system_prompt

    def test_topic_braces_are_not_template_fields(self):
        request = speech_feedback_request("text", "{weird} topic")

        assert "Topic: {weird} topic" in request.system_prompt

    def test_simplify_request(self):
        request = simplify_request("Notwithstanding the aforementioned circumstances.")

        assert request.temperature == 0.5
        assert request.json_mode is False
        assert "simpler vocabulary" in request.system_prompt
        assert request.user_message == "Notwithstanding the aforementioned circumstances."

    def test_keyword_request_caps_output(self):
        request = keyword_request("The quarterly budget review is on Friday.")

        assert request.temperature == 0.3
        assert request.max_tokens == 20
        assert "Return only the keyword(s)" in request.system_prompt

    def test_summary_request_joins_chunks_with_newlines(self):
        request = summary_request(["first point", "second point", "third point"])

        assert request.temperature == 0.5
        assert request.user_message == "first point\nsecond point\nthird point"

    def test_requests_are_deterministic(self):
        first = speech_feedback_request("hello", "Travel")
        second = speech_feedback_request("hello", "Travel")

        assert first == second


@pytest.mark.unit
class TestFeedbackParsing:

    def test_plain_prose_falls_back_to_comment(self):
        result = parse_feedback("Great job!")

        assert result == Feedback(grammar_feedback=[], expression_suggestions=[], overall_comment="Great job!")

    def test_well_formed_envelope(self):
        raw = json.dumps({
            "grammarFeedback": ["Use 'went' instead of 'goed'."],
            "expressionSuggestions": ["Try 'I headed to school'."],
            "overallComment": "Nice effort!",
        })

        result = parse_feedback(raw)

        assert result.grammar_feedback == ["Use 'went' instead of 'goed'."]
        assert result.expression_suggestions == ["Try 'I headed to school'."]
        assert result.overall_comment == "Nice effort!"

    def test_envelope_wrapped_in_prose_and_fences(self):
        raw = (
            "Here is your feedback:\n```json\n"
            '{"grammarFeedback": [], "expressionSuggestions": ["Say \\"excited\\"."], '
            '"overallComment": "Good."}\n```\nKeep practicing!'
        )

        result = parse_feedback(raw)

        assert result.expression_suggestions == ['Say "excited".']
        assert result.overall_comment == "Good."

    def test_missing_key_falls_back(self):
        raw = '{"grammarFeedback": ["a"], "overallComment": "ok"}'

        result = parse_feedback(raw)

        assert result == Feedback([], [], raw)

    def test_wrong_types_fall_back(self):
        raw = '{"grammarFeedback": "a", "expressionSuggestions": [], "overallComment": "ok"}'

        assert parse_feedback(raw).overall_comment == raw

    def test_truncated_json_falls_back(self):
        raw = '{"grammarFeedback": ["a"], "expressionSuggestions": ['

        result = parse_feedback(raw)

        assert result.grammar_feedback == []
        assert result.overall_comment == raw

    @pytest.mark.parametrize("raw", ["Great job!", "[1, 2]", '{"grammarFeedback": [1], '
                                     '"expressionSuggestions": [], "overallComment": ""}'])
    def test_strict_parser_raises(self, raw):
        with pytest.raises(ParseError):
            parse_feedback_strict(raw)

    def test_to_dict_uses_envelope_names(self):
        feedback = Feedback(["g"], ["e"], "c")

        assert feedback.to_dict() == {
            "grammarFeedback": ["g"],
            "expressionSuggestions": ["e"],
            "overallComment": "c",
        }
