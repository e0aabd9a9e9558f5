"""Parsing of the JSON feedback envelope with a raw-text fallback."""

import json
import logging
import re
from typing import Any, List

from ..errors import ParseError
from ..models.feedback import Feedback

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_feedback_strict(raw: str) -> Feedback:
    """Parse a provider reply into Feedback.

    The outermost {...} object is used so that replies wrapped in prose or
    code fences still parse.

    Raises:
        ParseError: if the reply is not the expected envelope
    """
    match = _JSON_OBJECT_RE.search(raw)
    candidate = match.group(0) if match else raw
    try:
        payload = json.loads(candidate)
    except ValueError as exc:
        raise ParseError(f"Reply is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ParseError("Reply JSON is not an object")

    return Feedback(
        grammar_feedback=_string_list(payload, "grammarFeedback"),
        expression_suggestions=_string_list(payload, "expressionSuggestions"),
        overall_comment=_string(payload, "overallComment"),
    )


def parse_feedback(raw: str) -> Feedback:
    """Parse a provider reply, falling back to the whole reply as the comment."""
    try:
        return parse_feedback_strict(raw)
    except ParseError as exc:
        logger.info(f"Feedback reply was not structured JSON, using raw text: {exc}")
        return Feedback(grammar_feedback=[], expression_suggestions=[], overall_comment=raw)


def _string_list(payload: dict, key: str) -> List[str]:
    value: Any = payload.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ParseError(f"'{key}' must be a list of strings")
    return list(value)


def _string(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ParseError(f"'{key}' must be a string")
    return value
