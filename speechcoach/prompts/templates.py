"""Prompt templates for the four coaching use cases."""

from typing import Sequence

from ..models.chat import ChatRequest

FEEDBACK_TEMPERATURE = 0.7
SIMPLIFY_TEMPERATURE = 0.5
SUMMARY_TEMPERATURE = 0.5
KEYWORD_TEMPERATURE = 0.3
KEYWORD_MAX_TOKENS = 20

_FEEDBACK_SYSTEM_PROMPT = """You are an English speaking coach. Analyze the following speech transcript and provide constructive feedback.

Topic: {topic}

Provide your feedback in JSON format with the following structure:
{{
  "grammarFeedback": ["list of grammar corrections or suggestions"],
  "expressionSuggestions": ["list of better expressions or phrases they could use"],
  "overallComment": "brief overall feedback and encouragement"
}}

Be encouraging but also helpful. Focus on practical improvements."""

_SIMPLIFY_SYSTEM_PROMPT = (
    "You are a helpful assistant that simplifies English text. Rewrite the following text "
    "using simpler vocabulary and shorter sentences while preserving the meaning. "
    "Make it easy for English learners to understand."
)

_KEYWORD_SYSTEM_PROMPT = (
    "Extract 1-2 key words from the following English phrase or sentence. "
    "Return only the keyword(s), nothing else."
)

_SUMMARY_SYSTEM_PROMPT = (
    "Write a brief 1-2 sentence summary of the main points from the following "
    "phrases/sentences. Write in simple English."
)


def speech_feedback_request(transcript: str, topic: str) -> ChatRequest:
    """Ask for grammar/expression feedback on a spoken transcript as JSON."""
    return ChatRequest(
        system_prompt=_FEEDBACK_SYSTEM_PROMPT.format(topic=topic),
        user_message=transcript,
        temperature=FEEDBACK_TEMPERATURE,
        json_mode=True,
    )


def simplify_request(text: str) -> ChatRequest:
    return ChatRequest(
        system_prompt=_SIMPLIFY_SYSTEM_PROMPT,
        user_message=text,
        temperature=SIMPLIFY_TEMPERATURE,
    )


def keyword_request(chunk: str) -> ChatRequest:
    return ChatRequest(
        system_prompt=_KEYWORD_SYSTEM_PROMPT,
        user_message=chunk,
        temperature=KEYWORD_TEMPERATURE,
        max_tokens=KEYWORD_MAX_TOKENS,
    )


def summary_request(chunks: Sequence[str]) -> ChatRequest:
    return ChatRequest(
        system_prompt=_SUMMARY_SYSTEM_PROMPT,
        user_message="\n".join(chunks),
        temperature=SUMMARY_TEMPERATURE,
    )
