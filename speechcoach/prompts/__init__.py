"""Prompt construction and reply parsing for coaching requests."""

from .templates import (
    speech_feedback_request,
    simplify_request,
    keyword_request,
    summary_request,
)
from .feedback_parser import parse_feedback, parse_feedback_strict

__all__ = [
    "speech_feedback_request",
    "simplify_request",
    "keyword_request",
    "summary_request",
    "parse_feedback",
    "parse_feedback_strict",
]
