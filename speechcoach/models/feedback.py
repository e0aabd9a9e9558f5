"""Transcript and feedback data models."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Transcript:
    """Text recognized from one audio artifact."""
    text: str
    source_artifact_id: str  # AudioArtifact.artifact_id


@dataclass
class Feedback:
    """Structured speaking feedback."""
    grammar_feedback: List[str] = field(default_factory=list)
    expression_suggestions: List[str] = field(default_factory=list)
    overall_comment: str = ""

    def to_dict(self) -> dict:
        """Serialize using the JSON envelope names the providers are asked for."""
        return {
            "grammarFeedback": list(self.grammar_feedback),
            "expressionSuggestions": list(self.expression_suggestions),
            "overallComment": self.overall_comment,
        }
