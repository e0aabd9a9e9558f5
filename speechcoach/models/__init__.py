"""Data models for the SpeechCoach application."""

from .chat import Provider, ProviderConfig, ChatRequest, ChatResult
from .audio import RecordingState, AudioArtifact, RecordingStats
from .feedback import Transcript, Feedback
from .events import SessionEvent, OperationEvent

__all__ = [
    "Provider",
    "ProviderConfig",
    "ChatRequest",
    "ChatResult",
    "RecordingState",
    "AudioArtifact",
    "RecordingStats",
    "Transcript",
    "Feedback",
    "SessionEvent",
    "OperationEvent",
]
