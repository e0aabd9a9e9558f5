"""Services layer for SpeechCoach application logic."""

from .feedback_orchestrator import FeedbackOrchestrator, Operation, OperationState, OPERATION_TOPIC

__all__ = [
    "FeedbackOrchestrator",
    "Operation",
    "OperationState",
    "OPERATION_TOPIC",
]
