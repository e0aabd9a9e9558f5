"""Terminal user interface for SpeechCoach."""

from .feedback_screen import FeedbackScreen
from .keyboard_input import EnterKeyListener

__all__ = ["FeedbackScreen", "EnterKeyListener"]
