"""SpeechCoach - record impromptu speech and get AI feedback."""

__version__ = "0.1.0"
