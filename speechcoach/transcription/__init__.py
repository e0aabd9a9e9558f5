"""Transcription module for SpeechCoach."""

from .service import TranscriptionService, WHISPER_MODEL, TRANSCRIPTION_LANGUAGE

__all__ = [
    "TranscriptionService",
    "WHISPER_MODEL",
    "TRANSCRIPTION_LANGUAGE",
]
