"""Audio capture and recording session module."""

from .backend import AudioStream, Recorder, CaptureBackend
from .session import RecordingSession, negotiate_mime_type, MIME_PREFERENCES, FALLBACK_MIME_TYPE
from .playback import PlaybackHandle
from .timers import LoopScheduler, RepeatingTimer
from .audio_pub import SessionEventPublisher, RECORDING_TOPIC

__all__ = [
    'AudioStream',
    'Recorder',
    'CaptureBackend',
    'RecordingSession',
    'negotiate_mime_type',
    'MIME_PREFERENCES',
    'FALLBACK_MIME_TYPE',
    'PlaybackHandle',
    'LoopScheduler',
    'RepeatingTimer',
    'SessionEventPublisher',
    'RECORDING_TOPIC',
]
