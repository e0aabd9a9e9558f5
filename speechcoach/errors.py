"""Error taxonomy shared by the gateway and the capture pipeline."""

from typing import Optional


class SpeechCoachError(Exception):
    """Base class for errors scoped to a single user action."""


class ConfigError(SpeechCoachError):
    """Missing or invalid configuration, raised before any network call."""


class MediaError(SpeechCoachError):
    """Microphone permission denied or capture device failure."""


class ProviderError(SpeechCoachError):
    """A vendor call failed (non-2xx, transport failure or bad envelope)."""

    def __init__(self, provider: str, message: str, status: Optional[int] = None):
        self.provider = provider
        self.message = message
        self.status = status
        super().__init__(f"{provider} error: {message}")


class ParseError(SpeechCoachError):
    """A provider reply could not be parsed as the expected JSON envelope."""
