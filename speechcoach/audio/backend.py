"""Abstract interfaces between the recording session and capture hardware."""

from abc import ABC, abstractmethod


class AudioStream(ABC):
    """An exclusively owned, open microphone stream."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until the stream has been released."""

    @abstractmethod
    def stop(self) -> None:
        """Stop all tracks and release the OS-level device. Must be idempotent."""


class Recorder(ABC):
    """Encodes an AudioStream into a container format.

    The session pulls encoded data every timeslice via read_available();
    stop() finishes encoding and returns whatever data is still pending.
    """

    peak_level: float = 0.0

    @abstractmethod
    def start(self) -> None:
        """Begin encoding."""

    @abstractmethod
    def read_available(self) -> bytes:
        """Return encoded bytes produced since the previous call (may be empty)."""

    @abstractmethod
    def stop(self) -> bytes:
        """Stop encoding and return the final pending bytes."""


class CaptureBackend(ABC):
    """Factory for microphone streams and recorders."""

    @abstractmethod
    def is_type_supported(self, mime_type: str) -> bool:
        """Whether a recorder can produce the given MIME type."""

    @abstractmethod
    async def open_stream(self) -> AudioStream:
        """Acquire the microphone.

        Raises:
            MediaError: if access is denied or no input device is usable
        """

    @abstractmethod
    def create_recorder(self, stream: AudioStream, mime_type: str) -> Recorder:
        """Create a recorder encoding `stream` as `mime_type`.

        Raises:
            MediaError: if no encoder is available
        """
