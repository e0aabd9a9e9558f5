"""Audio capture data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import MediaError


class RecordingState(Enum):
    """Lifecycle state of a recording session."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
}


@dataclass(frozen=True)
class AudioArtifact:
    """Finalized, immutable audio produced when a recording session stops."""
    mime_type: str
    chunks: Tuple[bytes, ...]
    duration_seconds: int
    created_at: datetime

    @property
    def artifact_id(self) -> str:
        """Artifacts are referenced by their creation timestamp."""
        return self.created_at.isoformat()

    @property
    def data(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def size_bytes(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    @property
    def is_empty(self) -> bool:
        """True when the capture delivered no audio at all."""
        return self.size_bytes == 0

    @property
    def container_type(self) -> str:
        """MIME type without codec parameters, e.g. 'audio/webm'."""
        return self.mime_type.split(";", 1)[0].strip()

    @property
    def file_extension(self) -> str:
        return _EXTENSIONS.get(self.container_type, "bin")

    def save(self, path: Union[str, Path]) -> Path:
        """Write the artifact bytes to disk."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.data)
        return target

    @classmethod
    def from_file(cls, path: Union[str, Path], duration_seconds: int = 0) -> "AudioArtifact":
        """Load a previously saved recording for re-transcription.

        Raises:
            MediaError: if the file cannot be read
        """
        source = Path(path)
        try:
            data = source.read_bytes()
            modified = source.stat().st_mtime
        except OSError as e:
            raise MediaError(f"Could not read recording {source}: {e.strerror or e}") from e
        extension = source.suffix.lower().lstrip(".")
        mime_type = next((mime for mime, ext in _EXTENSIONS.items() if ext == extension), None)
        return cls(
            mime_type=mime_type or "application/octet-stream",
            chunks=(data,),
            duration_seconds=duration_seconds,
            created_at=datetime.fromtimestamp(modified),
        )


@dataclass
class RecordingStats:
    """Live statistics of a recording session."""
    state: RecordingState
    elapsed_seconds: int
    total_chunks: int
    total_bytes: int
    mime_type: Optional[str]
    peak_level: float = 0.0
