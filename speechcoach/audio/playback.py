"""Temporary files that let an external player open a recorded artifact."""

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import MediaError
from ..models.audio import AudioArtifact

logger = logging.getLogger(__name__)


class PlaybackHandle:
    """A temporary copy of an artifact on disk; release() deletes it."""

    def __init__(self, artifact: AudioArtifact, directory: Optional[str] = None):
        fd, path = tempfile.mkstemp(
            prefix="speechcoach-", suffix=f".{artifact.file_extension}", dir=directory
        )
        with os.fdopen(fd, "wb") as f:
            f.write(artifact.data)
        self.artifact_id = artifact.artifact_id
        self.path: Optional[Path] = Path(path)
        logger.debug(f"Playback handle created: {self.path}")

    @property
    def released(self) -> bool:
        return self.path is None

    def release(self) -> None:
        if self.path is None:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        logger.debug(f"Playback handle released: {self.path}")
        self.path = None

    def play(self, player: str = "ffplay") -> None:
        """Play the file with ffplay and block until playback ends.

        Raises:
            MediaError: if the handle was released or the player is unavailable or fails
        """
        if self.path is None:
            raise MediaError("Recording is no longer available for playback")
        executable = shutil.which(player)
        if not executable:
            raise MediaError(f"{player} not found. Install ffmpeg to play recordings.")
        logger.info(f"Playing {self.path}")
        try:
            subprocess.run(
                [executable, "-nodisp", "-autoexit", "-loglevel", "error", str(self.path)],
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise MediaError(f"Playback failed: {e}") from e

    def __enter__(self) -> "PlaybackHandle":
        return self

    def __exit__(self, *args) -> None:
        self.release()
