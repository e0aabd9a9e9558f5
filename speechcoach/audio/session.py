"""Recording session state machine owning the microphone stream."""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .audio_pub import SessionEventPublisher
from .backend import AudioStream, CaptureBackend, Recorder
from .playback import PlaybackHandle
from .timers import LoopScheduler, Scheduler, TimerHandle
from ..errors import MediaError
from ..models.audio import AudioArtifact, RecordingState, RecordingStats
from ..models.events import SessionEvent

logger = logging.getLogger(__name__)

MIME_PREFERENCES = ("audio/webm;codecs=opus", "audio/webm")
FALLBACK_MIME_TYPE = "audio/ogg;codecs=opus"
TIMESLICE_SECONDS = 0.1
TICK_SECONDS = 1.0


def negotiate_mime_type(
    is_supported: Callable[[str], bool],
    preferences: Sequence[str] = MIME_PREFERENCES,
    fallback: str = FALLBACK_MIME_TYPE,
) -> str:
    """Return the first supported preferred MIME type, else the fallback."""
    for mime_type in preferences:
        if is_supported(mime_type):
            return mime_type
    return fallback


class RecordingSession:
    """One microphone recording: Idle -> Recording -> Stopped.

    Stopped is terminal; record again with a new session. While recording,
    encoded data is collected every 100 ms and the elapsed time advances on a
    1 second tick. stop() releases the microphone and returns the finished
    AudioArtifact. close() is the teardown path: it stops a live recording and
    releases every timer and playback handle the session still holds.
    """

    def __init__(
        self,
        backend: Optional[CaptureBackend] = None,
        scheduler: Optional[Scheduler] = None,
        publisher: Optional[SessionEventPublisher] = None,
        session_id: Optional[str] = None,
    ):
        """Initialize recording session.

        Args:
            backend: Capture backend; defaults to PyAudio + ffmpeg
            scheduler: Timer factory; defaults to the running event loop
            publisher: Optional pub/sub publisher for lifecycle events
            session_id: Identifier used in events and logs
        """
        if backend is None:
            from .capture import PyAudioCaptureBackend
            backend = PyAudioCaptureBackend()
        self.backend = backend
        self.scheduler = scheduler or LoopScheduler()
        self.publisher = publisher
        self.session_id = session_id or uuid.uuid4().hex[:8]

        self._state = RecordingState.IDLE
        self._starting = False
        self._closed = False
        self._stream: Optional[AudioStream] = None
        self._recorder: Optional[Recorder] = None
        self._chunks: List[bytes] = []
        self._tick_timer: Optional[TimerHandle] = None
        self._data_timer: Optional[TimerHandle] = None
        self._elapsed_seconds = 0
        self._mime_type: Optional[str] = None
        self._artifact: Optional[AudioArtifact] = None
        self._playback_handles: List[PlaybackHandle] = []

    def current_state(self) -> RecordingState:
        return self._state

    @property
    def mime_type(self) -> Optional[str]:
        return self._mime_type

    @property
    def artifact(self) -> Optional[AudioArtifact]:
        """The artifact produced by stop(), if any."""
        return self._artifact

    async def start(self) -> None:
        """Acquire the microphone and begin recording.

        Raises:
            MediaError: if the session is not Idle, or the microphone or
                encoder cannot be acquired. The session stays Idle.
        """
        if self._state is not RecordingState.IDLE or self._starting or self._closed:
            raise MediaError(f"Cannot start recording from state '{self._state.value}'")

        self._starting = True
        try:
            mime_type = negotiate_mime_type(self.backend.is_type_supported)
            logger.info(f"Session {self.session_id}: using MIME type {mime_type}")

            try:
                stream = await self.backend.open_stream()
            except MediaError as e:
                logger.error(f"Session {self.session_id}: failed to open microphone: {e}")
                self._publish("error", error=str(e))
                raise

            if self._closed:
                stream.stop()
                raise MediaError("Recording session was closed while opening the microphone")

            try:
                recorder = self.backend.create_recorder(stream, mime_type)
                recorder.start()
            except Exception as e:
                logger.error(f"Session {self.session_id}: failed to start recorder: {e}")
                stream.stop()
                self._publish("error", error=str(e))
                raise
        finally:
            self._starting = False

        self._stream = stream
        self._recorder = recorder
        self._mime_type = mime_type
        self._chunks = []
        self._elapsed_seconds = 0
        self._state = RecordingState.RECORDING

        self._data_timer = self.scheduler.call_every(TIMESLICE_SECONDS, self._collect_data)
        self._tick_timer = self.scheduler.call_every(TICK_SECONDS, self._tick)

        logger.info(f"Session {self.session_id}: recording started")
        self._publish("started", mime_type=mime_type)

    def _collect_data(self) -> None:
        if self._state is not RecordingState.RECORDING or self._recorder is None:
            return
        self._append_chunk(self._recorder.read_available())

    def _append_chunk(self, data: bytes) -> None:
        if not data:
            return
        self._chunks.append(data)
        self._publish("chunk", size=len(data), sequence_number=len(self._chunks))

    def _tick(self) -> None:
        if self._state is RecordingState.RECORDING:
            self._elapsed_seconds += 1

    def stop(self) -> Optional[AudioArtifact]:
        """Finish recording and return the artifact.

        A no-op returning None unless the session is Recording.
        """
        if self._state is not RecordingState.RECORDING:
            logger.debug(f"Session {self.session_id}: stop() ignored in state {self._state.value}")
            return None

        self._cancel_timers()
        try:
            if self._recorder is not None:
                self._append_chunk(self._recorder.stop())
        finally:
            if self._stream is not None:
                self._stream.stop()
            self._stream = None
            self._recorder = None

        artifact = AudioArtifact(
            mime_type=self._mime_type or FALLBACK_MIME_TYPE,
            chunks=tuple(self._chunks),
            duration_seconds=self._elapsed_seconds,
            created_at=datetime.now(),
        )
        self._artifact = artifact
        self._state = RecordingState.STOPPED

        if artifact.is_empty:
            logger.warning(f"Session {self.session_id}: recording captured no audio data")
        logger.info(f"Session {self.session_id}: recording stopped. "
                    f"Chunks: {len(artifact.chunks)}, bytes: {artifact.size_bytes}, "
                    f"duration: {artifact.duration_seconds}s")
        self._publish("stopped", size=artifact.size_bytes, duration_seconds=artifact.duration_seconds)
        return artifact

    def stats(self) -> RecordingStats:
        return RecordingStats(
            state=self._state,
            elapsed_seconds=self._elapsed_seconds,
            total_chunks=len(self._chunks),
            total_bytes=sum(len(chunk) for chunk in self._chunks),
            mime_type=self._mime_type,
            peak_level=self._recorder.peak_level if self._recorder is not None else 0.0,
        )

    def create_playback(self, artifact: AudioArtifact) -> PlaybackHandle:
        """Materialize an artifact for an external player.

        The handle is released by close() unless the caller releases it first.
        """
        handle = PlaybackHandle(artifact)
        self._playback_handles.append(handle)
        return handle

    def _cancel_timers(self) -> None:
        for timer in (self._data_timer, self._tick_timer):
            if timer is not None:
                timer.cancel()
        self._data_timer = None
        self._tick_timer = None

    def close(self) -> None:
        """Tear down: stop a live recording and release timers and playback handles."""
        if self._closed:
            return
        self._closed = True
        if self._state is RecordingState.RECORDING:
            self.stop()
        self._cancel_timers()
        for handle in self._playback_handles:
            handle.release()
        self._playback_handles.clear()
        logger.debug(f"Session {self.session_id}: closed")

    def __enter__(self) -> "RecordingSession":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _publish(self, event_type: str, **metadata) -> None:
        if self.publisher is not None:
            self.publisher.publish(SessionEvent(
                event_type=event_type,
                session_id=self.session_id,
                metadata=metadata,
            ))
