"""Microphone capture with PyAudio and Opus encoding through ffmpeg."""

import asyncio
import functools
import logging
import os
import shutil
import subprocess
from threading import Lock, Thread
from typing import Callable, List, Optional, Tuple

import numpy as np
import pyaudio

from .backend import AudioStream, CaptureBackend, Recorder
from ..errors import MediaError

logger = logging.getLogger(__name__)

# 100 ms of audio per PortAudio callback
BUFFERS_PER_SECOND = 10
READ_SIZE = 4096

PcmSink = Callable[[bytes], None]


@functools.lru_cache(maxsize=None)
def ffmpeg_encoders(ffmpeg_path: str = "ffmpeg") -> Tuple[str, ...]:
    """Names of the audio encoders the local ffmpeg build provides."""
    executable = shutil.which(ffmpeg_path)
    if not executable:
        logger.warning("ffmpeg not found on PATH; no recording formats available")
        return ()
    try:
        result = subprocess.run(
            [executable, "-hide_banner", "-encoders"],
            capture_output=True, text=True, check=True, timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Could not query ffmpeg encoders: {e}")
        return ()

    encoders = []
    in_table = False
    for line in result.stdout.splitlines():
        # The legend above the " ------" separator uses the same flag column
        if line.strip().startswith("------"):
            in_table = True
            continue
        if not in_table:
            continue
        parts = line.split()
        # Encoder lines look like " A....D libopus  libopus Opus"
        if len(parts) >= 2 and parts[0].startswith("A"):
            encoders.append(parts[1])
    return tuple(encoders)


def ffmpeg_output_format(mime_type: str, encoders: Tuple[str, ...]) -> Optional[Tuple[str, str]]:
    """Map a MIME type to an ffmpeg (muxer, audio codec) pair, or None."""
    container, _, params = mime_type.partition(";")
    container = container.strip().lower()
    wants_opus = "opus" in params.lower()

    if container == "audio/webm":
        if "libopus" in encoders:
            return "webm", "libopus"
        if not wants_opus and "libvorbis" in encoders:
            return "webm", "libvorbis"
    elif container == "audio/ogg" and wants_opus and "libopus" in encoders:
        return "ogg", "libopus"
    return None


class PyAudioMicrophone(AudioStream):
    """Input stream delivering 16-bit PCM buffers to registered sinks."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1):
        self.sample_rate = sample_rate
        self.channels = channels
        self.frames_per_buffer = sample_rate // BUFFERS_PER_SECOND
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None
        self._sinks: List[PcmSink] = []
        self._lock = Lock()

    @property
    def active(self) -> bool:
        return self.stream is not None

    def open(self) -> None:
        """Open the default input device (blocking)."""
        self.pyaudio_instance = pyaudio.PyAudio()
        try:
            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=self._on_audio,
            )
        except (OSError, ValueError) as e:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
            raise MediaError(
                "Microphone access denied. Please allow microphone access to record."
            ) from e
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.frames_per_buffer} samples/buffer")

    def add_sink(self, sink: PcmSink) -> None:
        with self._lock:
            self._sinks.append(sink)

    def remove_sink(self, sink: PcmSink) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def _on_audio(self, in_data, frame_count, time_info, status):
        """PortAudio callback, runs on the audio thread."""
        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            sink(in_data)
        return (None, pyaudio.paContinue)

    def stop(self) -> None:
        """Stop the stream and release the device."""
        with self._lock:
            self._sinks.clear()
        if self.stream is not None:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
            self.stream = None
            logger.info("Audio stream released")
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None


class FfmpegRecorder(Recorder):
    """Pipes microphone PCM through an ffmpeg subprocess into a container."""

    def __init__(
        self,
        microphone: PyAudioMicrophone,
        muxer: str,
        codec: str,
        ffmpeg_path: str = "ffmpeg",
        bitrate: str = "32k",
    ):
        self.microphone = microphone
        self.command = [
            ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-f", "s16le",
            "-ar", str(microphone.sample_rate),
            "-ac", str(microphone.channels),
            "-i", "pipe:0",
            "-c:a", codec,
            "-b:a", bitrate,
            "-f", muxer,
            "pipe:1",
        ]
        self.peak_level = 0.0
        self.process: Optional[subprocess.Popen] = None
        self.reader_thread: Optional[Thread] = None
        self._pending = bytearray()
        self._lock = Lock()
        self._write_failed = False

    def start(self) -> None:
        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise MediaError(f"Could not start audio encoder: {e}") from e

        self.reader_thread = Thread(target=self._read_encoded, daemon=True)
        self.reader_thread.name = "EncoderReaderThread"
        self.reader_thread.start()
        self.microphone.add_sink(self._write_pcm)
        logger.info(f"Encoder started: {' '.join(self.command)}")

    def _write_pcm(self, pcm: bytes) -> None:
        """Feed one PCM buffer to the encoder (audio thread)."""
        samples = np.frombuffer(pcm, dtype=np.int16)
        if samples.size:
            self.peak_level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0

        if self._write_failed or self.process is None or self.process.stdin is None:
            return
        try:
            self.process.stdin.write(pcm)
            self.process.stdin.flush()
        except (BrokenPipeError, ValueError, OSError) as e:
            self._write_failed = True
            logger.error(f"Audio encoder stopped accepting data: {e}")

    def _read_encoded(self) -> None:
        """Collect encoder output until EOF (reader thread)."""
        stdout = self.process.stdout
        while True:
            data = os.read(stdout.fileno(), READ_SIZE)
            if not data:
                break
            with self._lock:
                self._pending.extend(data)

    def read_available(self) -> bytes:
        with self._lock:
            data = bytes(self._pending)
            self._pending.clear()
        return data

    def stop(self) -> bytes:
        self.microphone.remove_sink(self._write_pcm)
        if self.process is not None:
            if self.process.stdin is not None:
                try:
                    self.process.stdin.close()
                except OSError as e:
                    logger.debug(f"Encoder stdin already closed: {e}")
            try:
                self.process.wait(timeout=5.0)
            except subprocess.TimeoutExpired:
                logger.warning("Encoder did not exit cleanly, killing it")
                self.process.kill()
                self.process.wait()

        if self.reader_thread and self.reader_thread.is_alive():
            self.reader_thread.join(timeout=2.0)
            if self.reader_thread.is_alive():
                logger.warning("Encoder reader thread did not stop cleanly")
        return self.read_available()


class PyAudioCaptureBackend(CaptureBackend):
    """Default capture backend: PyAudio input encoded by ffmpeg."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1, ffmpeg_path: str = "ffmpeg"):
        self.sample_rate = sample_rate
        self.channels = channels
        self.ffmpeg_path = ffmpeg_path

    def is_type_supported(self, mime_type: str) -> bool:
        return ffmpeg_output_format(mime_type, ffmpeg_encoders(self.ffmpeg_path)) is not None

    async def open_stream(self) -> PyAudioMicrophone:
        microphone = PyAudioMicrophone(sample_rate=self.sample_rate, channels=self.channels)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, microphone.open)
        return microphone

    def create_recorder(self, stream: AudioStream, mime_type: str) -> FfmpegRecorder:
        if not isinstance(stream, PyAudioMicrophone):
            raise MediaError("Unsupported audio stream")
        output = ffmpeg_output_format(mime_type, ffmpeg_encoders(self.ffmpeg_path))
        if output is None:
            raise MediaError(f"No encoder available for {mime_type}. Install ffmpeg with libopus.")
        muxer, codec = output
        return FfmpegRecorder(stream, muxer=muxer, codec=codec, ffmpeg_path=self.ffmpeg_path)
