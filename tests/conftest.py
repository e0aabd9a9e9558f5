"""Pytest configuration and fixtures for SpeechCoach tests."""

import logging
from typing import Callable, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from speechcoach.audio.backend import AudioStream, CaptureBackend, Recorder
from speechcoach.config.providers import AppSettings
from speechcoach.errors import MediaError
from speechcoach.models.chat import Provider, ProviderConfig


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network or hardware")
    config.addinivalue_line("markers", "integration: multi-component flows against fake vendors")


class FakeTimer:
    def __init__(self, scheduler: "FakeScheduler", interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.next_due = scheduler.now + interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Scheduler whose clock only moves when a test calls advance()."""

    def __init__(self):
        self.now = 0.0
        self.timers: List[FakeTimer] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self, interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def active_timers(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [t for t in self.active_timers if t.next_due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: t.next_due)
            self.now = timer.next_due
            timer.next_due += timer.interval
            timer.callback()
        self.now = target


class FakeStream(AudioStream):
    def __init__(self):
        self._active = True
        self.stop_calls = 0

    @property
    def active(self) -> bool:
        return self._active

    def stop(self) -> None:
        self.stop_calls += 1
        self._active = False


class FakeRecorder(Recorder):
    """Delivers queued chunks one per read, like one blob per timeslice."""

    def __init__(self, stream: FakeStream, mime_type: str):
        self.stream = stream
        self.mime_type = mime_type
        self.queued: List[bytes] = []
        self.final_data = b""
        self.started = False
        self.stopped = False
        self.peak_level = 0.5

    def feed(self, data: bytes) -> None:
        self.queued.append(data)

    def start(self) -> None:
        self.started = True

    def read_available(self) -> bytes:
        return self.queued.pop(0) if self.queued else b""

    def stop(self) -> bytes:
        self.stopped = True
        return self.final_data


class FakeCaptureBackend(CaptureBackend):
    def __init__(self, supported=("audio/webm;codecs=opus", "audio/webm"),
                 open_error: Optional[Exception] = None,
                 recorder_error: Optional[Exception] = None):
        self.supported = set(supported)
        self.open_error = open_error
        self.recorder_error = recorder_error
        self.queried: List[str] = []
        self.streams: List[FakeStream] = []
        self.recorder: Optional[FakeRecorder] = None

    def is_type_supported(self, mime_type: str) -> bool:
        self.queried.append(mime_type)
        return mime_type in self.supported

    async def open_stream(self) -> FakeStream:
        if self.open_error is not None:
            raise self.open_error
        stream = FakeStream()
        self.streams.append(stream)
        return stream

    def create_recorder(self, stream: AudioStream, mime_type: str) -> FakeRecorder:
        if self.recorder_error is not None:
            raise self.recorder_error
        self.recorder = FakeRecorder(stream, mime_type)
        return self.recorder


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def make_backend():
    """Factory for capture backends with a chosen capability set."""
    return FakeCaptureBackend


@pytest.fixture
def fake_backend():
    return FakeCaptureBackend()


@pytest.fixture
def permission_denied_backend():
    return FakeCaptureBackend(
        open_error=MediaError("Microphone access denied. Please allow microphone access to record.")
    )


@pytest.fixture
def chat_pair():
    """A fixed (system prompt, user message) pair."""
    return ("You are a terse assistant.", "Say hello.")


@pytest.fixture
def settings_factory():
    def _make(**overrides) -> AppSettings:
        values: Dict[str, object] = {
            "provider": "openai",
            "openai_api_key": "sk-test",
        }
        values.update(overrides)
        return AppSettings(**values)
    return _make


@pytest_asyncio.fixture
async def vendor_server():
    """Start in-process HTTP servers that impersonate vendor APIs.

    Usage: base_url = await vendor_server({("POST", "/v1/chat/completions"): handler})
    """
    servers: List[TestServer] = []

    async def _start(routes) -> str:
        app = web.Application()
        for (method, path), handler in routes.items():
            app.router.add_route(method, path, handler)
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return f"http://{server.host}:{server.port}"

    yield _start

    for server in servers:
        await server.close()


@pytest.fixture
def provider_config_for():
    """ProviderConfig pointed at a fake vendor server."""
    def _make(provider: Provider, base_url: str, model: str = "test-model",
              api_key: Optional[str] = "test-key") -> ProviderConfig:
        if provider is Provider.OLLAMA:
            api_key = None
        return ProviderConfig(provider=provider, model=model, api_key=api_key, base_url=base_url)
    return _make
