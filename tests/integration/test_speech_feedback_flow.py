"""Integration tests: record -> transcribe -> feedback against fake vendor APIs."""

import asyncio
import io
import json

import pytest
import pytest_asyncio
import yaml
from aiohttp import web
from rich.console import Console

from speechcoach.audio import RecordingSession
from speechcoach.config import SpeechCoachConfig
from speechcoach.errors import MediaError
from speechcoach.main import App, build_parser, run_command
from speechcoach.models.feedback import Feedback
from speechcoach.services import FeedbackOrchestrator, Operation
from speechcoach.transcription import TranscriptionService
from speechcoach.ui import FeedbackScreen

CHUNK_SIZE = 3000

FEEDBACK_REPLY = {
    "grammarFeedback": ["Say 'I went' instead of 'I goed'."],
    "expressionSuggestions": ["'It was a blast' sounds more natural."],
    "overallComment": "Clear and confident. Keep it up!",
}


@pytest_asyncio.fixture
async def fake_vendors(vendor_server):
    """Fake OpenAI Whisper and Ollama chat endpoints on one server."""
    received = {"uploads": [], "chats": []}

    async def transcriptions(request):
        form = await request.post()
        upload = form["file"]
        received["uploads"].append({
            "filename": upload.filename,
            "size": len(upload.file.read()),
            "model": form["model"],
        })
        return web.json_response({"text": "Last weekend I goed to the beach with my friends."})

    async def chat(request):
        body = await request.json()
        received["chats"].append(body)
        return web.json_response({
            "model": body["model"],
            "message": {"role": "assistant", "content": json.dumps(FEEDBACK_REPLY)},
            "done": True,
        })

    base_url = await vendor_server({
        ("POST", "/v1/audio/transcriptions"): transcriptions,
        ("POST", "/api/chat"): chat,
    })
    return base_url, received


@pytest.mark.integration
class TestSpeechFeedbackFlow:

    @pytest.mark.asyncio
    async def test_record_transcribe_and_coach(self, fake_vendors, fake_backend, fake_scheduler,
                                               settings_factory):
        base_url, received = fake_vendors
        settings = settings_factory(provider="ollama", ollama_base_url=base_url, selected_model="llama3.2")
        orchestrator = FeedbackOrchestrator(
            settings_provider=lambda: settings,
            transcription_factory=lambda s: TranscriptionService(s.openai_api_key, base_url=base_url + "/v1"),
            topic=None,
        )

        session = RecordingSession(backend=fake_backend, scheduler=fake_scheduler)
        await session.start()
        for _ in range(3):
            fake_backend.recorder.feed(b"\x00" * CHUNK_SIZE)
            fake_scheduler.advance(0.1)
        fake_scheduler.advance(2.7)
        artifact = session.stop()
        session.close()

        assert artifact.duration_seconds == 3
        assert artifact.size_bytes == 3 * CHUNK_SIZE
        assert artifact.mime_type == "audio/webm;codecs=opus"

        transcript = await orchestrator.transcribe(artifact)
        assert transcript.text == "Last weekend I goed to the beach with my friends."
        assert received["uploads"] == [{"filename": "audio.webm", "size": 9000, "model": "whisper-1"}]

        feedback = await orchestrator.generate_feedback(transcript.text, "My Weekend")

        assert feedback == Feedback(
            grammar_feedback=FEEDBACK_REPLY["grammarFeedback"],
            expression_suggestions=FEEDBACK_REPLY["expressionSuggestions"],
            overall_comment=FEEDBACK_REPLY["overallComment"],
        )
        chat_body = received["chats"][0]
        assert chat_body["model"] == "llama3.2"
        assert chat_body["format"] == "json"
        assert chat_body["messages"][1]["content"] == transcript.text
        assert "Topic: My Weekend" in chat_body["messages"][0]["content"]
        assert orchestrator.state(Operation.FEEDBACK).error is None

    @pytest.mark.asyncio
    async def test_missing_openai_key_blocks_transcription(self, fake_vendors, fake_backend,
                                                           fake_scheduler, settings_factory):
        base_url, received = fake_vendors
        settings = settings_factory(provider="ollama", openai_api_key=None, ollama_base_url=base_url)
        orchestrator = FeedbackOrchestrator(
            settings_provider=lambda: settings,
            transcription_factory=lambda s: TranscriptionService(s.openai_api_key, base_url=base_url + "/v1"),
            topic=None,
        )
        session = RecordingSession(backend=fake_backend, scheduler=fake_scheduler)
        await session.start()
        fake_backend.recorder.feed(b"\x00" * CHUNK_SIZE)
        fake_scheduler.advance(1.0)
        artifact = session.stop()

        assert await orchestrator.transcribe(artifact) is None
        assert "OpenAI API key is required" in orchestrator.state(Operation.TRANSCRIBE).error
        assert received["uploads"] == []


@pytest.mark.integration
class TestCommandLine:

    @pytest.fixture
    def console_output(self):
        return io.StringIO()

    @pytest.fixture
    def make_app(self, tmp_path, console_output):
        def _make(ai_settings):
            config_path = tmp_path / "speechcoach.yaml"
            config_path.write_text(yaml.safe_dump({"ai": ai_settings}))
            screen = FeedbackScreen(console=Console(file=console_output, width=120, color_system=None))
            return App(SpeechCoachConfig(config_path), screen=screen)
        return _make

    @pytest.mark.asyncio
    async def test_feedback_command(self, fake_vendors, make_app, console_output):
        base_url, received = fake_vendors
        app = make_app({"provider": "ollama", "ollama_base_url": base_url})
        args = build_parser().parse_args(["feedback", "I goed to the beach.", "--topic", "Weekend"])

        exit_code = await run_command(app, args)

        assert exit_code == 0
        output = console_output.getvalue()
        assert "Clear and confident. Keep it up!" in output
        assert "I goed" in output
        assert received["chats"][0]["model"] == "llama3.2"

    @pytest.mark.asyncio
    async def test_missing_key_reported(self, make_app, console_output):
        app = make_app({"provider": "gemini"})
        args = build_parser().parse_args(["simplify", "Some text."])

        exit_code = await run_command(app, args)

        assert exit_code == 1
        assert "missing credential" in console_output.getvalue()

    def test_config_show_masks_keys(self, make_app, console_output):
        app = make_app({"provider": "openai", "openai_api_key": "sk-secret-value"})

        assert app.show_config() == 0

        output = console_output.getvalue()
        assert "sk-secret-value" not in output
        assert "sk-s" in output
        assert "ai.provider" in output

    def test_config_set_persists(self, make_app, tmp_path):
        app = make_app({"provider": "openai"})

        app.set_config("ai.provider", "claude")

        saved = yaml.safe_load((tmp_path / "speechcoach.yaml").read_text())
        assert saved["ai"]["provider"] == "claude"
        assert app.settings().provider == "claude"

    def test_config_set_parses_yaml_scalars(self, make_app, tmp_path):
        app = make_app({"provider": "openai", "model": "gpt-4o"})

        app.set_config("logging.console_output", "false")
        app.set_config("ai.request_timeout_seconds", "30")
        app.set_config("ai.model", "null")
        app.set_config("ai.openai_api_key", "12345")

        saved = yaml.safe_load((tmp_path / "speechcoach.yaml").read_text())
        assert saved["logging"]["console_output"] is False
        assert saved["ai"]["request_timeout_seconds"] == 30
        assert saved["ai"]["model"] is None
        assert saved["ai"]["openai_api_key"] == "12345"
        assert app.settings().selected_model is None

    @pytest.mark.asyncio
    async def test_transcribe_missing_file_is_media_error(self, make_app, tmp_path):
        app = make_app({"provider": "openai", "openai_api_key": "sk-test"})
        args = build_parser().parse_args(["transcribe", str(tmp_path / "missing.webm")])

        with pytest.raises(MediaError, match="Could not read recording"):
            await run_command(app, args)

    @pytest.mark.asyncio
    async def test_record_stops_early_and_coaches(self, fake_vendors, make_app, fake_backend,
                                                  console_output, monkeypatch):
        base_url, received = fake_vendors
        app = make_app({"provider": "ollama", "ollama_base_url": base_url, "openai_api_key": "sk-test"})
        monkeypatch.setattr(app, "_capture_backend", lambda: fake_backend)
        app.orchestrator.transcription_factory = (
            lambda s: TranscriptionService(s.openai_api_key, base_url=base_url + "/v1")
        )
        stop_requested = asyncio.Event()

        def press_stop():
            fake_backend.recorder.final_data = b"\x00" * CHUNK_SIZE
            stop_requested.set()

        asyncio.get_running_loop().call_later(0.05, press_stop)
        exit_code = await asyncio.wait_for(
            app.record(60, "Weekend", None, feedback=True, stop_requested=stop_requested),
            timeout=10,
        )

        assert exit_code == 0
        assert fake_backend.streams[0].stop_calls == 1
        assert received["uploads"] == [{"filename": "audio.webm", "size": CHUNK_SIZE, "model": "whisper-1"}]
        assert len(received["chats"]) == 1
        assert "Clear and confident. Keep it up!" in console_output.getvalue()
