"""Main application entry point for SpeechCoach."""

import sys
import asyncio
import argparse
import logging
import yaml
from pathlib import Path
from typing import List, Optional

from rich.live import Live

from . import __version__
from .audio.audio_pub import SessionEventPublisher
from .audio.backend import CaptureBackend
from .audio.session import RecordingSession
from .config import SpeechCoachConfig
from .config.providers import AppSettings
from .errors import MediaError, SpeechCoachError
from .models.audio import AudioArtifact
from .providers.dispatcher import ChatDispatcher
from .services.feedback_orchestrator import FeedbackOrchestrator, Operation
from .ui.feedback_screen import FeedbackScreen
from .ui.keyboard_input import EnterKeyListener

logger = logging.getLogger(__name__)

_MASKED_KEYS = ("openai_api_key", "claude_api_key", "gemini_api_key")


class App:
    """Wires configuration, orchestration and the terminal screen together."""

    def __init__(self, config: SpeechCoachConfig, screen: Optional[FeedbackScreen] = None):
        self.config = config
        self.screen = screen or FeedbackScreen()
        self.orchestrator = FeedbackOrchestrator(
            settings_provider=self.settings,
            dispatcher=ChatDispatcher(
                timeout_seconds=float(config.get('ai.request_timeout_seconds', 60)),
            ),
        )

    def settings(self) -> AppSettings:
        return AppSettings.from_config(self.config)

    def _report(self, operation: Operation) -> int:
        error = self.orchestrator.state(operation).error
        self.screen.show_error(error or f"{operation.value} failed")
        return 1

    def _capture_backend(self) -> CaptureBackend:
        from .audio.capture import PyAudioCaptureBackend

        return PyAudioCaptureBackend(
            sample_rate=int(self.config.get('audio.sample_rate', 16000)),
            channels=int(self.config.get('audio.channels', 1)),
        )

    async def record(self, duration: int, topic: Optional[str], save_path: Optional[str],
                     feedback: bool = True, play: bool = False,
                     stop_requested: Optional[asyncio.Event] = None) -> int:
        """Record from the microphone until Enter or the time limit, then transcribe and coach.

        Args:
            duration: Maximum recording length in seconds
            topic: Speech topic given to the coach
            save_path: Optional path to save the recording to
            feedback: Generate feedback after transcription
            play: Play the recording back before transcribing
            stop_requested: Event that ends the recording early; when None,
                pressing Enter sets it
        """
        loop = asyncio.get_running_loop()
        if stop_requested is None:
            stop_requested = asyncio.Event()
            EnterKeyListener(lambda: loop.call_soon_threadsafe(stop_requested.set)).start()

        with RecordingSession(backend=self._capture_backend(), publisher=SessionEventPublisher()) as session:
            await session.start()
            try:
                with Live(self.screen.recording_panel(session.stats(), topic, duration),
                          console=self.screen.console, refresh_per_second=4) as live:
                    while session.stats().elapsed_seconds < duration and not stop_requested.is_set():
                        try:
                            await asyncio.wait_for(stop_requested.wait(), timeout=0.25)
                        except asyncio.TimeoutError:
                            pass
                        live.update(self.screen.recording_panel(session.stats(), topic, duration))
            finally:
                artifact = session.stop()

            if artifact is None or artifact.is_empty:
                self.screen.show_notice("Nothing was captured.")
                return 1
            if play:
                try:
                    await loop.run_in_executor(None, session.create_playback(artifact).play)
                except MediaError as e:
                    self.screen.show_error(str(e))

        if save_path:
            path = artifact.save(save_path)
            self.screen.show_notice(f"Saved recording to {path}")
        return await self.coach(artifact, topic, feedback)

    async def coach(self, artifact: AudioArtifact, topic: Optional[str], feedback: bool = True) -> int:
        transcript = await self.orchestrator.transcribe(artifact)
        if transcript is None:
            return self._report(Operation.TRANSCRIBE)
        self.screen.show_transcript(transcript)

        if not feedback:
            return 0
        result = await self.orchestrator.generate_feedback(transcript.text, topic or "Free talk")
        if result is None:
            return self._report(Operation.FEEDBACK)
        self.screen.show_feedback(result)
        return 0

    async def feedback(self, text: str, topic: str) -> int:
        result = await self.orchestrator.generate_feedback(text, topic)
        if result is None:
            return self._report(Operation.FEEDBACK)
        self.screen.show_feedback(result)
        return 0

    async def simplify(self, text: str) -> int:
        result = await self.orchestrator.simplify(text)
        if result is None:
            return self._report(Operation.SIMPLIFY)
        self.screen.show_text("Simplified", result)
        return 0

    async def keyword(self, text: str) -> int:
        result = await self.orchestrator.extract_keyword(text)
        if result is None:
            return self._report(Operation.KEYWORD)
        self.screen.show_text("Keyword", result)
        return 0

    async def summary(self, chunks: List[str]) -> int:
        result = await self.orchestrator.generate_summary(chunks)
        if result is None:
            return self._report(Operation.SUMMARY)
        self.screen.show_text("Summary", result)
        return 0

    def show_config(self) -> int:
        settings = {}
        for section in ("ai", "ui", "audio", "logging"):
            for key, value in (self.config.get(section, {}) or {}).items():
                if key in _MASKED_KEYS and value:
                    value = f"{str(value)[:4]}…"
                settings[f"{section}.{key}"] = value
        self.screen.show_settings(settings)
        return 0

    def set_config(self, key: str, value: str) -> int:
        """Store a CLI value, parsed as YAML so that "false", "30" and "null" keep their types."""
        parsed: object = value
        if not key.endswith("api_key"):
            try:
                parsed = yaml.safe_load(value)
            except yaml.YAMLError:
                parsed = value
        self.config.set(key, parsed)
        path = self.config.save()
        self.screen.show_notice(f"Updated {key} in {path}")
        return 0


def setup_logging(config: SpeechCoachConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'logs/speechcoach.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("SpeechCoach starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")


def _read_text(value: Optional[str]) -> str:
    """Text argument, or stdin when the argument is '-' or missing."""
    if value is None or value == "-":
        return sys.stdin.read()
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="speechcoach",
        description="SpeechCoach - record a speech and get AI feedback",
    )
    parser.add_argument("--config", type=str,
                        help="Path to configuration YAML file (default: ~/.speechcoach/speechcoach.yaml)")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Set logging level (default: from config, else INFO)")
    parser.add_argument("--version", action="version", version=f"SpeechCoach v{__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    record = commands.add_parser("record", help="Record a speech (Enter stops early), transcribe it and get feedback")
    record.add_argument("--duration", type=int, default=60, help="Maximum recording length in seconds")
    record.add_argument("--topic", type=str, help="Speech topic given to the coach")
    record.add_argument("--save", type=str, help="Save the recording to this path")
    record.add_argument("--no-feedback", action="store_true", help="Only transcribe")
    record.add_argument("--play", action="store_true", help="Play the recording back before transcribing")

    transcribe = commands.add_parser("transcribe", help="Transcribe a saved recording")
    transcribe.add_argument("file", type=str)
    transcribe.add_argument("--topic", type=str)
    transcribe.add_argument("--feedback", action="store_true", help="Also generate feedback")

    feedback = commands.add_parser("feedback", help="Get feedback on a transcript")
    feedback.add_argument("text", nargs="?", help="Transcript text, or '-' for stdin")
    feedback.add_argument("--topic", type=str, required=True)

    simplify = commands.add_parser("simplify", help="Rewrite text in simple English")
    simplify.add_argument("text", nargs="?", help="Text, or '-' for stdin")

    keyword = commands.add_parser("keyword", help="Extract 1-2 keywords from a phrase")
    keyword.add_argument("text")

    summary = commands.add_parser("summary", help="Summarize note chunks")
    summary.add_argument("chunks", nargs="+")

    config_cmd = commands.add_parser("config", help="Show or change settings")
    config_actions = config_cmd.add_subparsers(dest="action", required=True)
    config_actions.add_parser("show")
    config_set = config_actions.add_parser("set")
    config_set.add_argument("key", help="Dot-separated key, e.g. ai.provider")
    config_set.add_argument("value")

    return parser


async def run_command(app: App, args: argparse.Namespace) -> int:
    if args.command == "record":
        return await app.record(args.duration, args.topic, args.save,
                                feedback=not args.no_feedback, play=args.play)
    if args.command == "transcribe":
        artifact = AudioArtifact.from_file(args.file)
        return await app.coach(artifact, args.topic, feedback=args.feedback)
    if args.command == "feedback":
        return await app.feedback(_read_text(args.text), args.topic)
    if args.command == "simplify":
        return await app.simplify(_read_text(args.text))
    if args.command == "keyword":
        return await app.keyword(args.text)
    if args.command == "summary":
        return await app.summary(args.chunks)
    if args.action == "show":
        return app.show_config()
    return app.set_config(args.key, args.value)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for SpeechCoach application."""
    args = build_parser().parse_args(argv)

    try:
        config = SpeechCoachConfig(args.config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))
    app = App(config)
    try:
        exit_code = asyncio.run(run_command(app, args))
    except KeyboardInterrupt:
        app.screen.show_notice("Interrupted.")
        exit_code = 130
    except SpeechCoachError as e:
        logger.error(f"Command failed: {e}")
        app.screen.show_error(str(e))
        exit_code = 1
    finally:
        app.orchestrator.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
