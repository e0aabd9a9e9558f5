"""Sequencing of coaching operations from user intent to result or error."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, TypeVar

from pubsub import pub

from ..config.providers import AppSettings, resolve_provider_config
from ..errors import SpeechCoachError
from ..models.audio import AudioArtifact
from ..models.chat import ChatRequest
from ..models.events import OperationEvent
from ..models.feedback import Feedback, Transcript
from ..prompts import (
    parse_feedback,
    keyword_request,
    simplify_request,
    speech_feedback_request,
    summary_request,
)
from ..providers.dispatcher import ChatDispatcher
from ..transcription.service import TranscriptionService

logger = logging.getLogger(__name__)

OPERATION_TOPIC = "coaching.operation"

T = TypeVar("T")


class Operation(Enum):
    """Independently tracked user actions."""
    SIMPLIFY = "simplify"
    TRANSCRIBE = "transcribe"
    FEEDBACK = "feedback"
    KEYWORD = "keyword"
    SUMMARY = "summary"


@dataclass
class OperationState:
    """Progress of one operation, as a UI would display it."""
    in_flight: bool = False
    result: Any = None
    error: Optional[str] = None
    generation: int = 0


class FeedbackOrchestrator:
    """Runs simplify, transcribe, feedback, keyword and summary requests.

    Each public method returns its result, or None after recording a
    user-facing message in state(operation).error. Settings are snapshotted
    and resolved once per call. A second call for an operation that is still
    in flight is rejected. clear() discards whatever result is still
    outstanding for that operation.
    """

    def __init__(
        self,
        settings_provider: Callable[[], AppSettings],
        dispatcher: Optional[ChatDispatcher] = None,
        transcription_factory: Optional[Callable[[AppSettings], TranscriptionService]] = None,
        topic: Optional[str] = OPERATION_TOPIC,
    ):
        """Initialize orchestrator.

        Args:
            settings_provider: Returns the current settings snapshot
            dispatcher: Chat dispatcher; a default one is created when None
            transcription_factory: Builds a TranscriptionService from settings
            topic: Pub/sub topic for OperationEvents, or None to disable publishing
        """
        self.settings_provider = settings_provider
        self.dispatcher = dispatcher or ChatDispatcher()
        self.transcription_factory = transcription_factory or _default_transcription_service
        self.topic = topic
        self._states: Dict[Operation, OperationState] = {op: OperationState() for op in Operation}
        self.transcripts: Dict[str, Transcript] = {}

    def state(self, operation: Operation) -> OperationState:
        return self._states[operation]

    def is_busy(self, operation: Operation) -> bool:
        return self._states[operation].in_flight

    async def simplify(self, text: str) -> Optional[str]:
        """Rewrite text in simpler English."""
        if not text.strip():
            return self._reject(Operation.SIMPLIFY, "No text to simplify")
        return await self._run(Operation.SIMPLIFY, lambda: self._chat(simplify_request(text)))

    async def transcribe(self, artifact: AudioArtifact) -> Optional[Transcript]:
        """Transcribe an artifact; re-transcription replaces the stored transcript."""

        async def call() -> Transcript:
            service = self.transcription_factory(self.settings_provider())
            return await service.transcribe(artifact)

        transcript = await self._run(Operation.TRANSCRIBE, call)
        if transcript is not None:
            self.transcripts[artifact.artifact_id] = transcript
        return transcript

    async def generate_feedback(self, transcript: str, topic: str) -> Optional[Feedback]:
        """Ask the active provider for structured feedback on a transcript."""
        if not transcript.strip():
            return self._reject(Operation.FEEDBACK, "No transcript to analyze")

        async def call() -> Feedback:
            reply = await self._chat(speech_feedback_request(transcript, topic))
            return parse_feedback(reply)

        return await self._run(Operation.FEEDBACK, call)

    async def extract_keyword(self, chunk: str) -> Optional[str]:
        if not chunk.strip():
            return self._reject(Operation.KEYWORD, "No text to extract keywords from")

        async def call() -> str:
            return (await self._chat(keyword_request(chunk))).strip()

        return await self._run(Operation.KEYWORD, call)

    async def generate_summary(self, chunks: Sequence[str]) -> Optional[str]:
        if not any(chunk.strip() for chunk in chunks):
            return self._reject(Operation.SUMMARY, "No chunks to summarize")
        return await self._run(Operation.SUMMARY, lambda: self._chat(summary_request(list(chunks))))

    def clear(self, operation: Operation) -> None:
        """Forget the result and error; a result still in flight will be discarded."""
        state = self._states[operation]
        state.generation += 1
        state.result = None
        state.error = None
        if operation is Operation.TRANSCRIBE:
            self.transcripts.clear()

    def close(self) -> None:
        """Discard every outstanding result, e.g. when the screen goes away."""
        for operation in Operation:
            self.clear(operation)

    async def _chat(self, request: ChatRequest) -> str:
        config = resolve_provider_config(self.settings_provider())
        return await self.dispatcher.dispatch(request, config)

    async def _run(self, operation: Operation, call: Callable[[], Awaitable[T]]) -> Optional[T]:
        state = self._states[operation]
        if state.in_flight:
            logger.warning(f"{operation.value} already in progress, ignoring request")
            return None

        generation = state.generation
        state.in_flight = True
        state.error = None
        self._publish(operation, "started")
        try:
            result = await call()
        except SpeechCoachError as e:
            if generation != state.generation:
                self._publish(operation, "discarded")
                return None
            state.error = str(e)
            logger.error(f"{operation.value} failed: {e}")
            self._publish(operation, "error", error=state.error)
            return None
        finally:
            state.in_flight = False

        if generation != state.generation:
            logger.info(f"Discarding stale {operation.value} result")
            self._publish(operation, "discarded")
            return None

        state.result = result
        self._publish(operation, "completed", result=result)
        return result

    def _reject(self, operation: Operation, message: str) -> None:
        state = self._states[operation]
        state.error = message
        logger.warning(f"{operation.value} rejected: {message}")
        self._publish(operation, "error", error=message)
        return None

    def _publish(self, operation: Operation, status: str, result: Any = None,
                 error: Optional[str] = None) -> None:
        if self.topic:
            pub.sendMessage(self.topic, event=OperationEvent(
                operation=operation.value, status=status, result=result, error=error,
            ))


def _default_transcription_service(settings: AppSettings) -> TranscriptionService:
    return TranscriptionService(api_key=settings.openai_api_key)
