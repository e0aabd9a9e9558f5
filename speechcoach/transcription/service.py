"""Whisper transcription over the OpenAI audio API."""

import asyncio
import logging
from typing import Optional

import aiohttp

from ..errors import ConfigError, MediaError, ProviderError
from ..models.audio import AudioArtifact
from ..models.feedback import Transcript
from ..providers.base import extract_error_message

logger = logging.getLogger(__name__)

OPENAI_API_URL = "https://api.openai.com/v1"
WHISPER_MODEL = "whisper-1"
TRANSCRIPTION_LANGUAGE = "en"


class TranscriptionService:
    """Speech-to-text fixed to OpenAI Whisper.

    Always uses the OpenAI key, whichever chat provider is active.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = OPENAI_API_URL,
        timeout_seconds: float = 120.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize transcription service.

        Args:
            api_key: OpenAI API key (may be None; checked on each call)
            base_url: OpenAI API root
            timeout_seconds: Total timeout for one upload
            session: Optional shared aiohttp session
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session = session

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/audio/transcriptions"

    def build_form(self, artifact: AudioArtifact) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field(
            "file",
            artifact.data,
            filename=f"audio.{artifact.file_extension}",
            content_type=artifact.container_type,
        )
        form.add_field("model", WHISPER_MODEL)
        form.add_field("language", TRANSCRIPTION_LANGUAGE)
        return form

    async def transcribe(self, artifact: AudioArtifact) -> Transcript:
        """Upload an artifact and return its transcript.

        Raises:
            ConfigError: if no OpenAI key is configured
            MediaError: if the artifact holds no audio
            ProviderError: on a failed upload or non-2xx response
        """
        if not self.api_key:
            raise ConfigError("OpenAI API key is required for speech-to-text. Please set it in Settings.")
        if artifact.is_empty:
            raise MediaError("Nothing was captured. Please record again.")

        logger.info(f"Transcribing {artifact.size_bytes} bytes of {artifact.mime_type} "
                    f"({artifact.duration_seconds}s)")
        try:
            if self.session is not None:
                data = await self._upload(self.session, artifact)
            else:
                async with aiohttp.ClientSession(timeout=self.timeout) as session:
                    data = await self._upload(session, artifact)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"Transcription request failed: {exc}")
            raise ProviderError("OpenAI", f"request failed: {str(exc) or type(exc).__name__}") from exc

        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ProviderError("OpenAI", "transcription response contained no text")

        logger.info(f"Transcription complete: {len(text)} characters")
        return Transcript(text=text, source_artifact_id=artifact.artifact_id)

    async def _upload(self, session: aiohttp.ClientSession, artifact: AudioArtifact) -> dict:
        async with session.post(
            self.endpoint,
            headers={"Authorization": f"Bearer {self.api_key}"},
            data=self.build_form(artifact),
        ) as response:
            if response.status >= 300:
                body = await response.text()
                message = extract_error_message(body) or "Failed to transcribe audio"
                logger.warning(f"Transcription API error {response.status}: {message}")
                raise ProviderError("OpenAI", message, status=response.status)
            try:
                return await response.json(content_type=None)
            except ValueError as exc:
                raise ProviderError("OpenAI", "invalid JSON response") from exc
