"""Abstract chat adapter and shared HTTP plumbing for AI vendors."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import aiohttp

from ..errors import ConfigError, ProviderError
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0

_ADAPTERS: Dict[Provider, Type["ChatAdapter"]] = {}


def register_adapter(cls: Type["ChatAdapter"]) -> Type["ChatAdapter"]:
    """Class decorator adding an adapter to the provider registry."""
    _ADAPTERS[cls.provider] = cls
    return cls


def get_adapter_class(provider: Provider) -> Type["ChatAdapter"]:
    try:
        return _ADAPTERS[provider]
    except KeyError:
        raise ConfigError(f"Unsupported provider: {provider.value}") from None


class ChatAdapter(ABC):
    """Translates a ChatRequest into one vendor's wire format and back.

    Subclasses describe the vendor contract: URL, auth, payload shape and reply
    path. Sending, status handling and error wrapping live here.
    """

    provider: Provider
    default_base_url: str
    fallback_error_message: str = "API error"

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def base_url(self, config: ProviderConfig) -> str:
        return (config.base_url or self.default_base_url).rstrip("/")

    @abstractmethod
    def build_url(self, config: ProviderConfig) -> str:
        """Endpoint URL for a chat call."""

    def build_headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_params(self, config: ProviderConfig) -> Dict[str, str]:
        return {}

    @abstractmethod
    def build_payload(self, request: ChatRequest, config: ProviderConfig) -> Dict[str, Any]:
        """JSON body for a chat call. Must be a pure function of its inputs."""

    @abstractmethod
    def extract_reply(self, data: Dict[str, Any]) -> ChatResult:
        """Pull the reply text out of a successful response envelope."""

    async def chat(
        self,
        request: ChatRequest,
        config: ProviderConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> ChatResult:
        """Send one chat request and return the normalized reply text.

        Raises:
            ProviderError: on non-2xx status, transport failure or an unexpected envelope
        """
        name = self.provider.display_name
        url = self.build_url(config)
        logger.debug(f"{name} chat request: model={config.model}, json_mode={request.json_mode}")

        try:
            if session is not None:
                data = await self._post(session, url, request, config)
            else:
                async with aiohttp.ClientSession(timeout=self.timeout) as own_session:
                    data = await self._post(own_session, url, request, config)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"{name} request failed: {exc}")
            raise ProviderError(name, f"request failed: {str(exc) or type(exc).__name__}") from exc

        try:
            reply = self.extract_reply(data)
        except (KeyError, IndexError, TypeError) as exc:
            logger.error(f"{name} returned an unexpected response shape: {exc!r}")
            raise ProviderError(name, "unexpected response format") from exc

        if not isinstance(reply, str):
            raise ProviderError(name, "response contained no text")
        return reply

    async def _post(
        self,
        session: aiohttp.ClientSession,
        url: str,
        request: ChatRequest,
        config: ProviderConfig,
    ) -> Dict[str, Any]:
        async with session.post(
            url,
            headers=self.build_headers(config),
            params=self.build_params(config),
            json=self.build_payload(request, config),
        ) as response:
            if response.status >= 300:
                body = await response.text()
                message = extract_error_message(body) or self.fallback_error_message
                logger.warning(f"{self.provider.display_name} API error {response.status}: {message}")
                raise ProviderError(self.provider.display_name, message, status=response.status)
            try:
                return await response.json(content_type=None)
            except ValueError as exc:
                raise ProviderError(self.provider.display_name, "invalid JSON response") from exc


def extract_error_message(body: str) -> Optional[str]:
    """Return the vendor's own error message from a response body, if any.

    Handles {"error": {"message": ...}} (OpenAI, Claude, Gemini),
    {"error": "..."} (Ollama) and {"message": ...}.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        text = body.strip()
        return text[:500] if text else None

    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    if payload.get("message"):
        return str(payload["message"])
    return None
