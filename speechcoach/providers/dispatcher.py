"""Provider-tag dispatch onto the registered chat adapters."""

import logging
from typing import Dict, Optional

import aiohttp

from .base import ChatAdapter, DEFAULT_TIMEOUT_SECONDS, get_adapter_class
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig

logger = logging.getLogger(__name__)


class ChatDispatcher:
    """Routes each request to the adapter for config.provider.

    Every call is single-turn and independent: no retries, no fallback to
    another provider and no conversation state.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize dispatcher.

        Args:
            timeout_seconds: Total timeout for a single vendor call
            session: Optional shared aiohttp session; adapters open their own when None
        """
        self.timeout_seconds = timeout_seconds
        self.session = session
        self._adapters: Dict[Provider, ChatAdapter] = {}

    def adapter_for(self, provider: Provider) -> ChatAdapter:
        adapter = self._adapters.get(provider)
        if adapter is None:
            adapter = get_adapter_class(provider)(timeout_seconds=self.timeout_seconds)
            self._adapters[provider] = adapter
        return adapter

    async def dispatch(self, request: ChatRequest, config: ProviderConfig) -> ChatResult:
        """Send request to the provider named by config.

        Raises:
            ConfigError: if no adapter is registered for the provider
            ProviderError: if the adapter call fails
        """
        adapter = self.adapter_for(config.provider)
        logger.info(f"Dispatching chat request to {config.provider.display_name} ({config.model})")
        return await adapter.chat(request, config, session=self.session)
