"""Resolution of the active AI provider from a settings snapshot."""

import logging
from dataclasses import dataclass
from typing import Optional

from . import SpeechCoachConfig
from ..errors import ConfigError
from ..models.chat import Provider, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    Provider.OPENAI: "gpt-4o-mini",
    Provider.CLAUDE: "claude-3-5-sonnet-20241022",
    Provider.GEMINI: "gemini-1.5-flash",
    Provider.OLLAMA: "llama3.2",
}

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"


@dataclass(frozen=True)
class AppSettings:
    """Read-only snapshot of the persisted user settings."""
    provider: str = "openai"
    openai_api_key: Optional[str] = None
    claude_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    ollama_base_url: Optional[str] = None
    selected_model: Optional[str] = None
    theme: str = "light"
    language: str = "en"

    @classmethod
    def from_config(cls, config: SpeechCoachConfig) -> "AppSettings":
        return cls(
            provider=config.get('ai.provider', 'openai'),
            openai_api_key=config.get('ai.openai_api_key'),
            claude_api_key=config.get('ai.claude_api_key'),
            gemini_api_key=config.get('ai.gemini_api_key'),
            ollama_base_url=config.get('ai.ollama_base_url'),
            selected_model=config.get('ai.model'),
            theme=config.get('ui.theme', 'light'),
            language=config.get('ui.language', 'en'),
        )

    def current_api_key(self) -> Optional[str]:
        """API key of the selected provider (None for Ollama)."""
        return {
            "openai": self.openai_api_key,
            "claude": self.claude_api_key,
            "gemini": self.gemini_api_key,
        }.get((self.provider or "").strip().lower())


def parse_provider(name: str) -> Provider:
    try:
        return Provider((name or "").strip().lower())
    except ValueError:
        raise ConfigError(f"Unsupported provider: {name}") from None


def resolve_provider_config(settings: AppSettings) -> ProviderConfig:
    """Build a fully populated ProviderConfig for the selected provider.

    Raises:
        ConfigError: if the provider is unknown or its API key is missing.
    """
    provider = parse_provider(settings.provider)
    model = settings.selected_model or DEFAULT_MODELS[provider]

    if provider is Provider.OLLAMA:
        return ProviderConfig(
            provider=provider,
            model=model,
            base_url=(settings.ollama_base_url or DEFAULT_OLLAMA_BASE_URL).rstrip("/"),
        )

    api_key = settings.current_api_key()
    if not api_key:
        raise ConfigError(
            f"missing credential: API key for {provider.display_name} is not configured. "
            f"Please set it in Settings."
        )

    logger.debug(f"Resolved provider {provider.value} with model {model}")
    return ProviderConfig(provider=provider, model=model, api_key=api_key)
