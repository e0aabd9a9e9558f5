"""Chat gateway data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Provider(Enum):
    """Supported AI vendors."""
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"
    OLLAMA = "ollama"

    @property
    def display_name(self) -> str:
        return {
            Provider.OPENAI: "OpenAI",
            Provider.CLAUDE: "Claude",
            Provider.GEMINI: "Gemini",
            Provider.OLLAMA: "Ollama",
        }[self]

    @property
    def requires_api_key(self) -> bool:
        return self is not Provider.OLLAMA


@dataclass(frozen=True)
class ProviderConfig:
    """Fully resolved provider settings for a single dispatch."""
    provider: Provider
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None  # None means the vendor's public endpoint

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        masked = "***" if self.api_key else None
        return (f"ProviderConfig(provider={self.provider.value!r}, model={self.model!r}, "
                f"api_key={masked!r}, base_url={self.base_url!r})")


@dataclass(frozen=True)
class ChatRequest:
    """Normalized single-turn chat request."""
    system_prompt: str
    user_message: str
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    json_mode: bool = False


# Adapters always reduce the vendor envelope to the plain reply text
ChatResult = str
