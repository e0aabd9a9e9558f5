"""Anthropic Claude messages adapter."""

from typing import Any, Dict

from .base import ChatAdapter, register_adapter
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


@register_adapter
class ClaudeAdapter(ChatAdapter):
    """POST {base}/messages with x-api-key; the system prompt is a top-level field."""

    provider = Provider.CLAUDE
    default_base_url = "https://api.anthropic.com/v1"
    fallback_error_message = "Claude API error"

    def build_url(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}/messages"

    def build_headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {
            "x-api-key": config.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def build_payload(self, request: ChatRequest, config: ProviderConfig) -> Dict[str, Any]:
        return {
            "model": config.model,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "system": request.system_prompt,
            "messages": [{"role": "user", "content": request.user_message}],
            "temperature": request.temperature,
        }

    def extract_reply(self, data: Dict[str, Any]) -> ChatResult:
        return data["content"][0]["text"]
