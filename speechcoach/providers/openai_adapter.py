"""OpenAI chat completions adapter."""

from typing import Any, Dict

from .base import ChatAdapter, register_adapter
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig


@register_adapter
class OpenAIAdapter(ChatAdapter):
    """POST {base}/chat/completions with a Bearer token."""

    provider = Provider.OPENAI
    default_base_url = "https://api.openai.com/v1"
    fallback_error_message = "OpenAI API error"

    def build_url(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}/chat/completions"

    def build_headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, request: ChatRequest, config: ProviderConfig) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_message},
            ],
            "temperature": request.temperature,
        }
        if request.max_tokens:
            payload["max_tokens"] = request.max_tokens
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def extract_reply(self, data: Dict[str, Any]) -> ChatResult:
        return data["choices"][0]["message"]["content"]
