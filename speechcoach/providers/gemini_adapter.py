"""Google Gemini generateContent adapter."""

from typing import Any, Dict

from .base import ChatAdapter, register_adapter
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig


@register_adapter
class GeminiAdapter(ChatAdapter):
    """POST {base}/models/{model}:generateContent?key=...

    Gemini has no system prompt field here, so system and user text are sent
    as a single part.
    """

    provider = Provider.GEMINI
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    fallback_error_message = "Gemini API error"

    def build_url(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}/models/{config.model}:generateContent"

    def build_params(self, config: ProviderConfig) -> Dict[str, str]:
        return {"key": config.api_key or ""}

    def build_payload(self, request: ChatRequest, config: ProviderConfig) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"temperature": request.temperature}
        if request.max_tokens:
            generation_config["maxOutputTokens"] = request.max_tokens
        return {
            "contents": [
                {
                    "parts": [{"text": f"{request.system_prompt}\n\nUser: {request.user_message}"}],
                },
            ],
            "generationConfig": generation_config,
        }

    def extract_reply(self, data: Dict[str, Any]) -> ChatResult:
        return data["candidates"][0]["content"]["parts"][0]["text"]
