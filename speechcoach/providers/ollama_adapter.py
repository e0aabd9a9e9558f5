"""Local Ollama chat adapter."""

from typing import Any, Dict

from .base import ChatAdapter, register_adapter
from ..models.chat import ChatRequest, ChatResult, Provider, ProviderConfig


@register_adapter
class OllamaAdapter(ChatAdapter):
    """POST {base}/api/chat against a local Ollama server, streaming disabled."""

    provider = Provider.OLLAMA
    default_base_url = "http://localhost:11434"
    fallback_error_message = "Ollama API error - make sure Ollama is running"

    def build_url(self, config: ProviderConfig) -> str:
        return f"{self.base_url(config)}/api/chat"

    def build_payload(self, request: ChatRequest, config: ProviderConfig) -> Dict[str, Any]:
        options: Dict[str, Any] = {"temperature": request.temperature}
        if request.max_tokens:
            options["num_predict"] = request.max_tokens
        payload: Dict[str, Any] = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_message},
            ],
            "stream": False,
            "options": options,
        }
        if request.json_mode:
            payload["format"] = "json"
        return payload

    def extract_reply(self, data: Dict[str, Any]) -> ChatResult:
        return data["message"]["content"]
