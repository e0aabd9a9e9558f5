"""Multi-provider chat gateway."""

from .base import ChatAdapter, register_adapter, get_adapter_class, extract_error_message
from .openai_adapter import OpenAIAdapter
from .claude_adapter import ClaudeAdapter
from .gemini_adapter import GeminiAdapter
from .ollama_adapter import OllamaAdapter
from .dispatcher import ChatDispatcher

__all__ = [
    "ChatAdapter",
    "register_adapter",
    "get_adapter_class",
    "extract_error_message",
    "OpenAIAdapter",
    "ClaudeAdapter",
    "GeminiAdapter",
    "OllamaAdapter",
    "ChatDispatcher",
]
