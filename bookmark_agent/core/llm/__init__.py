"""
Language Model Clients.

Every client exposes ``async generate(prompt) -> str`` and
``async list_models() -> list``.
"""

from .base_client import BaseLLMClient
from .factory import LLM_PROVIDERS, create_llm, create_llm_from_config
from .gemini_client import GeminiClient
from .ollama_client import OllamaClient
from .openai_client import GrokClient, LMStudioClient, OpenAIClient

__all__ = [
    "BaseLLMClient",
    "GeminiClient",
    "OpenAIClient",
    "GrokClient",
    "LMStudioClient",
    "OllamaClient",
    "LLM_PROVIDERS",
    "create_llm",
    "create_llm_from_config",
]
