"""
Language Model Client Factory

Creates the client for a provider name. Unknown or empty provider names
fall back to Gemini.
"""

import logging
from typing import Any, Dict, Optional, Type

from .base_client import BaseLLMClient
from .gemini_client import GeminiClient
from .ollama_client import OllamaClient
from .openai_client import GrokClient, LMStudioClient, OpenAIClient

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "gemini"

# Registry of available providers
LLM_PROVIDERS: Dict[str, Type[BaseLLMClient]] = {
    "gemini": GeminiClient,
    "openai": OpenAIClient,
    "grok": GrokClient,
    "ollama": OllamaClient,
    "lmstudio": LMStudioClient,
}


def resolve_provider(provider: Optional[str]) -> str:
    """Normalize a provider name, falling back to the default."""
    name = (provider or "").strip().lower()
    if name not in LLM_PROVIDERS:
        if name:
            logger.warning(f"Unknown LLM provider {provider!r}, using {DEFAULT_PROVIDER}")
        return DEFAULT_PROVIDER
    return name


def create_llm(provider: Optional[str] = DEFAULT_PROVIDER, **options: Any) -> BaseLLMClient:
    """
    Create a language model client.

    Args:
        provider: Provider name (gemini, openai, grok, ollama, lmstudio)
        **options: Client options (api_key, model, base_url, timeout,
            max_retries, transport); None values are ignored

    Returns:
        Configured client
    """
    client_class = LLM_PROVIDERS[resolve_provider(provider)]
    kwargs = {k: v for k, v in options.items() if v is not None}
    return client_class(**kwargs)


def create_llm_from_config(llm_config, **overrides: Any) -> BaseLLMClient:
    """
    Create a client from an LLMConfig.

    Args:
        llm_config: LLM configuration section
        **overrides: Options taking precedence over the configuration

    Returns:
        Configured client
    """
    options = {
        "api_key": llm_config.get_api_key(),
        "model": llm_config.model,
        "base_url": llm_config.base_url,
        "timeout": llm_config.timeout,
        "max_retries": llm_config.max_retries,
    }
    options.update(overrides)
    return create_llm(llm_config.provider, **options)
