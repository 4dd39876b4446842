"""Configuration for the Bookmark Agent."""

from .pydantic_config import (
    AgentConfig,
    AppConfig,
    ConfigurationManager,
    LLMConfig,
    StorageConfig,
    format_config_error,
)

__all__ = [
    "AppConfig",
    "LLMConfig",
    "StorageConfig",
    "AgentConfig",
    "ConfigurationManager",
    "format_config_error",
]
