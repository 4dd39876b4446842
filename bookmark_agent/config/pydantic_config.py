"""
Pydantic-based configuration for the Bookmark Agent.

Settings are grouped into the language model, storage and agent sections.
They are loaded from a TOML or JSON file, with API keys and the provider
also taken from environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import toml
from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from ..utils.error_handler import ConfigurationError

ProviderName = Literal["gemini", "openai", "grok", "ollama", "lmstudio"]

PLACEHOLDER_KEYS = (
    "your-gemini-api-key-here",
    "your-openai-api-key-here",
    "your-grok-api-key-here",
    "sk-placeholder",
)

# Environment variable -> LLMConfig field
ENV_API_KEYS = {
    "GEMINI_API_KEY": "gemini_api_key",
    "OPENAI_API_KEY": "openai_api_key",
    "XAI_API_KEY": "grok_api_key",
    "GROK_API_KEY": "grok_api_key",
}

ENV_PROVIDER = "BOOKMARK_AGENT_PROVIDER"


class LLMConfig(BaseModel):
    """Language model provider settings with secure API key handling."""

    provider: ProviderName = Field(
        default="gemini",
        description="Language model provider",
    )
    model: Optional[str] = Field(
        default=None,
        description="Model name (provider default when unset)",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Server base URL (provider default when unset)",
    )
    gemini_api_key: Optional[SecretStr] = Field(default=None, description="Gemini API key")
    openai_api_key: Optional[SecretStr] = Field(default=None, description="OpenAI API key")
    grok_api_key: Optional[SecretStr] = Field(default=None, description="xAI Grok API key")
    timeout: int = Field(
        default=60,
        ge=5,
        le=300,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum retry attempts",
    )

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("gemini_api_key", "openai_api_key", "grok_api_key", mode="before")
    @classmethod
    def validate_api_key_format(cls, v, info):
        """Reject placeholder values copied from the sample configuration."""
        if v is None or v == "":
            return None

        key_str = v.get_secret_value() if isinstance(v, SecretStr) else str(v)
        if key_str in PLACEHOLDER_KEYS:
            provider = info.field_name.replace("_api_key", "").title()
            raise ValueError(
                f"Please replace the placeholder API key with your actual "
                f"{provider} API key."
            )
        return SecretStr(key_str)

    def get_api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """Secret value of the API key for a provider (default: the selected one)."""
        secret = getattr(self, f"{provider or self.provider}_api_key", None)
        return secret.get_secret_value() if secret else None


class StorageConfig(BaseModel):
    """Where the bookmark collection lives."""

    backend: Literal["memory", "json"] = Field(
        default="json",
        description="Repository backend",
    )
    path: Path = Field(
        default=Path("bookmarks.json"),
        description="JSON repository file",
    )

    @field_validator("path", mode="before")
    @classmethod
    def validate_path(cls, v):
        """Ensure the path is a Path object."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class AgentConfig(BaseModel):
    """Agent behaviour settings."""

    stack_plans: bool = Field(
        default=True,
        description="Stack successive plans until a reset",
    )
    check_urls: bool = Field(
        default=False,
        description="Check URL reachability after loading bookmarks",
    )
    url_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="URL check timeout in seconds",
    )


class AppConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def validate_storage_path(self):
        """A JSON backend needs a file, not a directory."""
        if self.storage.backend == "json" and self.storage.path.is_dir():
            raise ValueError(
                f"Storage path {self.storage.path} is a directory; expected a JSON file"
            )
        return self


class ConfigurationManager:
    """Manages loading and validation of configuration from multiple sources."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file (TOML or JSON)

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        self._config: Optional[AppConfig] = None
        self._load_configuration(Path(config_path) if config_path else None)

    def _get_default_config_paths(self) -> list:
        """Get list of default configuration file paths to try."""
        cwd = Path.cwd()
        return [
            cwd / "bookmark_agent.toml",
            cwd / "bookmark_agent.json",
            Path.home() / ".config" / "bookmark-agent" / "config.toml",
        ]

    def _load_configuration(self, config_path: Optional[Path] = None) -> None:
        config_data: Dict[str, Any] = {}

        try:
            if config_path:
                config_data = self._load_config_file(config_path)
            else:
                for path in self._get_default_config_paths():
                    if path.exists():
                        config_data = self._load_config_file(path)
                        break
        except (FileNotFoundError, ValueError) as e:
            raise ConfigurationError(format_config_error(e)) from e

        self._load_env_overrides(config_data)

        try:
            self._config = AppConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(format_config_error(e)) from e

    def _load_config_file(self, config_path: Path) -> Dict:
        """Load configuration from TOML or JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(
                2, "Configuration file not found", str(config_path)
            )

        suffix = config_path.suffix.lower()
        if suffix not in (".toml", ".json"):
            raise ValueError(f"Unsupported configuration file format: {suffix}")

        try:
            if suffix == ".toml":
                return toml.load(config_path)
            with open(config_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, toml.TomlDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load configuration from {config_path}: {e}")

    def _load_env_overrides(self, config_data: Dict) -> None:
        """Fill API keys and the provider from environment variables."""
        llm = config_data.setdefault("llm", {})

        for env_name, field_name in ENV_API_KEYS.items():
            value = os.getenv(env_name)
            if value and not llm.get(field_name):
                llm[field_name] = value

        provider = os.getenv(ENV_PROVIDER)
        if provider and "provider" not in llm:
            llm["provider"] = provider

    def update_from_cli_args(self, args: Dict[str, Any]) -> None:
        """
        Update configuration from command-line arguments.

        Only keys with a non-None value override the loaded configuration.
        """
        if not self._config:
            raise RuntimeError("Configuration not loaded")

        config_dict = self._config.model_dump()

        if args.get("provider"):
            config_dict["llm"]["provider"] = args["provider"]
        if args.get("model"):
            config_dict["llm"]["model"] = args["model"]
        if args.get("base_url"):
            config_dict["llm"]["base_url"] = args["base_url"]
        if args.get("store"):
            config_dict["storage"]["backend"] = "json"
            config_dict["storage"]["path"] = args["store"]
        if args.get("check_urls") is not None:
            config_dict["agent"]["check_urls"] = args["check_urls"]
        if args.get("no_stack"):
            config_dict["agent"]["stack_plans"] = False
        if args.get("verbose"):
            config_dict["log_level"] = "DEBUG"

        try:
            self._config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(format_config_error(e)) from e

    @property
    def config(self) -> AppConfig:
        """Get the current configuration."""
        if not self._config:
            raise RuntimeError("Configuration not loaded")
        return self._config

    def get_api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """Get API key for provider, returning the actual secret value."""
        return self.config.llm.get_api_key(provider)

    def create_sample_config(self, output_path: Path) -> None:
        """Create a sample TOML configuration file."""
        sample_config = {
            "log_level": "INFO",
            "llm": {
                "provider": "gemini",
                "timeout": 60,
                "max_retries": 2,
                # API keys are better kept in the environment
                "gemini_api_key": "your-gemini-api-key-here",
            },
            "storage": {"backend": "json", "path": "bookmarks.json"},
            "agent": {"stack_plans": True, "check_urls": False},
        }
        with open(output_path, "w", encoding="utf-8") as f:
            toml.dump(sample_config, f)


def _format_location(location: tuple) -> str:
    if not location:
        return "Configuration"
    return " -> ".join(str(part) if isinstance(part, str) else f"[{part}]" for part in location)


def format_validation_error(error: ValidationError) -> str:
    """Convert a pydantic ValidationError into a readable message."""
    lines = []
    for detail in error.errors():
        location = _format_location(detail["loc"])
        error_type = detail["type"]
        input_value = detail.get("input", "N/A")
        ctx = detail.get("ctx") or {}

        if error_type == "missing":
            lines.append(f"  - {location}: Required field is missing")
        elif error_type == "literal_error":
            lines.append(
                f"  - {location}: Must be one of {ctx.get('expected', 'valid option')} "
                f"(got: {input_value})"
            )
        elif error_type in ("greater_than_equal", "less_than_equal", "greater_than", "less_than"):
            operator = {
                "greater_than_equal": ">=",
                "less_than_equal": "<=",
                "greater_than": ">",
                "less_than": "<",
            }[error_type]
            limit = next(iter(ctx.values()), "limit")
            lines.append(f"  - {location}: Value must be {operator} {limit} (got: {input_value})")
        else:
            lines.append(f"  - {location}: {detail.get('msg', 'Invalid value')}")

    return "Configuration validation failed:\n" + "\n".join(lines)


def format_config_error(error: Exception) -> str:
    """
    Format any configuration-related error into a user-friendly message.

    Args:
        error: Exception that occurred during configuration

    Returns:
        Formatted error message
    """
    if isinstance(error, ValidationError):
        return format_validation_error(error)
    if isinstance(error, FileNotFoundError):
        return (
            f"Configuration file not found: {error.filename}\n"
            "Omit --config to use defaults, or check the path."
        )
    return f"Configuration error: {error}"
