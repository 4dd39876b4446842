"""
API Key Validation Module

Validates API keys for the language model providers without exposing them in
logs or errors.
"""

import logging
import re
from typing import Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class APIKeyValidator:
    """Validates API keys for the hosted language model providers."""

    # Key patterns for basic format validation
    KEY_PATTERNS = {
        "gemini": {
            "pattern": r"^AIza[\w\-]{35}$",
            "min_length": 39,
            "prefix": "AIza",
        },
        "openai": {
            "pattern": r"^sk-[\w\-]{20,}$",
            "min_length": 23,
            "prefix": "sk-",
        },
        "grok": {
            "pattern": r"^xai-[\w\-]{20,}$",
            "min_length": 24,
            "prefix": "xai-",
        },
    }

    # Local servers take no key at all
    KEYLESS_PROVIDERS = ("ollama", "lmstudio")

    @classmethod
    def requires_key(cls, provider: str) -> bool:
        """Whether the provider needs an API key to be useful."""
        return provider not in cls.KEYLESS_PROVIDERS

    @classmethod
    def validate_format(
        cls, provider: str, api_key: Optional[str]
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate API key format for a provider.

        Args:
            provider: Provider name (gemini, openai, grok)
            api_key: API key to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        if provider in cls.KEYLESS_PROVIDERS:
            return True, None

        if not api_key:
            return False, "API key is empty"

        if provider not in cls.KEY_PATTERNS:
            return False, f"Unknown provider: {provider}"

        pattern_info = cls.KEY_PATTERNS[provider]

        if len(api_key) < pattern_info["min_length"]:
            return (
                False,
                f"API key too short (minimum {pattern_info['min_length']} characters)",
            )

        if not api_key.startswith(pattern_info["prefix"]):
            return False, f"API key should start with '{pattern_info['prefix']}'"

        if not re.match(pattern_info["pattern"], api_key):
            return False, "API key format is invalid"

        return True, None

    @classmethod
    def sanitize_for_logging(cls, api_key: str) -> str:
        """
        Sanitize API key for safe logging.

        Args:
            api_key: API key to sanitize

        Returns:
            Sanitized version showing only first/last few characters
        """
        if not api_key or len(api_key) < 10:
            return "***"

        # Show first 6 and last 3 characters
        return f"{api_key[:6]}...{api_key[-3:]}"

    @classmethod
    def mask_in_error_message(cls, message: str, api_keys: Iterable[str]) -> str:
        """
        Mask any API keys that might appear in error messages.

        Args:
            message: Error message that might contain API keys
            api_keys: API keys to mask

        Returns:
            Message with API keys masked
        """
        masked_message = message
        for key in api_keys:
            if key and key in masked_message:
                masked_message = masked_message.replace(
                    key, cls.sanitize_for_logging(key)
                )
        return masked_message
