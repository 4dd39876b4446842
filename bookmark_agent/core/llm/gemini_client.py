"""
Google Gemini Client

Calls the Gemini generateContent REST endpoint. The API key is sent as the
``key`` query parameter.
"""

from typing import Any, Dict, List

from .base_client import BaseLLMClient


class GeminiClient(BaseLLMClient):
    """Gemini client."""

    provider_name = "gemini"
    display_name = "Gemini"
    default_model = "gemini-2.0-flash"
    default_base_url = "https://generativelanguage.googleapis.com"
    fallback_models = (
        "gemini-2.0-flash",
        "gemini-2.0-pro",
        "gemini-1.5-pro",
        "gemini-1.5-flash",
    )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def _key_params(self) -> Dict[str, str]:
        return {"key": self.api_key}

    async def generate(self, prompt: str) -> str:
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        data = await self._make_request(
            "POST", self.endpoint, data=payload, params=self._key_params()
        )
        return extract_text(data)

    async def _fetch_model_names(self) -> List[str]:
        data = await self._make_request(
            "GET", f"{self.base_url}/v1beta/models", params=self._key_params()
        )
        names = []
        for entry in data.get("models") or []:
            name = (entry or {}).get("name") or ""
            names.append(name.replace("models/", ""))
        return names


def extract_text(data: Any) -> str:
    """Text of the first candidate part, or "" when absent."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""
