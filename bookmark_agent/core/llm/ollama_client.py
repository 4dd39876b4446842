"""
Ollama Client

Calls a local Ollama server's non-streaming generate endpoint.
"""

from typing import List

from .base_client import BaseLLMClient


class OllamaClient(BaseLLMClient):
    """Ollama local server client."""

    provider_name = "ollama"
    display_name = "Ollama"
    default_model = "llama3.1"
    default_base_url = "http://localhost:11434"

    async def generate(self, prompt: str) -> str:
        payload = {"model": self.model, "prompt": prompt, "stream": False}
        data = await self._make_request(
            "POST", f"{self.base_url}/api/generate", data=payload
        )
        text = data.get("response") if isinstance(data, dict) else None
        return text if isinstance(text, str) else ""

    async def _fetch_model_names(self) -> List[str]:
        data = await self._make_request("GET", f"{self.base_url}/api/tags")
        names = []
        for entry in data.get("models") or []:
            entry = entry or {}
            names.append(entry.get("model") or entry.get("name"))
        return names
