"""
OpenAI-Compatible Chat Clients

OpenAI, xAI Grok and LM Studio all speak the chat completions protocol;
they differ only in base URL, paths, authentication and message shape.
"""

from typing import Any, Dict, List

from .base_client import BaseLLMClient

SYSTEM_PROMPT = "You are a helpful assistant."


class OpenAICompatibleClient(BaseLLMClient):
    """Client for chat-completions style servers."""

    chat_path = "/chat/completions"
    models_path = "/models"
    include_system_message = True
    extra_body: Dict[str, Any] = {}

    def _get_auth_headers(self) -> Dict[str, str]:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    def _messages(self, prompt: str) -> List[Dict[str, str]]:
        messages = []
        if self.include_system_message:
            messages.append({"role": "system", "content": SYSTEM_PROMPT})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": self._messages(prompt),
            "temperature": 0,
            **self.extra_body,
        }
        data = await self._make_request(
            "POST", f"{self.base_url}{self.chat_path}", data=payload
        )
        return extract_message_content(data)

    async def _fetch_model_names(self) -> List[str]:
        data = await self._make_request("GET", f"{self.base_url}{self.models_path}")
        return [(entry or {}).get("id") for entry in data.get("data") or []]


class OpenAIClient(OpenAICompatibleClient):
    """OpenAI (ChatGPT) client."""

    provider_name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"
    fallback_models = ("gpt-4o", "gpt-4o-mini", "gpt-4.1", "gpt-3.5-turbo")


class GrokClient(OpenAICompatibleClient):
    """xAI Grok client."""

    provider_name = "grok"
    display_name = "Grok"
    default_model = "grok-beta"
    default_base_url = "https://api.x.ai/v1"
    fallback_models = ("grok-beta",)
    include_system_message = False


class LMStudioClient(OpenAICompatibleClient):
    """LM Studio local server client."""

    provider_name = "lmstudio"
    display_name = "LM Studio"
    default_model = "lmstudio-community/Meta-Llama-3-8B-Instruct-GGUF"
    default_base_url = "http://localhost:1234"
    chat_path = "/v1/chat/completions"
    models_path = "/v1/models"
    extra_body = {"stream": False}


def extract_message_content(data: Any) -> str:
    """Content of the first choice, or "" when absent."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""
