"""
Plan Parser

Extracts a list of action steps from free-form language model output.
Models wrap their JSON in markdown fences, return it bare, or (when a
client passes the provider payload through) bury it inside a provider
response envelope. All three shapes are accepted.
"""

import json
import logging
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from ...utils.error_handler import PlanParseError
from .actions import ActionStep

logger = logging.getLogger(__name__)

# ```json ... ```, a fence with any other language tag, or a bare ``` fence
FENCE_PATTERN = re.compile(r"```[a-zA-Z]*\n?([\s\S]*?)\n?```")

MAX_ENVELOPE_DEPTH = 3


def extract_json_text(text: Optional[str]) -> Optional[str]:
    """
    Pull the JSON payload out of model text.

    Args:
        text: Raw model output

    Returns:
        The fenced block content, the trimmed text when it already looks
        like a JSON object or array, or None
    """
    if not text:
        return None

    match = FENCE_PATTERN.search(text)
    if match:
        return match.group(1)

    trimmed = text.strip()
    if (trimmed.startswith("{") and trimmed.endswith("}")) or (
        trimmed.startswith("[") and trimmed.endswith("]")
    ):
        return trimmed
    return None


def envelope_text(payload: Any) -> Optional[str]:
    """
    Find the generated text inside a provider response envelope.

    Understands Gemini, OpenAI-compatible and Ollama payloads plus a bare
    ``text``/``content`` object.
    """
    if not isinstance(payload, dict):
        return None

    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
        if isinstance(text, str):
            return text
    except (KeyError, IndexError, TypeError):
        pass

    try:
        text = payload["choices"][0]["message"]["content"]
        if isinstance(text, str):
            return text
    except (KeyError, IndexError, TypeError):
        pass

    for key in ("response", "text", "content"):
        value = payload.get(key)
        if isinstance(value, str):
            return value

    return None


class PlanParser:
    """Turns raw model output into validated action steps."""

    def __init__(self, max_depth: int = MAX_ENVELOPE_DEPTH):
        self.max_depth = max_depth
        self.logger = logging.getLogger(__name__)

    def parse(self, raw_text: Optional[str]) -> List[ActionStep]:
        """
        Parse model output into a plan.

        Args:
            raw_text: Text returned by the language model

        Returns:
            Non-empty list of action steps in the order the model gave them

        Raises:
            PlanParseError: If no valid step can be extracted
        """
        if raw_text is None or not str(raw_text).strip():
            raise PlanParseError("No valid response from LLM.", raw_text)

        decoded = self._decode(str(raw_text), depth=0)
        steps = self._to_steps(decoded)

        if not steps:
            raise PlanParseError("Unable to interpret agent response.", raw_text)

        self.logger.debug(f"Parsed {len(steps)} action step(s)")
        return steps

    def _decode(self, text: str, depth: int) -> Any:
        candidate = extract_json_text(text) or text
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError as e:
            inner = self._unwrap(text, depth)
            if inner is None:
                raise PlanParseError(
                    f"Agent response is not valid JSON: {e.msg}", text
                ) from e
            return self._decode(inner, depth + 1)

        # A decoded provider envelope carries the plan one level down
        if isinstance(decoded, dict) and "action" not in decoded:
            inner = envelope_text(decoded)
            if inner is not None and depth < self.max_depth:
                return self._decode(inner, depth + 1)

        return decoded

    def _unwrap(self, text: str, depth: int) -> Optional[str]:
        if depth >= self.max_depth:
            return None
        try:
            wrapper = json.loads(text.strip())
        except json.JSONDecodeError:
            return None
        return envelope_text(wrapper)

    def _to_steps(self, decoded: Any) -> List[ActionStep]:
        items = decoded if isinstance(decoded, list) else [decoded]
        steps = []
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get("action"), str):
                self.logger.debug(f"Dropping malformed step: {item!r}")
                continue
            try:
                steps.append(ActionStep.model_validate(item))
            except ValidationError as e:
                self.logger.debug(f"Dropping invalid step {item!r}: {e}")
        return steps
