"""Anthropic Messages API backend."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .base import ChatBackend, messages_to_dicts
from ..models.chat import Message

logger = logging.getLogger(__name__)

ANTHROPIC_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5-20251001"


class AnthropicBackend(ChatBackend):
    """Claude via the Messages API.

    The Messages API takes the system prompt as a top-level field rather
    than as a message, so system turns are lifted out of the list.
    """

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL,
                 base_url: str = ANTHROPIC_BASE_URL, **kwargs):
        super().__init__(api_key, model, base_url, **kwargs)
        self.temperature = _clamp_temperature(self.temperature)

    @property
    def service_name(self) -> str:
        return "Anthropic"

    def with_temperature(self, temperature: float) -> "AnthropicBackend":
        self.temperature = _clamp_temperature(temperature)
        return self

    def build_payload(self, messages: Sequence[Message]) -> Dict[str, Any]:
        system: Optional[str] = None
        conversation: List[Message] = []
        for message in messages:
            if message.role == "system":
                system = message.content
            else:
                conversation.append(message)

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages_to_dicts(conversation),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if system is not None:
            payload["system"] = system
        return payload

    async def chat(self, messages: Sequence[Message]) -> str:
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        body = await self._post_json(f"{self.base_url}/v1/messages", headers, self.build_payload(messages))

        try:
            return body["content"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise self._missing_content(body)


def _clamp_temperature(temperature: float) -> float:
    return min(max(temperature, 0.0), 1.0)
