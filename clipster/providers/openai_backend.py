"""OpenAI-compatible chat completions backend (OpenAI, xAI)."""

import logging
from typing import Any, Dict, Sequence

from .base import ChatBackend, messages_to_dicts
from ..models.chat import Message

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
XAI_BASE_URL = "https://api.x.ai/v1"


class OpenAICompatibleBackend(ChatBackend):
    """Any service speaking the /chat/completions wire format.

    Newer OpenAI models reject ``max_tokens`` and expect
    ``max_completion_tokens``; other compatible services still want the old
    field, selected with ``uses_completion_tokens``.
    """

    def __init__(self, api_key: str, model: str, base_url: str = OPENAI_BASE_URL,
                 uses_completion_tokens: bool = True, service_name: str = "OpenAI", **kwargs):
        super().__init__(api_key, model, base_url, **kwargs)
        self.uses_completion_tokens = uses_completion_tokens
        self._service_name = service_name

    @property
    def service_name(self) -> str:
        return self._service_name

    def build_payload(self, messages: Sequence[Message]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages_to_dicts(messages),
            "temperature": self.temperature,
        }
        if self.uses_completion_tokens:
            payload["max_completion_tokens"] = self.max_tokens
        else:
            payload["max_tokens"] = self.max_tokens
        return payload

    async def chat(self, messages: Sequence[Message]) -> str:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        body = await self._post_json(f"{self.base_url}/chat/completions", headers, self.build_payload(messages))

        try:
            content = body["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise self._missing_content(body)
        if content is None:
            raise self._missing_content(body)
        return content
