"""Common chat backend interface and shared aiohttp request handling."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import aiohttp

from ..errors import ChatError
from ..models.chat import Message

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
ERROR_BODY_LIMIT = 500


class ChatBackend(ABC):
    """A chat-capable AI backend.

    The session controller only depends on chat(); each subclass translates
    the uniform message list into its provider's HTTP API.
    """

    def __init__(self,
                 api_key: str,
                 model: str,
                 base_url: str,
                 temperature: float = 0.7,
                 max_tokens: int = 1000,
                 timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
                 connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS):
        """Initialize chat backend.

        Args:
            api_key: Provider API key
            model: Model identifier sent with each request
            base_url: API root, without trailing slash
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the response
            timeout_seconds: Upper bound for one whole request
            connect_timeout_seconds: Upper bound for establishing the connection
        """
        if not api_key:
            raise ValueError(f"{self.__class__.__name__} requires an API key")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds, connect=connect_timeout_seconds)

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Human-readable name used in logs and errors."""
        pass

    @abstractmethod
    async def chat(self, messages: Sequence[Message]) -> str:
        """Send a conversation and return the assistant's text.

        Raises:
            ChatError: On network failure, timeout, non-success status or a
                malformed response
        """
        pass

    async def generate(self, prompt: str) -> str:
        """Single-turn convenience wrapper around chat()."""
        return await self.chat([Message(role="user", content=prompt)])

    def with_model(self, model: str) -> "ChatBackend":
        self.model = model
        return self

    def with_temperature(self, temperature: float) -> "ChatBackend":
        self.temperature = temperature
        return self

    def with_max_tokens(self, max_tokens: int) -> "ChatBackend":
        self.max_tokens = max_tokens
        return self

    async def _post_json(self, url: str, headers: Dict[str, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON response."""
        logger.debug(f"{self.service_name}: POST {url} (model={self.model})")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, headers=headers, json=payload) as response:
                    if response.status < 200 or response.status >= 300:
                        error_text = await response.text()
                        raise ChatError(
                            f"{self.service_name} API error {response.status}: {error_text[:ERROR_BODY_LIMIT]}",
                            status=response.status,
                            body=error_text,
                        )
                    try:
                        return await response.json(content_type=None)
                    except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                        raise ChatError(f"{self.service_name} returned malformed JSON: {e}",
                                        status=response.status) from e
        except asyncio.TimeoutError as e:
            raise ChatError(f"{self.service_name} request timed out after {self.timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise ChatError(f"{self.service_name} request failed: {e}") from e

    def _missing_content(self, body: Optional[Dict[str, Any]]) -> ChatError:
        return ChatError(f"No response from {self.service_name} API", body=json.dumps(body)[:ERROR_BODY_LIMIT])


def messages_to_dicts(messages: Sequence[Message]) -> List[Dict[str, str]]:
    return [message.to_dict() for message in messages]
