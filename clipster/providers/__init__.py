"""AI chat providers for Clipster.

Usage:
    from clipster.providers import ProviderRegistry

    registry = ProviderRegistry.from_environment()
    binding = registry.lookup("anthropic")
    text = await binding.backend.chat(build_messages("list files by size"))
"""

from .anthropic_backend import AnthropicBackend
from .base import ChatBackend
from .openai_backend import OpenAICompatibleBackend
from .prompts import SYSTEM_PROMPT, build_messages, clean_response
from .registry import PROVIDER_SPECS, ProviderBinding, ProviderRegistry, ProviderSpec

__all__ = [
    "AnthropicBackend",
    "ChatBackend",
    "OpenAICompatibleBackend",
    "SYSTEM_PROMPT",
    "build_messages",
    "clean_response",
    "PROVIDER_SPECS",
    "ProviderBinding",
    "ProviderRegistry",
    "ProviderSpec",
]
