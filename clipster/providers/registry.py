"""Provider discovery and hotkey bindings.

To add a new provider:
1. Implement a ChatBackend subclass (or reuse OpenAICompatibleBackend)
2. Add a ProviderSpec to PROVIDER_SPECS below
"""

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from .anthropic_backend import ANTHROPIC_BASE_URL, DEFAULT_ANTHROPIC_MODEL, AnthropicBackend
from .base import ChatBackend
from .openai_backend import OPENAI_BASE_URL, XAI_BASE_URL, OpenAICompatibleBackend
from ..errors import StartupError
from ..hotkeys.chords import Chord, parse_chord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of a supported provider."""
    id: str                    # Config identifier and hotkey id (e.g., "anthropic")
    name: str                  # Display name (e.g., "Anthropic (Claude)")
    env_var: str               # Credential that enables the provider
    hotkey: str                # Default chord, e.g. "ctrl+shift+space"
    hotkey_display: str        # How the chord is shown to the user
    default_model: str
    default_base_url: str
    factory: Callable[..., ChatBackend]  # (api_key, model, base_url, **options) -> backend


@dataclass(frozen=True)
class ProviderBinding:
    """A configured backend bound to its hotkey chord."""
    provider_id: str
    name: str
    hotkey: Chord
    hotkey_display: str
    backend: ChatBackend


def _create_anthropic(api_key: str, model: str, base_url: str, **options) -> ChatBackend:
    return AnthropicBackend(api_key, model=model, base_url=base_url, **options)


def _create_openai(api_key: str, model: str, base_url: str, **options) -> ChatBackend:
    return OpenAICompatibleBackend(api_key, model=model, base_url=base_url,
                                   uses_completion_tokens=True, service_name="OpenAI", **options)


def _create_xai(api_key: str, model: str, base_url: str, **options) -> ChatBackend:
    return OpenAICompatibleBackend(api_key, model=model, base_url=base_url,
                                   uses_completion_tokens=False, service_name="xAI", **options)


# ============================================================================
# PROVIDER SPECS - checked in this order at startup
# ============================================================================
PROVIDER_SPECS: List[ProviderSpec] = [
    ProviderSpec(
        id="anthropic",
        name="Anthropic (Claude)",
        env_var="ANTHROPIC_API_KEY",
        hotkey="ctrl+shift+space",
        hotkey_display="Ctrl+Shift+Space",
        default_model=DEFAULT_ANTHROPIC_MODEL,
        default_base_url=ANTHROPIC_BASE_URL,
        factory=_create_anthropic,
    ),
    ProviderSpec(
        id="openai",
        name="OpenAI (GPT)",
        env_var="OPENAI_API_KEY",
        hotkey="ctrl+alt+space",
        hotkey_display="Ctrl+Alt+Space",
        default_model="gpt-5.1",
        default_base_url=OPENAI_BASE_URL,
        factory=_create_openai,
    ),
    ProviderSpec(
        id="xai",
        name="xAI (Grok)",
        env_var="XAI_API_KEY",
        hotkey="ctrl+shift+x",
        hotkey_display="Ctrl+Shift+X",
        default_model="grok-4-latest",
        default_base_url=XAI_BASE_URL,
        factory=_create_xai,
    ),
]

DEFAULT_TEMPERATURE = 0.8
DEFAULT_MAX_TOKENS = 500


class ProviderRegistry:
    """Immutable map from hotkey id to provider binding, built once at startup."""

    def __init__(self, bindings: Sequence[ProviderBinding]):
        """Validate and freeze the bindings.

        Raises:
            StartupError: If there are no bindings, or two bindings share an
                id or a chord
        """
        if not bindings:
            raise StartupError("No AI providers configured")

        by_id: Dict[str, ProviderBinding] = {}
        chord_owners: Dict[Chord, str] = {}
        for binding in bindings:
            if binding.provider_id in by_id:
                raise StartupError(f"Provider '{binding.provider_id}' is bound twice")
            owner = chord_owners.get(binding.hotkey)
            if owner is not None:
                raise StartupError(
                    f"Hotkey {binding.hotkey_display} for '{binding.provider_id}' "
                    f"collides with '{owner}'")
            by_id[binding.provider_id] = binding
            chord_owners[binding.hotkey] = binding.provider_id

        self._bindings: Mapping[str, ProviderBinding] = MappingProxyType(by_id)
        logger.info(f"ProviderRegistry initialized with {len(by_id)} provider(s): {', '.join(by_id)}")

    @classmethod
    def from_environment(cls,
                         provider_config: Optional[Mapping[str, Any]] = None,
                         environ: Optional[Mapping[str, str]] = None,
                         specs: Sequence[ProviderSpec] = PROVIDER_SPECS,
                         timeout_seconds: Optional[float] = None,
                         connect_timeout_seconds: Optional[float] = None) -> "ProviderRegistry":
        """Bind every provider whose credential is present.

        Args:
            provider_config: Per-provider overrides keyed by provider id
                (model, temperature, max_tokens, hotkey, hotkey_display, base_url)
            environ: Environment to read credentials from (defaults to os.environ)
            specs: Providers to consider
            timeout_seconds: Total request timeout applied to every backend
            connect_timeout_seconds: Connect timeout applied to every backend

        Raises:
            StartupError: If no credentials are set or a chord is invalid or duplicated
        """
        environ = os.environ if environ is None else environ
        provider_config = provider_config or {}
        timeouts: Dict[str, float] = {}
        if timeout_seconds is not None:
            timeouts["timeout_seconds"] = timeout_seconds
        if connect_timeout_seconds is not None:
            timeouts["connect_timeout_seconds"] = connect_timeout_seconds

        bindings: List[ProviderBinding] = []
        for spec in specs:
            api_key = environ.get(spec.env_var, "").strip()
            if not api_key:
                logger.debug(f"{spec.env_var} not set - skipping {spec.name}")
                continue

            overrides = provider_config.get(spec.id) or {}
            chord_text = overrides.get("hotkey", spec.hotkey)
            try:
                chord = parse_chord(chord_text)
            except ValueError as e:
                raise StartupError(f"Invalid hotkey '{chord_text}' for {spec.name}: {e}") from e

            try:
                backend = spec.factory(
                    api_key,
                    model=overrides.get("model", spec.default_model),
                    base_url=overrides.get("base_url", spec.default_base_url),
                    temperature=float(overrides.get("temperature", DEFAULT_TEMPERATURE)),
                    max_tokens=int(overrides.get("max_tokens", DEFAULT_MAX_TOKENS)),
                    **timeouts,
                )
            except (ValueError, TypeError) as e:
                logger.error(f"{spec.name} key found but failed to initialize: {e}")
                continue

            display = overrides.get("hotkey_display") or (
                spec.hotkey_display if chord_text == spec.hotkey else chord_text.title())
            bindings.append(ProviderBinding(
                provider_id=spec.id,
                name=spec.name,
                hotkey=chord,
                hotkey_display=display,
                backend=backend,
            ))
            logger.info(f"Provider enabled: {spec.name} on {display} (model={backend.model})")

        if not bindings:
            env_vars = ", ".join(spec.env_var for spec in specs)
            raise StartupError(f"No AI API keys found. Please set {env_vars}")

        return cls(bindings)

    def lookup(self, hotkey_id: str) -> Optional[ProviderBinding]:
        """Return the binding for a fired hotkey id, or None if unknown."""
        return self._bindings.get(hotkey_id)

    @property
    def bindings(self) -> Mapping[str, ProviderBinding]:
        return self._bindings

    def register_hotkeys(self, listener) -> None:
        """Register every binding's chord with the hotkey listener.

        Raises:
            HotkeyRegistrationError: If the listener refuses a chord
        """
        for binding in self._bindings.values():
            listener.register(binding.provider_id, binding.hotkey)
            logger.debug(f"Registered {binding.hotkey_display} -> {binding.provider_id}")

    def __iter__(self) -> Iterator[ProviderBinding]:
        return iter(self._bindings.values())

    def __len__(self) -> int:
        return len(self._bindings)
