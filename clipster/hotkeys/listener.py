"""Global push-to-talk hotkey detection."""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Set

from .chords import Chord, format_chord, key_name, parse_chord
from ..errors import HotkeyRegistrationError
from ..models.events import HotkeyEvent, HotkeyState

logger = logging.getLogger(__name__)


class HotkeyListener:
    """Tracks held keys and reports press/release edges for registered chords.

    A chord is "pressed" when every key in it is held and "released" as soon
    as any of its keys comes up. Key auto-repeat never produces a second
    press while the chord stays down.
    """

    def __init__(self,
                 callback: Callable[[HotkeyEvent], None],
                 listener_factory: Optional[Callable[..., Any]] = None):
        """Initialize hotkey listener.

        Args:
            callback: Receives every HotkeyEvent (e.g. HotkeyPublisher.publish_hotkey_event)
            listener_factory: Factory for the OS keyboard listener (for testing);
                defaults to pynput.keyboard.Listener
        """
        self.callback = callback
        self._listener_factory = listener_factory
        self.chords: Dict[str, Chord] = {}
        self.pressed_keys: Set[str] = set()
        self.active: Set[str] = set()
        self.listener: Any = None
        self.lock = threading.Lock()

    def register(self, binding_id: str, chord: Any) -> None:
        """Register a chord for a binding id.

        Args:
            binding_id: Identifier reported in HotkeyEvents
            chord: Parsed Chord or chord text such as "ctrl+shift+space"

        Raises:
            HotkeyRegistrationError: If the chord is invalid or already claimed
        """
        if isinstance(chord, str):
            try:
                chord = parse_chord(chord)
            except ValueError as e:
                raise HotkeyRegistrationError(str(e)) from e

        if binding_id in self.chords:
            raise HotkeyRegistrationError(f"Hotkey id '{binding_id}' is already registered")
        for other_id, other_chord in self.chords.items():
            if other_chord == chord:
                raise HotkeyRegistrationError(
                    f"{format_chord(chord)} is already registered for '{other_id}'")

        self.chords[binding_id] = frozenset(chord)
        logger.info(f"Registered hotkey {format_chord(chord)} for '{binding_id}'")

    def start(self) -> None:
        """Start listening for keyboard events system-wide.

        Raises:
            HotkeyRegistrationError: If the platform keyboard hook cannot be installed
        """
        if self.listener is not None:
            return

        try:
            factory = self._listener_factory
            if factory is None:
                # Imported here: pynput needs a display server at import time
                from pynput import keyboard
                factory = keyboard.Listener
            self.listener = factory(on_press=self._on_press, on_release=self._on_release)
            self.listener.start()
        except Exception as e:
            self.listener = None
            raise HotkeyRegistrationError(f"Could not start global hotkey listener: {e}") from e

        logger.info(f"Hotkey listener started ({len(self.chords)} chord(s))")

    def stop(self) -> None:
        """Stop listening."""
        if self.listener is not None:
            self.listener.stop()
            self.listener = None
            logger.info("Hotkey listener stopped")

    def _on_press(self, key: Any) -> None:
        name = key_name(key)
        if name is None:
            return

        events = []
        with self.lock:
            self.pressed_keys.add(name)
            for binding_id, chord in self.chords.items():
                if binding_id not in self.active and chord <= self.pressed_keys:
                    self.active.add(binding_id)
                    events.append(HotkeyEvent(binding_id, HotkeyState.PRESSED))

        self._emit(events)

    def _on_release(self, key: Any) -> None:
        name = key_name(key)
        if name is None:
            return

        events = []
        with self.lock:
            self.pressed_keys.discard(name)
            for binding_id in list(self.active):
                if name in self.chords[binding_id]:
                    self.active.discard(binding_id)
                    events.append(HotkeyEvent(binding_id, HotkeyState.RELEASED))

        self._emit(events)

    def _emit(self, events) -> None:
        # Outside the lock: the callback may publish to other threads
        for event in events:
            try:
                self.callback(event)
            except Exception as e:
                logger.error(f"Error delivering hotkey event {event}: {e}", exc_info=True)
