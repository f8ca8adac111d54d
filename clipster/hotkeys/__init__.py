"""Global hotkey handling for Clipster."""

from .chords import Chord, format_chord, key_name, parse_chord
from .listener import HotkeyListener
from .publisher import HOTKEY_TOPIC, HotkeyPublisher

__all__ = [
    "Chord",
    "format_chord",
    "key_name",
    "parse_chord",
    "HotkeyListener",
    "HOTKEY_TOPIC",
    "HotkeyPublisher",
]
