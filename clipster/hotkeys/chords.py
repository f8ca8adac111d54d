"""Hotkey chord parsing and key-name normalization.

A chord is a frozenset of canonical key names, e.g. "ctrl+shift+space"
parses to {"ctrl", "shift", "space"}. Left/right modifier variants fold into
one name so either side satisfies the chord.
"""

from typing import Any, FrozenSet, Optional

Chord = FrozenSet[str]

MODIFIERS = frozenset({"ctrl", "shift", "alt", "cmd"})

# pynput Key names (and common spellings) -> canonical name
KEY_ALIASES = {
    "ctrl_l": "ctrl",
    "ctrl_r": "ctrl",
    "control": "ctrl",
    "shift_l": "shift",
    "shift_r": "shift",
    "alt_l": "alt",
    "alt_r": "alt",
    "alt_gr": "alt",
    "option": "alt",
    "cmd_l": "cmd",
    "cmd_r": "cmd",
    "super": "cmd",
    "win": "cmd",
    "return": "enter",
    "escape": "esc",
}

NAMED_KEYS = frozenset(
    {"space", "tab", "enter", "esc", "backspace", "delete", "insert", "home", "end",
     "page_up", "page_down", "up", "down", "left", "right", "caps_lock"}
    | {f"f{i}" for i in range(1, 21)}
)


def normalize_name(name: str) -> str:
    name = name.strip().lower().strip("<>")
    return KEY_ALIASES.get(name, name)


def parse_chord(text: str) -> Chord:
    """Parse "ctrl+shift+x" style text into a chord.

    Raises:
        ValueError: If a key name is unknown, the chord has no non-modifier
            key, or a key is repeated
    """
    parts = [normalize_name(part) for part in text.split("+")]
    if not parts or any(not part for part in parts):
        raise ValueError(f"Malformed hotkey: {text!r}")

    for part in parts:
        if part not in MODIFIERS and part not in NAMED_KEYS and len(part) != 1:
            raise ValueError(f"Unknown key {part!r} in hotkey {text!r}")

    chord = frozenset(parts)
    if len(chord) != len(parts):
        raise ValueError(f"Repeated key in hotkey {text!r}")
    if not chord - MODIFIERS:
        raise ValueError(f"Hotkey {text!r} needs a non-modifier key")
    return chord


def format_chord(chord: Chord) -> str:
    """Display form with modifiers first: Ctrl+Shift+Space."""
    order = ["ctrl", "alt", "shift", "cmd"]
    modifiers = [name for name in order if name in chord]
    others = sorted(chord - MODIFIERS)
    return "+".join(name.title() for name in modifiers + others)


def key_name(key: Any) -> Optional[str]:
    """Canonical name for a pynput key object, or None if it has none.

    Special keys (pynput ``Key`` members) carry a ``name``. Character keys
    (``KeyCode``) carry ``char`` and/or a virtual-key code; with Ctrl held
    some platforms report a control character instead of the letter, so the
    letter is recovered from the control code or the VK code.
    """
    name = getattr(key, "name", None)
    if isinstance(name, str):
        return normalize_name(name)

    char = getattr(key, "char", None)
    if char:
        code = ord(char)
        if 1 <= code <= 26:
            return chr(code + 96)
        if char.isprintable():
            return char.lower()

    vk = getattr(key, "vk", None)
    if isinstance(vk, int):
        if 65 <= vk <= 90:
            return chr(vk + 32)
        if 97 <= vk <= 122 or 48 <= vk <= 57:
            return chr(vk)
    return None
