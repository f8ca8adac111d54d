"""Chat message models shared by all backends."""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass(frozen=True)
class Message:
    """A single chat turn."""
    role: str  # "system" | "user" | "assistant"
    content: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
