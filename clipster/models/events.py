"""Event models for the pub/sub hotkey and session topics."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class HotkeyState(Enum):
    """Edge reported by the hotkey listener."""
    PRESSED = "pressed"
    RELEASED = "released"


@dataclass(frozen=True)
class HotkeyEvent:
    """A chord for a registered binding went down or came up."""
    binding_id: str
    state: HotkeyState
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def is_press(self) -> bool:
        return self.state is HotkeyState.PRESSED


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_type: str  # "started", "completed", "skipped", "failed", "ignored"
    provider_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
