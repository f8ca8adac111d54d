"""Services layer for Clipster application logic."""

from .output_service import OutputService
from .session_controller import SESSION_TOPIC, SessionController

__all__ = [
    "OutputService",
    "SESSION_TOPIC",
    "SessionController",
]
