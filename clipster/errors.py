"""Exception hierarchy for Clipster.

Startup errors abort the process before the event loop runs. Every other
error aborts at most one press or one pipeline run; the session controller
always returns to idle afterwards.
"""

from typing import Optional


class ClipsterError(Exception):
    """Base class for all Clipster errors."""


class StartupError(ClipsterError):
    """Fatal configuration problem detected before the event loop starts."""


class HotkeyRegistrationError(StartupError):
    """A hotkey chord could not be parsed, was already claimed, or the listener failed."""


class CaptureError(ClipsterError):
    """The microphone could not be opened (no device, unsupported encoding, busy)."""


class ProcessingError(ClipsterError):
    """Captured audio could not be conditioned for transcription."""


class TranscriptionError(ClipsterError):
    """The speech model failed to transcribe the signal."""


class ChatError(ClipsterError):
    """A chat backend call failed."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class PublishError(ClipsterError):
    """The cleaned response could not be placed on the clipboard."""
