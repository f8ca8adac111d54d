"""Data models for the Clipster application."""

from .audio import CaptureInfo, CapturedAudio
from .chat import Message
from .events import HotkeyEvent, HotkeyState, SessionEvent
from .session import PipelineResult, PipelineStatus, RecordingSession, SessionState
from .transcription import TranscriptionResult

__all__ = [
    "CaptureInfo",
    "CapturedAudio",
    "Message",
    "HotkeyEvent",
    "HotkeyState",
    "SessionEvent",
    "PipelineResult",
    "PipelineStatus",
    "RecordingSession",
    "SessionState",
    "TranscriptionResult",
]
