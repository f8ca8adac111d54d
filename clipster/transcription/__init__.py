"""Transcription module for Clipster.

The faster-whisper backend is imported from .whisper_backend directly so
the model runtime is only loaded by the application entry point.
"""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptionResult

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionResult",
]
