"""Transcription-related data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TranscriptionResult:
    """Result of a transcription operation."""
    text: str
    processing_time: float
    timestamp: datetime
    service: str
    language: str = "en"
    audio_duration: float = 0.0  # Seconds of 16 kHz audio that were transcribed

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
