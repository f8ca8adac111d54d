"""Session-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """States of the push-to-talk session controller."""
    IDLE = "idle"
    RECORDING = "recording"


class PipelineStatus(Enum):
    """How a post-capture pipeline run ended."""
    COMPLETED = "completed"
    EMPTY_AUDIO = "empty_audio"
    NO_SPEECH = "no_speech"
    FAILED = "failed"


@dataclass
class RecordingSession:
    """The single active recording, owned by the controller."""
    provider_id: str
    started_at: datetime = field(default_factory=datetime.now)


@dataclass
class PipelineResult:
    """Outcome of one release-triggered pipeline run."""
    provider_id: str
    status: PipelineStatus
    transcript: str = ""
    response: str = ""
    cleaned_response: str = ""
    error_stage: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is PipelineStatus.COMPLETED
