"""Audio-related data models."""

from dataclasses import dataclass, field

import numpy as np


@dataclass
class CaptureInfo:
    """Describes an open input stream."""
    device_name: str
    device_index: int
    sample_rate: int
    channels: int
    encoding: str  # "float32" | "int16" | "uint16"


@dataclass
class CapturedAudio:
    """Mono samples accumulated during one capture session."""
    samples: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    sample_rate: int = 0

    @property
    def is_empty(self) -> bool:
        return self.samples.size == 0

    @property
    def duration_seconds(self) -> float:
        if not self.sample_rate:
            return 0.0
        return self.samples.size / self.sample_rate
