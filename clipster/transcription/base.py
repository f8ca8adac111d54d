"""Abstract base class for transcription backends."""

from abc import ABC, abstractmethod
import logging

import numpy as np

from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Speech-to-text over 16 kHz mono float32 audio.

    Backends keep their model loaded between calls; each transcribe() call
    is independent of the previous one.
    """

    def __init__(self, language: str = "en"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        """Transcribe a complete utterance.

        Args:
            samples: Normalized mono float32 samples at 16 kHz

        Returns:
            TranscriptionResult; empty text means no speech was detected

        Raises:
            TranscriptionError: If the model fails
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Load model resources.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Release model resources."""
        pass
