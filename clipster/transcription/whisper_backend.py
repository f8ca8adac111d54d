"""Local Whisper transcription backend built on faster-whisper."""

import time
import logging
from datetime import datetime
from typing import Any, Callable, Optional

import numpy as np
from faster_whisper import WhisperModel

from .base import AbstractTranscriptionBackend
from ..audio.processing import TARGET_SAMPLE_RATE
from ..errors import TranscriptionError
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class WhisperBackend(AbstractTranscriptionBackend):
    """Transcribes push-to-talk utterances with a locally loaded Whisper model."""

    def __init__(self,
                 model: str = "tiny.en",
                 device: str = "cpu",
                 compute_type: str = "int8",
                 language: str = "en",
                 beam_size: int = 1,
                 model_loader: Optional[Callable[..., Any]] = None):
        """Initialize Whisper backend.

        Args:
            model: Model size name (tiny.en, base.en, small, ...) or a local model directory
            device: "cpu", "cuda" or "auto"
            compute_type: CTranslate2 compute type (int8, float16, float32)
            language: Language code passed to the decoder
            beam_size: Beam width; 1 means greedy decoding
            model_loader: Optional custom model loader (for testing)
        """
        super().__init__(language)
        self.model_name = model
        self.device = device
        self.compute_type = compute_type
        self.beam_size = beam_size
        self._model_loader = model_loader or WhisperModel
        self.model: Any = None
        self.service_name = f"faster-whisper ({model})"

    def initialize(self) -> bool:
        """Load the Whisper model. Slow on first run while weights download."""
        logger.info(f"Loading Whisper model '{self.model_name}' on {self.device} ({self.compute_type})...")
        start_time = time.time()
        try:
            self.model = self._model_loader(self.model_name,
                                            device=self.device,
                                            compute_type=self.compute_type)
        except Exception as e:
            logger.error(f"Failed to load Whisper model '{self.model_name}': {e}")
            return False
        logger.info(f"✓ Whisper model loaded in {time.time() - start_time:.1f}s")
        return True

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        """Transcribe normalized 16 kHz audio."""
        if self.model is None:
            raise TranscriptionError("Whisper model is not loaded")

        audio_duration = samples.size / TARGET_SAMPLE_RATE
        start_time = time.time()

        if samples.size == 0:
            return self._result("", 0.0, audio_duration)

        logger.debug(f"Processing {samples.size} samples ({audio_duration:.2f}s)")
        try:
            segments, _info = self.model.transcribe(
                np.asarray(samples, dtype=np.float32),
                language=self.language,
                beam_size=self.beam_size,
                task="transcribe",
            )
            # segments is a lazy generator; decoding happens while iterating
            text = " ".join(segment.text.strip() for segment in segments).strip()
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        processing_time = time.time() - start_time
        if not text:
            logger.info("⚠ No transcription generated (silence detected)")
        else:
            logger.debug(f"Transcription: '{text}' ({processing_time:.2f}s)")
        return self._result(text, processing_time, audio_duration)

    def _result(self, text: str, processing_time: float, audio_duration: float) -> TranscriptionResult:
        return TranscriptionResult(
            text=text,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            audio_duration=audio_duration,
        )

    def cleanup(self) -> None:
        """Drop the model so its memory can be reclaimed."""
        self.model = None
