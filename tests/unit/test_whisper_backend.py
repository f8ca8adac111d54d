"""Unit tests for WhisperBackend with the model loader mocked out."""

import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock
import numpy as np

from clipster.errors import TranscriptionError
from clipster.transcription.whisper_backend import WhisperBackend


def segments(*texts):
    return iter([SimpleNamespace(text=text) for text in texts])


@pytest.fixture
def model():
    model = MagicMock()
    model.transcribe.return_value = (segments(" List files", " by size. "), SimpleNamespace(language="en"))
    return model


@pytest.fixture
def backend(model):
    backend = WhisperBackend(model="tiny.en", model_loader=Mock(return_value=model))
    assert backend.initialize() is True
    return backend


@pytest.mark.unit
class TestWhisperBackend:
    """Test cases for WhisperBackend."""

    def test_initialize_passes_model_options(self):
        loader = Mock()
        backend = WhisperBackend(model="base.en", device="cpu", compute_type="int8", model_loader=loader)

        assert backend.initialize() is True
        loader.assert_called_once_with("base.en", device="cpu", compute_type="int8")

    def test_initialize_failure_returns_false(self):
        backend = WhisperBackend(model_loader=Mock(side_effect=RuntimeError("download failed")))

        assert backend.initialize() is False
        assert backend.model is None

    def test_transcribe_joins_segments(self, backend, model):
        samples = np.zeros(16000, dtype=np.float32)

        result = backend.transcribe(samples)

        assert result.text == "List files by size."
        assert result.audio_duration == pytest.approx(1.0)
        assert result.language == "en"
        assert "tiny.en" in result.service
        kwargs = model.transcribe.call_args.kwargs
        assert kwargs['language'] == "en"
        assert kwargs['beam_size'] == 1

    def test_empty_audio_skips_model(self, backend, model):
        result = backend.transcribe(np.zeros(0, dtype=np.float32))

        assert result.is_empty
        model.transcribe.assert_not_called()

    def test_no_segments_is_empty_text(self, backend, model):
        model.transcribe.return_value = (segments(), None)

        assert backend.transcribe(np.ones(800, dtype=np.float32)).is_empty

    def test_model_failure(self, backend, model):
        model.transcribe.side_effect = RuntimeError("CUDA out of memory")

        with pytest.raises(TranscriptionError, match="CUDA out of memory"):
            backend.transcribe(np.ones(800, dtype=np.float32))

    def test_transcribe_before_initialize(self):
        backend = WhisperBackend(model_loader=Mock())

        with pytest.raises(TranscriptionError, match="not loaded"):
            backend.transcribe(np.ones(10, dtype=np.float32))

    def test_cleanup_drops_model(self, backend):
        backend.cleanup()

        assert backend.model is None
