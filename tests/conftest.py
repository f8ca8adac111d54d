"""Pytest configuration and fixtures for Clipster tests."""

import asyncio
import pytest
import logging
from datetime import datetime
from typing import List, Optional, Sequence
from unittest.mock import Mock
import numpy as np
from pubsub import pub

from clipster.hotkeys.chords import parse_chord
from clipster.models.chat import Message
from clipster.models.transcription import TranscriptionResult
from clipster.providers.base import ChatBackend
from clipster.providers.registry import ProviderBinding, ProviderRegistry
from clipster.services.output_service import OutputService
from clipster.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with every collaborator mocked")
    config.addinivalue_line("markers", "integration: several real components wired together")
    config.addinivalue_line("markers", "slow: tests that take more than a second")
    config.addinivalue_line("markers", "hardware: needs a real microphone (run with -m hardware)")


@pytest.fixture(autouse=True)
def clean_pubsub():
    """Drop pub/sub listeners registered by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio session for testing without actual audio hardware.

    The default device is a 48 kHz stereo microphone that supports every
    format it is asked about.
    """
    mock_pyaudio_instance = Mock()
    mock_stream = Mock()

    mock_stream.start_stream.return_value = None
    mock_stream.stop_stream.return_value = None
    mock_stream.close.return_value = None

    mock_pyaudio_instance.get_default_input_device_info.return_value = {
        'index': 3,
        'name': 'Mock Microphone',
        'defaultSampleRate': 48000.0,
        'maxInputChannels': 2,
    }
    mock_pyaudio_instance.is_format_supported.return_value = True
    mock_pyaudio_instance.open.return_value = mock_stream
    mock_pyaudio_instance.terminate.return_value = None

    factory = Mock(return_value=mock_pyaudio_instance)

    yield {
        'factory': factory,
        'instance': mock_pyaudio_instance,
        'stream': mock_stream
    }


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000, amplitude=0.5):
        """Generate mono float32 audio for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz
            amplitude: Peak amplitude

        Returns:
            np.ndarray: float32 samples
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.arange(samples) / sample_rate
            wave_data = amplitude * np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            rng = np.random.default_rng(1234)
            wave_data = rng.uniform(-amplitude, amplitude, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return wave_data.astype(np.float32)

    return generate_audio


class MockTranscriptionBackend(AbstractTranscriptionBackend):
    """Returns a fixed transcript and remembers what it was given."""

    def __init__(self, text: str = "list files by size", error: Optional[Exception] = None):
        super().__init__("en")
        self.text = text
        self.error = error
        self.calls: List[np.ndarray] = []

    def transcribe(self, samples: np.ndarray) -> TranscriptionResult:
        self.calls.append(samples)
        if self.error is not None:
            raise self.error
        return TranscriptionResult(
            text=self.text,
            processing_time=0.01,
            timestamp=datetime.now(),
            service="mock",
            audio_duration=samples.size / 16000,
        )

    def initialize(self) -> bool:
        return True

    def cleanup(self) -> None:
        pass


class MockChatBackend(ChatBackend):
    """In-process chat backend with a canned reply."""

    def __init__(self, reply: str = "ls -lS", error: Optional[Exception] = None, name: str = "Mock",
                 delay: float = 0.0):
        super().__init__("test-key", model="mock-model", base_url="http://localhost")
        self.reply = reply
        self.error = error
        self.name = name
        self.delay = delay
        self.calls: List[List[Message]] = []

    @property
    def service_name(self) -> str:
        return self.name

    async def chat(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def mock_transcriber():
    return MockTranscriptionBackend()


@pytest.fixture
def make_binding():
    """Build a ProviderBinding around a MockChatBackend."""
    def _make(provider_id="anthropic", hotkey="ctrl+shift+space", reply="ls -lS", error=None):
        backend = MockChatBackend(reply=reply, error=error, name=provider_id)
        return ProviderBinding(
            provider_id=provider_id,
            name=f"{provider_id.title()} (Mock)",
            hotkey=parse_chord(hotkey),
            hotkey_display=hotkey.title(),
            backend=backend,
        )
    return _make


@pytest.fixture
def two_provider_registry(make_binding):
    return ProviderRegistry([
        make_binding("anthropic", "ctrl+shift+space", reply="```bash\nls -lS\n```"),
        make_binding("openai", "ctrl+alt+space", reply="du -sh *"),
    ])


@pytest.fixture
def mock_output():
    """OutputService with its clipboard and notifier replaced by mocks."""
    output = OutputService(copy_func=Mock(), notify_func=Mock())
    return output


@pytest.fixture
def mock_audio_capture(audio_test_data):
    """Mock AudioCapture that yields one second of 48 kHz audio on stop()."""
    from clipster.models.audio import CaptureInfo, CapturedAudio

    mock = Mock()
    mock.is_recording = False
    mock.start.return_value = CaptureInfo(
        device_name='Mock Microphone',
        device_index=3,
        sample_rate=48000,
        channels=2,
        encoding='float32',
    )
    mock.stop.return_value = CapturedAudio(
        samples=audio_test_data("sine", 1.0, 48000),
        sample_rate=48000,
    )
    return mock

