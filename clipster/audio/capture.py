"""Microphone capture feeding a SampleBuffer from the PortAudio callback thread."""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Sequence

import pyaudio

from ..errors import CaptureError
from ..models.audio import CaptureInfo, CapturedAudio
from .buffer import SampleBuffer
from .processing import decode_frames

logger = logging.getLogger(__name__)


# PortAudio sample formats for each encoding. PortAudio has no unsigned
# 16-bit format, so "uint16" is decoded by the callback but never negotiated.
PORTAUDIO_FORMATS: Dict[str, Optional[int]] = {
    "float32": pyaudio.paFloat32,
    "int16": pyaudio.paInt16,
    "uint16": None,
}

DEFAULT_ENCODINGS = ("float32", "int16", "uint16")


class AudioCapture:
    """Push-to-talk capture from the default input device.

    The device is opened at its own sample rate and channel count. Samples are
    downmixed to mono inside the callback and accumulated in a SampleBuffer
    until stop() is called.
    """

    def __init__(
        self,
        buffer: Optional[SampleBuffer] = None,
        frames_per_buffer: int = 1024,
        max_channels: int = 2,
        encodings: Sequence[str] = DEFAULT_ENCODINGS,
        pyaudio_factory: Optional[Callable[[], Any]] = None,
    ):
        """Initialize audio capture.

        Args:
            buffer: Sample buffer written by the callback (created if None)
            frames_per_buffer: Frames delivered per callback invocation
            max_channels: Upper bound on channels opened from the device
            encodings: Encodings to try, in order of preference
            pyaudio_factory: Factory for the PortAudio session (for testing)
        """
        self.buffer = buffer or SampleBuffer()
        self.frames_per_buffer = frames_per_buffer
        self.max_channels = max_channels
        self.encodings = tuple(encodings)
        self._pyaudio_factory = pyaudio_factory or pyaudio.PyAudio

        self.pyaudio_instance: Any = None
        self.stream: Any = None
        self.info: Optional[CaptureInfo] = None
        self.sample_rate = 0
        self.callback_errors = 0

        # Guards start/stop against each other; never taken by the callback
        self._state_lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        return self.stream is not None

    def start(self) -> CaptureInfo:
        """Open the default input device and begin streaming into the buffer.

        Raises:
            CaptureError: No input device, no usable sample encoding, or the
                device could not be opened
        """
        with self._state_lock:
            if self.stream is not None:
                logger.warning("Capture already live - tearing down previous stream")
                self._teardown()

            self.pyaudio_instance = self._pyaudio_factory()
            try:
                info = self._open_stream()
            except CaptureError:
                self._terminate_pyaudio()
                raise

            self.info = info
            self.sample_rate = info.sample_rate
            logger.info(f"Capture started on '{info.device_name}': {info.sample_rate}Hz, "
                        f"{info.channels} channel(s), {info.encoding}")
            return info

    def stop(self) -> CapturedAudio:
        """Stop the stream and return everything captured.

        Calling stop() without a live capture returns empty audio.
        """
        with self._state_lock:
            if self.stream is None:
                logger.debug("stop() called with no live capture")
                return CapturedAudio(sample_rate=self.sample_rate)

            self._teardown()
            samples = self.buffer.drain()

        dropped = self.buffer.dropped_chunks
        if dropped:
            logger.warning(f"Dropped {dropped} audio chunk(s) due to buffer contention")
        captured = CapturedAudio(samples=samples, sample_rate=self.sample_rate)
        logger.info(f"Capture stopped: {samples.size} samples ({captured.duration_seconds:.2f}s)")
        return captured

    def _open_stream(self) -> CaptureInfo:
        pa = self.pyaudio_instance
        try:
            device = pa.get_default_input_device_info()
        except (IOError, OSError) as e:
            raise CaptureError("No input device available") from e

        device_index = int(device["index"])
        device_name = str(device.get("name", f"device {device_index}"))
        sample_rate = int(device["defaultSampleRate"])
        channels = min(int(device["maxInputChannels"]), self.max_channels)
        if channels < 1:
            raise CaptureError(f"Default device '{device_name}' has no input channels")

        encoding = self._negotiate_encoding(device_index, sample_rate, channels)

        # Reset before the stream exists so no callback can append first
        self.buffer.clear()
        self.callback_errors = 0

        try:
            stream = pa.open(
                format=PORTAUDIO_FORMATS[encoding],
                channels=channels,
                rate=sample_rate,
                input=True,
                input_device_index=device_index,
                frames_per_buffer=self.frames_per_buffer,
                stream_callback=self._make_callback(encoding, channels),
            )
            stream.start_stream()
        except (IOError, OSError) as e:
            raise CaptureError(f"Could not open '{device_name}' (device busy?): {e}") from e

        self.stream = stream
        return CaptureInfo(
            device_name=device_name,
            device_index=device_index,
            sample_rate=sample_rate,
            channels=channels,
            encoding=encoding,
        )

    def _negotiate_encoding(self, device_index: int, sample_rate: int, channels: int) -> str:
        """Pick the first preferred encoding the device can deliver."""
        for encoding in self.encodings:
            portaudio_format = PORTAUDIO_FORMATS.get(encoding)
            if portaudio_format is None:
                logger.debug(f"Encoding {encoding} has no PortAudio format - skipping")
                continue
            try:
                if self.pyaudio_instance.is_format_supported(
                    sample_rate,
                    input_device=device_index,
                    input_channels=channels,
                    input_format=portaudio_format,
                ):
                    return encoding
            except ValueError as e:
                logger.debug(f"Device rejected {encoding}: {e}")

        raise CaptureError(f"Unsupported sample encoding: device supports none of {list(self.encodings)}")

    def _make_callback(self, encoding: str, channels: int) -> Callable:
        buffer = self.buffer

        def callback(in_data, frame_count, time_info, status):
            # Runs on the PortAudio thread: no blocking beyond the buffer lock
            try:
                if status:
                    logger.debug(f"Audio status flags: {status}")
                if in_data:
                    samples = decode_frames(in_data, encoding, channels)
                    if not buffer.append(samples):
                        logger.warning(f"Buffer busy - dropped {samples.size} samples")
            except Exception as e:
                self.callback_errors += 1
                logger.error(f"Error in audio callback, chunk dropped: {e}")
            return (None, pyaudio.paContinue)

        return callback

    def _teardown(self) -> None:
        stream, self.stream = self.stream, None
        if stream is not None:
            try:
                # Blocks until PortAudio has delivered its last callback
                stream.stop_stream()
                stream.close()
            except (IOError, OSError) as e:
                logger.warning(f"Stream cleanup warning: {e}")
        self._terminate_pyaudio()

    def _terminate_pyaudio(self) -> None:
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if getattr(self, "stream", None) is not None:
            self._teardown()
