"""Audio capture and signal conditioning."""

from .buffer import SampleBuffer
from .capture import AudioCapture
from .processing import decode_frames, normalize_audio, resample_to_16khz

__all__ = [
    'AudioCapture',
    'SampleBuffer',
    'decode_frames',
    'normalize_audio',
    'resample_to_16khz',
]
