"""Signal conditioning: raw device buffers to 16 kHz mono, peak-normalized audio."""

import logging
from math import gcd
from typing import Dict

import numpy as np
from scipy.signal import resample_poly

from ..errors import ProcessingError

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16000

# Fixed-quality windowed-sinc anti-aliasing filter for resample_poly
RESAMPLE_WINDOW = ("kaiser", 5.0)

# Little-endian numpy dtypes for the encodings the capture callback understands
ENCODING_DTYPES: Dict[str, str] = {
    "float32": "<f4",
    "int16": "<i2",
    "uint16": "<u2",
}


def decode_frames(raw: bytes, encoding: str, channels: int) -> np.ndarray:
    """Convert an interleaved device buffer to mono float32.

    Integer encodings are scaled into [-1, 1). Frames are downmixed by
    averaging the channel values of each frame; a trailing partial frame is
    discarded.
    """
    dtype = ENCODING_DTYPES.get(encoding)
    if dtype is None:
        raise ValueError(f"Unsupported sample encoding: {encoding}")
    if channels < 1:
        raise ValueError(f"Channel count must be positive: {channels}")

    usable = len(raw) - len(raw) % np.dtype(dtype).itemsize
    data = np.frombuffer(raw[:usable], dtype=dtype)

    if encoding == "float32":
        samples = data.astype(np.float32)
    elif encoding == "int16":
        samples = data.astype(np.float32) / 32768.0
    else:
        samples = (data.astype(np.float32) - 32768.0) / 32768.0

    return downmix(samples, channels)


def downmix(samples: np.ndarray, channels: int) -> np.ndarray:
    """Average interleaved channels into one mono channel."""
    if channels == 1:
        return samples.astype(np.float32, copy=False)
    frames = samples.size // channels
    if frames == 0:
        return np.zeros(0, dtype=np.float32)
    framed = samples[: frames * channels].reshape(frames, channels)
    return framed.mean(axis=1, dtype=np.float32)


def resample_to_16khz(samples: np.ndarray, original_rate: int) -> np.ndarray:
    """Resample mono samples to 16 kHz.

    Audio already at 16 kHz is returned as an unchanged copy. Otherwise the
    signal goes through a polyphase windowed-sinc filter at the reduced
    16000/original_rate ratio, so the output has ceil(n * 16000 / rate)
    samples.

    Raises:
        ProcessingError: If the rate is not positive or filtering fails
    """
    if original_rate <= 0:
        raise ProcessingError(f"Invalid source sample rate: {original_rate}")

    samples = np.asarray(samples, dtype=np.float32)
    if original_rate == TARGET_SAMPLE_RATE:
        return samples.copy()
    if samples.size == 0:
        return np.zeros(0, dtype=np.float32)

    divisor = gcd(TARGET_SAMPLE_RATE, original_rate)
    up = TARGET_SAMPLE_RATE // divisor
    down = original_rate // divisor

    try:
        resampled = resample_poly(samples, up, down, window=RESAMPLE_WINDOW)
    except ValueError as e:
        raise ProcessingError(f"Resampling {original_rate}Hz -> {TARGET_SAMPLE_RATE}Hz failed: {e}") from e

    logger.debug(f"Resampled {samples.size} samples @ {original_rate}Hz -> "
                 f"{resampled.size} samples @ {TARGET_SAMPLE_RATE}Hz (up={up}, down={down})")
    return resampled.astype(np.float32)


def normalize_audio(samples: np.ndarray) -> np.ndarray:
    """Scale samples so the largest absolute value is 1.0.

    Silence (all zeros) is returned unchanged.
    """
    samples = np.asarray(samples, dtype=np.float32)
    if samples.size == 0:
        return samples.copy()

    max_amplitude = float(np.max(np.abs(samples)))
    if max_amplitude > 0.0:
        return (samples / max_amplitude).astype(np.float32)
    return samples.copy()
