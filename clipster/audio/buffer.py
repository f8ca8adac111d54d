"""Sample buffer shared between the audio callback and the control thread."""

import logging
import threading
from typing import List

import numpy as np

logger = logging.getLogger(__name__)


class SampleBuffer:
    """Accumulates mono float32 samples for one capture session.

    Exactly one writer (the PortAudio callback thread) and one reader (the
    session controller). Each append stores one complete chunk under the lock,
    so a reader never observes a partially written callback.
    """

    def __init__(self, lock_timeout_seconds: float = 0.005):
        """Initialize sample buffer.

        Args:
            lock_timeout_seconds: Longest time append() waits for the lock
                before dropping the chunk. Keeps the audio thread from blocking.
        """
        self.lock_timeout_seconds = lock_timeout_seconds
        self.lock = threading.Lock()
        self.chunks: List[np.ndarray] = []
        self.sample_count = 0
        self.dropped_chunks = 0

    def append(self, samples: np.ndarray) -> bool:
        """Append a chunk of mono samples.

        Returns:
            True if stored, False if the lock could not be taken in time and
            the chunk was dropped.
        """
        if samples.size == 0:
            return True

        if not self.lock.acquire(timeout=self.lock_timeout_seconds):
            self.dropped_chunks += 1
            return False
        try:
            self.chunks.append(np.asarray(samples, dtype=np.float32).copy())
            self.sample_count += samples.size
        finally:
            self.lock.release()
        return True

    def drain(self) -> np.ndarray:
        """Return a snapshot copy of everything accumulated so far."""
        with self.lock:
            if not self.chunks:
                return np.zeros(0, dtype=np.float32)
            return np.concatenate(self.chunks)

    def clear(self) -> None:
        """Discard all samples. Called once per session before the first append."""
        with self.lock:
            self.chunks = []
            self.sample_count = 0
            self.dropped_chunks = 0
        logger.debug("Sample buffer cleared")

    def __len__(self) -> int:
        with self.lock:
            return self.sample_count
