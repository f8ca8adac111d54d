"""Unit tests for SampleBuffer."""

import pytest
import threading
import numpy as np

from clipster.audio.buffer import SampleBuffer


@pytest.mark.unit
class TestSampleBuffer:
    """Test cases for SampleBuffer."""

    def test_initially_empty(self):
        buffer = SampleBuffer()

        assert len(buffer) == 0
        assert buffer.drain().size == 0
        assert buffer.drain().dtype == np.float32
        assert buffer.dropped_chunks == 0

    def test_append_and_drain_preserves_order(self):
        buffer = SampleBuffer()

        assert buffer.append(np.array([0.1, 0.2], dtype=np.float32))
        assert buffer.append(np.array([0.3], dtype=np.float32))

        np.testing.assert_array_almost_equal(buffer.drain(), [0.1, 0.2, 0.3])
        assert len(buffer) == 3

    def test_drain_is_a_snapshot(self):
        """Draining twice returns the same samples; the copy is independent."""
        buffer = SampleBuffer()
        buffer.append(np.ones(4, dtype=np.float32))

        first = buffer.drain()
        first[:] = 0.0

        np.testing.assert_array_equal(buffer.drain(), np.ones(4))

    def test_append_copies_input(self):
        buffer = SampleBuffer()
        chunk = np.ones(3, dtype=np.float32)

        buffer.append(chunk)
        chunk[:] = 5.0

        np.testing.assert_array_equal(buffer.drain(), np.ones(3))

    def test_clear_resets_everything(self):
        buffer = SampleBuffer()
        buffer.append(np.ones(10, dtype=np.float32))
        buffer.dropped_chunks = 2

        buffer.clear()

        assert len(buffer) == 0
        assert buffer.drain().size == 0
        assert buffer.dropped_chunks == 0

    def test_empty_chunk_is_accepted_without_storing(self):
        buffer = SampleBuffer()

        assert buffer.append(np.zeros(0, dtype=np.float32)) is True
        assert buffer.chunks == []

    def test_contended_lock_drops_chunk(self):
        """When the reader holds the lock past the timeout, append drops rather than blocks."""
        buffer = SampleBuffer(lock_timeout_seconds=0.01)

        with buffer.lock:
            stored = buffer.append(np.ones(8, dtype=np.float32))

        assert stored is False
        assert buffer.dropped_chunks == 1
        assert len(buffer) == 0

    def test_concurrent_appends_never_split_chunks(self):
        buffer = SampleBuffer(lock_timeout_seconds=1.0)

        def writer(value):
            for _ in range(50):
                buffer.append(np.full(16, value, dtype=np.float32))

        threads = [threading.Thread(target=writer, args=(v,)) for v in (1.0, 2.0)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        samples = buffer.drain()
        assert samples.size == 2 * 50 * 16
        # Each stored chunk is contiguous and uniform
        for chunk in samples.reshape(-1, 16):
            assert np.all(chunk == chunk[0])
