"""Simulated acquisition source for LiveScope.

This module provides a background thread that produces synthetic
multi-channel chunks and emits them as Qt signals, standing in for a
hardware acquisition session.
"""

from __future__ import annotations

import time
import traceback
from typing import Optional, Tuple

import numpy as np
from PySide6 import QtCore


def generate_chunk(t0: float, n: int, sample_rate: float, channel_count: int,
                   rng: np.random.Generator, spike_probability: float = 1e-4,
                   noise_amplitude: float = 0.05) -> Tuple[np.ndarray, np.ndarray]:
    """Build a synthetic chunk of ``n`` samples starting at ``t0``.

    Each channel is a slow sine with Gaussian noise; rare single-sample
    spikes mimic the fast transients the min/max display must keep.

    Returns:
        (timestamps, samples) with samples shaped (n, channel_count).
    """
    timestamps = t0 + np.arange(n) / sample_rate
    phases = np.arange(channel_count) * np.pi / 2
    samples = 0.5 * np.sin(2 * np.pi * 1.0 * timestamps[:, None] + phases)
    samples += rng.normal(0.0, noise_amplitude, size=(n, channel_count))

    spikes = rng.random((n, channel_count)) < spike_probability
    samples[spikes] += rng.choice([-1.0, 1.0], size=int(spikes.sum()))
    return timestamps, samples


class SimulatedSource(QtCore.QThread):
    """Background thread that emits synthetic chunks at a fixed cadence.

    Signals:
        chunk_received: Emitted with (timestamps, samples) for each chunk.
        error: Emitted when an error occurs.
    """

    chunk_received = QtCore.Signal(object, object)
    error = QtCore.Signal(str)

    DEFAULT_SAMPLE_RATE = 10000.0
    DEFAULT_CHUNK_PERIOD = 0.05  # seconds between data-ready events

    def __init__(self, channel_count: int = 2,
                 sample_rate: float = DEFAULT_SAMPLE_RATE,
                 chunk_period: float = DEFAULT_CHUNK_PERIOD,
                 seed: Optional[int] = None, parent=None):
        super().__init__(parent)
        self.channel_count = channel_count
        self.sample_rate = sample_rate
        self.chunk_period = chunk_period
        self._rng = np.random.default_rng(seed)
        self._running = False

    @property
    def samples_per_chunk(self) -> int:
        return max(1, int(round(self.sample_rate * self.chunk_period)))

    def run(self) -> None:
        """Main thread loop: generate and emit chunks."""
        self._running = True
        start = time.perf_counter()
        t_next = 0.0

        while self._running:
            try:
                n = self.samples_per_chunk
                timestamps, samples = generate_chunk(
                    t_next, n, self.sample_rate, self.channel_count, self._rng
                )
                t_next += n / self.sample_rate

                # Pace emission to the simulated acquisition clock
                delay = t_next - (time.perf_counter() - start)
                if delay > 0:
                    self.msleep(int(delay * 1000))

                if self._running:
                    self.chunk_received.emit(timestamps, samples)
            except Exception:
                self.error.emit(f"Unexpected error:\n{traceback.format_exc()}")
                break

    def stop(self, wait_ms: int = 3000) -> None:
        """Stop the source thread.

        Args:
            wait_ms: Maximum milliseconds to wait for thread to finish.
        """
        self._running = False
        self.wait(wait_ms)
