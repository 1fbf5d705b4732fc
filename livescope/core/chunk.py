"""Acquisition chunk data structure."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np


class ChunkError(ValueError):
    """Raised when a chunk of samples is malformed."""


@dataclass(frozen=True)
class Chunk:
    """A batch of samples delivered together by the acquisition layer.

    Attributes:
        timestamps: Absolute sample times (seconds), strictly increasing.
        samples: Raw values, one row per timestamp and one column per channel.
    """
    timestamps: np.ndarray
    samples: np.ndarray

    def __post_init__(self) -> None:
        ts = np.asarray(self.timestamps, dtype=np.float64).reshape(-1)
        values = np.asarray(self.samples, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)

        if ts.size == 0:
            raise ChunkError("Empty chunk")
        if values.ndim != 2 or values.shape[0] != ts.size:
            raise ChunkError(
                f"Samples shape {values.shape} does not match "
                f"{ts.size} timestamps"
            )
        if values.shape[1] == 0:
            raise ChunkError("Chunk has no channels")
        if not np.all(np.isfinite(ts)):
            raise ChunkError("Timestamps must be finite")
        if ts.size > 1 and not np.all(np.diff(ts) > 0):
            raise ChunkError("Timestamps must be strictly increasing")

        # Frozen dataclass: normalised arrays go in via object.__setattr__
        object.__setattr__(self, 'timestamps', ts)
        object.__setattr__(self, 'samples', values)

    @classmethod
    def from_columns(cls, data: np.ndarray) -> 'Chunk':
        """Build a chunk from column form: time in column 0, channels after."""
        arr = np.asarray(data, dtype=np.float64)
        if arr.ndim != 2 or arr.shape[1] < 2:
            raise ChunkError(
                f"Column data must be 2D with a time column and at least "
                f"one channel, got shape {arr.shape}"
            )
        return cls(arr[:, 0], arr[:, 1:])

    @classmethod
    def coerce(cls, newdata: Union['Chunk', np.ndarray,
                                   Tuple[np.ndarray, np.ndarray]]) -> 'Chunk':
        """Accept a Chunk, a (timestamps, samples) pair or column data."""
        if isinstance(newdata, Chunk):
            return newdata
        if isinstance(newdata, tuple):
            if len(newdata) != 2:
                raise ChunkError("Expected a (timestamps, samples) pair")
            return cls(newdata[0], newdata[1])
        return cls.from_columns(newdata)

    def __len__(self) -> int:
        return int(self.timestamps.size)

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def start_time(self) -> float:
        return float(self.timestamps[0])

    @property
    def end_time(self) -> float:
        return float(self.timestamps[-1])

    @property
    def span(self) -> float:
        """Time covered by the chunk, first to last sample (seconds)."""
        return self.end_time - self.start_time

    def as_columns(self) -> np.ndarray:
        """Return an (N, 1 + channels) array with time in column 0."""
        return np.column_stack((self.timestamps, self.samples))

    def tail(self, duration: float) -> 'Chunk':
        """Return the rows no older than ``end_time - duration``."""
        keep = self.timestamps >= self.end_time - duration
        if keep.all():
            return self
        return Chunk(self.timestamps[keep], self.samples[keep])
