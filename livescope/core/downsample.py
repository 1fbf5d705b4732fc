"""Downsampling of acquisition chunks into display points.

A chunk of N rows covering ``span`` seconds occupies
``span / window_width * capacity`` display slots. The downsampler compares
that budget with N and picks a strategy:

- fill: the chunk is sparser than the display. Every row is placed at its
  nearest slot and the slots in between stay NaN, so the renderer draws
  markers instead of interpolating a line.
- random: ``target`` rows drawn uniformly without replacement, in time order.
  Fast, but a single-sample transient survives only if it is drawn.
- minmax: the same random draw, but each drawn index stands for the rows
  closer to it than to any other drawn index. Every column of that
  neighbourhood is scanned and two rows are emitted, the minima first and
  the maxima second, so the output alternates low/high and keeps the signal
  envelope. Half the point budget is used since each neighbourhood costs
  two rows.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Optional, Union

import numpy as np

from .chunk import Chunk, ChunkError

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Downsampling strategy."""
    FILL = "fill"
    RANDOM = "random"
    MINMAX = "minmax"


@dataclass(frozen=True)
class ReducedChunk:
    """Downsampled chunk ready to be written into display slots.

    ``data`` has time in column 0 and one column per channel. Rows map to
    consecutive display slots.
    """
    data: np.ndarray
    strategy: Strategy

    def __len__(self) -> int:
        return int(self.data.shape[0])

    @property
    def sparse(self) -> bool:
        """True when the rows were placed by sparse fill."""
        return self.strategy is Strategy.FILL

    @property
    def timestamps(self) -> np.ndarray:
        return self.data[:, 0]

    @property
    def values(self) -> np.ndarray:
        return self.data[:, 1:]

    @property
    def first_timestamp(self) -> float:
        return float(self.data[0, 0])


def point_budget(span: float, window_width: float, capacity: int) -> float:
    """Number of display slots a chunk spanning ``span`` seconds covers."""
    return span / window_width * capacity


class Downsampler:
    """Reduces chunks to at most a window's worth of display points."""

    REDUCTIONS = (Strategy.RANDOM, Strategy.MINMAX)

    def __init__(self, strategy: Union[Strategy, str] = Strategy.MINMAX,
                 rng: Optional[Union[np.random.Generator, int]] = None):
        """Initialize downsampler.

        Args:
            strategy: Reduction used for dense chunks ('random' or 'minmax').
            rng: Random generator or seed for index selection.
        """
        self.strategy = self._check_strategy(strategy)
        if isinstance(rng, np.random.Generator):
            self._rng = rng
        else:
            self._rng = np.random.default_rng(rng)

    @classmethod
    def _check_strategy(cls, strategy: Union[Strategy, str]) -> Strategy:
        strategy = Strategy(strategy)
        if strategy not in cls.REDUCTIONS:
            raise ValueError(
                f"Reduction strategy must be one of "
                f"{[s.value for s in cls.REDUCTIONS]}, got {strategy.value!r}"
            )
        return strategy

    def set_strategy(self, strategy: Union[Strategy, str]) -> None:
        self.strategy = self._check_strategy(strategy)

    def target_points(self, points: float,
                      strategy: Optional[Strategy] = None) -> int:
        """Rows (or min/max pairs) to select for a given slot budget."""
        if (strategy or self.strategy) is Strategy.MINMAX:
            target = int(round(points / 2))
        else:
            target = int(round(points))
        # Rounding must not erase a chunk that covers some time
        if target == 0 and points > 0:
            target = 1
        return target

    def reduce(self, chunk: Union[Chunk, np.ndarray], window_width: float,
               capacity: int, strategy: Optional[Union[Strategy, str]] = None,
               origin: float = 0.0) -> ReducedChunk:
        """Reduce a chunk for placement into ``capacity`` display slots.

        Args:
            chunk: Chunk or column data (time in column 0).
            window_width: Visible time span in seconds.
            capacity: Display slots per channel for the whole window.
            strategy: Reduction for this call only, instead of ``self.strategy``.
            origin: Absolute time of slot 0, used to align sparse fill
                with the display grid.

        Returns:
            ReducedChunk with between 1 and ``2 * capacity`` rows.

        Raises:
            ChunkError: If the chunk is empty or malformed.
            ValueError: If window_width or capacity is not positive.
        """
        if window_width <= 0:
            raise ValueError(f"window_width must be positive, got {window_width}")
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        strategy = self.strategy if strategy is None else self._check_strategy(strategy)

        chunk = Chunk.coerce(chunk)
        # Rows older than one window can never be on screen
        chunk = chunk.tail(window_width)
        n = len(chunk)

        points = point_budget(chunk.span, window_width, capacity)
        target = self.target_points(points, strategy)

        if target == 0 or target >= n:
            logger.debug(f"Sparse fill: {n} rows into {points:.1f} slots")
            return self.fill(chunk, window_width, capacity, origin)

        data = chunk.as_columns()
        if strategy is Strategy.MINMAX:
            return self.minmax(data, target)
        return self.random_pick(data, target)

    def fill(self, chunk: Chunk, window_width: float, capacity: int,
             origin: float = 0.0) -> ReducedChunk:
        """Place each row at its nearest display slot, blanks in between.

        Row ``i`` of the result is the slot ``i`` steps after the slot of the
        chunk's first timestamp, on the grid of ``capacity`` slots per
        ``window_width`` seconds starting at ``origin``.
        """
        step = window_width / capacity
        grid = np.rint((chunk.timestamps - origin) / step)
        positions = (grid - grid[0]).astype(np.intp)
        slots = int(positions[-1]) + 1

        data = np.full((slots, 1 + chunk.channel_count), np.nan)
        data[:, 0] = chunk.start_time + np.arange(slots) * step
        data[positions, 1:] = chunk.samples
        return ReducedChunk(data, Strategy.FILL)

    def random_pick(self, data: np.ndarray, target: int) -> ReducedChunk:
        """Keep ``target`` randomly chosen rows, in time order."""
        indices = self._pick_indices(data.shape[0], target)
        return ReducedChunk(data[indices], Strategy.RANDOM)

    def minmax(self, data: np.ndarray, target: int) -> ReducedChunk:
        """Emit a (min, max) row pair per neighbourhood of ``target`` draws."""
        indices = self._pick_indices(data.shape[0], target)

        # Neighbourhood i starts halfway between draw i-1 and draw i
        starts = np.empty(target, dtype=np.intp)
        starts[0] = 0
        starts[1:] = (indices[:-1] + indices[1:]) // 2 + 1

        lows = np.fmin.reduceat(data, starts, axis=0)
        highs = np.fmax.reduceat(data, starts, axis=0)

        out = np.empty((2 * target, data.shape[1]), dtype=data.dtype)
        out[0::2] = lows
        out[1::2] = highs
        return ReducedChunk(out, Strategy.MINMAX)

    def _pick_indices(self, n: int, target: int) -> np.ndarray:
        """Sorted indices of ``target`` distinct rows out of ``n``."""
        return np.sort(self._rng.choice(n, size=target, replace=False))
