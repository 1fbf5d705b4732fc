"""Live display cache for continuously acquired multi-channel data.

Chunks arrive from the acquisition callback, are downsampled to the display
resolution of the current time window and written into a fixed-size ring of
display slots. The renderer reads point-in-time snapshots on its own tick.
A single lock serialises ingestion, snapshots and axis changes, since those
run in different threads (acquisition callback, render loop, UI).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
import threading
from typing import TYPE_CHECKING, Optional, Sequence, Tuple, Union

import numpy as np

from .chunk import Chunk, ChunkError
from .display_buffer import DisplayBuffer
from .downsample import Downsampler, Strategy
from .view_state import Scroll, ViewState, Zoom

if TYPE_CHECKING:
    from .settings import ScopeSettings

logger = logging.getLogger(__name__)


class RestartPolicy(str, Enum):
    """What a detected sweep restart does to pixels already on screen."""
    KEEP = "keep"    # rebase only; the new sweep overwrites the old trace
    CLEAR = "clear"  # rebase and blank the buffer


class SessionState(Enum):
    """Live-view session state."""
    IDLE = "idle"
    STREAMING = "streaming"


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the display buffer for one redraw."""
    time_axis: np.ndarray
    values: np.ndarray
    sparse: bool
    window_width: float
    voltage_limits: Tuple[float, float]

    @property
    def channel_count(self) -> int:
        return int(self.values.shape[1])


class DisplayCache:
    """Ring-buffered display data plus the view operations acting on it."""

    DEFAULT_CAPACITY = 5000
    DEFAULT_WINDOW_SECONDS = 5.0

    def __init__(self, channel_count: int = 1,
                 window_width: float = DEFAULT_WINDOW_SECONDS,
                 capacity: int = DEFAULT_CAPACITY,
                 channel_scale: Optional[Sequence[float]] = None,
                 voltage_half_range: float = 1.0,
                 gap_fraction: float = 0.05,
                 strategy: Union[Strategy, str] = Strategy.MINMAX,
                 restart_policy: Union[RestartPolicy, str] = RestartPolicy.KEEP,
                 rng: Optional[Union[np.random.Generator, int]] = None):
        """Initialize cache.

        Args:
            channel_count: Number of displayed channels (1-4).
            window_width: Initial time window in seconds.
            capacity: Display points per channel.
            channel_scale: Raw-to-display factor per channel (default 1.0).
            voltage_half_range: Initial symmetric Y half-range.
            gap_fraction: Share of the capacity blanked ahead of new data.
            strategy: Reduction for dense chunks ('minmax' or 'random').
            restart_policy: Behaviour on a detected sweep restart.
            rng: Random generator or seed used by the downsampler.
        """
        if channel_scale is None:
            channel_scale = [1.0] * channel_count

        self.buffer = DisplayBuffer(capacity, channel_count, window_width, gap_fraction)
        self.view = ViewState(window_width, voltage_half_range, channel_scale)
        if len(self.view.channel_scale) != channel_count:
            raise ValueError(
                f"channel_scale has {len(self.view.channel_scale)} factors "
                f"for {channel_count} channels"
            )
        self.downsampler = Downsampler(strategy, rng)
        self.restart_policy = RestartPolicy(restart_policy)
        self.state = SessionState.IDLE
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: 'ScopeSettings', channel_count: int,
                      rng: Optional[Union[np.random.Generator, int]] = None
                      ) -> 'DisplayCache':
        """Build a cache from persisted scope settings."""
        return cls(
            channel_count=channel_count,
            window_width=settings.window_seconds,
            capacity=settings.display_points,
            channel_scale=settings.scales_for(channel_count),
            voltage_half_range=settings.voltage_half_range,
            gap_fraction=settings.gap_fraction,
            strategy=settings.downsample_strategy,
            restart_policy=settings.restart_policy,
            rng=rng,
        )

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self.buffer.capacity

    @property
    def channel_count(self) -> int:
        return self.buffer.channel_count

    @property
    def window_width(self) -> float:
        return self.view.window_width

    @property
    def sparse(self) -> bool:
        return self.view.sparse

    @property
    def is_streaming(self) -> bool:
        return self.state is SessionState.STREAMING

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Enter the streaming state with a blank sweep."""
        with self._lock:
            self.state = SessionState.STREAMING
            self._clear_locked()
        logger.info(f"Live view started ({self.channel_count} channels)")

    def stop(self) -> None:
        """Return to the idle state; the buffer keeps its last contents."""
        with self._lock:
            self.state = SessionState.IDLE
        logger.info("Live view stopped")

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def update(self, newdata: Union[Chunk, np.ndarray,
                                    Tuple[np.ndarray, np.ndarray]]) -> bool:
        """Downsample a chunk and write it into the ring.

        Args:
            newdata: Chunk, (timestamps, samples) pair, or column data with
                time in column 0.

        Returns:
            True if the chunk was written, False if it was rejected.
        """
        with self._lock:
            try:
                chunk = Chunk.coerce(newdata)
            except ChunkError as e:
                logger.warning(f"Rejected chunk: {e}")
                return False

            if chunk.channel_count != self.buffer.channel_count:
                logger.warning(
                    f"Rejected chunk with {chunk.channel_count} channels, "
                    f"expected {self.buffer.channel_count}"
                )
                return False

            view = self.view
            if chunk.end_time < view.last_write_time:
                self._restart_sweep(chunk)

            reduced = self.downsampler.reduce(
                chunk, view.window_width, self.buffer.capacity,
                origin=view.origin_time,
            )
            first_slot = self.slot_for_time(reduced.first_timestamp)
            slots = self.buffer.write(
                first_slot,
                reduced.values * view.channel_scale,
                skip_blank_rows=reduced.sparse,
            )
            # Sparse markers from earlier passes must survive
            if not reduced.sparse:
                self.buffer.blank_after(slots)

            view.last_write_time = chunk.end_time
            view.sparse = reduced.sparse
            return True

    def slot_for_time(self, abs_time: float) -> int:
        """Display slot of an absolute timestamp in the current sweep."""
        with self._lock:
            rel = (abs_time - self.view.origin_time) % self.view.window_width
            return self.buffer.slot_for(rel)

    def _restart_sweep(self, chunk: Chunk) -> None:
        logger.debug(
            f"Sweep restart: chunk ends at {chunk.end_time:.6f} before last "
            f"write {self.view.last_write_time:.6f}"
        )
        self.view.origin_time = chunk.start_time
        if self.restart_policy is RestartPolicy.CLEAR:
            self.buffer.clear()

    # -------------------------------------------------------------------------
    # Buffer access
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Blank the buffer and start the next sweep at the latest write."""
        with self._lock:
            self._clear_locked()

    def _clear_locked(self) -> None:
        self.buffer.reset(self.view.window_width)
        self.view.origin_time = self.view.last_write_time

    def snapshot(self) -> Snapshot:
        """Return a consistent, read-only copy for rendering."""
        with self._lock:
            time_axis = self.buffer.time_axis.copy()
            values = self.buffer.values.copy()
            sparse = self.view.sparse
            window_width = self.view.window_width
            limits = self.view.voltage_limits
        time_axis.flags.writeable = False
        values.flags.writeable = False
        return Snapshot(time_axis, values, sparse, window_width, limits)

    # -------------------------------------------------------------------------
    # View operations
    # -------------------------------------------------------------------------

    def zoom_time(self, direction: Union[Zoom, str]) -> None:
        """Halve or double the time window; the buffer is re-derived."""
        with self._lock:
            width = self.view.zoom_time(direction)
            self._clear_locked()
        logger.info(f"Time window set to {width:g} s")

    def zoom_voltage(self, direction: Union[Zoom, str]) -> None:
        with self._lock:
            self.view.zoom_voltage(direction)

    def scroll_voltage(self, direction: Union[Scroll, str]) -> None:
        with self._lock:
            self.view.scroll_voltage(direction)

    def reset(self) -> None:
        """Restore the initial axes and clear the buffer."""
        with self._lock:
            self.view.restore()
            self._clear_locked()
        logger.info("View reset")
