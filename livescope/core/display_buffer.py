"""Fixed-capacity ring of display slots for the live scope view."""

from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np


@dataclass(eq=False)
class DisplayBuffer:
    """Renderable display points for one time window.

    Slot ``i`` shows time ``i * window_width / capacity`` within the current
    sweep. NaN in ``values`` means "draw nothing here", not zero.

    Attributes:
        capacity: Display points per channel; constant for the buffer's life.
        channel_count: Number of displayed channels (1-4).
        window_width: Time span of one sweep (seconds).
        gap_fraction: Share of the capacity blanked after fresh data.
    """
    MAX_CHANNELS = 4

    capacity: int
    channel_count: int
    window_width: float
    gap_fraction: float = 0.05
    time_axis: np.ndarray = field(init=False, repr=False)
    values: np.ndarray = field(init=False, repr=False)
    buffer_gap: int = field(init=False)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {self.capacity}")
        if not 1 <= self.channel_count <= self.MAX_CHANNELS:
            raise ValueError(
                f"channel_count must be 1-{self.MAX_CHANNELS}, "
                f"got {self.channel_count}"
            )
        if not 0.0 <= self.gap_fraction < 1.0:
            raise ValueError(f"gap_fraction must be in [0, 1), got {self.gap_fraction}")
        self.buffer_gap = int(round(self.capacity * self.gap_fraction))
        self.values = np.full((self.capacity, self.channel_count), np.nan)
        self.reset(self.window_width)

    def reset(self, window_width: float) -> None:
        """Re-derive the time axis for a new window width and clear."""
        if window_width <= 0:
            raise ValueError(f"window_width must be positive, got {window_width}")
        self.window_width = float(window_width)
        self.time_axis = np.linspace(
            0.0, self.window_width, self.capacity, endpoint=False
        )
        self.clear()

    def clear(self) -> None:
        """Blank every slot."""
        self.values.fill(np.nan)

    def slot_for(self, rel_time: float) -> int:
        """Slot index for a time relative to the start of the sweep."""
        slot = int(round(rel_time / self.window_width * self.capacity))
        return min(max(slot, 0), self.capacity - 1)

    def write(self, first_slot: int, rows: np.ndarray,
              skip_blank_rows: bool = False) -> np.ndarray:
        """Write rows into consecutive slots, wrapping at the ring's end.

        Args:
            first_slot: Slot receiving the first row.
            rows: (n, channel_count) values, already scaled.
            skip_blank_rows: Leave slots untouched where a row is all NaN.

        Returns:
            The slot indices covered by the rows, in write order.
        """
        rows = np.asarray(rows, dtype=np.float64)
        n = rows.shape[0]
        if n > self.capacity:
            # Only the newest lap of the ring survives
            first_slot = (first_slot + n - self.capacity) % self.capacity
            rows = rows[-self.capacity:]
            n = self.capacity

        slots = (first_slot + np.arange(n)) % self.capacity
        if skip_blank_rows:
            filled = ~np.all(np.isnan(rows), axis=1)
            self.values[slots[filled]] = rows[filled]
        else:
            self.values[slots] = rows
        return slots

    def blank_after(self, slots: np.ndarray) -> np.ndarray:
        """Blank up to ``buffer_gap`` slots following a written region.

        The gap never reaches back into the region itself.
        """
        count = min(self.buffer_gap, self.capacity - len(slots))
        if count <= 0 or len(slots) == 0:
            return np.empty(0, dtype=np.intp)
        gap = (int(slots[-1]) + 1 + np.arange(count)) % self.capacity
        self.values[gap] = np.nan
        return gap

    @property
    def is_blank(self) -> bool:
        return bool(np.all(np.isnan(self.values)))
