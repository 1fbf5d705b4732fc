"""Axis state of the live scope view."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Tuple, Union

import numpy as np


class Zoom(str, Enum):
    """Zoom direction."""
    IN = "in"
    OUT = "out"


class Scroll(str, Enum):
    """Vertical scroll direction."""
    UP = "up"
    DOWN = "down"


@dataclass(eq=False)
class ViewState:
    """Time window, voltage range and sweep bookkeeping.

    Attributes:
        window_width: X-axis span in seconds.
        voltage_half_range: Symmetric half-range of the Y axis.
        channel_scale: Raw-to-display unit factor, one per channel.
        voltage_center: Midpoint of the visible Y range (vertical pan).
        origin_time: Absolute time mapped to the start of the sweep.
        last_write_time: Absolute end time of the last written chunk.
        sparse: Whether the last chunk was placed by sparse fill.
    """
    # Scroll step as a fraction of the half-range
    SCROLL_FRACTION = 0.2
    MIN_WINDOW_SECONDS = 0.001
    MAX_WINDOW_SECONDS = 300.0  # 5 minutes max

    window_width: float
    voltage_half_range: float = 1.0
    channel_scale: Sequence[float] = (1.0,)
    voltage_center: float = 0.0
    origin_time: float = 0.0
    last_write_time: float = 0.0
    sparse: bool = False
    initial_window_width: float = field(init=False)
    initial_voltage_half_range: float = field(init=False)

    def __post_init__(self) -> None:
        if self.window_width <= 0:
            raise ValueError(f"window_width must be positive, got {self.window_width}")
        if self.voltage_half_range <= 0:
            raise ValueError(
                f"voltage_half_range must be positive, got {self.voltage_half_range}"
            )
        self.window_width = float(self.window_width)
        self.voltage_half_range = float(self.voltage_half_range)
        self.channel_scale = np.asarray(self.channel_scale, dtype=np.float64).reshape(-1)
        self.initial_window_width = self.window_width
        self.initial_voltage_half_range = self.voltage_half_range

    @property
    def voltage_limits(self) -> Tuple[float, float]:
        """Visible Y range (low, high)."""
        return (self.voltage_center - self.voltage_half_range,
                self.voltage_center + self.voltage_half_range)

    def zoom_time(self, direction: Union[Zoom, str]) -> float:
        """Halve (in) or double (out) the window width. Returns the new width.

        The width stays within MIN_WINDOW_SECONDS and MAX_WINDOW_SECONDS.
        """
        if Zoom(direction) is Zoom.IN:
            self.window_width = max(self.MIN_WINDOW_SECONDS, self.window_width / 2)
        else:
            self.window_width = min(self.MAX_WINDOW_SECONDS, self.window_width * 2)
        return self.window_width

    def zoom_voltage(self, direction: Union[Zoom, str]) -> None:
        """Halve (in) or double (out) the voltage range around its center."""
        if Zoom(direction) is Zoom.IN:
            self.voltage_half_range /= 2
        else:
            self.voltage_half_range *= 2

    def scroll_voltage(self, direction: Union[Scroll, str]) -> None:
        """Shift the visible voltage range by a fifth of the half-range."""
        step = self.voltage_half_range * self.SCROLL_FRACTION
        if Scroll(direction) is Scroll.UP:
            self.voltage_center += step
        else:
            self.voltage_center -= step

    def restore(self) -> None:
        """Return to the construction-time window and voltage range."""
        self.window_width = self.initial_window_width
        self.voltage_half_range = self.initial_voltage_half_range
        self.voltage_center = 0.0
