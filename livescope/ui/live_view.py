"""Live view controller: feeds the display cache and redraws on a timer."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PySide6 import QtCore

from ..core import DisplayCache, Snapshot
from .widgets import ScopeWidget

logger = logging.getLogger(__name__)


class LiveView(QtCore.QObject):
    """Connects an acquisition callback, a display cache and a scope widget.

    Chunks are written as they arrive; the widget is redrawn at a fixed
    cadence from cache snapshots, independent of the acquisition rate.
    """

    DEFAULT_REDRAW_INTERVAL_MS = 33

    def __init__(self, cache: DisplayCache, widget: Optional[ScopeWidget] = None,
                 redraw_interval_ms: int = DEFAULT_REDRAW_INTERVAL_MS, parent=None):
        super().__init__(parent)
        self.cache = cache
        self.widget = widget
        self._rejected = 0

        self._redraw_timer = QtCore.QTimer(self)
        self._redraw_timer.setInterval(redraw_interval_ms)
        self._redraw_timer.timeout.connect(self.redraw)

        if widget is not None:
            widget.zoom_time_requested.connect(self.zoom_time)
            widget.zoom_voltage_requested.connect(self.zoom_voltage)
            widget.scroll_voltage_requested.connect(self.scroll_voltage)
            widget.reset_requested.connect(self.reset)

    @property
    def is_running(self) -> bool:
        return self._redraw_timer.isActive()

    @property
    def rejected_chunks(self) -> int:
        """Chunks dropped because they were malformed."""
        return self._rejected

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start a streaming session and the redraw tick."""
        self._rejected = 0
        self.cache.start()
        self._redraw_timer.start()
        self.redraw()

    def stop(self) -> None:
        """Stop redrawing; the last sweep stays on screen."""
        self._redraw_timer.stop()
        self.cache.stop()
        self.redraw()

    # -------------------------------------------------------------------------
    # Data Handling
    # -------------------------------------------------------------------------

    @QtCore.Slot(object, object)
    def on_chunk(self, timestamps: np.ndarray, samples: np.ndarray) -> None:
        """Acquisition data-ready callback."""
        if not self.cache.update((timestamps, samples)):
            self._rejected += 1

    @QtCore.Slot()
    def redraw(self) -> Snapshot:
        """Take a snapshot and draw it."""
        snapshot = self.cache.snapshot()
        if self.widget is not None:
            self.widget.draw_snapshot(snapshot)
        return snapshot

    # -------------------------------------------------------------------------
    # View operations
    # -------------------------------------------------------------------------

    @QtCore.Slot(str)
    def zoom_time(self, direction: str) -> None:
        self.cache.zoom_time(direction)
        self.redraw()

    @QtCore.Slot(str)
    def zoom_voltage(self, direction: str) -> None:
        self.cache.zoom_voltage(direction)
        self.redraw()

    @QtCore.Slot(str)
    def scroll_voltage(self, direction: str) -> None:
        self.cache.scroll_voltage(direction)
        self.redraw()

    @QtCore.Slot()
    def reset(self) -> None:
        self.cache.reset()
        self.redraw()
