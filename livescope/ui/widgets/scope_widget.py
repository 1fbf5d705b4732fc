"""Oscilloscope-style plot widget drawing display cache snapshots."""

from __future__ import annotations
from typing import List

import numpy as np
import pyqtgraph as pg
from PySide6.QtCore import Qt, Signal

from ...core import Scroll, Snapshot, Zoom


class ScopeWidget(pg.PlotWidget):
    """Single-panel sweep plot with one trace per channel.

    Features:
        - Continuous lines broken at blank slots
        - Discrete markers when the data was placed by sparse fill
        - Mouse wheel to zoom the time window (Ctrl: voltage range)
        - Up/Down keys to scroll the voltage range
        - Middle-click to reset the view
    """

    # View requests, carried out by the owner of the display cache
    zoom_time_requested = Signal(str)
    zoom_voltage_requested = Signal(str)
    scroll_voltage_requested = Signal(str)
    reset_requested = Signal()

    CHANNEL_COLORS = [
        (31, 119, 180),   # blue
        (255, 127, 14),   # orange
        (44, 160, 44),    # green
        (214, 39, 40),    # red
    ]
    LINE_WIDTH = 1
    MARKER_SIZE = 4

    def __init__(self, channel_count: int, y_label: str = "Voltage [V]",
                 parent=None):
        super().__init__(parent)
        self.channel_count = channel_count
        self._sparse = False

        plot = self.getPlotItem()
        plot.setLabel('bottom', 'Time [s]')
        plot.setLabel('left', y_label)
        plot.hideButtons()

        # Axes follow the view state, not the data
        plot.setMouseEnabled(x=False, y=False)
        plot.enableAutoRange(enable=False)

        self._pens = [
            pg.mkPen(self.CHANNEL_COLORS[ch % len(self.CHANNEL_COLORS)],
                     width=self.LINE_WIDTH)
            for ch in range(channel_count)
        ]
        self.curves: List[pg.PlotDataItem] = [
            plot.plot(pen=pen) for pen in self._pens
        ]
        self.set_grid(True)
        self.setFocusPolicy(Qt.StrongFocus)

    @property
    def sparse(self) -> bool:
        """Whether the last drawn snapshot used markers."""
        return self._sparse

    def draw_snapshot(self, snapshot: Snapshot) -> None:
        """Draw a cache snapshot and apply its axis ranges."""
        x = snapshot.time_axis
        for ch, curve in enumerate(self.curves[:snapshot.channel_count]):
            y = snapshot.values[:, ch]
            if snapshot.sparse:
                shown = np.isfinite(y)
                curve.setData(
                    x[shown], y[shown],
                    pen=None,
                    symbol='o',
                    symbolSize=self.MARKER_SIZE,
                    symbolPen=None,
                    symbolBrush=self.CHANNEL_COLORS[ch % len(self.CHANNEL_COLORS)],
                )
            else:
                curve.setData(x, y, pen=self._pens[ch], symbol=None, connect='finite')

        self._sparse = snapshot.sparse
        plot = self.getPlotItem()
        plot.setXRange(0.0, snapshot.window_width, padding=0)
        plot.setYRange(*snapshot.voltage_limits, padding=0)

    def set_grid(self, show: bool, alpha: float = 0.2) -> None:
        """Configure grid visibility and opacity."""
        self.getPlotItem().showGrid(x=show, y=show, alpha=alpha)

    def wheelEvent(self, event) -> None:
        """Handle mouse wheel for time (or, with Ctrl, voltage) zoom."""
        delta = event.angleDelta().y()
        if delta == 0:
            # Horizontal scroll
            event.ignore()
            return
        direction = Zoom.IN if delta > 0 else Zoom.OUT
        if event.modifiers() & Qt.ControlModifier:
            self.zoom_voltage_requested.emit(direction.value)
        else:
            self.zoom_time_requested.emit(direction.value)
        event.accept()

    def keyPressEvent(self, event) -> None:
        """Handle Up/Down keys for voltage scroll."""
        if event.key() == Qt.Key_Up:
            self.scroll_voltage_requested.emit(Scroll.UP.value)
            event.accept()
        elif event.key() == Qt.Key_Down:
            self.scroll_voltage_requested.emit(Scroll.DOWN.value)
            event.accept()
        else:
            super().keyPressEvent(event)

    def mousePressEvent(self, event) -> None:
        """Handle mouse press events."""
        if event.button() == Qt.MiddleButton:
            self.reset_requested.emit()
            event.accept()
        else:
            super().mousePressEvent(event)
