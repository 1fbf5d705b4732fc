import logging
import sys

from PySide6 import QtCore, QtWidgets

from livescope.acquisition import SimulatedSource
from livescope.core import DisplayCache, ScopeSettings
from livescope.ui import LiveView, ScopeWidget
from livescope.version import __version__, APP_NAME

DEMO_CHANNELS = 2


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_NAME)

    settings = ScopeSettings.load()
    cache = DisplayCache.from_settings(settings, DEMO_CHANNELS)

    widget = ScopeWidget(DEMO_CHANNELS)
    widget.set_grid(settings.show_grid, settings.grid_alpha)
    widget.setWindowTitle(f"{APP_NAME} v{__version__}")
    widget.resize(1100, 650)

    live_view = LiveView(cache, widget, redraw_interval_ms=settings.redraw_interval_ms)
    source = SimulatedSource(channel_count=DEMO_CHANNELS)
    source.chunk_received.connect(live_view.on_chunk, QtCore.Qt.QueuedConnection)
    source.error.connect(lambda msg: logging.getLogger(__name__).error(msg))
    app.aboutToQuit.connect(source.stop)

    live_view.start()
    source.start()
    widget.show()
    sys.exit(app.exec())


if __name__ == '__main__':
    main()
