"""UI package for LiveScope."""

from .live_view import LiveView
from .widgets import ScopeWidget

__all__ = [
    "LiveView",
    "ScopeWidget",
]
