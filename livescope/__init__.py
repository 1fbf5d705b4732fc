"""LiveScope package."""

from .version import __version__, __version_info__, APP_NAME
from .core import (
    Chunk,
    ChunkError,
    DisplayCache,
    Downsampler,
    ScopeSettings,
    Snapshot,
    Strategy,
)

__all__ = [
    "__version__",
    "__version_info__",
    "APP_NAME",
    "Chunk",
    "ChunkError",
    "DisplayCache",
    "Downsampler",
    "ScopeSettings",
    "Snapshot",
    "Strategy",
]
