"""Core data structures and the live display cache."""

from .chunk import Chunk, ChunkError
from .downsample import Downsampler, ReducedChunk, Strategy, point_budget
from .display_buffer import DisplayBuffer
from .view_state import Scroll, ViewState, Zoom
from .cache import DisplayCache, RestartPolicy, SessionState, Snapshot
from .settings import ScopeSettings

__all__ = [
    'Chunk',
    'ChunkError',
    'Downsampler',
    'ReducedChunk',
    'Strategy',
    'point_budget',
    'DisplayBuffer',
    'Scroll',
    'ViewState',
    'Zoom',
    'DisplayCache',
    'RestartPolicy',
    'SessionState',
    'Snapshot',
    'ScopeSettings',
]
