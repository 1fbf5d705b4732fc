"""Acquisition sources feeding the live view."""

from .simulated import SimulatedSource, generate_chunk

__all__ = [
    "SimulatedSource",
    "generate_chunk",
]
