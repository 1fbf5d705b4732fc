"""Reusable UI widgets for LiveScope.

- ScopeWidget: Sweep plot drawing display cache snapshots
"""

from .scope_widget import ScopeWidget

__all__ = ['ScopeWidget']
