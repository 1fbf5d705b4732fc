"""Scope settings with persistence."""

from __future__ import annotations
from dataclasses import dataclass, fields
import logging
from typing import List, Optional

from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

ORGANIZATION = "LiveScope"
APPLICATION = "LiveScope"


@dataclass
class ScopeSettings:
    """Live view settings."""
    # Display buffer
    display_points: int = 5000  # Display points per channel
    window_seconds: float = 5.0
    voltage_half_range: float = 1.0
    gap_fraction: float = 0.05  # Blank slots ahead of new data (capacity/20)

    # Downsampling
    downsample_strategy: str = "minmax"  # 'minmax' or 'random'
    restart_policy: str = "keep"  # 'keep' or 'clear' old trace on sweep restart

    # Rendering
    redraw_interval_ms: int = 33  # ~30 FPS
    show_grid: bool = True
    grid_alpha: float = 0.2

    # Units: raw acquisition value -> display value, comma separated per channel
    channel_scales: str = "1.0"

    def scales_for(self, channel_count: int) -> List[float]:
        """Per-channel scale factors, the last one repeated if too few."""
        try:
            scales = [float(s) for s in self.channel_scales.split(',') if s.strip()]
        except ValueError as e:
            raise ValueError(f"Invalid channel_scales {self.channel_scales!r}") from e
        if not scales:
            scales = [1.0]
        if len(scales) < channel_count:
            scales += [scales[-1]] * (channel_count - len(scales))
        return scales[:channel_count]

    def save(self, store: Optional[QSettings] = None) -> None:
        """Save settings to persistent storage.

        Uses QSettings which automatically handles:
        - Linux: ~/.config/LiveScope/LiveScope.conf
        - Windows: Registry HKEY_CURRENT_USER\\Software\\LiveScope
        - macOS: ~/Library/Preferences/com.LiveScope.plist

        Args:
            store: Explicit settings store, defaults to the user scope.
        """
        settings = store if store is not None else QSettings(ORGANIZATION, APPLICATION)
        for f in fields(self):
            settings.setValue(f.name, getattr(self, f.name))
        settings.sync()
        if settings.status() != QSettings.Status.NoError:
            logger.warning(f"Could not save settings: {settings.status()}")

    @classmethod
    def load(cls, store: Optional[QSettings] = None) -> 'ScopeSettings':
        """Load settings from persistent storage.

        Returns default values for keys that are missing or unreadable.
        """
        instance = cls()  # Start with defaults
        settings = store if store is not None else QSettings(ORGANIZATION, APPLICATION)

        for f in fields(instance):
            if not settings.contains(f.name):
                continue
            stored = settings.value(f.name)
            default_val = getattr(instance, f.name)

            # Type conversion based on default value type
            try:
                if isinstance(default_val, bool):
                    # QSettings stores bools as strings on some platforms
                    if isinstance(stored, bool):
                        value = stored
                    elif isinstance(stored, str):
                        value = stored.lower() in ('true', '1', 'yes')
                    else:
                        value = bool(stored)
                elif isinstance(default_val, int):
                    value = int(stored)
                elif isinstance(default_val, float):
                    value = float(stored)
                elif isinstance(stored, list):
                    # INI stores hand back comma separated strings as lists
                    value = ','.join(str(s) for s in stored)
                else:
                    value = str(stored)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring invalid setting {f.name}={stored!r}")
                continue
            setattr(instance, f.name, value)

        return instance
