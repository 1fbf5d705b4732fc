"""LiveScope version information."""

__version__ = "1.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

APP_NAME = "LiveScope"
DESCRIPTION = "Live oscilloscope display cache for multi-channel acquisition"
LICENSE = "Apache-2.0"
