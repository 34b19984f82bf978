"""metricol - counter and gauge metrics store with file backup."""

from metricol.config.server import _PACKAGE_VERSION as __version__

__all__ = ["__version__"]
