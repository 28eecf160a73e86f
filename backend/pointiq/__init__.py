"""PointIQ: table tennis point logging with offline-first sync."""

__version__ = "0.1.0"
