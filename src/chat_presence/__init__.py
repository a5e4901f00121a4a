"""Chat room backend with heartbeat-based presence."""

__version__ = "0.1.0"
