"""Driver Tracker: time-limited public tracking links for delivery drivers."""

__version__ = "1.0.0"
