"""Client for the OGC Web Feature Service (WFS 1.1.0 and 2.0.x)."""

__version__ = "1.0.0"
