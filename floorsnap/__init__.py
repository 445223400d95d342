"""Snapping and wall topology core for 2D floor plan editing."""

__version__ = "0.1.0"
