"""Custom exception hierarchy for floorsnap."""

from __future__ import annotations


class FloorsnapError(Exception):
    """Base exception for all floorsnap-specific errors."""
    
    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(FloorsnapError):
    """Raised when configuration is invalid or missing."""
    pass


class GeometryError(FloorsnapError):
    """Raised when geometry handed to the core is unusable."""
    pass


class InvalidScaleError(GeometryError):
    """Raised when the zoom scale is zero, negative or not finite."""
    pass


class TopologyError(FloorsnapError):
    """Raised when a split or merge pass could not be applied."""
    pass
