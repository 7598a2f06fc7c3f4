"""Exceptions raised while declaring, resolving and using attribute maps."""

from __future__ import annotations


class MapError(RuntimeError):
    """Base class for attribute map failures."""


class ConfigurationError(MapError):
    """Raised when a map, field or relation declaration is invalid."""


class InputShapeError(ConfigurationError):
    """Raised when write input is not a nested key/value structure."""


class ResolutionError(MapError):
    """Raised when a map or one of its relation maps cannot be resolved."""


class CircularMergeError(MapError):
    """Raised when two maps merge each other's relation maps."""


__all__ = [
    "CircularMergeError",
    "ConfigurationError",
    "InputShapeError",
    "MapError",
    "ResolutionError",
]
