"""Attribute map declaration, registry and resolution."""

from .accessors import AccessorBinding, AccessorRegistry
from .attribute_map import AttributeMap, MapBlock
from .enums import AccessMode, OverrideMode, ResolutionState, SchemaAccess
from .exceptions import (
    CircularMergeError,
    ConfigurationError,
    InputShapeError,
    MapError,
    ResolutionError,
)
from .registry import MapCatalog, MapRegistry
from .resolver import MapResolver
from .specs import FieldSpec, RelationSpec

__all__ = [
    "AccessMode",
    "AccessorBinding",
    "AccessorRegistry",
    "AttributeMap",
    "CircularMergeError",
    "ConfigurationError",
    "FieldSpec",
    "InputShapeError",
    "MapBlock",
    "MapCatalog",
    "MapError",
    "MapRegistry",
    "MapResolver",
    "OverrideMode",
    "RelationSpec",
    "ResolutionError",
    "ResolutionState",
    "SchemaAccess",
]
