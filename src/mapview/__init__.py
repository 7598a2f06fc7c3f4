"""Named attribute maps exposing records for reading and writing."""

from .config import MapSettings
from .container import MappingContainer, build_container
from .maps import (
    AccessMode,
    AttributeMap,
    CircularMergeError,
    ConfigurationError,
    InputShapeError,
    MapCatalog,
    MapError,
    OverrideMode,
    ResolutionError,
)
from .records.assignment import NestedAttributeAssigner
from .serialization import MapProjector, ProjectionOptions, WriteTranslator

__all__ = [
    "AccessMode",
    "AttributeMap",
    "CircularMergeError",
    "ConfigurationError",
    "InputShapeError",
    "MapCatalog",
    "MapError",
    "MapProjector",
    "MapSettings",
    "MappingContainer",
    "NestedAttributeAssigner",
    "OverrideMode",
    "ProjectionOptions",
    "ResolutionError",
    "WriteTranslator",
    "build_container",
]
