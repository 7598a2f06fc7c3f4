"""Read and write paths over resolved attribute maps."""

from .options import ProjectionOptions
from .projector import MapProjector
from .translator import WriteTranslator

__all__ = ["MapProjector", "ProjectionOptions", "WriteTranslator"]
