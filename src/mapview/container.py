"""Service container wiring the mapping components."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mapview.config import MapSettings
from mapview.maps import MapCatalog
from mapview.records.assignment import NestedAttributeAssigner
from mapview.serialization import MapProjector, WriteTranslator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MappingContainer:
    """Catalog and services sharing one configuration."""

    settings: MapSettings
    catalog: MapCatalog
    projector: MapProjector
    translator: WriteTranslator
    assigner: NestedAttributeAssigner


def build_container(settings: MapSettings | None = None) -> MappingContainer:
    """Construct the mapping services around a fresh catalog."""

    resolved_settings = settings or MapSettings.from_env()
    catalog = MapCatalog(resolved_settings)
    translator = WriteTranslator(catalog)
    container = MappingContainer(
        settings=resolved_settings,
        catalog=catalog,
        projector=MapProjector(catalog),
        translator=translator,
        assigner=NestedAttributeAssigner(catalog, translator),
    )
    logger.debug("Built mapping container for %s environment", resolved_settings.environment)
    return container


__all__ = ["MappingContainer", "build_container"]
