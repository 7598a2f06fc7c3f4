"""Per-type map registries and the catalog that owns them."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from mapview.config import MapSettings
from mapview.records.interfaces import RecordType

from .accessors import AccessorRegistry
from .attribute_map import AttributeMap, MapBlock
from .enums import OverrideMode
from .exceptions import ConfigurationError, ResolutionError
from .resolver import MapResolver


@dataclass
class MapRegistry:
    """Maps declared for one record type, keyed by map name.

    A subtype's registry falls back to its base type's registry for names it
    does not declare itself.
    """

    record_type: RecordType
    parent: MapRegistry | None = None
    maps: dict[str, AttributeMap] = field(default_factory=dict)

    def get(self, map_name: str) -> AttributeMap | None:
        attr_map = self.maps.get(map_name)
        if attr_map is None and self.parent is not None:
            return self.parent.get(map_name)
        return attr_map

    def require(self, map_name: str) -> AttributeMap:
        attr_map = self.get(map_name)
        if attr_map is None:
            msg = (
                f"Expected attribute map '{map_name}' to be defined "
                f"for type '{self.record_type.type_name}'"
            )
            raise ResolutionError(msg)
        return attr_map

    def register(self, attr_map: AttributeMap) -> AttributeMap | None:
        """Store ``attr_map``; returns the map it replaced, if any."""

        previous = self.maps.get(attr_map.name)
        self.maps[attr_map.name] = attr_map
        return previous

    def __iter__(self) -> Iterator[AttributeMap]:
        return iter(self.maps.values())


TypeRef = str | type


class MapCatalog:
    """Process-wide store of record types and their attribute maps.

    Types and maps are declared during a setup phase. ``mark_ready`` resolves
    every declared map and closes the catalog to further declarations.
    """

    def __init__(
        self,
        settings: MapSettings | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or MapSettings()
        self.accessors = AccessorRegistry()
        self._logger = logger or logging.getLogger(__name__)
        self._registries: dict[str, MapRegistry] = {}
        self._classes: dict[type, str] = {}
        self._ready = False
        self.resolver = MapResolver(self.registry_for, logger=self._logger)

    # Types

    def register_type(self, record_type: RecordType, *, override: bool = False) -> MapRegistry:
        self.ensure_mutable(f"type {record_type.type_name}")
        type_name = record_type.type_name
        if type_name in self._registries and not override:
            msg = f"Record type '{type_name}' is already registered"
            raise ConfigurationError(msg)

        parent = None
        base_type_name = record_type.base_type_name
        if base_type_name is not None:
            parent = self._registries.get(base_type_name)
            if parent is None:
                msg = (
                    f"Base type '{base_type_name}' of '{type_name}' must be "
                    "registered before its subtypes"
                )
                raise ConfigurationError(msg)

        registry = MapRegistry(record_type, parent=parent)
        self._registries[type_name] = registry
        self._classes[record_type.record_class] = type_name
        self._logger.debug("Registered record type %s (base=%s)", type_name, base_type_name)
        return registry

    def registry_for(self, type_name: str) -> MapRegistry | None:
        return self._registries.get(type_name)

    def record_type(self, type_ref: TypeRef) -> RecordType:
        return self._require_registry(type_ref).record_type

    def record_type_of(self, record: Any) -> RecordType:
        """Record type registered for ``record``'s class or its nearest superclass."""

        for klass in type(record).__mro__:
            type_name = self._classes.get(klass)
            if type_name is not None:
                return self._registries[type_name].record_type
        msg = f"No record type registered for {type(record).__name__}"
        raise ConfigurationError(msg)

    def type_chain(self, type_name: str) -> list[str]:
        """``type_name`` followed by its base types, nearest first."""

        chain: list[str] = []
        current: str | None = type_name
        while current is not None and current not in chain:
            chain.append(current)
            registry = self._registries.get(current)
            current = registry.record_type.base_type_name if registry is not None else None
        return chain

    # Maps

    def map_attributes(
        self,
        type_ref: TypeRef,
        map_name: str,
        block: MapBlock | None = None,
        **options: Any,
    ) -> AttributeMap:
        """Declare map ``map_name`` for a type, applying ``block`` to populate it."""

        registry = self._require_registry(type_ref)
        record_type = registry.record_type
        self.ensure_mutable(f"map '{map_name}' of {record_type.type_name}")
        attr_map = AttributeMap(self, record_type.type_name, map_name, **options)
        if attr_map.options.override is OverrideMode.REPLACE and record_type.base_type_name is None:
            msg = (
                f"Map '{map_name}' of {record_type.type_name} specifies replace "
                "but the type has no base type"
            )
            raise ConfigurationError(msg)
        if block is not None:
            block(attr_map)

        previous = registry.register(attr_map)
        if previous is not None:
            self._logger.warning(
                "Replacing attribute map %s:%s", record_type.type_name, map_name
            )
        return attr_map

    def attribute_map(self, type_ref: TypeRef, map_name: str) -> AttributeMap | None:
        registry = self._registries.get(self._type_name(type_ref))
        return registry.get(map_name) if registry is not None else None

    def require_map(self, type_ref: TypeRef, map_name: str) -> AttributeMap:
        return self._require_registry(type_ref).require(map_name)

    def map_for_record(self, record: Any, map_name: str) -> AttributeMap:
        """Resolved map ``map_name`` of the record's own concrete type."""

        record_type = self.record_type_of(record)
        return self.require_map(record_type.type_name, map_name).require_resolved()

    def iter_maps(self) -> Iterator[AttributeMap]:
        for registry in self._registries.values():
            yield from registry

    # Lifecycle

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_mutable(self, subject: str) -> None:
        if self._ready:
            msg = f"Cannot declare {subject}: mutation after readiness is unsupported"
            raise ConfigurationError(msg)

    def resolve_all(self, must_resolve: bool = True) -> bool:
        result = True
        for attr_map in list(self.iter_maps()):
            if not attr_map.resolve(must_resolve):
                result = False
        return result

    def mark_ready(self, *, resolve: bool = True) -> None:
        """Close the setup phase, resolving every declared map first."""

        if resolve:
            self.resolve_all(must_resolve=True)
        self._ready = True
        self._logger.info(
            "Map catalog ready: %s types, %s maps",
            len(self._registries),
            sum(1 for _ in self.iter_maps()),
        )

    # Internals

    def _type_name(self, type_ref: TypeRef) -> str:
        if isinstance(type_ref, str):
            return type_ref
        type_name = self._classes.get(type_ref)
        if type_name is None:
            msg = f"No record type registered for {type_ref.__name__}"
            raise ConfigurationError(msg)
        return type_name

    def _require_registry(self, type_ref: TypeRef) -> MapRegistry:
        type_name = self._type_name(type_ref)
        registry = self._registries.get(type_name)
        if registry is None:
            msg = f"Record type '{type_name}' is not registered"
            raise ConfigurationError(msg)
        return registry


__all__ = ["MapCatalog", "MapRegistry", "TypeRef"]
