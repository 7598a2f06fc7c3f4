"""Resolution of attribute maps into concrete, merged relation maps."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .enums import ResolutionState
from .exceptions import CircularMergeError, ResolutionError

if TYPE_CHECKING:
    from .attribute_map import AttributeMap
    from .registry import MapRegistry
    from .specs import RelationSpec

RegistryLookup = Callable[[str], "MapRegistry | None"]


class MapResolver:
    """Resolves relation maps and base-type maps of an attribute map.

    Resolution walks relations recursively. ``visiting`` holds the type names
    currently being resolved up the call stack; meeting one of them again
    returns provisional success without marking that map resolved.
    """

    def __init__(self, lookup: RegistryLookup, *, logger: logging.Logger | None = None) -> None:
        self._lookup = lookup
        self._logger = logger or logging.getLogger(__name__)

    def resolve(
        self,
        attr_map: AttributeMap,
        must_resolve: bool = False,
        visiting: list[str] | None = None,
    ) -> bool:
        if attr_map.resolved:
            return True
        visiting = visiting if visiting is not None else []
        owner = attr_map.owner_type_name
        if owner in visiting:
            self._logger.debug(
                "Deferring re-entrant resolution of %s:%s (visiting %s)",
                owner,
                attr_map.name,
                visiting,
            )
            return True

        visiting.append(owner)
        attr_map.state = ResolutionState.RESOLVING
        try:
            result = self._resolve_relations(attr_map, must_resolve, visiting)
            if not self._merge_base_type(attr_map, must_resolve, visiting):
                result = False
        except (ResolutionError, CircularMergeError):
            attr_map.state = ResolutionState.FAILED
            raise
        finally:
            visiting.pop()

        attr_map.state = ResolutionState.RESOLVED if result else ResolutionState.UNRESOLVED
        if result:
            self._logger.debug("Resolved attribute map %s:%s", owner, attr_map.name)
        return result

    def registered_map(self, type_name: str, map_name: str) -> AttributeMap | None:
        registry = self._lookup(type_name)
        if registry is None:
            return None
        return registry.get(map_name)

    def _resolve_relations(
        self,
        attr_map: AttributeMap,
        must_resolve: bool,
        visiting: list[str],
    ) -> bool:
        result = True
        for name, spec in list(attr_map.relations.items()):
            self._detect_circular_merge(attr_map, name, spec)

            candidate = spec.nested_map or self.registered_map(spec.target_type_name, attr_map.name)
            if candidate is None:
                result = False
                if must_resolve:
                    msg = (
                        f"Cannot resolve map for relation '{name}' in "
                        f"{attr_map.owner_type_name}:{attr_map.name} map; "
                        f"{spec.target_type_name} declares no '{attr_map.name}' map"
                    )
                    raise ResolutionError(msg)
                continue

            resolved = self._resolve_nested(candidate, attr_map, name, must_resolve, visiting)
            if resolved and spec.merges and spec.nested_map is not None:
                candidate = self._compose(attr_map, spec, candidate, must_resolve, visiting)
                resolved = self._resolve_nested(candidate, attr_map, name, must_resolve, visiting)

            attr_map.relation_maps[name] = candidate
            if not resolved:
                result = False
        return result

    def relation_map_for(self, attr_map: AttributeMap, spec: RelationSpec) -> AttributeMap | None:
        """Build the map for a relation that resolution left without one.

        Relations copied from a provisionally resolved base map arrive without
        their resolved maps. They are composed here on first use instead.
        """

        candidate = spec.nested_map or self.registered_map(spec.target_type_name, attr_map.name)
        if candidate is None or not spec.merges or spec.nested_map is None:
            return candidate
        target_map = self.registered_map(spec.target_type_name, attr_map.name)
        if target_map is None:
            return candidate
        return target_map.copy().merge_with(candidate, with_options=True, with_state=True)

    def _resolve_nested(
        self,
        candidate: AttributeMap,
        attr_map: AttributeMap,
        relation_name: str,
        must_resolve: bool,
        visiting: list[str],
    ) -> bool:
        try:
            return self.resolve(candidate, must_resolve, visiting)
        except ResolutionError as exc:
            msg = (
                f"Cannot resolve map for relation '{relation_name}' in "
                f"{attr_map.owner_type_name}:{attr_map.name} map"
            )
            raise ResolutionError(msg) from exc

    def _compose(
        self,
        attr_map: AttributeMap,
        spec: RelationSpec,
        explicit: AttributeMap,
        must_resolve: bool,
        visiting: list[str],
    ) -> AttributeMap:
        target_map = self.registered_map(spec.target_type_name, attr_map.name)
        if target_map is None:
            self._logger.debug(
                "No %s map on %s to merge relation %s into; using declared map",
                attr_map.name,
                spec.target_type_name,
                spec.public_name,
            )
            return explicit
        self._resolve_nested(target_map, attr_map, spec.public_name, must_resolve, visiting)
        return target_map.copy().merge_with(explicit, with_options=True, with_state=True)

    def _merge_base_type(
        self,
        attr_map: AttributeMap,
        must_resolve: bool,
        visiting: list[str],
    ) -> bool:
        if not attr_map.merges_base or attr_map.base_merged:
            return True
        registry = self._lookup(attr_map.owner_type_name)
        base_type_name = registry.record_type.base_type_name if registry is not None else None
        if base_type_name is None:
            return True

        base_map = self.registered_map(base_type_name, attr_map.name)
        resolved = False
        if base_map is not None and base_map is not attr_map:
            try:
                resolved = self.resolve(base_map, must_resolve, visiting)
            except ResolutionError as exc:
                msg = f"Cannot resolve base type map for {attr_map.owner_type_name}:{attr_map.name}"
                raise ResolutionError(msg) from exc
        if not resolved or base_map is None:
            if must_resolve:
                msg = (
                    f"Cannot resolve base type map for {attr_map.owner_type_name}:{attr_map.name}; "
                    f"{base_type_name} declares no '{attr_map.name}' map"
                )
                raise ResolutionError(msg)
            return False

        # A base map met again while it is still resolving (a base relation to
        # this subtype) has only part of its relation maps. AttributeMap.relation_map
        # composes the missing ones on first use.
        attr_map.copy_from(base_map.copy().merge_with(attr_map))
        attr_map.base_merged = True
        self._logger.debug(
            "Merged base type map %s:%s into %s",
            base_type_name,
            attr_map.name,
            attr_map.owner_type_name,
        )
        return True

    def _detect_circular_merge(self, attr_map: AttributeMap, name: str, spec: RelationSpec) -> None:
        if spec.nested_map is None or not spec.merges:
            return
        target_map = self.registered_map(spec.target_type_name, attr_map.name)
        if target_map is None:
            return
        for other in target_map.relations.values():
            if (
                other.target_type_name == attr_map.owner_type_name
                and other.merges
                and other.nested_map is not None
            ):
                msg = (
                    "Detected attribute map circular merge references: "
                    f"type={attr_map.owner_type_name}, relation={name}"
                )
                raise CircularMergeError(msg)


__all__ = ["MapResolver", "RegistryLookup"]
