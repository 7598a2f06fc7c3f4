"""Write path: translate public input into internal names for assignment."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from mapview.maps.attribute_map import AttributeMap
from mapview.maps.exceptions import InputShapeError
from mapview.maps.registry import MapCatalog, TypeRef
from mapview.maps.specs import RelationSpec


class WriteTranslator:
    """Rewrites external key/value input for nested bulk assignment.

    Fields are renamed through the map's write index; read-only and unknown
    keys are dropped. Writable relations are translated recursively and
    stored under ``<internal name><suffix>`` (``comments_attributes``).
    """

    def __init__(self, catalog: MapCatalog, *, logger: logging.Logger | None = None) -> None:
        self._catalog = catalog
        self._logger = logger or logging.getLogger(__name__)

    def translate_for_write(
        self,
        attr_map: AttributeMap | tuple[TypeRef, str],
        data: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Translate a mapping, or a sequence of mappings, through ``attr_map``.

        ``attr_map`` is a map or a ``(type, map name)`` pair. The input is not
        modified.
        """

        if isinstance(attr_map, tuple):
            attr_map = self._catalog.require_map(*attr_map)
        attr_map.require_resolved()
        if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
            return [self._translate(attr_map, self._expect_mapping(attr_map, item)) for item in data]
        return self._translate(attr_map, self._expect_mapping(attr_map, data))

    translate = translate_for_write

    def _translate(self, attr_map: AttributeMap, data: Mapping[str, Any]) -> dict[str, Any]:
        output: dict[str, Any] = {}
        write_index = attr_map.write_index
        for key, value in data.items():
            name = str(key)
            spec = attr_map.relations.get(name)
            if spec is not None:
                self._translate_relation(attr_map, spec, value, output)
            elif name in write_index:
                output[write_index[name]] = value
            else:
                self._logger.debug(
                    "Dropping unmapped key %s for %s:%s",
                    name,
                    attr_map.owner_type_name,
                    attr_map.name,
                )
        return output

    def _translate_relation(
        self,
        attr_map: AttributeMap,
        spec: RelationSpec,
        value: Any,
        output: dict[str, Any],
    ) -> None:
        if not spec.access_mode.writable:
            self._logger.debug(
                "Dropping read-only relation %s for %s:%s",
                spec.public_name,
                attr_map.owner_type_name,
                attr_map.name,
            )
            return

        nested_map = attr_map.relation_map(spec.public_name)
        if spec.is_collection:
            translated = self._translate_collection(nested_map, value)
        elif value is None:
            translated = None
        else:
            translated = self._translate(nested_map, self._expect_mapping(nested_map, value))
        output[self._catalog.settings.nested_key(spec.internal_name)] = translated

    def _translate_collection(self, nested_map: AttributeMap, value: Any) -> Any:
        entries = _unwrap_collection(value)
        if isinstance(entries, Mapping):
            return {
                index: self._translate(nested_map, self._expect_mapping(nested_map, attrs))
                for index, attrs in entries.items()
            }
        if isinstance(entries, Sequence) and not isinstance(entries, (str, bytes)):
            return [
                self._translate(nested_map, self._expect_mapping(nested_map, attrs))
                for attrs in entries
            ]
        msg = (
            f"Expected a list of attribute mappings for {nested_map.owner_type_name}:"
            f"{nested_map.name} but received {entries!r}"
        )
        raise InputShapeError(msg)

    @staticmethod
    def _expect_mapping(attr_map: AttributeMap, value: Any) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            msg = (
                f"Expected attributes mapping for {attr_map.owner_type_name}:{attr_map.name} "
                f"but received {value!r}"
            )
            raise InputShapeError(msg)
        return value


def _unwrap_collection(value: Any) -> Any:
    """Reduce ``{"comment": [...]}`` wrappers to the wrapped list."""

    if isinstance(value, Mapping) and len(value) == 1:
        (inner,) = value.values()
        if isinstance(inner, list):
            return inner
    return value


__all__ = ["WriteTranslator"]
