"""Read path: project records into nested key/value structures."""

from __future__ import annotations

import logging
from typing import Any

from mapview.maps.attribute_map import AttributeMap
from mapview.maps.exceptions import ResolutionError
from mapview.maps.registry import MapCatalog
from mapview.maps.specs import FieldSpec, RelationSpec
from mapview.records.interfaces import RecordType

from .options import ProjectionOptions


class MapProjector:
    """Produces ordered dictionaries from records through attribute maps."""

    def __init__(self, catalog: MapCatalog, *, logger: logging.Logger | None = None) -> None:
        self._catalog = catalog
        self._logger = logger or logging.getLogger(__name__)

    def project(
        self,
        record: Any,
        attr_map: AttributeMap | str,
        *,
        include: Any = None,
        only: Any = None,
        exclude: Any = None,
        context: Any = None,
        options: ProjectionOptions | None = None,
    ) -> dict[str, Any]:
        """Project ``record`` through ``attr_map`` (a map or a map name).

        ``include`` names optional fields, optional groups and relations to
        add; nested relation options are given as a mapping. ``only`` and
        ``exclude`` filter the names of this level.
        """

        resolved = self._map_for(record, attr_map)
        projection = options or ProjectionOptions.build(include, only, exclude)
        return self._project(record, resolved, projection, context)

    def project_many(
        self,
        records: Any,
        attr_map: AttributeMap | str,
        **kwargs: Any,
    ) -> list[dict[str, Any]]:
        return [self.project(record, attr_map, **kwargs) for record in records]

    def _map_for(self, record: Any, attr_map: AttributeMap | str) -> AttributeMap:
        if isinstance(attr_map, str):
            return self._catalog.map_for_record(record, attr_map)
        return attr_map.require_resolved()

    def _project(
        self,
        record: Any,
        attr_map: AttributeMap,
        options: ProjectionOptions,
        context: Any,
    ) -> dict[str, Any]:
        record_type = self._catalog.record_type_of(record)
        includes = options.include_names
        self._log_unknown_includes(attr_map, includes)

        output: dict[str, Any] = {}
        for name in options.select(attr_map.serializable_field_names(includes)):
            output[name] = self._read_field(record, record_type, attr_map, attr_map.fields[name], context)

        for name in options.select(attr_map.serializable_relation_names(includes)):
            spec = attr_map.relations[name]
            value = record_type.read_relation(record, spec.internal_name)
            if value is None:
                continue
            nested = options.nested(name)
            if spec.is_collection:
                output[name] = [
                    self._project(member, self._relation_map(attr_map, spec, member), nested, context)
                    for member in value
                ]
            else:
                output[name] = self._project(
                    value, self._relation_map(attr_map, spec, value), nested, context
                )
        return output

    def _read_field(
        self,
        record: Any,
        record_type: RecordType,
        attr_map: AttributeMap,
        spec: FieldSpec,
        context: Any,
    ) -> Any:
        binding = self._catalog.accessors.find(
            self._catalog.type_chain(attr_map.owner_type_name),
            attr_map.name,
            spec.record_attr,
        )
        if binding is not None and binding.reader is not None:
            return binding.read(record, context)
        if spec.record_attr == self._catalog.settings.discriminator_field:
            return record_type.discriminator(record)
        return record_type.read_field(record, spec.record_attr)

    def _relation_map(self, attr_map: AttributeMap, spec: RelationSpec, member: Any) -> AttributeMap:
        if not spec.polymorphic:
            return attr_map.relation_map(spec.public_name)
        try:
            return self._catalog.map_for_record(member, attr_map.name)
        except ResolutionError as exc:
            msg = (
                f"Expected attribute map '{attr_map.name}' to be defined for "
                f"{type(member).__name__} in polymorphic relation '{spec.public_name}'"
            )
            raise ResolutionError(msg) from exc

    def _log_unknown_includes(self, attr_map: AttributeMap, includes: frozenset[str]) -> None:
        if not includes or not self._logger.isEnabledFor(logging.DEBUG):
            return
        known = set(attr_map.fields) | set(attr_map.relations)
        known.update(str(spec.optional_group) for spec in attr_map.fields.values() if spec.optional)
        known.update(
            str(spec.optional_group) for spec in attr_map.relations.values() if spec.optional
        )
        unknown = sorted(includes - known)
        if unknown:
            self._logger.debug(
                "Ignoring unknown include names %s for %s:%s",
                unknown,
                attr_map.owner_type_name,
                attr_map.name,
            )


__all__ = ["MapProjector"]
