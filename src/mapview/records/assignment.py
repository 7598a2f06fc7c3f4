"""Apply translated write input to records, including nested relations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from mapview.maps.attribute_map import AttributeMap
from mapview.maps.exceptions import InputShapeError
from mapview.maps.registry import MapCatalog
from mapview.maps.specs import RelationSpec
from mapview.serialization.translator import WriteTranslator

from .interfaces import RecordType

_FALSE_VALUES = frozenset({"", "0", "false", "f", "no", "off"})


def is_truthy(value: Any) -> bool:
    """Interpret a destroy marker the way form input encodes booleans."""

    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_VALUES
    return bool(value)


class NestedAttributeAssigner:
    """Writes public input onto a record through an attribute map.

    Input is translated first, so read-only and unknown keys never reach the
    record. Nested relation entries update existing members matched by
    primary key and build the remaining ones; a truthy destroy marker removes
    a member when the record type allows destroy for that relation.
    """

    def __init__(
        self,
        catalog: MapCatalog,
        translator: WriteTranslator,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._catalog = catalog
        self._translator = translator
        self._logger = logger or logging.getLogger(__name__)

    def assign(
        self,
        record: Any,
        attr_map: AttributeMap | str,
        data: Mapping[str, Any],
        *,
        context: Any = None,
    ) -> Any:
        if isinstance(attr_map, str):
            attr_map = self._catalog.map_for_record(record, attr_map)
        if not isinstance(data, Mapping):
            msg = f"Expected attributes mapping for {attr_map.owner_type_name} but received {data!r}"
            raise InputShapeError(msg)
        translated = self._translator.translate_for_write(attr_map, data)
        self._apply(record, attr_map, translated, context)
        return record

    def _apply(
        self,
        record: Any,
        attr_map: AttributeMap,
        values: Mapping[str, Any],
        context: Any,
    ) -> None:
        settings = self._catalog.settings
        record_type = self._catalog.record_type_of(record)
        nested_keys = {
            settings.nested_key(spec.internal_name): spec
            for spec in attr_map.relations.values()
            if spec.access_mode.writable
        }
        for key, value in values.items():
            spec = nested_keys.get(key)
            if spec is not None:
                self._apply_relation(record, record_type, attr_map, spec, value, context)
            elif key != settings.destroy_key:
                self._write_field(record, record_type, attr_map, key, value, context)

    def _write_field(
        self,
        record: Any,
        record_type: RecordType,
        attr_map: AttributeMap,
        internal_name: str,
        value: Any,
        context: Any,
    ) -> None:
        binding = self._catalog.accessors.find(
            self._catalog.type_chain(attr_map.owner_type_name),
            attr_map.name,
            internal_name,
        )
        if binding is not None:
            binding.write(record, value, context)
        else:
            record_type.write_field(record, internal_name, value)

    def _apply_relation(
        self,
        record: Any,
        record_type: RecordType,
        attr_map: AttributeMap,
        spec: RelationSpec,
        value: Any,
        context: Any,
    ) -> None:
        if value is None:
            return
        nested_map = attr_map.relation_map(spec.public_name)
        if spec.is_collection:
            entries = list(value.values()) if isinstance(value, Mapping) else list(value)
            self._apply_collection(record, record_type, nested_map, spec, entries, context)
        else:
            self._apply_single(record, record_type, nested_map, spec, value, context)

    def _apply_single(
        self,
        record: Any,
        record_type: RecordType,
        nested_map: AttributeMap,
        spec: RelationSpec,
        attrs: Mapping[str, Any],
        context: Any,
    ) -> None:
        current = record_type.read_relation(record, spec.internal_name)
        destroy = self._destroy_requested(attrs)
        if current is not None and self._matches(current, attrs):
            if destroy and record_type.allows_destroy(spec.internal_name):
                record_type.remove_related(record, spec.internal_name, current)
                return
            self._apply(current, nested_map, attrs, context)
            return
        if destroy:
            self._logger.debug("Skipping new %s marked for destroy", spec.public_name)
            return
        member = record_type.build_related(record, spec.internal_name)
        self._apply(member, nested_map, attrs, context)

    def _apply_collection(
        self,
        record: Any,
        record_type: RecordType,
        nested_map: AttributeMap,
        spec: RelationSpec,
        entries: list[Any],
        context: Any,
    ) -> None:
        existing = record_type.read_relation(record, spec.internal_name) or []
        by_key: dict[str, Any] = {}
        for member in existing:
            key = self._primary_key_of(member)
            if key is not None:
                by_key[str(key)] = member

        target_type = self._catalog.record_type(spec.target_type_name)
        for attrs in entries:
            if not isinstance(attrs, Mapping):
                msg = f"Expected attributes mapping for relation '{spec.public_name}' but received {attrs!r}"
                raise InputShapeError(msg)
            key = attrs.get(target_type.primary_key_name) if target_type.primary_key_name else None
            member = by_key.get(str(key)) if key is not None else None
            destroy = self._destroy_requested(attrs)
            if member is None:
                if destroy:
                    self._logger.debug("Skipping new %s member marked for destroy", spec.public_name)
                    continue
                member = record_type.build_related(record, spec.internal_name)
            elif destroy and record_type.allows_destroy(spec.internal_name):
                record_type.remove_related(record, spec.internal_name, member)
                continue
            self._apply(member, nested_map, attrs, context)

    def _matches(self, member: Any, attrs: Mapping[str, Any]) -> bool:
        member_type = self._catalog.record_type_of(member)
        primary_key = member_type.primary_key_name
        if primary_key is None or attrs.get(primary_key) is None:
            return True
        current = member_type.read_field(member, primary_key)
        return str(current) == str(attrs[primary_key])

    def _primary_key_of(self, member: Any) -> Any:
        member_type = self._catalog.record_type_of(member)
        if member_type.primary_key_name is None:
            return None
        return member_type.read_field(member, member_type.primary_key_name)

    def _destroy_requested(self, attrs: Mapping[str, Any]) -> bool:
        return is_truthy(attrs.get(self._catalog.settings.destroy_key, False))


__all__ = ["NestedAttributeAssigner", "is_truthy"]
