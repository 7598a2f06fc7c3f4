"""Schema export for attribute maps, intended for client generation."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from .enums import AccessMode, SchemaAccess
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .attribute_map import AttributeMap


def _included(mode: AccessMode, access: SchemaAccess | None) -> bool:
    if access is None:
        return True
    if access is SchemaAccess.READ:
        return mode is not AccessMode.WRITE_ONLY
    return mode is not AccessMode.READ_ONLY


def _column_type(attr_map: AttributeMap, internal_name: str) -> str | None:
    catalog = attr_map.catalog
    for type_name in catalog.type_chain(attr_map.owner_type_name):
        column_type = catalog.record_type(type_name).column_type(internal_name)
        if column_type is not None:
            return column_type
    return None


def build_schema(
    attr_map: AttributeMap,
    access: str | None = None,
    visited: Iterable[str] | None = None,
) -> dict[str, dict[str, Any]]:
    """Describe ``attr_map`` as ``{"fields": ..., "relations": ...}``.

    With ``access`` of ``"read"`` or ``"write"`` fields map to their column
    type tag and entries not usable in that direction are left out. Without
    it every entry is listed with its access mode. Nested schemas are emitted
    for relation targets not already present in ``visited``.
    """

    try:
        mode = SchemaAccess(access) if access is not None else None
    except ValueError as exc:
        msg = f"Unknown schema access '{access}'; expected 'read' or 'write'"
        raise ConfigurationError(msg) from exc
    seen = list(visited or [])
    seen.append(attr_map.owner_type_name)
    attr_map.resolve()

    fields: dict[str, Any] = {}
    for name, spec in attr_map.fields.items():
        if not _included(spec.access_mode, mode):
            continue
        column_type = _column_type(attr_map, spec.record_attr)
        if mode is None:
            fields[name] = {"type": column_type, "access": spec.access_mode.value}
        else:
            fields[name] = column_type

    relations: dict[str, Any] = {}
    for name, spec in attr_map.relations.items():
        if not _included(spec.access_mode, mode):
            continue
        entry: dict[str, Any] = {}
        if spec.optional:
            entry["optional"] = True
        if mode is None:
            entry["access"] = spec.access_mode.value
        if not spec.polymorphic and spec.target_type_name not in seen:
            nested = _relation_map(attr_map, name)
            if nested is not None:
                entry.update(build_schema(nested, access, seen))
        relations[name] = entry

    return {"fields": fields, "relations": relations}


def _relation_map(attr_map: AttributeMap, name: str) -> AttributeMap | None:
    spec = attr_map.relations[name]
    nested = attr_map.relation_maps.get(name) or spec.nested_map
    if nested is None:
        nested = attr_map.catalog.resolver.registered_map(spec.target_type_name, attr_map.name)
    return nested


__all__ = ["build_schema"]
