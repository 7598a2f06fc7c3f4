"""Attribute maps: named views over a record type's fields and relations.

A map exposes selected fields and relations of a record type under public
names, each with its own access mode and optional group::

    def post_api(m: AttributeMap) -> None:
        m.declare_field("id")
        m.declare_field("title")
        m.declare_field("created_at", access_mode="ro")
        m.declare_field("heavy", access_mode="ro", optional_group="extended")
        m.declare_relation(
            "author",
            lambda a: a.declare_field("name", internal_name="full_name", access_mode="ro"),
        )
        m.declare_relation("comments", optional_group=True, polymorphic=True)

    catalog.map_attributes("Post", "api", post_api)

A relation uses the target type's map of the same name. Declarations inside
the relation's block are merged over that map (``override_mode="merge"``, the
default) or used instead of it (``override_mode="replace"``). Maps of a subtype
are merged over the base type's map of the same name unless the subtype map is
declared with ``override="replace"``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .accessors import AccessorBinding
from .enums import AccessMode, OverrideMode, ResolutionState
from .exceptions import ConfigurationError, ResolutionError
from .specs import (
    FieldOptions,
    FieldSpec,
    MapOptions,
    MultiFieldOptions,
    RelationOptions,
    RelationSpec,
    parse_options,
)

if TYPE_CHECKING:
    from mapview.records.interfaces import RecordType

    from .registry import MapCatalog

MapBlock = Callable[["AttributeMap"], Any]


class AttributeMap:
    """Named set of field and relation specs for one record type."""

    def __init__(
        self,
        catalog: MapCatalog,
        owner_type_name: str,
        name: str,
        **options: Any,
    ) -> None:
        self._catalog = catalog
        self._owner_type_name = owner_type_name
        self._name = name
        self._options = parse_options(MapOptions, options, f"map '{name}' of {owner_type_name}")
        self._fields: dict[str, FieldSpec] = {}
        self._relations: dict[str, RelationSpec] = {}
        self._excluded_fields: set[str] = set()
        self._excluded_relations: set[str] = set()
        self._write_index: dict[str, str] = {}
        self.relation_maps: dict[str, AttributeMap] = {}
        self.state = ResolutionState.UNRESOLVED
        self.base_merged = False
        self._rebuild_write_index()

    def __repr__(self) -> str:
        return (
            f"AttributeMap({self._owner_type_name}:{self._name}, "
            f"fields={list(self._fields)}, relations={list(self._relations)}, "
            f"state={self.state.value})"
        )

    @property
    def catalog(self) -> MapCatalog:
        return self._catalog

    @property
    def owner_type_name(self) -> str:
        return self._owner_type_name

    @property
    def name(self) -> str:
        return self._name

    @property
    def options(self) -> MapOptions:
        return self._options

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return self._fields

    @property
    def relations(self) -> Mapping[str, RelationSpec]:
        return self._relations

    @property
    def write_index(self) -> Mapping[str, str]:
        return self._write_index

    @property
    def resolved(self) -> bool:
        return self.state is ResolutionState.RESOLVED

    @property
    def record_type(self) -> RecordType:
        return self._catalog.record_type(self._owner_type_name)

    @property
    def merges_base(self) -> bool:
        return self._options.override is OverrideMode.MERGE

    @property
    def allow_destroy(self) -> bool:
        if self._options.allow_destroy is not None:
            return self._options.allow_destroy
        return self._catalog.settings.allow_destroy

    def is_empty(self) -> bool:
        return not self._fields and not self._relations

    def has_declarations(self) -> bool:
        """True when anything was declared, exclusions included."""

        return not self.is_empty() or bool(self._excluded_fields or self._excluded_relations)

    # Declarations

    def declare_field(self, public_name: str, **options: Any) -> FieldSpec | None:
        """Declare a single field; ``access_mode="none"`` removes it instead."""

        self._catalog.ensure_mutable(self._subject(f"field '{public_name}'"))
        parsed = parse_options(FieldOptions, options, self._subject(f"field '{public_name}'"))
        if parsed.access_mode is AccessMode.EXCLUDED:
            self._fields.pop(public_name, None)
            self._write_index.pop(public_name, None)
            self._excluded_fields.add(public_name)
            self._touch()
            return None

        explicit = {name: getattr(parsed, name) for name in parsed.model_fields_set}
        internal_name = self._bind_accessors(public_name, parsed)
        if internal_name is not None:
            explicit["internal_name"] = internal_name

        spec = FieldSpec(public_name=public_name, **explicit)
        self._fields[public_name] = spec
        self._excluded_fields.discard(public_name)
        if spec.access_mode.writable:
            self._write_index[public_name] = spec.record_attr
        else:
            self._write_index.pop(public_name, None)
        self._touch()
        return spec

    def declare_fields(self, *public_names: str, **options: Any) -> list[FieldSpec | None]:
        """Declare several fields sharing ``access_mode``/``optional_group``."""

        parsed = parse_options(MultiFieldOptions, options, self._subject("fields"))
        shared = {name: getattr(parsed, name) for name in parsed.model_fields_set}
        return [self.declare_field(name, **shared) for name in public_names]

    def declare_relation(
        self,
        public_name: str,
        block: MapBlock | None = None,
        **options: Any,
    ) -> RelationSpec | None:
        """Declare a relation, optionally overriding the target type's map."""

        subject = self._subject(f"relation '{public_name}'")
        self._catalog.ensure_mutable(subject)
        parsed = parse_options(RelationOptions, options, subject)
        if parsed.access_mode is AccessMode.EXCLUDED:
            self._relations.pop(public_name, None)
            self.relation_maps.pop(public_name, None)
            self._excluded_relations.add(public_name)
            self._touch()
            return None

        if parsed.polymorphic and (block is not None or parsed.override_mode is not None):
            msg = f"Cannot specify override_mode or provide a block with polymorphic {subject}"
            raise ConfigurationError(msg)

        owner = self.record_type
        internal_name = parsed.internal_name or public_name
        try:
            info = owner.relation_info(internal_name)
        except KeyError as exc:
            msg = f"Relation '{internal_name}' in type {owner.type_name} is not defined"
            raise ConfigurationError(msg) from exc
        if not info.target_type_name or self._catalog.registry_for(info.target_type_name) is None:
            msg = (
                f"Cannot resolve relation type '{info.target_type_name}' "
                f"from type '{owner.type_name}'"
            )
            raise ConfigurationError(msg)

        override = parsed.override_mode or OverrideMode.MERGE
        nested = parsed.nested_map
        if nested is not None:
            if not isinstance(nested, AttributeMap):
                msg = f"nested_map for {subject} must be an AttributeMap"
                raise ConfigurationError(msg)
            if nested.owner_type_name != info.target_type_name:
                msg = (
                    f"nested_map for {subject} maps {nested.owner_type_name}, "
                    f"expected {info.target_type_name}"
                )
                raise ConfigurationError(msg)
            nested = nested.copy()
        else:
            nested = AttributeMap(
                self._catalog,
                info.target_type_name,
                self._name,
                override=override,
            )
        if block is not None:
            block(nested)

        if override is OverrideMode.REPLACE and nested.is_empty():
            msg = f"Map {subject} specifies replace but declares nothing"
            raise ConfigurationError(msg)
        if parsed.access_mode is not AccessMode.READ_ONLY and not owner.accepts_nested(
            internal_name
        ):
            msg = (
                f"Expected nested attribute assignment for '{internal_name}' "
                f"to be enabled on {owner.type_name}"
            )
            raise ConfigurationError(msg)

        try:
            spec = RelationSpec(
                public_name=public_name,
                internal_name=internal_name,
                target_type_name=info.target_type_name,
                is_collection=info.is_collection,
                access_mode=parsed.access_mode,
                optional_group=parsed.optional_group,
                polymorphic=parsed.polymorphic,
                override_mode=override,
                nested_map=nested if nested.has_declarations() else None,
            )
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        self._relations[public_name] = spec
        self.relation_maps.pop(public_name, None)
        self._excluded_relations.discard(public_name)
        self._touch()
        return spec

    field = declare_field
    relation = declare_relation

    # Composition

    def merge_with(
        self,
        other: AttributeMap | None,
        *,
        with_options: bool = False,
        with_state: bool = False,
    ) -> AttributeMap:
        """Merge ``other`` into this map in place; the incoming side wins.

        Field options merge one by one, relations are replaced as a whole.
        Callers that must not mutate a shared map merge into ``copy()``.
        """

        if other is None:
            return self

        for public_name in other._excluded_fields:
            self._fields.pop(public_name, None)
        for public_name, spec in other._fields.items():
            existing = self._fields.get(public_name)
            self._fields[public_name] = existing.merged(spec) if existing else spec
        self._excluded_fields |= other._excluded_fields

        for public_name in other._excluded_relations:
            self._relations.pop(public_name, None)
            self.relation_maps.pop(public_name, None)
        for public_name, relation in other._relations.items():
            self._relations[public_name] = relation
            nested = other.relation_maps.get(public_name)
            if nested is not None:
                self.relation_maps[public_name] = nested
            else:
                self.relation_maps.pop(public_name, None)
        self._excluded_relations |= other._excluded_relations

        if with_options:
            self._options = other._options
        if with_state:
            self.state = (
                ResolutionState.RESOLVED if other.resolved else ResolutionState.UNRESOLVED
            )
        self._rebuild_write_index()
        return self

    def copy(self) -> AttributeMap:
        """Return an independent clone carrying options and resolution flags."""

        clone = AttributeMap(
            self._catalog,
            self._owner_type_name,
            self._name,
            **self._options.model_dump(exclude_unset=True),
        )
        return clone.copy_from(self)

    def copy_from(self, other: AttributeMap) -> AttributeMap:
        """Replace this map's tables and flags with clones of ``other``'s."""

        self._fields = dict(other._fields)
        self._relations = dict(other._relations)
        self._excluded_fields = set(other._excluded_fields)
        self._excluded_relations = set(other._excluded_relations)
        self.relation_maps = dict(other.relation_maps)
        self._write_index = dict(other._write_index)
        self.state = other.state
        self.base_merged = other.base_merged
        return self

    # Resolution

    def resolve(self, must_resolve: bool = False, visiting: list[str] | None = None) -> bool:
        return self._catalog.resolver.resolve(self, must_resolve, visiting)

    def require_resolved(self) -> AttributeMap:
        """Resolve the map or raise; returns the map for chaining."""

        if not self.resolved:
            self.resolve(must_resolve=True)
        return self

    def relation_map(self, public_name: str) -> AttributeMap:
        """Resolved map used for relation ``public_name``."""

        spec = self._relations[public_name]
        nested = self.relation_maps.get(public_name)
        if nested is None:
            nested = self._catalog.resolver.relation_map_for(self, spec)
            if nested is None:
                msg = (
                    f"Expected attribute map '{self._name}' to be defined "
                    f"for type '{spec.target_type_name}'"
                )
                raise ResolutionError(msg)
            self.relation_maps[public_name] = nested
        return nested.require_resolved()

    # Read-path queries

    def serializable_field_names(self, includes: Iterable[str] | None = None) -> list[str]:
        """Readable field names; optional ones only when named in ``includes``.

        ``includes=None`` returns every readable field, optional ones included.
        """

        names = [name for name, spec in self._fields.items() if spec.access_mode.readable]
        if includes is None:
            return names
        wanted = set(includes)
        return [
            name
            for name in names
            if not self._fields[name].optional
            or name in wanted
            or self._fields[name].optional_group in wanted
        ]

    def serializable_relation_names(self, includes: Iterable[str] | None = None) -> list[str]:
        names = [name for name, spec in self._relations.items() if spec.access_mode.readable]
        if includes is None:
            return names
        wanted = set(includes)
        return [
            name
            for name in names
            if not self._relations[name].optional
            or name in wanted
            or self._relations[name].optional_group in wanted
        ]

    def schema(
        self,
        access: str | None = None,
        visited: Iterable[str] | None = None,
    ) -> dict[str, dict[str, Any]]:
        from .schema import build_schema

        return build_schema(self, access, visited)

    # Internals

    def _subject(self, what: str) -> str:
        return f"{what} in map '{self._name}' of {self._owner_type_name}"

    def _touch(self) -> None:
        if self.state is not ResolutionState.RESOLVING:
            self.state = ResolutionState.UNRESOLVED

    def _bind_accessors(self, public_name: str, parsed: FieldOptions) -> str | None:
        if parsed.read_fn is None and parsed.write_fn is None:
            return None
        internal_name = parsed.internal_name or public_name
        if self.record_type.has_field(internal_name):
            return None
        # No record attribute backs the field, so every enabled direction needs an accessor.
        if parsed.access_mode.readable and parsed.read_fn is None:
            msg = f"Readable {self._subject(f'field {public_name!r}')} needs a read_fn"
            raise ConfigurationError(msg)
        if parsed.access_mode.writable and parsed.write_fn is None:
            msg = f"Writable {self._subject(f'field {public_name!r}')} needs a write_fn"
            raise ConfigurationError(msg)
        if internal_name == public_name:
            internal_name = f"{public_name}_{self._name}"
        self._catalog.accessors.bind(
            AccessorBinding(
                owner_type_name=self._owner_type_name,
                map_name=self._name,
                public_name=public_name,
                internal_name=internal_name,
                reader=parsed.read_fn,
                writer=parsed.write_fn,
            )
        )
        return internal_name

    def _rebuild_write_index(self) -> None:
        self._write_index = {
            name: spec.record_attr
            for name, spec in self._fields.items()
            if spec.access_mode.writable
        }
        if self.allow_destroy:
            destroy_key = self._catalog.settings.destroy_key
            self._write_index.setdefault(destroy_key, destroy_key)


__all__ = ["AttributeMap", "MapBlock"]
