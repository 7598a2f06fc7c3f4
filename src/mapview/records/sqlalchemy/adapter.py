"""Record types introspected from SQLAlchemy declarative models."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, RelationshipProperty, object_session

from mapview.records.interfaces import RecordType
from mapview.records.models import NestedPolicy, RelationInfo, normalize_nested_policy

if TYPE_CHECKING:
    from mapview.maps.registry import MapCatalog, MapRegistry


class SQLAlchemyRecordType(RecordType):
    """Adapter over a mapped class.

    Relations accepting nested assignment come from ``nested_attributes`` or
    the model's ``__nested_attributes__`` attribute, either a list of
    relationship names or a mapping of names to their allow-destroy flag.
    Single-table inheritance is read from the mapper hierarchy.
    """

    def __init__(
        self,
        model: type,
        *,
        nested_attributes: NestedPolicy | None = None,
        type_name: str | None = None,
    ) -> None:
        self.record_class = model
        self.type_name = type_name or model.__name__
        self._mapper: Mapper[Any] = sa_inspect(model)
        if nested_attributes is None:
            nested_attributes = getattr(model, "__nested_attributes__", None)
        self._nested = normalize_nested_policy(nested_attributes)

    def __repr__(self) -> str:
        return f"SQLAlchemyRecordType({self.type_name})"

    @property
    def base_type_name(self) -> str | None:
        inherits = self._mapper.inherits
        return inherits.class_.__name__ if inherits is not None else None

    @property
    def primary_key_name(self) -> str | None:
        columns = self._mapper.primary_key
        if len(columns) != 1:
            return None
        return self._mapper.get_property_by_column(columns[0]).key

    def relation_info(self, name: str) -> RelationInfo:
        relationship = self._relationship(name)
        return RelationInfo(relationship.mapper.class_.__name__, bool(relationship.uselist))

    def column_type(self, name: str) -> str | None:
        attrs = self._mapper.column_attrs
        if name not in attrs:
            return None
        return str(attrs[name].columns[0].type.__visit_name__)

    def has_field(self, name: str) -> bool:
        return name in self._mapper.column_attrs

    def accepts_nested(self, relation: str) -> bool:
        return relation in self._nested

    def allows_destroy(self, relation: str) -> bool:
        return self._nested.get(relation, False)

    def discriminator(self, record: Any) -> str | None:
        mapper = sa_inspect(record).mapper
        identity = mapper.polymorphic_identity
        return str(identity) if identity is not None else mapper.class_.__name__

    def read_field(self, record: Any, name: str) -> Any:
        return getattr(record, name)

    def write_field(self, record: Any, name: str, value: Any) -> None:
        setattr(record, name, value)

    def read_relation(self, record: Any, name: str) -> Any | Sequence[Any] | None:
        value = getattr(record, name)
        if value is not None and self._relationship(name).uselist:
            return list(value)
        return value

    def build_related(self, record: Any, name: str) -> Any:
        relationship = self._relationship(name)
        member = relationship.mapper.class_()
        if relationship.uselist:
            getattr(record, name).append(member)
        else:
            setattr(record, name, member)
        return member

    def remove_related(self, record: Any, name: str, member: Any) -> None:
        relationship = self._relationship(name)
        if relationship.uselist:
            getattr(record, name).remove(member)
        else:
            setattr(record, name, None)
        if relationship.cascade.delete_orphan:
            return
        session = object_session(member)
        if session is not None and sa_inspect(member).persistent:
            session.delete(member)

    def _relationship(self, name: str) -> RelationshipProperty[Any]:
        relationships = self._mapper.relationships
        if name not in relationships:
            raise KeyError(name)
        return relationships[name]


def register_models(
    catalog: MapCatalog,
    *models: type,
    override: bool = False,
) -> list[MapRegistry]:
    """Register mapped classes with ``catalog``, base classes first."""

    def depth(model: type) -> int:
        return len(list(sa_inspect(model).iterate_to_root()))

    return [
        catalog.register_type(SQLAlchemyRecordType(model), override=override)
        for model in sorted(models, key=depth)
    ]


__all__ = ["SQLAlchemyRecordType", "register_models"]
