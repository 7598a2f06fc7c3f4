"""Record type adapter for plain Python objects, used for unit testing."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .interfaces import RecordType
from .models import NestedPolicy, RelationInfo, normalize_nested_policy


@dataclass(frozen=True, slots=True)
class ObjectRelation:
    """Relation between plain objects stored as an attribute."""

    target: type
    collection: bool = False

    @property
    def target_type_name(self) -> str:
        return self.target.__name__


@dataclass
class ObjectRecordType(RecordType):
    """Explicitly described record type backed by attribute access.

    ``fields`` maps attribute names to a type tag used for schema export.
    ``identity`` is reported as the discriminator for polymorphic output.
    """

    record_class: type
    fields: Mapping[str, str | None] = field(default_factory=dict)
    relations: Mapping[str, ObjectRelation] = field(default_factory=dict)
    base: type | None = None
    nested_attributes: NestedPolicy | None = None
    identity: str | None = None
    primary_key: str | None = "id"
    type_name: str = ""
    _nested: dict[str, bool] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.type_name:
            self.type_name = self.record_class.__name__
        self._nested = normalize_nested_policy(self.nested_attributes)

    @property
    def base_type_name(self) -> str | None:
        return self.base.__name__ if self.base is not None else None

    @property
    def primary_key_name(self) -> str | None:
        return self.primary_key

    def relation_info(self, name: str) -> RelationInfo:
        relation = self.relations[name]
        return RelationInfo(relation.target_type_name, relation.collection)

    def column_type(self, name: str) -> str | None:
        return self.fields.get(name)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def accepts_nested(self, relation: str) -> bool:
        return relation in self._nested

    def allows_destroy(self, relation: str) -> bool:
        return self._nested.get(relation, False)

    def discriminator(self, record: Any) -> str | None:
        return self.identity

    def read_field(self, record: Any, name: str) -> Any:
        return getattr(record, name)

    def write_field(self, record: Any, name: str, value: Any) -> None:
        setattr(record, name, value)

    def read_relation(self, record: Any, name: str) -> Any | Sequence[Any] | None:
        value = getattr(record, name, None)
        if value is not None and self.relations[name].collection:
            return list(value)
        return value

    def build_related(self, record: Any, name: str) -> Any:
        relation = self.relations[name]
        member = relation.target()
        if relation.collection:
            members = getattr(record, name, None)
            if members is None:
                members = []
                setattr(record, name, members)
            members.append(member)
        else:
            setattr(record, name, member)
        return member

    def remove_related(self, record: Any, name: str, member: Any) -> None:
        if self.relations[name].collection:
            getattr(record, name).remove(member)
        else:
            setattr(record, name, None)


__all__ = ["ObjectRecordType", "ObjectRelation"]
