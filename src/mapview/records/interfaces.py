"""Contract between attribute maps and the record system they expose."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from .models import RelationInfo


@runtime_checkable
class RecordType(Protocol):
    """Introspection and instance access for one record type."""

    type_name: str
    record_class: type

    @property
    def base_type_name(self) -> str | None: ...

    @property
    def primary_key_name(self) -> str | None: ...

    def relation_info(self, name: str) -> RelationInfo:
        """Describe relation ``name``; raises ``KeyError`` when undefined."""
        ...

    def column_type(self, name: str) -> str | None: ...

    def has_field(self, name: str) -> bool: ...

    def accepts_nested(self, relation: str) -> bool: ...

    def allows_destroy(self, relation: str) -> bool: ...

    def discriminator(self, record: Any) -> str | None: ...

    def read_field(self, record: Any, name: str) -> Any: ...

    def write_field(self, record: Any, name: str, value: Any) -> None: ...

    def read_relation(self, record: Any, name: str) -> Any | Sequence[Any] | None: ...

    def build_related(self, record: Any, name: str) -> Any: ...

    def remove_related(self, record: Any, name: str, member: Any) -> None: ...


__all__ = ["RecordType", "RelationInfo"]
