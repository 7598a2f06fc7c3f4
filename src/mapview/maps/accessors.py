"""Registry of custom field readers and writers declared in attribute maps."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .specs import Accessor

logger = logging.getLogger(__name__)

BindingKey = tuple[str, str, str]


@dataclass(frozen=True, slots=True)
class AccessorBinding:
    """Reader/writer pair bound to one field of one map.

    A string accessor names a method. It is looked up on the ``context``
    object when one is supplied (and receives the record), otherwise on the
    record itself.
    """

    owner_type_name: str
    map_name: str
    public_name: str
    internal_name: str
    reader: Accessor | None = None
    writer: Accessor | None = None

    @property
    def key(self) -> BindingKey:
        return (self.owner_type_name, self.map_name, self.internal_name)

    def read(self, record: Any, context: Any = None) -> Any:
        if self.reader is None:
            msg = f"Field '{self.public_name}' of map '{self.map_name}' has no reader"
            raise AttributeError(msg)
        if isinstance(self.reader, str):
            if context is not None:
                return getattr(context, self.reader)(record)
            return getattr(record, self.reader)()
        return self.reader(record)

    def write(self, record: Any, value: Any, context: Any = None) -> None:
        if self.writer is None:
            msg = f"Field '{self.public_name}' of map '{self.map_name}' has no writer"
            raise AttributeError(msg)
        if isinstance(self.writer, str):
            if context is not None:
                getattr(context, self.writer)(record, value)
            else:
                getattr(record, self.writer)(value)
            return
        self.writer(record, value)


class AccessorRegistry:
    """Bindings keyed by owning type, map name and synthesized field name."""

    def __init__(self) -> None:
        self._bindings: dict[BindingKey, AccessorBinding] = {}

    def bind(self, binding: AccessorBinding) -> AccessorBinding:
        existing = self._bindings.get(binding.key)
        if existing is not None and existing != binding:
            logger.warning(
                "Replacing accessor binding for %s:%s field %s",
                binding.owner_type_name,
                binding.map_name,
                binding.internal_name,
            )
        self._bindings[binding.key] = binding
        return binding

    def get(self, owner_type_name: str, map_name: str, internal_name: str) -> AccessorBinding | None:
        return self._bindings.get((owner_type_name, map_name, internal_name))

    def find(
        self,
        type_names: Iterable[str],
        map_name: str,
        internal_name: str,
    ) -> AccessorBinding | None:
        """Return the first binding found along a type chain (subtype first)."""

        for type_name in type_names:
            binding = self._bindings.get((type_name, map_name, internal_name))
            if binding is not None:
                return binding
        return None


__all__ = ["AccessorBinding", "AccessorRegistry", "BindingKey"]
