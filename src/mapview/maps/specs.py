"""Declaration options and field/relation specs for attribute maps."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from .enums import AccessMode, OverrideMode
from .exceptions import ConfigurationError

Accessor = Callable[..., Any] | str
OptionalGroup = bool | str | None

OptionsT = TypeVar("OptionsT", bound=BaseModel)


class SpecModel(BaseModel):
    """Immutable declaration model rejecting unknown option keys."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)


class FieldOptions(SpecModel):
    """Options accepted by ``AttributeMap.declare_field``."""

    internal_name: str | None = None
    access_mode: AccessMode = AccessMode.READ_WRITE
    optional_group: OptionalGroup = None
    read_fn: Accessor | None = None
    write_fn: Accessor | None = None

    @model_validator(mode="after")
    def check_writer(self) -> FieldOptions:
        if self.access_mode is AccessMode.READ_ONLY and self.write_fn is not None:
            msg = "Cannot specify write_fn for a read-only field"
            raise ValueError(msg)
        return self


class MultiFieldOptions(SpecModel):
    """Options accepted when declaring several fields in one call."""

    access_mode: AccessMode = AccessMode.READ_WRITE
    optional_group: OptionalGroup = None


class RelationOptions(SpecModel):
    """Options accepted by ``AttributeMap.declare_relation``."""

    internal_name: str | None = None
    override_mode: OverrideMode | None = None
    polymorphic: bool = False
    access_mode: AccessMode = AccessMode.READ_WRITE
    optional_group: OptionalGroup = None
    nested_map: Any = None


class MapOptions(SpecModel):
    """Options accepted when a map is declared for a record type."""

    override: OverrideMode = OverrideMode.MERGE
    allow_destroy: bool | None = None


class FieldSpec(SpecModel):
    """A scalar record member exposed through a map.

    Only options given explicitly at declaration are recorded in
    ``model_fields_set``; merging relies on that to keep the base side's
    options that the incoming side leaves out.
    """

    public_name: str
    internal_name: str | None = None
    access_mode: AccessMode = AccessMode.READ_WRITE
    optional_group: OptionalGroup = None
    read_fn: Accessor | None = None
    write_fn: Accessor | None = None

    @property
    def record_attr(self) -> str:
        """Name of the record attribute backing this field."""

        return self.internal_name or self.public_name

    @property
    def optional(self) -> bool:
        return bool(self.optional_group)

    def merged(self, incoming: FieldSpec) -> FieldSpec:
        """Return a copy with the incoming side's explicit options applied."""

        update = {name: getattr(incoming, name) for name in incoming.model_fields_set}
        return self.model_copy(update=update)


class RelationSpec(SpecModel):
    """A reference to one or many records exposed through a map."""

    public_name: str
    internal_name: str
    target_type_name: str
    is_collection: bool = False
    access_mode: AccessMode = AccessMode.READ_WRITE
    optional_group: OptionalGroup = None
    polymorphic: bool = False
    override_mode: OverrideMode = OverrideMode.MERGE
    nested_map: Any = None

    @model_validator(mode="after")
    def check_polymorphic(self) -> RelationSpec:
        if self.polymorphic and (
            self.nested_map is not None or self.override_mode is OverrideMode.REPLACE
        ):
            msg = f"Polymorphic relation '{self.public_name}' cannot override the target map"
            raise ValueError(msg)
        return self

    @property
    def optional(self) -> bool:
        return bool(self.optional_group)

    @property
    def merges(self) -> bool:
        return self.override_mode is OverrideMode.MERGE


def parse_options(model: type[OptionsT], options: Mapping[str, Any], subject: str) -> OptionsT:
    """Validate declaration options, raising ``ConfigurationError`` on failure."""

    try:
        return model.model_validate(dict(options))
    except ValidationError as exc:
        msg = f"Invalid options for {subject}: {exc}"
        raise ConfigurationError(msg) from exc


__all__ = [
    "Accessor",
    "FieldOptions",
    "FieldSpec",
    "MapOptions",
    "MultiFieldOptions",
    "OptionalGroup",
    "RelationOptions",
    "RelationSpec",
    "SpecModel",
    "parse_options",
]
