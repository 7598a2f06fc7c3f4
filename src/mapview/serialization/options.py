"""Normalized include/only/except options for projection."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

OPTION_KEYS = frozenset({"include", "only", "except", "exclude"})


def _names(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(str(item) for item in value)


@dataclass(frozen=True)
class ProjectionOptions:
    """Inclusion options for one level of a projection.

    ``include`` maps relation or field names (or optional group names) to the
    options used one level down. ``only`` wins over ``exclude`` when both are
    given.
    """

    include: Mapping[str, ProjectionOptions] = field(default_factory=dict)
    only: frozenset[str] | None = None
    exclude: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        include: Any = None,
        only: Any = None,
        exclude: Any = None,
    ) -> ProjectionOptions:
        return cls(
            include=cls._normalize_include(include),
            only=_names(only) if only is not None else None,
            exclude=_names(exclude),
        )

    @classmethod
    def from_value(cls, value: Any) -> ProjectionOptions:
        """Options from a nested include value.

        An options mapping (keys among include/only/except) is used as is and
        a bare boolean carries no nested options. Anything else is shorthand
        for ``{"include": value}``.
        """

        if value is None or isinstance(value, bool):
            return cls()
        if isinstance(value, ProjectionOptions):
            return value
        if isinstance(value, Mapping) and value and set(value) <= OPTION_KEYS:
            return cls.build(
                value.get("include"),
                value.get("only"),
                value.get("except", value.get("exclude")),
            )
        return cls.build(include=value)

    @classmethod
    def _normalize_include(cls, value: Any) -> dict[str, ProjectionOptions]:
        if value is None:
            return {}
        if isinstance(value, str):
            return {value: cls()}
        if isinstance(value, Mapping):
            return {str(name): cls.from_value(nested) for name, nested in value.items()}
        normalized: dict[str, ProjectionOptions] = {}
        for item in value:
            if isinstance(item, Mapping):
                normalized.update(cls._normalize_include(item))
            else:
                normalized.setdefault(str(item), cls())
        return normalized

    @property
    def include_names(self) -> frozenset[str]:
        return frozenset(self.include)

    def nested(self, name: str) -> ProjectionOptions:
        return self.include.get(name) or ProjectionOptions()

    def select(self, names: Iterable[str]) -> list[str]:
        if self.only is not None:
            return [name for name in names if name in self.only]
        return [name for name in names if name not in self.exclude]


__all__ = ["OPTION_KEYS", "ProjectionOptions"]
