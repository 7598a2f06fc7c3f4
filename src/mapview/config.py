"""Lightweight mapping configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no"}


@dataclass(frozen=True)
class MapSettings:
    """Immutable configuration sourced from environment variables."""

    environment: str = "development"
    discriminator_field: str = "type"
    nested_attributes_suffix: str = "_attributes"
    destroy_key: str = "_destroy"
    allow_destroy: bool = True

    @classmethod
    def from_env(cls) -> MapSettings:
        return cls(
            environment=os.getenv("MAPVIEW_ENV", cls.environment),
            discriminator_field=os.getenv(
                "MAPVIEW_DISCRIMINATOR_FIELD", cls.discriminator_field
            ),
            nested_attributes_suffix=os.getenv(
                "MAPVIEW_NESTED_SUFFIX", cls.nested_attributes_suffix
            ),
            destroy_key=os.getenv("MAPVIEW_DESTROY_KEY", cls.destroy_key),
            allow_destroy=_env_bool("MAPVIEW_ALLOW_DESTROY", True),
        )

    def nested_key(self, internal_name: str) -> str:
        """Key under which nested relation attributes are assigned."""

        return f"{internal_name}{self.nested_attributes_suffix}"


__all__ = ["MapSettings"]
