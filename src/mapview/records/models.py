"""Value objects shared by record type adapters."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RelationInfo:
    """Introspected shape of a record relation."""

    target_type_name: str
    is_collection: bool = False


NestedPolicy = Mapping[str, bool] | Iterable[str]


def normalize_nested_policy(policy: NestedPolicy | None) -> dict[str, bool]:
    """Map relation names accepting nested assignment to their destroy flag.

    A plain iterable of names accepts nested assignment without destroy.
    """

    if policy is None:
        return {}
    if isinstance(policy, Mapping):
        return {str(name): bool(allow_destroy) for name, allow_destroy in policy.items()}
    if isinstance(policy, str):
        return {policy: False}
    return {str(name): False for name in policy}


__all__ = ["NestedPolicy", "RelationInfo", "normalize_nested_policy"]
