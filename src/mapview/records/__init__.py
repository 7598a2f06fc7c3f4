"""Record type adapters consumed by attribute maps."""

from .interfaces import RecordType
from .memory import ObjectRecordType, ObjectRelation
from .models import NestedPolicy, RelationInfo, normalize_nested_policy

__all__ = [
    "NestedPolicy",
    "ObjectRecordType",
    "ObjectRelation",
    "RecordType",
    "RelationInfo",
    "normalize_nested_policy",
]
