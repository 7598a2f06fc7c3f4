"""SQLAlchemy record type adapter."""

from .adapter import SQLAlchemyRecordType, register_models

__all__ = ["SQLAlchemyRecordType", "register_models"]
