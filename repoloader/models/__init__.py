"""SQLAlchemy ORM models for repoloader."""

from repoloader.models.base import Base
from repoloader.models.record import RecordEntry
from repoloader.models.sync import SyncMeta

__all__ = [
    "Base",
    "RecordEntry",
    "SyncMeta",
]
