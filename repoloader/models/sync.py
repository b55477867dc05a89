"""Sync state model."""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from repoloader.models.base import Base


class SyncMeta(Base):
    """One key of a loader's sync state (root fingerprint or blob sha)."""

    __tablename__ = "sync_meta"

    loader: Mapped[str] = mapped_column(Text, primary_key=True)
    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
