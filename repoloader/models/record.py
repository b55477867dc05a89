"""Synced record model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from repoloader.models.base import Base


class RecordEntry(Base):
    """A file mirrored from the remote tree, keyed by its logical id."""

    __tablename__ = "records"

    loader: Mapped[str] = mapped_column(Text, primary_key=True)
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    path: Mapped[str] = mapped_column(Text, nullable=False)
    sha: Mapped[str] = mapped_column(Text, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    synced_at: Mapped[str] = mapped_column(Text, nullable=False)
