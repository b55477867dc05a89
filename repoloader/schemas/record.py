"""Record-related schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """A synced file as stored under its logical id."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    path: str = Field(min_length=1)
    sha: str = Field(min_length=1)
    size: int = Field(ge=0)
    content: str
    data: Any = None
