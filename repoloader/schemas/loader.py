"""Loader option schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoaderOptions(BaseModel):
    """Options describing one sync target on GitHub."""

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    token: str | None = None
    directory: str = ""
    branch: str = Field(default="main", min_length=1)
