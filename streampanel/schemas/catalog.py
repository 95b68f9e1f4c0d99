from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .session_state import SourceKind


class SourceEntry(BaseModel):
    """One selectable input: a file on the backend or a capture device."""

    kind: SourceKind
    ref: str = Field(..., description="Value sent to the backend as videoPath")
    name: str = Field(..., description="Display name")
    size: int | None = Field(default=None, description="File size in bytes, files only")

    model_config = ConfigDict(frozen=True)
