"""Session snapshot and notice schemas."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from .encode_params import EncodeParams
from .session_state import PullState, PushState, SourceKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BroadcastDestination(BaseModel):
    """Where a push session sends its stream."""

    server_url: str = Field(default="", description="RTMP server address, e.g. rtmp://host/live")
    stream_key: str | None = Field(default=None, description="Optional stream key")

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.server_url.strip()


class SessionSnapshot(BaseModel):
    """Read-only view of one panel's session, safe to hand to a renderer."""

    session_id: str
    source_kind: SourceKind | None = None
    source_ref: str | None = None
    encode_params: EncodeParams = Field(default_factory=EncodeParams)
    destination: BroadcastDestination = Field(default_factory=BroadcastDestination)
    pull_state: PullState = PullState.IDLE
    push_state: PushState = PushState.IDLE
    manifest_url: str | None = None
    generation: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def has_source(self) -> bool:
        return self.source_kind is not None and bool(self.source_ref)


class SessionNotice(BaseModel):
    """A failure the session owner should render as a notification."""

    session_id: str
    errcode: str
    errmesg: str
    status_code: int | None = None
    erresid: str
    created_at: datetime = Field(default_factory=utc_now)
