"""Playback engine events and manifest probe schemas."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class PlaybackErrorClass(str, Enum):
    NETWORK = "network"
    MEDIA = "media"
    FATAL = "fatal"

    def __str__(self) -> str:
        return self.value


class EngineErrorEvent(BaseModel):
    """Raw error event as reported by an adaptive streaming engine.

    Mirrors the hls.js error payload: an error type such as
    ``networkError`` / ``mediaError`` / ``muxError``, a detail string and the
    engine's own fatal flag.
    """

    type: str = Field(..., description="Engine error type")
    details: str = Field(default="", description="Engine error detail code")
    fatal: bool = Field(default=False, description="Engine's own fatal flag")
    reason: str | None = Field(default=None, description="Free-form reason, if any")

    model_config = ConfigDict(frozen=True)


class _PlaybackErrorBase(BaseModel):
    raw: EngineErrorEvent

    model_config = ConfigDict(frozen=True)


class NetworkPlaybackError(_PlaybackErrorBase):
    """Transient loading failure, recovered by restarting the load."""

    error_class: Literal[PlaybackErrorClass.NETWORK] = PlaybackErrorClass.NETWORK


class MediaPlaybackError(_PlaybackErrorBase):
    """Transient decode failure, recovered by resetting the decode path."""

    error_class: Literal[PlaybackErrorClass.MEDIA] = PlaybackErrorClass.MEDIA


class FatalPlaybackError(_PlaybackErrorBase):
    """Unrecoverable failure, the engine instance must go."""

    error_class: Literal[PlaybackErrorClass.FATAL] = PlaybackErrorClass.FATAL


PlaybackError = Annotated[
    Union[NetworkPlaybackError, MediaPlaybackError, FatalPlaybackError],
    Field(discriminator="error_class"),
]

_playback_error_adapter: TypeAdapter[Any] = TypeAdapter(PlaybackError)

# Engine error types that a reload or decoder reset can recover from
_TRANSIENT_ENGINE_TYPES: dict[str, PlaybackErrorClass] = {
    "networkError": PlaybackErrorClass.NETWORK,
    "mediaError": PlaybackErrorClass.MEDIA,
}


def classify_engine_error(event: EngineErrorEvent) -> PlaybackError:
    """Turn a raw engine event into exactly one tagged playback error.

    Only a fatal event of an unknown type is classified as fatal. A non-fatal
    event is always transient: network errors keep their class, anything else
    is treated as a media error the engine is already working around.
    """
    if event.fatal:
        error_class = _TRANSIENT_ENGINE_TYPES.get(event.type, PlaybackErrorClass.FATAL)
    elif event.type == "networkError":
        error_class = PlaybackErrorClass.NETWORK
    else:
        error_class = PlaybackErrorClass.MEDIA
    return _playback_error_adapter.validate_python(
        {"error_class": error_class, "raw": event}
    )


class ManifestProbe(BaseModel):
    """Bookkeeping for one manifest acquisition.

    Owned by a single acquisition run and discarded when it ends.
    """

    url: str
    attempt: int = 0
    max_attempts: int = Field(default=5, ge=1)
    interval_ms: int = Field(default=2000, ge=0)
    warmup_ms: int = Field(default=5000, ge=0)
