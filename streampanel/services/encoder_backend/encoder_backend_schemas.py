from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from streampanel.schemas.session_state import StreamType


class VideoInfo(BaseModel):
    """One entry of GET /api/videos."""

    name: str = Field(..., description="File name")
    path: str = Field(..., description="Path as understood by the backend")
    size: int = Field(default=0, description="File size in bytes")


class StartStreamBody(BaseModel):
    """Request body for POST /api/stream/start.

    A "play" start only carries the source; a "push" start carries the full
    destination and encoding snapshot.
    """

    video_path: str = Field(
        ...,
        alias="videoPath",
        validation_alias=AliasChoices("videoPath", "video_path"),
        description="Source file path or capture device reference",
    )
    stream_type: StreamType = Field(
        ...,
        alias="streamType",
        validation_alias=AliasChoices("streamType", "stream_type"),
    )
    rtmp_url: str | None = Field(
        default=None,
        alias="rtmpUrl",
        validation_alias=AliasChoices("rtmpUrl", "rtmp_url"),
    )
    stream_key: str | None = Field(
        default=None,
        alias="streamKey",
        validation_alias=AliasChoices("streamKey", "stream_key"),
    )
    resolution: str | None = None
    frame_rate: str | None = Field(
        default=None,
        alias="frameRate",
        validation_alias=AliasChoices("frameRate", "frame_rate"),
    )
    video_bitrate: int | None = Field(
        default=None,
        alias="videoBitrate",
        validation_alias=AliasChoices("videoBitrate", "video_bitrate"),
        description="Video bitrate in kbps",
    )
    audio_bitrate: int | None = Field(
        default=None,
        alias="audioBitrate",
        validation_alias=AliasChoices("audioBitrate", "audio_bitrate"),
        description="Audio bitrate in kbps",
    )
    cpu_preset: str | None = Field(
        default=None,
        alias="cpuPreset",
        validation_alias=AliasChoices("cpuPreset", "cpu_preset"),
    )
    keyframe_interval: int | None = Field(
        default=None,
        alias="keyframeInterval",
        validation_alias=AliasChoices("keyframeInterval", "keyframe_interval"),
        description="Keyframe interval in seconds",
    )
    rate_control: str | None = Field(
        default=None,
        alias="rateControl",
        validation_alias=AliasChoices("rateControl", "rate_control"),
    )
    watermark: str | None = None

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StopStreamBody(BaseModel):
    """Request body for POST /api/stream/stop."""

    stream_type: StreamType = Field(
        ...,
        alias="streamType",
        validation_alias=AliasChoices("streamType", "stream_type"),
    )

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class StreamAck(BaseModel):
    """Acknowledgment returned by start/stop.

    The backend answers `{message, type, playUrl?}`; unknown fields are kept.
    """

    message: str | None = None
    type: str | None = None
    play_url: str | None = Field(
        default=None,
        alias="playUrl",
        validation_alias=AliasChoices("playUrl", "play_url"),
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow")
