"""Broadcast encoding parameters."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Resolution = Literal[
    "3840x2160",
    "2560x1440",
    "1920x1080",
    "1280x720",
    "854x480",
    "640x360",
    "426x240",
]

FrameRate = Literal[
    "120", "60", "59.94", "50", "30", "29.97", "25", "24", "23.976", "15"
]

CpuPreset = Literal[
    "ultrafast",
    "superfast",
    "veryfast",
    "faster",
    "fast",
    "medium",
    "slow",
    "slower",
    "veryslow",
]

RateControl = Literal["cbr", "vbr"]

WatermarkRef = Literal[
    "none",
    "/watermarks/logo1.png",
    "/watermarks/logo2.png",
    "/watermarks/logo3.png",
]

VIDEO_BITRATE_RANGE_KBPS = (500, 20000)
VIDEO_BITRATE_STEP_KBPS = 500
AUDIO_BITRATE_RANGE_KBPS = (32, 320)
AUDIO_BITRATE_STEP_KBPS = 32
KEYFRAME_INTERVAL_RANGE_SEC = (1, 10)


class EncodeParams(BaseModel):
    """Immutable snapshot of the x264/AAC settings for one broadcast.

    Instances are frozen: an edit produces a new instance, so a snapshot
    handed to an in-flight start can never change underneath it.
    """

    resolution: Resolution = Field(default="1920x1080", description="Output frame size")
    frame_rate: FrameRate = Field(
        default="59.94",
        alias="frameRate",
        validation_alias=AliasChoices("frameRate", "frame_rate"),
        description="Output frame rate (fps)",
    )
    video_bitrate_kbps: int = Field(
        default=2000,
        ge=VIDEO_BITRATE_RANGE_KBPS[0],
        le=VIDEO_BITRATE_RANGE_KBPS[1],
        multiple_of=VIDEO_BITRATE_STEP_KBPS,
        alias="videoBitrateKbps",
        validation_alias=AliasChoices("videoBitrateKbps", "video_bitrate_kbps"),
        description="Video bitrate in kbps",
    )
    audio_bitrate_kbps: int = Field(
        default=128,
        ge=AUDIO_BITRATE_RANGE_KBPS[0],
        le=AUDIO_BITRATE_RANGE_KBPS[1],
        multiple_of=AUDIO_BITRATE_STEP_KBPS,
        alias="audioBitrateKbps",
        validation_alias=AliasChoices("audioBitrateKbps", "audio_bitrate_kbps"),
        description="AAC bitrate in kbps",
    )
    preset: CpuPreset = Field(default="veryfast", description="x264 CPU preset")
    keyframe_interval_sec: int = Field(
        default=2,
        ge=KEYFRAME_INTERVAL_RANGE_SEC[0],
        le=KEYFRAME_INTERVAL_RANGE_SEC[1],
        alias="keyframeIntervalSec",
        validation_alias=AliasChoices("keyframeIntervalSec", "keyframe_interval_sec"),
        description="Keyframe interval in seconds",
    )
    rate_control: RateControl = Field(
        default="cbr",
        alias="rateControl",
        validation_alias=AliasChoices("rateControl", "rate_control"),
        description="Rate control mode",
    )
    watermark_ref: WatermarkRef = Field(
        default="none",
        alias="watermarkRef",
        validation_alias=AliasChoices("watermarkRef", "watermark_ref"),
        description="Watermark image reference, 'none' for no watermark",
    )

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid", strict=True)

    @classmethod
    def field_for_key(cls, key: str) -> str | None:
        """Map a snake_case or camelCase key to its field name."""
        for name, info in cls.model_fields.items():
            if key == name or key == info.alias:
                return name
        return None
