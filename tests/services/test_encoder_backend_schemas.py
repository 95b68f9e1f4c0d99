"""Tests for encoder backend wire schemas."""

import pytest
from pydantic import ValidationError

from streampanel.schemas import EncodeParams, StreamType
from streampanel.services.encoder_backend import StartStreamBody, StreamAck, VideoInfo


class TestStartStreamBody:
    def test_play_body_has_no_encode_fields(self):
        body = StartStreamBody(video_path="a.mp4", stream_type=StreamType.PLAY)
        assert body.to_wire() == {"videoPath": "a.mp4", "streamType": "play"}

    def test_accepts_camel_case_input(self):
        body = StartStreamBody.model_validate({"videoPath": "a.mp4", "streamType": "push", "rtmpUrl": "rtmp://x"})
        assert body.rtmp_url == "rtmp://x"

    def test_unknown_stream_type_rejected(self):
        with pytest.raises(ValidationError):
            StartStreamBody(video_path="a.mp4", stream_type="record")


class TestStreamAck:
    def test_extra_fields_kept(self):
        ack = StreamAck.model_validate({"message": "Streaming started", "pushUrl": "/push/playlist.m3u8"})
        assert ack.model_extra == {"pushUrl": "/push/playlist.m3u8"}
        assert ack.play_url is None


class TestVideoInfo:
    def test_size_defaults_to_zero(self):
        assert VideoInfo(name="a.mp4", path="a.mp4").size == 0


class TestEncodeParams:
    def test_defaults(self):
        params = EncodeParams()

        assert params.resolution == "1920x1080"
        assert params.frame_rate == "59.94"
        assert params.video_bitrate_kbps == 2000
        assert params.audio_bitrate_kbps == 128
        assert params.preset == "veryfast"
        assert params.keyframe_interval_sec == 2
        assert params.rate_control == "cbr"
        assert params.watermark_ref == "none"

    def test_frozen(self):
        params = EncodeParams()
        with pytest.raises(ValidationError):
            params.video_bitrate_kbps = 5000

    @pytest.mark.parametrize(
        "field,value",
        [
            ("videoBitrateKbps", 499),
            ("videoBitrateKbps", 20001),
            ("audioBitrateKbps", 16),
            ("keyframeIntervalSec", 11),
            ("frameRate", "48"),
            ("preset", "placebo"),
            ("watermarkRef", "/watermarks/logo9.png"),
        ],
    )
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            EncodeParams.model_validate({field: value})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("videoBitrateKbps", 2001),
            ("videoBitrateKbps", 750),
            ("audioBitrateKbps", 100),
            ("audioBitrateKbps", 200),
        ],
    )
    def test_off_step_bitrate_rejected(self, field, value):
        """Test bitrates must sit on the 500 kbps video / 32 kbps audio grid."""
        with pytest.raises(ValidationError, match="multiple of"):
            EncodeParams.model_validate({field: value})

    def test_on_step_bitrates_accepted(self):
        params = EncodeParams.model_validate({"videoBitrateKbps": 2500, "audioBitrateKbps": 160})

        assert params.video_bitrate_kbps == 2500
        assert params.audio_bitrate_kbps == 160

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            EncodeParams.model_validate({"crf": 23})

    def test_field_for_key(self):
        assert EncodeParams.field_for_key("videoBitrateKbps") == "video_bitrate_kbps"
        assert EncodeParams.field_for_key("preset") == "preset"
        assert EncodeParams.field_for_key("bitrate") is None
