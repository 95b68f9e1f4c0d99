from .encoder_backend_client import EncoderBackendClient, get_encoder_backend_client
from .encoder_backend_schemas import StartStreamBody, StopStreamBody, StreamAck, VideoInfo

__all__ = [
    "EncoderBackendClient",
    "StartStreamBody",
    "StopStreamBody",
    "StreamAck",
    "VideoInfo",
    "get_encoder_backend_client",
]
