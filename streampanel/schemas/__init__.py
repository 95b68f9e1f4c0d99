"""Pydantic schemas shared by the session domain and the backend client."""

from .catalog import SourceEntry
from .encode_params import EncodeParams
from .playback import (
    EngineErrorEvent,
    FatalPlaybackError,
    ManifestProbe,
    MediaPlaybackError,
    NetworkPlaybackError,
    PlaybackError,
    PlaybackErrorClass,
    classify_engine_error,
)
from .session import BroadcastDestination, SessionNotice, SessionSnapshot
from .session_state import PullState, PushState, SourceKind, StreamType

__all__ = [
    "BroadcastDestination",
    "EncodeParams",
    "EngineErrorEvent",
    "FatalPlaybackError",
    "ManifestProbe",
    "MediaPlaybackError",
    "NetworkPlaybackError",
    "PlaybackError",
    "PlaybackErrorClass",
    "PullState",
    "PushState",
    "SessionNotice",
    "SessionSnapshot",
    "SourceEntry",
    "SourceKind",
    "StreamType",
    "classify_engine_error",
]
