"""Common enums used across schemas."""

from enum import Enum


class SourceKind(str, Enum):
    """Where a panel's input comes from."""

    FILE = "file"
    CAPTURE = "capture"

    def __str__(self) -> str:
        return self.value


class PullState(str, Enum):
    """Preview (pull) lifecycle states.

    State Transition Flow:

    IDLE → REQUESTING → WARMUP → POLLING → ATTACHED
               ↓           ↓         ↓         ↓
             FAILED      FAILED    FAILED    FAILED

    State Descriptions:
    - IDLE: Nothing requested. Set on create, source change, cancel and stop.
    - REQUESTING: "start pull" command sent to the encoder backend.
    - WARMUP: Backend acknowledged, waiting for the first segment to be written.
    - POLLING: Probing the manifest at a fixed interval.
    - ATTACHED: Manifest found and handed to the playback engine.
    - FAILED: Start rejected, probes exhausted, or fatal playback error.
      Only an explicit new start leaves this state (besides a reset to IDLE).
    """

    IDLE = "idle"
    REQUESTING = "requesting"
    WARMUP = "warmup"
    POLLING = "polling"
    ATTACHED = "attached"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class PushState(str, Enum):
    """Broadcast (push) lifecycle states.

    IDLE → STARTING → ACTIVE → STOPPING → IDLE
    """

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"

    def __str__(self) -> str:
        return self.value


class StreamType(str, Enum):
    """Stream purpose as understood by the encoder backend."""

    PLAY = "play"
    PUSH = "push"

    def __str__(self) -> str:
        return self.value


__all__ = ["PullState", "PushState", "SourceKind", "StreamType"]
