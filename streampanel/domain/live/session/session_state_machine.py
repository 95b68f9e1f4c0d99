"""State machines for the pull (preview) and push (broadcast) lifecycles."""

from typing import ClassVar

from streampanel.schemas import PullState, PushState


class PullStateMachine:
    """State machine for preview acquisition.

    State flow with triggers:
    - IDLE -> REQUESTING (start() issues the backend "start pull" command)
    - REQUESTING -> WARMUP (command acknowledged) | FAILED (command rejected)
    - WARMUP -> POLLING (warm-up delay elapsed) | FAILED
    - POLLING -> ATTACHED (manifest probe succeeded) | FAILED (attempts exhausted)
    - ATTACHED -> FAILED (fatal playback error)
    - FAILED -> REQUESTING (explicit new start())
    - any -> IDLE (cancel, stop, source change)
    """

    TRANSITIONS: ClassVar[dict[PullState, set[PullState]]] = {
        PullState.IDLE: {PullState.REQUESTING},
        PullState.REQUESTING: {PullState.WARMUP, PullState.FAILED},
        PullState.WARMUP: {PullState.POLLING, PullState.FAILED},
        PullState.POLLING: {PullState.ATTACHED, PullState.FAILED},
        PullState.ATTACHED: {PullState.FAILED},
        PullState.FAILED: {PullState.REQUESTING},
    }

    RESET_STATE: ClassVar[PullState] = PullState.IDLE

    @classmethod
    def can_transition(cls, current: PullState, new: PullState) -> bool:
        """Check if state transition is valid. A reset to IDLE is always valid."""
        if new == cls.RESET_STATE:
            return True
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def get_valid_transitions(cls, state: PullState) -> set[PullState]:
        return cls.TRANSITIONS.get(state, set()) | {cls.RESET_STATE}


class PushStateMachine:
    """State machine for a broadcast.

    State flow with triggers:
    - IDLE -> STARTING (start() sends the push start command)
    - STARTING -> ACTIVE (acknowledged) | IDLE (rejected)
    - ACTIVE -> STOPPING (stop() sends the push stop command)
    - STOPPING -> IDLE (acknowledged) | ACTIVE (rejected, broadcast still running)
    - any -> IDLE (source change, panel teardown)
    """

    TRANSITIONS: ClassVar[dict[PushState, set[PushState]]] = {
        PushState.IDLE: {PushState.STARTING},
        PushState.STARTING: {PushState.ACTIVE, PushState.IDLE},
        PushState.ACTIVE: {PushState.STOPPING},
        PushState.STOPPING: {PushState.IDLE, PushState.ACTIVE},
    }

    RESET_STATE: ClassVar[PushState] = PushState.IDLE

    @classmethod
    def can_transition(cls, current: PushState, new: PushState) -> bool:
        """Check if state transition is valid. A reset to IDLE is always valid."""
        if new == cls.RESET_STATE:
            return True
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def get_valid_transitions(cls, state: PushState) -> set[PushState]:
        return cls.TRANSITIONS.get(state, set()) | {cls.RESET_STATE}
