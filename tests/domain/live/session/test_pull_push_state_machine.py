"""Tests for PullStateMachine and PushStateMachine transitions."""

from streampanel.domain.live.session.session_state_machine import (
    PullStateMachine,
    PushStateMachine,
)
from streampanel.schemas import PullState, PushState


class TestPullCanTransition:
    """Tests for PullStateMachine.can_transition method."""

    def test_idle_to_requesting_valid(self):
        """Test IDLE -> REQUESTING is a valid transition."""
        assert PullStateMachine.can_transition(PullState.IDLE, PullState.REQUESTING) is True

    def test_idle_to_attached_invalid(self):
        """Test IDLE -> ATTACHED is invalid (must acquire the manifest first)."""
        assert PullStateMachine.can_transition(PullState.IDLE, PullState.ATTACHED) is False

    def test_requesting_to_warmup_valid(self):
        assert PullStateMachine.can_transition(PullState.REQUESTING, PullState.WARMUP) is True

    def test_requesting_to_polling_invalid(self):
        """Test REQUESTING -> POLLING is invalid (warm-up comes first)."""
        assert PullStateMachine.can_transition(PullState.REQUESTING, PullState.POLLING) is False

    def test_polling_to_attached_valid(self):
        assert PullStateMachine.can_transition(PullState.POLLING, PullState.ATTACHED) is True

    def test_attached_to_failed_valid(self):
        """Test ATTACHED -> FAILED is valid (fatal playback error)."""
        assert PullStateMachine.can_transition(PullState.ATTACHED, PullState.FAILED) is True

    def test_failed_to_requesting_valid(self):
        """Test FAILED -> REQUESTING is valid (explicit restart)."""
        assert PullStateMachine.can_transition(PullState.FAILED, PullState.REQUESTING) is True

    def test_failed_to_polling_invalid(self):
        """Test FAILED never resumes probing on its own."""
        assert PullStateMachine.can_transition(PullState.FAILED, PullState.POLLING) is False

    def test_reset_to_idle_always_valid(self):
        """Test every state can be reset to IDLE."""
        for state in PullState:
            assert PullStateMachine.can_transition(state, PullState.IDLE) is True


class TestPullGetValidTransitions:
    def test_polling_transitions(self):
        assert PullStateMachine.get_valid_transitions(PullState.POLLING) == {
            PullState.ATTACHED,
            PullState.FAILED,
            PullState.IDLE,
        }

    def test_attached_transitions(self):
        assert PullStateMachine.get_valid_transitions(PullState.ATTACHED) == {
            PullState.FAILED,
            PullState.IDLE,
        }


class TestPushCanTransition:
    """Tests for PushStateMachine.can_transition method."""

    def test_idle_to_starting_valid(self):
        assert PushStateMachine.can_transition(PushState.IDLE, PushState.STARTING) is True

    def test_idle_to_active_invalid(self):
        """Test IDLE -> ACTIVE is invalid (start must be acknowledged)."""
        assert PushStateMachine.can_transition(PushState.IDLE, PushState.ACTIVE) is False

    def test_starting_to_idle_valid(self):
        """Test STARTING -> IDLE is valid (start rejected)."""
        assert PushStateMachine.can_transition(PushState.STARTING, PushState.IDLE) is True

    def test_stopping_to_active_valid(self):
        """Test STOPPING -> ACTIVE is valid (stop rejected, still broadcasting)."""
        assert PushStateMachine.can_transition(PushState.STOPPING, PushState.ACTIVE) is True

    def test_active_to_starting_invalid(self):
        assert PushStateMachine.can_transition(PushState.ACTIVE, PushState.STARTING) is False

    def test_reset_to_idle_always_valid(self):
        for state in PushState:
            assert PushStateMachine.can_transition(state, PushState.IDLE) is True
