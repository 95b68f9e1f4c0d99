"""Per-panel session state container."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger
from pydantic import ValidationError as SchemaValidationError

from streampanel.schemas import (
    BroadcastDestination,
    EncodeParams,
    PullState,
    PushState,
    SessionSnapshot,
    SourceKind,
)
from streampanel.utils.app_errors import (
    InvalidStateTransition,
    SessionExists,
    SessionNotFound,
    ValidationError,
)

from .session_state_machine import PullStateMachine, PushStateMachine

TeardownHook = Callable[[], None]


@dataclass
class _SessionRecord:
    session_id: str
    source_kind: SourceKind | None = None
    source_ref: str | None = None
    encode_params: EncodeParams = field(default_factory=EncodeParams)
    destination: BroadcastDestination = field(default_factory=BroadcastDestination)
    pull_state: PullState = PullState.IDLE
    push_state: PushState = PushState.IDLE
    manifest_url: str | None = None
    # Bumped on every source change; writes carrying an older value are dropped
    generation: int = 0
    teardown_hooks: list[TeardownHook] = field(default_factory=list)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            source_kind=self.source_kind,
            source_ref=self.source_ref,
            encode_params=self.encode_params,
            destination=self.destination,
            pull_state=self.pull_state,
            push_state=self.push_state,
            manifest_url=self.manifest_url,
            generation=self.generation,
        )


def _format_schema_errors(exc: SchemaValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "params"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


class SessionStore:
    """Holds one record per panel and validates every write to it.

    All reads return immutable snapshots; all writes go through the methods
    below so state transitions are checked in one place.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, _SessionRecord] = {}

    def _get(self, session_id: str) -> _SessionRecord:
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFound(f"Session {session_id} not found")
        return record

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def create_session(self, session_id: str) -> SessionSnapshot:
        if not session_id:
            raise ValidationError("Session id is required")
        if session_id in self._sessions:
            raise SessionExists(f"Session {session_id} already exists")
        record = _SessionRecord(session_id=session_id)
        self._sessions[session_id] = record
        logger.info(f"Session {session_id} created")
        return record.snapshot()

    def register_teardown(self, session_id: str, hook: TeardownHook) -> None:
        """Register a synchronous hook run on source change and session destroy."""
        self._get(session_id).teardown_hooks.append(hook)

    def _run_teardown(self, record: _SessionRecord) -> None:
        for hook in record.teardown_hooks:
            hook()

    def destroy_session(self, session_id: str) -> SessionSnapshot:
        """Tear the session down and forget it. Returns its last snapshot."""
        record = self._get(session_id)
        last = record.snapshot()
        self._run_teardown(record)
        del self._sessions[session_id]
        logger.info(f"Session {session_id} destroyed")
        return last

    def set_source(self, session_id: str, kind: SourceKind | str, ref: str) -> SessionSnapshot:
        """Select the session's input.

        A different kind or ref tears down any live engine and resets both
        state machines to IDLE before returning.
        """
        record = self._get(session_id)
        try:
            kind = SourceKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown source kind '{kind}'") from e
        ref = (ref or "").strip()
        if not ref:
            raise ValidationError("Source reference is required")

        if record.source_kind == kind and record.source_ref == ref:
            logger.debug(f"Session {session_id} source unchanged ({kind}:{ref}), skipping")
            return record.snapshot()

        self._run_teardown(record)
        record.pull_state = PullState.IDLE
        record.push_state = PushState.IDLE
        record.manifest_url = None
        record.generation += 1
        record.source_kind = kind
        record.source_ref = ref
        logger.info(
            f"Session {session_id} source set to {kind}:{ref} (generation {record.generation})"
        )
        return record.snapshot()

    def set_encode_params(self, session_id: str, partial: Mapping[str, Any]) -> EncodeParams:
        """Merge and validate a partial update. Rejected updates change nothing."""
        record = self._get(session_id)
        updates: dict[str, Any] = {}
        for key, value in partial.items():
            name = EncodeParams.field_for_key(key)
            if name is None:
                raise ValidationError(f"Unknown encode parameter '{key}'")
            updates[name] = value

        try:
            params = EncodeParams.model_validate({**record.encode_params.model_dump(), **updates})
        except SchemaValidationError as e:
            raise ValidationError(f"Invalid encode parameters: {_format_schema_errors(e)}") from e

        record.encode_params = params
        logger.debug(f"Session {session_id} encode params updated: {sorted(updates)}")
        return params

    def set_destination(
        self, session_id: str, server_url: str, stream_key: str | None = None
    ) -> BroadcastDestination:
        record = self._get(session_id)
        record.destination = BroadcastDestination(
            server_url=(server_url or "").strip(),
            stream_key=(stream_key or "").strip() or None,
        )
        return record.destination

    def get_snapshot(self, session_id: str) -> SessionSnapshot:
        return self._get(session_id).snapshot()

    def _is_stale(self, record: _SessionRecord, generation: int | None, what: str) -> bool:
        if generation is not None and generation != record.generation:
            logger.info(
                f"Session {record.session_id} dropped stale {what} "
                f"(generation {generation}, current {record.generation})"
            )
            return True
        return False

    def transition_pull(
        self, session_id: str, new_state: PullState, generation: int | None = None
    ) -> bool:
        """Move the pull state machine. Returns False if the write was stale."""
        record = self._get(session_id)
        if self._is_stale(record, generation, f"pull -> {new_state}"):
            return False
        if record.pull_state == new_state:
            return True
        if not PullStateMachine.can_transition(record.pull_state, new_state):
            raise InvalidStateTransition(
                f"Invalid pull transition: {record.pull_state} -> {new_state}"
            )
        logger.info(f"Session {session_id} pull {record.pull_state} -> {new_state}")
        record.pull_state = new_state
        if new_state in (PullState.IDLE, PullState.FAILED):
            record.manifest_url = None
        return True

    def transition_push(
        self, session_id: str, new_state: PushState, generation: int | None = None
    ) -> bool:
        """Move the push state machine. Returns False if the write was stale."""
        record = self._get(session_id)
        if self._is_stale(record, generation, f"push -> {new_state}"):
            return False
        if record.push_state == new_state:
            return True
        if not PushStateMachine.can_transition(record.push_state, new_state):
            raise InvalidStateTransition(
                f"Invalid push transition: {record.push_state} -> {new_state}"
            )
        logger.info(f"Session {session_id} push {record.push_state} -> {new_state}")
        record.push_state = new_state
        return True

    def set_manifest_url(self, session_id: str, url: str, generation: int | None = None) -> bool:
        record = self._get(session_id)
        if self._is_stale(record, generation, "manifest url"):
            return False
        record.manifest_url = url
        return True
