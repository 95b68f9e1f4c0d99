"""Broadcast (push) lifecycle for one session."""

from __future__ import annotations

import asyncio

from loguru import logger

from streampanel.schemas import (
    BroadcastDestination,
    EncodeParams,
    PushState,
    StreamType,
)
from streampanel.services.encoder_backend import (
    EncoderBackendClient,
    StartStreamBody,
    StopStreamBody,
    StreamAck,
)
from streampanel.utils.app_errors import AppError, InvalidStateTransition, ValidationError

from .session_store import SessionStore


def build_push_body(
    source_ref: str, destination: BroadcastDestination, params: EncodeParams
) -> StartStreamBody:
    """Full start command for a broadcast: source, destination and encode snapshot."""
    return StartStreamBody(
        video_path=source_ref,
        stream_type=StreamType.PUSH,
        rtmp_url=destination.server_url,
        stream_key=destination.stream_key,
        resolution=params.resolution,
        frame_rate=params.frame_rate,
        video_bitrate=params.video_bitrate_kbps,
        audio_bitrate=params.audio_bitrate_kbps,
        cpu_preset=params.preset,
        keyframe_interval=params.keyframe_interval_sec,
        rate_control=params.rate_control,
        watermark=params.watermark_ref,
    )


class BroadcastSessionController:
    """Starts and stops the push session of one panel.

    The lifecycle is independent of preview playback: nothing here touches
    the pull state, and preview failures never touch the push state.
    Commands for one session are serialized so a stop issued during a start
    is applied after it.
    """

    def __init__(self, session_id: str, store: SessionStore, backend: EncoderBackendClient):
        self.session_id = session_id
        self._store = store
        self._backend = backend
        self._lock = asyncio.Lock()

    @property
    def state(self) -> PushState:
        return self._store.get_snapshot(self.session_id).push_state

    async def start(self, destination: BroadcastDestination | None = None) -> StreamAck:
        """Start (or restart) the broadcast with the parameters in force right now.

        Raises:
            ValidationError: empty destination or no source, no request sent
            BackendRejection / BackendUnavailable: start command failed
        """
        if destination is not None:
            self._store.set_destination(
                self.session_id, destination.server_url, destination.stream_key
            )
        # Taken before the first await: later edits cannot reach this command
        snapshot = self._store.get_snapshot(self.session_id)
        if snapshot.destination.is_empty:
            raise ValidationError("Destination address is required to start a broadcast")
        if not snapshot.has_source:
            raise ValidationError("Select a source before starting a broadcast")
        body = build_push_body(snapshot.source_ref, snapshot.destination, snapshot.encode_params)
        generation = snapshot.generation

        async with self._lock:
            current = self._store.get_snapshot(self.session_id)
            if current.generation != generation:
                raise InvalidStateTransition(
                    "Source changed before the broadcast could start, start it again"
                )
            if current.push_state == PushState.ACTIVE:
                logger.info(f"Session {self.session_id} restarting broadcast with new parameters")
                await self._stop_locked(generation)

            self._store.transition_push(self.session_id, PushState.STARTING, generation)
            logger.info(
                f"📤 Starting broadcast for session {self.session_id} -> "
                f"{snapshot.destination.server_url} ({snapshot.encode_params.resolution}@"
                f"{snapshot.encode_params.frame_rate}, {snapshot.encode_params.video_bitrate_kbps}kbps)"
            )
            try:
                ack = await self._backend.start_stream(body)
            except AppError:
                self._write_push(PushState.IDLE, generation)
                raise

            if self._write_push(PushState.ACTIVE, generation):
                logger.info(f"✅ Broadcast active for session {self.session_id}")
            return ack

    async def stop(self) -> StreamAck | None:
        """Stop the broadcast. A no-op when already idle.

        The state only returns to IDLE once the backend confirms; a rejected
        stop leaves the broadcast ACTIVE and raises.
        """
        async with self._lock:
            snapshot = self._store.get_snapshot(self.session_id)
            if snapshot.push_state == PushState.IDLE:
                logger.info(f"Session {self.session_id} broadcast already idle, nothing to stop")
                return None
            return await self._stop_locked(snapshot.generation)

    async def release(self) -> StreamAck:
        """Stop whatever the backend is pushing for this panel, regardless of local state.

        Used after a source change or teardown already reset the push state.
        """
        async with self._lock:
            logger.info(f"Session {self.session_id} releasing backend broadcast")
            return await self._backend.stop_stream(StopStreamBody(stream_type=StreamType.PUSH))

    async def _stop_locked(self, generation: int) -> StreamAck:
        self._store.transition_push(self.session_id, PushState.STOPPING, generation)
        try:
            ack = await self._backend.stop_stream(StopStreamBody(stream_type=StreamType.PUSH))
        except AppError:
            self._write_push(PushState.ACTIVE, generation)
            raise
        self._write_push(PushState.IDLE, generation)
        logger.info(f"Broadcast stopped for session {self.session_id}")
        return ack

    def _write_push(self, new_state: PushState, generation: int) -> bool:
        """Apply a push transition that follows a backend call.

        The panel may have been torn down while the call was in flight; the
        write is then dropped like a stale one and teardown's release stops
        whatever the backend started.
        """
        if not self._store.has_session(self.session_id):
            logger.info(
                f"Session {self.session_id} was torn down during a backend call, "
                f"dropping push -> {new_state}"
            )
            return False
        return self._store.transition_push(self.session_id, new_state, generation)
