"""Preview manifest acquisition.

When a preview starts, the encoder backend acknowledges the command long
before it has written its first segment. This controller waits a fixed
warm-up delay, then probes the manifest at a fixed interval for a bounded
number of attempts, and hands the URL to the playback engine once it exists.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from streampanel.schemas import ManifestProbe, PullState, StreamType
from streampanel.services.encoder_backend import EncoderBackendClient, StartStreamBody, StopStreamBody
from streampanel.utils.app_errors import AcquisitionTimeout, AppError, PlaybackFailed, ValidationError

from ._engine_adapter import PlaybackEngineAdapter
from .clock import AsyncioClock, CancellationToken, Clock
from .notices import SessionNotifier
from .probe_policy import ProbeAction, acquisition_timeout_ms, plan_next_probe
from .session_store import SessionStore

# Default delay before first probe (in milliseconds)
DEFAULT_WARMUP_MS = 5000

# Delay between probes (in milliseconds)
DEFAULT_PROBE_INTERVAL_MS = 2000

# Maximum number of manifest probes
DEFAULT_MAX_ATTEMPTS = 5

DEFAULT_MANIFEST_PATH = "/hls/play/playlist.m3u8"


class PlaybackAcquisitionController:
    """Drives IDLE → REQUESTING → WARMUP → POLLING → ATTACHED | FAILED for one session."""

    def __init__(
        self,
        session_id: str,
        store: SessionStore,
        backend: EncoderBackendClient,
        adapter: PlaybackEngineAdapter,
        notifier: SessionNotifier,
        clock: Clock | None = None,
        warmup_ms: int = DEFAULT_WARMUP_MS,
        interval_ms: int = DEFAULT_PROBE_INTERVAL_MS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        manifest_path: str = DEFAULT_MANIFEST_PATH,
    ):
        self.session_id = session_id
        self._store = store
        self._backend = backend
        self._adapter = adapter
        self._notifier = notifier
        self._clock = clock or AsyncioClock()
        self.warmup_ms = warmup_ms
        self.interval_ms = interval_ms
        self.max_attempts = max_attempts
        self.manifest_path = manifest_path

        self._token: CancellationToken | None = None
        self._task: asyncio.Task[PullState] | None = None
        self._probe: ManifestProbe | None = None

    @property
    def state(self) -> PullState:
        return self._store.get_snapshot(self.session_id).pull_state

    @property
    def probe(self) -> ManifestProbe | None:
        """Bookkeeping of the acquisition in progress, if any."""
        return self._probe

    @property
    def timeout_ms(self) -> int:
        return acquisition_timeout_ms(self.warmup_ms, self.interval_ms, self.max_attempts)

    async def start(self) -> None:
        """Request a preview from the backend and begin waiting for its manifest.

        Returns once the backend acknowledged the start command; warm-up and
        probing continue in a background task (see `wait()`).

        Raises:
            ValidationError: no source selected
            BackendRejection / BackendUnavailable: start command failed
        """
        snapshot = self._store.get_snapshot(self.session_id)
        if not snapshot.has_source:
            raise ValidationError("Select a source before starting the preview")

        # A new start replaces whatever acquisition or engine is current
        self.cancel()

        generation = snapshot.generation
        token = CancellationToken(label=f"{self.session_id}:{generation}")
        self._token = token

        self._store.transition_pull(self.session_id, PullState.REQUESTING, generation)
        body = StartStreamBody(video_path=snapshot.source_ref, stream_type=StreamType.PLAY)
        logger.info(f"📤 Requesting preview for session {self.session_id}: {snapshot.source_ref}")

        try:
            ack = await self._backend.start_stream(body)
        except AppError:
            if not token.cancelled:
                self._store.transition_pull(self.session_id, PullState.FAILED, generation)
            raise

        if token.cancelled:
            await self._release_late_ack()
            return

        manifest_url = self._backend.resolve_url(ack.play_url or self.manifest_path)
        probe = ManifestProbe(
            url=manifest_url,
            max_attempts=self.max_attempts,
            interval_ms=self.interval_ms,
            warmup_ms=self.warmup_ms,
        )
        self._probe = probe
        self._store.transition_pull(self.session_id, PullState.WARMUP, generation)
        logger.info(
            f"⏱️  Preview acknowledged for session {self.session_id}, "
            f"manifest={manifest_url}, warmup={probe.warmup_ms}ms, "
            f"timeout={self.timeout_ms}ms"
        )
        self._task = asyncio.create_task(
            self._run(token, probe, generation),
            name=f"acquire-manifest-{self.session_id}",
        )

    def cancel(self) -> None:
        """Abandon any acquisition and engine, back to IDLE.

        Every probe scheduled by the abandoned run becomes a no-op.
        """
        token, task = self._token, self._task
        self._token = None
        self._task = None
        self._probe = None
        if token is not None:
            token.cancel()
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self._adapter.destroy()
        if self._store.has_session(self.session_id):
            self._store.transition_pull(self.session_id, PullState.IDLE)

    async def _release_late_ack(self) -> None:
        """Stop a play stream acknowledged after its acquisition was abandoned.

        Skipped when a newer acquisition has already taken over the play stream.
        """
        if self._token is not None:
            logger.info(
                f"Session {self.session_id} ignoring acknowledgment of a replaced preview start"
            )
            return
        logger.info(
            f"Session {self.session_id} preview cancelled while start was in flight, "
            f"stopping the late play stream"
        )
        try:
            await self._backend.stop_stream(StopStreamBody(stream_type=StreamType.PLAY))
        except AppError as e:
            self._notifier.publish(self.session_id, e)

    async def wait(self) -> PullState:
        """Wait for the background acquisition, if any, and return the pull state."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        return self.state

    async def _run(self, token: CancellationToken, probe: ManifestProbe, generation: int) -> PullState:
        try:
            await self._clock.sleep(probe.warmup_ms / 1000)
            if token.cancelled:
                return PullState.IDLE
            if not self._store.transition_pull(self.session_id, PullState.POLLING, generation):
                return PullState.IDLE

            while True:
                step = plan_next_probe(
                    probe.attempt, probe.max_attempts, probe.interval_ms, token.cancelled
                )
                if step.action is ProbeAction.CANCELLED:
                    return PullState.IDLE
                if step.action is ProbeAction.EXHAUSTED:
                    break

                if step.delay_ms:
                    await self._clock.sleep(step.delay_ms / 1000)
                    if token.cancelled:
                        return PullState.IDLE

                probe.attempt += 1
                ready = await self._backend.probe_manifest(probe.url)
                if token.cancelled:
                    return PullState.IDLE
                if ready:
                    return self._attach(probe, generation)

                logger.info(
                    f"Manifest not ready for session {self.session_id} "
                    f"(attempt {probe.attempt}/{probe.max_attempts})"
                )

            logger.warning(
                f"⚠️  Manifest {probe.url} did not become ready after "
                f"{probe.max_attempts} attempts for session {self.session_id}"
            )
            self._store.transition_pull(self.session_id, PullState.FAILED, generation)
            self._notifier.publish(
                self.session_id,
                AcquisitionTimeout(
                    f"Preview did not start within {self.timeout_ms} ms "
                    f"({probe.max_attempts} manifest probes)"
                ),
            )
            return PullState.FAILED

        except Exception as e:
            logger.exception(f"Error acquiring preview for session {self.session_id}: {e}")
            if token.cancelled:
                return PullState.IDLE
            self._adapter.destroy()
            self._store.transition_pull(self.session_id, PullState.FAILED, generation)
            self._notifier.publish(self.session_id, PlaybackFailed(f"Preview failed: {e}"))
            return PullState.FAILED

    def _attach(self, probe: ManifestProbe, generation: int) -> PullState:
        if not self._store.set_manifest_url(self.session_id, probe.url, generation):
            return PullState.IDLE
        self._store.transition_pull(self.session_id, PullState.ATTACHED, generation)
        logger.info(
            f"✅ Manifest ready for session {self.session_id} after {probe.attempt} probe(s)"
        )
        self._adapter.attach(probe.url)
        return self.state
