"""Session domain service - one preview/broadcast session per console panel."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from streampanel.app_config import get_app_environ_config
from streampanel.domain.catalog.source_catalog import SourceCatalogClient, SourceListing
from streampanel.schemas import (
    BroadcastDestination,
    EncodeParams,
    PullState,
    PushState,
    SessionSnapshot,
    SourceKind,
    StreamType,
)
from streampanel.services.encoder_backend import (
    EncoderBackendClient,
    StopStreamBody,
    StreamAck,
    get_encoder_backend_client,
)
from streampanel.services.playback_engine import HeadlessPlaybackEngine, PlaybackEngineFactory
from streampanel.utils.app_errors import AppError, SessionLimitReached, SessionNotFound

from ._acquisition import PlaybackAcquisitionController
from ._broadcast import BroadcastSessionController
from ._engine_adapter import PlaybackEngineAdapter
from .clock import AsyncioClock, Clock
from .notices import NoticeListener, SessionNotifier
from .session_store import SessionStore


@dataclass
class _Panel:
    adapter: PlaybackEngineAdapter
    acquisition: PlaybackAcquisitionController
    broadcast: BroadcastSessionController


class SessionService:
    """Owns the session store and one set of controllers per active panel."""

    def __init__(
        self,
        backend: EncoderBackendClient | None = None,
        catalog: SourceCatalogClient | None = None,
        engine_factory: PlaybackEngineFactory = HeadlessPlaybackEngine,
        clock: Clock | None = None,
        max_panels: int | None = None,
        notifier: SessionNotifier | None = None,
        store: SessionStore | None = None,
    ):
        config = get_app_environ_config()
        self._config = config
        self._clock = clock or AsyncioClock()
        self._backend = backend or get_encoder_backend_client()
        self._catalog = catalog or SourceCatalogClient(
            self._backend, cache_seconds=config.SOURCE_CATALOG_CACHE_SECONDS, clock=self._clock
        )
        self._engine_factory = engine_factory
        self.max_panels = max_panels or config.MAX_PANELS
        self.notifier = notifier or SessionNotifier()
        self.store = store or SessionStore()
        self._panels: dict[str, _Panel] = {}

    def _panel(self, session_id: str) -> _Panel:
        panel = self._panels.get(session_id)
        if panel is None:
            raise SessionNotFound(f"Panel {session_id} is not active")
        return panel

    # ==================== PANELS ====================

    def activate_panel(self, session_id: str) -> SessionSnapshot:
        """Create the session for a panel and wire its controllers.

        Raises SessionLimitReached when every panel slot is taken,
        SessionExists when the panel is already active.
        """
        if len(self._panels) >= self.max_panels:
            raise SessionLimitReached(
                f"At most {self.max_panels} panels can be active at a time"
            )
        snapshot = self.store.create_session(session_id)

        adapter = PlaybackEngineAdapter(session_id, self.store, self.notifier, self._engine_factory)
        acquisition = PlaybackAcquisitionController(
            session_id,
            self.store,
            self._backend,
            adapter,
            self.notifier,
            clock=self._clock,
            warmup_ms=self._config.PLAYBACK_WARMUP_MS,
            interval_ms=self._config.PLAYBACK_PROBE_INTERVAL_MS,
            max_attempts=self._config.PLAYBACK_PROBE_MAX_ATTEMPTS,
            manifest_path=self._config.PLAY_MANIFEST_PATH,
        )
        broadcast = BroadcastSessionController(session_id, self.store, self._backend)

        self.store.register_teardown(session_id, acquisition.cancel)
        self.store.register_teardown(session_id, adapter.destroy)
        self._panels[session_id] = _Panel(adapter, acquisition, broadcast)
        logger.info(f"🎬 Panel {session_id} activated ({len(self._panels)}/{self.max_panels})")
        return snapshot

    async def teardown_panel(self, session_id: str) -> SessionSnapshot:
        """Destroy the panel's session, then release whatever the backend still runs for it."""
        panel = self._panel(session_id)
        last = self.store.destroy_session(session_id)
        del self._panels[session_id]
        await self._release_backend(session_id, last, panel.broadcast)
        return last

    # ==================== SESSION STATE ====================

    async def change_source(
        self, session_id: str, kind: SourceKind | str, ref: str
    ) -> SessionSnapshot:
        """Select a new input for the panel.

        The previous engine and acquisition are gone and both states are
        IDLE before the backend is told to stop the old streams.
        """
        panel = self._panel(session_id)
        previous = self.store.get_snapshot(session_id)
        snapshot = self.store.set_source(session_id, kind, ref)
        if snapshot.generation != previous.generation:
            await self._release_backend(session_id, previous, panel.broadcast)
        return snapshot

    def set_encode_params(self, session_id: str, partial: Mapping[str, Any]) -> EncodeParams:
        self._panel(session_id)
        return self.store.set_encode_params(session_id, partial)

    def set_destination(
        self, session_id: str, server_url: str, stream_key: str | None = None
    ) -> BroadcastDestination:
        self._panel(session_id)
        return self.store.set_destination(session_id, server_url, stream_key)

    def get_snapshot(self, session_id: str) -> SessionSnapshot:
        return self.store.get_snapshot(session_id)

    def snapshots(self) -> list[SessionSnapshot]:
        return [self.store.get_snapshot(session_id) for session_id in self.store.session_ids()]

    # ==================== PREVIEW ====================

    async def start_preview(self, session_id: str) -> None:
        await self._panel(session_id).acquisition.start()

    async def wait_preview(self, session_id: str) -> PullState:
        return await self._panel(session_id).acquisition.wait()

    async def stop_preview(self, session_id: str) -> StreamAck | None:
        """Abandon the preview locally, then stop the backend's play stream."""
        panel = self._panel(session_id)
        previous = self.store.get_snapshot(session_id).pull_state
        panel.acquisition.cancel()
        if previous == PullState.IDLE:
            return None
        return await self._backend.stop_stream(StopStreamBody(stream_type=StreamType.PLAY))

    # ==================== BROADCAST ====================

    async def start_broadcast(
        self, session_id: str, destination: BroadcastDestination | None = None
    ) -> StreamAck:
        return await self._panel(session_id).broadcast.start(destination)

    async def stop_broadcast(self, session_id: str) -> StreamAck | None:
        return await self._panel(session_id).broadcast.stop()

    # ==================== CATALOG / NOTICES ====================

    async def list_sources(self, kind: SourceKind | str, refresh: bool = False) -> SourceListing:
        return await self._catalog.list(kind, refresh=refresh)

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        return self.notifier.subscribe(listener)

    async def _release_backend(
        self,
        session_id: str,
        previous: SessionSnapshot,
        broadcast: BroadcastSessionController,
    ) -> None:
        # Local state is already reset; a failed stop is reported, not retried
        if previous.pull_state != PullState.IDLE:
            try:
                await self._backend.stop_stream(StopStreamBody(stream_type=StreamType.PLAY))
            except AppError as e:
                self.notifier.publish(session_id, e)
        if previous.push_state != PushState.IDLE:
            try:
                await broadcast.release()
            except AppError as e:
                self.notifier.publish(session_id, e)
