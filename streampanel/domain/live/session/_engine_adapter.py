"""Playback engine ownership and error recovery for one session."""

from __future__ import annotations

from typing import Callable

from loguru import logger

from streampanel.schemas import (
    EngineErrorEvent,
    FatalPlaybackError,
    MediaPlaybackError,
    NetworkPlaybackError,
    PlaybackError,
    PlaybackErrorClass,
    PullState,
    classify_engine_error,
)
from streampanel.services.playback_engine import PlaybackEngine, PlaybackEngineFactory
from streampanel.utils.app_errors import PlaybackFailed

from .notices import SessionNotifier
from .session_store import SessionStore


class PlaybackEngineAdapter:
    """Owns at most one playback engine instance for a session.

    Engine errors are classified into exactly one `PlaybackError` variant and
    routed to the handler registered for its class:

    - network: restart loading, instance kept
    - media: reset the decode path when fatal, instance kept
    - fatal: destroy the instance, pull state FAILED, notice published
    """

    def __init__(
        self,
        session_id: str,
        store: SessionStore,
        notifier: SessionNotifier,
        engine_factory: PlaybackEngineFactory,
    ):
        self.session_id = session_id
        self._store = store
        self._notifier = notifier
        self._engine_factory = engine_factory
        self._engine: PlaybackEngine | None = None
        self._handlers: dict[PlaybackErrorClass, Callable[[PlaybackEngine, PlaybackError], None]] = {
            PlaybackErrorClass.NETWORK: self._restart_load,
            PlaybackErrorClass.MEDIA: self._recover_media,
            PlaybackErrorClass.FATAL: self._fail,
        }

    @property
    def engine(self) -> PlaybackEngine | None:
        return self._engine

    @property
    def has_instance(self) -> bool:
        return self._engine is not None

    def attach(self, url: str) -> PlaybackEngine:
        """Replace any current instance with a new one bound to `url`."""
        self.destroy()

        instance: PlaybackEngine | None = None

        def on_error(event: EngineErrorEvent) -> None:
            self.handle_engine_error(instance, event)

        instance = self._engine_factory(on_error)
        self._engine = instance
        logger.info(f"Session {self.session_id} attaching playback engine to {url}")
        instance.load_source(url)
        return instance

    def destroy(self) -> None:
        """Release the current instance. Safe to call any number of times."""
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            engine.destroy()
        except Exception:
            logger.exception(f"Session {self.session_id} playback engine destroy raised")
        logger.info(f"Session {self.session_id} playback engine destroyed")

    def handle_engine_error(
        self, instance: PlaybackEngine | None, event: EngineErrorEvent
    ) -> PlaybackError | None:
        """Classify one engine error event and apply its recovery policy.

        Events from an instance that has since been replaced or destroyed are
        dropped, they must not act on the current source.
        """
        if instance is None or instance is not self._engine:
            logger.warning(
                f"Session {self.session_id} dropped {event.type}/{event.details} "
                f"from a playback engine that is no longer attached"
            )
            return None

        error = classify_engine_error(event)
        logger.info(
            f"Session {self.session_id} playback error {event.type}/{event.details} "
            f"classified as {error.error_class}"
        )
        self._handlers[error.error_class](instance, error)
        return error

    def _restart_load(self, engine: PlaybackEngine, error: NetworkPlaybackError) -> None:
        engine.start_load()

    def _recover_media(self, engine: PlaybackEngine, error: MediaPlaybackError) -> None:
        if not error.raw.fatal:
            logger.debug(f"Session {self.session_id} non-fatal media error, engine keeps playing")
            return
        engine.recover_media_error()

    def _fail(self, engine: PlaybackEngine, error: FatalPlaybackError) -> None:
        self.destroy()
        self._store.transition_pull(self.session_id, PullState.FAILED)
        raw = error.raw
        self._notifier.publish(
            self.session_id,
            PlaybackFailed(
                f"Playback failed ({raw.type}/{raw.details}"
                f"{': ' + raw.reason if raw.reason else ''}), restart the preview"
            ),
        )
