"""Tests for PlaybackEngineAdapter error routing and instance ownership."""

from unittest.mock import MagicMock

import pytest

from streampanel.domain.live.session._engine_adapter import PlaybackEngineAdapter
from streampanel.schemas import (
    EngineErrorEvent,
    FatalPlaybackError,
    MediaPlaybackError,
    NetworkPlaybackError,
    PullState,
    SourceKind,
)
from streampanel.utils.app_errors import AppErrorCode

URL = "http://backend/hls/play/playlist.m3u8"


@pytest.fixture
def adapter(store, notifier, factory):
    store.create_session("panel-1")
    store.set_source("panel-1", SourceKind.FILE, "a.mp4")
    for state in (PullState.REQUESTING, PullState.WARMUP, PullState.POLLING, PullState.ATTACHED):
        store.transition_pull("panel-1", state)
    return PlaybackEngineAdapter("panel-1", store, notifier, factory)


class TestAttach:
    def test_attach_loads_source(self, adapter, factory):
        engine = adapter.attach(URL)

        assert engine is factory.instances[0]
        assert engine.url == URL
        assert adapter.has_instance

    def test_reattach_destroys_previous_first(self, adapter, factory):
        """Test at most one instance is live per session."""
        first = adapter.attach(URL)
        second = adapter.attach(URL)

        assert first.destroyed is True
        assert second.destroyed is False
        assert adapter.engine is second


class TestDestroy:
    def test_destroy_twice_is_silent(self, adapter, factory):
        """Test destroy() called twice in a row raises nothing."""
        adapter.attach(URL)

        adapter.destroy()
        adapter.destroy()

        assert factory.instances[0].destroyed is True
        assert adapter.has_instance is False

    def test_destroy_without_instance(self, adapter):
        adapter.destroy()
        assert adapter.engine is None

    def test_engine_destroy_error_is_contained(self, store, notifier):
        """Test a failing engine teardown still releases the slot."""
        engine = MagicMock()
        engine.destroy.side_effect = RuntimeError("already detached")
        adapter = PlaybackEngineAdapter("panel-1", store, notifier, lambda on_error: engine)
        store.create_session("panel-1")
        adapter.attach(URL)

        adapter.destroy()

        assert adapter.has_instance is False


class TestErrorRouting:
    def test_network_error_restarts_load(self, adapter, store, notices):
        """Test a network error reloads and keeps the instance alive."""
        engine = adapter.attach(URL)

        engine.emit_error(EngineErrorEvent(type="networkError", details="fragLoadError", fatal=True))

        assert engine.load_restarts == 1
        assert engine.destroyed is False
        assert adapter.engine is engine
        assert store.get_snapshot("panel-1").pull_state == PullState.ATTACHED
        assert notices == []

    def test_media_error_recovers_decoder(self, adapter):
        engine = adapter.attach(URL)

        error = adapter.handle_engine_error(
            engine, EngineErrorEvent(type="mediaError", details="bufferAppendError", fatal=True)
        )

        assert isinstance(error, MediaPlaybackError)
        assert engine.media_recoveries == 1
        assert engine.destroyed is False

    def test_non_fatal_media_error_leaves_decoder_alone(self, adapter, notices):
        """Test a routine stall is left to the engine's own recovery."""
        engine = adapter.attach(URL)

        error = adapter.handle_engine_error(
            engine, EngineErrorEvent(type="mediaError", details="bufferStalledError")
        )

        assert isinstance(error, MediaPlaybackError)
        assert engine.media_recoveries == 0
        assert engine.load_restarts == 0
        assert notices == []

    def test_non_fatal_unknown_type_is_transient(self, adapter):
        engine = adapter.attach(URL)

        error = adapter.handle_engine_error(
            engine, EngineErrorEvent(type="otherError", details="internalException")
        )

        assert isinstance(error, MediaPlaybackError)
        assert engine.media_recoveries == 0
        assert adapter.engine is engine

    def test_fatal_error_destroys_and_fails(self, adapter, store, notices):
        """Test a fatal error destroys the instance and sets pull FAILED."""
        engine = adapter.attach(URL)

        engine.emit_error(EngineErrorEvent(type="muxError", details="demuxerWorker", fatal=True))

        assert engine.destroyed is True
        assert adapter.has_instance is False
        assert store.get_snapshot("panel-1").pull_state == PullState.FAILED
        assert len(notices) == 1
        assert notices[0].errcode == str(AppErrorCode.E_PLAYBACK_FATAL)
        assert notices[0].session_id == "panel-1"

    def test_unknown_fatal_type_is_fatal(self, adapter):
        engine = adapter.attach(URL)

        error = adapter.handle_engine_error(engine, EngineErrorEvent(type="otherError", fatal=True))

        assert isinstance(error, FatalPlaybackError)

    def test_non_fatal_unknown_type_keeps_playing(self, adapter, store, notices):
        """Test a non-fatal parsing error neither destroys the engine nor fails the preview."""
        engine = adapter.attach(URL)

        engine.emit_error(EngineErrorEvent(type="muxError", details="fragParsingError", fatal=False))

        assert engine.destroyed is False
        assert adapter.engine is engine
        assert store.get_snapshot("panel-1").pull_state == PullState.ATTACHED
        assert notices == []

    def test_event_from_replaced_instance_is_dropped(self, adapter, store):
        """Test a late error from a replaced engine cannot touch the current one."""
        old = adapter.attach(URL)
        current = adapter.attach(URL)

        result = adapter.handle_engine_error(old, EngineErrorEvent(type="muxError", fatal=True))

        assert result is None
        assert current.destroyed is False
        assert store.get_snapshot("panel-1").pull_state == PullState.ATTACHED

    def test_each_event_gets_exactly_one_class(self, adapter):
        engine = adapter.attach(URL)

        error = adapter.handle_engine_error(engine, EngineErrorEvent(type="networkError"))

        assert isinstance(error, NetworkPlaybackError)
        assert error.error_class == "network"
        assert engine.load_restarts == 1
