import warnings
from unittest.mock import AsyncMock, MagicMock

import pytest

from streampanel.domain.live.session.notices import SessionNotifier
from streampanel.domain.live.session.session_store import SessionStore
from streampanel.services.encoder_backend import EncoderBackendClient, StreamAck
from streampanel.shared.log import init_logger
from tests.fixtures.clock import ManualClock
from tests.fixtures.engines import RecordingEngineFactory

# Ignore warnings from streampanel.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="streampanel.shared.*")

init_logger()


@pytest.fixture
def clock():
    """Manual clock, time moves on `advance()` only."""
    return ManualClock()


@pytest.fixture
def auto_clock():
    """Manual clock whose sleeps complete at once."""
    return ManualClock(auto_advance=True)


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def notifier():
    return SessionNotifier()


@pytest.fixture
def notices(notifier):
    """Notices published during the test, in order."""
    received = []
    notifier.subscribe(received.append)
    return received


@pytest.fixture
def backend():
    """Encoder backend client with every network call mocked."""
    client = MagicMock(spec=EncoderBackendClient)
    client.start_stream = AsyncMock(
        return_value=StreamAck(message="Streaming started", type="play", play_url="/hls/play/playlist.m3u8")
    )
    client.stop_stream = AsyncMock(return_value=StreamAck(message="Streaming stopped"))
    client.probe_manifest = AsyncMock(return_value=True)
    client.list_videos = AsyncMock(return_value=[])
    client.list_capture_devices = AsyncMock(return_value=[])
    client.resolve_url.side_effect = lambda path: f"http://backend{path}"
    return client


@pytest.fixture
def factory():
    """Headless engine factory recording its instances."""
    return RecordingEngineFactory()
