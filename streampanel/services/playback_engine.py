"""Adaptive playback engine boundary.

The decoding pipeline itself lives outside this package (an hls.js player in
a browser, a native player, ...). The console only needs four capabilities
from it, captured by `PlaybackEngine`, plus an error callback handed to the
factory when an instance is created.
"""

from __future__ import annotations

from typing import Callable, Protocol

from loguru import logger

from streampanel.schemas import EngineErrorEvent

EngineErrorCallback = Callable[[EngineErrorEvent], None]


class PlaybackEngine(Protocol):
    def load_source(self, url: str) -> None:
        """Bind the instance to a manifest URL and start loading it."""

    def start_load(self) -> None:
        """Restart fragment loading after a network error."""

    def recover_media_error(self) -> None:
        """Reset the decode path after a media error."""

    def destroy(self) -> None:
        """Release the instance and detach it from its output."""


PlaybackEngineFactory = Callable[[EngineErrorCallback], PlaybackEngine]


class HeadlessPlaybackEngine:
    """Engine without a decode pipeline.

    Records what was asked of it, which is enough for running the console
    against a backend without a player attached.
    """

    def __init__(self, on_error: EngineErrorCallback):
        self._on_error = on_error
        self.url: str | None = None
        self.load_restarts = 0
        self.media_recoveries = 0
        self.destroyed = False

    def load_source(self, url: str) -> None:
        self.url = url
        logger.debug(f"Headless engine loading {url}")

    def start_load(self) -> None:
        self.load_restarts += 1

    def recover_media_error(self) -> None:
        self.media_recoveries += 1

    def destroy(self) -> None:
        self.destroyed = True

    def emit_error(self, event: EngineErrorEvent) -> None:
        """Report an error as a real engine would from its event loop."""
        if self.destroyed:
            return
        self._on_error(event)
