"""Playback engine factory that remembers every instance it creates."""

from __future__ import annotations

from streampanel.services.playback_engine import HeadlessPlaybackEngine


class RecordingEngineFactory:
    def __init__(self):
        self.instances: list[HeadlessPlaybackEngine] = []
        # For each new instance, whether every earlier one was already destroyed
        self.prior_destroyed: list[bool] = []

    def __call__(self, on_error):
        self.prior_destroyed.append(all(e.destroyed for e in self.instances))
        engine = HeadlessPlaybackEngine(on_error)
        self.instances.append(engine)
        return engine
