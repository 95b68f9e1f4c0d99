"""
Mock implementation of the encoder backend endpoints.

This FastAPI app serves the contract the console talks to, so a panel can be
driven locally without ffmpeg or a real RTMP target:

* GET  /api/videos
* GET  /api/capture/devices
* POST /api/stream/start
* POST /api/stream/stop
* GET|HEAD /hls/{streamType}/playlist.m3u8

The manifest of a running stream only becomes available after a configurable
number of probes, which mimics the backend writing its first segments.

Run with granian:
    granian --interface ASGI --host 127.0.0.1 --port 18080 tools.mock_encoder_backend:app

Then point STREAM_BACKEND_BASE_URL to http://127.0.0.1:18080 (e.g. in env.local).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

STREAM_TYPES = ("play", "push")

DEFAULT_VIDEOS = [
    {"name": "sample.mp4", "path": "videos/sample.mp4", "size": 10485760},
    {"name": "intro.mov", "path": "videos/intro.mov", "size": 2097152},
]

DEFAULT_DEVICES = ["/dev/video0", "/dev/video1"]

PLAYLIST = "#EXTM3U\n#EXT-X-VERSION:3\n#EXT-X-TARGETDURATION:2\n#EXTINF:2.0,\nsegment0.ts\n"


@dataclass
class MockBackendState:
    videos: list[dict] | None = field(default_factory=lambda: list(DEFAULT_VIDEOS))
    devices: list = field(default_factory=lambda: list(DEFAULT_DEVICES))
    ready_after_probes: int = 2
    # streamType -> last start body
    running: dict[str, dict] = field(default_factory=dict)
    probes: dict[str, int] = field(default_factory=dict)
    requests: list[tuple[str, dict]] = field(default_factory=list)

    def known_sources(self) -> set[str]:
        paths = {v["path"] for v in self.videos or []}
        return paths | {str(d) for d in self.devices}


def create_app(state: MockBackendState | None = None) -> FastAPI:
    state = state or MockBackendState(
        ready_after_probes=int(os.environ.get("MOCK_READY_AFTER_PROBES", "2"))
    )
    app = FastAPI(title="encoder-backend mock", version="0.1.0")
    app.state.backend = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        """Health check endpoint for container orchestration."""
        return {"status": "ok", "service": "mock-encoder-backend"}

    @app.get("/api/videos")
    async def list_videos():
        """Mock video listing. An empty directory is served as null."""
        return state.videos or None

    @app.get("/api/capture/devices")
    async def list_capture_devices():
        return {"devices": state.devices}

    @app.post("/api/stream/start")
    async def start_stream(request: Request):
        """Mock start stream."""
        body = await request.json()
        print("=== POST /api/stream/start ===")
        print(f"Request body: {body}")
        print("=" * 40)
        state.requests.append(("start", body))

        stream_type = body.get("streamType")
        video_path = body.get("videoPath")
        if stream_type not in STREAM_TYPES:
            raise HTTPException(status_code=400, detail=f"invalid streamType: {stream_type}")
        if not video_path:
            raise HTTPException(status_code=400, detail="videoPath is required")
        if video_path not in state.known_sources():
            raise HTTPException(status_code=500, detail=f"open {video_path}: no such file")
        if stream_type == "push" and not body.get("rtmpUrl"):
            raise HTTPException(status_code=400, detail="rtmpUrl is required for push")

        state.running[stream_type] = body
        state.probes[stream_type] = 0
        return {
            "message": "Streaming started",
            "type": stream_type,
            "playUrl": f"/hls/{stream_type}/playlist.m3u8",
        }

    @app.post("/api/stream/stop")
    async def stop_stream(request: Request):
        """Mock stop stream. Stopping a stream that is not running succeeds."""
        body = await request.json()
        print("=== POST /api/stream/stop ===")
        print(f"Request body: {body}")
        print("=" * 40)
        state.requests.append(("stop", body))

        stream_type = body.get("streamType")
        if stream_type not in STREAM_TYPES:
            raise HTTPException(status_code=400, detail=f"invalid streamType: {stream_type}")
        state.running.pop(stream_type, None)
        state.probes.pop(stream_type, None)
        return {"message": "Streaming stopped", "type": stream_type}

    @app.api_route("/hls/{stream_type}/playlist.m3u8", methods=["GET", "HEAD"])
    async def playlist(stream_type: str):
        if stream_type not in state.running:
            raise HTTPException(status_code=404, detail="not found")
        state.probes[stream_type] = state.probes.get(stream_type, 0) + 1
        if state.probes[stream_type] <= state.ready_after_probes:
            raise HTTPException(status_code=404, detail="not found")
        return PlainTextResponse(PLAYLIST, media_type="application/vnd.apple.mpegurl")

    return app


app = create_app()


__all__ = ["MockBackendState", "app", "create_app"]
