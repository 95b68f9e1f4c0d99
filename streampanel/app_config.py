from pydantic import BaseModel

from streampanel.shared.config import config


class AppEnvironConfig(BaseModel):
    DEBUG: bool = config.get_bool("DEBUG", False)

    # Encoder backend (capture, segmenting and RTMP egress live there)
    STREAM_BACKEND_BASE_URL: str = config.get(
        "STREAM_BACKEND_BASE_URL", "http://localhost:8080"
    ).strip()  # type: ignore
    STREAM_BACKEND_TIMEOUT_SECONDS: int = config.get_int(
        "STREAM_BACKEND_TIMEOUT_SECONDS", 30, minimum=1
    )

    # Preview manifest readiness probing
    PLAY_MANIFEST_PATH: str = config.get(
        "PLAY_MANIFEST_PATH", "/hls/play/playlist.m3u8"
    ).strip()  # type: ignore
    MANIFEST_PROBE_METHOD: str = config.get("MANIFEST_PROBE_METHOD", "HEAD").strip().upper()  # type: ignore
    # Backend needs time to write the first segment before the manifest shows up
    PLAYBACK_WARMUP_MS: int = config.get_int("PLAYBACK_WARMUP_MS", 5000)
    PLAYBACK_PROBE_INTERVAL_MS: int = config.get_int("PLAYBACK_PROBE_INTERVAL_MS", 2000)
    PLAYBACK_PROBE_MAX_ATTEMPTS: int = config.get_int("PLAYBACK_PROBE_MAX_ATTEMPTS", 5, minimum=1)

    # Source catalog listing cache, 0 disables it
    SOURCE_CATALOG_CACHE_SECONDS: int = config.get_int("SOURCE_CATALOG_CACHE_SECONDS", 30)

    MAX_PANELS: int = config.get_int("MAX_PANELS", 4, minimum=1)


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
