"""Source enumeration for the panel's input picker.

A listing is a single request with no retry: enumeration is not tied to
backend segment production, so a failure is reported to the caller right
away together with an empty list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from streampanel.domain.live.session.clock import AsyncioClock, Clock
from streampanel.schemas import SourceEntry, SourceKind
from streampanel.services.encoder_backend import EncoderBackendClient
from streampanel.utils.app_errors import AppError, BackendRejection, ValidationError


@dataclass(frozen=True)
class SourceListing:
    kind: SourceKind
    sources: tuple[SourceEntry, ...] = ()
    error: AppError | None = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def normalize_capture_devices(payload: Any) -> list[SourceEntry]:
    """Normalize the backend-defined device payload.

    Accepts a list of names, a list of objects with `id`/`path`/`name`, or an
    object wrapping either under `devices`.
    """
    items = payload.get("devices") if isinstance(payload, dict) else payload
    if items is None:
        return []
    if not isinstance(items, list):
        raise BackendRejection(f"Unexpected capture device payload: {type(items).__name__}")

    entries: list[SourceEntry] = []
    for item in items:
        if isinstance(item, str):
            entries.append(SourceEntry(kind=SourceKind.CAPTURE, ref=item, name=item))
        elif isinstance(item, dict):
            ref = item.get("id") or item.get("path") or item.get("name")
            if not ref:
                logger.warning(f"Skipping capture device without id/path/name: {item}")
                continue
            entries.append(
                SourceEntry(kind=SourceKind.CAPTURE, ref=str(ref), name=str(item.get("name") or ref))
            )
        else:
            logger.warning(f"Skipping unrecognized capture device entry: {item!r}")
    return entries


class SourceCatalogClient:
    """Lists files and capture devices, with an optional shared read-only cache."""

    def __init__(
        self,
        backend: EncoderBackendClient,
        cache_seconds: int = 0,
        clock: Clock | None = None,
    ):
        self._backend = backend
        self.cache_seconds = cache_seconds
        self._clock = clock or AsyncioClock()
        self._cache: dict[SourceKind, tuple[float, tuple[SourceEntry, ...]]] = {}

    def invalidate(self, kind: SourceKind | None = None) -> None:
        if kind is None:
            self._cache.clear()
        else:
            self._cache.pop(kind, None)

    async def _fetch(self, kind: SourceKind) -> list[SourceEntry]:
        if kind is SourceKind.FILE:
            videos = await self._backend.list_videos()
            return [
                SourceEntry(kind=SourceKind.FILE, ref=v.path, name=v.name, size=v.size)
                for v in videos
            ]
        return normalize_capture_devices(await self._backend.list_capture_devices())

    async def list(self, kind: SourceKind | str, refresh: bool = False) -> SourceListing:
        """List available sources of one kind. Never raises for backend failures.

        Raises:
            ValidationError: unknown source kind
        """
        try:
            kind = SourceKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown source kind '{kind}'") from e

        now = self._clock.monotonic()
        cached = self._cache.get(kind)
        if cached and not refresh and cached[0] > now:
            return SourceListing(kind=kind, sources=cached[1], from_cache=True)

        try:
            sources = tuple(await self._fetch(kind))
        except AppError as e:
            logger.warning(f"Listing {kind} sources failed: {e}")
            return SourceListing(kind=kind, error=e)

        if self.cache_seconds > 0:
            self._cache[kind] = (now + self.cache_seconds, sources)
        logger.debug(f"Listed {len(sources)} {kind} source(s)")
        return SourceListing(kind=kind, sources=sources)
