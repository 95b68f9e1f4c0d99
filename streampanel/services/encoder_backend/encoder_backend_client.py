from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import httpx
import orjson
from loguru import logger
from pydantic import ValidationError

from streampanel.app_config import get_app_environ_config
from streampanel.services.encoder_backend.encoder_backend_schemas import (
    StartStreamBody,
    StopStreamBody,
    StreamAck,
    VideoInfo,
)
from streampanel.utils.app_errors import BackendRejection, BackendUnavailable


class EncoderBackendClient:
    """Thin async client for the encoder backend's HTTP contract.

    Start/stop/list calls are single attempts: a non-2xx answer raises
    `BackendRejection`, a transport failure raises `BackendUnavailable`.
    Manifest probes never raise, they only answer "ready or not".
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        probe_method: str = "HEAD",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.probe_method = probe_method.upper()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    def resolve_url(self, path_or_url: str) -> str:
        """Resolve a backend-relative path (e.g. an ack's playUrl) to an absolute URL."""
        return urljoin(f"{self.base_url}/", path_or_url)

    async def _request(self, method: str, path: str, json: dict | None = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            text = e.response.text.strip()
            logger.warning(f"Encoder backend rejected {method} {path}: {status} {text}")
            raise BackendRejection(
                f"{method} {path} rejected: {text or e.response.reason_phrase}",
                status_code=status,
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Encoder backend unreachable for {method} {path}: {e!r}")
            raise BackendUnavailable(f"{method} {path} failed: {e}") from e

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Non-JSON body from {response.request.url}: {response.text[:200]}")
            return None

    @staticmethod
    def _parse_ack(data: Any) -> StreamAck:
        if not isinstance(data, dict):
            return StreamAck()
        return StreamAck.model_validate(data)

    async def list_videos(self) -> list[VideoInfo]:
        """Call GET /api/videos."""
        response = await self._request("GET", "/api/videos")
        # An empty directory is served as null
        data = self._json_or_none(response) or []
        try:
            return [VideoInfo.model_validate(item) for item in data]
        except (ValidationError, TypeError) as e:
            logger.exception("Failed to validate list_videos response")
            raise BackendRejection(
                f"Malformed /api/videos payload: {e}", status_code=response.status_code
            ) from e

    async def list_capture_devices(self) -> Any:
        """Call GET /api/capture/devices. The payload shape is backend-defined."""
        response = await self._request("GET", "/api/capture/devices")
        return self._json_or_none(response)

    async def start_stream(self, body: StartStreamBody) -> StreamAck:
        """Call POST /api/stream/start."""
        payload = body.to_wire()
        logger.debug(f"start_stream request body: {orjson.dumps(payload).decode()}")
        response = await self._request("POST", "/api/stream/start", json=payload)
        data = self._json_or_none(response)
        logger.debug(f"start_stream response: {data}")
        return self._parse_ack(data)

    async def stop_stream(self, body: StopStreamBody) -> StreamAck:
        """Call POST /api/stream/stop."""
        response = await self._request("POST", "/api/stream/stop", json=body.to_wire())
        return self._parse_ack(self._json_or_none(response))

    async def probe_manifest(self, url: str) -> bool:
        """Lightweight existence check against a manifest URL.

        Returns True on 2xx. Any other status or a transport error means
        "not ready yet"; the caller owns the retry policy.
        """
        try:
            async with self._client() as client:
                response = await client.request(self.probe_method, url)
        except httpx.RequestError as e:
            logger.debug(f"Manifest probe {url} transport error: {e!r}")
            return False
        logger.debug(f"Manifest probe {url} -> {response.status_code}")
        return response.is_success


def get_encoder_backend_client() -> EncoderBackendClient:
    """Build a client from the environment configuration."""
    config = get_app_environ_config()
    logger.debug(f"Initializing encoder backend client: base_url={config.STREAM_BACKEND_BASE_URL}")
    return EncoderBackendClient(
        base_url=config.STREAM_BACKEND_BASE_URL,
        timeout=config.STREAM_BACKEND_TIMEOUT_SECONDS,
        probe_method=config.MANIFEST_PROBE_METHOD,
    )
