"""Example: one console panel, preview then broadcast (sanitized demo).

This script drives a single panel through the session service: list the
backend's files, pick one, wait for its preview manifest, then push it to
an RTMP destination and stop again.

Prerequisites:
    1. Install dependencies: pip install -e ".[dev]"
    2. Start a backend, or the mock one:
       granian --interface ASGI --host 127.0.0.1 --port 18080 tools.mock_encoder_backend:app
    3. Set environment variables in env.local (do not commit):
       STREAM_BACKEND_BASE_URL=http://127.0.0.1:18080
       RTMP_SERVER_URL=rtmp://<redacted-ingest>/live
       RTMP_STREAM_KEY=PLACEHOLDER_STREAM_KEY

Run:
    python examples/preview_and_broadcast_example.py
"""

import asyncio

from streampanel.domain.live.session.session_domain import SessionService
from streampanel.schemas import BroadcastDestination, SourceKind
from streampanel.shared.config import config
from streampanel.shared.log import init_logger
from streampanel.utils.app_errors import AppError


async def main():
    """Demonstrate one panel's preview and broadcast lifecycle."""

    init_logger()
    print("Stream Panel Example")
    print("=" * 50)

    service = SessionService()
    service.subscribe(lambda notice: print(f"   Notice: {notice.errcode} {notice.errmesg}"))
    panel = "panel-1"
    service.activate_panel(panel)

    try:
        # Example 1: List files on the backend
        print("\n1. Listing files:")
        listing = await service.list_sources(SourceKind.FILE)
        if not listing.ok:
            print(f"   Error: {listing.error}")
            return
        for source in listing.sources:
            print(f"   {source.name} ({source.size} bytes)")
        if not listing.sources:
            print("   No files to stream")
            return

        # Example 2: Preview the first file
        print("\n2. Starting preview:")
        source = listing.sources[0]
        await service.change_source(panel, source.kind, source.ref)
        await service.start_preview(panel)
        state = await service.wait_preview(panel)
        snapshot = service.get_snapshot(panel)
        print(f"   Preview state: {state}")
        print(f"   Manifest: {snapshot.manifest_url}")

        # Example 3: Broadcast with custom encode parameters
        print("\n3. Starting broadcast:")
        try:
            service.set_encode_params(panel, {"resolution": "1280x720", "videoBitrateKbps": 3000})
            destination = BroadcastDestination(
                server_url=config.get("RTMP_SERVER_URL", ""),
                stream_key=config.get("RTMP_STREAM_KEY"),
            )
            ack = await service.start_broadcast(panel, destination)
            print(f"   Backend: {ack.message}")
            await asyncio.sleep(5)
            await service.stop_broadcast(panel)
            print("   Broadcast stopped")
        except AppError as e:
            print(f"   Error: {e}")

    except AppError as e:
        print(f"\nUnexpected error: {e}")
        return
    finally:
        await service.teardown_panel(panel)

    print("\n" + "=" * 50)
    print("Example completed!")


if __name__ == "__main__":
    asyncio.run(main())
