"""Pick the transport implementation named by the settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from readersync.config import Settings
    from readersync.transport.protocol import SyncTransportProtocol


# One mock per process, so registered users and pushed data persist between calls
_mock_instance: SyncTransportProtocol | None = None


def get_transport(settings: Settings) -> SyncTransportProtocol:
    """Return the shared MockSyncServer or a new HttpSyncTransport.

    ``DEV__TRANSPORT_MOCK=true`` selects the mock. Otherwise the client talks
    to ``settings.server.url``.

    Raises:
        ValueError: If the server URL is empty and mock mode is disabled.
    """
    global _mock_instance  # noqa: PLW0603

    if settings.dev.transport_mock:
        if _mock_instance is None:
            from readersync.transport.mock import MockSyncServer

            _mock_instance = MockSyncServer()
        return _mock_instance

    if not settings.server.url:
        msg = "SERVER__URL is required when DEV__TRANSPORT_MOCK is not enabled."
        raise ValueError(msg)

    from readersync.transport.client import HttpSyncTransport

    return HttpSyncTransport(settings.server.url, timeout=settings.server.timeout_seconds)


def clear_transport_cache() -> None:
    """Forget the shared mock server (tests use this between cases)."""
    global _mock_instance  # noqa: PLW0603
    _mock_instance = None
