"""The calls the sync core makes against a remote server.

HttpSyncTransport talks to a real server. MockSyncServer answers from memory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from readersync.models import Annotation, AnnotationSnapshot, ProgressRecord
    from readersync.transport.models import AnnotationsPushResult, Credentials


class SyncTransportProtocol(Protocol):
    """Remote store operations.

    Implementations raise the exceptions in ``readersync.errors``:
    AuthRejected for bad credentials, TransportFailure (or a subclass) for
    everything that kept the call from completing.
    """

    async def register(self, credentials: Credentials) -> None:
        """Create an account.

        Raises:
            UserExists: If the username is taken.
        """
        ...

    async def authorize(self, credentials: Credentials) -> None:
        """Check that the credentials are accepted.

        Raises:
            AuthRejected: If they are not.
        """
        ...

    async def update_progress(
        self, credentials: Credentials, record: ProgressRecord
    ) -> int | None:
        """Upload a progress record.

        Returns:
            Server timestamp of the write, if reported.
        """
        ...

    async def get_progress(
        self, credentials: Credentials, document: str
    ) -> ProgressRecord | None:
        """Fetch the stored progress for a document, or None if absent."""
        ...

    async def update_annotations(
        self,
        credentials: Credentials,
        document: str,
        annotations: list[Annotation],
        deleted: list[str],
        base_version: int,
    ) -> AnnotationsPushResult:
        """Upload the full annotation set plus pending deletions.

        Raises:
            VersionConflict: If ``base_version`` is stale.
        """
        ...

    async def get_annotations(
        self, credentials: Credentials, document: str
    ) -> AnnotationSnapshot:
        """Fetch the server's annotation snapshot for a document."""
        ...

    async def healthcheck(self) -> bool:
        """Return True if the server answers its health endpoint."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
