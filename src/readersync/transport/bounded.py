"""Timeout wrapper around any SyncTransportProtocol implementation.

The scheduler holds an in-flight slot for the duration of each push or
pull; a remote call that never returns would hold it forever. Wrapping the
transport bounds every call and turns expiry into a TransportFailure, so
the slot is always released through the normal error path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from readersync.errors import TransportFailure

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from readersync.models import Annotation, AnnotationSnapshot, ProgressRecord
    from readersync.transport.models import AnnotationsPushResult, Credentials
    from readersync.transport.protocol import SyncTransportProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedTransport:
    """Delegates to ``inner`` with a per-call timeout."""

    def __init__(self, inner: SyncTransportProtocol, timeout: float) -> None:
        self.inner = inner
        self.timeout = timeout

    async def _bounded(self, call: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except TimeoutError as e:
            logger.warning("%s did not complete within %.1fs", what, self.timeout)
            raise TransportFailure(f"{what} timed out after {self.timeout:g}s") from e

    async def register(self, credentials: Credentials) -> None:
        await self._bounded(self.inner.register(credentials), "register")

    async def authorize(self, credentials: Credentials) -> None:
        await self._bounded(self.inner.authorize(credentials), "authorize")

    async def update_progress(
        self, credentials: Credentials, record: ProgressRecord
    ) -> int | None:
        return await self._bounded(
            self.inner.update_progress(credentials, record), "push progress"
        )

    async def get_progress(
        self, credentials: Credentials, document: str
    ) -> ProgressRecord | None:
        return await self._bounded(
            self.inner.get_progress(credentials, document), "pull progress"
        )

    async def update_annotations(
        self,
        credentials: Credentials,
        document: str,
        annotations: list[Annotation],
        deleted: list[str],
        base_version: int,
    ) -> AnnotationsPushResult:
        return await self._bounded(
            self.inner.update_annotations(
                credentials, document, annotations, deleted, base_version
            ),
            "push annotations",
        )

    async def get_annotations(
        self, credentials: Credentials, document: str
    ) -> AnnotationSnapshot:
        return await self._bounded(
            self.inner.get_annotations(credentials, document), "pull annotations"
        )

    async def healthcheck(self) -> bool:
        try:
            return await self._bounded(self.inner.healthcheck(), "healthcheck")
        except TransportFailure:
            return False

    async def aclose(self) -> None:
        await self.inner.aclose()
