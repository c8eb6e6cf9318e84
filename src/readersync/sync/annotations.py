"""One push or one pull of a document's annotation set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from readersync.errors import SyncError, VersionConflict
from readersync.sync.merge import merge_annotations

if TYPE_CHECKING:
    from readersync.host import LocalDocumentStore, SettingsStore, UserInterface
    from readersync.sync.session import SyncSessionState
    from readersync.transport.models import AnnotationsPushResult, Credentials
    from readersync.transport.protocol import SyncTransportProtocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationPullResult:
    """What an annotation pull did.

    Attributes:
        changed: False when the server had nothing new (no merge ran).
        count: Number of annotations after the merge.
        version: Server version now recorded in the session.
    """

    changed: bool
    count: int
    version: int


class AnnotationSyncer:
    """Moves annotation sets between the local store and the server.

    Session bookkeeping follows the confirmed outcome only: tombstones are
    dropped after the server acknowledges a push, the version advances after
    a confirmed push or pull, and both are written to the settings store.
    A failed call leaves the session untouched.
    """

    def __init__(
        self,
        transport: SyncTransportProtocol,
        store: LocalDocumentStore,
        settings_store: SettingsStore,
        ui: UserInterface,
    ) -> None:
        self._transport = transport
        self._store = store
        self._settings_store = settings_store
        self._ui = ui

    async def _send(
        self, credentials: Credentials, state: SyncSessionState
    ) -> tuple[AnnotationsPushResult, int, list[str]]:
        annotations = self._store.get_annotations()
        deleted = state.tombstones.snapshot()
        result = await self._transport.update_annotations(
            credentials, state.document, annotations, deleted, state.annotation_version
        )
        return result, len(annotations), deleted

    async def push(
        self, credentials: Credentials, state: SyncSessionState, *, interactive: bool = False
    ) -> int:
        """Upload local annotations and pending deletions.

        A stale ``base_version`` is answered by pulling (which merges the
        server's changes in) and pushing once more.

        Returns:
            Number of annotations pushed.

        Raises:
            SyncError: If the push did not go through.
        """
        try:
            try:
                result, count, sent = await self._send(credentials, state)
            except VersionConflict:
                logger.info(
                    "Version conflict pushing %s at version %d; pulling first",
                    state.document,
                    state.annotation_version,
                )
                await self.pull(credentials, state)
                result, count, sent = await self._send(credentials, state)
        except SyncError:
            state.tombstones.on_push_failed()
            raise

        state.annotation_version = result.version
        state.tombstones.on_push_confirmed(sent)
        state.persist(self._settings_store)
        logger.info(
            "Pushed %d annotations (%d deletions) for %s, now at version %d",
            count,
            len(sent),
            state.document,
            result.version,
        )
        if interactive:
            self._ui.notify(f"Pushed {count} annotations.")
        return count

    async def pull(
        self, credentials: Credentials, state: SyncSessionState, *, interactive: bool = False
    ) -> AnnotationPullResult:
        """Fetch the server snapshot and merge it into the local store."""
        snapshot = await self._transport.get_annotations(credentials, state.document)

        if snapshot.version == state.annotation_version and not snapshot.annotations:
            if interactive:
                self._ui.notify("No new annotations.")
            return AnnotationPullResult(
                changed=False, count=0, version=state.annotation_version
            )

        merged = merge_annotations(
            self._store.get_annotations(),
            snapshot.annotations,
            snapshot.deleted_ids,
            state.tombstones,
        )
        self._store.set_annotations(merged)
        state.annotation_version = snapshot.version
        state.persist(self._settings_store)

        logger.info(
            "Merged %d remote annotations into %s: %d total, version %d",
            len(snapshot.annotations),
            state.document,
            len(merged),
            snapshot.version,
        )
        if interactive:
            self._ui.notify(f"Synced {len(merged)} annotations.")
        return AnnotationPullResult(changed=True, count=len(merged), version=snapshot.version)
