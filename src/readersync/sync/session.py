"""Per-document sync state for one reading session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from readersync.sync.tombstones import TombstoneTracker

if TYPE_CHECKING:
    from readersync.host import SettingsStore

logger = logging.getLogger(__name__)


@dataclass
class SyncSessionState:
    """State created on document open and discarded on close.

    Only ``annotation_version`` and ``tombstones`` outlive the session; they
    are read from and written back to the settings store.

    Attributes:
        document: Document digest.
        annotation_version: Last server version seen by push or pull.
        tombstones: Local deletions not yet confirmed by the server.
        page_turns: Page changes since the last page-turn push.
        last_position: Last observed position, to ignore no-op page events.
        push_scheduled: A debounced page-turn push is pending.
    """

    document: str
    annotation_version: int = 0
    tombstones: TombstoneTracker = field(default_factory=TombstoneTracker)
    page_turns: int = 0
    last_position: str | None = None
    push_scheduled: bool = False

    @classmethod
    def load(cls, document: str, store: SettingsStore) -> SyncSessionState:
        state = cls(
            document=document,
            annotation_version=store.get_annotation_version(document),
            tombstones=TombstoneTracker(store.get_tombstones(document)),
        )
        logger.debug(
            "Loaded session for %s: version=%d, %d tombstones",
            document,
            state.annotation_version,
            len(state.tombstones),
        )
        return state

    def persist(self, store: SettingsStore) -> None:
        store.set_annotation_version(self.document, self.annotation_version)
        store.set_tombstones(self.document, self.tombstones.snapshot())

    def reset_page_turns(self) -> None:
        self.page_turns = 0
        self.push_scheduled = False
