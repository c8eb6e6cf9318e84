"""Pending local deletions awaiting confirmation from the server."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)


class TombstoneTracker:
    """Set of annotation identifiers deleted locally but not yet pushed.

    Insertion order is kept so the wire payload is stable, but membership is
    a set: recording the same deletion twice stores it once.
    """

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._pending: dict[str, None] = dict.fromkeys(initial)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._pending

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._pending))

    def __len__(self) -> int:
        return len(self._pending)

    def record_deletion(self, identifier: str) -> bool:
        """Remember a local deletion.

        Returns:
            True if the identifier was new.
        """
        if not identifier or identifier in self._pending:
            return False
        self._pending[identifier] = None
        logger.debug("Recorded tombstone %s (%d pending)", identifier, len(self._pending))
        return True

    def snapshot(self) -> list[str]:
        """Identifiers to send with the next push."""
        return list(self._pending)

    def on_push_confirmed(self, sent: Iterable[str] | None = None) -> None:
        """Drop tombstones the server has acknowledged.

        Args:
            sent: The identifiers that went out with the confirmed push. Any
                deletion recorded after that snapshot stays pending. None
                clears everything.
        """
        if sent is None:
            self._pending.clear()
            return
        for identifier in sent:
            self._pending.pop(identifier, None)

    def on_push_failed(self) -> None:
        """Keep everything for the next attempt."""
        logger.debug("Push failed; keeping %d tombstones", len(self._pending))
