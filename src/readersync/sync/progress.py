"""Reading position exchange.

Progress is a single last-writer-wins record per document. Pulling applies
the remote position only when it came from another device and differs
from where we are; passive (background) pulls always ask first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from readersync.models import ProgressRecord

if TYPE_CHECKING:
    from readersync.host import LocalDocumentStore, UserInterface
    from readersync.models import DeviceIdentity
    from readersync.transport.models import Credentials
    from readersync.transport.protocol import SyncTransportProtocol

logger = logging.getLogger(__name__)

# Percentages closer than this are considered the same place.
PERCENTAGE_TOLERANCE = 0.001


class PullOutcome(StrEnum):
    NOT_FOUND = "not_found"
    SELF_AUTHORED = "self_authored"
    ALREADY_CURRENT = "already_current"
    APPLIED = "applied"
    DECLINED = "declined"
    NEEDS_CONFIRM = "needs_confirm"


@dataclass(frozen=True)
class ProgressPullResult:
    """What a progress pull did.

    Attributes:
        outcome: Which branch of the apply policy was taken.
        record: The record the server returned, if any.
    """

    outcome: PullOutcome
    record: ProgressRecord | None = None


class ProgressSyncer:
    """Pushes and pulls the reading position of the open document."""

    def __init__(
        self,
        transport: SyncTransportProtocol,
        store: LocalDocumentStore,
        device: DeviceIdentity,
        ui: UserInterface,
    ) -> None:
        self._transport = transport
        self._store = store
        self._device = device
        self._ui = ui

    async def push_progress(
        self,
        credentials: Credentials,
        document: str,
        position: str,
        percentage: float,
        *,
        interactive: bool = False,
    ) -> None:
        """Upload the current position.

        Raises:
            SyncError: On any failure; callers decide whether to surface it.
        """
        record = ProgressRecord(
            document=document,
            position=position,
            percentage=percentage,
            device_model=self._device.model,
            device_id=self._device.device_id,
        )
        await self._transport.update_progress(credentials, record)
        logger.debug("Pushed progress %.1f%% for %s", percentage * 100, document)
        if interactive:
            self._ui.notify("Progress pushed.")

    async def pull_progress(
        self,
        credentials: Credentials,
        document: str,
        *,
        interactive: bool = False,
        ask: bool = True,
    ) -> ProgressPullResult:
        """Fetch the remote position and apply it according to policy.

        With ``ask=False`` a background pull that would prompt returns
        ``NEEDS_CONFIRM`` instead, and the caller finishes it later with
        ``confirm_and_apply``.
        """
        record = await self._transport.get_progress(credentials, document)

        if record is None:
            if interactive:
                self._ui.notify("No progress found on server.")
            return ProgressPullResult(PullOutcome.NOT_FOUND)

        if record.device_id is not None and record.device_id == self._device.device_id:
            if interactive:
                self._ui.notify("Already at latest progress.")
            return ProgressPullResult(PullOutcome.SELF_AUTHORED, record)

        if abs(self._store.get_percentage() - record.percentage) < PERCENTAGE_TOLERANCE:
            if interactive:
                self._ui.notify("Progress already synced.")
            return ProgressPullResult(PullOutcome.ALREADY_CURRENT, record)

        if interactive:
            self._store.goto(record.position)
            self._ui.notify("Progress synced.")
            return ProgressPullResult(PullOutcome.APPLIED, record)

        if not ask:
            return ProgressPullResult(PullOutcome.NEEDS_CONFIRM, record)
        return await self.confirm_and_apply(document, record)

    async def confirm_and_apply(
        self, document: str, record: ProgressRecord
    ) -> ProgressPullResult:
        """Ask the reader whether to jump to ``record`` and apply it on yes."""
        prompt = (
            f"Sync to {round(record.percentage * 100)}% "
            f"from device '{record.device_model or 'unknown'}'?"
        )
        if await self._ui.confirm(prompt):
            self._store.goto(record.position)
            logger.info("Applied remote progress %s for %s", record.position, document)
            return ProgressPullResult(PullOutcome.APPLIED, record)

        logger.debug("User declined remote progress for %s", document)
        return ProgressPullResult(PullOutcome.DECLINED, record)
