"""Event-driven push/pull scheduling for one open document.

The host forwards reader events (open, close, suspend, resume, network
changes, page turns, deletions) to a SyncScheduler. The scheduler decides
when to push or pull and owns the session state in between.

Policies:

* Auto-sync is a flag checked inside each handler; handlers are fixed.
* Page turns are counted. Once the configured number of pages is reached,
  a trailing-edge debounce waits for the reader to settle before pushing.
  Page-turn pushes never bring the network up.
* Push and pull are serialized per session through one lock: a request
  made while another is in flight waits for it. Every remote call is
  bounded by ``operation_timeout_seconds`` so the slot is always released.
* A background pull that finds progress from another device asks the
  reader in a separate task, after the slot is released. Closing the
  session cancels an unanswered prompt.
* Failures leave version and tombstones as they were; the next natural
  event retries. Background failures are logged, interactive ones shown,
  rejected credentials always shown.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from readersync.errors import AuthRejected, NotAuthenticated, SyncError
from readersync.sync.annotations import AnnotationSyncer
from readersync.sync.debounce import DebounceTimer
from readersync.sync.progress import ProgressSyncer, PullOutcome
from readersync.sync.session import SyncSessionState
from readersync.transport.bounded import BoundedTransport

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from readersync.config import SyncConfig
    from readersync.host import (
        Connectivity,
        LocalDocumentStore,
        SettingsStore,
        UserInterface,
    )
    from readersync.models import Annotation, DeviceIdentity, ProgressRecord
    from readersync.transport.models import Credentials
    from readersync.transport.protocol import SyncTransportProtocol

    Step: TypeAlias = tuple[str, Callable[[Credentials], Awaitable[object]]]

logger = logging.getLogger(__name__)


class SchedulerState(StrEnum):
    IDLE = "idle"
    PUSH_IN_FLIGHT = "push_in_flight"
    PULL_IN_FLIGHT = "pull_in_flight"
    DEBOUNCE_PENDING = "debounce_pending"


class SyncScheduler:
    """Decides when the open document is pushed and pulled.

    Attributes:
        config: Sync behaviour for this session, owned by the scheduler.
        state: Per-document session state.
        credentials: Current login, or None when logged out.
    """

    def __init__(
        self,
        document: str,
        *,
        config: SyncConfig,
        transport: SyncTransportProtocol,
        store: LocalDocumentStore,
        settings_store: SettingsStore,
        ui: UserInterface,
        connectivity: Connectivity,
        device: DeviceIdentity,
        credentials: Credentials | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.credentials = credentials
        self.state = SyncSessionState.load(document, settings_store)

        bounded = BoundedTransport(transport, config.operation_timeout_seconds)
        self._progress = ProgressSyncer(bounded, store, device, ui)
        self._annotations = AnnotationSyncer(bounded, store, settings_store, ui)
        self._store = store
        self._settings_store = settings_store
        self._ui = ui
        self._connectivity = connectivity
        self._sleep = sleep

        self._auto_sync = config.auto_sync
        self._closed = False
        self._op_lock = asyncio.Lock()
        self._in_flight: SchedulerState | None = None
        self._debounce = DebounceTimer(config.debounce_seconds, clock)
        self._debounce_task: asyncio.Task[None] | None = None
        self._delayed: set[asyncio.Task[None]] = set()

    # --- Introspection ---

    @property
    def document(self) -> str:
        return self.state.document

    @property
    def status(self) -> SchedulerState:
        if self._in_flight is not None:
            return self._in_flight
        if self._debounce.pending:
            return SchedulerState.DEBOUNCE_PENDING
        return SchedulerState.IDLE

    @property
    def auto_sync(self) -> bool:
        return self._auto_sync

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_page_turn_at(self) -> float | None:
        return self._debounce.last_activity

    def set_auto_sync(self, enabled: bool) -> None:
        """Turn automatic syncing on or off for the rest of the session."""
        self._auto_sync = enabled
        if not enabled:
            self._cancel_debounce()
        logger.info("Auto sync %s for %s", "enabled" if enabled else "disabled", self.document)

    def _handles_events(self) -> bool:
        return self._auto_sync and not self._closed

    # --- Reader events ---

    async def on_document_open(self) -> None:
        """Document is ready: remember the position and pull if auto-syncing."""
        if self._closed:
            return
        self.state.last_position = self._store.get_position()
        if self._auto_sync:
            await self._pull(interactive=False)

    async def on_document_close(self) -> None:
        """Final push, then tear the session down. Later events are ignored."""
        if self._closed:
            return
        logger.debug("Closing sync session for %s", self.document)
        self._closed = True
        self._cancel_debounce()
        for task in list(self._delayed):
            task.cancel()

        if self._auto_sync:
            await self._connectivity.run_when_online(lambda: self._push(interactive=False))
        self.state.persist(self._settings_store)

    async def on_suspend(self) -> None:
        """Push before the device sleeps. Best effort, no retry."""
        if self._handles_events():
            logger.debug("Suspend: pushing %s", self.document)
            await self._push(interactive=False)

    def on_resume(self) -> None:
        if self._handles_events():
            self._later(self.config.resume_delay_seconds, "resume")

    def on_network_connected(self) -> None:
        if self._handles_events():
            self._later(self.config.network_delay_seconds, "network connected")

    async def on_network_disconnecting(self) -> None:
        """Push while the network is still up."""
        if self._handles_events():
            logger.debug("Network disconnecting: pushing %s", self.document)
            await self._push(interactive=False)

    def on_page_turn(self, position: str | None) -> None:
        """Count a page change and arm the debounced push when due."""
        if position is None or not self._handles_events():
            return
        if position == self.state.last_position:
            return

        self.state.last_position = position
        self.state.page_turns += 1
        self._debounce.record_activity()

        threshold = self.config.pages_before_update
        if self.state.push_scheduled or (
            threshold is not None and self.state.page_turns >= threshold
        ):
            self._schedule_page_push()

    def on_annotation_deleted(self, annotation: Annotation) -> None:
        """Record a tombstone so the deletion reaches the server."""
        if self._closed:
            return
        if self.state.tombstones.record_deletion(annotation.identifier):
            self.state.persist(self._settings_store)

    # --- Manual triggers ---

    async def push_all(self, *, interactive: bool = True) -> bool:
        """Push progress and (if enabled) annotations now."""
        if self._closed:
            logger.debug("Ignoring push for closed session %s", self.document)
            return False
        return await self._push(interactive=interactive)

    async def pull_all(self, *, interactive: bool = True) -> bool:
        """Pull progress and (if enabled) annotations now."""
        if self._closed:
            logger.debug("Ignoring pull for closed session %s", self.document)
            return False
        return await self._pull(interactive=interactive)

    # --- Debounce ---

    def _schedule_page_push(self) -> None:
        # Periodic pushes piggyback on an existing connection only.
        if not self._connectivity.is_online():
            logger.debug("Offline; not scheduling page-turn push for %s", self.document)
            return
        self.state.push_scheduled = True
        if self._debounce.arm():
            self._debounce_task = asyncio.create_task(self._run_debounce())

    async def _run_debounce(self) -> None:
        try:
            while self._debounce.pending:
                await self._sleep(self._debounce.remaining())
                if await self._on_debounce_timer():
                    break
        finally:
            # A page turn during our push may have armed a successor task.
            if self._debounce_task is asyncio.current_task():
                self._debounce_task = None

    async def _on_debounce_timer(self) -> bool:
        """Timer expiry: push if the reader has settled, else wait again.

        Returns:
            True once the debounce has completed.
        """
        if not self._debounce.on_timer_fire():
            return not self._debounce.pending
        if not self._connectivity.is_online():
            self.state.push_scheduled = False
            logger.debug("Offline at debounce expiry; skipping push for %s", self.document)
            return True
        self.state.reset_page_turns()
        await self._push(interactive=False)
        return True

    def _cancel_debounce(self) -> None:
        self._debounce.cancel()
        self.state.push_scheduled = False
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    # --- Delayed pulls ---

    def _later(self, delay: float, reason: str) -> None:
        async def delayed_pull() -> None:
            await self._sleep(delay)
            if self._handles_events():
                logger.debug("%s: pulling %s", reason, self.document)
                await self._pull(interactive=False)

        self._track(asyncio.create_task(delayed_pull()))

    def _track(self, task: asyncio.Task[None]) -> None:
        self._delayed.add(task)
        task.add_done_callback(self._delayed.discard)

    async def drain(self) -> None:
        """Wait for scheduled pulls, open prompts and any debounced push."""
        while True:
            pending = [t for t in (*self._delayed, self._debounce_task) if t and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # --- Push / pull ---

    async def _push(self, *, interactive: bool) -> bool:
        document = self.document
        steps: list[Step] = [
            (
                "push progress",
                lambda c: self._progress.push_progress(
                    c,
                    document,
                    self._store.get_position(),
                    self._store.get_percentage(),
                    interactive=interactive,
                ),
            )
        ]
        if self.config.sync_annotations:
            steps.append(
                (
                    "push annotations",
                    lambda c: self._annotations.push(c, self.state, interactive=interactive),
                )
            )
        return await self._run(SchedulerState.PUSH_IN_FLIGHT, steps, interactive=interactive)

    async def _pull(self, *, interactive: bool) -> bool:
        document = self.document
        pending: list[ProgressRecord] = []

        async def pull_progress(credentials: Credentials) -> None:
            result = await self._progress.pull_progress(
                credentials, document, interactive=interactive, ask=False
            )
            if result.outcome is PullOutcome.NEEDS_CONFIRM and result.record is not None:
                pending.append(result.record)

        steps: list[Step] = [("pull progress", pull_progress)]
        if self.config.sync_annotations:
            steps.append(
                (
                    "pull annotations",
                    lambda c: self._annotations.pull(c, self.state, interactive=interactive),
                )
            )
        ok = await self._run(SchedulerState.PULL_IN_FLIGHT, steps, interactive=interactive)
        for record in pending:
            self._ask_progress(record)
        return ok

    def _ask_progress(self, record: ProgressRecord) -> None:
        """Prompt for a remote position without holding the session slot."""
        if self._closed:
            return

        async def ask() -> None:
            if self._closed:
                return
            await self._progress.confirm_and_apply(self.document, record)

        self._track(asyncio.create_task(ask()))

    async def _run(
        self, kind: SchedulerState, steps: list[Step], *, interactive: bool
    ) -> bool:
        """Run the steps of one push or pull while holding the session slot.

        A failing step does not stop the next one: progress and annotations
        are independent records.

        Returns:
            True if every step succeeded.
        """
        credentials = self.credentials
        if credentials is None:
            self._report(NotAuthenticated(), "sync", interactive=interactive)
            return False

        ok = True
        async with self._op_lock:
            self._in_flight = kind
            try:
                for label, step in steps:
                    try:
                        await step(credentials)
                    except SyncError as e:
                        ok = False
                        self._report(e, label, interactive=interactive)
            finally:
                self._in_flight = None
        return ok

    def _report(self, error: SyncError, label: str, *, interactive: bool) -> None:
        if isinstance(error, AuthRejected):
            logger.warning("Server rejected credentials during %s: %s", label, error)
            self._ui.notify("Sync server rejected the login. Please login again.")
        elif isinstance(error, NotAuthenticated):
            logger.debug("Not logged in; skipping %s for %s", label, self.document)
            if interactive:
                self._ui.notify(str(error))
        elif interactive:
            logger.warning("Failed to %s for %s: %s", label, self.document, error)
            self._ui.notify(f"Failed to {label}: {error}")
        else:
            logger.info("Background %s failed for %s: %s", label, self.document, error)
