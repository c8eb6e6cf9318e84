"""Sync core: merge, tombstones, debounce and the per-document scheduler.

Usage:
    from readersync.sync import SyncScheduler

    scheduler = SyncScheduler(digest, config=settings.sync, ...)
    await scheduler.on_document_open()
"""

from readersync.sync.annotations import AnnotationPullResult, AnnotationSyncer
from readersync.sync.debounce import DebounceTimer, TimerState
from readersync.sync.merge import merge_annotations
from readersync.sync.progress import (
    PERCENTAGE_TOLERANCE,
    ProgressPullResult,
    ProgressSyncer,
    PullOutcome,
)
from readersync.sync.scheduler import SchedulerState, SyncScheduler
from readersync.sync.session import SyncSessionState
from readersync.sync.tombstones import TombstoneTracker

__all__ = [
    "PERCENTAGE_TOLERANCE",
    "AnnotationPullResult",
    "AnnotationSyncer",
    "DebounceTimer",
    "ProgressPullResult",
    "ProgressSyncer",
    "PullOutcome",
    "SchedulerState",
    "SyncScheduler",
    "SyncSessionState",
    "TimerState",
    "TombstoneTracker",
    "merge_annotations",
]
