"""In-memory stand-in for a KOSync server.

Used by the tests and by ``DEV__TRANSPORT_MOCK=true`` runs. It keeps the
server-side bookkeeping (users, progress, versioned annotation sets with a
deleted list) but resolves no conflicts. A push replaces the stored set,
minus anything tombstoned.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from readersync.errors import AuthRejected, SyncError, UserExists, VersionConflict
from readersync.models import Annotation, AnnotationSnapshot, ProgressRecord
from readersync.transport.models import AnnotationsPushResult

if TYPE_CHECKING:
    from readersync.transport.models import Credentials


@dataclass
class _StoredAnnotations:
    version: int = 0
    annotations: list[dict[str, Any]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    updated_at: int = 0


class MockSyncServer:
    """Mock implementation of SyncTransportProtocol.

    Attributes:
        calls: Names of the protocol methods invoked, in order.
        fail_with: If set, the next authenticated call raises this error
            (and clears it). Lets tests simulate transport failures.
        clock: Monotonic counter standing in for server timestamps.
    """

    def __init__(self) -> None:
        self._users: dict[str, str] = {}
        self._progress: dict[tuple[str, str], ProgressRecord] = {}
        self._annotations: dict[tuple[str, str], _StoredAnnotations] = {}
        self.calls: list[str] = []
        self.fail_with: SyncError | None = None
        self.clock = 1_700_000_000

    def add_user(self, credentials: Credentials) -> None:
        self._users[credentials.username] = credentials.userkey

    def _tick(self) -> int:
        self.clock += 1
        return self.clock

    def _authorize(self, name: str, credentials: Credentials) -> str:
        self.calls.append(name)
        if self.fail_with is not None:
            error, self.fail_with = self.fail_with, None
            raise error
        if self._users.get(credentials.username) != credentials.userkey:
            raise AuthRejected()
        return credentials.username

    async def register(self, credentials: Credentials) -> None:
        self.calls.append("register")
        if credentials.username in self._users:
            raise UserExists(f"User {credentials.username!r} already exists")
        self.add_user(credentials)

    async def authorize(self, credentials: Credentials) -> None:
        self._authorize("authorize", credentials)

    async def update_progress(
        self, credentials: Credentials, record: ProgressRecord
    ) -> int | None:
        user = self._authorize("update_progress", credentials)
        timestamp = self._tick()
        self._progress[(user, record.document)] = ProgressRecord(
            document=record.document,
            position=record.position,
            percentage=record.percentage,
            device_model=record.device_model,
            device_id=record.device_id,
            timestamp=timestamp,
        )
        return timestamp

    async def get_progress(
        self, credentials: Credentials, document: str
    ) -> ProgressRecord | None:
        user = self._authorize("get_progress", credentials)
        return self._progress.get((user, document))

    async def update_annotations(
        self,
        credentials: Credentials,
        document: str,
        annotations: list[Annotation],
        deleted: list[str],
        base_version: int,
    ) -> AnnotationsPushResult:
        user = self._authorize("update_annotations", credentials)
        stored = self._annotations.setdefault((user, document), _StoredAnnotations())
        if base_version != stored.version and stored.version > 0:
            raise VersionConflict()

        for identifier in deleted:
            if identifier not in stored.deleted:
                stored.deleted.append(identifier)
        stored.annotations = [
            a.to_dict() for a in annotations if a.identifier not in stored.deleted
        ]
        stored.version += 1
        stored.updated_at = self._tick()
        return AnnotationsPushResult(version=stored.version, timestamp=stored.updated_at)

    async def get_annotations(
        self, credentials: Credentials, document: str
    ) -> AnnotationSnapshot:
        user = self._authorize("get_annotations", credentials)
        stored = self._annotations.get((user, document), _StoredAnnotations())
        return AnnotationSnapshot.from_dict(
            {
                "version": stored.version,
                "annotations": deepcopy(stored.annotations),
                "deleted": list(stored.deleted),
            }
        )

    async def healthcheck(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None
