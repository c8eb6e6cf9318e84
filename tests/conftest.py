"""Shared pytest fixtures and in-memory host doubles for readersync tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

import pytest

from readersync.config import SyncConfig
from readersync.models import Annotation, DeviceIdentity
from readersync.transport.mock import MockSyncServer
from readersync.transport.models import Credentials

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


def make_annotation(
    created: Any,
    page: Any = 1,
    *,
    pos0: Any = None,
    pos1: Any = None,
    updated: Any = None,
    **payload: Any,
) -> Annotation:
    """Build an annotation with terse defaults."""
    return Annotation(
        datetime=created,
        page=page,
        pos0=pos0,
        pos1=pos1,
        datetime_updated=updated,
        payload=payload,
    )


class MemoryDocumentStore:
    """LocalDocumentStore held in memory."""

    def __init__(
        self,
        annotations: list[Annotation] | None = None,
        position: str = "1",
        percentage: float = 0.0,
    ) -> None:
        self.annotations = list(annotations or [])
        self.position = position
        self.percentage = percentage
        self.gotos: list[str] = []

    def get_annotations(self) -> list[Annotation]:
        return list(self.annotations)

    def set_annotations(self, annotations: list[Annotation]) -> None:
        self.annotations = list(annotations)

    def get_position(self) -> str:
        return self.position

    def get_percentage(self) -> float:
        return self.percentage

    def goto(self, position: str) -> None:
        self.gotos.append(position)
        self.position = position


class MemorySettingsStore:
    """SettingsStore held in memory."""

    def __init__(self, device_id: str = "device-local") -> None:
        self.versions: dict[str, int] = {}
        self.tombstones: dict[str, list[str]] = {}
        self.device_id = device_id

    def get_annotation_version(self, document: str) -> int:
        return self.versions.get(document, 0)

    def set_annotation_version(self, document: str, version: int) -> None:
        self.versions[document] = version

    def get_tombstones(self, document: str) -> list[str]:
        return list(self.tombstones.get(document, []))

    def set_tombstones(self, document: str, identifiers: list[str]) -> None:
        self.tombstones[document] = list(identifiers)

    def get_device_id(self) -> str:
        return self.device_id


class RecordingUI:
    """UserInterface that records messages and answers prompts."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.messages: list[str] = []
        self.prompts: list[str] = []

    def notify(self, text: str) -> None:
        self.messages.append(text)

    async def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


class FakeConnectivity:
    """Connectivity oracle with a settable online flag."""

    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.connections_requested = 0

    def is_online(self) -> bool:
        return self.online

    async def run_when_online(self, fn: Callable[[], Awaitable[T]]) -> T | None:
        if not self.online:
            self.connections_requested += 1
            self.online = True
        return await fn()


class FakeClock:
    """Manual clock whose ``sleep`` advances time instead of waiting."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


DOC = "0b2e5a37c3d0a7f84f8e7c7d53d3e2b1"


@pytest.fixture
def credentials() -> Credentials:
    return Credentials.from_password("reader", "secret")


@pytest.fixture
def server(credentials: Credentials) -> MockSyncServer:
    """Mock server with the ``reader`` account already registered."""
    server = MockSyncServer()
    server.add_user(credentials)
    return server


@pytest.fixture
def device() -> DeviceIdentity:
    return DeviceIdentity(model="Kobo", device_id="device-local")


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(auto_sync=True, pages_before_update=2, debounce_seconds=3.0)


@pytest.fixture
def doc_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def settings_store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
