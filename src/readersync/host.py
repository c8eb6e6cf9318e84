"""Protocols for the host collaborators the sync core depends on.

The reader application (or the CLI) supplies objects satisfying these
protocols. The core never reaches past them into UI toolkits, position
abstractions or network managers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from readersync.models import Annotation

T = TypeVar("T")


class LocalDocumentStore(Protocol):
    """The open document's annotations and reading position."""

    def get_annotations(self) -> list[Annotation]:
        """Return the current annotation list."""
        ...

    def set_annotations(self, annotations: list[Annotation]) -> None:
        """Replace the annotation list (the store re-sorts for display)."""
        ...

    def get_position(self) -> str:
        """Return the current page number or position anchor."""
        ...

    def get_percentage(self) -> float:
        """Return the fraction of the document read, 0.0 to 1.0."""
        ...

    def goto(self, position: str) -> None:
        """Jump to a page number or position anchor."""
        ...


class SettingsStore(Protocol):
    """Persistent state that outlives a reading session."""

    def get_annotation_version(self, document: str) -> int: ...

    def set_annotation_version(self, document: str, version: int) -> None: ...

    def get_tombstones(self, document: str) -> list[str]: ...

    def set_tombstones(self, document: str, identifiers: list[str]) -> None: ...

    def get_device_id(self) -> str:
        """Return the installation's device id, creating it on first use."""
        ...


class UserInterface(Protocol):
    """Edge-only UI hooks: messages and yes/no questions."""

    def notify(self, text: str) -> None: ...

    async def confirm(self, prompt: str) -> bool: ...


class Connectivity(Protocol):
    """Network state oracle."""

    def is_online(self) -> bool: ...

    async def run_when_online(self, fn: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``fn`` once the network is up; may bring the network up."""
        ...


class AlwaysOnline:
    """Connectivity for hosts without a network manager (desktop, CLI)."""

    def is_online(self) -> bool:
        return True

    async def run_when_online(self, fn: Callable[[], Awaitable[T]]) -> T | None:
        return await fn()
