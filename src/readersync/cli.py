"""Command-line front end for readersync.

Each document is represented by its file plus a JSON sidecar
(``book.epub.readersync.json``) holding annotations and reading position.
Sync state (versions, pending deletions, device id, login) lives in the
state file configured by ``APP__STATE_FILE``.

Usage:
    readersync register <username>
    readersync login <username>
    readersync logout
    readersync digest <file>
    readersync push <file> [--position P --percentage F]
    readersync pull <file>
    readersync status <file>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from readersync import __version__, setup_logging
from readersync.digest import document_digest
from readersync.errors import SyncError, UserExists
from readersync.host import AlwaysOnline
from readersync.models import DeviceIdentity
from readersync.store import JsonSettingsStore, SidecarDocumentStore, sidecar_path
from readersync.sync import SyncScheduler
from readersync.transport import Credentials, get_transport

if TYPE_CHECKING:
    from readersync.config import Settings
    from readersync.transport import SyncTransportProtocol

logger = logging.getLogger(__name__)

console = Console()


class ConsoleUI:
    """UserInterface implementation printing to the terminal."""

    def __init__(self, con: Console | None = None) -> None:
        self.console = con or console

    def notify(self, text: str) -> None:
        self.console.print(text)

    async def confirm(self, prompt: str) -> bool:
        return await asyncio.to_thread(Confirm.ask, prompt, console=self.console)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readersync",
        description="Sync reading progress and annotations with a KOSync server.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output")
    parser.add_argument("--server", default=None, help="Override SERVER__URL")
    sub = parser.add_subparsers(dest="command", required=True)

    # register / login
    for name, text in (
        ("register", "Create an account on the sync server"),
        ("login", "Check and store credentials"),
    ):
        p = sub.add_parser(name, help=text)
        p.add_argument("username", help="Account name")
        p.add_argument(
            "--password", default=None, help="Password (prompted for when omitted)"
        )

    sub.add_parser("logout", help="Forget stored credentials")

    digest_p = sub.add_parser("digest", help="Print the document digest")
    digest_p.add_argument("file", type=Path)

    push_p = sub.add_parser("push", help="Push progress and annotations")
    push_p.add_argument("file", type=Path)
    push_p.add_argument("--position", default=None, help="Set the position first")
    push_p.add_argument(
        "--percentage", type=float, default=None, help="Set the percentage first (0-1)"
    )

    pull_p = sub.add_parser("pull", help="Pull progress and annotations")
    pull_p.add_argument("file", type=Path)

    status_p = sub.add_parser("status", help="Show local and server sync status")
    status_p.add_argument("file", type=Path)

    return parser


def _resolve_credentials(settings: Settings, state: JsonSettingsStore) -> Credentials | None:
    """Environment credentials win over the ones saved by ``login``."""
    username = settings.server.username
    if settings.server.has_credentials and username is not None:
        return Credentials(
            username=username,
            userkey=settings.server.userkey.get_secret_value(),
        )
    stored = state.get_credentials()
    if stored is None:
        return None
    return Credentials(username=stored[0], userkey=stored[1])


def _require_file(path: Path) -> None:
    if not path.is_file():
        console.print(f"[red]Error:[/] no such file: {path}")
        sys.exit(1)


def _open_sidecar(path: Path) -> SidecarDocumentStore:
    try:
        return SidecarDocumentStore.for_document(path)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)


def _make_scheduler(
    settings: Settings,
    state: JsonSettingsStore,
    path: Path,
    store: SidecarDocumentStore,
    transport: SyncTransportProtocol,
) -> SyncScheduler:
    digest = document_digest(path, settings.document.checksum_method)
    return SyncScheduler(
        digest,
        config=settings.sync,
        transport=transport,
        store=store,
        settings_store=state,
        ui=ConsoleUI(),
        connectivity=AlwaysOnline(),
        device=DeviceIdentity(settings.app.device_model, state.get_device_id()),
        credentials=_resolve_credentials(settings, state),
    )


async def _cmd_account(
    settings: Settings,
    state: JsonSettingsStore,
    username: str,
    password: str | None,
    *,
    register: bool,
) -> int:
    """Register or log in, storing the derived key on success."""
    if password is None:
        password = await asyncio.to_thread(Prompt.ask, "Password", password=True)
    credentials = Credentials.from_password(username, password)
    transport = get_transport(settings)
    try:
        if register:
            await transport.register(credentials)
        else:
            await transport.authorize(credentials)
    except UserExists:
        console.print(f"[yellow]Already exists:[/] user '{credentials.username}'")
        return 1
    except SyncError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1
    finally:
        await transport.aclose()

    state.set_credentials(credentials.username, credentials.userkey)
    verb = "Registered" if register else "Logged in as"
    console.print(f"[green]{verb}[/] '{credentials.username}'")
    return 0


async def _cmd_sync(
    settings: Settings,
    state: JsonSettingsStore,
    path: Path,
    *,
    push: bool,
    position: str | None = None,
    percentage: float | None = None,
) -> int:
    _require_file(path)
    store = _open_sidecar(path)
    if position is not None:
        store.position = position
    if percentage is not None:
        store.percentage = percentage
    if position is not None or percentage is not None:
        store.save()

    transport = get_transport(settings)
    scheduler = _make_scheduler(settings, state, path, store, transport)
    try:
        ok = await (scheduler.push_all() if push else scheduler.pull_all())
    finally:
        await transport.aclose()
    return 0 if ok else 1


async def _cmd_status(settings: Settings, state: JsonSettingsStore, path: Path) -> int:
    _require_file(path)
    digest = document_digest(path, settings.document.checksum_method)
    store = _open_sidecar(path)
    credentials = _resolve_credentials(settings, state)

    transport = get_transport(settings)
    try:
        healthy = await transport.healthcheck()
    finally:
        await transport.aclose()

    table = Table(title=path.name, show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("Digest", digest)
    table.add_row("Sidecar", str(sidecar_path(path)))
    table.add_row("Position", store.position or "[dim]-[/]")
    table.add_row("Percentage", f"{store.percentage * 100:.1f}%")
    table.add_row("Annotations", str(len(store.get_annotations())))
    table.add_row("Version", str(state.get_annotation_version(digest)))
    table.add_row("Pending deletions", str(len(state.get_tombstones(digest))))
    table.add_row("Device", f"{settings.app.device_model} ({state.get_device_id()})")
    table.add_row("User", credentials.username if credentials else "[yellow]not logged in[/]")
    table.add_row(
        "Server",
        f"{settings.server.url} "
        + ("[green]OK[/]" if healthy else "[red]unreachable[/]"),
    )
    console.print(table)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``readersync`` console script."""
    from readersync.config import get_settings

    args = _build_parser().parse_args(argv if argv is not None else sys.argv[1:])
    settings = get_settings()
    if args.server:
        settings = settings.model_copy(
            update={"server": settings.server.model_copy(update={"url": args.server})}
        )

    setup_logging(settings.app.log_dir, verbose=args.verbose)
    state = JsonSettingsStore(settings.app.state_file)

    async def _run() -> int:
        match args.command:
            case "register" | "login":
                return await _cmd_account(
                    settings,
                    state,
                    args.username,
                    args.password,
                    register=args.command == "register",
                )
            case "logout":
                state.clear_credentials()
                console.print("Logged out.")
                return 0
            case "digest":
                _require_file(args.file)
                console.print(document_digest(args.file, settings.document.checksum_method))
                return 0
            case "push":
                return await _cmd_sync(
                    settings,
                    state,
                    args.file,
                    push=True,
                    position=args.position,
                    percentage=args.percentage,
                )
            case "pull":
                return await _cmd_sync(settings, state, args.file, push=False)
            case "status":
                return await _cmd_status(settings, state, args.file)
        return 2

    sys.exit(asyncio.run(_run()))
