"""File-backed implementations of the host storage protocols."""

from readersync.store.settings_store import JsonSettingsStore
from readersync.store.sidecar import SidecarDocumentStore, sidecar_path

__all__ = ["JsonSettingsStore", "SidecarDocumentStore", "sidecar_path"]
