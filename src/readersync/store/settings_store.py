"""JSON-file implementation of the SettingsStore protocol.

Layout::

    {
        "device_id": "3f2c...",
        "documents": {
            "<digest>": {"annotations_version": 4, "deleted_annotations": [...]}
        }
    }

Writes go through a temporary file and ``Path.replace`` so a crash never
leaves a half-written state file behind.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class JsonSettingsStore:
    """Per-document sync state and device identity in a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {"documents": {}}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("Could not read sync state from %s; starting fresh", self.path)
            return {"documents": {}}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed sync state in %s", self.path)
            return {"documents": {}}
        if not isinstance(data.get("documents"), dict):
            data["documents"] = {}
        return data

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(self.path)

    def _document(self, document: str) -> dict[str, Any]:
        return self._data["documents"].setdefault(document, {})

    def get_annotation_version(self, document: str) -> int:
        version = self._data["documents"].get(document, {}).get("annotations_version", 0)
        return version if isinstance(version, int) else 0

    def set_annotation_version(self, document: str, version: int) -> None:
        self._document(document)["annotations_version"] = version
        self._save()

    def get_tombstones(self, document: str) -> list[str]:
        deleted = self._data["documents"].get(document, {}).get("deleted_annotations", [])
        return [d for d in deleted if isinstance(d, str)]

    def set_tombstones(self, document: str, identifiers: list[str]) -> None:
        self._document(document)["deleted_annotations"] = list(identifiers)
        self._save()

    def get_device_id(self) -> str:
        device_id = self._data.get("device_id")
        if not isinstance(device_id, str) or not device_id:
            device_id = uuid.uuid4().hex
            self._data["device_id"] = device_id
            self._save()
            logger.info("Generated device id %s", device_id)
        return device_id

    def get_credentials(self) -> tuple[str, str] | None:
        """Return the ``(username, userkey)`` saved by ``login``, if any."""
        creds = self._data.get("credentials")
        if not isinstance(creds, dict):
            return None
        username, userkey = creds.get("username"), creds.get("userkey")
        if isinstance(username, str) and isinstance(userkey, str) and username and userkey:
            return username, userkey
        return None

    def set_credentials(self, username: str, userkey: str) -> None:
        self._data["credentials"] = {"username": username, "userkey": userkey}
        self._save()

    def clear_credentials(self) -> None:
        if self._data.pop("credentials", None) is not None:
            self._save()
