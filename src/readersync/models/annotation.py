"""Annotation data models.

An annotation is whatever the reader stores for a highlight, note or
bookmark. Only the anchor and timestamp fields matter to sync; the rest is
carried through untouched in ``payload``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

# Fields the sync engine reads; everything else goes to ``payload``.
_ANCHOR_FIELDS = frozenset({"datetime", "datetime_updated", "page", "pos0", "pos1"})


def _key_part(value: Any) -> str:
    """Render one component of a position key."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"))
    return str(value)


@dataclass(frozen=True)
class Annotation:
    """A highlight, note or bookmark as exchanged with the server.

    Attributes:
        datetime: Creation timestamp. Also the identifier used in tombstones.
        page: Page number or position anchor (e.g. an xpointer).
        pos0: Start position within the page, if any.
        pos1: End position within the page, if any.
        datetime_updated: Last edit timestamp, if the annotation was edited.
        payload: All remaining fields (text, note, color, drawer, ...).
    """

    datetime: str
    page: Any
    pos0: Any = None
    pos1: Any = None
    datetime_updated: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def identifier(self) -> str:
        """Tombstone identifier. Non-string creation stamps map to ``""``."""
        return self.datetime if isinstance(self.datetime, str) else ""

    @property
    def position_key(self) -> str:
        """Composite ``page|pos0|pos1`` key used to match across replicas."""
        return "|".join(_key_part(part) for part in (self.page, self.pos0, self.pos1))

    @property
    def timestamp_key(self) -> tuple[int, float, str]:
        """Sort key for ``datetime_updated``, falling back to ``datetime``.

        Strings compare lexically (KOReader writes ``YYYY-MM-DD HH:MM:SS``),
        numbers numerically. Anything else sorts oldest.
        """
        value = self.datetime_updated if self.datetime_updated is not None else self.datetime
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return (1, float(value), "")
        if isinstance(value, str) and value:
            return (2, 0.0, value)
        return (0, 0.0, "")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Annotation:
        return cls(
            datetime=data.get("datetime", ""),
            page=data.get("page"),
            pos0=data.get("pos0"),
            pos1=data.get("pos1"),
            datetime_updated=data.get("datetime_updated"),
            payload={k: v for k, v in data.items() if k not in _ANCHOR_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.payload)
        data["datetime"] = self.datetime
        data["page"] = self.page
        if self.datetime_updated is not None:
            data["datetime_updated"] = self.datetime_updated
        if self.pos0 is not None:
            data["pos0"] = self.pos0
        if self.pos1 is not None:
            data["pos1"] = self.pos1
        return data


@dataclass(frozen=True)
class AnnotationSnapshot:
    """The server's view of one document's annotations.

    Attributes:
        annotations: Current annotation set.
        deleted_ids: Identifiers deleted by any replica.
        version: Server-side version counter, 0 if never written.
    """

    annotations: list[Annotation] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)
    version: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnnotationSnapshot:
        """Build a snapshot, defaulting any missing field."""
        raw_annotations = data.get("annotations") or []
        raw_deleted = data.get("deleted") or []
        version = data.get("version")
        return cls(
            annotations=[
                Annotation.from_dict(item)
                for item in raw_annotations
                if isinstance(item, dict)
            ],
            deleted_ids=[d for d in raw_deleted if isinstance(d, str)],
            version=version if isinstance(version, int) else 0,
        )
