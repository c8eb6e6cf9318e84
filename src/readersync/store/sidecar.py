"""JSON sidecar implementation of the LocalDocumentStore protocol.

Used by the command line tool: ``book.epub`` keeps its annotations and
reading position in ``book.epub.readersync.json`` next to it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from readersync.models import Annotation

logger = logging.getLogger(__name__)

SIDECAR_SUFFIX = ".readersync.json"


def sidecar_path(document: Path) -> Path:
    return document.with_name(document.name + SIDECAR_SUFFIX)


def _display_order(annotation: Annotation) -> tuple[Any, ...]:
    page = annotation.page
    if isinstance(page, (int, float)) and not isinstance(page, bool):
        page_key: tuple[Any, ...] = (0, page, "")
    else:
        page_key = (1, 0, "" if page is None else str(page))
    return (*page_key, annotation.timestamp_key)


class SidecarDocumentStore:
    """Annotations and position for one document, stored as JSON."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.position = ""
        self.percentage = 0.0
        self._annotations: list[Annotation] = []
        self._load()

    @classmethod
    def for_document(cls, document: Path) -> SidecarDocumentStore:
        return cls(sidecar_path(document))

    def _load(self) -> None:
        if not self.path.is_file():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"cannot read sidecar {self.path}: {e}") from e
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed sidecar %s", self.path)
            return
        self.position = str(data.get("position") or "")
        percentage = data.get("percentage")
        self.percentage = float(percentage) if isinstance(percentage, (int, float)) else 0.0
        self._annotations = [
            Annotation.from_dict(item)
            for item in data.get("annotations") or []
            if isinstance(item, dict)
        ]

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "position": self.position,
            "percentage": self.percentage,
            "annotations": [a.to_dict() for a in self._annotations],
        }
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def get_annotations(self) -> list[Annotation]:
        return list(self._annotations)

    def set_annotations(self, annotations: list[Annotation]) -> None:
        self._annotations = sorted(annotations, key=_display_order)
        self.save()

    def get_position(self) -> str:
        return self.position

    def get_percentage(self) -> float:
        return self.percentage

    def goto(self, position: str) -> None:
        logger.info("Moving %s to position %s", self.path.name, position)
        self.position = position
        self.save()
