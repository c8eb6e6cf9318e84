"""Reading progress models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DeviceIdentity:
    """Which device is talking to the server.

    Attributes:
        model: Human-readable device model, shown in confirmation prompts.
        device_id: Stable id generated once per installation.
    """

    model: str
    device_id: str


@dataclass(frozen=True)
class ProgressRecord:
    """Last known reading position for one document.

    Attributes:
        document: Document digest.
        position: Page number or position anchor, as a string.
        percentage: Fraction read, 0.0 to 1.0.
        device_model: Model of the device that wrote the record.
        device_id: Id of the device that wrote the record.
        timestamp: Server time of the write, if reported.
    """

    document: str
    position: str
    percentage: float
    device_model: str = ""
    device_id: str | None = None
    timestamp: int | None = None

    @classmethod
    def from_dict(cls, document: str, data: dict[str, Any]) -> ProgressRecord | None:
        """Parse a server response, or return None if it holds no progress."""
        percentage = data.get("percentage")
        if not isinstance(percentage, (int, float)) or isinstance(percentage, bool):
            return None
        progress = data.get("progress")
        timestamp = data.get("timestamp")
        return cls(
            document=data.get("document") or document,
            position="" if progress is None else str(progress),
            percentage=float(percentage),
            device_model=data.get("device") or "",
            device_id=data.get("device_id"),
            timestamp=timestamp if isinstance(timestamp, int) else None,
        )
