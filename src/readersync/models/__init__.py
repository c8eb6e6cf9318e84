"""Data models for annotations and reading progress."""

from readersync.models.annotation import Annotation, AnnotationSnapshot
from readersync.models.progress import DeviceIdentity, ProgressRecord

__all__ = [
    "Annotation",
    "AnnotationSnapshot",
    "DeviceIdentity",
    "ProgressRecord",
]
