"""Document identity and credential digests.

The sync core treats the document digest as an opaque string. These helpers
compute it at the edges, using the same scheme as KOReader so that digests
agree with other KOSync clients.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from readersync.config import ChecksumMethod

_SAMPLE_STEP = 1024
_SAMPLE_SIZE = 1024


def partial_md5(path: Path) -> str:
    """MD5 over 1 KiB samples spread exponentially through the file.

    Samples are read at offset 0 and at ``1024 << 2i`` for ``i`` in 0..10,
    stopping at the first offset past the end of the file.
    """
    md5 = hashlib.md5()  # noqa: S324
    with path.open("rb") as f:
        for i in range(-1, 11):
            f.seek(_SAMPLE_STEP << (2 * i) if i >= 0 else 0)
            sample = f.read(_SAMPLE_SIZE)
            if not sample:
                break
            md5.update(sample)
    return md5.hexdigest()


def filename_md5(path: Path) -> str:
    """MD5 of the file's base name, for libraries that re-encode files."""
    return hashlib.md5(path.name.encode("utf-8")).hexdigest()  # noqa: S324


def document_digest(path: Path, method: ChecksumMethod = ChecksumMethod.BINARY) -> str:
    """Compute the document identity for ``path`` with the chosen method."""
    if method == ChecksumMethod.FILENAME:
        return filename_md5(path)
    return partial_md5(path)


def derive_userkey(password: str) -> str:
    """Derive the per-call secret sent in ``x-auth-key`` from a password."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()  # noqa: S324
