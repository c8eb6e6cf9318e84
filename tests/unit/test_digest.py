"""Unit tests for document and credential digests."""

from __future__ import annotations

import hashlib

from readersync.config import ChecksumMethod
from readersync.digest import derive_userkey, document_digest, filename_md5, partial_md5


def _expected_partial(data: bytes) -> str:
    md5 = hashlib.md5()  # noqa: S324
    for offset in [0] + [1024 << (2 * i) for i in range(11)]:
        sample = data[offset : offset + 1024]
        if not sample:
            break
        md5.update(sample)
    return md5.hexdigest()


class TestPartialMd5:
    """Sampling scheme shared with other KOSync clients."""

    def test_small_file_hashes_whole_content(self, tmp_path) -> None:
        path = tmp_path / "book.txt"
        path.write_bytes(b"hello world")

        assert partial_md5(path) == hashlib.md5(b"hello world").hexdigest()  # noqa: S324

    def test_samples_spread_through_large_file(self, tmp_path) -> None:
        data = bytes(range(256)) * 1200  # ~300 KiB, reaches the 256 KiB sample
        path = tmp_path / "book.epub"
        path.write_bytes(data)

        assert partial_md5(path) == _expected_partial(data)

    def test_unsampled_bytes_do_not_matter(self, tmp_path) -> None:
        data = bytearray(b"a" * 8192)
        first = tmp_path / "a.pdf"
        first.write_bytes(bytes(data))
        data[3000] = ord("b")  # between the 2 KiB and 4 KiB samples
        second = tmp_path / "b.pdf"
        second.write_bytes(bytes(data))

        assert partial_md5(first) == partial_md5(second)

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty"
        path.write_bytes(b"")

        assert partial_md5(path) == hashlib.md5().hexdigest()  # noqa: S324


class TestOtherDigests:
    def test_filename_method_ignores_content(self, tmp_path) -> None:
        path = tmp_path / "Moby Dick.epub"
        path.write_bytes(b"x")

        expected = hashlib.md5(b"Moby Dick.epub").hexdigest()  # noqa: S324
        assert filename_md5(path) == expected
        assert document_digest(path, ChecksumMethod.FILENAME) == expected
        assert document_digest(path) == partial_md5(path)

    def test_userkey_is_md5_of_password(self) -> None:
        assert derive_userkey("secret") == hashlib.md5(b"secret").hexdigest()  # noqa: S324
