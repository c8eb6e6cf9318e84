"""Value objects exchanged with transport implementations."""

from __future__ import annotations

from dataclasses import dataclass

from readersync.digest import derive_userkey


@dataclass(frozen=True)
class Credentials:
    """Username plus derived secret, sent with every authenticated call.

    Attributes:
        username: Account name on the sync server.
        userkey: MD5 hex digest of the password.
    """

    username: str
    userkey: str

    @classmethod
    def from_password(cls, username: str, password: str) -> Credentials:
        return cls(username=username.strip(), userkey=derive_userkey(password))

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, userkey='**********')"


@dataclass(frozen=True)
class AnnotationsPushResult:
    """Server acknowledgement of an annotation push.

    Attributes:
        version: New server-side version counter.
        timestamp: Server time of the write, if reported.
    """

    version: int
    timestamp: int | None = None
