"""Error taxonomy for sync operations.

Transport implementations translate their own failures into these types
so the scheduler can decide what to surface to the user.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all sync failures."""


class NotAuthenticated(SyncError):
    """No stored credentials; the user has not logged in."""

    def __init__(self, message: str = "Please login first.") -> None:
        super().__init__(message)


class AuthRejected(SyncError):
    """The server refused the username/key pair."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class UserExists(SyncError):
    """Registration failed because the username is taken."""


class TransportFailure(SyncError):
    """Network error, timeout, or unexpected HTTP status.

    Attributes:
        status_code: HTTP status if the server answered, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VersionConflict(TransportFailure):
    """The server rejected a push because ``base_version`` is stale."""

    def __init__(self, message: str = "Version conflict") -> None:
        super().__init__(message, status_code=409)


class MalformedResponse(TransportFailure):
    """The response body was not a JSON object.

    Missing fields inside a valid object are defaulted instead of raising.
    """
