"""httpx client for KOSync-compatible servers with the annotations API.

This module implements SyncTransportProtocol over HTTP. Authentication is
stateless: ``x-auth-user`` and ``x-auth-key`` go out with every call.
httpx errors and non-2xx statuses are translated into the exceptions of
``readersync.errors`` here, so callers never see httpx types.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from readersync.errors import (
    AuthRejected,
    MalformedResponse,
    TransportFailure,
    UserExists,
    VersionConflict,
)
from readersync.models import AnnotationSnapshot, ProgressRecord
from readersync.transport.models import AnnotationsPushResult

if TYPE_CHECKING:
    from readersync.models import Annotation
    from readersync.transport.models import Credentials

logger = logging.getLogger(__name__)

ACCEPT_HEADER = {"Accept": "application/vnd.koreader.v1+json"}


def _auth_headers(credentials: Credentials) -> dict[str, str]:
    return {"x-auth-user": credentials.username, "x-auth-key": credentials.userkey}


def _error_message(response: httpx.Response) -> str:
    """Pull ``message`` out of an error body, falling back to the status text."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase or f"HTTP {response.status_code}"


class HttpSyncTransport:
    """Async HTTP implementation of the remote sync protocol."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Server root, e.g. ``https://sync.example.org``.
            timeout: Per-request timeout in seconds.
            client: Pre-built client (tests pass one with a MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        credentials: Credentials | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = dict(ACCEPT_HEADER)
        if credentials is not None:
            headers.update(_auth_headers(credentials))

        try:
            response = await self._client.request(method, path, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportFailure(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"{method} {path} failed: {e}") from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            raise AuthRejected(_error_message(response))
        if response.status_code == httpx.codes.CONFLICT:
            raise VersionConflict(_error_message(response))
        if response.is_error:
            raise TransportFailure(
                f"{method} {path}: HTTP {response.status_code} {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponse(f"{method} {path}: response is not JSON") from e
        if not isinstance(body, dict):
            raise MalformedResponse(f"{method} {path}: expected a JSON object")
        return body

    async def register(self, credentials: Credentials) -> None:
        try:
            await self._request(
                "POST",
                "/users/create",
                payload={"username": credentials.username, "password": credentials.userkey},
            )
        except TransportFailure as e:
            if e.status_code == httpx.codes.PAYMENT_REQUIRED:
                raise UserExists(f"User {credentials.username!r} already exists") from e
            raise
        logger.info("Registered user %s", credentials.username)

    async def authorize(self, credentials: Credentials) -> None:
        await self._request("GET", "/users/auth", credentials=credentials)

    async def update_progress(
        self, credentials: Credentials, record: ProgressRecord
    ) -> int | None:
        body = await self._request(
            "PUT",
            "/syncs/progress",
            credentials=credentials,
            payload={
                "document": record.document,
                "progress": record.position,
                "percentage": record.percentage,
                "device": record.device_model,
                "device_id": record.device_id,
            },
        )
        timestamp = body.get("timestamp")
        return timestamp if isinstance(timestamp, int) else None

    async def get_progress(
        self, credentials: Credentials, document: str
    ) -> ProgressRecord | None:
        body = await self._request(
            "GET", f"/syncs/progress/{quote(document, safe='')}", credentials=credentials
        )
        return ProgressRecord.from_dict(document, body)

    async def update_annotations(
        self,
        credentials: Credentials,
        document: str,
        annotations: list[Annotation],
        deleted: list[str],
        base_version: int,
    ) -> AnnotationsPushResult:
        body = await self._request(
            "PUT",
            f"/syncs/annotations/{quote(document, safe='')}",
            credentials=credentials,
            payload={
                "annotations": [a.to_dict() for a in annotations],
                "deleted": deleted,
                "base_version": base_version,
            },
        )
        version = body.get("version")
        timestamp = body.get("timestamp")
        return AnnotationsPushResult(
            version=version if isinstance(version, int) else 0,
            timestamp=timestamp if isinstance(timestamp, int) else None,
        )

    async def get_annotations(
        self, credentials: Credentials, document: str
    ) -> AnnotationSnapshot:
        body = await self._request(
            "GET", f"/syncs/annotations/{quote(document, safe='')}", credentials=credentials
        )
        return AnnotationSnapshot.from_dict(body)

    async def healthcheck(self) -> bool:
        try:
            body = await self._request("GET", "/healthcheck")
        except TransportFailure:
            logger.debug("Healthcheck failed for %s", self.base_url, exc_info=True)
            return False
        return body.get("state") == "OK"

    async def aclose(self) -> None:
        await self._client.aclose()
