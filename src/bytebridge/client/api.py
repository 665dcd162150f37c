"""HTTP client for the ByteBridge file store API.

This module provides:
- StoreClient: HTTP client for communicating with the file store
- RemoteFileRecord: File metadata as listed by the store
- File operations (list, lookup by name, download, upload, delete)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from bytebridge.core.config import FILES_ENDPOINT, ServerConfig

logger = logging.getLogger(__name__)

# Form field names expected by the store's upload endpoint
UPLOAD_FILE_FIELD = "FileAttachment"
UPLOAD_NAME_FIELD = "Name"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(APIError):
    """Network failure or unexpected status from the store."""


class NotFoundError(APIError):
    """Resource not found."""


def _parse_timestamp(value: str | None) -> datetime | None:
    # Timestamps are informational; unparseable ones become None
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable timestamp: %r", value)
        return None


@dataclass
class RemoteFileRecord:
    """File metadata from the store.

    ``name`` is the only key used to correlate remote and local files.
    ``hash`` is carried along but never used for matching.
    """

    id: int
    name: str
    path: str = ""
    hash: str = ""
    extension: str = ""
    created_on: datetime | None = None
    updated_on: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFileRecord:
        """Create from API response dictionary."""
        return cls(
            id=int(data["id"]),
            name=data["name"],
            path=data.get("path") or "",
            hash=data.get("hash") or "",
            extension=data.get("extension") or "",
            created_on=_parse_timestamp(data.get("createdOn")),
            updated_on=_parse_timestamp(data.get("updatedOn")),
        )


class StoreClient:
    """HTTP client for the ByteBridge file store."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the store client.

        Args:
            config: Server connection settings.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
        )

    @property
    def config(self) -> ServerConfig:
        """Get the server configuration."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> StoreClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    @staticmethod
    def _detail(response: httpx.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or default
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("title") or default)
        return default

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code == 404:
            raise NotFoundError("Resource not found", 404)
        if not response.is_success:
            detail = self._detail(response, "Unknown error")
            raise TransportError(
                f"Unexpected status {response.status_code}: {detail}",
                response.status_code,
            )
        return response

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning network failures into TransportError."""
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e
        return self._handle_response(response)

    # === File operations ===

    def list_files(self) -> list[RemoteFileRecord]:
        """List all files in the store.

        Returns:
            File records, in the order the store lists them.

        Raises:
            TransportError: On network failure, bad status or malformed body.
        """
        response = self._request("GET", FILES_ENDPOINT)
        try:
            payload = response.json()
            return [RemoteFileRecord.from_dict(item) for item in payload]
        except (ValueError, TypeError, KeyError) as e:
            raise TransportError(f"Malformed file listing: {e}") from e

    def find_file_by_name(self, name: str) -> RemoteFileRecord:
        """Find the first listed record whose name equals ``name``.

        Args:
            name: Base name of the file.

        Returns:
            The first matching record in listing order.

        Raises:
            NotFoundError: If no record has that name.
            TransportError: If the listing cannot be fetched.
        """
        for record in self.list_files():
            if record.name == name:
                return record
        raise NotFoundError(f"File ID not found for {name}")

    def iter_file_bytes(self, file_id: int) -> Iterator[bytes]:
        """Stream the content of a file.

        Args:
            file_id: Store-assigned file ID.

        Yields:
            Raw content chunks.

        Raises:
            NotFoundError: If the file does not exist.
            TransportError: On network failure or bad status.
        """
        url = f"{FILES_ENDPOINT}/{file_id}"
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code == 404:
                    raise NotFoundError(f"File {file_id} not found", 404)
                if not response.is_success:
                    raise TransportError(
                        f"Unexpected status code when downloading {file_id}: "
                        f"{response.status_code}",
                        response.status_code,
                    )
                yield from response.iter_bytes()
        except httpx.RequestError as e:
            raise TransportError(f"Failed to download file {file_id}: {e}") from e

    def upload_file(self, name: str, data: bytes) -> RemoteFileRecord | None:
        """Upload a file as a single multipart request.

        No idempotency key is sent: retrying after a partial failure may
        create a duplicate record.

        Args:
            name: Base name to store the file under.
            data: Full file content.

        Returns:
            The created record if the store echoes one, else None.

        Raises:
            TransportError: On network failure or bad status.
        """
        response = self._request(
            "POST",
            FILES_ENDPOINT,
            files={UPLOAD_FILE_FIELD: (name, data)},
            data={UPLOAD_NAME_FIELD: name},
        )
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and "id" in body and "name" in body:
            return RemoteFileRecord.from_dict(body)
        return None

    def delete_file(self, file_id: int) -> None:
        """Delete a file record from the store.

        Args:
            file_id: Store-assigned file ID.

        Raises:
            NotFoundError: If the record is already gone.
            TransportError: On network failure or bad status.
        """
        self._request("DELETE", f"{FILES_ENDPOINT}/{file_id}")
