"""
Remote metadata client for the GDPS directory API.

Fetches per-server metadata over HTTP and always answers with a tagged
``FetchResult``; errors never escape the client.
"""

from typing import Optional

from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from gdps_launcher.core.exceptions import FetchError
from gdps_launcher.core.models import DirectoryResponse, FetchResult, ServerMetadata
from gdps_launcher.utils.config import Config, get_config
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)


class MetadataClient:
    """Directory API client returning ``FetchResult`` values."""

    def __init__(
        self,
        config: Optional[Config] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the metadata client.

        Args:
            config: Configuration instance
            client: Optional shared HTTP client (not closed by this object)
            transport: Optional transport for a client created here
        """
        self.config = config or get_config()
        self.base_url = self.config.directory.api_base_url
        self.timeout = self.config.directory.timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
            follow_redirects=True,
        )

    def metadata_url(self, server_id: str) -> str:
        """Directory URL for a server."""
        return f"{self.base_url}/gdps/{quote(server_id, safe='')}/fetch"

    async def fetch_metadata(self, server_id: str) -> FetchResult:
        """
        Fetch metadata for a single server.

        Args:
            server_id: Server identifier

        Returns:
            Successful result with metadata, or failed result with the cause
        """
        try:
            metadata = await self._fetch(server_id)
        except FetchError as e:
            logger.warning(f"Metadata fetch failed for {server_id!r}: {e.message}")
            return FetchResult.failed(server_id, e.message)

        logger.debug(f"Fetched metadata for {server_id}: {metadata.display_name}")
        return FetchResult.ok(server_id, metadata)

    async def _fetch(self, server_id: str) -> ServerMetadata:
        """Perform the request, raising ``FetchError`` on every failure."""
        server_id = (server_id or "").strip()
        if not server_id:
            raise FetchError(server_id, "Server id cannot be empty", error_code="empty_id")

        url = self.metadata_url(server_id)
        try:
            response = await self._client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(
                server_id, f"Directory request timed out after {self.timeout:g}s",
                error_code="timeout",
            ) from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                server_id, f"Directory returned HTTP {e.response.status_code}",
                error_code="http_status",
                details={"status_code": e.response.status_code},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(
                server_id, f"Directory request failed: {e}", error_code="transport",
            ) from e

        try:
            payload = DirectoryResponse.model_validate(response.json())
        except ValueError as e:
            # Covers invalid JSON as well as pydantic validation failures
            cause = _summarize_validation(e) if isinstance(e, PydanticValidationError) else str(e)
            raise FetchError(
                server_id, f"Malformed directory response: {cause}", error_code="parse",
            ) from e

        if not payload.success or payload.server is None:
            raise FetchError(
                server_id, "Directory reported the server as unavailable",
                error_code="not_found",
            )

        return payload.server

    async def aclose(self) -> None:
        """Close the underlying HTTP client if it was created here."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "MetadataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _summarize_validation(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return "; ".join(parts)
