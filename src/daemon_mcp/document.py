"""
Upstream daemon document fetch.

The document is fetched once per request with no caching, retry or timeout
override. Any failure, including a non-2xx status, becomes an INTERNAL_ERROR
reply with HTTP 500.
"""

from typing import Optional

import httpx

from common.logging import get_logger
from .jsonrpc import ErrorKind, MCPError

logger = get_logger(__name__)


class DocumentFetcher:
    """Fetches the plain-text daemon document from a fixed URL."""

    def __init__(self, source_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            source_url: GET-able URL of the daemon document
            transport: Optional httpx transport, used to stub the upstream
        """
        self.source_url = source_url
        self._transport = transport

    async def fetch(self) -> str:
        """Return the document text decoded as UTF-8."""
        try:
            async with httpx.AsyncClient(
                transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(self.source_url)
        except httpx.HTTPError as e:
            reason = str(e) or "Unknown error"
            logger.error(event="daemon_fetch_failed", url=self.source_url, error=reason)
            raise MCPError(
                ErrorKind.INTERNAL_ERROR,
                f"Failed to load daemon data: {reason}",
                status_code=500,
            )

        if not response.is_success:
            logger.error(
                event="daemon_fetch_failed",
                url=self.source_url,
                upstream_status=response.status_code,
            )
            raise MCPError(
                ErrorKind.INTERNAL_ERROR,
                f"Failed to load daemon data: Failed to fetch daemon.md: {response.status_code}",
                status_code=500,
            )

        return response.content.decode("utf-8", errors="replace")
