"""
Base class for GoTo API clients.
"""
from typing import Any, Optional
import aiohttp

from callrelay.constants import HTTP_CLIENT_TIMEOUT_SECONDS


class BaseGoToClient:
    """Owns a lazily created aiohttp session."""

    def __init__(self, url: str, timeout: float = HTTP_CLIENT_TIMEOUT_SECONDS):
        self.url = url
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self):
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        """Best-effort decode of a response body for error reporting."""
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            text = await response.text()
            return text[:500]
