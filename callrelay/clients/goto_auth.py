"""
GoTo OAuth client-credentials token cache.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional
import aiohttp
from loguru import logger

from callrelay.clients.base import BaseGoToClient
from callrelay.constants import (
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    HTTP_CLIENT_TIMEOUT_SECONDS,
    TOKEN_REFRESH_MARGIN_SECONDS,
    TOKEN_SCOPE,
)
from callrelay.utils.errors import CredentialError


@dataclass(frozen=True)
class AccessToken:
    value: str
    expiry: float  # epoch seconds

    def is_valid(self, now: float) -> bool:
        return now < self.expiry


class GoToTokenCache(BaseGoToClient):
    """
    Holds at most one bearer token and refreshes it on demand.

    Concurrent callers that find the token expired share a single exchange:
    the refresh runs under a lock and the cache is re-checked once the lock
    is held.
    """

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        scope: str = TOKEN_SCOPE,
        clock: Callable[[], float] = time.time,
        timeout: float = HTTP_CLIENT_TIMEOUT_SECONDS,
    ):
        super().__init__(token_url, timeout=timeout)
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._clock = clock
        self._token: Optional[AccessToken] = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    def invalidate(self):
        """Forget the cached token so the next call performs an exchange."""
        if self._token is not None:
            logger.debug("Discarding cached GoTo access token")
        self._token = None

    async def get_token(self) -> str:
        """
        Return a valid bearer token, exchanging credentials if needed.

        Raises:
            CredentialError: If the token endpoint rejects the request or is unreachable
        """
        token = self._token
        if token and token.is_valid(self._clock()):
            return token.value

        async with self._lock:
            # Double-check after acquiring lock
            token = self._token
            if token and token.is_valid(self._clock()):
                return token.value

            self._token = await self._exchange()
            return self._token.value

    async def _exchange(self) -> AccessToken:
        """Perform the client-credentials exchange."""
        logger.info("Requesting new GoTo access token")

        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": self.scope,
        }

        try:
            async with self.session.post(
                self.url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            ) as response:
                body = await self._read_body(response)
                if response.status < 200 or response.status >= 300:
                    logger.error(f"GoTo token exchange failed: HTTP {response.status}: {body}")
                    raise CredentialError(
                        f"Token exchange failed with HTTP {response.status}", upstream=body
                    )
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"GoTo token exchange failed: {type(e).__name__}: {e}")
            raise CredentialError(f"Token endpoint unreachable: {e}", upstream=str(e)) from e

        if not isinstance(body, dict) or not body.get("access_token"):
            raise CredentialError("Token response did not contain an access_token", upstream=body)

        expires_in = body.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS
        expiry = self._clock() + float(expires_in) - TOKEN_REFRESH_MARGIN_SECONDS
        logger.info(f"GoTo access token obtained, refresh due in {max(0, expiry - self._clock()):.0f}s")
        return AccessToken(value=body["access_token"], expiry=expiry)
