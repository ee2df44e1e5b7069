"""
GoTo Messaging API client for outbound SMS.
"""
import asyncio
from typing import Iterable, Union
import aiohttp
from loguru import logger

from callrelay.clients.base import BaseGoToClient
from callrelay.clients.goto_auth import GoToTokenCache
from callrelay.constants import HTTP_CLIENT_TIMEOUT_SECONDS
from callrelay.utils.errors import CredentialError, DispatchError, NoRecipientsError
from callrelay.utils.phone import parse_phone_numbers


class GoToMessagingClient(BaseGoToClient):
    """Sends one SMS to a list of recipients with a single provider call."""

    def __init__(
        self,
        sms_api_url: str,
        owner_phone_number: str,
        token_cache: GoToTokenCache,
        timeout: float = HTTP_CLIENT_TIMEOUT_SECONDS,
    ):
        super().__init__(sms_api_url, timeout=timeout)
        self.owner_phone_number = owner_phone_number
        self.token_cache = token_cache

    async def send(self, message: str, recipients: Union[str, Iterable[str]]) -> str:
        """
        Send `message` to every number in `recipients`.

        Args:
            message: Rendered SMS body
            recipients: Comma-separated numbers or an iterable of numbers

        Returns:
            Provider message id (empty string if the provider returned none)

        Raises:
            NoRecipientsError: If no number survives parsing
            DispatchError: If token acquisition or the send call fails
        """
        numbers = parse_phone_numbers(recipients)
        if not numbers:
            raise NoRecipientsError("No recipients configured")

        try:
            token = await self.token_cache.get_token()
        except CredentialError as e:
            raise DispatchError(f"Could not authenticate with GoTo: {e.message}", e.details) from e

        logger.info(f"Sending SMS from {self.owner_phone_number} to {len(numbers)} recipient(s), {len(message)} characters")

        payload = {
            "ownerPhoneNumber": self.owner_phone_number,
            "contactPhoneNumbers": numbers,
            "body": message,
        }
        headers = {"Authorization": f"Bearer {token}"}

        try:
            async with self.session.post(self.url, json=payload, headers=headers) as response:
                body = await self._read_body(response)
                if response.status == 401:
                    # Token revoked or expired early; next send exchanges again
                    self.token_cache.invalidate()
                if response.status < 200 or response.status >= 300:
                    logger.error(f"GoTo SMS send failed: HTTP {response.status}: {body}")
                    raise DispatchError(
                        f"SMS send failed with HTTP {response.status}", {"upstream": body}
                    )
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"GoTo SMS send failed: {type(e).__name__}: {e}")
            raise DispatchError(f"SMS endpoint unreachable: {e}") from e

        message_id = body.get("id", "") if isinstance(body, dict) else ""
        logger.info(f"SMS sent successfully, message id: {message_id or 'n/a'}")
        return message_id
