"""
API clients for external services.
"""
from callrelay.clients.base import BaseGoToClient
from callrelay.clients.goto_auth import AccessToken, GoToTokenCache
from callrelay.clients.goto_messaging import GoToMessagingClient

__all__ = [
    "BaseGoToClient",
    "AccessToken",
    "GoToTokenCache",
    "GoToMessagingClient",
]
