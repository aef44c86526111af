"""
Access token cache for the print partner API.

Holds at most one token per process. The token is reused while it is
more than the refresh margin away from expiry; otherwise a new one is
obtained with an OAuth client-credentials exchange. Concurrent refreshes
are tolerated: both succeed and the last writer wins.
"""

import logging
import time
from typing import Callable, Optional

import aiohttp

from printbridge.clients.base_client import BaseHTTPClient
from printbridge.core.config import Settings
from printbridge.core.logging_config import mask_secret
from printbridge.domain.models import AccessToken
from printbridge.utils.error_handler import AuthConfigError, TokenRequestError

logger = logging.getLogger(__name__)


class AccessTokenCache(BaseHTTPClient):
    """
    Obtains and memoizes the partner access token.

    Constructed once per process and passed to the orchestrator.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(session, settings)
        self.clock = clock
        self.refresh_margin = self.settings.TOKEN_REFRESH_MARGIN_SECONDS
        self._token: Optional[AccessToken] = None
        self.refresh_count = 0

    @property
    def cached_token(self) -> Optional[AccessToken]:
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs an exchange."""
        if self._token is not None:
            logger.info("Partner access token invalidated")
        self._token = None

    async def get_access_token(self) -> str:
        """
        Return a usable token value.

        Returns:
            str: Token value

        Raises:
            AuthConfigError: Client id, secret or token URL not configured
            TokenRequestError: The token endpoint rejected the exchange
        """
        preshared = self.settings.partner_preshared_token
        if preshared:
            return preshared

        missing = [
            name
            for name in ("PARTNER_CLIENT_ID", "PARTNER_CLIENT_SECRET", "PARTNER_TOKEN_URL")
            if not getattr(self.settings, name)
        ]
        if missing:
            raise AuthConfigError(
                f"Partner credentials not configured: {', '.join(missing)}",
                missing=missing,
            )

        token = self._token
        if token is not None and token.is_fresh(self.clock(), self.refresh_margin):
            return token.value

        token = await self._exchange_client_credentials()
        self._token = token
        return token.value

    async def _exchange_client_credentials(self) -> AccessToken:
        """
        POST the client-credentials grant to the token endpoint.

        Returns:
            AccessToken: New token with its computed expiry
        """
        form = {
            "grant_type": "client_credentials",
            "client_id": self.settings.PARTNER_CLIENT_ID,
            "client_secret": self.settings.PARTNER_CLIENT_SECRET,
        }
        if self.settings.PARTNER_TOKEN_SCOPE:
            form["scope"] = self.settings.PARTNER_TOKEN_SCOPE

        logger.info(
            f"Requesting partner access token (client_id={mask_secret(self.settings.PARTNER_CLIENT_ID)})"
        )
        requested_at = self.clock()
        response = await self._request(
            "POST",
            self.settings.PARTNER_TOKEN_URL,
            error_cls=TokenRequestError,
            operation="Token request",
            data=form,
            headers={"Accept": "application/json"},
        )

        if not response.ok:
            raise self._error(
                TokenRequestError,
                f"Token endpoint responded with HTTP {response.status}",
                status=response.status,
                body=response.body_text,
            )

        payload = response.json if isinstance(response.json, dict) else {}
        value = payload.get("access_token")
        if not value:
            raise self._error(
                TokenRequestError,
                "Token endpoint response has no access_token",
                status=response.status,
                body=response.body_text,
            )

        expires_in = payload.get("expires_in")
        try:
            lifetime = float(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            lifetime = None
        if lifetime is None:
            lifetime = float(self.settings.TOKEN_DEFAULT_LIFETIME_SECONDS)

        self.refresh_count += 1
        logger.info(f"Partner access token obtained, expires in {lifetime:.0f}s")
        return AccessToken(value=str(value), expires_at=requested_at + lifetime)
