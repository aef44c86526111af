"""
Print partner API client.

Wraps the two partner calls the order workflow needs: order creation and
checkout setup. Authentication header styles are configuration because
partners (and their environments) disagree on them.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import aiohttp

from printbridge.clients.base_client import BaseHTTPClient, PartnerResponse
from printbridge.core.config import Settings
from printbridge.utils.error_handler import CheckoutError, OrderCreationError

logger = logging.getLogger(__name__)


def build_auth_headers(token: str, styles: List[str]) -> Dict[str, str]:
    """
    Build the authentication headers for ``token``.

    Args:
        token: Access token or API key
        styles: Any of ``bearer``, ``apikey``, ``x-api-key``

    Returns:
        Dict[str, str]: Headers to send
    """
    headers: Dict[str, str] = {}
    for style in styles:
        if style == "bearer":
            headers.setdefault("Authorization", f"Bearer {token}")
        elif style == "apikey":
            headers.setdefault("Authorization", f"ApiKey {token}")
        elif style == "x-api-key":
            headers["X-Api-Key"] = token
    return headers


class PrintPartnerClient(BaseHTTPClient):
    """
    Client for the print partner's REST API.
    """

    def __init__(self, session: aiohttp.ClientSession, settings: Optional[Settings] = None):
        super().__init__(session, settings)
        self.base_url = self.settings.PARTNER_BASE_URL
        self.auth_styles = self.settings.PARTNER_AUTH_STYLES

    def resolve_url(self, url_or_path: str) -> str:
        """Join relative paths to PARTNER_BASE_URL; absolute URLs pass through."""
        if url_or_path.lower().startswith(("http://", "https://")):
            return url_or_path
        return urljoin(f"{self.base_url}/", url_or_path.lstrip("/"))

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            **build_auth_headers(token, self.auth_styles),
        }

    @property
    def order_url(self) -> str:
        return self.resolve_url(self.settings.PARTNER_ORDER_PATH)

    async def create_order(self, body: Dict[str, Any], token: str, strategy: Optional[str] = None) -> PartnerResponse:
        """
        Create a print order.

        Args:
            body: Request body built by a payload strategy
            token: Access token
            strategy: Strategy name, recorded on errors

        Returns:
            PartnerResponse: 2xx response with the created order

        Raises:
            OrderCreationError: Non-2xx response or transport failure
        """
        logger.info(f"Creating partner order at {self.order_url} (strategy={strategy})")
        response = await self._request(
            "POST",
            self.order_url,
            error_cls=OrderCreationError,
            operation="Order creation",
            error_kwargs={"strategy": strategy},
            json=body,
            headers=self._headers(token),
        )
        logger.info(f"Partner order creation responded {response.status} (strategy={strategy})")

        if not response.ok:
            raise self._error(
                OrderCreationError,
                f"Partner order creation failed with HTTP {response.status}",
                status=response.status,
                body=response.body_text,
                strategy=strategy,
            )
        return response

    async def request_checkout(
        self, setup_url: str, token: str, order_id: Optional[str] = None
    ) -> PartnerResponse:
        """
        Call the checkout setup reference returned with the order.

        Args:
            setup_url: Absolute URL or path relative to PARTNER_BASE_URL
            token: Access token
            order_id: Partner order id, recorded on errors

        Returns:
            PartnerResponse: 2xx response containing the payment URL

        Raises:
            CheckoutError: Non-2xx response or transport failure
        """
        url = self.resolve_url(setup_url)
        method = self.settings.CHECKOUT_METHOD
        request_kwargs: Dict[str, Any] = {"headers": self._headers(token)}
        if method in ("POST", "PUT"):
            request_kwargs["json"] = {"returnUrl": self.settings.CHECKOUT_RETURN_URL}

        response = await self._request(
            method,
            url,
            error_cls=CheckoutError,
            operation="Checkout setup",
            error_kwargs={"order_id": order_id},
            **request_kwargs,
        )
        if not response.ok:
            raise self._error(
                CheckoutError,
                f"Checkout setup failed with HTTP {response.status}",
                status=response.status,
                body=response.body_text,
                order_id=order_id,
            )
        return response
