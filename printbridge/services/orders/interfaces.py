"""
Interfaces/Protocols for order services (Dependency Inversion Principle).

The orchestrator depends on these contracts, so tests can inject doubles
and partners can be swapped without touching the workflow.
"""

from typing import Any, Protocol

from printbridge.clients.base_client import PartnerResponse
from printbridge.domain.models import OrderRequest


class IOrderRequestValidator(Protocol):
    """Protocol for order request validation."""

    def validate(self, request: OrderRequest) -> OrderRequest:
        """Validate a client request, raising ValidationError."""
        ...


class ITokenProvider(Protocol):
    """Protocol for partner access token providers."""

    async def get_access_token(self) -> str:
        """Return a usable token value."""
        ...


class IPartnerClient(Protocol):
    """Protocol for the print partner API."""

    async def create_order(self, body: dict[str, Any], token: str, strategy: str | None = None) -> PartnerResponse:
        """Create an order, raising OrderCreationError on failure."""
        ...

    async def request_checkout(self, setup_url: str, token: str, order_id: str | None = None) -> PartnerResponse:
        """Call the checkout setup reference, raising CheckoutError on failure."""
        ...


class IFileTransfer(Protocol):
    """Protocol for moving a source document to a partner upload target."""

    async def transfer(self, source_ref: str, upload_target: str) -> str:
        """Fetch and upload a document, returning the upload method used."""
        ...
