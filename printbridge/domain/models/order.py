"""
Order domain models.

OrderRequest is what the client asks for, PartnerOrder is what the
print partner answered when the order was created and CheckoutResult
is the terminal artifact returned to the client.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

CONTENT_ROLE = "content"
COVER_ROLE = "cover"


def _first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def _coerce_int(value: Any) -> Any:
    """Convert numeric strings to int, leaving anything else for the validator."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return value


@dataclass
class OrderRequest:
    """
    Book printing request received from the frontend.

    No validation happens here: the orchestrator validates before
    any network call so the client gets a structured error.

    Attributes:
        content_reference: URL or storage path of the interior PDF
        page_count: Number of interior pages
        cover_reference: URL or storage path of the cover PDF (optional)
        quantity: Copies to print
        title: Title sent to partners that accept one
    """

    content_reference: str | None
    page_count: Any
    cover_reference: str | None = None
    quantity: Any = 1
    title: str = "Book order"

    @property
    def roles(self) -> dict[str, str]:
        """Source reference per file role present in this request."""
        roles = {CONTENT_ROLE: self.content_reference}
        if self.cover_reference:
            roles[COVER_ROLE] = self.cover_reference
        return roles

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "OrderRequest":
        """
        Build a request from the client payload.

        Accepts both ``contentReference`` and ``contentUrl`` (same for the
        cover) since frontends send either one.
        """
        title = _first_present(data, "title")
        quantity = _coerce_int(_first_present(data, "quantity"))
        return cls(
            content_reference=_first_present(data, "contentReference", "contentUrl"),
            page_count=_coerce_int(_first_present(data, "pageCount")),
            cover_reference=_first_present(data, "coverReference", "coverUrl"),
            quantity=1 if quantity is None else quantity,
            title=str(title) if title else "Book order",
        )


@dataclass(frozen=True)
class PartnerOrder:
    """
    Order as created at the print partner (immutable).

    Attributes:
        id: Partner order id
        upload_targets: Upload URL per file role
        checkout_setup_url: Sub-resource that returns the payment URL (optional)
        raw: Parsed creation response, kept for diagnostics
    """

    id: str
    upload_targets: Mapping[str, str] = field(default_factory=dict)
    checkout_setup_url: str | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Partner order id is required")
        object.__setattr__(self, "upload_targets", MappingProxyType(dict(self.upload_targets)))


@dataclass(frozen=True)
class CheckoutResult:
    """
    Result returned to the client once the order is placed.

    Attributes:
        order_id: Partner order id
        checkout_url: Page where the customer pays
        strategy: Payload strategy that created the order
    """

    order_id: str
    checkout_url: str
    strategy: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the field names the frontend expects."""
        return {"orderId": self.order_id, "checkoutUrl": self.checkout_url, "strategy": self.strategy}
