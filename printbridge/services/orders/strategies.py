"""
Order payload strategies.

Each strategy is a pure function building the partner request body from an
OrderRequest. Partners (and their environments) disagree on the payload
shape, so the orchestrator tries the configured strategies in order until
the partner accepts one. The registry name of the winner is recorded in the
CheckoutResult.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from printbridge.domain.models import OrderRequest
from printbridge.domain.models.order import CONTENT_ROLE, COVER_ROLE


@dataclass(frozen=True)
class StrategyContext:
    """
    Order data that comes from configuration rather than from the client.

    Attributes:
        offering_id: Partner product / offering identifier
        language: Publication language
        contact_email: Contact email sent with item orders (optional)
        shipping_address: Placeholder address; the partner checkout asks for the real one
    """

    offering_id: str
    language: str = "de"
    contact_email: Optional[str] = None
    shipping_address: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings) -> "StrategyContext":
        return cls(
            offering_id=settings.PARTNER_OFFERING_ID,
            language=settings.PARTNER_LANGUAGE,
            contact_email=settings.PARTNER_CONTACT_EMAIL,
            shipping_address=dict(settings.PARTNER_SHIPPING_ADDRESS),
        )


@dataclass(frozen=True)
class PayloadStrategy:
    """
    Named payload builder.

    Attributes:
        name: Registry name
        build: Pure function (OrderRequest, StrategyContext) -> request body
        transfers_files: Whether the partner expects the PDFs on its upload targets
    """

    name: str
    build: Callable[[OrderRequest, StrategyContext], Dict[str, Any]]
    transfers_files: bool


def _numeric_id(value: str) -> Any:
    """Offering ids are numeric at Peecho; keep anything else as sent."""
    text = str(value).strip()
    return int(text) if text.isdigit() else text


def build_peecho_publication(request: OrderRequest, context: StrategyContext) -> Dict[str, Any]:
    """Publication referencing the PDFs by URL; the partner fetches them itself."""
    file_details: Dict[str, Any] = {"interior": {"url": request.content_reference}}
    if request.cover_reference:
        file_details["cover"] = {"url": request.cover_reference}

    return {
        "title": request.title,
        "language": context.language,
        "products": [
            {
                "offering_id": _numeric_id(context.offering_id),
                "page_count": request.page_count,
                "file_details": file_details,
            }
        ],
    }


def _item_order(request: OrderRequest, context: StrategyContext, files: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {}
    if context.contact_email:
        body["email"] = context.contact_email
    body["items"] = [
        {
            "productId": context.offering_id,
            "pageCount": request.page_count,
            "quantity": request.quantity,
            "files": files,
        }
    ]
    body["shipping"] = {"address": dict(context.shipping_address)}
    return body


def build_item_files(request: OrderRequest, context: StrategyContext) -> Dict[str, Any]:
    """Item order with one file slot per role; upload URLs come back per slot."""
    files: Dict[str, Any] = {CONTENT_ROLE: {}}
    if request.cover_reference:
        files[COVER_ROLE] = {}
    return _item_order(request, context, files)


def build_item_file_array(request: OrderRequest, context: StrategyContext) -> Dict[str, Any]:
    """Item order with the file slots as an array of typed entries."""
    files = [{"type": CONTENT_ROLE}]
    if request.cover_reference:
        files.append({"type": COVER_ROLE})
    return _item_order(request, context, files)


STRATEGY_REGISTRY: Dict[str, PayloadStrategy] = {
    "peecho_publication": PayloadStrategy("peecho_publication", build_peecho_publication, transfers_files=False),
    "item_files": PayloadStrategy("item_files", build_item_files, transfers_files=True),
    "item_file_array": PayloadStrategy("item_file_array", build_item_file_array, transfers_files=True),
}


def get_strategy(name: str) -> PayloadStrategy:
    """
    Look up a strategy by name.

    Raises:
        KeyError: Unknown strategy
    """
    try:
        return STRATEGY_REGISTRY[name]
    except KeyError:
        raise KeyError(f"Unknown order strategy '{name}'. Available: {sorted(STRATEGY_REGISTRY)}") from None
