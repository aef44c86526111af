"""
Partner response parser.

Reads the fields the workflow needs out of partner responses using
configurable dotted paths (``items.0.files.content.uploadUrl``). Field
names vary per partner, so they are configuration, not code.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from printbridge.domain.models import PartnerOrder
from printbridge.utils.error_handler import DEFAULT_BODY_MAX_CHARS, MalformedPartnerResponseError

logger = logging.getLogger(__name__)

_MISSING = object()


def get_path(data: Any, path: Optional[str], default: Any = None) -> Any:
    """
    Resolve a dotted path inside parsed JSON.

    Numeric segments index lists. A non-numeric segment applied to a list
    selects the element whose ``type`` equals the segment, so
    ``files.content`` works for both ``{"content": {...}}`` and
    ``[{"type": "content", ...}]``.

    Args:
        data: Parsed JSON
        path: Dotted path (empty or None returns ``default``)
        default: Value returned when any segment is missing

    Returns:
        Any: Value found or ``default``
    """
    if not path:
        return default

    current = data
    for segment in path.split("."):
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current


def _step(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(segment, _MISSING)
    if isinstance(node, list):
        if segment.isdigit():
            index = int(segment)
            return node[index] if index < len(node) else _MISSING
        for item in node:
            if isinstance(item, Mapping) and item.get("type") == segment:
                return item
    return _MISSING


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


class PartnerResponseParser:
    """
    Extracts a PartnerOrder and the checkout URL from partner responses.
    """

    def __init__(
        self,
        order_id_path: str = "id",
        upload_target_paths: Optional[Dict[str, str]] = None,
        checkout_setup_path: Optional[str] = None,
        checkout_url_path: str = "paymentUrl",
        max_body_chars: int = DEFAULT_BODY_MAX_CHARS,
    ):
        self.order_id_path = order_id_path
        self.upload_target_paths = dict(upload_target_paths or {})
        self.checkout_setup_path = checkout_setup_path
        self.checkout_url_path = checkout_url_path
        self.max_body_chars = max_body_chars

    @classmethod
    def from_settings(cls, settings) -> "PartnerResponseParser":
        return cls(
            order_id_path=settings.PARTNER_ORDER_ID_PATH,
            upload_target_paths=settings.PARTNER_UPLOAD_TARGET_PATHS,
            checkout_setup_path=settings.PARTNER_CHECKOUT_SETUP_PATH,
            checkout_url_path=settings.PARTNER_CHECKOUT_URL_PATH,
            max_body_chars=settings.ERROR_BODY_MAX_CHARS,
        )

    def parse_order(
        self,
        payload: Any,
        required_roles: Iterable[str] = (),
        body_text: Optional[str] = None,
    ) -> PartnerOrder:
        """
        Build a PartnerOrder from the order creation response.

        Args:
            payload: Parsed JSON body
            required_roles: Roles whose upload target must be present
            body_text: Raw body, attached to errors for diagnostics

        Returns:
            PartnerOrder: Immutable order

        Raises:
            MalformedPartnerResponseError: Body is not a JSON object, or the
                order id or a required upload target is missing
        """
        if not isinstance(payload, Mapping):
            raise MalformedPartnerResponseError(
                "Partner order response is not a JSON object",
                missing=[self.order_id_path],
                body=body_text,
                max_body_chars=self.max_body_chars,
            )

        order_id = _as_text(get_path(payload, self.order_id_path))
        if not order_id:
            raise MalformedPartnerResponseError(
                f"Partner order response has no order id at '{self.order_id_path}'",
                missing=[self.order_id_path],
                body=body_text,
                max_body_chars=self.max_body_chars,
            )

        upload_targets = {}
        for role, path in self.upload_target_paths.items():
            target = _as_text(get_path(payload, path))
            if target:
                upload_targets[role] = target

        missing = [
            self.upload_target_paths.get(role, f"<no path configured for role '{role}'>")
            for role in required_roles
            if role not in upload_targets
        ]
        if missing:
            raise MalformedPartnerResponseError(
                f"Partner order {order_id} response has no upload target for: {', '.join(missing)}",
                missing=missing,
                order_id=order_id,
                body=body_text,
                max_body_chars=self.max_body_chars,
            )

        checkout_setup_url = _as_text(get_path(payload, self.checkout_setup_path))
        logger.debug(
            f"Parsed partner order {order_id}: roles={sorted(upload_targets)}, "
            f"checkout_setup={'yes' if checkout_setup_url else 'no'}"
        )
        return PartnerOrder(
            id=order_id,
            upload_targets=upload_targets,
            checkout_setup_url=checkout_setup_url,
            raw=dict(payload),
        )

    def extract_checkout_url(self, payload: Any) -> Optional[str]:
        """Payment URL from a checkout setup response, or None."""
        url = _as_text(get_path(payload, self.checkout_url_path))
        if url and url.lower().startswith(("http://", "https://")):
            return url
        return None
