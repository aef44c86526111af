"""
OrderRequestValidator service for validating book orders before any partner call.

This service follows SRP by focusing only on validation of the client request.
"""

import logging
from typing import Any

from printbridge.domain.models import OrderRequest
from printbridge.utils.error_handler import ValidationError

logger = logging.getLogger(__name__)


def _is_positive_int(value: Any) -> bool:
    # bool is an int subclass; a JSON true is not a page count
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class OrderRequestValidator:
    """
    Validates an OrderRequest.

    Responsibilities:
    - Content reference present
    - Page count is a positive integer
    - Quantity is a positive integer
    - Cover reference, when given, is a string
    """

    def __init__(self, max_page_count: int | None = None):
        """
        Args:
            max_page_count: Upper bound for page count (None disables the check)
        """
        self.max_page_count = max_page_count

    def validate(self, request: OrderRequest) -> OrderRequest:
        """
        Validate the request and return it unchanged.

        Raises:
            ValidationError: If any field is missing or invalid
        """
        self._validate_content_reference(request)
        self._validate_page_count(request)
        self._validate_quantity(request)
        self._validate_cover_reference(request)

        logger.debug(f"Order request validation passed (pageCount={request.page_count})")
        return request

    def _validate_content_reference(self, request: OrderRequest) -> None:
        reference = request.content_reference
        if not isinstance(reference, str) or not reference.strip():
            raise ValidationError(
                "Missing fields: contentReference (or contentUrl) and pageCount required",
                field="contentReference",
                invalid_value=reference,
            )

    def _validate_page_count(self, request: OrderRequest) -> None:
        page_count = request.page_count
        if page_count is None:
            raise ValidationError(
                "Missing fields: contentReference (or contentUrl) and pageCount required",
                field="pageCount",
            )
        if not _is_positive_int(page_count):
            raise ValidationError(
                "pageCount must be an integer greater than 0",
                field="pageCount",
                invalid_value=page_count,
            )
        if self.max_page_count is not None and page_count > self.max_page_count:
            raise ValidationError(
                f"pageCount must not exceed {self.max_page_count}",
                field="pageCount",
                invalid_value=page_count,
            )

    def _validate_quantity(self, request: OrderRequest) -> None:
        if not _is_positive_int(request.quantity):
            raise ValidationError(
                "quantity must be an integer greater than 0",
                field="quantity",
                invalid_value=request.quantity,
            )

    def _validate_cover_reference(self, request: OrderRequest) -> None:
        cover = request.cover_reference
        if cover is not None and (not isinstance(cover, str) or not cover.strip()):
            raise ValidationError(
                "coverReference must be a non-empty string",
                field="coverReference",
                invalid_value=cover,
            )
