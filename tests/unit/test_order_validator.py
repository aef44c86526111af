"""Tests unitarios para la validación de pedidos y el modelo OrderRequest."""

import pytest

from printbridge.domain.models import CheckoutResult, OrderRequest, PartnerOrder
from printbridge.services.orders.validators import OrderRequestValidator
from printbridge.utils.error_handler import ValidationError


class TestOrderRequestFromPayload:
    """Tests para OrderRequest.from_payload."""

    def test_accepts_content_url_alias(self):
        """Debe aceptar contentUrl como alias de contentReference."""
        request = OrderRequest.from_payload({"contentUrl": "https://x/a.pdf", "pageCount": 10})

        assert request.content_reference == "https://x/a.pdf"
        assert request.page_count == 10
        assert request.quantity == 1
        assert request.roles == {"content": "https://x/a.pdf"}

    def test_coerces_numeric_strings_from_forms(self):
        """Debe convertir pageCount y quantity recibidos como texto."""
        request = OrderRequest.from_payload({"contentReference": "books/a.pdf", "pageCount": "24", "quantity": "2"})

        assert request.page_count == 24
        assert request.quantity == 2

    def test_cover_adds_role(self):
        """Debe agregar el rol cover cuando viene coverUrl."""
        request = OrderRequest.from_payload(
            {"contentUrl": "https://x/a.pdf", "coverUrl": "https://x/c.pdf", "pageCount": 10}
        )

        assert request.roles == {"content": "https://x/a.pdf", "cover": "https://x/c.pdf"}


class TestOrderRequestValidator:
    """Tests para OrderRequestValidator."""

    def setup_method(self):
        self.validator = OrderRequestValidator()

    def test_valid_request_passes(self):
        """Debe aceptar un pedido completo."""
        request = OrderRequest(content_reference="https://x/a.pdf", page_count=12)

        assert self.validator.validate(request) is request

    def test_missing_content_reference(self):
        """Debe rechazar un pedido sin referencia de contenido."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(OrderRequest(content_reference=None, page_count=12))

        assert exc_info.value.field == "contentReference"
        assert exc_info.value.status_code == 400
        assert "pageCount required" in exc_info.value.message

    def test_missing_page_count(self):
        """Debe rechazar un pedido sin pageCount."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(OrderRequest(content_reference="https://x/a.pdf", page_count=None))

        assert exc_info.value.field == "pageCount"

    @pytest.mark.parametrize("page_count", [0, -3, "many", 2.5, True])
    def test_invalid_page_count(self, page_count):
        """Debe rechazar pageCount que no sea entero positivo."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(OrderRequest(content_reference="https://x/a.pdf", page_count=page_count))

        assert exc_info.value.field == "pageCount"

    def test_page_count_upper_bound(self):
        """Debe aplicar ORDER_MAX_PAGE_COUNT cuando está configurado."""
        validator = OrderRequestValidator(max_page_count=500)

        with pytest.raises(ValidationError):
            validator.validate(OrderRequest(content_reference="https://x/a.pdf", page_count=501))
        validator.validate(OrderRequest(content_reference="https://x/a.pdf", page_count=500))

    def test_invalid_quantity(self):
        """Debe rechazar quantity menor que 1."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(OrderRequest(content_reference="https://x/a.pdf", page_count=5, quantity=0))

        assert exc_info.value.field == "quantity"


class TestOrderModels:
    """Tests para PartnerOrder y CheckoutResult."""

    def test_partner_order_requires_id(self):
        """Debe rechazar un PartnerOrder sin id."""
        with pytest.raises(ValueError):
            PartnerOrder(id="")

    def test_partner_order_targets_are_read_only(self):
        """Debe exponer los destinos de subida como mapping inmutable."""
        order = PartnerOrder(id="ORD1", upload_targets={"content": "https://up/1"})

        with pytest.raises(TypeError):
            order.upload_targets["content"] = "https://other"

    def test_checkout_result_serialization(self):
        """Debe serializar con los nombres que espera el frontend."""
        result = CheckoutResult(order_id="ORD1", checkout_url="https://pay/1", strategy="item_files")

        assert result.to_dict() == {"orderId": "ORD1", "checkoutUrl": "https://pay/1", "strategy": "item_files"}
