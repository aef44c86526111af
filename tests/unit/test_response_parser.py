"""Tests unitarios para el parser de respuestas del partner."""

import pytest

from printbridge.core.config import Settings
from printbridge.services.orders.response_parser import PartnerResponseParser, get_path
from printbridge.utils.error_handler import MalformedPartnerResponseError

UPLOAD_PATHS = {
    "content": "items.0.files.content.uploadUrl",
    "cover": "items.0.files.cover.uploadUrl",
}


@pytest.fixture
def parser():
    return PartnerResponseParser(
        order_id_path="id",
        upload_target_paths=UPLOAD_PATHS,
        checkout_setup_path="checkout.setupUrl",
        checkout_url_path="paymentUrl",
    )


class TestGetPath:
    """Tests para get_path."""

    def test_nested_dicts_and_list_index(self):
        """Debe recorrer diccionarios e índices de listas."""
        data = {"items": [{"files": {"content": {"uploadUrl": "https://up/1"}}}]}

        assert get_path(data, "items.0.files.content.uploadUrl") == "https://up/1"

    def test_typed_list_entries(self):
        """Debe seleccionar por 'type' cuando el segmento no es numérico."""
        data = {"items": [{"files": [{"type": "cover", "uploadUrl": "c"}, {"type": "content", "uploadUrl": "i"}]}]}

        assert get_path(data, "items.0.files.content.uploadUrl") == "i"

    def test_missing_segment_returns_default(self):
        """Debe devolver el default si falta cualquier segmento."""
        assert get_path({"items": []}, "items.0.files", default="x") == "x"
        assert get_path({"a": 1}, None) is None


class TestParseOrder:
    """Tests para PartnerResponseParser.parse_order."""

    def test_parse_full_order(self, parser):
        """Debe extraer id, destinos de subida y referencia de checkout."""
        payload = {
            "id": 42,
            "items": [{"files": {"content": {"uploadUrl": "https://up/c"}, "cover": {"uploadUrl": "https://up/k"}}}],
            "checkout": {"setupUrl": "/orders/42/checkout"},
        }

        order = parser.parse_order(payload, required_roles=["content", "cover"])

        assert order.id == "42"
        assert dict(order.upload_targets) == {"content": "https://up/c", "cover": "https://up/k"}
        assert order.checkout_setup_url == "/orders/42/checkout"

    def test_missing_upload_target_raises(self, parser):
        """Debe fallar si falta el destino de un rol requerido."""
        payload = {"id": "ORD1", "items": [{"files": {}}]}

        with pytest.raises(MalformedPartnerResponseError) as exc_info:
            parser.parse_order(payload, required_roles=["content"])

        assert exc_info.value.order_id == "ORD1"
        assert exc_info.value.missing == ["items.0.files.content.uploadUrl"]

    def test_targets_not_required_for_url_strategies(self, parser):
        """Debe aceptar respuestas sin destinos cuando no se requieren roles."""
        order = parser.parse_order({"id": "P1"})

        assert order.id == "P1"
        assert dict(order.upload_targets) == {}
        assert order.checkout_setup_url is None

    @pytest.mark.parametrize("payload", [None, [], "text", {"id": ""}, {"id": None}, {"name": "x"}])
    def test_missing_order_id_raises(self, parser, payload):
        """Debe fallar si la respuesta no es un objeto o no tiene id."""
        with pytest.raises(MalformedPartnerResponseError) as exc_info:
            parser.parse_order(payload, body_text="raw body")

        assert exc_info.value.status_code == 502
        assert exc_info.value.details["body"] == "raw body"

    def test_error_body_uses_configured_limit(self):
        """Debe recortar el cuerpo con el límite configurado en ERROR_BODY_MAX_CHARS."""
        settings = Settings(_env_file=None, ERROR_BODY_MAX_CHARS=10)
        parser = PartnerResponseParser.from_settings(settings)

        with pytest.raises(MalformedPartnerResponseError) as exc_info:
            parser.parse_order({"name": "x"}, body_text="x" * 50)

        assert exc_info.value.details["body"] == "x" * 10 + "... [truncated 40 chars]"


class TestExtractCheckoutUrl:
    """Tests para extract_checkout_url."""

    def test_returns_http_url(self, parser):
        """Debe devolver la URL de pago si es http(s)."""
        assert parser.extract_checkout_url({"paymentUrl": "https://pay/1"}) == "https://pay/1"

    @pytest.mark.parametrize("payload", [{}, {"paymentUrl": ""}, {"paymentUrl": "/relative"}, None])
    def test_rejects_missing_or_relative(self, parser, payload):
        """Debe devolver None si falta o no es absoluta."""
        assert parser.extract_checkout_url(payload) is None
