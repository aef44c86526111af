"""
Integration tests for the HTTP boundary.

Requests go through the full FastAPI stack (middleware, exception handlers,
routers) with httpx's ASGI transport; the orchestrator behind it talks to
the simulated partner.
"""

import httpx
import pytest

from printbridge.api.v1.endpoints.orders import get_max_body_bytes
from printbridge.main import create_application
from printbridge.services.orders.orchestrator import create_orchestrator


@pytest.fixture
def app():
    return create_application()


@pytest.fixture
async def client(app, http_session, settings):
    app.state.orchestrator = create_orchestrator(http_session, settings)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


def mock_successful_order(partner, order_body, order_id="ORD1"):
    partner.on("GET", "/files/book.pdf", (200, b"%PDF-1.4"))
    partner.on("POST", "/orders", (201, order_body(order_id)))
    partner.on("PUT", f"/upload/{order_id}/content", (200, None))
    partner.on("POST", f"/orders/{order_id}/checkout", (200, {"paymentUrl": f"https://pay/{order_id}"}))


class TestOrderBook:
    """POST /order-book and /api/v1/orders."""

    @pytest.mark.asyncio
    async def test_json_order(self, client, partner, order_body):
        """Should return orderId and checkoutUrl for a JSON body."""
        mock_successful_order(partner, order_body)

        response = await client.post(
            "/order-book", json={"contentUrl": partner.url("/files/book.pdf"), "pageCount": 120}
        )

        assert response.status_code == 200
        assert response.json() == {"orderId": "ORD1", "checkoutUrl": "https://pay/ORD1", "strategy": "item_files"}

    @pytest.mark.asyncio
    async def test_form_order(self, client, partner, order_body):
        """Should accept an urlencoded form with pageCount as text."""
        mock_successful_order(partner, order_body)

        response = await client.post(
            "/order-book", data={"contentReference": partner.url("/files/book.pdf"), "pageCount": "12"}
        )

        assert response.status_code == 200
        assert response.json()["orderId"] == "ORD1"

    @pytest.mark.asyncio
    async def test_versioned_route(self, client, partner, order_body):
        """Should serve the same workflow under /api/v1/orders."""
        mock_successful_order(partner, order_body, order_id="ORD2")

        response = await client.post(
            "/api/v1/orders", json={"contentReference": partner.url("/files/book.pdf"), "pageCount": 8}
        )

        assert response.status_code == 200
        assert response.json()["checkoutUrl"] == "https://pay/ORD2"

    @pytest.mark.asyncio
    async def test_missing_fields_returns_400(self, client, partner):
        """Should answer 400 without calling the partner."""
        response = await client.post("/order-book", json={"contentUrl": "https://files/book.pdf"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Missing fields: contentReference (or contentUrl) and pageCount required"
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["field"] == "pageCount"
        assert body["path"] == "/order-book"
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_malformed_json_returns_400(self, client):
        """Should answer 400 for a body that is not a JSON object."""
        response = await client.post(
            "/order-book", content=b"[1, 2", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["field"] == "body"

    @pytest.mark.asyncio
    async def test_oversized_body_returns_413(self, app, client, partner):
        """Should reject a body above MAX_REQUEST_BODY_BYTES before parsing it."""
        app.dependency_overrides[get_max_body_bytes] = lambda: 64

        response = await client.post(
            "/order-book", json={"contentUrl": partner.url("/files/" + "x" * 100), "pageCount": 10}
        )

        assert response.status_code == 413
        body = response.json()
        assert body["error_code"] == "PAYLOAD_TOO_LARGE"
        assert body["max_bytes"] == 64
        assert body["received_bytes"] > 64
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_oversized_chunked_body_returns_413(self, app, client, partner):
        """Should stop reading a body without Content-Length once it exceeds the limit."""
        app.dependency_overrides[get_max_body_bytes] = lambda: 64

        async def chunks():
            yield b'{"contentUrl": "'
            yield b"x" * 100
            yield b'", "pageCount": 10}'

        response = await client.post(
            "/order-book", content=chunks(), headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 413
        assert response.json()["error_code"] == "PAYLOAD_TOO_LARGE"
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_partner_rejection_returns_502(self, client, partner):
        """Should map a partner 401 to 502 with the partner status and body."""
        partner.on("POST", "/orders", (401, {"error": "bad key"}))

        response = await client.post(
            "/order-book", json={"contentUrl": partner.url("/files/book.pdf"), "pageCount": 10}
        )

        assert response.status_code == 502
        body = response.json()
        assert body["error_code"] == "ORDER_CREATION_FAILED"
        assert body["status"] == 401
        assert "bad key" in body["body"]
        assert "test-api-key-1234" not in response.text

    @pytest.mark.asyncio
    async def test_file_transfer_failure_returns_502_with_order_id(self, client, partner, order_body):
        """Should include the role and partner order id when a transfer fails."""
        partner.on("GET", "/files/book.pdf", (410, "expired"))
        partner.on("POST", "/orders", (201, order_body("ORD3")))

        response = await client.post(
            "/order-book", json={"contentUrl": partner.url("/files/book.pdf"), "pageCount": 10}
        )

        assert response.status_code == 502
        body = response.json()
        assert body["error_code"] == "FILE_TRANSFER_FAILED"
        assert body["role"] == "content"
        assert body["order_id"] == "ORD3"
        assert body["cause"]["status"] == 410

    @pytest.mark.asyncio
    async def test_request_id_is_propagated(self, client):
        """Should echo the incoming X-Request-ID on error responses."""
        response = await client.post("/order-book", json={}, headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.json()["request_id"] == "req-42"

    @pytest.mark.asyncio
    async def test_uninitialized_service_returns_500(self, app):
        """Should answer a structured 500 when the orchestrator was never created."""
        app.state.orchestrator = None
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
            response = await http_client.post("/order-book", json={"contentUrl": "https://x", "pageCount": 1})

        assert response.status_code == 500
        assert response.json()["error_code"] == "CONFIGURATION_ERROR"


class TestOrderBookMethods:
    """Methods other than POST on /order-book."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE", "PATCH"])
    async def test_method_not_allowed(self, client, method):
        """Should answer 405 listing the allowed methods."""
        response = await client.request(method, "/order-book")

        assert response.status_code == 405
        assert response.headers["Allow"] == "POST, OPTIONS"
        assert response.json() == {
            "error": "Method Not Allowed on /order-book",
            "allowed": ["POST", "OPTIONS"],
            "receivedMethod": method,
        }

    @pytest.mark.asyncio
    async def test_head_not_allowed(self, client):
        """Should answer HEAD with the same 405 and Allow header as the other methods."""
        response = await client.head("/order-book")

        assert response.status_code == 405
        assert response.headers["Allow"] == "POST, OPTIONS"

    @pytest.mark.asyncio
    async def test_cors_preflight(self, client):
        """Should answer the browser preflight for the frontend origin."""
        response = await client.options(
            "/order-book",
            headers={"Origin": "https://frontend.example", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    @pytest.mark.asyncio
    async def test_plain_options(self, client):
        """Should answer a non-preflight OPTIONS with the Allow header."""
        response = await client.options("/order-book")

        assert response.status_code == 204
        assert response.headers["Allow"] == "POST, OPTIONS"


class TestHealth:
    """Static service endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client, partner):
        """Should answer ok without calling the partner."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()
        assert partner.calls == []

    @pytest.mark.asyncio
    async def test_version(self, client):
        """Should report the package version."""
        response = await client.get("/version")

        assert response.status_code == 200
        assert "version" in response.json()
