"""
Fixtures compartidas: partner simulado con aiohttp y configuración de prueba.

El partner simulado es un servidor aiohttp real que responde con las
respuestas encoladas por cada test y registra cada llamada recibida, así
los tests pueden contar llamadas (tokens, creación, subidas, checkout).
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from printbridge.core.config import Settings

PDF_BYTES = b"%PDF-1.4\n% test document\n"
COVER_BYTES = b"%PDF-1.4\n% test cover\n"


@dataclass
class RecordedCall:
    """Llamada recibida por el partner simulado."""

    method: str
    path: str
    headers: Dict[str, str]
    body: bytes
    content_type: str
    query: Dict[str, str] = field(default_factory=dict)


class MockPartner:
    """
    Servidor del partner (y del storage / fuentes de PDFs) para los tests.

    ``on(method, path, *responses)`` encola respuestas ``(status, payload)``;
    la última se repite cuando se agotan las anteriores.
    ``delay(method, path, seconds)`` retrasa la respuesta; la llamada se
    registra antes de esperar.
    """

    def __init__(self):
        self.base_url = ""
        self.calls: List[RecordedCall] = []
        self._responses: Dict[Tuple[str, str], List[Tuple[int, Any]]] = {}
        self._delays: Dict[Tuple[str, str], float] = {}

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def on(self, method: str, path: str, *responses: Tuple[int, Any]) -> None:
        self._responses[(method.upper(), path)] = list(responses)

    def delay(self, method: str, path: str, seconds: float) -> None:
        """Retrasa las respuestas de una ruta (para provocar timeouts del cliente)."""
        self._delays[(method.upper(), path)] = seconds

    def calls_to(self, method: str, path: Optional[str] = None) -> List[RecordedCall]:
        return [
            call for call in self.calls if call.method == method.upper() and (path is None or call.path == path)
        ]

    def count(self, method: str, path: Optional[str] = None) -> int:
        return len(self.calls_to(method, path))

    async def dispatch(self, request: web.Request) -> web.StreamResponse:
        body = await request.read()
        self.calls.append(
            RecordedCall(
                method=request.method,
                path=request.path,
                headers=dict(request.headers),
                body=body,
                content_type=request.content_type,
                query=dict(request.query),
            )
        )

        seconds = self._delays.get((request.method, request.path))
        if seconds:
            await asyncio.sleep(seconds)

        queue = self._responses.get((request.method, request.path))
        if not queue:
            return web.json_response({"error": f"no mock for {request.method} {request.path}"}, status=404)

        status, payload = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(payload, bytes):
            return web.Response(status=status, body=payload, content_type="application/pdf")
        if isinstance(payload, str):
            return web.Response(status=status, text=payload)
        if payload is None:
            return web.Response(status=status)
        return web.json_response(payload, status=status)

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.dispatch)
        return app


@pytest.fixture
async def partner():
    """Partner simulado escuchando en un puerto local."""
    mock = MockPartner()
    server = TestServer(mock.build_app())
    await server.start_server()
    mock.base_url = str(server.make_url("/")).rstrip("/")
    yield mock
    await server.close()


@pytest.fixture
async def http_session():
    """Sesión aiohttp compartida por los clientes bajo prueba."""
    session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=5))
    yield session
    await session.close()


@pytest.fixture
def make_settings(partner):
    """Fábrica de Settings apuntando al partner simulado (sin leer .env)."""

    def _make(**overrides) -> Settings:
        values: Dict[str, Any] = {
            "ENVIRONMENT": "testing",
            "PARTNER_BASE_URL": partner.base_url,
            "PARTNER_API_KEY": "test-api-key-1234",
            "PARTNER_OFFERING_ID": "1234",
            "PARTNER_ORDER_PATH": "/orders",
            "ORDER_STRATEGIES": ["item_files"],
            "UPLOAD_RETRY_DELAY_SECONDS": 0,
            "SUPABASE_URL": partner.base_url,
            "SUPABASE_SERVICE_KEY": "service-key",
            "SUPABASE_BUCKET": "books",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


def item_order_response(partner: MockPartner, order_id: str = "ORD1", cover: bool = False, checkout: bool = True):
    """Respuesta de creación de pedido con destinos de subida por rol."""
    files: Dict[str, Any] = {"content": {"uploadUrl": partner.url(f"/upload/{order_id}/content")}}
    if cover:
        files["cover"] = {"uploadUrl": partner.url(f"/upload/{order_id}/cover")}
    body: Dict[str, Any] = {"id": order_id, "items": [{"files": files}]}
    if checkout:
        body["checkout"] = {"setupUrl": f"/orders/{order_id}/checkout"}
    return body


@pytest.fixture
def order_body(partner):
    """Construye respuestas de creación de pedido del partner simulado."""

    def _build(order_id: str = "ORD1", cover: bool = False, checkout: bool = True):
        return item_order_response(partner, order_id=order_id, cover=cover, checkout=checkout)

    return _build
