"""
Endpoints para pedidos de libros.

``router`` se monta en /api/v1/orders y ``legacy_router`` expone la ruta
histórica /order-book que usa el frontend. Ambos aceptan JSON o
formulario y devuelven ``{orderId, checkoutUrl}``.
"""

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from printbridge.api.v1.schemas.order_schemas import (
    ErrorResponse,
    MethodNotAllowedResponse,
    OrderBookResponse,
    order_book_openapi_extra,
)
from printbridge.core.config import get_settings
from printbridge.domain.models import OrderRequest
from printbridge.services.orders.orchestrator import OrderOrchestrator
from printbridge.utils.error_handler import ConfigurationError, PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()
legacy_router = APIRouter()

ORDER_BOOK_PATH = "/order-book"
ORDER_BOOK_ALLOWED_METHODS = ["POST", "OPTIONS"]

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

ORDER_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid order request"},
    413: {"model": ErrorResponse, "description": "Request body too large"},
    500: {"model": ErrorResponse, "description": "Partner configuration error"},
    502: {"model": ErrorResponse, "description": "Partner, storage or file transfer failure"},
}


def get_orchestrator(request: Request) -> OrderOrchestrator:
    """Dependencia: orquestador creado en el startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise ConfigurationError("Order service is not initialized", setting="orchestrator")
    return orchestrator


def get_max_body_bytes() -> int:
    """Dependencia: tamaño máximo aceptado para el cuerpo del pedido."""
    return get_settings().MAX_REQUEST_BODY_BYTES


def _declared_length(request: Request) -> int | None:
    try:
        return int(request.headers["content-length"])
    except (KeyError, ValueError):
        return None


async def _read_body(request: Request, max_bytes: int) -> bytes:
    """Lee el cuerpo por partes y corta en cuanto supera ``max_bytes``."""
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise PayloadTooLargeError(max_bytes)
    return bytes(body)


async def read_order_payload(request: Request, max_bytes: int) -> Dict[str, Any]:
    """
    Lee el cuerpo del request como JSON o formulario.

    Args:
        request: Request de FastAPI
        max_bytes: Tamaño máximo del cuerpo

    Returns:
        Dict con los campos recibidos

    Raises:
        PayloadTooLargeError: Si el cuerpo supera ``max_bytes``
        ValidationError: Si el cuerpo no es un objeto JSON ni un formulario
    """
    declared = _declared_length(request)
    if declared is not None and declared > max_bytes:
        raise PayloadTooLargeError(max_bytes, received_bytes=declared)

    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}

    raw = await _read_body(request, max_bytes)
    if not raw.strip():
        return {}

    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError("Request body must be a JSON object or a form", field="body") from e

    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object or a form", field="body")
    return payload


async def _place_order(request: Request, orchestrator: OrderOrchestrator, max_body_bytes: int) -> OrderBookResponse:
    payload = await read_order_payload(request, max_body_bytes)
    order_request = OrderRequest.from_payload(payload)

    logger.info(
        f"📚 Order request - pages: {order_request.page_count} - "
        f"cover: {'yes' if order_request.cover_reference else 'no'}"
    )

    result = await orchestrator.place_order(order_request)
    logger.info(f"✅ Order {result.order_id} ready for checkout (strategy: {result.strategy})")
    return OrderBookResponse.from_result(result)


@router.post(
    "",
    response_model=OrderBookResponse,
    status_code=status.HTTP_200_OK,
    summary="Create book order",
    responses=ORDER_RESPONSES,
    openapi_extra=order_book_openapi_extra(),
)
async def create_order(
    request: Request,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
    max_body_bytes: int = Depends(get_max_body_bytes),
) -> OrderBookResponse:
    """
    Crea el pedido en el partner, transfiere los PDFs y obtiene la URL de pago.

    Args:
        request: Request con contentReference/contentUrl, pageCount y opcionalmente la portada
        orchestrator: Orquestador de pedidos
        max_body_bytes: Tamaño máximo del cuerpo

    Returns:
        OrderBookResponse: orderId y checkoutUrl
    """
    return await _place_order(request, orchestrator, max_body_bytes)


@legacy_router.post(
    ORDER_BOOK_PATH,
    response_model=OrderBookResponse,
    status_code=status.HTTP_200_OK,
    summary="Create book order (frontend route)",
    responses=ORDER_RESPONSES,
    openapi_extra=order_book_openapi_extra(),
)
async def order_book(
    request: Request,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
    max_body_bytes: int = Depends(get_max_body_bytes),
) -> OrderBookResponse:
    """Ruta histórica del frontend; mismo comportamiento que POST /api/v1/orders."""
    return await _place_order(request, orchestrator, max_body_bytes)


@legacy_router.options(ORDER_BOOK_PATH, include_in_schema=False)
async def order_book_options() -> Response:
    """OPTIONS sin cabeceras de preflight (los preflight los responde CORS)."""
    return Response(
        status_code=status.HTTP_204_NO_CONTENT,
        headers={"Allow": ", ".join(ORDER_BOOK_ALLOWED_METHODS)},
    )


@legacy_router.api_route(
    ORDER_BOOK_PATH,
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
    status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
    responses={405: {"model": MethodNotAllowedResponse}},
    include_in_schema=False,
)
async def order_book_method_not_allowed(request: Request) -> JSONResponse:
    """Responde 405 con los métodos permitidos para ayudar a depurar el frontend."""
    logger.warning(f"⚠️ {request.method} {ORDER_BOOK_PATH} - method not allowed")
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={
            "error": f"Method Not Allowed on {ORDER_BOOK_PATH}",
            "allowed": ORDER_BOOK_ALLOWED_METHODS,
            "receivedMethod": request.method,
        },
        headers={"Allow": ", ".join(ORDER_BOOK_ALLOWED_METHODS)},
    )
