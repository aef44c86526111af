"""
Manejadores de excepciones centralizados para la aplicación FastAPI.

Todas las respuestas de error comparten la forma
``{error, error_code, error_type, ...details, path, timestamp, request_id}``
para que el frontend y los operadores puedan diagnosticar sin credenciales.
"""

import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from printbridge.core.config import get_settings
from printbridge.utils.error_handler import (
    AppException,
    ErrorSeverity,
    FileTransferError,
    PartnerHTTPError,
    ValidationError,
    create_error_response,
    log_error,
)

logger = logging.getLogger(__name__)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or request.headers.get("X-Request-ID")


def _envelope(request: Request, content: Dict[str, Any]) -> Dict[str, Any]:
    """Agrega path, timestamp y request_id al cuerpo de error."""
    content.update(
        {
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": _request_id(request),
        }
    )
    return content


def _headers(request: Request) -> Dict[str, str]:
    request_id = _request_id(request)
    return {"X-Request-ID": request_id} if request_id else {}


async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """
    Manejador para datos de entrada inválidos (400).

    Args:
        request: Request de FastAPI
        exc: Excepción de validación

    Returns:
        JSONResponse: Respuesta JSON con el campo inválido
    """
    logger.warning(f"Validation Exception: {exc.message} - Field: {exc.field} - URL: {request.url.path}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, create_error_response(exc)),
        headers=_headers(request),
    )


async def file_transfer_exception_handler(request: Request, exc: FileTransferError) -> JSONResponse:
    """
    Manejador para fallos de transferencia de PDFs.

    El pedido ya existe en el partner: se loggea su id para conciliarlo a mano.
    """
    log_error(exc, {"path": request.url.path, "order_id": exc.order_id, "role": exc.role})
    logger.error(f"Order {exc.order_id} was created at the partner but its '{exc.role}' file was not transferred")

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, create_error_response(exc)),
        headers=_headers(request),
    )


async def partner_exception_handler(request: Request, exc: PartnerHTTPError) -> JSONResponse:
    """
    Manejador para errores HTTP del partner o del storage (502).

    El cuerpo recortado de la respuesta externa se incluye para depurar la integración.
    """
    log_error(exc, {"path": request.url.path})

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, create_error_response(exc)),
        headers=_headers(request),
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Manejador para el resto de excepciones de la aplicación.

    Args:
        request: Request de FastAPI
        exc: Excepción personalizada de la app

    Returns:
        JSONResponse: Respuesta JSON con error formateado
    """
    level = logging.CRITICAL if exc.severity == ErrorSeverity.CRITICAL else logging.ERROR
    log_error(exc, {"path": request.url.path}, level=level)

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(request, create_error_response(exc)),
        headers=_headers(request),
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Manejador para errores de validación de FastAPI.

    Se responden con 400 como el resto de errores de entrada.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or None
    logger.warning(f"Request validation failed - URL: {request.url.path} - Errors: {len(errors)}")

    return JSONResponse(
        status_code=400,
        content=_envelope(
            request,
            {
                "error": first.get("msg", "Invalid request"),
                "error_code": "VALIDATION_ERROR",
                "error_type": "RequestValidationError",
                "field": field,
            },
        ),
        headers=_headers(request),
    )


async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Manejador para HTTPException de Starlette (404, 405, ...).

    Args:
        request: Request de FastAPI
        exc: StarletteHTTPException

    Returns:
        JSONResponse: Respuesta JSON estandarizada
    """
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} - URL: {request.url.path}")

    headers = dict(getattr(exc, "headers", None) or {})
    headers.update(_headers(request))
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(
            request,
            {
                "error": exc.detail,
                "error_code": f"HTTP_{exc.status_code}",
                "error_type": "HTTPException",
            },
        ),
        headers=headers,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Manejador global para excepciones no capturadas.

    Args:
        request: Request de FastAPI
        exc: Excepción no manejada

    Returns:
        JSONResponse: Respuesta JSON de error interno
    """
    logger.error(
        f"Unhandled Exception: {str(exc)} - "
        f"Type: {type(exc).__name__} - "
        f"URL: {request.url.path} - "
        f"Traceback: {traceback.format_exc()}"
    )

    # Respuesta genérica (sin exponer detalles internos)
    error_message = "Internal server error occurred"
    if get_settings().DEBUG:
        error_message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=500,
        content=_envelope(
            request,
            {
                "error": error_message,
                "error_code": "INTERNAL_ERROR",
                "error_type": "internal_server_error",
            },
        ),
    )


def configure_exception_handlers(app: FastAPI) -> None:
    """
    Configura todos los manejadores de excepciones de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando manejadores de excepciones...")

    # Manejadores específicos (orden de especificidad)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(FileTransferError, file_transfer_exception_handler)
    app.add_exception_handler(PartnerHTTPError, partner_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    # Manejadores HTTP estándar
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)

    # Manejador global (debe ser el último)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("✅ Manejadores de excepciones configurados correctamente")
