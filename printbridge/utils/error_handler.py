"""
Sistema de manejo de errores personalizado.

Este módulo define todas las excepciones del flujo de pedidos de impresión
y proporciona utilidades para manejo consistente de errores.

Jerarquía:
    AppException (base)
    ├── ValidationError                - datos del cliente inválidos (400)
    │     └── PayloadTooLargeError     - cuerpo del request demasiado grande (413)
    ├── AuthConfigError                - credenciales del partner ausentes (500)
    ├── ConfigurationError             - configuración del pedido incompleta (500)
    ├── TokenRequestError              - endpoint OAuth rechazó las credenciales (502)
    ├── OrderCreationError             - creación del pedido rechazada (502)
    ├── MalformedPartnerResponseError  - faltan campos esperados en la respuesta (502)
    ├── FileTransferError              - falló la descarga o subida de un PDF (502)
    │     cause: DownloadError | UploadError
    └── CheckoutError                  - no se obtuvo URL de pago (502)
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Límite por defecto para cuerpos de respuesta incluidos en errores
DEFAULT_BODY_MAX_CHARS = 2000


class ErrorCode(Enum):
    """
    Códigos de error estandarizados para la aplicación.
    """

    # Errores generales
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Errores de autenticación con el partner
    AUTH_CONFIG_MISSING = "AUTH_CONFIG_MISSING"
    TOKEN_REQUEST_FAILED = "TOKEN_REQUEST_FAILED"

    # Errores del flujo de pedido
    ORDER_CREATION_FAILED = "ORDER_CREATION_FAILED"
    MALFORMED_PARTNER_RESPONSE = "MALFORMED_PARTNER_RESPONSE"
    FILE_TRANSFER_FAILED = "FILE_TRANSFER_FAILED"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    CHECKOUT_FAILED = "CHECKOUT_FAILED"


class ErrorSeverity(Enum):
    """
    Niveles de severidad para errores.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def truncate_body(body: Optional[str], max_chars: int = DEFAULT_BODY_MAX_CHARS) -> Optional[str]:
    """
    Recorta un cuerpo de respuesta para incluirlo en diagnósticos.

    Args:
        body: Texto de la respuesta del servicio externo
        max_chars: Longitud máxima conservada

    Returns:
        str: Texto recortado (con marca de truncado) o None
    """
    if body is None:
        return None
    if len(body) <= max_chars:
        return body
    return f"{body[:max_chars]}... [truncated {len(body) - max_chars} chars]"


class AppException(Exception):
    """
    Excepción base para todas las excepciones personalizadas de la aplicación.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        is_retryable: bool = False,
    ):
        """
        Inicializa la excepción.

        Args:
            message: Mensaje de error
            error_code: Código de error estandarizado
            details: Información adicional del error (nunca credenciales)
            status_code: Código HTTP con el que se responde al cliente
            severity: Severidad del error
            is_retryable: Si la operación puede reintentarse
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        self.severity = severity
        self.is_retryable = is_retryable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convierte la excepción a diccionario.

        Returns:
            Dict: Representación de la excepción
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
            "status_code": self.status_code,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        """String representation del error."""
        return f"{self.error_code.value}: {self.message}"


class ValidationError(AppException):
    """
    Excepción para datos de entrada inválidos del cliente.
    """

    def __init__(self, message: str, field: str, invalid_value: Any = None, **kwargs):
        """
        Inicializa la excepción de validación.

        Args:
            message: Mensaje de error
            field: Campo que falló la validación
            invalid_value: Valor que causó el error
            **kwargs: Argumentos adicionales para AppException
        """
        kwargs.setdefault("error_code", ErrorCode.VALIDATION_ERROR)
        kwargs.setdefault("status_code", 400)
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        super().__init__(message=message, **kwargs)
        self.field = field
        self.invalid_value = invalid_value

        self.details.update(
            {
                "field": field,
                "invalid_value": str(invalid_value) if invalid_value is not None else None,
            }
        )


class PayloadTooLargeError(ValidationError):
    """
    El cuerpo del request supera MAX_REQUEST_BODY_BYTES.
    """

    def __init__(self, max_bytes: int, received_bytes: Optional[int] = None, **kwargs):
        super().__init__(
            f"Request body exceeds {max_bytes} bytes",
            field="body",
            error_code=ErrorCode.PAYLOAD_TOO_LARGE,
            status_code=413,
            **kwargs,
        )
        self.max_bytes = max_bytes
        self.received_bytes = received_bytes
        self.details.update({"max_bytes": max_bytes, "received_bytes": received_bytes})


class AuthConfigError(AppException):
    """
    Faltan credenciales del partner (client id/secret o token precompartido).

    Error fatal de configuración: no se reintenta.
    """

    def __init__(self, message: str, missing: Optional[list] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.AUTH_CONFIG_MISSING,
            status_code=500,
            severity=ErrorSeverity.CRITICAL,
            **kwargs,
        )
        self.missing = missing or []
        self.details.update({"missing": self.missing})


class ConfigurationError(AppException):
    """
    Falta configuración del pedido (p. ej. PARTNER_OFFERING_ID).
    """

    def __init__(self, message: str, setting: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=500,
            severity=ErrorSeverity.CRITICAL,
            **kwargs,
        )
        self.setting = setting
        self.details.update({"setting": setting})


class PartnerHTTPError(AppException):
    """
    Base para fallos de un servicio externo que respondió (o no) a una llamada HTTP.

    Guarda el status y el cuerpo recortado para depurar la integración.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        status_code: int = 502,
        **kwargs,
    ):
        max_body_chars = kwargs.pop("max_body_chars", DEFAULT_BODY_MAX_CHARS)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message=message, error_code=error_code, status_code=status_code, **kwargs)
        self.status = status
        self.body = truncate_body(body, max_body_chars)
        self.details.update({"status": status, "body": self.body})


class TokenRequestError(PartnerHTTPError):
    """
    El endpoint de tokens rechazó el intercambio client-credentials.

    No se reintenta dentro de la misma llamada; la siguiente lo reintenta.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None, **kwargs):
        super().__init__(message, status=status, body=body, error_code=ErrorCode.TOKEN_REQUEST_FAILED, **kwargs)


class OrderCreationError(PartnerHTTPError):
    """
    El partner no aceptó la creación del pedido.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        strategy: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, status=status, body=body, error_code=ErrorCode.ORDER_CREATION_FAILED, **kwargs)
        self.strategy = strategy
        self.details.update({"strategy": strategy})

    @property
    def is_payload_rejection(self) -> bool:
        """True si el partner rechazó la forma del payload (400/422)."""
        return self.status in (400, 422)


class MalformedPartnerResponseError(AppException):
    """
    La respuesta del partner no contiene los campos que el flujo necesita.
    """

    def __init__(
        self,
        message: str,
        missing: Optional[list] = None,
        order_id: Optional[str] = None,
        body: Optional[str] = None,
        **kwargs,
    ):
        max_body_chars = kwargs.pop("max_body_chars", DEFAULT_BODY_MAX_CHARS)
        super().__init__(
            message=message,
            error_code=ErrorCode.MALFORMED_PARTNER_RESPONSE,
            status_code=502,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.missing = missing or []
        self.order_id = order_id
        self.details.update({"missing": self.missing, "order_id": order_id, "body": truncate_body(body, max_body_chars)})


class DownloadError(PartnerHTTPError):
    """
    La fuente del documento (URL firmada o storage) respondió con error.
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None, **kwargs):
        super().__init__(message, status=status, body=body, error_code=ErrorCode.DOWNLOAD_FAILED, **kwargs)


class UploadError(PartnerHTTPError):
    """
    El endpoint de subida del partner rechazó el documento.

    Los 5xx y timeouts (status None) se consideran transitorios.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        method: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("is_retryable", status is None or status >= 500)
        super().__init__(message, status=status, body=body, error_code=ErrorCode.UPLOAD_FAILED, **kwargs)
        self.method = method
        self.details.update({"method": method})


class FileTransferError(AppException):
    """
    Falló la transferencia de un rol (content/cover); aborta todo el pedido.
    """

    def __init__(self, role: str, cause: Exception, order_id: Optional[str] = None, **kwargs):
        super().__init__(
            message=f"File transfer failed for role '{role}': {getattr(cause, 'message', str(cause))}",
            error_code=ErrorCode.FILE_TRANSFER_FAILED,
            status_code=502,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.role = role
        self.cause = cause
        self.order_id = order_id

        cause_info: Dict[str, Any] = {"type": type(cause).__name__}
        if isinstance(cause, PartnerHTTPError):
            cause_info.update({"status": cause.status, "body": cause.body})
        self.details.update({"role": role, "order_id": order_id, "cause": cause_info})


class CheckoutError(PartnerHTTPError):
    """
    El partner no devolvió una URL de checkout utilizable.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: Optional[str] = None,
        order_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, status=status, body=body, error_code=ErrorCode.CHECKOUT_FAILED, **kwargs)
        self.order_id = order_id
        self.details.update({"order_id": order_id})


# === FUNCIONES DE UTILIDAD ===


def create_error_response(exception: AppException) -> Dict[str, Any]:
    """
    Crea el cuerpo JSON de error que se devuelve al cliente.

    Los detalles se aplanan al nivel superior: ``{error, error_code, ...details}``.

    Args:
        exception: Excepción de la aplicación

    Returns:
        Dict: Respuesta de error
    """
    content: Dict[str, Any] = {
        "error": exception.message,
        "error_code": exception.error_code.value,
        "error_type": exception.__class__.__name__,
    }
    for key, value in exception.details.items():
        content.setdefault(key, value)
    return content


def log_error(exception: Exception, context: Optional[Dict[str, Any]] = None, level: int = logging.ERROR) -> None:
    """
    Loggea un error de manera consistente.

    Args:
        exception: Excepción a loggear
        context: Contexto adicional
        level: Nivel de logging
    """
    context = context or {}

    if isinstance(exception, AppException):
        message = f"{exception.error_code.value}: {exception.message}"
        extra = {
            "error_code": exception.error_code.value,
            "severity": exception.severity.value,
            "is_retryable": exception.is_retryable,
            "error_details": exception.details,
            **context,
        }
    else:
        message = f"Unhandled exception: {type(exception).__name__}: {str(exception)}"
        extra = dict(context)

    logger.log(level, message, extra=extra)
