"""
Modelos Pydantic para el endpoint de pedidos de libros.

El cuerpo se valida en el orquestador (para responder 400 con el mismo
formato que el resto de errores); estos modelos documentan el contrato
en OpenAPI y serializan la respuesta.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from printbridge.domain.models import CheckoutResult


class OrderBookRequest(BaseModel):
    """Cuerpo aceptado por POST /order-book (JSON o formulario)."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        json_schema_extra={
            "example": {
                "contentUrl": "https://storage.example.com/signed/book.pdf",
                "coverUrl": "https://storage.example.com/signed/cover.pdf",
                "pageCount": 120,
            }
        },
    )

    contentReference: Optional[str] = Field(default=None, description="URL o ruta de storage del PDF interior")
    contentUrl: Optional[str] = Field(default=None, description="Alias de contentReference")
    coverReference: Optional[str] = Field(default=None, description="URL o ruta de storage de la portada")
    coverUrl: Optional[str] = Field(default=None, description="Alias de coverReference")
    pageCount: Optional[Union[int, str]] = Field(default=None, description="Número de páginas (> 0)")
    quantity: Optional[Union[int, str]] = Field(default=1, description="Copias")
    title: Optional[str] = Field(default=None, description="Título de la publicación")


class OrderBookResponse(BaseModel):
    """Respuesta exitosa: pedido creado y URL de pago."""

    orderId: str
    checkoutUrl: str
    strategy: Optional[str] = None

    @classmethod
    def from_result(cls, result: CheckoutResult) -> "OrderBookResponse":
        return cls(orderId=result.order_id, checkoutUrl=result.checkout_url, strategy=result.strategy)


class ErrorResponse(BaseModel):
    """Formato común de error."""

    model_config = ConfigDict(extra="allow")

    error: str
    error_code: str
    error_type: str
    path: Optional[str] = None
    timestamp: Optional[str] = None
    request_id: Optional[str] = None


class MethodNotAllowedResponse(BaseModel):
    """Respuesta para métodos distintos de POST en /order-book."""

    error: str
    allowed: List[str]
    receivedMethod: str


def order_book_openapi_extra() -> Dict[str, Any]:
    """Documenta el cuerpo JSON y de formulario, que se leen a mano."""
    schema = OrderBookRequest.model_json_schema()
    return {
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": schema},
                "application/x-www-form-urlencoded": {"schema": schema},
                "multipart/form-data": {"schema": schema},
            },
        }
    }
