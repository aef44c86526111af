"""
Configuración centralizada de routers para la aplicación FastAPI.

Este módulo se encarga de registrar los routers de la API y los
endpoints base (raíz, health y versión).
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI

from printbridge.api.v1.endpoints.orders import legacy_router as legacy_orders_router
from printbridge.api.v1.endpoints.orders import router as orders_router
from printbridge.core.config import get_settings
from printbridge.version import VERSION, version_info

logger = logging.getLogger(__name__)


def create_root_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints raíz de la aplicación.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/", tags=["Root"], summary="API Info")
    async def root():
        """
        Endpoint raíz que proporciona información básica de la API.

        Returns:
            Dict con información de la API
        """
        settings = get_settings()
        return {
            "message": "PrintBridge API",
            "description": "Reenvío de pedidos de libros a partners de impresión bajo demanda",
            "version": VERSION,
            "partner": settings.PARTNER_NAME,
            "status": "running",
            "documentation": "/docs" if settings.ENABLE_DOCS else "disabled",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "endpoints": {
                "health": "/health",
                "order_book": "/order-book",
                "orders": "/api/v1/orders",
                "version": "/version",
            },
        }


def create_health_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints de health check.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/health", tags=["Health"], summary="Health Check")
    async def health_check():
        """
        Health check estático: no llama al partner.

        Returns:
            Dict con estado y timestamp
        """
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/health/liveness", tags=["Health"], summary="Liveness Probe")
    async def liveness_probe():
        """
        Endpoint para liveness probe de Kubernetes.

        Returns:
            Dict simple con estado
        """
        return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


def create_info_endpoints(app: FastAPI) -> None:
    """
    Crea endpoints informativos adicionales.

    Args:
        app: Instancia de FastAPI
    """

    @app.get("/version", tags=["Info"], summary="Version Info")
    async def get_version_info():
        """
        Endpoint que retorna información de versión.

        Returns:
            Dict con información de versión
        """
        settings = get_settings()
        return {
            **version_info(environment=settings.ENVIRONMENT),
            "name": settings.APP_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


def configure_api_v1_routers(app: FastAPI) -> None:
    """
    Configura los routers de la API v1.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando routers de API v1...")

    app.include_router(
        orders_router,
        prefix="/api/v1/orders",
        tags=["Orders"],
        responses={
            400: {"description": "Invalid order request"},
            500: {"description": "Partner configuration error"},
            502: {"description": "Partner or file transfer failure"},
        },
    )

    # Ruta histórica usada por el frontend
    app.include_router(legacy_orders_router, tags=["Orders"])
    logger.info("✅ Router de pedidos configurado")


def configure_all_routers(app: FastAPI) -> None:
    """
    Configura todos los routers de la aplicación.

    Args:
        app: Instancia de FastAPI
    """
    logger.info("🔧 Configurando todos los routers...")

    create_root_endpoints(app)
    create_health_endpoints(app)
    create_info_endpoints(app)

    configure_api_v1_routers(app)

    logger.info("✅ Todos los routers configurados correctamente")
