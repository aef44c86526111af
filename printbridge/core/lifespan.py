"""
Gestión del ciclo de vida de la aplicación FastAPI.

En el startup se construyen una sola vez por proceso la sesión HTTP, el
cache de tokens y el orquestador de pedidos, y se guardan en ``app.state``.
En el shutdown se cierra la sesión.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from printbridge.clients.base_client import create_client_session
from printbridge.core.config import get_missing_partner_settings, get_settings
from printbridge.core.logging_config import mask_secret, setup_logging
from printbridge.services.orders.factories import OrderComponentFactory
from printbridge.services.orders.orchestrator import create_orchestrator
from printbridge.version import version_string

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación.
    Maneja eventos de startup y shutdown de manera ordenada.

    Args:
        app: Instancia de FastAPI
    """
    # === STARTUP ===
    logger.info(f"🚀 Iniciando PrintBridge {version_string()}...")

    try:
        # 1. Configurar logging
        await startup_configure_logging()

        # 2. Verificar configuración
        await startup_verify_configuration()

        # 3. Inicializar servicios
        await startup_initialize_services(app)

        logger.info("🎉 Aplicación iniciada correctamente")

    except Exception as e:
        logger.error(f"❌ Error durante el startup: {e}")
        await shutdown_close_connections(app)
        raise

    # === YIELD (aplicación corriendo) ===
    yield

    # === SHUTDOWN ===
    logger.info("🛑 Cerrando PrintBridge...")
    await shutdown_close_connections(app)
    logger.info("👋 Aplicación cerrada correctamente")


# === FUNCIONES DE STARTUP ===


async def startup_configure_logging():
    """Configura el sistema de logging."""
    setup_logging()
    logger.info("✅ Sistema de logging configurado")


async def startup_verify_configuration():
    """
    Verifica la configuración del partner.

    La falta de credenciales no impide arrancar (health debe responder);
    cada pedido falla con un error estructurado mientras tanto.
    """
    settings = get_settings()
    missing = get_missing_partner_settings(settings)

    if missing:
        logger.warning(f"⚠️ Configuración del partner incompleta: {missing}")
    else:
        logger.info("✅ Configuración del partner verificada")

    auth_mode = "preshared" if settings.partner_preshared_token else "client_credentials"
    logger.info(
        f"Partner: {settings.PARTNER_NAME} - Base URL: {settings.PARTNER_BASE_URL} - "
        f"Auth: {auth_mode} {settings.PARTNER_AUTH_STYLES} - "
        f"Key: {mask_secret(settings.partner_preshared_token or settings.PARTNER_CLIENT_ID)}"
    )
    logger.info(
        f"Estrategias: {settings.ORDER_STRATEGIES} - Subida: {settings.UPLOAD_METHOD}/{settings.UPLOAD_ENCODING} "
        f"(fallback: {settings.effective_upload_fallback_method or 'none'})"
    )
    if not settings.storage_configured:
        logger.info("Storage de Supabase no configurado: solo se aceptan referencias http(s)")


async def startup_initialize_services(app: FastAPI):
    """Crea la sesión HTTP y los componentes del flujo de pedidos."""
    settings = get_settings()

    session = create_client_session(settings)
    app.state.http_session = session

    token_cache = OrderComponentFactory.create_token_cache(session, settings)
    app.state.token_cache = token_cache
    app.state.orchestrator = create_orchestrator(session, settings, token_provider=token_cache)

    logger.info("✅ Servicios de pedidos inicializados")


# === FUNCIONES DE SHUTDOWN ===


async def shutdown_close_connections(app: FastAPI):
    """Cierra la sesión HTTP compartida."""
    session = getattr(app.state, "http_session", None)
    if session is not None and not session.closed:
        await session.close()
        logger.info("✅ Sesión HTTP cerrada")
    app.state.http_session = None
