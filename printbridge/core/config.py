"""
Configuración centralizada de la aplicación.

Este módulo maneja todas las variables de entorno y configuraciones
de la aplicación usando Pydantic Settings para validación automática.
El contrato exacto con el partner (auth, rutas, campos de respuesta,
método de subida) es configuración, no protocolo fijo.
"""

from functools import lru_cache
from typing import Annotated, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

VALID_AUTH_STYLES = ["bearer", "apikey", "x-api-key"]
VALID_UPLOAD_METHODS = ["PUT", "POST"]
VALID_UPLOAD_ENCODINGS = ["raw", "multipart"]
VALID_CHECKOUT_METHODS = ["GET", "POST", "PUT"]


class Settings(BaseSettings):
    """
    Configuración de la aplicación usando Pydantic Settings.

    Todas las configuraciones se cargan desde variables de entorno
    con valores por defecto apropiados para desarrollo contra el
    entorno de pruebas del partner.
    """

    # === CONFIGURACIÓN BÁSICA DE LA APP ===
    APP_NAME: str = "PrintBridge"
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=True)

    # === CONFIGURACIÓN DEL SERVIDOR ===
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=3000)
    WORKERS: int = Field(default=1)
    LOG_LEVEL: str = Field(default="INFO")

    # === CONFIGURACIÓN DE SEGURIDAD / CORS ===
    ALLOWED_ORIGINS: Annotated[Optional[List[str]], NoDecode] = Field(default=None)
    ENABLE_DOCS: bool = Field(default=True)
    # Límite del cuerpo de POST /order-book (10 MB)
    MAX_REQUEST_BODY_BYTES: int = Field(default=10 * 1024 * 1024)

    # === CONFIGURACIÓN DEL PARTNER (Peecho / PrintAPI) ===
    PARTNER_NAME: str = Field(default="peecho")
    PARTNER_BASE_URL: str = Field(default="https://test.www.peecho.com")
    PARTNER_ORDER_PATH: str = Field(default="/rest/publications/")
    # Token precompartido (API key). Si existe, no se hace intercambio OAuth.
    PARTNER_API_KEY: Optional[str] = Field(default=None)
    PARTNER_ACCESS_TOKEN: Optional[str] = Field(default=None)
    # OAuth client-credentials
    PARTNER_CLIENT_ID: Optional[str] = Field(default=None)
    PARTNER_CLIENT_SECRET: Optional[str] = Field(default=None)
    PARTNER_TOKEN_URL: Optional[str] = Field(default=None)
    PARTNER_TOKEN_SCOPE: Optional[str] = Field(default=None)
    PARTNER_AUTH_STYLES: Annotated[List[str], NoDecode] = Field(default=["apikey", "x-api-key"])
    PARTNER_USER_AGENT: str = Field(default="printbridge/1.0")

    # === DATOS DEL PEDIDO ===
    PARTNER_OFFERING_ID: Optional[str] = Field(default=None)
    PARTNER_LANGUAGE: str = Field(default="de")
    PARTNER_CONTACT_EMAIL: Optional[str] = Field(default=None)
    # Dirección de envío de relleno (el checkout del partner pide la real)
    PARTNER_SHIPPING_ADDRESS: Dict[str, str] = Field(
        default={
            "name": "Checkout Customer",
            "line1": "Placeholder 1",
            "postCode": "10115",
            "city": "Berlin",
            "country": "DE",
        }
    )
    ORDER_STRATEGIES: Annotated[List[str], NoDecode] = Field(default=["peecho_publication"])
    ORDER_MAX_PAGE_COUNT: Optional[int] = Field(default=None)

    # === CAMPOS DE RESPUESTA DEL PARTNER (rutas con puntos) ===
    PARTNER_ORDER_ID_PATH: str = Field(default="id")
    PARTNER_UPLOAD_TARGET_PATHS: Dict[str, str] = Field(
        default={
            "content": "items.0.files.content.uploadUrl",
            "cover": "items.0.files.cover.uploadUrl",
        }
    )
    PARTNER_CHECKOUT_SETUP_PATH: Optional[str] = Field(default="checkout.setupUrl")
    PARTNER_CHECKOUT_URL_PATH: str = Field(default="paymentUrl")
    PARTNER_CHECKOUT_URL_TEMPLATE: Optional[str] = Field(default="{base_url}/print/{order_id}")
    CHECKOUT_METHOD: str = Field(default="POST")
    CHECKOUT_RETURN_URL: Optional[str] = Field(default=None)

    # === CACHE DE TOKENS ===
    TOKEN_REFRESH_MARGIN_SECONDS: int = Field(default=60)
    TOKEN_DEFAULT_LIFETIME_SECONDS: int = Field(default=3600)

    # === SUBIDA DE ARCHIVOS ===
    UPLOAD_METHOD: str = Field(default="PUT")
    # Vacío deshabilita el fallback; None usa el método alternativo
    UPLOAD_FALLBACK_METHOD: Optional[str] = Field(default=None)
    UPLOAD_ENCODING: str = Field(default="raw")
    UPLOAD_MULTIPART_FIELD: str = Field(default="file")
    UPLOAD_MAX_ATTEMPTS: int = Field(default=2)
    UPLOAD_RETRY_DELAY_SECONDS: float = Field(default=1.0)

    # === HTTP SALIENTE ===
    HTTP_TIMEOUT_SECONDS: float = Field(default=60.0)
    HTTP_CONNECT_TIMEOUT_SECONDS: float = Field(default=10.0)
    ERROR_BODY_MAX_CHARS: int = Field(default=2000)

    # === STORAGE (Supabase) ===
    SUPABASE_URL: Optional[str] = Field(default=None)
    SUPABASE_SERVICE_KEY: Optional[str] = Field(default=None)
    SUPABASE_BUCKET: Optional[str] = Field(default=None)

    # === CONFIGURACIÓN DE LOGGING ===
    LOG_FILE_PATH: Optional[str] = Field(default=None)
    LOG_MAX_SIZE_MB: int = Field(default=10)
    LOG_BACKUP_COUNT: int = Field(default=5)
    SLOW_REQUEST_THRESHOLD: float = Field(default=10.0)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parsea ALLOWED_ORIGINS como lista separada por comas."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()] or None
        return v

    @field_validator("PARTNER_AUTH_STYLES", mode="before")
    @classmethod
    def parse_auth_styles(cls, v):
        """Parsea PARTNER_AUTH_STYLES como lista separada por comas."""
        if isinstance(v, str):
            v = [style.strip() for style in v.split(",") if style.strip()]
        styles = [style.lower() for style in v]
        for style in styles:
            if style not in VALID_AUTH_STYLES:
                raise ValueError(f"PARTNER_AUTH_STYLES debe contener solo: {VALID_AUTH_STYLES}")
        return styles

    @field_validator("ORDER_STRATEGIES", mode="before")
    @classmethod
    def parse_order_strategies(cls, v):
        """Parsea ORDER_STRATEGIES y verifica que existan en el registro."""
        from printbridge.services.orders.strategies import STRATEGY_REGISTRY

        if isinstance(v, str):
            v = [name.strip() for name in v.split(",") if name.strip()]
        if not v:
            raise ValueError("ORDER_STRATEGIES no puede estar vacío")
        for name in v:
            if name not in STRATEGY_REGISTRY:
                raise ValueError(f"Estrategia desconocida '{name}'. Disponibles: {sorted(STRATEGY_REGISTRY)}")
        return v

    @field_validator("UPLOAD_METHOD")
    @classmethod
    def validate_method(cls, v):
        """Valida que el método de subida sea PUT o POST."""
        if v.upper() not in VALID_UPLOAD_METHODS:
            raise ValueError(f"UPLOAD_METHOD debe ser uno de: {VALID_UPLOAD_METHODS}")
        return v.upper()

    @field_validator("CHECKOUT_METHOD")
    @classmethod
    def validate_checkout_method(cls, v):
        """Valida el método HTTP del checkout."""
        if v.upper() not in VALID_CHECKOUT_METHODS:
            raise ValueError(f"CHECKOUT_METHOD debe ser uno de: {VALID_CHECKOUT_METHODS}")
        return v.upper()

    @field_validator("UPLOAD_FALLBACK_METHOD")
    @classmethod
    def validate_fallback_method(cls, v):
        """Valida el método de fallback (vacío lo deshabilita)."""
        if v is None or v == "":
            return v
        if v.upper() not in VALID_UPLOAD_METHODS:
            raise ValueError(f"UPLOAD_FALLBACK_METHOD debe ser uno de: {VALID_UPLOAD_METHODS} o vacío")
        return v.upper()

    @field_validator("UPLOAD_ENCODING")
    @classmethod
    def validate_upload_encoding(cls, v):
        """Valida la codificación de subida."""
        if v.lower() not in VALID_UPLOAD_ENCODINGS:
            raise ValueError(f"UPLOAD_ENCODING debe ser uno de: {VALID_UPLOAD_ENCODINGS}")
        return v.lower()

    @field_validator("UPLOAD_MAX_ATTEMPTS")
    @classmethod
    def validate_upload_attempts(cls, v):
        """Como máximo un reintento por método de subida."""
        if not 1 <= v <= 2:
            raise ValueError("UPLOAD_MAX_ATTEMPTS debe estar entre 1 y 2")
        return v

    @field_validator("PARTNER_BASE_URL")
    @classmethod
    def validate_partner_base_url(cls, v):
        """Normaliza la URL base del partner (sin barra final)."""
        if not v.startswith(("http://", "https://")):
            v = f"https://{v}"
        return v.rstrip("/")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Valida que el nivel de log sea válido."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL debe ser uno de: {valid_levels}")
        return v.upper()

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Valida que el entorno sea válido."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT debe ser uno de: {valid_envs}")
        return v.lower()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        """Valida que el puerto esté en rango válido."""
        if not 1 <= v <= 65535:
            raise ValueError("PORT debe estar entre 1 y 65535")
        return v

    @property
    def is_production(self) -> bool:
        """Verifica si está en entorno de producción."""
        return self.ENVIRONMENT == "production"

    @property
    def partner_preshared_token(self) -> Optional[str]:
        """Token precompartido del partner (API key tiene prioridad)."""
        return self.PARTNER_API_KEY or self.PARTNER_ACCESS_TOKEN

    @property
    def effective_upload_fallback_method(self) -> Optional[str]:
        """Método alternativo de subida; None si está deshabilitado."""
        if self.UPLOAD_FALLBACK_METHOD == "":
            return None
        if self.UPLOAD_FALLBACK_METHOD:
            return self.UPLOAD_FALLBACK_METHOD
        return "POST" if self.UPLOAD_METHOD == "PUT" else "PUT"

    @property
    def storage_configured(self) -> bool:
        """Verifica si el storage de Supabase está configurado."""
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_KEY)


@lru_cache()
def get_settings() -> Settings:
    """
    Obtiene instancia singleton de configuración.

    Usa LRU cache para evitar recrear la configuración
    múltiples veces durante la ejecución.

    Returns:
        Settings: Instancia de configuración
    """
    return Settings()


def get_missing_partner_settings(settings: Settings) -> List[str]:
    """
    Lista las variables del partner que faltan para poder crear pedidos.

    Returns:
        List[str]: Nombres de variables ausentes (vacía si todo está presente)
    """
    missing = []
    if not settings.partner_preshared_token:
        for var in ["PARTNER_CLIENT_ID", "PARTNER_CLIENT_SECRET", "PARTNER_TOKEN_URL"]:
            if not getattr(settings, var, None):
                missing.append(var)
    if not settings.PARTNER_OFFERING_ID:
        missing.append("PARTNER_OFFERING_ID")
    return missing
