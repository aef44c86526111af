"""
Sistema de manejo de reintentos acotados.

Solo la etapa de subida de archivos reintenta: un único reintento ante
errores transitorios (5xx o timeout). El resto del flujo no reintenta.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Type

from printbridge.utils.error_handler import AppException

logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Política de reintentos configurable.
    """

    def __init__(
        self,
        max_attempts: int = 2,
        base_delay: float = 1.0,
        retry_on: Optional[List[Type[Exception]]] = None,
        stop_on: Optional[List[Type[Exception]]] = None,
    ):
        """
        Inicializa la política de reintentos.

        Args:
            max_attempts: Número máximo de intentos (incluye el primero)
            base_delay: Segundos de espera entre intentos
            retry_on: Excepciones en las que reintentar
            stop_on: Excepciones que detienen inmediatamente
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.retry_on = retry_on or [AppException]
        self.stop_on = stop_on or []

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """
        Determina si debe reintentar la operación.

        Args:
            exception: Excepción que ocurrió
            attempt: Número de intento actual

        Returns:
            bool: True si debe reintentar
        """
        if attempt >= self.max_attempts:
            return False

        for stop_exc in self.stop_on:
            if isinstance(exception, stop_exc):
                return False

        matches = any(isinstance(exception, retry_exc) for retry_exc in self.retry_on)
        if not matches:
            return False

        # Las excepciones de la app deciden por sí mismas si son transitorias
        if isinstance(exception, AppException):
            return exception.is_retryable

        return True

    def calculate_delay(self, attempt: int) -> float:
        """
        Delay fijo antes del siguiente intento (solo hay un reintento).

        Args:
            attempt: Número de intento que acaba de fallar

        Returns:
            float: Segundos a esperar
        """
        return max(self.base_delay, 0)


class RetryHandler:
    """
    Ejecuta una corrutina aplicando una RetryPolicy.
    """

    def __init__(self, name: str, retry_policy: Optional[RetryPolicy] = None):
        self.name = name
        self.retry_policy = retry_policy or RetryPolicy()
        self.metrics = {
            "total_attempts": 0,
            "total_successes": 0,
            "total_failures": 0,
            "total_retries": 0,
        }

    async def execute(self, func: Callable, *args, context: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        """
        Ejecuta una función con reintentos.

        Args:
            func: Función async a ejecutar
            *args: Argumentos posicionales
            context: Contexto adicional para logging
            **kwargs: Argumentos con nombre

        Returns:
            Any: Resultado de la función

        Raises:
            Exception: La última excepción si todos los intentos fallan
        """
        context = context or {}
        start_time = time.time()
        max_attempts = self.retry_policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            self.metrics["total_attempts"] += 1
            try:
                logger.debug(
                    f"Executing {self.name} - Attempt {attempt}/{max_attempts}",
                    extra={"context": context},
                )
                result = await func(*args, **kwargs)
                self.metrics["total_successes"] += 1
                logger.debug(
                    f"Successfully executed {self.name} in {time.time() - start_time:.2f}s",
                    extra={"attempt": attempt, "context": context},
                )
                return result

            except Exception as e:
                self.metrics["total_failures"] += 1

                if not self.retry_policy.should_retry(e, attempt):
                    if attempt > 1 or max_attempts == 1:
                        logger.warning(
                            f"Giving up on {self.name} after {attempt} attempt(s) - {type(e).__name__}: {e}",
                            extra={"attempt": attempt, "context": context},
                        )
                    raise

                delay = self.retry_policy.calculate_delay(attempt)
                self.metrics["total_retries"] += 1
                logger.info(
                    f"Retrying {self.name} in {delay:.2f}s - Attempt {attempt + 1}/{max_attempts}",
                    extra={"exception": str(e), "delay": delay, "context": context},
                )
                await asyncio.sleep(delay)

        # range() vacío solo si max_attempts < 1
        raise ValueError(f"RetryHandler {self.name} requires max_attempts >= 1")

    def get_metrics(self) -> Dict[str, Any]:
        """
        Obtiene métricas del handler.

        Returns:
            Dict: Métricas actuales
        """
        return {**self.metrics, "handler_name": self.name}


def create_upload_retry_handler(max_attempts: int = 2, base_delay: float = 1.0) -> RetryHandler:
    """
    Crea el handler usado por cada método de subida.

    Args:
        max_attempts: Intentos por método (1 deshabilita el reintento)
        base_delay: Segundos antes del reintento

    Returns:
        RetryHandler: Handler para subidas al partner
    """
    from printbridge.utils.error_handler import UploadError

    retry_policy = RetryPolicy(
        max_attempts=max_attempts,
        base_delay=base_delay,
        retry_on=[UploadError],
    )
    return RetryHandler(name="partner_upload", retry_policy=retry_policy)
