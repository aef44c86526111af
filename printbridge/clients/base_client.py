"""
Base HTTP client with common functionality.

Provides the shared aiohttp plumbing used by every outbound client:
session construction with bounded timeouts, request execution, lenient
JSON parsing and translation of transport failures into the caller's
error type.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

import aiohttp
from aiohttp import ClientTimeout

from printbridge.core.config import Settings, get_settings
from printbridge.core.logging_config import log_partner_call, redact_url
from printbridge.utils.error_handler import PartnerHTTPError

logger = logging.getLogger(__name__)


@dataclass
class PartnerResponse:
    """
    Buffered HTTP response from an external service.

    Attributes:
        status: HTTP status code
        body_text: Raw response body
        json: Parsed body when it was valid JSON, otherwise None
    """

    status: int
    body_text: str
    json: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def parse_json_body(body_text: str) -> Any:
    """Parse a response body as JSON, returning None when it is not JSON."""
    if not body_text:
        return None
    try:
        return json.loads(body_text)
    except ValueError:
        return None


def create_client_session(settings: Optional[Settings] = None) -> aiohttp.ClientSession:
    """
    Create the process-wide HTTP session.

    Every outbound call gets a bounded timeout; a timeout surfaces as an
    error with ``status=None``.

    Args:
        settings: Application settings (defaults to get_settings())

    Returns:
        aiohttp.ClientSession: Session shared by all clients
    """
    settings = settings or get_settings()
    timeout = ClientTimeout(total=settings.HTTP_TIMEOUT_SECONDS, connect=settings.HTTP_CONNECT_TIMEOUT_SECONDS)
    connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
    return aiohttp.ClientSession(
        timeout=timeout,
        connector=connector,
        headers={"User-Agent": settings.PARTNER_USER_AGENT},
    )


class BaseHTTPClient:
    """
    Base client for outbound HTTP operations.

    The session is injected so a single connection pool is shared by the
    token cache, the partner client and the file transfer component.
    """

    def __init__(self, session: aiohttp.ClientSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()

    def _error(self, error_cls: Type[PartnerHTTPError], message: str, **kwargs) -> PartnerHTTPError:
        """Build an error of ``error_cls`` with the configured body truncation."""
        return error_cls(message, max_body_chars=self.settings.ERROR_BODY_MAX_CHARS, **kwargs)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        error_cls: Type[PartnerHTTPError],
        operation: str,
        error_kwargs: Optional[Dict[str, Any]] = None,
        **request_kwargs,
    ) -> PartnerResponse:
        """
        Execute a request and buffer the response.

        Non-2xx responses are returned, not raised: each caller decides
        which error they map to. Transport failures raise ``error_cls``
        with ``status=None``.

        Args:
            method: HTTP method
            url: Absolute URL
            error_cls: Error raised on timeout or connection failure
            operation: Operation name for logs and error messages
            error_kwargs: Extra arguments for ``error_cls``
            **request_kwargs: Passed to ``ClientSession.request``

        Returns:
            PartnerResponse: Buffered response
        """
        error_kwargs = error_kwargs or {}
        started = time.monotonic()
        try:
            async with self.session.request(method, url, **request_kwargs) as response:
                body_text = await response.text(errors="replace")
                log_partner_call(method, url, response.status, time.monotonic() - started, operation=operation)
                return PartnerResponse(status=response.status, body_text=body_text, json=parse_json_body(body_text))

        except asyncio.TimeoutError as e:
            log_partner_call(method, url, None, time.monotonic() - started, operation=operation)
            raise self._error(error_cls, f"{operation} timed out", status=None, **error_kwargs) from e

        except aiohttp.ClientError as e:
            log_partner_call(method, url, None, time.monotonic() - started, operation=operation, error=type(e).__name__)
            raise self._error(
                error_cls, f"{operation} failed: {type(e).__name__}: {e}", status=None, **error_kwargs
            ) from e

    async def _read_bytes(
        self,
        url: str,
        *,
        error_cls: Type[PartnerHTTPError],
        operation: str,
        **request_kwargs,
    ) -> bytes:
        """
        GET a binary resource, raising ``error_cls`` on any failure.

        Returns:
            bytes: Whole response body
        """
        try:
            async with self.session.get(url, **request_kwargs) as response:
                if not 200 <= response.status < 300:
                    body_text = await response.text(errors="replace")
                    raise self._error(
                        error_cls,
                        f"{operation} failed with HTTP {response.status}",
                        status=response.status,
                        body=body_text,
                    )
                data = await response.read()
                logger.debug(f"{operation}: GET {redact_url(url)} -> {response.status} ({len(data)} bytes)")
                return data

        except asyncio.TimeoutError as e:
            logger.warning(f"{operation}: GET {redact_url(url)} timed out")
            raise self._error(error_cls, f"{operation} timed out", status=None) from e

        except aiohttp.ClientError as e:
            logger.warning(f"{operation}: GET {redact_url(url)} failed: {type(e).__name__}: {e}")
            raise self._error(error_cls, f"{operation} failed: {type(e).__name__}: {e}", status=None) from e

    def __repr__(self):
        return f"{self.__class__.__name__}(closed={self.session.closed})"
