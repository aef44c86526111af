#!/usr/bin/env python3
"""
Script de diagnóstico para la API del partner de impresión.

Envía GET a una lista de rutas con cada estilo de cabecera de autenticación
y muestra el status y un extracto del cuerpo. Sirve para averiguar qué
rutas y qué autenticación acepta el partner; el servicio nunca lo importa.

Uso:
    python scripts/probe_partner_api.py /rest/publications/ /rest/offerings/
    python scripts/probe_partner_api.py --styles bearer apikey --base-url https://test.www.peecho.com /rest/
"""

import argparse
import asyncio
import os
import sys
from urllib.parse import urljoin

import aiohttp

# Agregar el directorio padre al path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from printbridge.clients.partner_client import build_auth_headers
from printbridge.core.config import get_settings
from printbridge.core.logging_config import mask_secret

DEFAULT_PATHS = ["/rest/publications/", "/rest/offerings/", "/rest/"]
AUTH_STYLES = ["bearer", "apikey", "x-api-key"]


async def probe(base_url: str, paths: list, styles: list, token: str, excerpt: int, timeout: float) -> int:
    """
    Prueba cada combinación ruta/estilo de autenticación.

    Returns:
        int: Número de combinaciones que respondieron 2xx
    """
    successes = 0
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    async with aiohttp.ClientSession(timeout=client_timeout) as session:
        for path in paths:
            url = urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))
            for style in styles:
                headers = {"Accept": "application/json", **build_auth_headers(token, [style])}
                try:
                    async with session.get(url, headers=headers) as response:
                        body = await response.text()
                        status = response.status
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    print(f"  ❌ {style:<10} GET {url} -> {type(e).__name__}: {e}")
                    continue

                marker = "✅" if 200 <= status < 300 else "⚠️"
                if 200 <= status < 300:
                    successes += 1
                print(f"  {marker} {style:<10} GET {url} -> {status}")
                if body:
                    print(f"       {body[:excerpt]!r}")

    return successes


def main() -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Probar rutas y autenticación de la API del partner")
    parser.add_argument("paths", nargs="*", default=DEFAULT_PATHS, help="Rutas relativas a probar")
    parser.add_argument("--base-url", default=settings.PARTNER_BASE_URL, help="URL base del partner")
    parser.add_argument(
        "--styles", nargs="+", choices=AUTH_STYLES, default=AUTH_STYLES, help="Estilos de autenticación"
    )
    parser.add_argument("--token", default=None, help="API key o token (por defecto el de la configuración)")
    parser.add_argument("--excerpt", type=int, default=300, help="Caracteres del cuerpo a mostrar")
    parser.add_argument("--timeout", type=float, default=settings.HTTP_TIMEOUT_SECONDS, help="Timeout en segundos")
    args = parser.parse_args()

    token = args.token or settings.partner_preshared_token
    if not token:
        print("❌ No hay PARTNER_API_KEY / PARTNER_ACCESS_TOKEN configurado ni --token")
        return 2

    print(f"\n{'=' * 60}")
    print(f"Partner: {settings.PARTNER_NAME} - {args.base_url}")
    print(f"Key: {mask_secret(token)} - Estilos: {', '.join(args.styles)}")
    print(f"{'=' * 60}\n")

    successes = asyncio.run(probe(args.base_url, args.paths, args.styles, token, args.excerpt, args.timeout))

    print(f"\n{successes} combinación(es) con respuesta 2xx")
    return 0 if successes else 1


if __name__ == "__main__":
    sys.exit(main())
