"""
OrderComponentFactory - builds the order workflow components (OCP).

Wiring lives here so the orchestrator and the clients never read global
configuration themselves.
"""

import logging

import aiohttp

from printbridge.clients.file_transfer import RemoteFileTransfer
from printbridge.clients.partner_client import PrintPartnerClient
from printbridge.clients.storage_client import SupabaseStorageClient
from printbridge.clients.token_cache import AccessTokenCache
from printbridge.core.config import Settings
from printbridge.services.orders.response_parser import PartnerResponseParser
from printbridge.services.orders.strategies import PayloadStrategy, StrategyContext, get_strategy
from printbridge.services.orders.validators import OrderRequestValidator

logger = logging.getLogger(__name__)


class OrderComponentFactory:
    """Factory for the components injected into the orchestrator."""

    @staticmethod
    def create_token_cache(session: aiohttp.ClientSession, settings: Settings) -> AccessTokenCache:
        """Create the process-wide token cache."""
        return AccessTokenCache(session, settings)

    @staticmethod
    def create_partner_client(session: aiohttp.ClientSession, settings: Settings) -> PrintPartnerClient:
        """Create the partner API client."""
        return PrintPartnerClient(session, settings)

    @staticmethod
    def create_file_transfer(session: aiohttp.ClientSession, settings: Settings) -> RemoteFileTransfer:
        """Create the file transfer component with its storage client."""
        storage = SupabaseStorageClient(session, settings)
        return RemoteFileTransfer(session, settings, storage=storage)

    @staticmethod
    def create_validator(settings: Settings) -> OrderRequestValidator:
        """Create the request validator."""
        return OrderRequestValidator(max_page_count=settings.ORDER_MAX_PAGE_COUNT)

    @staticmethod
    def create_response_parser(settings: Settings) -> PartnerResponseParser:
        """Create the partner response parser."""
        return PartnerResponseParser.from_settings(settings)

    @staticmethod
    def create_strategies(settings: Settings) -> list[PayloadStrategy]:
        """Resolve ORDER_STRATEGIES to strategy objects, in order."""
        strategies = [get_strategy(name) for name in settings.ORDER_STRATEGIES]
        logger.debug(f"Order strategies: {[strategy.name for strategy in strategies]}")
        return strategies

    @staticmethod
    def create_strategy_context(settings: Settings) -> StrategyContext:
        """Create the configuration-sourced part of order payloads."""
        return StrategyContext.from_settings(settings)
