"""
OrderOrchestrator - drives the book order workflow.

Linear flow, no branching back:
1. Validate the client request (no network before this passes)
2. Authenticate against the partner
3. Create the order, trying payload strategies in order
4. Transfer the PDFs to the partner upload targets (when the strategy needs it)
5. Obtain the checkout URL
6. Return the CheckoutResult

Nothing is persisted; a crash mid-workflow is not resumable. Every error
raised after order creation carries the partner order id so operators can
reconcile by hand.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from printbridge.core.config import Settings, get_settings
from printbridge.domain.models import CheckoutResult, OrderRequest, PartnerOrder
from printbridge.services.orders.factories import OrderComponentFactory
from printbridge.services.orders.interfaces import (
    IFileTransfer,
    IOrderRequestValidator,
    IPartnerClient,
    ITokenProvider,
)
from printbridge.services.orders.response_parser import PartnerResponseParser
from printbridge.services.orders.strategies import PayloadStrategy, StrategyContext
from printbridge.utils.error_handler import (
    DEFAULT_BODY_MAX_CHARS,
    CheckoutError,
    ConfigurationError,
    FileTransferError,
    OrderCreationError,
)

logger = logging.getLogger(__name__)


class OrderOrchestrator:
    """
    Orchestrates order placement at the print partner.

    Every collaborator is injected via the constructor; the orchestrator
    keeps no state between requests.
    """

    def __init__(
        self,
        validator: IOrderRequestValidator,
        token_provider: ITokenProvider,
        partner_client: IPartnerClient,
        file_transfer: IFileTransfer,
        response_parser: PartnerResponseParser,
        strategies: list[PayloadStrategy],
        strategy_context: StrategyContext,
        base_url: str,
        checkout_url_template: Optional[str] = None,
        error_body_max_chars: int = DEFAULT_BODY_MAX_CHARS,
    ):
        """
        Initialize orchestrator with service dependencies (DIP).

        Args:
            validator: Client request validation
            token_provider: Partner access token source
            partner_client: Partner order / checkout API
            file_transfer: Download + upload of source documents
            response_parser: Field extraction from partner responses
            strategies: Payload strategies, tried in order
            strategy_context: Configuration-sourced payload data
            base_url: Partner base URL, used by the checkout URL template
            checkout_url_template: ``{base_url}`` / ``{order_id}`` template used
                when the partner returns no checkout setup reference
            error_body_max_chars: Truncation applied to bodies in errors
        """
        self.validator = validator
        self.token_provider = token_provider
        self.partner_client = partner_client
        self.file_transfer = file_transfer
        self.response_parser = response_parser
        self.strategies = list(strategies)
        self.strategy_context = strategy_context
        self.base_url = base_url.rstrip("/")
        self.checkout_url_template = checkout_url_template
        self.error_body_max_chars = error_body_max_chars

    async def place_order(self, request: OrderRequest) -> CheckoutResult:
        """
        Place a book order at the partner.

        Args:
            request: Client order request

        Returns:
            CheckoutResult: Partner order id, checkout URL and winning strategy

        Raises:
            ValidationError: Invalid request (before any network call)
            ConfigurationError: Order settings missing (before any network call)
            AuthConfigError, TokenRequestError: Authentication failed
            OrderCreationError: Partner refused the order
            MalformedPartnerResponseError: Order response lacks required fields
            FileTransferError: A document could not be transferred
            CheckoutError: No usable checkout URL
        """
        # Step 1: Validate
        self.validator.validate(request)
        self._check_configuration()

        # Step 2: Authenticate
        token = await self.token_provider.get_access_token()

        # Step 3: Create order
        partner_order, strategy = await self._create_order(request, token)
        logger.info(f"Partner order {partner_order.id} created with strategy '{strategy.name}'")

        # Step 4: Transfer files
        if strategy.transfers_files:
            await self._transfer_files(request, partner_order)
        else:
            logger.debug(f"Strategy '{strategy.name}' passes files by URL, no transfer for {partner_order.id}")

        # Step 5: Checkout
        checkout_url = await self._checkout(partner_order, token)

        # Step 6: Succeed
        logger.info(f"Order {partner_order.id} ready for checkout")
        return CheckoutResult(order_id=partner_order.id, checkout_url=checkout_url, strategy=strategy.name)

    def _check_configuration(self) -> None:
        if not self.strategies:
            raise ConfigurationError("No order strategies configured", setting="ORDER_STRATEGIES")
        if not self.strategy_context.offering_id:
            raise ConfigurationError("PARTNER_OFFERING_ID not configured", setting="PARTNER_OFFERING_ID")

    async def _create_order(self, request: OrderRequest, token: str) -> tuple[PartnerOrder, PayloadStrategy]:
        """
        Try each strategy until the partner accepts one.

        Only payload rejections (400/422) move on to the next strategy;
        any other failure aborts immediately.
        """
        last_error: Optional[OrderCreationError] = None

        for strategy in self.strategies:
            body = strategy.build(request, self.strategy_context)
            try:
                response = await self.partner_client.create_order(body, token, strategy=strategy.name)
            except OrderCreationError as e:
                if not e.is_payload_rejection:
                    raise
                logger.warning(f"Partner rejected payload of strategy '{strategy.name}' (HTTP {e.status})")
                last_error = e
                continue

            required_roles = list(request.roles) if strategy.transfers_files else []
            partner_order = self.response_parser.parse_order(
                response.json, required_roles=required_roles, body_text=response.body_text
            )
            return partner_order, strategy

        logger.error(f"All {len(self.strategies)} order strategies were rejected by the partner")
        raise last_error

    async def _transfer_files(self, request: OrderRequest, partner_order: PartnerOrder) -> None:
        """
        Transfer every role concurrently; both must finish before checkout.

        Raises:
            FileTransferError: First failed role, in role order
        """
        roles = request.roles
        results = await asyncio.gather(
            *(
                self.file_transfer.transfer(source_ref, partner_order.upload_targets[role])
                for role, source_ref in roles.items()
            ),
            return_exceptions=True,
        )

        for role, result in zip(roles, results):
            if isinstance(result, Exception):
                logger.error(f"Transfer of '{role}' for order {partner_order.id} failed: {result}")
                raise FileTransferError(role=role, cause=result, order_id=partner_order.id) from result
            if isinstance(result, BaseException):
                raise result
            logger.info(f"Transferred '{role}' for order {partner_order.id} with {result}")

    async def _checkout(self, partner_order: PartnerOrder, token: str) -> str:
        """
        Obtain the payment URL.

        Calls the checkout setup reference when the partner returned one,
        otherwise renders the configured checkout URL template.
        """
        if partner_order.checkout_setup_url:
            response = await self.partner_client.request_checkout(
                partner_order.checkout_setup_url, token, order_id=partner_order.id
            )
            checkout_url = self.response_parser.extract_checkout_url(response.json)
            if not checkout_url:
                raise CheckoutError(
                    f"Checkout setup for order {partner_order.id} returned no usable URL "
                    f"at '{self.response_parser.checkout_url_path}'",
                    status=response.status,
                    body=response.body_text,
                    order_id=partner_order.id,
                    max_body_chars=self.error_body_max_chars,
                )
            return checkout_url

        if not self.checkout_url_template:
            raise CheckoutError(
                f"Order {partner_order.id} has no checkout setup reference and no checkout URL template is configured",
                order_id=partner_order.id,
            )
        try:
            return self.checkout_url_template.format(base_url=self.base_url, order_id=partner_order.id)
        except (KeyError, IndexError, ValueError) as e:
            raise CheckoutError(
                f"Invalid checkout URL template '{self.checkout_url_template}': {e}",
                order_id=partner_order.id,
            ) from e


# Factory function to create orchestrator with all dependencies
def create_orchestrator(
    session: aiohttp.ClientSession,
    settings: Optional[Settings] = None,
    token_provider: Optional[ITokenProvider] = None,
) -> OrderOrchestrator:
    """
    Create a fully wired orchestrator.

    Args:
        session: Shared HTTP session
        settings: Application settings (defaults to get_settings())
        token_provider: Existing token cache to reuse (one per process)

    Returns:
        OrderOrchestrator: Fully configured orchestrator
    """
    settings = settings or get_settings()
    factory = OrderComponentFactory

    return OrderOrchestrator(
        validator=factory.create_validator(settings),
        token_provider=token_provider or factory.create_token_cache(session, settings),
        partner_client=factory.create_partner_client(session, settings),
        file_transfer=factory.create_file_transfer(session, settings),
        response_parser=factory.create_response_parser(settings),
        strategies=factory.create_strategies(settings),
        strategy_context=factory.create_strategy_context(settings),
        base_url=settings.PARTNER_BASE_URL,
        checkout_url_template=settings.PARTNER_CHECKOUT_URL_TEMPLATE,
        error_body_max_chars=settings.ERROR_BODY_MAX_CHARS,
    )
