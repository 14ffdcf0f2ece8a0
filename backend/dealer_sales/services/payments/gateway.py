"""
Payment gateway contract and its Stripe adapter.

The gateway owns payment outcomes; the core only asks it to open an intent
for an invoice amount and later reads back what happened to that intent.
Stripe's SDK is synchronous, so calls run in a worker thread and transient
failures (connection, rate limit, API) are retried with exponential backoff.
"""

import asyncio
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional, Protocol
from uuid import UUID, uuid4

import stripe

from dealer_sales.core.config import get_settings
from dealer_sales.core.exceptions import FatalError
from dealer_sales.core.logging import get_logger

logger = get_logger(__name__)


class PaymentGatewayError(FatalError):
    """Raised when the payment gateway rejects or fails a request."""

    def __init__(self, message: str, code: Optional[str] = None, **context: Any):
        super().__init__(message, code=code, **context)
        self.code = code


@dataclass(frozen=True)
class GatewayIntent:
    """Gateway view of a payment intent."""

    id: str
    status: str
    amount: Decimal
    currency: str
    client_secret: Optional[str] = None
    payment_method_type: Optional[str] = None
    failed: bool = False


class PaymentGateway(Protocol):
    """Narrow interface to the external payment gateway."""

    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        order_id: UUID,
        invoice_number: str,
        customer_email: Optional[str] = None,
    ) -> GatewayIntent: ...

    async def retrieve_intent(self, payment_intent_id: str) -> GatewayIntent: ...

    async def cancel_intent(self, payment_intent_id: str) -> GatewayIntent: ...


def to_minor_units(amount: Decimal) -> int:
    """Convert a currency amount to cents."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))


class StripePaymentGateway:
    """
    Payment gateway backed by Stripe PaymentIntents.

    Attributes:
        api_key: Stripe secret key
        max_retries: Retries for transient failures
    """

    RETRYABLE_ERRORS = (
        stripe.APIConnectionError,
        stripe.RateLimitError,
        stripe.APIError,
    )

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_retries: int = 2,
        initial_backoff: float = 0.5,
        max_backoff: float = 8.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.stripe_secret_key
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._sleep = sleep

        if not self.api_key:
            raise PaymentGatewayError(
                "Stripe secret key is not configured", code="not_configured"
            )

        logger.info("Stripe payment gateway initialized", max_retries=max_retries)

    def _calculate_backoff(self, attempt: int) -> float:
        return min(self.initial_backoff * (2**attempt), self.max_backoff)

    def _execute_with_retry(self, operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        """
        Execute a Stripe call, retrying transient failures.

        Raises:
            PaymentGatewayError: If the call fails permanently or retries run out
        """
        kwargs.setdefault("api_key", self.api_key)

        for attempt in range(self.max_retries + 1):
            try:
                return func(*args, **kwargs)
            except self.RETRYABLE_ERRORS as e:
                if attempt >= self.max_retries:
                    logger.error(
                        "Stripe operation failed after retries",
                        operation=operation,
                        attempts=attempt + 1,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise PaymentGatewayError(
                        "Payment gateway unavailable",
                        code=getattr(e, "code", None),
                        operation=operation,
                    ) from e

                delay = self._calculate_backoff(attempt)
                logger.warning(
                    "Retrying Stripe operation",
                    operation=operation,
                    attempt=attempt + 1,
                    delay_seconds=delay,
                    error_type=type(e).__name__,
                )
                self._sleep(delay)
            except stripe.StripeError as e:
                logger.error(
                    "Stripe operation failed",
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                    code=getattr(e, "code", None),
                )
                raise PaymentGatewayError(
                    "Payment gateway rejected the request",
                    code=getattr(e, "code", None),
                    operation=operation,
                ) from e

        raise PaymentGatewayError("Payment gateway unavailable", operation=operation)

    @staticmethod
    def _to_intent(intent: Any) -> GatewayIntent:
        payment_method_types = intent.get("payment_method_types") or []
        return GatewayIntent(
            id=intent["id"],
            status=intent["status"],
            amount=from_minor_units(intent["amount"]),
            currency=intent["currency"],
            client_secret=intent.get("client_secret"),
            payment_method_type=payment_method_types[0] if payment_method_types else None,
            failed=intent.get("last_payment_error") is not None,
        )

    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        order_id: UUID,
        invoice_number: str,
        customer_email: Optional[str] = None,
    ) -> GatewayIntent:
        """
        Create a Stripe PaymentIntent for an invoice.

        Args:
            amount: Amount due in currency units
            currency: Three-letter ISO currency code
            order_id: Order the payment belongs to
            invoice_number: Invoice being paid
            customer_email: Receipt address

        Returns:
            Created intent
        """
        params: dict[str, Any] = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "automatic_payment_methods": {"enabled": True},
            "metadata": {
                "order_id": str(order_id),
                "invoice_number": invoice_number,
            },
            "idempotency_key": f"{invoice_number}-{uuid4().hex}",
        }
        if customer_email:
            params["receipt_email"] = customer_email

        logger.info(
            "Creating payment intent",
            order_id=str(order_id),
            invoice_number=invoice_number,
            amount=str(amount),
            currency=currency,
        )

        intent = await asyncio.to_thread(
            self._execute_with_retry,
            "create_payment_intent",
            stripe.PaymentIntent.create,
            **params,
        )
        return self._to_intent(intent)

    async def retrieve_intent(self, payment_intent_id: str) -> GatewayIntent:
        """Read the current state of a PaymentIntent."""
        logger.debug("Retrieving payment intent", payment_intent_id=payment_intent_id)

        intent = await asyncio.to_thread(
            self._execute_with_retry,
            "retrieve_payment_intent",
            stripe.PaymentIntent.retrieve,
            payment_intent_id,
        )
        return self._to_intent(intent)

    async def cancel_intent(self, payment_intent_id: str) -> GatewayIntent:
        """Cancel a PaymentIntent that can no longer be paid."""
        logger.info("Cancelling payment intent", payment_intent_id=payment_intent_id)

        intent = await asyncio.to_thread(
            self._execute_with_retry,
            "cancel_payment_intent",
            stripe.PaymentIntent.cancel,
            payment_intent_id,
        )
        return self._to_intent(intent)


def get_payment_gateway() -> PaymentGateway:
    """Default gateway provider (FastAPI dependency)."""
    return StripePaymentGateway()
