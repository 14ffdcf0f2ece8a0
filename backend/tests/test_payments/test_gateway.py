"""
Test suite for the Stripe payment gateway adapter.

Stripe's PaymentIntent API is patched; no network calls are made. Backoff
sleeps are recorded instead of slept.
"""

from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
import stripe

from dealer_sales.services.payments.gateway import (
    PaymentGatewayError,
    StripePaymentGateway,
    from_minor_units,
    to_minor_units,
)


# ============================================================================
# Test Fixtures
# ============================================================================


def stripe_intent(**overrides):
    intent = {
        "id": "pi_3Nabc123",
        "status": "requires_payment_method",
        "amount": 4599000,
        "currency": "usd",
        "client_secret": "pi_3Nabc123_secret_xyz",
        "payment_method_types": ["card"],
        "last_payment_error": None,
    }
    intent.update(overrides)
    return intent


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def gateway(sleeps) -> StripePaymentGateway:
    return StripePaymentGateway(
        api_key="sk_test_dealer",
        max_retries=2,
        initial_backoff=0.5,
        max_backoff=0.75,
        sleep=sleeps.append,
    )


@pytest.fixture
def mock_create():
    with patch.object(stripe.PaymentIntent, "create") as mock:
        yield mock


@pytest.fixture
def mock_retrieve():
    with patch.object(stripe.PaymentIntent, "retrieve") as mock:
        yield mock


# ============================================================================
# Amount Conversion Tests
# ============================================================================


class TestMinorUnits:
    """Test currency amount conversions."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("45990.00"), 4599000),
            (Decimal("0.01"), 1),
            (Decimal("19.995"), 2000),
            (Decimal("0"), 0),
        ],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_from_minor_units(self):
        assert from_minor_units(4599050) == Decimal("45990.50")


# ============================================================================
# Construction Tests
# ============================================================================


class TestGatewayConstruction:
    """Test gateway configuration."""

    def test_missing_api_key(self):
        with patch("dealer_sales.services.payments.gateway.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(stripe_secret_key=None)

            with pytest.raises(PaymentGatewayError) as exc_info:
                StripePaymentGateway()

        assert exc_info.value.code == "not_configured"

    def test_backoff_is_capped(self, gateway):
        assert gateway._calculate_backoff(0) == 0.5
        assert gateway._calculate_backoff(1) == 0.75
        assert gateway._calculate_backoff(5) == 0.75


# ============================================================================
# Intent Creation Tests
# ============================================================================


class TestCreateIntent:
    """Test creating payment intents."""

    @pytest.mark.asyncio
    async def test_create_intent(self, gateway, mock_create):
        """
        Test intent creation parameters and result mapping.

        Verifies:
        - Amount is sent in minor units with a lowercase currency
        - Order and invoice are attached as metadata
        - Idempotency key is scoped to the invoice
        """
        mock_create.return_value = stripe_intent()
        order_id = uuid4()

        intent = await gateway.create_intent(
            amount=Decimal("45990.00"),
            currency="USD",
            order_id=order_id,
            invoice_number="INV-20260314-0001",
            customer_email="jane@example.com",
        )

        kwargs = mock_create.call_args.kwargs
        assert kwargs["amount"] == 4599000
        assert kwargs["currency"] == "usd"
        assert kwargs["metadata"] == {
            "order_id": str(order_id),
            "invoice_number": "INV-20260314-0001",
        }
        assert kwargs["receipt_email"] == "jane@example.com"
        assert kwargs["api_key"] == "sk_test_dealer"
        assert kwargs["idempotency_key"].startswith("INV-20260314-0001-")

        assert intent.id == "pi_3Nabc123"
        assert intent.amount == Decimal("45990.00")
        assert intent.client_secret == "pi_3Nabc123_secret_xyz"
        assert intent.payment_method_type == "card"
        assert intent.failed is False

    @pytest.mark.asyncio
    async def test_each_attempt_gets_its_own_idempotency_key(self, gateway, mock_create):
        mock_create.return_value = stripe_intent()

        for _ in range(2):
            await gateway.create_intent(
                Decimal("100.00"), "usd", uuid4(), "INV-20260314-0001"
            )

        first, second = (c.kwargs["idempotency_key"] for c in mock_create.call_args_list)
        assert first != second

    @pytest.mark.asyncio
    async def test_receipt_email_omitted(self, gateway, mock_create):
        mock_create.return_value = stripe_intent()

        await gateway.create_intent(Decimal("100.00"), "usd", uuid4(), "INV-20260314-0002")

        assert "receipt_email" not in mock_create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, gateway, mock_create, sleeps):
        mock_create.side_effect = [
            stripe.APIConnectionError("connection reset"),
            stripe.RateLimitError("slow down"),
            stripe_intent(),
        ]

        intent = await gateway.create_intent(
            Decimal("100.00"), "usd", uuid4(), "INV-20260314-0003"
        )

        assert intent.id == "pi_3Nabc123"
        assert mock_create.call_count == 3
        assert sleeps == [0.5, 0.75]

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, gateway, mock_create, sleeps):
        mock_create.side_effect = stripe.APIConnectionError("down")

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway.create_intent(
                Decimal("100.00"), "usd", uuid4(), "INV-20260314-0004"
            )

        assert exc_info.value.message == "Payment gateway unavailable"
        assert mock_create.call_count == 3
        assert len(sleeps) == 2

    @pytest.mark.asyncio
    async def test_permanent_error_is_not_retried(self, gateway, mock_create, sleeps):
        mock_create.side_effect = stripe.InvalidRequestError(
            "Amount must be at least 50 cents", param="amount", code="amount_too_small"
        )

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway.create_intent(Decimal("0.10"), "usd", uuid4(), "INV-20260314-0005")

        assert exc_info.value.code == "amount_too_small"
        assert isinstance(exc_info.value.__cause__, stripe.InvalidRequestError)
        assert mock_create.call_count == 1
        assert sleeps == []


# ============================================================================
# Intent Retrieval Tests
# ============================================================================


class TestRetrieveIntent:
    """Test reading intents back."""

    @pytest.mark.asyncio
    async def test_retrieve_succeeded(self, gateway, mock_retrieve):
        mock_retrieve.return_value = stripe_intent(status="succeeded")

        intent = await gateway.retrieve_intent("pi_3Nabc123")

        mock_retrieve.assert_called_once_with("pi_3Nabc123", api_key="sk_test_dealer")
        assert intent.status == "succeeded"

    @pytest.mark.asyncio
    async def test_retrieve_flags_payment_error(self, gateway, mock_retrieve):
        mock_retrieve.return_value = stripe_intent(
            last_payment_error={"code": "card_declined"},
            payment_method_types=[],
        )

        intent = await gateway.retrieve_intent("pi_3Nabc123")

        assert intent.failed is True
        assert intent.payment_method_type is None


# ============================================================================
# Intent Cancellation Tests
# ============================================================================


class TestCancelIntent:
    """Test cancelling intents of cancelled orders."""

    @pytest.mark.asyncio
    async def test_cancel_intent(self, gateway):
        with patch.object(stripe.PaymentIntent, "cancel") as mock_cancel:
            mock_cancel.return_value = stripe_intent(status="canceled")

            intent = await gateway.cancel_intent("pi_3Nabc123")

        mock_cancel.assert_called_once_with("pi_3Nabc123", api_key="sk_test_dealer")
        assert intent.status == "canceled"

    @pytest.mark.asyncio
    async def test_cancel_rejected(self, gateway, sleeps):
        with patch.object(stripe.PaymentIntent, "cancel") as mock_cancel:
            mock_cancel.side_effect = stripe.InvalidRequestError(
                "This PaymentIntent's status is succeeded", param=None
            )

            with pytest.raises(PaymentGatewayError):
                await gateway.cancel_intent("pi_3Nabc123")

        assert sleeps == []
