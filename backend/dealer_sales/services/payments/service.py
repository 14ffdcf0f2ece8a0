"""
Payment recording service.

Records what the payment gateway reports about an order's invoice. The
gateway decides outcomes; this service stores them and marks the invoice paid
once a payment succeeds. It never writes the order status, and it never
marks an invoice paid after the order was cancelled.
"""

import uuid
from typing import Optional

from dealer_sales.core.clock import Clock
from dealer_sales.core.config import get_settings
from dealer_sales.core.exceptions import (
    ConflictError,
    DealerSalesError,
    ForbiddenError,
    NotFoundError,
)
from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.invoice import Invoice
from dealer_sales.database.models.order import Order
from dealer_sales.database.models.payment import Payment
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.schemas.orders import PaymentResponse
from dealer_sales.schemas.payments import PaymentIntentResponse
from dealer_sales.services.orders.enums import (
    InvoiceStatus,
    OrderStatus,
    PaymentStatus,
    validate_payment_status_transition,
)
from dealer_sales.services.payments.gateway import (
    GatewayIntent,
    PaymentGateway,
    PaymentGatewayError,
)
from dealer_sales.services.users.service import resolve_actor

logger = get_logger(__name__)


def map_intent_status(intent: GatewayIntent) -> PaymentStatus:
    """
    Map a gateway intent status to a payment status.

    ``requires_payment_method`` is the initial state of every intent, so it
    only counts as a failure once the gateway has recorded a payment error.
    """
    if intent.status == "succeeded":
        return PaymentStatus.PAID
    if intent.status == "canceled":
        return PaymentStatus.FAILED
    if intent.status == "requires_payment_method" and intent.failed:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


class PaymentService:
    """
    Payment recording operations.

    Attributes:
        uow: Unit of work for persistence
        gateway: External payment gateway
        clock: Clock used to stamp payment dates
    """

    def __init__(self, uow: UnitOfWork, gateway: PaymentGateway, clock: Clock):
        self.uow = uow
        self.gateway = gateway
        self.clock = clock
        self.currency = get_settings().payment_currency

    async def create_payment_intent(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> PaymentIntentResponse:
        """
        Open a gateway payment intent for the order's pending invoice.

        The order is checked in a read-only transaction and the gateway is
        called without holding any row lock. The payment is then recorded in a
        second transaction that locks the order and checks it is still
        payable through the same invoice; if not, or if that transaction fails,
        the new intent is cancelled again.

        Args:
            order_id: Order to pay
            actor_id: Acting customer

        Returns:
            Intent details including the client secret

        Raises:
            UnauthenticatedError: If actor is missing
            NotFoundError: If order is missing
            ForbiddenError: If actor is not the order's customer
            ConflictError: If the order is not pending, has no pending invoice
                or is already paid
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            order = await self.uow.orders.get_by_id(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            if order.customer_id != actor.id:
                raise ForbiddenError(
                    "Only the ordering customer can pay for an order",
                    order_id=order_id,
                    actor_id=actor.id,
                )

            invoice = self._payable_invoice(order)
            invoice_id = invoice.id
            invoice_number = invoice.invoice_number
            amount = invoice.total_amount
            customer_email = order.customer.email if order.customer else None

        intent = await self.gateway.create_intent(
            amount=amount,
            currency=self.currency,
            order_id=order_id,
            invoice_number=invoice_number,
            customer_email=customer_email,
        )

        try:
            async with self.uow:
                order = await self.uow.orders.get_for_update(order_id)
                if order is None:
                    raise NotFoundError("Order not found", order_id=order_id)

                invoice = self._payable_invoice(order)
                if invoice.id != invoice_id:
                    raise ConflictError(
                        "Order invoice changed while opening the payment",
                        order_id=order_id,
                        invoice_id=invoice_id,
                    )

                payment = Payment(
                    id=uuid.uuid4(),
                    amount=invoice.total_amount,
                    status=PaymentStatus.PENDING,
                    payment_method=intent.payment_method_type,
                    payment_intent_id=intent.id,
                    created_at=self.clock.now(),
                )
                invoice.payments.append(payment)
                await self.uow.commit()
        except DealerSalesError:
            await self._release_intent(intent.id)
            raise

        logger.info(
            "Payment intent recorded",
            order_id=str(order_id),
            invoice_id=str(invoice_id),
            payment_id=str(payment.id),
            payment_intent_id=intent.id,
        )

        return PaymentIntentResponse(
            payment_id=payment.id,
            order_id=order_id,
            invoice_id=invoice_id,
            payment_intent_id=intent.id,
            client_secret=intent.client_secret,
            amount=amount,
            currency=intent.currency,
            status=PaymentStatus.PENDING,
        )

    async def confirm_payment(
        self,
        payment_intent_id: str,
        actor_id: Optional[uuid.UUID],
    ) -> PaymentResponse:
        """
        Record the gateway's current outcome for a payment intent.

        A success reported for an invoice that was cancelled in the meantime
        does not touch the invoice or the payment status; the payment is
        flagged as requiring a refund instead.

        Args:
            payment_intent_id: Gateway payment intent identifier
            actor_id: Ordering customer or staff member

        Raises:
            UnauthenticatedError: If actor is missing
            NotFoundError: If no payment carries the intent ID
            ForbiddenError: If actor is neither the order's customer nor staff
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            payment = await self.uow.payments.get_by_intent_id(
                payment_intent_id, for_update=True
            )
            if payment is None:
                raise NotFoundError(
                    "Payment not found",
                    payment_intent_id=payment_intent_id,
                )

            invoice = payment.invoice
            if invoice.customer_id != actor.id and not actor.is_staff:
                raise ForbiddenError(
                    "Not allowed to confirm this payment",
                    payment_intent_id=payment_intent_id,
                    actor_id=actor.id,
                )

            intent = await self.gateway.retrieve_intent(payment_intent_id)
            new_status = map_intent_status(intent)
            old_status = payment.status

            if new_status == PaymentStatus.PAID and invoice.status == InvoiceStatus.CANCELLED:
                if not payment.requires_refund:
                    payment.requires_refund = True
                    payment.updated_at = self.clock.now()
                    await self.uow.commit()

                    logger.error(
                        "Payment captured for a cancelled invoice; refund required",
                        payment_id=str(payment.id),
                        payment_intent_id=payment_intent_id,
                        invoice_id=str(invoice.id),
                        amount=str(payment.amount),
                    )
            elif new_status != old_status:
                if not validate_payment_status_transition(old_status, new_status):
                    logger.warning(
                        "Ignoring gateway status regression",
                        payment_id=str(payment.id),
                        old_status=old_status.value,
                        gateway_status=intent.status,
                    )
                else:
                    now = self.clock.now()
                    payment.status = new_status
                    payment.updated_at = now
                    if intent.payment_method_type:
                        payment.payment_method = intent.payment_method_type

                    if new_status == PaymentStatus.PAID:
                        payment.payment_date = now
                        invoice.status = InvoiceStatus.PAID
                        invoice.updated_at = now

                    await self.uow.commit()

                    logger.info(
                        "Payment status recorded",
                        payment_id=str(payment.id),
                        payment_intent_id=payment_intent_id,
                        old_status=old_status.value,
                        new_status=new_status.value,
                    )

            return PaymentResponse.model_validate(payment)

    async def get_payment_intent(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> PaymentResponse:
        """
        Latest payment recorded for an order.

        Raises:
            NotFoundError: If the order or any payment is missing
            ForbiddenError: If actor is neither owner nor staff
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        order = await self.uow.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found", order_id=order_id)
        if not order.is_accessible_by(actor):
            raise ForbiddenError(
                "Not allowed to view this order",
                order_id=order_id,
                actor_id=actor.id,
            )

        payment = await self.uow.payments.get_latest_for_order(order_id)
        if payment is None:
            raise NotFoundError("No payment found for order", order_id=order_id)
        return PaymentResponse.model_validate(payment)

    @staticmethod
    def _payable_invoice(order: Order) -> Invoice:
        if order.status != OrderStatus.PENDING:
            raise ConflictError(
                "Only pending orders can be paid",
                order_id=order.id,
                status=order.status.value,
            )
        if order.has_paid_payment:
            raise ConflictError("Order is already paid", order_id=order.id)

        for invoice in order.invoices:
            if not invoice.is_deleted and invoice.status == InvoiceStatus.PENDING:
                return invoice

        raise ConflictError("Order has no pending invoice", order_id=order.id)

    async def _release_intent(self, payment_intent_id: str) -> None:
        """Cancel an intent that no payment row will track."""
        try:
            await self.gateway.cancel_intent(payment_intent_id)
        except PaymentGatewayError as e:
            logger.error(
                "Failed to cancel untracked payment intent",
                payment_intent_id=payment_intent_id,
                error=e.message,
                code=e.code,
            )
