"""
Order service orchestrating the order lifecycle.

This module implements the OrderService class: creating orders with their
item, invoice and stock reservation in one transaction, cancelling orders
with compensating stock restoration, staff status changes validated by the
state machine, staff assignment, and the owner/staff scoped queries.
"""

import uuid
from decimal import Decimal
from typing import Optional

from dealer_sales.core.clock import Clock
from dealer_sales.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
)
from dealer_sales.core.logging import get_logger, log_performance
from dealer_sales.database.models.invoice import Invoice
from dealer_sales.database.models.order import Order, OrderItem
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.orders import OrderFilter, OrderResponse
from dealer_sales.services.inventory.service import InventoryService
from dealer_sales.services.orders.enums import InvoiceStatus, OrderStatus, PaymentStatus
from dealer_sales.services.orders.state_machine import OrderStateMachine
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE, paginate_query
from dealer_sales.services.payments.gateway import PaymentGateway, PaymentGatewayError
from dealer_sales.services.users.service import require_staff, resolve_actor

logger = get_logger(__name__)

INVOICE_AWAITING_PAYMENT_NOTE = "Awaiting payment"


class OrderService:
    """
    Order lifecycle operations.

    Every mutation runs inside one unit of work and commits once; any error
    rolls back every change of the operation, stock included.

    Attributes:
        uow: Unit of work for persistence
        clock: Clock used to stamp timestamps
        state_machine: Order transition rules
        inventory: Stock reservation and restoration
        gateway: Payment gateway whose open intents are cancelled with the order
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock,
        state_machine: Optional[OrderStateMachine] = None,
        gateway: Optional[PaymentGateway] = None,
    ):
        """
        Initialize order service.

        Args:
            uow: Unit of work wrapping the request's session
            clock: Clock provider
            state_machine: Optional state machine instance
            gateway: Optional payment gateway for releasing open intents
        """
        self.uow = uow
        self.clock = clock
        self.state_machine = state_machine or OrderStateMachine()
        self.inventory = InventoryService(uow.vehicles)
        self.gateway = gateway

    async def create_order(
        self,
        actor_id: Optional[uuid.UUID],
        vehicle_id: uuid.UUID,
        notes: Optional[str] = None,
        shipping_address: Optional[str] = None,
    ) -> uuid.UUID:
        """
        Create a pending order for one vehicle.

        Allocates the order and invoice numbers, snapshots the vehicle's base
        price onto a single item, issues a pending invoice and takes one unit
        of stock, all committed together.

        Args:
            actor_id: Ordering customer
            vehicle_id: Vehicle to order
            notes: Optional order notes
            shipping_address: Optional shipping address

        Returns:
            ID of the created order

        Raises:
            UnauthenticatedError: If no actor is supplied
            NotFoundError: If the customer or vehicle is missing
            ConflictError: If the vehicle is inactive or out of stock, or a
                number collides with a concurrent allocation
        """
        if actor_id is None:
            raise UnauthenticatedError("Authentication required")

        async with self.uow:
            customer = await self.uow.users.get_by_id(actor_id)
            if customer is None:
                raise NotFoundError("Customer not found", customer_id=actor_id)

            vehicle = await self.inventory.reserve(vehicle_id)

            now = self.clock.now()
            order_number = await self.uow.orders.next_order_number(now)
            invoice_number = await self.uow.orders.next_invoice_number(now)
            unit_price = Decimal(vehicle.base_price)

            order = Order(
                id=uuid.uuid4(),
                order_number=order_number,
                customer_id=customer.id,
                status=OrderStatus.PENDING,
                total_amount=unit_price,
                shipping_address=shipping_address,
                notes=notes,
                created_at=now,
                created_by=str(customer.id),
            )
            order.items.append(
                OrderItem(
                    id=uuid.uuid4(),
                    vehicle_id=vehicle.id,
                    unit_price=unit_price,
                    created_at=now,
                )
            )
            order.invoices.append(
                Invoice(
                    id=uuid.uuid4(),
                    customer_id=customer.id,
                    invoice_number=invoice_number,
                    total_amount=order.total_amount,
                    status=InvoiceStatus.PENDING,
                    notes=INVOICE_AWAITING_PAYMENT_NOTE,
                    created_at=now,
                )
            )
            self.uow.orders.add(order)
            await self.uow.commit()

            logger.info(
                "Order created",
                order_id=str(order.id),
                order_number=order_number,
                invoice_number=invoice_number,
                customer_id=str(customer.id),
                vehicle_id=str(vehicle.id),
                total_amount=str(order.total_amount),
                new_stock=vehicle.stock,
            )
            return order.id

    async def cancel_order(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        reason: Optional[str] = None,
    ) -> bool:
        """
        Cancel an unpaid order and return its stock.

        Pending payments are marked failed in the same transaction; their
        gateway intents are cancelled once it has committed.

        Args:
            order_id: Order to cancel
            actor_id: Ordering customer or staff member
            reason: Optional cancellation reason appended to the notes

        Returns:
            True once the cancellation is committed

        Raises:
            UnauthenticatedError: If actor is missing
            NotFoundError: If order is missing
            ForbiddenError: If actor is neither owner nor staff
            ConflictError: If the order is cancelled, delivered or paid
            FatalError: If an item's vehicle vanished; nothing is committed
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            order = await self.uow.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            if not order.is_accessible_by(actor):
                raise ForbiddenError(
                    "Not allowed to cancel this order",
                    order_id=order_id,
                    actor_id=actor.id,
                )

            released = await self._cancel(order, actor.id, reason)
            await self.uow.commit()

        await self._release_intents(order_id, released)
        return True

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        new_status: OrderStatus,
        notes: Optional[str] = None,
    ) -> OrderResponse:
        """
        Apply a staff-requested status change.

        Cancellation through this path restores stock like ``cancel_order``.

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If actor is not staff
            NotFoundError: If order is missing
            StateTransitionError: If the transition or its payment guard fails
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "update_order_status")

            order = await self.uow.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            released: list[str] = []
            if new_status == OrderStatus.CANCELLED and order.status != OrderStatus.CANCELLED:
                self.state_machine.validate_transition(order, new_status)
                released = await self._cancel(order, actor.id, notes)
            else:
                self.state_machine.apply_transition(
                    order,
                    new_status,
                    actor_id=actor.id,
                    at=self.clock.now(),
                    note=notes,
                )

            await self.uow.commit()
            response = OrderResponse.from_order(order)

        await self._release_intents(order_id, released)
        return response

    async def assign_staff(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        staff_id: uuid.UUID,
    ) -> OrderResponse:
        """
        Assign a staff member to an order.

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If actor is not staff
            NotFoundError: If the order is missing, or the staff user is
                missing, soft-deleted or lacks staff capability
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "assign_staff")

            order = await self.uow.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            staff = await self.uow.users.get_by_id(staff_id)
            if staff is None or not staff.is_staff:
                raise NotFoundError("Staff member not found", staff_id=staff_id)

            order.staff = staff
            order.staff_id = staff.id
            order.stamp_update(actor.id, self.clock.now())
            await self.uow.commit()

            logger.info(
                "Staff assigned to order",
                order_id=str(order.id),
                staff_id=str(staff.id),
                actor_id=str(actor.id),
            )
            return OrderResponse.from_order(order)

    async def get_order(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> OrderResponse:
        """
        Get an order visible to the actor.

        Raises:
            NotFoundError: If order is missing
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
        return OrderResponse.from_order(order)

    async def list_my_orders(
        self,
        actor_id: Optional[uuid.UUID],
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[OrderResponse]:
        """List the actor's own orders, newest first."""
        actor = await resolve_actor(self.uow.users, actor_id)
        return await paginate_query(
            self.uow.orders,
            self.uow.orders.customer_orders_stmt(actor.id),
            page_number,
            page_size,
            OrderResponse.from_order,
        )

    async def list_orders(
        self,
        actor_id: Optional[uuid.UUID],
        filters: Optional[OrderFilter] = None,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[OrderResponse]:
        """
        List all orders for staff, newest first.

        Raises:
            ForbiddenError: If actor is not staff
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        require_staff(actor, "list_orders")

        async with log_performance(logger, "list_orders"):
            return await paginate_query(
                self.uow.orders,
                self.uow.orders.filtered_stmt(filters),
                page_number,
                page_size,
                OrderResponse.from_order,
            )

    async def _cancel(
        self,
        order: Order,
        actor_id: uuid.UUID,
        reason: Optional[str],
    ) -> list[str]:
        """
        Cancel a locked order: status, notes, open invoices, pending payments
        and stock.

        Returns:
            Gateway intent IDs of the payments marked failed

        Raises:
            ConflictError: If the order is terminal or has a paid payment
            FatalError: If stock cannot be restored
        """
        if order.status.is_terminal:
            raise ConflictError(
                f"Order is already {order.status.value}",
                order_id=order.id,
                status=order.status.value,
            )

        if order.has_paid_payment:
            raise ConflictError(
                "Cannot cancel an order with a paid payment",
                order_id=order.id,
            )

        now = self.clock.now()
        note = f"Cancelled: {reason}" if reason else "Cancelled"
        self.state_machine.apply_transition(
            order,
            OrderStatus.CANCELLED,
            actor_id=actor_id,
            at=now,
            note=note,
        )

        released = []
        for invoice in order.invoices:
            if invoice.is_deleted:
                continue
            if invoice.status.is_open:
                invoice.status = InvoiceStatus.CANCELLED
                invoice.updated_at = now
            for payment in invoice.payments:
                if not payment.is_deleted and payment.status == PaymentStatus.PENDING:
                    payment.status = PaymentStatus.FAILED
                    payment.updated_at = now
                    if payment.payment_intent_id:
                        released.append(payment.payment_intent_id)

        items = order.live_items
        restored = await self.inventory.restore(items)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            actor_id=str(actor_id),
            item_count=len(items),
            restored_units=restored,
            failed_payments=len(released),
        )
        return released

    async def _release_intents(self, order_id: uuid.UUID, intent_ids: list[str]) -> None:
        """
        Cancel the gateway intents of a committed cancellation.

        A gateway failure leaves the cancellation in place; a late success on
        such an intent is flagged for refund by ``PaymentService.confirm_payment``.
        """
        if self.gateway is None:
            return

        for intent_id in intent_ids:
            try:
                await self.gateway.cancel_intent(intent_id)
            except PaymentGatewayError as e:
                logger.warning(
                    "Failed to cancel payment intent of cancelled order",
                    order_id=str(order_id),
                    payment_intent_id=intent_id,
                    error=e.message,
                    code=e.code,
                )
