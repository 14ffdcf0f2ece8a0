"""
Delivery service.

This module implements the DeliveryService class for scheduling deliveries of
paid orders, moving them through their lifecycle and listing them. A delivery
reaching delivered completes its order in the same transaction.
"""

import uuid
from datetime import datetime
from typing import Optional

from dealer_sales.core.clock import Clock
from dealer_sales.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from dealer_sales.core.logging import get_logger, log_performance
from dealer_sales.database.models.delivery import Delivery
from dealer_sales.database.unit_of_work import UnitOfWork
from dealer_sales.schemas.common import Page
from dealer_sales.schemas.deliveries import DeliveryFilter, DeliveryResponse
from dealer_sales.services.deliveries.state_machine import DeliveryStateMachine
from dealer_sales.services.orders.enums import DeliveryStatus, OrderStatus
from dealer_sales.services.pagination import DEFAULT_PAGE_SIZE, paginate_query
from dealer_sales.services.users.service import require_staff, resolve_actor

logger = get_logger(__name__)


class DeliveryService:
    """
    Delivery lifecycle operations.

    Attributes:
        uow: Unit of work for persistence
        clock: Clock used to stamp dates
        state_machine: Delivery transition rules
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock,
        state_machine: Optional[DeliveryStateMachine] = None,
    ):
        self.uow = uow
        self.clock = clock
        self.state_machine = state_machine or DeliveryStateMachine()

    async def create_delivery(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        planned_date: datetime,
        notes: Optional[str] = None,
        shipping_address: Optional[str] = None,
    ) -> DeliveryResponse:
        """
        Schedule the delivery of a paid order.

        Args:
            order_id: Order to deliver
            actor_id: Acting staff member
            planned_date: Planned delivery date
            notes: Delivery notes
            shipping_address: Destination, defaults to the order's address

        Returns:
            The scheduled delivery

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If actor is not staff
            NotFoundError: If order is missing
            ConflictError: If the order is cancelled, unpaid or already has a
                delivery
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "create_delivery")

            order = await self.uow.orders.get_for_update(order_id)
            if order is None:
                raise NotFoundError("Order not found", order_id=order_id)

            if order.status == OrderStatus.CANCELLED:
                raise ConflictError(
                    "Cannot create delivery for a cancelled order",
                    order_id=order_id,
                )

            if not order.has_paid_payment:
                raise ConflictError(
                    "Cannot create delivery for an unpaid order",
                    order_id=order_id,
                )

            existing = order.active_delivery
            if existing is not None:
                raise ConflictError(
                    "Delivery already exists for this order",
                    order_id=order_id,
                    delivery_id=existing.id,
                )

            now = self.clock.now()
            delivery = Delivery(
                id=uuid.uuid4(),
                planned_date=planned_date,
                actual_date=None,
                status=DeliveryStatus.SCHEDULED,
                shipping_address=shipping_address or order.shipping_address,
                notes=notes,
                created_at=now,
                updated_at=None,
                created_by=str(actor.id),
                updated_by=None,
                deleted_at=None,
            )
            order.deliveries.append(delivery)
            self.uow.deliveries.add(delivery)
            await self.uow.commit()

            logger.info(
                "Delivery created",
                delivery_id=str(delivery.id),
                order_id=str(order.id),
                planned_date=planned_date.isoformat(),
                actor_id=str(actor.id),
            )
            return DeliveryResponse.from_delivery(delivery)

    async def update_delivery_status(
        self,
        delivery_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
        new_status: DeliveryStatus,
        planned_date: Optional[datetime] = None,
        actual_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> DeliveryResponse:
        """
        Move a delivery through its lifecycle.

        Raises:
            UnauthenticatedError: If actor is missing
            ForbiddenError: If actor is not staff
            NotFoundError: If delivery is missing
            StateTransitionError: If the transition is not allowed
        """
        async with self.uow:
            actor = await resolve_actor(self.uow.users, actor_id)
            require_staff(actor, "update_delivery_status")

            delivery = await self.uow.deliveries.get_for_update(delivery_id)
            if delivery is None:
                raise NotFoundError("Delivery not found", delivery_id=delivery_id)

            if new_status == DeliveryStatus.DELIVERED:
                # lock the order before completing it
                await self.uow.orders.get_for_update(delivery.order_id)

            self.state_machine.apply_transition(
                delivery,
                new_status,
                actor_id=actor.id,
                at=self.clock.now(),
                planned_date=planned_date,
                actual_date=actual_date,
                notes=notes,
            )
            await self.uow.commit()
            return DeliveryResponse.from_delivery(delivery)

    async def get_delivery(
        self,
        delivery_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> DeliveryResponse:
        """
        Get a delivery visible to the actor.

        Raises:
            NotFoundError: If delivery is missing
            ForbiddenError: If actor is neither staff nor the order's customer
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        delivery = await self.uow.deliveries.get_by_id(delivery_id)
        if delivery is None:
            raise NotFoundError("Delivery not found", delivery_id=delivery_id)

        if not delivery.order.is_accessible_by(actor):
            raise ForbiddenError(
                "Not allowed to view this delivery",
                delivery_id=delivery_id,
                actor_id=actor.id,
            )
        return DeliveryResponse.from_delivery(delivery)

    async def get_delivery_by_order(
        self,
        order_id: uuid.UUID,
        actor_id: Optional[uuid.UUID],
    ) -> DeliveryResponse:
        """
        Get the active delivery of an order.

        Raises:
            NotFoundError: If the order or its delivery is missing
            ForbiddenError: If actor is neither staff nor the order's customer
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

        delivery = await self.uow.deliveries.get_active_for_order(order_id)
        if delivery is None:
            raise NotFoundError("Delivery not found for order", order_id=order_id)
        return DeliveryResponse.from_delivery(delivery)

    async def list_deliveries(
        self,
        actor_id: Optional[uuid.UUID],
        filters: Optional[DeliveryFilter] = None,
        page_number: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[DeliveryResponse]:
        """
        List deliveries for staff, newest first.

        Raises:
            ForbiddenError: If actor is not staff
        """
        actor = await resolve_actor(self.uow.users, actor_id)
        require_staff(actor, "list_deliveries")

        async with log_performance(logger, "list_deliveries"):
            return await paginate_query(
                self.uow.deliveries,
                self.uow.deliveries.filtered_stmt(filters),
                page_number,
                page_size,
                DeliveryResponse.from_delivery,
            )
