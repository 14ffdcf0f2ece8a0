"""Delivery state machine.

Validates delivery status transitions and applies them with date and audit
stamping. Completing a delivery forces the owning order to delivered through
the order state machine, which stays the only writer of order status.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.delivery import Delivery
from dealer_sales.services.orders.enums import (
    DeliveryStatus,
    get_allowed_delivery_transitions,
    validate_delivery_status_transition,
)
from dealer_sales.services.orders.state_machine import (
    OrderStateMachine,
    StateTransitionError,
)

logger = get_logger(__name__)


class DeliveryStateMachine:
    """State machine for delivery lifecycle transitions."""

    def __init__(self, order_state_machine: Optional[OrderStateMachine] = None):
        self.order_state_machine = order_state_machine or OrderStateMachine()

    def validate_transition(
        self,
        delivery: Delivery,
        target_status: DeliveryStatus,
    ) -> bool:
        """Validate a delivery status transition.

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        current_status = delivery.status
        if not validate_delivery_status_transition(current_status, target_status):
            allowed = get_allowed_delivery_transitions(current_status)
            raise StateTransitionError(
                f"Invalid delivery transition from {current_status.value} to "
                f"{target_status.value}",
                current_state=current_status,
                target_state=target_status,
                delivery_id=delivery.id,
                allowed_transitions=sorted(s.value for s in allowed),
            )
        return True

    def apply_transition(
        self,
        delivery: Delivery,
        target_status: DeliveryStatus,
        actor_id: UUID,
        at: datetime,
        planned_date: Optional[datetime] = None,
        actual_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> DeliveryStatus:
        """Validate and apply a transition.

        On ``delivered`` the actual date is set to the supplied value or
        ``at``, and the owning order is forced to delivered with the same
        actor stamped.

        Returns:
            The previous status
        """
        self.validate_transition(delivery, target_status)

        old_status = delivery.status
        delivery.status = target_status

        if planned_date is not None:
            delivery.planned_date = planned_date
        if notes is not None:
            delivery.notes = notes

        if target_status == DeliveryStatus.DELIVERED:
            if actual_date is not None or delivery.actual_date is None:
                delivery.actual_date = actual_date or at
            self.order_state_machine.mark_delivered(delivery.order, actor_id, at)

        delivery.stamp_update(actor_id, at)

        logger.info(
            "Delivery status transition applied",
            delivery_id=str(delivery.id),
            order_id=str(delivery.order_id),
            transition=f"{old_status.value}->{target_status.value}",
            actor_id=str(actor_id),
        )
        return old_status
