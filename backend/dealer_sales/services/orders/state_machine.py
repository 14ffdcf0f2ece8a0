"""Order state machine implementation with transition validation.

This module implements the OrderStateMachine class which validates staff
requested order transitions against the transition table and the payment
guards, and applies the status change with audit stamping. Stock restoration
on cancellation is an asynchronous side effect owned by the order service.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional, Set
from uuid import UUID

from dealer_sales.core.exceptions import ConflictError
from dealer_sales.core.logging import get_logger
from dealer_sales.database.models.order import Order
from dealer_sales.services.orders.enums import (
    OrderStatus,
    get_allowed_order_transitions,
    validate_order_status_transition,
)

logger = get_logger(__name__)


class StateTransitionError(ConflictError):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        message: str,
        current_state: Any,
        target_state: Any,
        **context: Any,
    ):
        super().__init__(
            message,
            current_state=getattr(current_state, "value", current_state),
            target_state=getattr(target_state, "value", target_state),
            **context,
        )
        self.current_state = current_state
        self.target_state = target_state


class OrderStateMachine:
    """State machine for order lifecycle transitions requested by staff.

    ``delivered`` is never a valid target here; it is reached only when the
    order's delivery completes (see ``mark_delivered``).
    """

    def __init__(self) -> None:
        self._transition_guards: Dict[
            OrderStatus, tuple[Callable[[Order], bool], str]
        ] = {
            OrderStatus.CONFIRMED: (
                self._guard_payment_received,
                "Order cannot be confirmed without a paid payment",
            ),
            OrderStatus.CANCELLED: (
                self._guard_no_payment_received,
                "Order with a paid payment cannot be cancelled",
            ),
        }

    def validate_transition(self, order: Order, target_status: OrderStatus) -> bool:
        """Validate if transition to target status is allowed.

        Args:
            order: Fully loaded order
            target_status: Desired target status

        Returns:
            True if transition is valid

        Raises:
            StateTransitionError: If the table forbids the transition or a
                guard fails
        """
        current_status = order.status

        if not validate_order_status_transition(current_status, target_status):
            allowed = get_allowed_order_transitions(current_status)
            raise StateTransitionError(
                f"Invalid transition from {current_status.value} to "
                f"{target_status.value}",
                current_state=current_status,
                target_state=target_status,
                order_id=order.id,
                allowed_transitions=sorted(s.value for s in allowed),
            )

        guard = self._transition_guards.get(target_status)
        if guard and current_status != target_status:
            check, message = guard
            if not check(order):
                raise StateTransitionError(
                    message,
                    current_state=current_status,
                    target_state=target_status,
                    order_id=order.id,
                )

        return True

    def apply_transition(
        self,
        order: Order,
        target_status: OrderStatus,
        actor_id: UUID,
        at: datetime,
        note: Optional[str] = None,
    ) -> OrderStatus:
        """Validate and apply a transition, appending the note.

        Returns:
            The previous status
        """
        self.validate_transition(order, target_status)

        old_status = order.status
        order.status = target_status
        order.append_note(note)
        order.stamp_update(actor_id, at)

        logger.info(
            "Order status transition applied",
            order_id=str(order.id),
            transition=f"{old_status.value}->{target_status.value}",
            actor_id=str(actor_id),
        )
        return old_status

    def mark_delivered(self, order: Order, actor_id: UUID, at: datetime) -> bool:
        """Force an order to delivered when its delivery completes.

        Returns:
            True if the status changed, False if it was already delivered

        Raises:
            StateTransitionError: If the order was cancelled
        """
        if order.status == OrderStatus.DELIVERED:
            return False
        if order.status == OrderStatus.CANCELLED:
            raise StateTransitionError(
                "Cancelled order cannot be delivered",
                current_state=order.status,
                target_state=OrderStatus.DELIVERED,
                order_id=order.id,
            )

        old_status = order.status
        order.status = OrderStatus.DELIVERED
        order.stamp_update(actor_id, at)

        logger.info(
            "Order marked delivered",
            order_id=str(order.id),
            transition=f"{old_status.value}->{OrderStatus.DELIVERED.value}",
            actor_id=str(actor_id),
        )
        return True

    def get_allowed_transitions(self, order: Order) -> Set[OrderStatus]:
        """Get allowed transitions from current order status."""
        return get_allowed_order_transitions(order.status)

    def can_cancel(self, order: Order) -> bool:
        """Check if order can be cancelled now."""
        return not order.status.is_terminal and not order.has_paid_payment

    @staticmethod
    def _guard_payment_received(order: Order) -> bool:
        return order.has_paid_payment

    @staticmethod
    def _guard_no_payment_received(order: Order) -> bool:
        return not order.has_paid_payment
