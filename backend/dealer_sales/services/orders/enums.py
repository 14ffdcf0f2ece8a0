"""Status enums and transition tables for orders, invoices, payments and deliveries.

This module defines the lifecycle enums of the order aggregate together with
the state transition rules enforced by the order and delivery state machines.
"""

from enum import Enum
from typing import Dict, Set


class OrderStatus(str, Enum):
    """Order lifecycle status.

    Valid transitions:
    - PENDING -> CONFIRMED (paid), CANCELLED (unpaid)
    - CONFIRMED -> DELIVERED (delivery completion only), CANCELLED (unpaid)
    - DELIVERED -> (terminal state)
    - CANCELLED -> (terminal state)
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    DELIVERED = "delivered"

    @classmethod
    def from_string(cls, value: str) -> "OrderStatus":
        """Convert string to OrderStatus enum.

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.lower())
        except ValueError:
            valid_values = ", ".join([s.value for s in cls])
            raise ValueError(
                f"Invalid order status: {value}. "
                f"Valid values are: {valid_values}"
            )

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class InvoiceStatus(str, Enum):
    """Invoice status. PENDING is the unpaid state of a fresh invoice."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @property
    def is_open(self) -> bool:
        return self in (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE)


class PaymentStatus(str, Enum):
    """Payment status as reported by the payment gateway."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class DeliveryStatus(str, Enum):
    """Delivery lifecycle status.

    Valid transitions:
    - SCHEDULED -> IN_TRANSIT, DELIVERED, CANCELLED
    - IN_TRANSIT -> DELIVERED, CANCELLED
    - DELIVERED -> (terminal state)
    - CANCELLED -> (terminal state)

    Re-applying the current status is allowed so dates and notes can change.
    """

    SCHEDULED = "scheduled"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> "DeliveryStatus":
        try:
            return cls(value.lower())
        except ValueError:
            valid_values = ", ".join([s.value for s in cls])
            raise ValueError(
                f"Invalid delivery status: {value}. "
                f"Valid values are: {valid_values}"
            )


# Transitions a staff member may request through update_order_status.
# DELIVERED is deliberately absent: it is reached only when a delivery completes.
ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, Set[OrderStatus]] = {
    OrderStatus.PENDING: {
        OrderStatus.PENDING,
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.CONFIRMED: {
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

PAYMENT_STATUS_TRANSITIONS: Dict[PaymentStatus, Set[PaymentStatus]] = {
    PaymentStatus.PENDING: {
        PaymentStatus.PENDING,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    },
    PaymentStatus.PAID: {
        PaymentStatus.PAID,
        PaymentStatus.REFUNDED,
    },
    PaymentStatus.FAILED: {
        PaymentStatus.FAILED,
        PaymentStatus.PENDING,
        PaymentStatus.PAID,
    },
    PaymentStatus.REFUNDED: set(),
}

DELIVERY_STATUS_TRANSITIONS: Dict[DeliveryStatus, Set[DeliveryStatus]] = {
    DeliveryStatus.SCHEDULED: {
        DeliveryStatus.SCHEDULED,
        DeliveryStatus.IN_TRANSIT,
        DeliveryStatus.DELIVERED,
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.IN_TRANSIT: {
        DeliveryStatus.IN_TRANSIT,
        DeliveryStatus.DELIVERED,
        DeliveryStatus.CANCELLED,
    },
    DeliveryStatus.DELIVERED: {DeliveryStatus.DELIVERED},
    DeliveryStatus.CANCELLED: set(),
}


def validate_order_status_transition(
    current: OrderStatus,
    new: OrderStatus,
) -> bool:
    """Validate if a staff-requested order status transition is allowed."""
    return new in ORDER_STATUS_TRANSITIONS.get(current, set())


def validate_payment_status_transition(
    current: PaymentStatus,
    new: PaymentStatus,
) -> bool:
    """Validate if a gateway-reported payment status change is allowed."""
    return new in PAYMENT_STATUS_TRANSITIONS.get(current, set())


def validate_delivery_status_transition(
    current: DeliveryStatus,
    new: DeliveryStatus,
) -> bool:
    """Validate if a delivery status transition is allowed."""
    return new in DELIVERY_STATUS_TRANSITIONS.get(current, set())


def get_allowed_order_transitions(current: OrderStatus) -> Set[OrderStatus]:
    """Get all statuses reachable from current order status."""
    return ORDER_STATUS_TRANSITIONS.get(current, set()).copy()


def get_allowed_delivery_transitions(current: DeliveryStatus) -> Set[DeliveryStatus]:
    """Get all statuses reachable from current delivery status."""
    return DELIVERY_STATUS_TRANSITIONS.get(current, set()).copy()
