"""
Payment API endpoints.

Checkout itself happens with the gateway; these endpoints open an intent for
an order and record the outcome the gateway reports.
"""

from uuid import UUID

from fastapi import APIRouter, status

from dealer_sales.api.deps import ActorId, PaymentServiceDep
from dealer_sales.schemas.payments import (
    ConfirmPaymentRequest,
    PaymentIntentResponse,
    PaymentResponse,
)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/orders/{order_id}/intent",
    response_model=PaymentIntentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create payment intent",
)
async def create_payment_intent(
    order_id: UUID,
    actor_id: ActorId,
    service: PaymentServiceDep,
) -> PaymentIntentResponse:
    return await service.create_payment_intent(order_id, actor_id)


@router.get(
    "/orders/{order_id}",
    response_model=PaymentResponse,
    summary="Get latest payment of an order",
)
async def get_payment_intent(
    order_id: UUID,
    actor_id: ActorId,
    service: PaymentServiceDep,
) -> PaymentResponse:
    return await service.get_payment_intent(order_id, actor_id)


@router.post(
    "/confirm",
    response_model=PaymentResponse,
    summary="Record gateway outcome of a payment intent",
)
async def confirm_payment(
    request: ConfirmPaymentRequest,
    actor_id: ActorId,
    service: PaymentServiceDep,
) -> PaymentResponse:
    """Only the ordering customer or staff may record an intent's outcome."""
    return await service.confirm_payment(request.payment_intent_id, actor_id)
