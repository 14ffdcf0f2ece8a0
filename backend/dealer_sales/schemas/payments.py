"""Payment Pydantic schemas."""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from dealer_sales.schemas.orders import PaymentResponse
from dealer_sales.services.orders.enums import PaymentStatus


class PaymentIntentResponse(BaseModel):
    """Payment intent handed to the client to complete checkout."""

    payment_id: UUID
    order_id: UUID
    invoice_id: UUID
    payment_intent_id: str
    client_secret: Optional[str] = None
    amount: Decimal
    currency: str
    status: PaymentStatus


class ConfirmPaymentRequest(BaseModel):
    """Request to record the gateway outcome of a payment intent."""

    model_config = ConfigDict(str_strip_whitespace=True)

    payment_intent_id: str = Field(..., min_length=1, max_length=255)


__all__ = ["ConfirmPaymentRequest", "PaymentIntentResponse", "PaymentResponse"]
