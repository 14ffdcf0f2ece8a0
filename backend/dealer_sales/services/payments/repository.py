"""Payment data access."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from dealer_sales.database.models.invoice import Invoice
from dealer_sales.database.models.payment import Payment
from dealer_sales.database.repository import BaseRepository


class PaymentRepository(BaseRepository):
    """Repository for payments and their invoices."""

    async def get_by_intent_id(
        self,
        payment_intent_id: str,
        for_update: bool = False,
    ) -> Optional[Payment]:
        """
        Get a non-deleted payment by gateway intent ID, with its invoice.

        Args:
            payment_intent_id: Gateway payment intent identifier
            for_update: Whether to lock the payment row
        """
        stmt = (
            select(Payment)
            .where(
                Payment.payment_intent_id == payment_intent_id,
                Payment.deleted_at.is_(None),
            )
            .options(selectinload(Payment.invoice).selectinload(Invoice.payments))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update(of=Payment)

        return await self.scalar_one_or_none(
            stmt, "fetch payment by intent", payment_intent_id=payment_intent_id
        )

    async def get_latest_for_order(self, order_id: uuid.UUID) -> Optional[Payment]:
        """Most recently created non-deleted payment on any of the order's invoices."""
        stmt = (
            select(Payment)
            .join(Invoice, Payment.invoice_id == Invoice.id)
            .where(
                Invoice.order_id == order_id,
                Invoice.deleted_at.is_(None),
                Payment.deleted_at.is_(None),
            )
            .order_by(Payment.created_at.desc())
            .limit(1)
        )
        return await self.scalar_one_or_none(
            stmt, "fetch latest payment", order_id=order_id
        )

    def add(self, payment: Payment) -> None:
        self.session.add(payment)
