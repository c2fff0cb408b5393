"""
Payment repository mirroring Stripe PaymentIntents locally.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from credora.repositories.base import BaseRepository
from credora.models.payment import Payment, PaymentRecordStatus
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Payment, db)

    async def get_by_intent_id(self, payment_intent_id: str) -> Optional[Payment]:
        return await self.get_by_field("payment_intent_id", payment_intent_id)

    async def update_status(
        self,
        payment: Payment,
        status: PaymentRecordStatus,
        failure_message: Optional[str] = None
    ) -> Payment:
        values = {"status": status}
        if failure_message is not None:
            values["failure_message"] = failure_message[:500]
        updated = await self.update(payment, values)
        logger.info(f"Payment {payment.payment_intent_id} marked {status.value}")
        return updated
