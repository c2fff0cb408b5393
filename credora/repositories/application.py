"""
Application repository for tenant applications and admin review queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from credora.repositories.base import BaseRepository
from credora.models.application import Application, ApplicationStatus
from typing import Optional, List, Dict, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class ApplicationRepository(BaseRepository[Application]):
    def __init__(self, db: AsyncSession):
        super().__init__(Application, db)

    async def get_for_user(self, application_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Application]:
        try:
            query = select(Application).where(
                Application.id == application_id,
                Application.user_id == user_id
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get application {application_id} for user {user_id}: {e}")
            raise

    async def get_by_payment_intent(self, payment_intent_id: str) -> Optional[Application]:
        return await self.get_by_field("payment_intent_id", payment_intent_id)

    async def list_by_user(self, user_id: uuid.UUID) -> List[Application]:
        try:
            query = (
                select(Application)
                .where(Application.user_id == user_id)
                .order_by(desc(Application.created_at))
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list applications for user {user_id}: {e}")
            raise

    async def list_by_status(
        self,
        status: Optional[ApplicationStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Application], int]:
        filters = {"status": status} if status else None
        return await self.get_page(skip=skip, limit=limit, filters=filters)

    async def count_by_status(self) -> Dict[ApplicationStatus, int]:
        """
        Count applications grouped by status.

        Returns:
            Mapping with an entry for every status, zero when absent
        """
        try:
            query = select(Application.status, func.count(Application.id)).group_by(Application.status)
            result = await self.db.execute(query)
            counts = {status: 0 for status in ApplicationStatus}
            for status, count in result.all():
                counts[ApplicationStatus(status)] = count
            return counts
        except Exception as e:
            logger.error(f"Failed to count applications by status: {e}")
            raise
