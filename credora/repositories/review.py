"""
Review and apartment finder repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc
from credora.repositories.base import BaseRepository
from credora.models.review import Review
from credora.models.finder import ApartmentFinderRequest
from typing import Optional, List, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)

    async def list_for_apartment(self, apartment_id: uuid.UUID) -> List[Review]:
        try:
            query = (
                select(Review)
                .where(Review.apartment_id == apartment_id)
                .order_by(desc(Review.created_at))
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list reviews for apartment {apartment_id}: {e}")
            raise

    async def rating_summary(self, apartment_id: uuid.UUID) -> Tuple[Optional[Decimal], int]:
        """
        Average rating and review count for an apartment.

        Returns:
            (average rounded to one decimal or None, count)
        """
        try:
            query = select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.apartment_id == apartment_id
            )
            result = await self.db.execute(query)
            average, count = result.one()
            if not count:
                return None, 0
            return Decimal(str(average)).quantize(Decimal("0.1")), count
        except Exception as e:
            logger.error(f"Failed to summarize ratings for apartment {apartment_id}: {e}")
            raise


class FinderRequestRepository(BaseRepository[ApartmentFinderRequest]):
    def __init__(self, db: AsyncSession):
        super().__init__(ApartmentFinderRequest, db)

    async def get_by_reference(self, reference: str) -> Optional[ApartmentFinderRequest]:
        return await self.get_by_field("reference", reference)

    async def list_by_email(self, email: str) -> List[ApartmentFinderRequest]:
        try:
            query = (
                select(ApartmentFinderRequest)
                .where(ApartmentFinderRequest.user_email == email.lower().strip())
                .order_by(desc(ApartmentFinderRequest.created_at))
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to list finder requests for {email}: {e}")
            raise
