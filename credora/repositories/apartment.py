"""
Apartment repository with listing search and landlord listing queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, desc
from credora.repositories.base import BaseRepository
from credora.models.apartment import Apartment, FloorPlan
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import uuid
import logging

logger = logging.getLogger(__name__)


class ApartmentSearchFilters:
    """Data class for apartment search filters."""

    def __init__(
        self,
        city: Optional[str] = None,
        min_price: Optional[Decimal] = Decimal("0"),
        max_price: Optional[Decimal] = Decimal("10000"),
        bedrooms: Optional[int] = None,
        bathrooms: Optional[Decimal] = None,
        pet_friendly: Optional[bool] = None,
        parking: Optional[bool] = None,
        verified: Optional[bool] = True,
        landlord_id: Optional[uuid.UUID] = None
    ):
        self.city = city.strip() if city else None
        self.min_price = min_price
        self.max_price = max_price
        self.bedrooms = bedrooms
        self.bathrooms = bathrooms
        self.pet_friendly = pet_friendly
        self.parking = parking
        self.verified = verified
        self.landlord_id = landlord_id


class ApartmentRepository(BaseRepository[Apartment]):
    """Repository for apartment listings and their floor plans."""

    def __init__(self, db: AsyncSession):
        super().__init__(Apartment, db)

    async def create_apartment(
        self,
        apartment_data: Dict[str, Any],
        floor_plans: Optional[List[Dict[str, Any]]] = None
    ) -> Apartment:
        """
        Create a listing after validating its values.

        Args:
            apartment_data: Column values for the listing
            floor_plans: Optional floor plan rows to attach

        Returns:
            Created apartment with floor plans loaded

        Raises:
            ValueError: If validation fails
        """
        apartment = Apartment(**apartment_data)
        apartment.validate_all()

        try:
            apartment.floor_plans = [FloorPlan(**plan) for plan in (floor_plans or [])]
            self.db.add(apartment)
            await self.db.commit()
            await self.db.refresh(apartment)
            logger.info(f"Created apartment: {apartment.title} (ID: {apartment.id})")
            return apartment
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create apartment: {e}")
            raise

    async def get_published(self, apartment_id: uuid.UUID) -> Optional[Apartment]:
        try:
            query = select(Apartment).where(
                and_(Apartment.id == apartment_id, Apartment.verified == True)  # noqa: E712
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get published apartment {apartment_id}: {e}")
            raise

    async def search_apartments(
        self,
        filters: ApartmentSearchFilters,
        skip: int = 0,
        limit: int = 6
    ) -> Tuple[List[Apartment], int]:
        """
        Search listings with filtering and pagination, newest first.

        Args:
            filters: ApartmentSearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return

        Returns:
            Tuple of (apartments list, total count)
        """
        try:
            query = select(Apartment)
            count_query = select(func.count(Apartment.id))

            conditions = self._build_filter_conditions(filters)
            if conditions:
                query = query.where(and_(*conditions))
                count_query = count_query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar() or 0

            query = query.order_by(desc(Apartment.created_at)).offset(skip).limit(limit)

            result = await self.db.execute(query)
            apartments = list(result.scalars().all())

            logger.debug(f"Apartment search returned {len(apartments)} of {total_count} total results")
            return apartments, total_count
        except Exception as e:
            logger.error(f"Failed to search apartments: {e}")
            raise

    def _build_filter_conditions(self, filters: ApartmentSearchFilters) -> List:
        conditions = []

        if filters.verified is not None:
            conditions.append(Apartment.verified == filters.verified)

        if filters.landlord_id:
            conditions.append(Apartment.landlord_id == filters.landlord_id)

        # Free text location match
        if filters.city:
            term = f"%{filters.city}%"
            conditions.append(
                or_(
                    Apartment.city.ilike(term),
                    Apartment.state.ilike(term),
                    Apartment.neighborhood.ilike(term),
                    Apartment.title.ilike(term)
                )
            )

        if filters.min_price is not None:
            conditions.append(Apartment.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Apartment.price <= filters.max_price)

        # Bedroom and bathroom filters are minimums
        if filters.bedrooms is not None:
            conditions.append(Apartment.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Apartment.bathrooms >= filters.bathrooms)

        if filters.pet_friendly is not None:
            conditions.append(Apartment.pet_friendly == filters.pet_friendly)
        if filters.parking is not None:
            conditions.append(Apartment.parking == filters.parking)

        return conditions

    async def get_by_landlord(self, landlord_id: uuid.UUID) -> List[Apartment]:
        try:
            query = (
                select(Apartment)
                .where(Apartment.landlord_id == landlord_id)
                .order_by(desc(Apartment.created_at))
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get apartments for landlord {landlord_id}: {e}")
            raise

    async def count_by_landlord(self, landlord_id: uuid.UUID) -> int:
        return await self.count({"landlord_id": landlord_id})

    async def set_published(self, apartment: Apartment, published: bool) -> Apartment:
        updated = await self.update(apartment, {"verified": published})
        logger.info(f"Apartment {apartment.id} {'published' if published else 'unpublished'}")
        return updated

    async def update_rating(self, apartment: Apartment, rating: Optional[Decimal], review_count: int) -> Apartment:
        return await self.update(apartment, {"rating": rating, "review_count": review_count})
