"""
Apartment reviews and the rating summary shown on listings.
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from credora.repositories.apartment import ApartmentRepository
from credora.repositories.review import ReviewRepository
from credora.models.review import Review
from credora.models.user import User
from credora.schemas.review import ReviewCreate
from credora.utils.exceptions import APIException, ApartmentNotFoundError, BadRequestError
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.apartment_repo = ApartmentRepository(db_session)

    async def list_reviews(self, apartment_id: uuid.UUID) -> Dict[str, Any]:
        """
        Reviews for a published apartment, newest first.

        Returns:
            ``{"reviews", "average_rating", "total_reviews"}``; the average is
            0 when there are no reviews
        """
        if not await self.apartment_repo.get_published(apartment_id):
            raise ApartmentNotFoundError()

        reviews = await self.review_repo.list_for_apartment(apartment_id)
        average, count = await self.review_repo.rating_summary(apartment_id)
        return {
            "reviews": reviews,
            "average_rating": float(average) if average is not None else 0.0,
            "total_reviews": count,
        }

    async def create_review(
        self,
        apartment_id: uuid.UUID,
        data: ReviewCreate,
        current_user: Optional[User] = None
    ) -> Review:
        """
        Add a review and refresh the apartment's rating and review count.

        Raises:
            ApartmentNotFoundError: Unknown or unpublished apartment
        """
        apartment = await self.apartment_repo.get_published(apartment_id)
        if not apartment:
            raise ApartmentNotFoundError()

        try:
            review = await self.review_repo.create({
                "apartment_id": apartment.id,
                "user_id": current_user.id if current_user else None,
                "reviewer_name": data.reviewer_name,
                "reviewer_email": data.reviewer_email.lower(),
                "rating": data.rating,
                "title": data.title,
                "comment": data.comment,
            })

            average, count = await self.review_repo.rating_summary(apartment.id)
            await self.apartment_repo.update_rating(apartment, average, count)
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to save review for apartment {apartment_id}: {e}")
            raise BadRequestError("Failed to submit review")

        logger.info(f"Review {review.id} added to apartment {apartment.id} ({data.rating} stars)")
        return review
