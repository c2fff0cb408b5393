"""
Paid apartment finder requests.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from credora.config import settings
from credora.repositories.review import FinderRequestRepository
from credora.models.application import PaymentStatus
from credora.models.finder import ApartmentFinderRequest, FinderRequestStatus, generate_finder_reference
from credora.schemas.finder import FinderRequestCreate
from credora.utils.exceptions import APIException, BadRequestError, ValidationError
from credora.utils.formatting import covers_amount
from datetime import date
import logging

logger = logging.getLogger(__name__)


class FinderService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.finder_repo = FinderRequestRepository(db_session)

    async def submit_request(self, data: FinderRequestCreate) -> ApartmentFinderRequest:
        """
        Record a finder request awaiting its fee payment.

        Raises:
            ValidationError: Move-in date in the past
        """
        if data.move_in_date < date.today():
            raise ValidationError("Move-in date cannot be in the past")

        try:
            request = await self.finder_repo.create({
                "reference": generate_finder_reference(),
                "user_name": data.user_name,
                "user_email": data.user_email,
                "phone": data.phone,
                "budget_min": data.budget_min,
                "budget_max": data.budget_max,
                "preferred_locations": list(data.preferred_locations),
                "bedrooms": data.bedrooms,
                "bathrooms": data.bathrooms,
                "move_in_date": data.move_in_date,
                "amenities": list(data.amenities),
                "notes": data.notes,
                "status": FinderRequestStatus.SUBMITTED,
                "payment_status": PaymentStatus.PENDING,
            })
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to save finder request for {data.user_email}: {e}")
            raise BadRequestError("Failed to submit apartment finder request")

        logger.info(f"Apartment finder request {request.reference} submitted by {request.user_email}")
        return request

    async def list_requests(self, email: str) -> List[ApartmentFinderRequest]:
        return await self.finder_repo.list_by_email(email)

    async def mark_paid(
        self,
        reference: str,
        payment_intent_id: str,
        amount_cents: int,
        currency: str,
        succeeded: bool = True
    ) -> Optional[ApartmentFinderRequest]:
        """Apply a payment outcome to a finder request when it covers the finder fee."""
        request = await self.finder_repo.get_by_reference(reference)
        if not request:
            logger.warning(f"Payment {payment_intent_id} references unknown finder request {reference}")
            return None

        if not covers_amount(amount_cents, currency, settings.apartment_finder_fee):
            logger.warning(
                f"Payment {payment_intent_id} of {amount_cents} {currency} does not cover "
                f"finder request {reference}; ignoring"
            )
            return None
        if request.payment_status == PaymentStatus.PAID and request.payment_intent_id != payment_intent_id:
            logger.info(f"Finder request {reference} already paid by {request.payment_intent_id}")
            return request

        status = PaymentStatus.PAID if succeeded else PaymentStatus.FAILED
        request = await self.finder_repo.update(request, {
            "payment_status": status,
            "payment_intent_id": payment_intent_id,
        })
        logger.info(f"Finder request {reference} payment {status.value}")
        return request
