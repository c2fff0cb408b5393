"""
Apartment service for listing search, detail pages, landlord submissions and
admin publication.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from credora.config import settings
from credora.repositories.apartment import ApartmentRepository, ApartmentSearchFilters
from credora.models.apartment import Apartment, DEFAULT_SQUARE_FEET
from credora.models.landlord import Landlord
from credora.models.user import User
from credora.schemas.apartment import LandlordPropertyCreate
from credora.services.email import EmailService
from credora.utils.exceptions import (
    APIException,
    ApartmentNotFoundError,
    BadRequestError,
    InsufficientPermissionsError,
    ResourceLimitExceededError,
    SubscriptionRequiredError,
    ValidationError,
)
from credora.utils.formatting import format_floor_plan
import math
import uuid
import logging

logger = logging.getLogger(__name__)

PET_FRIENDLY_AMENITY = "pet friendly"
PARKING_AMENITY = "parking"


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


class ApartmentService:
    """
    Search and presentation of published listings, plus the landlord and
    admin workflows that create and publish them.
    """

    def __init__(self, db_session: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db_session
        self.apartment_repo = ApartmentRepository(db_session)
        self.email_service = email_service or EmailService()

    async def search_apartments(
        self,
        filters: ApartmentSearchFilters,
        page: int = 1,
        limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Search published listings, newest first.

        Args:
            filters: Search criteria
            page: 1-based page number
            limit: Page size, capped at the configured maximum

        Returns:
            ``{"apartments": [listing...], "pagination": {...}}``
        """
        try:
            page = max(page, 1)
            limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)

            if (
                filters.min_price is not None
                and filters.max_price is not None
                and filters.min_price > filters.max_price
            ):
                raise ValidationError("Minimum price cannot be greater than maximum price")

            apartments, total = await self.apartment_repo.search_apartments(
                filters, skip=(page - 1) * limit, limit=limit
            )

            return {
                "apartments": [apartment.to_listing() for apartment in apartments],
                "pagination": build_pagination(page, limit, total),
            }
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to search apartments: {e}")
            raise BadRequestError(f"Failed to search apartments: {str(e)}")

    async def get_apartment(self, apartment_id: uuid.UUID) -> Dict[str, Any]:
        """
        Detail view of a published listing.

        Listings without floor plans get one plan derived from the listing itself.

        Raises:
            ApartmentNotFoundError: Unknown or unpublished listing
        """
        apartment = await self.apartment_repo.get_published(apartment_id)
        if not apartment:
            raise ApartmentNotFoundError()

        detail = apartment.to_listing()
        detail["floor_plans"] = [plan.to_dict() for plan in apartment.floor_plans] or [
            self._derived_floor_plan(apartment)
        ]
        detail["website"] = apartment.website
        detail["apply_url"] = self.apply_url(apartment)
        return detail

    @staticmethod
    def _derived_floor_plan(apartment: Apartment) -> Dict[str, Any]:
        return {
            "id": None,
            "name": format_floor_plan(apartment.bedrooms, apartment.bathrooms),
            "bedrooms": apartment.bedrooms,
            "bathrooms": float(apartment.bathrooms),
            "square_feet": apartment.square_feet or DEFAULT_SQUARE_FEET,
            "price": float(apartment.price),
            "available": True,
        }

    @staticmethod
    def apply_url(apartment: Apartment) -> str:
        return f"{settings.public_site_url.rstrip('/')}/apply?apartment={apartment.id}"

    async def get_or_404(self, apartment_id: uuid.UUID) -> Apartment:
        apartment = await self.apartment_repo.get_by_id(apartment_id)
        if not apartment:
            raise ApartmentNotFoundError()
        return apartment

    async def submit_landlord_property(self, landlord: Landlord, data: LandlordPropertyCreate) -> Apartment:
        """
        Create an unpublished listing from the landlord property form.

        Raises:
            SubscriptionRequiredError: No active subscription
            ResourceLimitExceededError: Plan property limit reached
            ValidationError: Listing values out of range
        """
        try:
            if not landlord.has_active_subscription:
                raise SubscriptionRequiredError("An active subscription is required to list properties")

            limit = landlord.property_limit
            if limit is not None:
                current = await self.apartment_repo.count_by_landlord(landlord.id)
                if current >= limit:
                    raise ResourceLimitExceededError("Property", limit)

            amenities_lower = {amenity.lower() for amenity in data.amenities}
            user = landlord.user

            apartment_data = {
                "title": data.title,
                "building_name": data.title,
                "description": data.description,
                "property_type": data.property_type or "Apartment",
                "address": data.address,
                "city": data.city,
                "state": data.state,
                "zip_code": data.zip_code,
                "neighborhood": data.city,
                "price": data.rent,
                "deposit": data.deposit,
                "bedrooms": data.bedrooms,
                "bathrooms": data.bathrooms,
                "square_feet": data.square_footage or DEFAULT_SQUARE_FEET,
                "amenities": list(data.amenities),
                "images": list(data.images),
                "lease_terms": list(data.lease_terms),
                "pet_friendly": PET_FRIENDLY_AMENITY in amenities_lower,
                "parking": PARKING_AMENITY in amenities_lower,
                "available_date": data.available_date,
                "contact_phone": data.contact_phone or landlord.phone,
                "contact_email": data.contact_email or landlord.email,
                "management_company": data.management_company or landlord.company_name
                    or (user.full_name if user else None),
                "verified": False,
                "landlord_submitted": True,
                "landlord_id": landlord.id,
                "review_count": 0,
            }

            apartment = await self.apartment_repo.create_apartment(
                apartment_data,
                floor_plans=[plan.model_dump() for plan in data.floor_plans],
            )
            logger.info(f"Landlord {landlord.id} submitted property {apartment.id} for review")
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to submit property for landlord {landlord.id}: {e}")
            raise BadRequestError(f"Failed to save property: {str(e)}")

        if user is not None:
            try:
                await self.email_service.send_property_received(user.email, user.first_name, apartment.title)
            except APIException as e:
                logger.warning(f"Property received email failed for landlord {landlord.id}: {e.detail}")

        return apartment

    async def list_landlord_properties(self, landlord: Landlord) -> List[Dict[str, Any]]:
        apartments = await self.apartment_repo.get_by_landlord(landlord.id)
        return [self.landlord_view(apartment) for apartment in apartments]

    @staticmethod
    def landlord_view(apartment: Apartment) -> Dict[str, Any]:
        return {
            "id": apartment.id,
            "title": apartment.title,
            "address": apartment.address,
            "city": apartment.city,
            "state": apartment.state,
            "rent": float(apartment.price),
            "bedrooms": apartment.bedrooms,
            "bathrooms": float(apartment.bathrooms),
            "status": apartment.listing_status,
            "verified": apartment.verified,
            "date_added": apartment.created_at,
        }

    async def set_published(self, apartment_id: uuid.UUID, current_user: User, published: bool) -> Apartment:
        """
        Publish or unpublish a listing.

        Raises:
            InsufficientPermissionsError: Caller is not an admin
            ApartmentNotFoundError: Unknown listing
        """
        if not current_user.is_admin:
            raise InsufficientPermissionsError("publish apartments")

        apartment = await self.get_or_404(apartment_id)
        if apartment.verified == published:
            return apartment

        return await self.apartment_repo.set_published(apartment, published)

    async def publish_apartment(self, apartment_id: uuid.UUID, current_user: User) -> Apartment:
        return await self.set_published(apartment_id, current_user, True)

    async def unpublish_apartment(self, apartment_id: uuid.UUID, current_user: User) -> Apartment:
        return await self.set_published(apartment_id, current_user, False)
