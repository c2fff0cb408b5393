"""
Apartment listing endpoints: public search and detail, reviews, and admin
publication.
"""

from typing import Optional
from decimal import Decimal
from fastapi import APIRouter, Depends, Query, status
from credora.models.user import User
from credora.repositories.apartment import ApartmentSearchFilters
from credora.services.apartment import ApartmentService
from credora.services.review import ReviewService
from credora.schemas.apartment import ApartmentDetail, ApartmentListing, ApartmentSearchResponse
from credora.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse
from credora.schemas.error import get_common_error_responses, get_crud_error_responses
from credora.utils.dependencies import (
    get_apartment_service,
    get_current_admin_user,
    get_optional_current_user,
    get_review_service,
)
from credora.utils.exceptions import APIException, BadRequestError
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/apartments", tags=["Apartments"])


@router.get(
    "",
    response_model=ApartmentSearchResponse,
    summary="Search apartments",
    description=(
        "Search published listings. The city filter matches city, state, neighborhood and title; "
        "price bounds are inclusive; bedrooms and bathrooms are minimums."
    ),
    responses=get_common_error_responses(),
)
async def search_apartments(
    city: Optional[str] = Query(None, max_length=100, description="City, state, neighborhood or title text"),
    min_price: Decimal = Query(Decimal("0"), ge=0, description="Minimum monthly rent"),
    max_price: Decimal = Query(Decimal("10000"), ge=0, description="Maximum monthly rent"),
    bedrooms: Optional[int] = Query(None, ge=0, le=20, description="Minimum bedrooms"),
    bathrooms: Optional[Decimal] = Query(None, ge=0, le=20, description="Minimum bathrooms"),
    pet_friendly: Optional[bool] = Query(None),
    parking: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=50, description="Page size (default 6)"),
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> ApartmentSearchResponse:
    filters = ApartmentSearchFilters(
        city=city,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        pet_friendly=pet_friendly,
        parking=parking,
    )
    try:
        result = await apartment_service.search_apartments(filters, page=page, limit=limit)
        return ApartmentSearchResponse.model_validate(result)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Apartment search failed: {e}")
        raise BadRequestError(f"Failed to search apartments: {str(e)}")


@router.get(
    "/{apartment_id}",
    response_model=ApartmentDetail,
    summary="Get apartment details",
    responses=get_common_error_responses(),
)
async def get_apartment(
    apartment_id: uuid.UUID,
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> ApartmentDetail:
    try:
        return ApartmentDetail.model_validate(await apartment_service.get_apartment(apartment_id))
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to get apartment: {str(e)}")


@router.post(
    "/{apartment_id}/publish",
    response_model=ApartmentListing,
    summary="Publish a listing (admin)",
    responses=get_crud_error_responses(),
)
async def publish_apartment(
    apartment_id: uuid.UUID,
    current_user: User = Depends(get_current_admin_user),
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> ApartmentListing:
    try:
        apartment = await apartment_service.publish_apartment(apartment_id, current_user)
        return ApartmentListing.model_validate(apartment.to_listing())
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to publish apartment: {str(e)}")


@router.post(
    "/{apartment_id}/unpublish",
    response_model=ApartmentListing,
    summary="Unpublish a listing (admin)",
    responses=get_crud_error_responses(),
)
async def unpublish_apartment(
    apartment_id: uuid.UUID,
    current_user: User = Depends(get_current_admin_user),
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> ApartmentListing:
    try:
        apartment = await apartment_service.unpublish_apartment(apartment_id, current_user)
        return ApartmentListing.model_validate(apartment.to_listing())
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to unpublish apartment: {str(e)}")


@router.get(
    "/{apartment_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for an apartment",
    responses=get_common_error_responses(),
)
async def list_reviews(
    apartment_id: uuid.UUID,
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewListResponse:
    try:
        return ReviewListResponse.model_validate(await review_service.list_reviews(apartment_id))
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to list reviews: {str(e)}")


@router.post(
    "/{apartment_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review an apartment",
    responses=get_common_error_responses(),
)
async def create_review(
    apartment_id: uuid.UUID,
    data: ReviewCreate,
    current_user: Optional[User] = Depends(get_optional_current_user),
    review_service: ReviewService = Depends(get_review_service)
) -> ReviewResponse:
    try:
        review = await review_service.create_review(apartment_id, data, current_user)
        return ReviewResponse.model_validate(review)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to create review: {str(e)}")
