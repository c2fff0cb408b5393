"""
Landlord portal endpoints: profile, property submissions and subscription
billing.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from credora.database import get_db
from credora.models.landlord import Landlord
from credora.repositories.user import LandlordRepository, UserRepository
from credora.services.apartment import ApartmentService
from credora.services.subscription import SubscriptionService
from credora.schemas.apartment import (
    LandlordProperty,
    LandlordPropertyCreate,
    LandlordPropertyCreated,
    LandlordPropertyList,
)
from credora.schemas.payment import SubscriptionCreate, SubscriptionCreated, SubscriptionInfo, SubscriptionPlanInfo
from credora.schemas.user import LandlordResponse, LandlordUpdate
from credora.schemas.error import get_common_error_responses, get_crud_error_responses, get_vendor_error_responses
from credora.utils.dependencies import get_apartment_service, get_current_landlord, get_subscription_service
from credora.utils.exceptions import APIException, BadRequestError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/landlords", tags=["Landlords"])


@router.get(
    "/me",
    response_model=LandlordResponse,
    summary="Get my landlord profile",
    responses=get_common_error_responses(),
)
async def get_my_profile(landlord: Landlord = Depends(get_current_landlord)) -> LandlordResponse:
    return LandlordResponse.model_validate(landlord)


@router.put(
    "/me",
    response_model=LandlordResponse,
    summary="Update my landlord profile",
    responses=get_crud_error_responses(),
)
async def update_my_profile(
    data: LandlordUpdate,
    landlord: Landlord = Depends(get_current_landlord),
    db: AsyncSession = Depends(get_db)
) -> LandlordResponse:
    values = data.model_dump(exclude_unset=True)

    try:
        user_values = {key: values.pop(key) for key in ("first_name", "last_name") if key in values}
        if user_values and landlord.user is not None:
            await UserRepository(db).update(landlord.user, user_values)

        if values:
            landlord = await LandlordRepository(db).update(landlord, values)
        return LandlordResponse.model_validate(landlord)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Failed to update landlord {landlord.id}: {e}")
        raise BadRequestError(f"Failed to update profile: {str(e)}")


@router.get(
    "/properties",
    response_model=LandlordPropertyList,
    summary="List my properties",
    responses=get_common_error_responses(),
)
async def list_my_properties(
    landlord: Landlord = Depends(get_current_landlord),
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> LandlordPropertyList:
    try:
        properties = await apartment_service.list_landlord_properties(landlord)
        return LandlordPropertyList(
            properties=[LandlordProperty.model_validate(item) for item in properties],
            total=len(properties),
            property_limit=landlord.property_limit,
        )
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to list properties: {str(e)}")


@router.post(
    "/properties",
    response_model=LandlordPropertyCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a property",
    description="Requires an active subscription. Listings appear publicly once an admin verifies them.",
    responses=get_crud_error_responses(),
)
async def submit_property(
    data: LandlordPropertyCreate,
    landlord: Landlord = Depends(get_current_landlord),
    apartment_service: ApartmentService = Depends(get_apartment_service)
) -> LandlordPropertyCreated:
    try:
        apartment = await apartment_service.submit_landlord_property(landlord, data)
        return LandlordPropertyCreated(
            apartment=LandlordProperty.model_validate(apartment_service.landlord_view(apartment)),
            message="Property submitted successfully! It will appear on the apartments page after verification.",
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Property submission failed for landlord {landlord.id}: {e}")
        raise BadRequestError(f"Failed to submit property: {str(e)}")


@router.get(
    "/subscription/plans",
    response_model=List[SubscriptionPlanInfo],
    summary="List subscription plans",
)
async def list_plans(
    subscription_service: SubscriptionService = Depends(get_subscription_service)
) -> List[SubscriptionPlanInfo]:
    return [SubscriptionPlanInfo.model_validate(plan) for plan in subscription_service.list_plans()]


@router.get(
    "/subscription",
    response_model=SubscriptionInfo,
    summary="Get my subscription",
    responses=get_common_error_responses(),
)
async def get_subscription(
    landlord: Landlord = Depends(get_current_landlord),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
) -> SubscriptionInfo:
    try:
        return SubscriptionInfo.model_validate(await subscription_service.get_subscription(landlord))
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to get subscription: {str(e)}")


@router.post(
    "/subscription",
    response_model=SubscriptionCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to a plan",
    responses=get_vendor_error_responses(),
)
async def create_subscription(
    data: SubscriptionCreate,
    landlord: Landlord = Depends(get_current_landlord),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
) -> SubscriptionCreated:
    try:
        result = await subscription_service.create_subscription(landlord, data.plan, data.payment_method_id)
        return SubscriptionCreated.model_validate(result)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Subscription for landlord {landlord.id} failed: {e}")
        raise BadRequestError(f"Failed to create subscription: {str(e)}")


@router.delete(
    "/subscription",
    response_model=SubscriptionInfo,
    summary="Cancel my subscription at period end",
    responses=get_vendor_error_responses(),
)
async def cancel_subscription(
    landlord: Landlord = Depends(get_current_landlord),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
) -> SubscriptionInfo:
    try:
        return SubscriptionInfo.model_validate(await subscription_service.cancel_subscription(landlord))
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Cancelling subscription for landlord {landlord.id} failed: {e}")
        raise BadRequestError(f"Failed to cancel subscription: {str(e)}")
