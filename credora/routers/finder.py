"""
Apartment finder (paid concierge search) endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import EmailStr
from credora.config import settings
from credora.services.finder import FinderService
from credora.schemas.finder import FinderRequestCreate, FinderRequestCreated, FinderRequestList, FinderRequestResponse
from credora.schemas.error import get_common_error_responses
from credora.utils.dependencies import get_finder_service
from credora.utils.exceptions import APIException, BadRequestError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/apartment-finder", tags=["Apartment Finder"])


@router.post(
    "",
    response_model=FinderRequestCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Request an apartment search",
    description=(
        "Records the request and returns the finder fee. Pay it with a PaymentIntent for the full fee, "
        "purpose `apartment_finder_fee`, and the request's `finder_reference` in its metadata."
    ),
    responses=get_common_error_responses(),
)
async def submit_finder_request(
    data: FinderRequestCreate,
    finder_service: FinderService = Depends(get_finder_service)
) -> FinderRequestCreated:
    try:
        request = await finder_service.submit_request(data)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Finder request from {data.user_email} failed: {e}")
        raise BadRequestError(f"Failed to submit apartment finder request: {str(e)}")

    return FinderRequestCreated(
        request=FinderRequestResponse.model_validate(request),
        fee=settings.apartment_finder_fee,
        message="Apartment finder request submitted successfully",
    )


@router.get(
    "",
    response_model=FinderRequestList,
    summary="List finder requests by email",
)
async def list_finder_requests(
    user_email: EmailStr = Query(..., description="Email used on the request"),
    finder_service: FinderService = Depends(get_finder_service)
) -> FinderRequestList:
    try:
        requests = await finder_service.list_requests(user_email)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to list apartment finder requests: {str(e)}")

    return FinderRequestList(
        requests=[FinderRequestResponse.model_validate(request) for request in requests],
        total=len(requests),
    )
