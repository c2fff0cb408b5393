"""
Tenant application endpoints: wizard drafts, step validation, paid
submission, and the admin review queue.
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, Query, Response, status
from credora.models.application import ApplicationStatus
from credora.models.user import User
from credora.services.application import ApplicationService, validate_step
from credora.schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatistics,
    ApplicationStatusUpdate,
    ApplicationSubmitRequest,
    ApplicationUpdate,
    StepValidationResponse,
    WizardStep,
)
from credora.schemas.error import get_common_error_responses, get_crud_error_responses, get_vendor_error_responses
from credora.utils.dependencies import (
    get_application_service,
    get_current_active_user,
    get_current_admin_user,
)
from credora.utils.exceptions import APIException, BadRequestError
import uuid
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post(
    "/validate/{step}",
    response_model=StepValidationResponse,
    summary="Validate one wizard step",
    description="Check a wizard step without saving it. Field errors are returned, not raised.",
)
async def validate_wizard_step(
    step: WizardStep,
    data: Dict[str, Any] = Body(...),
    employment_status: Optional[str] = Query(None, description="Used by the documents step")
) -> StepValidationResponse:
    errors = validate_step(step, data, employment_status)
    return StepValidationResponse(step=step, valid=not errors, errors=errors)


@router.get(
    "/admin/all",
    response_model=ApplicationListResponse,
    summary="List all applications (admin)",
    responses=get_common_error_responses(),
)
async def list_all_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_admin_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationListResponse:
    try:
        result = await application_service.list_applications(status_filter, page, page_size)
        return ApplicationListResponse.model_validate(result)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Failed to list applications: {e}")
        raise BadRequestError(f"Failed to list applications: {str(e)}")


@router.get(
    "/admin/statistics",
    response_model=ApplicationStatistics,
    summary="Application counts by status (admin)",
    responses=get_common_error_responses(),
)
async def get_application_statistics(
    current_user: User = Depends(get_current_admin_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationStatistics:
    try:
        return ApplicationStatistics.model_validate(await application_service.get_statistics())
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Failed to compute application statistics: {e}")
        raise BadRequestError(f"Failed to get application statistics: {str(e)}")


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start an application draft",
    responses=get_crud_error_responses(),
)
async def create_application(
    data: ApplicationCreate,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    try:
        application = await application_service.create_draft(current_user, data)
        return ApplicationResponse.model_validate(application)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to create application: {str(e)}")


@router.get(
    "",
    response_model=List[ApplicationResponse],
    summary="List my applications",
    responses=get_common_error_responses(),
)
async def list_my_applications(
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> List[ApplicationResponse]:
    try:
        applications = await application_service.list_user_applications(current_user)
        return [ApplicationResponse.model_validate(application) for application in applications]
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to list applications: {str(e)}")


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Get an application",
    responses=get_common_error_responses(),
)
async def get_application(
    application_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    try:
        application = await application_service.get_application(current_user, application_id)
        return ApplicationResponse.model_validate(application)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to get application: {str(e)}")


@router.put(
    "/{application_id}",
    response_model=ApplicationResponse,
    summary="Save wizard progress",
    responses=get_crud_error_responses(),
)
async def update_application(
    application_id: uuid.UUID,
    data: ApplicationUpdate,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    try:
        application = await application_service.update_draft(current_user, application_id, data)
        return ApplicationResponse.model_validate(application)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to update application: {str(e)}")


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a draft",
    responses=get_crud_error_responses(),
)
async def delete_application(
    application_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> Response:
    try:
        await application_service.delete_draft(current_user, application_id)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to delete application: {str(e)}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationResponse,
    summary="Submit a paid application",
    description="All wizard steps must be valid and the application fee PaymentIntent must have succeeded.",
    responses=get_vendor_error_responses(),
)
async def submit_application(
    application_id: uuid.UUID,
    data: ApplicationSubmitRequest,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    try:
        application = await application_service.submit(current_user, application_id, data.payment_intent_id)
        return ApplicationResponse.model_validate(application)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Submission of application {application_id} failed: {e}")
        raise BadRequestError(f"Failed to submit application: {str(e)}")


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationResponse,
    summary="Change application status (admin)",
    description="Moves a submitted application to under_review, approved or denied.",
    responses=get_crud_error_responses(),
)
async def update_application_status(
    application_id: uuid.UUID,
    data: ApplicationStatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    try:
        application = await application_service.update_status(application_id, data.status, current_user, data.notes)
        return ApplicationResponse.model_validate(application)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to update application status: {str(e)}")
