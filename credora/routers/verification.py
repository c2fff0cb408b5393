"""
Landlord identity verification endpoints for Persona and Veriff.
"""

from fastapi import APIRouter, Depends, Request
from credora.models.landlord import Landlord, VerificationProvider
from credora.services.verification import VerificationService
from credora.schemas.verification import (
    PersonaInquiryRequest,
    PersonaInquiryResponse,
    VeriffSessionRequest,
    VeriffSessionResponse,
    VerificationStatusResponse,
    VerificationWebhookAck,
)
from credora.schemas.error import get_common_error_responses, get_error_responses, get_vendor_error_responses
from credora.utils.dependencies import get_current_landlord, get_verification_service
from credora.utils.exceptions import APIException, BadRequestError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["Verification"])


@router.post(
    "/persona/inquiry",
    response_model=PersonaInquiryResponse,
    summary="Start a Persona inquiry",
    responses=get_vendor_error_responses(),
)
async def create_persona_inquiry(
    data: PersonaInquiryRequest,
    landlord: Landlord = Depends(get_current_landlord),
    verification_service: VerificationService = Depends(get_verification_service)
) -> PersonaInquiryResponse:
    try:
        session = await verification_service.create_persona_inquiry(landlord, data.template_id, data.redirect_uri)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Persona inquiry for landlord {landlord.id} failed: {e}")
        raise BadRequestError(f"Failed to start Persona inquiry: {str(e)}")

    return PersonaInquiryResponse(
        inquiry_id=session.reference,
        session_token=session.session_token,
        template_id=session.extra["template_id"],
    )


@router.post(
    "/persona/webhook",
    response_model=VerificationWebhookAck,
    summary="Persona webhook",
    responses=get_error_responses(400, 401),
)
async def persona_webhook(
    request: Request,
    verification_service: VerificationService = Depends(get_verification_service)
) -> VerificationWebhookAck:
    payload = await request.body()
    try:
        result = await verification_service.handle_webhook(VerificationProvider.PERSONA.value, payload, request.headers)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Persona webhook processing failed: {e}")
        raise BadRequestError(f"Webhook processing failed: {str(e)}")

    return VerificationWebhookAck.model_validate(result)


@router.post(
    "/veriff/session",
    response_model=VeriffSessionResponse,
    summary="Start a Veriff session",
    responses=get_vendor_error_responses(),
)
async def create_veriff_session(
    data: VeriffSessionRequest,
    landlord: Landlord = Depends(get_current_landlord),
    verification_service: VerificationService = Depends(get_verification_service)
) -> VeriffSessionResponse:
    try:
        session = await verification_service.create_veriff_session(landlord, data.callback_url)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Veriff session for landlord {landlord.id} failed: {e}")
        raise BadRequestError(f"Failed to start Veriff session: {str(e)}")

    return VeriffSessionResponse(
        session_id=session.reference,
        session_url=session.session_url,
        session_token=session.session_token,
    )


@router.post(
    "/veriff/webhook",
    response_model=VerificationWebhookAck,
    summary="Veriff decision webhook",
    responses=get_error_responses(400, 401),
)
async def veriff_webhook(
    request: Request,
    verification_service: VerificationService = Depends(get_verification_service)
) -> VerificationWebhookAck:
    payload = await request.body()
    try:
        result = await verification_service.handle_webhook(VerificationProvider.VERIFF.value, payload, request.headers)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Veriff webhook processing failed: {e}")
        raise BadRequestError(f"Webhook processing failed: {str(e)}")

    return VerificationWebhookAck.model_validate(result)


@router.get(
    "/status",
    response_model=VerificationStatusResponse,
    summary="Get my verification status",
    responses=get_common_error_responses(),
)
async def get_verification_status(
    landlord: Landlord = Depends(get_current_landlord)
) -> VerificationStatusResponse:
    return VerificationStatusResponse.model_validate(VerificationService.get_status(landlord))
