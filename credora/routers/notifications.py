"""
Transactional email endpoints.
"""

from fastapi import APIRouter, Depends
from credora.services.email import EmailService
from credora.schemas.notification import ConfirmationEmailRequest, EmailSentResponse
from credora.schemas.error import get_error_responses
from credora.utils.dependencies import get_email_service
from credora.utils.exceptions import APIException, BadRequestError

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post(
    "/send-confirmation-email",
    response_model=EmailSentResponse,
    summary="Send the application submitted confirmation",
    responses=get_error_responses(422, 502),
)
async def send_confirmation_email(
    data: ConfirmationEmailRequest,
    email_service: EmailService = Depends(get_email_service)
) -> EmailSentResponse:
    try:
        result = await email_service.send_application_confirmation(
            email=data.email,
            first_name=data.first_name,
            payment_intent_id=data.payment_intent_id,
            amount=data.amount,
            submitted_at=data.submitted_at,
        )
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to send confirmation email: {str(e)}")
    return EmailSentResponse.model_validate(result)
