"""
Stripe payment endpoints: PaymentIntent creation and status, and the Stripe
webhook receiver.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from credora.models.user import User
from credora.services.payment import PaymentService
from credora.schemas.payment import (
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentIntentStatusResponse,
    WebhookAck,
)
from credora.schemas.error import get_error_responses, get_vendor_error_responses
from credora.utils.dependencies import get_optional_current_user, get_payment_service
from credora.utils.exceptions import APIException, BadRequestError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    summary="Create a Stripe PaymentIntent",
    description="Amount is in dollars. Metadata `application_id` or `finder_reference` links the payment to its purchase.",
    responses=get_vendor_error_responses(),
)
async def create_payment_intent(
    data: PaymentIntentCreate,
    current_user: Optional[User] = Depends(get_optional_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
) -> PaymentIntentResponse:
    try:
        result = await payment_service.create_payment_intent(data, current_user)
        return PaymentIntentResponse.model_validate(result)
    except APIException:
        raise
    except Exception as e:
        logger.error(f"PaymentIntent creation failed: {e}")
        raise BadRequestError(f"Failed to create payment intent: {str(e)}")


@router.get(
    "/payment-intent/{payment_intent_id}",
    response_model=PaymentIntentStatusResponse,
    summary="Get PaymentIntent status",
    responses=get_vendor_error_responses(),
)
async def get_payment_intent(
    payment_intent_id: str,
    payment_service: PaymentService = Depends(get_payment_service)
) -> PaymentIntentStatusResponse:
    try:
        result = await payment_service.get_payment_intent_status(payment_intent_id)
        return PaymentIntentStatusResponse.model_validate(result)
    except APIException:
        raise
    except Exception as e:
        raise BadRequestError(f"Failed to get payment intent: {str(e)}")


@router.post(
    "/webhook",
    response_model=WebhookAck,
    summary="Stripe webhook",
    description="Verified with the `stripe-signature` header against the configured webhook secret.",
    responses=get_error_responses(400, 503),
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    payment_service: PaymentService = Depends(get_payment_service)
) -> WebhookAck:
    payload = await request.body()
    try:
        return WebhookAck.model_validate(await payment_service.handle_webhook(payload, stripe_signature))
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Stripe webhook processing failed: {e}")
        raise BadRequestError(f"Webhook processing failed: {str(e)}")
