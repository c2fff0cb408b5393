"""
Payment service: Stripe PaymentIntents for application and finder fees, and
the Stripe webhook dispatcher.
"""

from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from credora.integrations.stripe_gateway import StripeGateway, stripe_dict, stripe_field
from credora.repositories.payment import PaymentRepository
from credora.models.payment import Payment, PaymentPurpose, PaymentRecordStatus
from credora.models.user import User
from credora.schemas.payment import PaymentIntentCreate
from credora.services.application import ApplicationService
from credora.services.finder import FinderService
from credora.services.subscription import SubscriptionService
from credora.utils.exceptions import APIException, BadRequestError
from credora.utils.formatting import from_cents, to_cents
import uuid
import logging

logger = logging.getLogger(__name__)

PAYMENT_INTENT_EVENTS = {
    "payment_intent.succeeded": True,
    "payment_intent.payment_failed": False,
}
SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}
INVOICE_EVENTS = {
    "invoice.payment_succeeded": True,
    "invoice.payment_failed": False,
}


def _string_metadata(metadata: Dict[str, Any]) -> Dict[str, str]:
    """Stripe metadata values must be strings."""
    return {str(key): str(value) for key, value in metadata.items() if value is not None}


class PaymentService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.payment_repo = PaymentRepository(db_session)

    async def create_payment_intent(
        self,
        data: PaymentIntentCreate,
        current_user: Optional[User] = None
    ) -> Dict[str, Any]:
        """
        Create a PaymentIntent and record it locally as pending.

        Args:
            data: Amount in dollars plus description, metadata and purpose
            current_user: Payer, when signed in

        Returns:
            client_secret, payment_intent_id, amount (cents), currency, status

        Raises:
            BadRequestError: Non-positive amount
            ServiceUnavailableError: Stripe is not configured
            PaymentProviderError: Stripe rejected the request
        """
        if data.amount is None or data.amount <= 0:
            raise BadRequestError("Invalid amount provided")

        amount_cents = to_cents(data.amount)
        # Purpose and payer come from the server, never from client metadata
        metadata = _string_metadata({**data.metadata, "type": data.purpose.value})
        metadata.pop("user_id", None)
        if current_user:
            metadata["user_id"] = str(current_user.id)

        intent = StripeGateway.create_payment_intent(
            amount_cents=amount_cents,
            currency=data.currency,
            description=data.description,
            metadata=metadata,
            receipt_email=data.customer_email,
        )
        intent_id = stripe_field(intent, "id")
        status = stripe_field(intent, "status", "requires_payment_method")

        application_id = None
        if metadata.get("application_id"):
            try:
                application_id = uuid.UUID(metadata["application_id"])
            except ValueError:
                logger.warning(f"Ignoring malformed application id {metadata['application_id']}")

        try:
            await self.payment_repo.create({
                "payment_intent_id": intent_id,
                "amount": from_cents(amount_cents),
                "currency": data.currency,
                "status": PaymentRecordStatus.from_stripe(status),
                "purpose": data.purpose,
                "user_id": current_user.id if current_user else None,
                "application_id": application_id,
                "customer_email": data.customer_email,
                "description": data.description,
                "payment_metadata": metadata,
            })
        except Exception as e:
            # Webhooks reconcile intents that have no local record
            logger.error(f"Failed to record payment intent {intent_id}: {e}")

        logger.info(f"Created payment intent {intent_id} for {amount_cents} {data.currency}")
        return {
            "client_secret": stripe_field(intent, "client_secret"),
            "payment_intent_id": intent_id,
            "amount": amount_cents,
            "currency": data.currency,
            "status": status,
        }

    async def get_payment_intent_status(self, payment_intent_id: str) -> Dict[str, Any]:
        """Fetch a PaymentIntent from Stripe and sync the local record."""
        intent = StripeGateway.retrieve_payment_intent(payment_intent_id)
        status = stripe_field(intent, "status")

        payment = await self.payment_repo.get_by_intent_id(payment_intent_id)
        if payment:
            local_status = PaymentRecordStatus.from_stripe(status)
            if payment.status != local_status and payment.status != PaymentRecordStatus.FAILED:
                await self.payment_repo.update_status(payment, local_status)

        metadata = stripe_field(intent, "metadata")
        return {
            "id": stripe_field(intent, "id", payment_intent_id),
            "status": status,
            "amount": stripe_field(intent, "amount", 0),
            "currency": stripe_field(intent, "currency", "usd"),
            "description": stripe_field(intent, "description"),
            "metadata": stripe_dict(metadata),
            "created": stripe_field(intent, "created"),
        }

    async def handle_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, bool]:
        """
        Verify and dispatch a Stripe webhook event.

        Unknown event types are acknowledged and ignored.

        Raises:
            WebhookSignatureError: Missing or invalid ``stripe-signature``
        """
        event = StripeGateway.construct_event(payload, signature)
        event_type = stripe_field(event, "type")
        obj = stripe_field(stripe_field(event, "data"), "object")
        logger.info(f"Stripe webhook {stripe_field(event, 'id')}: {event_type}")

        if event_type in PAYMENT_INTENT_EVENTS:
            await self._apply_payment_intent(obj, PAYMENT_INTENT_EVENTS[event_type])
        elif event_type in SUBSCRIPTION_EVENTS:
            await SubscriptionService(self.db).apply_subscription_event(
                obj, deleted=event_type == "customer.subscription.deleted"
            )
        elif event_type in INVOICE_EVENTS:
            await SubscriptionService(self.db).apply_invoice_event(obj, paid=INVOICE_EVENTS[event_type])
        else:
            logger.debug(f"Ignoring Stripe event type {event_type}")

        return {"received": True}

    async def _apply_payment_intent(self, intent: Any, succeeded: bool) -> Optional[Payment]:
        intent_id = stripe_field(intent, "id")
        metadata = stripe_field(intent, "metadata", {})

        payment = await self.payment_repo.get_by_intent_id(intent_id)
        if payment:
            if succeeded:
                await self.payment_repo.update_status(payment, PaymentRecordStatus.SUCCEEDED)
            else:
                error = stripe_field(intent, "last_payment_error")
                await self.payment_repo.update_status(
                    payment,
                    PaymentRecordStatus.FAILED,
                    failure_message=stripe_field(error, "message", "Payment failed"),
                )
        else:
            logger.info(f"No local record for payment intent {intent_id}")

        amount_cents = stripe_field(intent, "amount", 0)
        currency = stripe_field(intent, "currency", "usd")
        purpose = stripe_field(metadata, "type")
        try:
            finder_reference = stripe_field(metadata, "finder_reference")
            if finder_reference and purpose == PaymentPurpose.APARTMENT_FINDER_FEE.value:
                await FinderService(self.db).mark_paid(
                    finder_reference, intent_id, amount_cents, currency, succeeded
                )
            elif purpose == PaymentPurpose.APPLICATION_FEE.value:
                await ApplicationService(self.db).record_payment_result(
                    intent_id,
                    succeeded,
                    amount_cents,
                    currency,
                    application_id=stripe_field(metadata, "application_id"),
                    payer_id=stripe_field(metadata, "user_id"),
                )
        except APIException as e:
            logger.warning(f"Could not apply payment {intent_id} to its purchase: {e.detail}")

        return payment
