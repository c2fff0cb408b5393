"""
Stripe SDK gateway.

Wraps the PaymentIntent, Customer, Subscription and Webhook calls the
payment and subscription services need, translating Stripe failures into
API exceptions.
"""

import logging
from typing import Optional, Dict, Any
import stripe
from credora.config import settings
from credora.utils.exceptions import (
    PaymentProviderError,
    ServiceUnavailableError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)


def stripe_field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a key from a Stripe object or plain dict, treating None as missing."""
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def stripe_dict(obj: Any) -> Dict[str, Any]:
    """Plain dict copy of a Stripe object such as PaymentIntent metadata."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return {key: obj[key] for key in obj.keys()}


class StripeGateway:
    """
    Thin classmethod wrapper around the Stripe SDK.

    Every call checks configuration first so an unconfigured deployment
    answers 503 instead of failing inside the SDK.
    """

    @staticmethod
    def _check_configured():
        if not settings.stripe_secret_key:
            raise ServiceUnavailableError("Payment processing is not configured")
        stripe.api_key = settings.stripe_secret_key

    @classmethod
    def create_payment_intent(
        cls,
        amount_cents: int,
        currency: str = "usd",
        description: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        receipt_email: Optional[str] = None
    ) -> Any:
        """
        Create a PaymentIntent with automatic payment methods enabled.

        Args:
            amount_cents: Amount in the smallest currency unit
            currency: ISO currency code
            description: Optional statement description
            metadata: String metadata echoed back in webhooks
            receipt_email: Optional receipt address

        Returns:
            The Stripe PaymentIntent
        """
        cls._check_configured()

        params: Dict[str, Any] = {
            "amount": amount_cents,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata or {},
        }
        if description:
            params["description"] = description
        if receipt_email:
            params["receipt_email"] = receipt_email

        try:
            intent = stripe.PaymentIntent.create(**params)
            logger.info(f"Created PaymentIntent {intent['id']} for {amount_cents} {currency}")
            return intent
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent creation failed: {e}")
            raise PaymentProviderError(getattr(e, "user_message", None) or "Failed to create payment intent")

    @classmethod
    def retrieve_payment_intent(cls, payment_intent_id: str) -> Any:
        cls._check_configured()

        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent retrieval failed for {payment_intent_id}: {e}")
            raise PaymentProviderError("Failed to retrieve payment intent")

    @classmethod
    def construct_event(cls, payload: bytes, signature: Optional[str]) -> Any:
        """
        Verify a webhook payload against the endpoint secret.

        Raises:
            WebhookSignatureError: Missing signature, invalid signature or malformed payload
            ServiceUnavailableError: No webhook secret configured
        """
        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")

        if not settings.stripe_webhook_secret:
            raise ServiceUnavailableError("Stripe webhook secret is not configured")

        try:
            return stripe.Webhook.construct_event(payload, signature, settings.stripe_webhook_secret)
        except ValueError as e:
            logger.warning(f"Invalid Stripe webhook payload: {e}")
            raise WebhookSignatureError("Invalid webhook payload")
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature verification failed: {e}")
            raise WebhookSignatureError("Invalid webhook signature")

    @classmethod
    def find_or_create_customer(
        cls,
        email: str,
        name: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None
    ) -> Any:
        """Reuse the first Stripe customer with this email or create one."""
        cls._check_configured()

        try:
            existing = stripe.Customer.list(email=email, limit=1)
            customers = stripe_field(existing, "data", [])
            if customers:
                return customers[0]

            customer = stripe.Customer.create(email=email, name=name, metadata=metadata or {})
            logger.info(f"Created Stripe customer {customer['id']} for {email}")
            return customer
        except stripe.StripeError as e:
            logger.error(f"Stripe customer lookup failed for {email}: {e}")
            raise PaymentProviderError("Failed to create billing customer")

    @classmethod
    def create_subscription(
        cls,
        customer_id: str,
        price_id: str,
        payment_method_id: str,
        metadata: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Attach the payment method, make it the invoice default and subscribe.

        The latest invoice's PaymentIntent is expanded so the caller can
        return its client secret for confirmation.
        """
        cls._check_configured()

        try:
            stripe.PaymentMethod.attach(payment_method_id, customer=customer_id)
            stripe.Customer.modify(
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
            )
            subscription = stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": price_id}],
                metadata=metadata or {},
                expand=["latest_invoice.payment_intent"],
            )
            logger.info(f"Created Stripe subscription {subscription['id']} for customer {customer_id}")
            return subscription
        except stripe.StripeError as e:
            logger.error(f"Stripe subscription creation failed for {customer_id}: {e}")
            raise PaymentProviderError(getattr(e, "user_message", None) or "Failed to create subscription")

    @classmethod
    def cancel_subscription(cls, subscription_id: str) -> Any:
        """Cancel at the end of the current billing period."""
        cls._check_configured()

        try:
            subscription = stripe.Subscription.modify(subscription_id, cancel_at_period_end=True)
            logger.info(f"Stripe subscription {subscription_id} set to cancel at period end")
            return subscription
        except stripe.StripeError as e:
            logger.error(f"Stripe subscription cancel failed for {subscription_id}: {e}")
            raise PaymentProviderError("Failed to cancel subscription")
