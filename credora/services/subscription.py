"""
Landlord subscription billing on Stripe.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from credora.config import settings
from credora.integrations.stripe_gateway import StripeGateway, stripe_field
from credora.models.landlord import Landlord, SubscriptionPlan, SubscriptionStatus, PLAN_PROPERTY_LIMITS
from credora.repositories.user import LandlordRepository
from credora.repositories.apartment import ApartmentRepository
from credora.utils.exceptions import BadRequestError, ConflictError, ServiceUnavailableError
from credora.utils.formatting import format_currency
import uuid
import logging

logger = logging.getLogger(__name__)

PLAN_DETAILS = {
    SubscriptionPlan.BASIC: {
        "name": "Basic",
        "price": Decimal("25.00"),
        "features": ["List up to 5 properties", "Tenant applications", "Email support"],
    },
    SubscriptionPlan.PREMIUM: {
        "name": "Premium",
        "price": Decimal("75.00"),
        "features": ["Unlimited properties", "Tenant applications", "Priority support", "Featured listings"],
    },
}


def _from_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _period_end(subscription: Any) -> Optional[datetime]:
    """Newer API versions move the billing period onto subscription items."""
    period_end = stripe_field(subscription, "current_period_end")
    if period_end is None:
        items = stripe_field(stripe_field(subscription, "items"), "data", [])
        if items:
            period_end = stripe_field(items[0], "current_period_end")
    return _from_timestamp(period_end)


def price_id_for(plan: SubscriptionPlan) -> Optional[str]:
    if plan == SubscriptionPlan.BASIC:
        return settings.stripe_basic_price_id
    return settings.stripe_premium_price_id


def plan_for_price(price_id: Optional[str]) -> Optional[SubscriptionPlan]:
    if not price_id:
        return None
    for plan in SubscriptionPlan:
        if price_id_for(plan) == price_id:
            return plan
    return None


class SubscriptionService:
    """Plans, subscription creation and cancellation, and webhook updates."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.landlord_repo = LandlordRepository(db_session)
        self.apartment_repo = ApartmentRepository(db_session)

    def list_plans(self) -> List[Dict[str, Any]]:
        return [
            {
                "plan": plan,
                "name": details["name"],
                "price": details["price"],
                "price_display": f"{format_currency(details['price'], cents=False)}/mo",
                "property_limit": PLAN_PROPERTY_LIMITS[plan],
                "features": list(details["features"]),
                "available": bool(price_id_for(plan)),
            }
            for plan, details in PLAN_DETAILS.items()
        ]

    async def get_subscription(self, landlord: Landlord) -> Dict[str, Any]:
        return {
            "plan": landlord.subscription_plan,
            "status": landlord.subscription_status,
            "active": landlord.has_active_subscription,
            "property_limit": landlord.property_limit,
            "properties_used": await self.apartment_repo.count_by_landlord(landlord.id),
            "current_period_end": landlord.subscription_current_period_end,
            "stripe_subscription_id": landlord.stripe_subscription_id,
        }

    async def create_subscription(
        self,
        landlord: Landlord,
        plan: SubscriptionPlan,
        payment_method_id: str
    ) -> Dict[str, Any]:
        """
        Subscribe a landlord to a plan.

        Returns:
            subscription_id, client_secret of the first invoice's
            PaymentIntent, status, customer_id and current_period_end

        Raises:
            ConflictError: The landlord already has an active subscription
            ServiceUnavailableError: The plan's Stripe price is not configured
            PaymentProviderError: Stripe rejected a call
        """
        if landlord.has_active_subscription and landlord.stripe_subscription_id:
            raise ConflictError("Landlord already has an active subscription")

        price_id = price_id_for(plan)
        if not price_id:
            raise ServiceUnavailableError(f"The {plan.value} plan is not available")

        user = landlord.user
        customer = StripeGateway.find_or_create_customer(
            email=landlord.email,
            name=landlord.company_name or (user.full_name if user else None),
            metadata={"landlord_id": str(landlord.id)},
        )
        customer_id = stripe_field(customer, "id")

        subscription = StripeGateway.create_subscription(
            customer_id=customer_id,
            price_id=price_id,
            payment_method_id=payment_method_id,
            metadata={"landlord_id": str(landlord.id), "plan": plan.value},
        )

        payment_intent = stripe_field(stripe_field(subscription, "latest_invoice"), "payment_intent")
        status = SubscriptionStatus.from_stripe(stripe_field(subscription, "status"))
        period_end = _period_end(subscription)

        await self.landlord_repo.update(landlord, {
            "stripe_customer_id": customer_id,
            "stripe_subscription_id": stripe_field(subscription, "id"),
            "subscription_plan": plan,
            "subscription_status": status,
            "subscription_current_period_end": period_end,
        })
        logger.info(f"Landlord {landlord.id} subscribed to {plan.value} ({status.value})")

        return {
            "subscription_id": stripe_field(subscription, "id"),
            "client_secret": stripe_field(payment_intent, "client_secret"),
            "status": status,
            "customer_id": customer_id,
            "current_period_end": period_end,
        }

    async def cancel_subscription(self, landlord: Landlord) -> Dict[str, Any]:
        """Cancel at period end; the webhook records the final cancellation."""
        if not landlord.stripe_subscription_id:
            raise BadRequestError("No subscription to cancel")

        subscription = StripeGateway.cancel_subscription(landlord.stripe_subscription_id)
        period_end = _period_end(subscription) or landlord.subscription_current_period_end

        await self.landlord_repo.update(landlord, {
            "subscription_status": SubscriptionStatus.from_stripe(stripe_field(subscription, "status")),
            "subscription_current_period_end": period_end,
        })
        return await self.get_subscription(landlord)

    async def _find_landlord(
        self,
        metadata: Any,
        customer_id: Optional[str],
        subscription_id: Optional[str]
    ) -> Optional[Landlord]:
        landlord_id = stripe_field(metadata, "landlord_id")
        if landlord_id:
            try:
                landlord = await self.landlord_repo.get_by_id(uuid.UUID(str(landlord_id)))
            except ValueError:
                landlord = None
            if landlord:
                return landlord

        if subscription_id:
            landlord = await self.landlord_repo.get_by_stripe_subscription(subscription_id)
            if landlord:
                return landlord

        if customer_id:
            return await self.landlord_repo.get_by_stripe_customer(customer_id)
        return None

    async def apply_subscription_event(self, subscription: Any, deleted: bool = False) -> Optional[Landlord]:
        """
        Mirror a Stripe subscription object onto its landlord.

        Args:
            subscription: Subscription from a ``customer.subscription.*`` event
            deleted: True for ``customer.subscription.deleted``

        Returns:
            The updated landlord, or None when no landlord matches
        """
        subscription_id = stripe_field(subscription, "id")
        customer_id = stripe_field(subscription, "customer")
        metadata = stripe_field(subscription, "metadata", {})

        landlord = await self._find_landlord(metadata, customer_id, subscription_id)
        if not landlord:
            logger.warning(f"No landlord found for subscription {subscription_id} (customer {customer_id})")
            return None

        status = SubscriptionStatus.CANCELED if deleted else SubscriptionStatus.from_stripe(
            stripe_field(subscription, "status")
        )

        values: Dict[str, Any] = {
            "stripe_subscription_id": subscription_id,
            "stripe_customer_id": customer_id or landlord.stripe_customer_id,
            "subscription_status": status,
            "subscription_current_period_end": _period_end(subscription) or landlord.subscription_current_period_end,
        }

        plan = None
        plan_name = stripe_field(metadata, "plan")
        if plan_name in {p.value for p in SubscriptionPlan}:
            plan = SubscriptionPlan(plan_name)
        else:
            items = stripe_field(stripe_field(subscription, "items"), "data", [])
            if items:
                plan = plan_for_price(stripe_field(stripe_field(items[0], "price"), "id"))
        if plan:
            values["subscription_plan"] = plan

        landlord = await self.landlord_repo.update(landlord, values)
        logger.info(f"Landlord {landlord.id} subscription {subscription_id} is now {status.value}")
        return landlord

    async def apply_invoice_event(self, invoice: Any, paid: bool) -> Optional[Landlord]:
        subscription_id = stripe_field(invoice, "subscription")
        if subscription_id is None:
            details = stripe_field(stripe_field(invoice, "parent"), "subscription_details")
            subscription_id = stripe_field(details, "subscription")
        if not isinstance(subscription_id, str):
            subscription_id = stripe_field(subscription_id, "id")

        customer_id = stripe_field(invoice, "customer")
        landlord = await self._find_landlord({}, customer_id, subscription_id)
        if not landlord:
            logger.warning(f"No landlord found for invoice {stripe_field(invoice, 'id')}")
            return None

        status = SubscriptionStatus.ACTIVE if paid else SubscriptionStatus.PAST_DUE
        landlord = await self.landlord_repo.update(landlord, {"subscription_status": status})
        logger.info(f"Invoice {'paid' if paid else 'failed'} for landlord {landlord.id}: {status.value}")
        return landlord
