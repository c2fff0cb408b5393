"""
Tests for Stripe payments, webhooks and landlord subscriptions.
Stripe calls are replaced with mocks; webhook payloads use plain dicts.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

from credora.config import settings
from credora.integrations.stripe_gateway import StripeGateway, stripe_field, stripe_dict
from credora.models.application import PaymentStatus
from credora.models.landlord import SubscriptionPlan, SubscriptionStatus
from credora.models.payment import PaymentPurpose, PaymentRecordStatus
from credora.repositories.payment import PaymentRepository
from credora.repositories.review import FinderRequestRepository
from credora.schemas.payment import PaymentIntentCreate
from credora.services.payment import PaymentService
from credora.services.subscription import SubscriptionService, plan_for_price
from credora.utils.exceptions import (
    BadRequestError,
    ConflictError,
    ServiceUnavailableError,
    WebhookSignatureError,
)
from tests.conftest import LandlordFactory, assert_error_response, auth_headers

PERIOD_END = 1893456000  # 2030-01-01T00:00:00Z


def stripe_event(event_type: str, obj: dict) -> dict:
    return {"id": "evt_test", "type": event_type, "data": {"object": obj}}


@pytest.fixture
def stripe_configured(monkeypatch):
    monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_123")
    monkeypatch.setattr(settings, "stripe_webhook_secret", "whsec_test")
    monkeypatch.setattr(settings, "stripe_basic_price_id", "price_basic")
    monkeypatch.setattr(settings, "stripe_premium_price_id", "price_premium")


class TestStripeHelpers:
    def test_stripe_field_treats_none_as_missing(self):
        assert stripe_field({"a": None}, "a", "default") == "default"
        assert stripe_field({"a": 1}, "a") == 1
        assert stripe_field(None, "a", 0) == 0

    def test_stripe_dict(self):
        assert stripe_dict(None) == {}
        assert stripe_dict({"k": "v"}) == {"k": "v"}

    def test_unconfigured_gateway(self, monkeypatch):
        monkeypatch.setattr(settings, "stripe_secret_key", None)

        with pytest.raises(ServiceUnavailableError):
            StripeGateway.retrieve_payment_intent("pi_123")

    def test_construct_event_requires_signature(self, stripe_configured):
        with pytest.raises(WebhookSignatureError, match="Missing"):
            StripeGateway.construct_event(b"{}", None)

    def test_construct_event_rejects_bad_signature(self, stripe_configured):
        with pytest.raises(WebhookSignatureError):
            StripeGateway.construct_event(b'{"id": "evt_1"}', "t=1,v1=deadbeef")


class TestPaymentService:
    """Test cases for PaymentService."""

    @pytest.mark.asyncio
    async def test_create_payment_intent(self, db_session, test_tenant):
        service = PaymentService(db_session)
        intent = {"id": "pi_new", "client_secret": "pi_new_secret", "status": "requires_payment_method"}

        with patch.object(StripeGateway, "create_payment_intent", return_value=intent) as create:
            result = await service.create_payment_intent(
                PaymentIntentCreate(amount=Decimal("55"), description="Application fee", metadata={"step": 4}),
                test_tenant,
            )

        assert result == {
            "client_secret": "pi_new_secret",
            "payment_intent_id": "pi_new",
            "amount": 5500,
            "currency": "usd",
            "status": "requires_payment_method",
        }
        metadata = create.call_args.kwargs["metadata"]
        assert metadata == {"type": "application_fee", "step": "4", "user_id": str(test_tenant.id)}

        payment = await PaymentRepository(db_session).get_by_intent_id("pi_new")
        assert payment.amount == Decimal("55.00")
        assert payment.status == PaymentRecordStatus.PENDING
        assert payment.purpose == PaymentPurpose.APPLICATION_FEE
        assert payment.user_id == test_tenant.id

    @pytest.mark.asyncio
    async def test_client_metadata_cannot_override_purpose_or_payer(self, db_session, test_tenant):
        intent = {"id": "pi_meta", "client_secret": "secret", "status": "requires_payment_method"}
        data = PaymentIntentCreate(amount=Decimal("55"), metadata={"type": "subscription", "user_id": "someone-else"})

        with patch.object(StripeGateway, "create_payment_intent", return_value=intent) as create:
            await PaymentService(db_session).create_payment_intent(data, test_tenant)
        assert create.call_args.kwargs["metadata"] == {"type": "application_fee", "user_id": str(test_tenant.id)}

        intent["id"] = "pi_anonymous"
        with patch.object(StripeGateway, "create_payment_intent", return_value=intent) as create:
            await PaymentService(db_session).create_payment_intent(data)
        assert create.call_args.kwargs["metadata"] == {"type": "application_fee"}

    @pytest.mark.asyncio
    async def test_create_payment_intent_rejects_zero(self, db_session):
        with pytest.raises(BadRequestError, match="Invalid amount"):
            await PaymentService(db_session).create_payment_intent(PaymentIntentCreate(amount=Decimal("0")))

    @pytest.mark.asyncio
    async def test_payment_intent_status_syncs_record(self, db_session):
        repo = PaymentRepository(db_session)
        await repo.create({"payment_intent_id": "pi_sync", "amount": Decimal("55.00")})
        intent = {
            "id": "pi_sync", "status": "succeeded", "amount": 5500, "currency": "usd",
            "metadata": {"type": "application_fee"}, "created": 1700000000,
        }

        with patch.object(StripeGateway, "retrieve_payment_intent", return_value=intent):
            result = await PaymentService(db_session).get_payment_intent_status("pi_sync")

        assert result["status"] == "succeeded"
        assert result["metadata"] == {"type": "application_fee"}
        assert (await repo.get_by_intent_id("pi_sync")).status == PaymentRecordStatus.SUCCEEDED


class TestStripeWebhooks:
    """Webhook dispatch to applications, finder requests and subscriptions."""

    async def _dispatch(self, db_session, event: dict):
        with patch.object(StripeGateway, "construct_event", return_value=event):
            return await PaymentService(db_session).handle_webhook(b"{}", "t=1,v1=sig")

    @pytest.mark.asyncio
    async def test_payment_failed_records_reason(self, db_session, test_application, test_tenant):
        repo = PaymentRepository(db_session)
        await repo.create({"payment_intent_id": "pi_fail", "amount": Decimal("55.00")})

        result = await self._dispatch(db_session, stripe_event("payment_intent.payment_failed", {
            "id": "pi_fail",
            "amount": 5500,
            "currency": "usd",
            "metadata": {
                "type": "application_fee",
                "application_id": str(test_application.id),
                "user_id": str(test_tenant.id),
            },
            "last_payment_error": {"message": "Your card was declined."},
        }))

        assert result == {"received": True}
        payment = await repo.get_by_intent_id("pi_fail")
        assert payment.status == PaymentRecordStatus.FAILED
        assert payment.failure_message == "Your card was declined."
        await db_session.refresh(test_application)
        assert test_application.payment_status == PaymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_payment_succeeded_marks_finder_request(self, db_session):
        repo = FinderRequestRepository(db_session)
        request = await repo.create({
            "user_email": "seeker@example.com",
            "user_name": "Sam Seeker",
            "budget_min": Decimal("900"),
            "budget_max": Decimal("1400"),
            "move_in_date": datetime(2030, 1, 1).date(),
        })

        await self._dispatch(db_session, stripe_event("payment_intent.succeeded", {
            "id": "pi_finder",
            "amount": 25000,
            "currency": "usd",
            "metadata": {"type": "apartment_finder_fee", "finder_reference": request.reference},
        }))

        await db_session.refresh(request)
        assert request.payment_status == PaymentStatus.PAID
        assert request.payment_intent_id == "pi_finder"

    @pytest.mark.asyncio
    async def test_underpaid_finder_request_stays_pending(self, db_session):
        request = await FinderRequestRepository(db_session).create({
            "user_email": "seeker@example.com",
            "user_name": "Sam Seeker",
            "budget_min": Decimal("900"),
            "budget_max": Decimal("1400"),
            "move_in_date": datetime(2030, 1, 1).date(),
        })

        result = await self._dispatch(db_session, stripe_event("payment_intent.succeeded", {
            "id": "pi_cheap",
            "amount": 50,
            "currency": "usd",
            "metadata": {"type": "apartment_finder_fee", "finder_reference": request.reference},
        }))

        assert result == {"received": True}
        await db_session.refresh(request)
        assert request.payment_status == PaymentStatus.PENDING
        assert request.payment_intent_id is None

    @pytest.mark.asyncio
    async def test_application_payment_checks_fee_and_payer(self, db_session, test_application, test_admin):
        base = {"id": "pi_meddle", "currency": "usd"}
        metadata = {"type": "application_fee", "application_id": str(test_application.id)}

        # Underpaid, then paid by an account that does not own the application
        await self._dispatch(db_session, stripe_event("payment_intent.succeeded", {
            **base, "amount": 50, "metadata": {**metadata, "user_id": str(test_application.user_id)},
        }))
        await self._dispatch(db_session, stripe_event("payment_intent.payment_failed", {
            **base, "amount": 5500, "metadata": {**metadata, "user_id": str(test_admin.id)},
        }))

        await db_session.refresh(test_application)
        assert test_application.payment_status == PaymentStatus.PENDING
        assert test_application.payment_intent_id is None

    @pytest.mark.asyncio
    async def test_unknown_event_is_acknowledged(self, db_session):
        result = await self._dispatch(db_session, stripe_event("charge.refunded", {"id": "ch_1"}))

        assert result == {"received": True}

    @pytest.mark.asyncio
    async def test_subscription_updated(self, db_session, test_landlord, stripe_configured):
        await self._dispatch(db_session, stripe_event("customer.subscription.updated", {
            "id": "sub_123",
            "customer": "cus_123",
            "status": "past_due",
            "metadata": {"landlord_id": str(test_landlord.id)},
            "items": {"data": [{"price": {"id": "price_premium"}, "current_period_end": PERIOD_END}]},
        }))

        await db_session.refresh(test_landlord)
        assert test_landlord.subscription_status == SubscriptionStatus.PAST_DUE
        assert test_landlord.subscription_plan == SubscriptionPlan.PREMIUM
        assert test_landlord.stripe_subscription_id == "sub_123"
        assert test_landlord.stripe_customer_id == "cus_123"
        assert test_landlord.subscription_current_period_end is not None

    @pytest.mark.asyncio
    async def test_subscription_deleted_found_by_subscription_id(self, db_session, test_landlord, landlord_repository):
        await landlord_repository.update(test_landlord, {"stripe_subscription_id": "sub_gone"})

        await self._dispatch(db_session, stripe_event("customer.subscription.deleted", {
            "id": "sub_gone", "customer": "cus_gone", "status": "active", "metadata": {},
        }))

        await db_session.refresh(test_landlord)
        assert test_landlord.subscription_status == SubscriptionStatus.CANCELED

    @pytest.mark.asyncio
    async def test_invoice_failure_and_recovery(self, db_session, test_landlord, landlord_repository):
        await landlord_repository.update(test_landlord, {"stripe_customer_id": "cus_inv"})

        await self._dispatch(db_session, stripe_event("invoice.payment_failed", {
            "id": "in_1", "customer": "cus_inv", "subscription": None,
        }))
        await db_session.refresh(test_landlord)
        assert test_landlord.subscription_status == SubscriptionStatus.PAST_DUE

        await self._dispatch(db_session, stripe_event("invoice.payment_succeeded", {
            "id": "in_2", "customer": "cus_inv",
            "parent": {"subscription_details": {"subscription": "sub_inv"}},
        }))
        await db_session.refresh(test_landlord)
        assert test_landlord.subscription_status == SubscriptionStatus.ACTIVE


class TestSubscriptionService:
    """Test cases for SubscriptionService."""

    def test_list_plans(self, stripe_configured, db_session):
        plans = {plan["plan"]: plan for plan in SubscriptionService(db_session).list_plans()}

        assert plans[SubscriptionPlan.BASIC]["price_display"] == "$25/mo"
        assert plans[SubscriptionPlan.BASIC]["property_limit"] == 5
        assert plans[SubscriptionPlan.PREMIUM]["property_limit"] is None
        assert all(plan["available"] for plan in plans.values())

    def test_plan_for_price(self, stripe_configured):
        assert plan_for_price("price_basic") == SubscriptionPlan.BASIC
        assert plan_for_price("price_premium") == SubscriptionPlan.PREMIUM
        assert plan_for_price("price_other") is None

    @pytest.mark.asyncio
    async def test_create_subscription(self, db_session, stripe_configured):
        landlord = await LandlordFactory.create_landlord(db_session, plan=None, status=SubscriptionStatus.INACTIVE)
        subscription = {
            "id": "sub_new",
            "status": "incomplete",
            "current_period_end": PERIOD_END,
            "latest_invoice": {"payment_intent": {"client_secret": "pi_sub_secret"}},
        }

        with patch.object(StripeGateway, "find_or_create_customer", return_value={"id": "cus_new"}), \
                patch.object(StripeGateway, "create_subscription", return_value=subscription) as create:
            result = await SubscriptionService(db_session).create_subscription(
                landlord, SubscriptionPlan.BASIC, "pm_card_visa"
            )

        assert create.call_args.kwargs["price_id"] == "price_basic"
        assert create.call_args.kwargs["metadata"] == {"landlord_id": str(landlord.id), "plan": "basic"}
        assert result["client_secret"] == "pi_sub_secret"
        assert result["status"] == SubscriptionStatus.INCOMPLETE
        assert result["current_period_end"] == datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert landlord.stripe_customer_id == "cus_new"
        assert landlord.subscription_plan == SubscriptionPlan.BASIC

    @pytest.mark.asyncio
    async def test_create_subscription_when_already_active(self, db_session, test_landlord, landlord_repository, stripe_configured):
        await landlord_repository.update(test_landlord, {"stripe_subscription_id": "sub_existing"})

        with pytest.raises(ConflictError):
            await SubscriptionService(db_session).create_subscription(test_landlord, SubscriptionPlan.PREMIUM, "pm_1")

    @pytest.mark.asyncio
    async def test_create_subscription_without_price(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "stripe_premium_price_id", None)
        landlord = await LandlordFactory.create_landlord(db_session, plan=None, status=SubscriptionStatus.INACTIVE)

        with pytest.raises(ServiceUnavailableError):
            await SubscriptionService(db_session).create_subscription(landlord, SubscriptionPlan.PREMIUM, "pm_1")

    @pytest.mark.asyncio
    async def test_cancel_subscription(self, db_session, test_landlord, landlord_repository):
        service = SubscriptionService(db_session)
        with pytest.raises(BadRequestError, match="No subscription"):
            await service.cancel_subscription(test_landlord)

        await landlord_repository.update(test_landlord, {"stripe_subscription_id": "sub_cancel"})
        with patch.object(StripeGateway, "cancel_subscription", return_value={
            "id": "sub_cancel", "status": "active", "cancel_at_period_end": True, "current_period_end": PERIOD_END,
        }) as cancel:
            info = await service.cancel_subscription(test_landlord)

        cancel.assert_called_once_with("sub_cancel")
        assert info["status"] == SubscriptionStatus.ACTIVE
        assert info["current_period_end"].replace(tzinfo=None) == datetime(2030, 1, 1)


class TestPaymentRoutes:
    @pytest.mark.asyncio
    async def test_create_payment_intent_route(self, async_client, test_tenant):
        intent = {"id": "pi_route", "client_secret": "pi_route_secret", "status": "requires_payment_method"}

        with patch.object(StripeGateway, "create_payment_intent", return_value=intent):
            response = await async_client.post(
                "/api/v1/payments/create-payment-intent",
                json={"amount": 55, "description": "Application fee"},
                headers=auth_headers(test_tenant),
            )

        assert response.status_code == 200
        assert response.json()["client_secret"] == "pi_route_secret"
        assert response.json()["amount"] == 5500

    @pytest.mark.asyncio
    async def test_payments_unavailable_without_stripe(self, async_client, monkeypatch):
        monkeypatch.setattr(settings, "stripe_secret_key", None)

        response = await async_client.post("/api/v1/payments/create-payment-intent", json={"amount": 55})

        assert_error_response(response, 503, "SERVICE_UNAVAILABLE")

    @pytest.mark.asyncio
    async def test_webhook_without_signature(self, async_client, stripe_configured):
        response = await async_client.post("/api/v1/payments/webhook", content=b"{}")

        assert_error_response(response, 400, "INVALID_SIGNATURE")

    @pytest.mark.asyncio
    async def test_webhook_route_dispatches(self, async_client, stripe_configured):
        event = stripe_event("payment_intent.succeeded", {"id": "pi_unknown", "metadata": {}})

        with patch.object(StripeGateway, "construct_event", return_value=event) as construct:
            response = await async_client.post(
                "/api/v1/payments/webhook",
                content=b'{"id": "evt_test"}',
                headers={"stripe-signature": "t=1,v1=sig"},
            )

        assert response.status_code == 200
        assert response.json() == {"received": True}
        construct.assert_called_once_with(b'{"id": "evt_test"}', "t=1,v1=sig")
