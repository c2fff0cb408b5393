"""
Tests for service layer classes.
Tests business logic for accounts, listings, the application wizard, reviews and finder requests.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from credora.config import settings
from credora.models.application import ApplicationStatus, PaymentStatus
from credora.models.landlord import SubscriptionPlan, SubscriptionStatus
from credora.models.payment import PaymentRecordStatus
from credora.models.user import UserRole
from credora.repositories.apartment import ApartmentSearchFilters
from credora.repositories.payment import PaymentRepository
from credora.schemas.apartment import LandlordPropertyCreate
from credora.schemas.application import ApplicationCreate, ApplicationUpdate, WizardStep
from credora.schemas.auth import RegisterRequest
from credora.schemas.finder import FinderRequestCreate
from credora.schemas.review import ReviewCreate
from credora.services.apartment import ApartmentService
from credora.services.application import ApplicationService, validate_step, validate_documents
from credora.services.auth import AuthService
from credora.services.finder import FinderService
from credora.services.review import ReviewService
from credora.utils.auth import create_email_verification_token, create_password_reset_token
from credora.utils.exceptions import (
    ApartmentNotFoundError,
    ApplicationIncompleteError,
    ApplicationNotFoundError,
    ApplicationStatusError,
    BadRequestError,
    ConflictError,
    DuplicateResourceError,
    EmailNotVerifiedError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    ResourceLimitExceededError,
    SubscriptionRequiredError,
    ValidationError,
)
from tests.conftest import ApartmentFactory, ApplicationFactory, LandlordFactory, UserFactory


def succeeded_intent(amount: int = 5500, status: str = "succeeded", **metadata) -> dict:
    return {
        "id": "pi_paid",
        "status": status,
        "amount": amount,
        "currency": "usd",
        "metadata": {"type": "application_fee", **metadata},
    }


class TestAuthService:
    """Test cases for AuthService."""

    @pytest.fixture
    def email_service(self):
        service = AsyncMock()
        service.send_email_verification.return_value = {"success": True}
        service.send_password_reset.return_value = {"success": True}
        return service

    @pytest.fixture
    def auth_service(self, db_session, email_service):
        return AuthService(db_session, email_service)

    @pytest.mark.asyncio
    async def test_register_tenant(self, auth_service: AuthService, email_service):
        user = await auth_service.register(RegisterRequest(
            first_name="Tina", last_name="Tenant", email="Tina@Example.com", password="securepass1"
        ))

        assert user.email == "tina@example.com"
        assert user.role == UserRole.TENANT
        assert user.email_verified
        assert user.landlord is None
        email_service.send_email_verification.assert_not_called()

    @pytest.mark.asyncio
    async def test_register_landlord_creates_profile(self, auth_service: AuthService):
        user = await auth_service.register(RegisterRequest(
            first_name="Lee", last_name="Owner", email="lee@example.com", password="securepass1",
            role=UserRole.LANDLORD, company_name="Owner Co"
        ))

        assert user.landlord is not None
        assert user.landlord.company_name == "Owner Co"
        assert user.landlord.subscription_status == SubscriptionStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_register_landlord_rolls_back_user_when_profile_fails(self, auth_service: AuthService):
        with patch.object(auth_service.landlord_repo, "create", AsyncMock(side_effect=RuntimeError("disk full"))):
            with pytest.raises(BadRequestError):
                await auth_service.register(RegisterRequest(
                    first_name="Lee", last_name="Owner", email="lee@example.com", password="securepass1",
                    role=UserRole.LANDLORD, company_name="Owner Co"
                ))

        assert await auth_service.user_repo.get_by_email("lee@example.com") is None

    @pytest.mark.asyncio
    async def test_register_duplicate(self, auth_service: AuthService, test_tenant):
        with pytest.raises(DuplicateResourceError):
            await auth_service.register(RegisterRequest(
                first_name="Again", last_name="Tenant", email=test_tenant.email, password="securepass1"
            ))

    @pytest.mark.asyncio
    async def test_register_sends_verification(self, auth_service: AuthService, email_service, monkeypatch):
        monkeypatch.setattr(settings, "require_email_verification", True)

        user = await auth_service.register(RegisterRequest(
            first_name="Vera", last_name="Fied", email="vera@example.com", password="securepass1"
        ))

        assert not user.email_verified
        email_service.send_email_verification.assert_awaited_once()
        with pytest.raises(EmailNotVerifiedError):
            await auth_service.login("vera@example.com", "securepass1")

    @pytest.mark.asyncio
    async def test_login_and_refresh(self, auth_service: AuthService, test_tenant):
        user, access_token, refresh_token = await auth_service.login("tenant@example.com", "testpassword123")

        assert user.id == test_tenant.id
        assert (await auth_service.get_current_user(access_token)).id == test_tenant.id
        new_access = await auth_service.refresh_access_token(refresh_token)
        assert (await auth_service.get_current_user(new_access)).id == test_tenant.id

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, auth_service: AuthService, test_tenant):
        _, _, refresh_token = await auth_service.login("tenant@example.com", "testpassword123")

        with pytest.raises(InvalidTokenError):
            await auth_service.get_current_user(refresh_token)

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, auth_service: AuthService, test_tenant):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("tenant@example.com", "not-the-password")

    @pytest.mark.asyncio
    async def test_verify_email(self, auth_service: AuthService, user_repository):
        user = await user_repository.create_user({
            "email": "unverified@example.com",
            "password": "securepass1",
            "first_name": "Una",
            "last_name": "Verified",
        })
        token = create_email_verification_token(user.id, user.email)

        verified = await auth_service.verify_email(token)

        assert verified.email_verified

    @pytest.mark.asyncio
    async def test_change_password(self, auth_service: AuthService, test_tenant):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.change_password(test_tenant, "wrong-current", "anotherpass1")
        with pytest.raises(BadRequestError):
            await auth_service.change_password(test_tenant, "testpassword123", "testpassword123")

        user = await auth_service.change_password(test_tenant, "testpassword123", "anotherpass1")
        assert user.verify_password("anotherpass1")

    @pytest.mark.asyncio
    async def test_password_reset_token_is_single_use(self, auth_service: AuthService, test_tenant):
        token = create_password_reset_token(test_tenant.id, test_tenant.email, test_tenant.hashed_password)

        user = await auth_service.reset_password(token, "resetpass123")
        assert user.verify_password("resetpass123")

        with pytest.raises(InvalidTokenError):
            await auth_service.reset_password(token, "secondreset1")

    @pytest.mark.asyncio
    async def test_request_password_reset(self, auth_service: AuthService, email_service, test_tenant):
        await auth_service.request_password_reset("nobody@example.com")
        email_service.send_password_reset.assert_not_called()

        await auth_service.request_password_reset(test_tenant.email)
        email_service.send_password_reset.assert_awaited_once()


class TestApartmentService:
    """Test cases for ApartmentService."""

    @pytest.fixture
    def apartment_service(self, db_session):
        return ApartmentService(db_session, AsyncMock())

    @pytest.mark.asyncio
    async def test_search_paginates(self, apartment_service: ApartmentService, apartment_repository):
        for index in range(3):
            await ApartmentFactory.create_apartment(apartment_repository, title=f"Listing {index}")

        result = await apartment_service.search_apartments(ApartmentSearchFilters(), page=2, limit=2)

        assert len(result["apartments"]) == 1
        assert result["pagination"] == {
            "page": 2, "limit": 2, "total": 3, "total_pages": 2, "has_next": False, "has_prev": True,
        }

    @pytest.mark.asyncio
    async def test_search_caps_page_size(self, apartment_service: ApartmentService, test_apartment):
        result = await apartment_service.search_apartments(ApartmentSearchFilters(), limit=500)

        assert result["pagination"]["limit"] == settings.max_page_size

    @pytest.mark.asyncio
    async def test_search_rejects_inverted_price_range(self, apartment_service: ApartmentService):
        with pytest.raises(ValidationError):
            await apartment_service.search_apartments(
                ApartmentSearchFilters(min_price=Decimal("2000"), max_price=Decimal("1000"))
            )

    @pytest.mark.asyncio
    async def test_detail_derives_floor_plan(self, apartment_service: ApartmentService, test_apartment):
        detail = await apartment_service.get_apartment(test_apartment.id)

        assert detail["floor_plans"] == [{
            "id": None,
            "name": "2BR/1BA",
            "bedrooms": 2,
            "bathrooms": 1.0,
            "square_feet": 800,
            "price": 1200.0,
            "available": True,
        }]
        assert detail["apply_url"] == f"https://credorainc.com/apply?apartment={test_apartment.id}"

    @pytest.mark.asyncio
    async def test_detail_hides_unpublished(self, apartment_service: ApartmentService, test_unpublished_apartment):
        with pytest.raises(ApartmentNotFoundError):
            await apartment_service.get_apartment(test_unpublished_apartment.id)

    @pytest.mark.asyncio
    async def test_submit_landlord_property(self, apartment_service: ApartmentService, test_landlord):
        apartment = await apartment_service.submit_landlord_property(test_landlord, LandlordPropertyCreate(
            title="Five Points Flat",
            address="1000 11th Ave S",
            city="Birmingham",
            state="alabama",
            rent=Decimal("1350"),
            bedrooms=1,
            bathrooms=Decimal("1"),
            amenities=["Pet Friendly", "Pool"],
        ))

        assert apartment.verified is False
        assert apartment.landlord_submitted is True
        assert apartment.state == "AL"
        assert apartment.pet_friendly is True
        assert apartment.parking is False
        assert apartment.contact_email == "landlord@example.com"
        assert apartment.management_company == "Magic City Rentals"
        apartment_service.email_service.send_property_received.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_requires_subscription(self, apartment_service: ApartmentService, db_session):
        landlord = await LandlordFactory.create_landlord(db_session, plan=None, status=SubscriptionStatus.INACTIVE)

        with pytest.raises(SubscriptionRequiredError):
            await apartment_service.submit_landlord_property(landlord, LandlordPropertyCreate(
                title="Nope", address="1 Main St", city="Mobile", state="AL",
                rent=Decimal("900"), bedrooms=1, bathrooms=Decimal("1"),
            ))

    @pytest.mark.asyncio
    async def test_submit_enforces_plan_limit(
        self, apartment_service: ApartmentService, apartment_repository, test_landlord
    ):
        for index in range(5):
            await ApartmentFactory.create_apartment(
                apartment_repository, title=f"Owned {index}", landlord_id=test_landlord.id
            )

        with pytest.raises(ResourceLimitExceededError):
            await apartment_service.submit_landlord_property(test_landlord, LandlordPropertyCreate(
                title="Sixth", address="6 Main St", city="Mobile", state="AL",
                rent=Decimal("900"), bedrooms=1, bathrooms=Decimal("1"),
            ))

    @pytest.mark.asyncio
    async def test_premium_plan_is_unlimited(self, apartment_service, apartment_repository, db_session):
        landlord = await LandlordFactory.create_landlord(db_session, plan=SubscriptionPlan.PREMIUM)
        for index in range(6):
            await ApartmentFactory.create_apartment(apartment_repository, title=f"P{index}", landlord_id=landlord.id)

        apartment = await apartment_service.submit_landlord_property(landlord, LandlordPropertyCreate(
            title="Seventh", address="7 Main St", city="Mobile", state="AL",
            rent=Decimal("900"), bedrooms=1, bathrooms=Decimal("1"),
        ))

        assert apartment.landlord_id == landlord.id

    @pytest.mark.asyncio
    async def test_publish_requires_admin(
        self, apartment_service: ApartmentService, test_unpublished_apartment, test_tenant, test_admin
    ):
        with pytest.raises(InsufficientPermissionsError):
            await apartment_service.publish_apartment(test_unpublished_apartment.id, test_tenant)

        apartment = await apartment_service.publish_apartment(test_unpublished_apartment.id, test_admin)
        assert apartment.verified is True
        assert (await apartment_service.get_apartment(apartment.id))["verified"] is True


class TestStepValidation:
    """Wizard step validation rules."""

    def test_complete_steps_are_valid(self):
        assert validate_step(WizardStep.PERSONAL, ApplicationFactory.personal_info()) == []
        assert validate_step(WizardStep.EMPLOYMENT, ApplicationFactory.employment_info()) == []
        assert validate_step(WizardStep.RENTAL, ApplicationFactory.rental_info()) == []
        assert validate_step(WizardStep.DOCUMENTS, ApplicationFactory.documents()) == []

    def test_missing_fields_are_reported(self):
        errors = validate_step(WizardStep.PERSONAL, {"first_name": "Jane"})
        fields = {error["field"] for error in errors}

        assert {"last_name", "email", "phone", "date_of_birth"} <= fields
        assert all(error["message"] == "This field is required" for error in errors)

    def test_field_formats(self):
        errors = validate_step(WizardStep.PERSONAL, ApplicationFactory.personal_info(
            phone="555-12", current_zip="ABCDE", current_state="Narnia"
        ))
        messages = {error["field"]: error["message"] for error in errors}

        assert messages["phone"] == "Please enter a valid 10-digit phone number"
        assert messages["current_zip"] == "Please enter a valid ZIP code"
        assert messages["current_state"] == "Please select a valid US state"

    def test_minimum_age(self):
        too_young = (date.today() - timedelta(days=365 * 17)).isoformat()
        errors = validate_step(WizardStep.PERSONAL, ApplicationFactory.personal_info(date_of_birth=too_young))

        assert errors == [{"field": "date_of_birth", "message": "Applicant must be at least 18 years old"}]

    def test_ssn_rules(self):
        errors = validate_step(WizardStep.PERSONAL, ApplicationFactory.personal_info(ssn=None))
        assert errors == [{"field": "ssn", "message": "SSN is required"}]

        international = ApplicationFactory.personal_info(
            ssn=None, citizenship_status="international_student", international_student_type="without_ssn"
        )
        assert validate_step(WizardStep.PERSONAL, international) == []

        international.pop("international_student_type")
        fields = {error["field"] for error in validate_step(WizardStep.PERSONAL, international)}
        assert fields == {"international_student_type", "ssn"}

    def test_employment_requirements_depend_on_status(self):
        errors = validate_step(WizardStep.EMPLOYMENT, {"employment_status": "retired"})
        assert {error["field"] for error in errors} == {"retirement_income", "pension_source"}

        errors = validate_step(WizardStep.EMPLOYMENT, {"employment_status": "employed_part_time"})
        assert "employer_name" in {error["field"] for error in errors}

        assert validate_step(WizardStep.EMPLOYMENT, {"employment_status": "unemployed"}) == []

    def test_rental_move_in_cannot_be_past(self):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        errors = validate_step(WizardStep.RENTAL, ApplicationFactory.rental_info(move_in_date=yesterday))

        assert errors == [{"field": "move_in_date", "message": "Move-in date cannot be in the past"}]

    def test_documents_for_students(self):
        assert validate_documents({"government_id": True, "income_verification": True}, "student") == [
            {"field": "student_id", "message": "Student ID is required"}
        ]
        errors = validate_step(WizardStep.DOCUMENTS, {"employment_status": "student", "student_id": True})
        assert {error["field"] for error in errors} == {"government_id", "income_verification"}


class TestApplicationService:
    """Test cases for ApplicationService."""

    @pytest.fixture
    def application_service(self, db_session):
        return ApplicationService(db_session, AsyncMock())

    @pytest.mark.asyncio
    async def test_create_and_update_draft(self, application_service: ApplicationService, test_tenant):
        application = await application_service.create_draft(
            test_tenant, ApplicationCreate(personal_info={"first_name": "Jane"})
        )

        assert application.status == ApplicationStatus.DRAFT
        assert application.application_fee == Decimal("55.00")

        updated = await application_service.update_draft(test_tenant, application.id, ApplicationUpdate(
            employment_info={"employment_status": "unemployed"},
            documents={"government_id": True},
        ))
        updated = await application_service.update_draft(test_tenant, application.id, ApplicationUpdate(
            documents={"income_verification": True},
        ))

        assert updated.personal_info == {"first_name": "Jane"}
        assert updated.employment_info == {"employment_status": "unemployed"}
        assert updated.documents == {"government_id": True, "income_verification": True}

    @pytest.mark.asyncio
    async def test_other_users_cannot_see_application(
        self, application_service: ApplicationService, test_application, user_repository, test_admin
    ):
        stranger = await UserFactory.create_user(user_repository)

        with pytest.raises(ApplicationNotFoundError):
            await application_service.get_application(stranger, test_application.id)
        assert (await application_service.get_application(test_admin, test_application.id)).id == test_application.id

    @pytest.mark.asyncio
    async def test_validate_application_prefixes_steps(self, application_service, application_repository, test_tenant):
        application = await ApplicationFactory.create_application(application_repository, test_tenant, complete=False)

        errors = application_service.validate_application(application)
        fields = {error["field"] for error in errors}

        assert "personal.first_name" in fields
        assert "employment.employment_status" in fields
        assert "rental.monthly_rent" in fields
        assert "documents.government_id" in fields

    @pytest.mark.asyncio
    async def test_submit_with_paid_intent(
        self, application_service: ApplicationService, test_application, test_tenant, db_session
    ):
        payment_repo = PaymentRepository(db_session)
        await payment_repo.create({"payment_intent_id": "pi_paid", "amount": Decimal("55.00")})

        with patch(
            "credora.services.application.StripeGateway.retrieve_payment_intent",
            return_value=succeeded_intent()
        ):
            application = await application_service.submit(test_tenant, test_application.id, "pi_paid")

        assert application.status == ApplicationStatus.SUBMITTED
        assert application.payment_status == PaymentStatus.PAID
        assert application.payment_intent_id == "pi_paid"
        assert application.submitted_at is not None

        payment = await payment_repo.get_by_intent_id("pi_paid")
        assert payment.status == PaymentRecordStatus.SUCCEEDED
        assert payment.application_id == application.id

        application_service.email_service.send_application_confirmation.assert_awaited_once()
        kwargs = application_service.email_service.send_application_confirmation.call_args.kwargs
        assert kwargs["email"] == "jane.doe@example.com"
        assert kwargs["amount"] == Decimal("55.00")

    @pytest.mark.asyncio
    async def test_submit_incomplete(self, application_service, application_repository, test_tenant):
        application = await ApplicationFactory.create_application(application_repository, test_tenant, complete=False)

        with pytest.raises(ApplicationIncompleteError) as exc_info:
            await application_service.submit(test_tenant, application.id, "pi_paid")
        assert exc_info.value.field_errors

    @pytest.mark.asyncio
    async def test_submit_unpaid_intent(self, application_service, test_application, test_tenant):
        with patch(
            "credora.services.application.StripeGateway.retrieve_payment_intent",
            return_value=succeeded_intent(status="requires_payment_method")
        ):
            with pytest.raises(BadRequestError, match="not been completed"):
                await application_service.submit(test_tenant, test_application.id, "pi_paid")

    @pytest.mark.asyncio
    async def test_submit_underpaid_intent(self, application_service, test_application, test_tenant):
        with patch(
            "credora.services.application.StripeGateway.retrieve_payment_intent",
            return_value=succeeded_intent(amount=100)
        ):
            with pytest.raises(BadRequestError, match="does not cover"):
                await application_service.submit(test_tenant, test_application.id, "pi_paid")

    @pytest.mark.asyncio
    async def test_submit_rejects_finder_fee_intent(self, application_service, test_application, test_tenant):
        with patch(
            "credora.services.application.StripeGateway.retrieve_payment_intent",
            return_value=succeeded_intent(amount=25000, type="apartment_finder_fee")
        ):
            with pytest.raises(BadRequestError, match="not made for an application fee"):
                await application_service.submit(test_tenant, test_application.id, "pi_paid")

    @pytest.mark.asyncio
    async def test_submit_rejects_intent_of_another_user(
        self, application_service, test_application, test_tenant, test_admin
    ):
        with patch(
            "credora.services.application.StripeGateway.retrieve_payment_intent",
            return_value=succeeded_intent(user_id=str(test_admin.id))
        ):
            with pytest.raises(BadRequestError, match="another account"):
                await application_service.submit(test_tenant, test_application.id, "pi_paid")

    @pytest.mark.asyncio
    async def test_submit_reused_intent(self, application_service, application_repository, test_application, test_tenant):
        await ApplicationFactory.create_application(
            application_repository, test_tenant, status=ApplicationStatus.SUBMITTED, payment_intent_id="pi_paid"
        )

        with pytest.raises(ConflictError):
            await application_service.submit(test_tenant, test_application.id, "pi_paid")

    @pytest.mark.asyncio
    async def test_submitted_application_is_locked(
        self, application_service, application_repository, test_tenant
    ):
        application = await ApplicationFactory.create_application(
            application_repository, test_tenant, status=ApplicationStatus.SUBMITTED
        )

        with pytest.raises(BadRequestError, match="Only draft"):
            await application_service.update_draft(test_tenant, application.id, ApplicationUpdate(documents={}))
        with pytest.raises(ApplicationStatusError):
            await application_service.submit(test_tenant, application.id, "pi_other")
        with pytest.raises(BadRequestError):
            await application_service.delete_draft(test_tenant, application.id)

    @pytest.mark.asyncio
    async def test_delete_draft(self, application_service, test_application, test_tenant):
        await application_service.delete_draft(test_tenant, test_application.id)

        assert await application_service.list_user_applications(test_tenant) == []

    @pytest.mark.asyncio
    async def test_review_lifecycle(self, application_service, application_repository, test_tenant, test_admin):
        application = await ApplicationFactory.create_application(
            application_repository, test_tenant, status=ApplicationStatus.SUBMITTED
        )

        with pytest.raises(InsufficientPermissionsError):
            await application_service.update_status(application.id, ApplicationStatus.UNDER_REVIEW, test_tenant)
        with pytest.raises(ApplicationStatusError):
            await application_service.update_status(application.id, ApplicationStatus.APPROVED, test_admin)

        application = await application_service.update_status(application.id, ApplicationStatus.UNDER_REVIEW, test_admin)
        assert application.reviewed_at is None

        application = await application_service.update_status(
            application.id, ApplicationStatus.APPROVED, test_admin, notes="Strong income"
        )
        assert application.status == ApplicationStatus.APPROVED
        assert application.reviewed_at is not None
        assert application.decision_notes == "Strong income"

        with pytest.raises(ApplicationStatusError):
            await application_service.update_status(application.id, ApplicationStatus.DENIED, test_admin)

    @pytest.mark.asyncio
    async def test_admin_cannot_force_submission(self, application_service, application_repository, test_tenant, test_admin):
        draft = await ApplicationFactory.create_application(application_repository, test_tenant, complete=False)

        with pytest.raises(ApplicationStatusError):
            await application_service.update_status(draft.id, ApplicationStatus.SUBMITTED, test_admin)

        draft = await application_repository.get_by_id(draft.id)
        assert draft.status == ApplicationStatus.DRAFT
        assert draft.submitted_at is None

    @pytest.mark.asyncio
    async def test_record_payment_result(self, application_service, test_application, test_tenant):
        application = await application_service.record_payment_result(
            "pi_webhook", False, 5500, "usd",
            application_id=str(test_application.id), payer_id=str(test_tenant.id),
        )

        assert application.payment_status == PaymentStatus.FAILED
        assert application.payment_intent_id == "pi_webhook"
        assert await application_service.record_payment_result("pi_unknown", True, 5500, "usd") is None

    @pytest.mark.asyncio
    async def test_record_payment_result_ignores_underpayment(self, application_service, test_application, test_tenant):
        result = await application_service.record_payment_result(
            "pi_small", True, 50, "usd",
            application_id=str(test_application.id), payer_id=str(test_tenant.id),
        )

        assert result is None
        assert test_application.payment_status == PaymentStatus.PENDING
        assert test_application.payment_intent_id is None

    @pytest.mark.asyncio
    async def test_record_payment_result_ignores_other_payer(self, application_service, test_application, test_admin):
        result = await application_service.record_payment_result(
            "pi_other", True, 5500, "usd",
            application_id=str(test_application.id), payer_id=str(test_admin.id),
        )

        assert result is None
        assert test_application.payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_record_payment_result_keeps_earlier_payment(
        self, application_service, application_repository, test_tenant
    ):
        paid = await ApplicationFactory.create_application(
            application_repository, test_tenant,
            status=ApplicationStatus.SUBMITTED, payment_status=PaymentStatus.PAID, payment_intent_id="pi_first",
        )

        result = await application_service.record_payment_result(
            "pi_second", False, 5500, "usd", application_id=str(paid.id), payer_id=str(test_tenant.id)
        )

        assert result.payment_status == PaymentStatus.PAID
        assert result.payment_intent_id == "pi_first"

    @pytest.mark.asyncio
    async def test_statistics_and_listing(self, application_service, application_repository, test_tenant):
        for status in (ApplicationStatus.DRAFT, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.APPROVED):
            await ApplicationFactory.create_application(application_repository, test_tenant, status=status)

        stats = await application_service.get_statistics()
        assert stats["total"] == 3
        assert stats["pending"] == 2
        assert stats["approved"] == 1
        assert stats["denied"] == 0

        page = await application_service.list_applications(status=ApplicationStatus.APPROVED, page=1, page_size=10)
        assert page["total"] == 1
        assert page["total_pages"] == 1


class TestReviewService:
    @pytest.mark.asyncio
    async def test_create_review_updates_rating(self, db_session, test_apartment, test_tenant):
        service = ReviewService(db_session)

        await service.create_review(test_apartment.id, ReviewCreate(
            reviewer_name="Tina", reviewer_email="Tina@Example.com", rating=5, title="Great", comment="Love it"
        ), test_tenant)
        review = await service.create_review(test_apartment.id, ReviewCreate(
            reviewer_name="Sam", reviewer_email="sam@example.com", rating=2, title="Meh", comment="Loud"
        ))

        assert review.user_id is None
        await db_session.refresh(test_apartment)
        assert test_apartment.rating == Decimal("3.5")
        assert test_apartment.review_count == 2

        result = await service.list_reviews(test_apartment.id)
        assert result["average_rating"] == 3.5
        assert result["total_reviews"] == 2

    @pytest.mark.asyncio
    async def test_reviews_require_published_apartment(self, db_session, test_unpublished_apartment):
        service = ReviewService(db_session)

        with pytest.raises(ApartmentNotFoundError):
            await service.list_reviews(test_unpublished_apartment.id)


class TestFinderService:
    def _request(self, **overrides) -> FinderRequestCreate:
        data = {
            "user_name": "Sam Seeker",
            "user_email": "Sam@Example.com",
            "budget_min": "900",
            "budget_max": "1400",
            "preferred_locations": ["Southside", " "],
            "move_in_date": (date.today() + timedelta(days=20)).isoformat(),
        }
        data.update(overrides)
        return FinderRequestCreate(**data)

    @pytest.mark.asyncio
    async def test_submit_and_pay(self, db_session):
        service = FinderService(db_session)

        request = await service.submit_request(self._request())
        assert request.user_email == "sam@example.com"
        assert request.preferred_locations == ["Southside"]
        assert request.payment_status == PaymentStatus.PENDING

        paid = await service.mark_paid(request.reference, "pi_finder", 25000, "usd")
        assert paid.payment_status == PaymentStatus.PAID
        assert paid.payment_intent_id == "pi_finder"

        assert await service.mark_paid("af_missing", "pi_finder", 25000, "usd") is None
        assert len(await service.list_requests("sam@example.com")) == 1

    @pytest.mark.asyncio
    async def test_mark_paid_requires_full_fee(self, db_session):
        service = FinderService(db_session)
        request = await service.submit_request(self._request())

        assert await service.mark_paid(request.reference, "pi_small", 50, "usd") is None
        assert await service.mark_paid(request.reference, "pi_eur", 25000, "eur") is None
        assert request.payment_status == PaymentStatus.PENDING

        await service.mark_paid(request.reference, "pi_finder", 25000, "usd")
        again = await service.mark_paid(request.reference, "pi_late", 25000, "usd", succeeded=False)
        assert again.payment_status == PaymentStatus.PAID
        assert again.payment_intent_id == "pi_finder"

    @pytest.mark.asyncio
    async def test_past_move_in_rejected(self, db_session):
        service = FinderService(db_session)

        with pytest.raises(ValidationError):
            await service.submit_request(self._request(
                move_in_date=(date.today() - timedelta(days=1)).isoformat()
            ))
