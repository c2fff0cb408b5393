"""
Application service for the tenant cosigner wizard: step validation, drafts,
paid submission and admin review.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import ValidationError as PydanticValidationError
from credora.config import settings
from credora.integrations.stripe_gateway import StripeGateway, stripe_field
from credora.repositories.application import ApplicationRepository
from credora.repositories.payment import PaymentRepository
from credora.models.application import Application, ApplicationStatus, PaymentStatus
from credora.models.payment import PaymentPurpose, PaymentRecordStatus
from credora.models.user import User
from credora.schemas.application import (
    ApplicationCreate,
    ApplicationUpdate,
    EmploymentStatus,
    WizardStep,
    STEP_MODELS,
)
from credora.services.email import EmailService
from credora.utils.exceptions import (
    APIException,
    ApplicationIncompleteError,
    ApplicationNotFoundError,
    ApplicationStatusError,
    BadRequestError,
    ConflictError,
    InsufficientPermissionsError,
    ValidationError,
)
from credora.utils.formatting import covers_amount, from_cents
import math
import uuid
import logging

logger = logging.getLogger(__name__)

STEP_FIELDS = {
    WizardStep.PERSONAL: "personal_info",
    WizardStep.EMPLOYMENT: "employment_info",
    WizardStep.RENTAL: "rental_info",
    WizardStep.DOCUMENTS: "documents",
}

REQUIRED_DOCUMENTS = {
    "government_id": "Government ID is required",
    "income_verification": "Income verification is required",
}
STUDENT_DOCUMENTS = {
    "student_id": "Student ID is required",
}

DECISION_STATUSES = {ApplicationStatus.APPROVED, ApplicationStatus.DENIED}
REVIEW_STATUSES = {ApplicationStatus.UNDER_REVIEW} | DECISION_STATUSES


def _pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        if error.get("type") == "missing":
            message = "This field is required"
        else:
            message = error.get("msg", "Invalid value").removeprefix("Value error, ")
        errors.append({"field": field, "message": message})
    return errors


def validate_documents(documents: Dict[str, Any], employment_status: Optional[str] = None) -> List[Dict[str, str]]:
    """Report required document flags that are not set."""
    required = dict(REQUIRED_DOCUMENTS)
    if employment_status == EmploymentStatus.STUDENT.value:
        required.update(STUDENT_DOCUMENTS)

    documents = documents or {}
    return [
        {"field": field, "message": message}
        for field, message in required.items()
        if not documents.get(field)
    ]


def validate_step(
    step: WizardStep,
    data: Dict[str, Any],
    employment_status: Optional[str] = None
) -> List[Dict[str, str]]:
    """
    Validate one wizard step.

    Args:
        step: Wizard step name
        data: Submitted step values
        employment_status: Applicant employment status, used by the documents step

    Returns:
        List of ``{"field", "message"}`` errors, empty when the step is valid
    """
    try:
        model = STEP_MODELS[step].model_validate(data or {})
    except PydanticValidationError as e:
        return _pydantic_errors(e)

    errors = model.requirement_errors()
    if step == WizardStep.DOCUMENTS:
        status = employment_status or (data or {}).get("employment_status")
        errors.extend(validate_documents(data, status))
    return errors


class ApplicationService:
    """
    Tenant application workflow.

    Drafts stay editable until submission; submission requires complete
    steps and a succeeded application fee payment.
    """

    def __init__(self, db_session: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db_session
        self.application_repo = ApplicationRepository(db_session)
        self.payment_repo = PaymentRepository(db_session)
        self.email_service = email_service or EmailService()

    def validate_application(self, application: Application) -> List[Dict[str, str]]:
        """Validate every step, prefixing field names with the step."""
        employment_status = (application.employment_info or {}).get("employment_status")
        errors = []
        for step, attribute in STEP_FIELDS.items():
            for error in validate_step(step, getattr(application, attribute) or {}, employment_status):
                errors.append({"field": f"{step.value}.{error['field']}", "message": error["message"]})
        return errors

    async def create_draft(self, user: User, data: ApplicationCreate) -> Application:
        try:
            application = await self.application_repo.create({
                "user_id": user.id,
                "apartment_id": data.apartment_id,
                "status": ApplicationStatus.DRAFT,
                "payment_status": PaymentStatus.PENDING,
                "personal_info": dict(data.personal_info),
                "employment_info": dict(data.employment_info),
                "rental_info": dict(data.rental_info),
                "documents": dict(data.documents),
                "application_fee": settings.application_fee,
            })
            logger.info(f"Created application draft {application.id} for user {user.id}")
            return application
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create application for user {user.id}: {e}")
            raise BadRequestError(f"Failed to create application: {str(e)}")

    async def get_application(self, user: User, application_id: uuid.UUID) -> Application:
        """
        Load an application visible to the user.

        Admins can load any application; everyone else only their own.
        """
        if user.is_admin:
            application = await self.application_repo.get_by_id(application_id)
        else:
            application = await self.application_repo.get_for_user(application_id, user.id)

        if not application:
            raise ApplicationNotFoundError(str(application_id))
        return application

    async def list_user_applications(self, user: User) -> List[Application]:
        return await self.application_repo.list_by_user(user.id)

    async def update_draft(self, user: User, application_id: uuid.UUID, data: ApplicationUpdate) -> Application:
        """
        Save wizard progress.

        Step groups that are present replace the stored values. Document
        flags merge into the existing ones.

        Raises:
            ApplicationNotFoundError: Unknown application or owned by someone else
            BadRequestError: Application is no longer a draft
        """
        application = await self.application_repo.get_for_user(application_id, user.id)
        if not application:
            raise ApplicationNotFoundError(str(application_id))
        if not application.is_editable:
            raise BadRequestError("Only draft applications can be edited")

        values: Dict[str, Any] = {}
        if data.apartment_id is not None:
            values["apartment_id"] = data.apartment_id
        for attribute in ("personal_info", "employment_info", "rental_info"):
            step_data = getattr(data, attribute)
            if step_data is not None:
                values[attribute] = dict(step_data)
        if data.documents is not None:
            values["documents"] = {**(application.documents or {}), **data.documents}

        if not values:
            return application

        try:
            return await self.application_repo.update(application, values)
        except Exception as e:
            logger.error(f"Failed to update application {application_id}: {e}")
            raise BadRequestError(f"Failed to update application: {str(e)}")

    async def delete_draft(self, user: User, application_id: uuid.UUID) -> None:
        application = await self.application_repo.get_for_user(application_id, user.id)
        if not application:
            raise ApplicationNotFoundError(str(application_id))
        if not application.is_editable:
            raise BadRequestError("Only draft applications can be deleted")

        await self.application_repo.delete(application.id)
        logger.info(f"Deleted application draft {application_id}")

    async def submit(self, user: User, application_id: uuid.UUID, payment_intent_id: str) -> Application:
        """
        Submit a completed draft after the application fee is paid.

        Args:
            user: Applicant
            application_id: Draft to submit
            payment_intent_id: Stripe PaymentIntent that paid the fee

        Returns:
            The submitted application

        Raises:
            ApplicationStatusError: Application already submitted
            ApplicationIncompleteError: A wizard step is missing or invalid
            BadRequestError: Payment not succeeded or below the fee
            ConflictError: Payment already used by another application
        """
        application = await self.application_repo.get_for_user(application_id, user.id)
        if not application:
            raise ApplicationNotFoundError(str(application_id))
        if not application.can_transition_to(ApplicationStatus.SUBMITTED):
            raise ApplicationStatusError(application.status.value, ApplicationStatus.SUBMITTED.value)

        errors = self.validate_application(application)
        if errors:
            raise ApplicationIncompleteError(errors)

        existing = await self.application_repo.get_by_payment_intent(payment_intent_id)
        if existing and existing.id != application.id:
            raise ConflictError("Payment has already been used for another application")

        intent = StripeGateway.retrieve_payment_intent(payment_intent_id)
        if stripe_field(intent, "status") != "succeeded":
            raise BadRequestError("Payment has not been completed")
        metadata = stripe_field(intent, "metadata", {})
        if stripe_field(metadata, "type") != PaymentPurpose.APPLICATION_FEE.value:
            raise BadRequestError("Payment was not made for an application fee")
        payer_id = stripe_field(metadata, "user_id")
        if payer_id and payer_id != str(user.id):
            raise BadRequestError("Payment belongs to another account")
        amount_cents = stripe_field(intent, "amount", 0)
        if not covers_amount(amount_cents, stripe_field(intent, "currency"), application.application_fee):
            raise BadRequestError("Payment amount does not cover the application fee")

        submitted_at = datetime.now(timezone.utc)
        application = await self.application_repo.update(application, {
            "status": ApplicationStatus.SUBMITTED,
            "payment_status": PaymentStatus.PAID,
            "payment_intent_id": payment_intent_id,
            "submitted_at": submitted_at,
        })
        logger.info(f"Application {application.id} submitted with payment {payment_intent_id}")

        payment = await self.payment_repo.get_by_intent_id(payment_intent_id)
        if payment:
            await self.payment_repo.update(payment, {
                "status": PaymentRecordStatus.SUCCEEDED,
                "application_id": application.id,
            })

        try:
            await self.email_service.send_application_confirmation(
                email=application.applicant_email or user.email,
                first_name=(application.personal_info or {}).get("first_name") or user.first_name,
                payment_intent_id=payment_intent_id,
                amount=from_cents(amount_cents),
                submitted_at=submitted_at,
            )
        except APIException as e:
            logger.warning(f"Confirmation email for application {application.id} failed: {e.detail}")

        return application

    async def record_payment_result(
        self,
        payment_intent_id: str,
        succeeded: bool,
        amount_cents: int,
        currency: str,
        application_id: Optional[str] = None,
        payer_id: Optional[str] = None
    ) -> Optional[Application]:
        """
        Mirror a webhook payment outcome onto the application it paid for.

        The application named in the metadata is only trusted when it belongs
        to the payer. Intents that do not cover the fee are ignored, and an
        application already paid by another intent is left as it is.
        """
        application = None
        if application_id:
            try:
                application = await self.application_repo.get_by_id(uuid.UUID(str(application_id)))
            except ValueError:
                logger.warning(f"Ignoring malformed application id in payment metadata: {application_id}")
            if application is not None and str(application.user_id) != str(payer_id):
                logger.warning(
                    f"Payment {payment_intent_id} names application {application_id} of another user; ignoring"
                )
                application = None
        if application is None:
            application = await self.application_repo.get_by_payment_intent(payment_intent_id)
        if application is None:
            return None

        if not covers_amount(amount_cents, currency, application.application_fee):
            logger.warning(
                f"Payment {payment_intent_id} of {amount_cents} {currency} does not cover "
                f"the fee of application {application.id}; ignoring"
            )
            return None
        if application.payment_status == PaymentStatus.PAID and application.payment_intent_id != payment_intent_id:
            logger.info(f"Application {application.id} already paid by {application.payment_intent_id}")
            return application

        return await self.application_repo.update(application, {
            "payment_status": PaymentStatus.PAID if succeeded else PaymentStatus.FAILED,
            "payment_intent_id": payment_intent_id,
        })

    async def update_status(
        self,
        application_id: uuid.UUID,
        new_status: ApplicationStatus,
        admin: User,
        notes: Optional[str] = None
    ) -> Application:
        """
        Move an application along the review lifecycle.

        Raises:
            InsufficientPermissionsError: Caller is not an admin
            ApplicationNotFoundError: Unknown application
            ApplicationStatusError: Transition not allowed from the current status
        """
        if not admin.is_admin:
            raise InsufficientPermissionsError("review applications")

        application = await self.application_repo.get_by_id(application_id)
        if not application:
            raise ApplicationNotFoundError(str(application_id))

        # Only a paid submit() moves a draft to submitted
        if new_status not in REVIEW_STATUSES or not application.can_transition_to(new_status):
            raise ApplicationStatusError(application.status.value, new_status.value)

        values: Dict[str, Any] = {"status": new_status}
        if new_status in DECISION_STATUSES:
            values["reviewed_at"] = datetime.now(timezone.utc)
        if notes is not None:
            values["decision_notes"] = notes

        application = await self.application_repo.update(application, values)
        logger.info(f"Application {application.id} moved to {new_status.value} by {admin.email}")
        return application

    async def list_applications(
        self,
        status: Optional[ApplicationStatus] = None,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        page = max(page, 1)
        page_size = min(max(page_size, 1), settings.max_page_size)

        applications, total = await self.application_repo.list_by_status(
            status=status, skip=(page - 1) * page_size, limit=page_size
        )
        return {
            "applications": applications,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size) if total else 0,
        }

    async def get_statistics(self) -> Dict[str, int]:
        counts = await self.application_repo.count_by_status()
        stats = {status.value: count for status, count in counts.items()}
        stats["total"] = sum(counts.values())
        stats["pending"] = counts[ApplicationStatus.DRAFT] + counts[ApplicationStatus.UNDER_REVIEW]
        return stats
