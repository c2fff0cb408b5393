"""
Pydantic schemas for the tenant application wizard.

Each wizard step has its own model. Field formats are checked by Pydantic;
requirements that depend on other answers (SSN for international students,
employment details per status) are reported by ``requirement_errors``.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Any, ClassVar, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from credora.models.application import ApplicationStatus, PaymentStatus
from credora.utils.formatting import digits_only, normalize_state, STATE_ABBREVIATIONS
import enum
import re
import uuid

ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
MINIMUM_APPLICANT_AGE = 18


class CitizenshipStatus(str, enum.Enum):
    US_CITIZEN = "us_citizen"
    PERMANENT_RESIDENT = "permanent_resident"
    WORK_VISA_H1B = "work_visa_h1b"
    INTERNATIONAL_STUDENT = "international_student"


class InternationalStudentType(str, enum.Enum):
    WITH_SSN = "with_ssn"
    WITHOUT_SSN = "without_ssn"


class EmploymentStatus(str, enum.Enum):
    EMPLOYED = "employed"
    EMPLOYED_PART_TIME = "employed_part_time"
    SELF_EMPLOYED = "self_employed"
    STUDENT = "student"
    DISABILITY = "disability"
    RETIRED = "retired"
    UNEMPLOYED = "unemployed"


class WizardStep(str, enum.Enum):
    PERSONAL = "personal"
    EMPLOYMENT = "employment"
    RENTAL = "rental"
    DOCUMENTS = "documents"


def _parse_money(v):
    """Accept "$1,250.00" style input as well as plain numbers."""
    if v is None or isinstance(v, (int, float, Decimal)):
        return v
    cleaned = str(v).replace("$", "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError("Must be a valid amount")


def _require_phone(v: str) -> str:
    if len(digits_only(v)) != 10:
        raise ValueError("Please enter a valid 10-digit phone number")
    return v.strip()


def _require_state(v: str) -> str:
    state = normalize_state(v)
    if not state or state not in STATE_ABBREVIATIONS:
        raise ValueError("Please select a valid US state")
    return state


def _require_zip(v: str) -> str:
    cleaned = v.strip()
    if not ZIP_PATTERN.match(cleaned):
        raise ValueError("Please enter a valid ZIP code")
    return cleaned


def _require_text(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("This field is required")
    return v.strip()


class StepModel(BaseModel):
    """Base for wizard step payloads. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    def requirement_errors(self) -> List[Dict[str, str]]:
        return []


class PersonalInfoStep(StepModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: EmailStr
    phone: str
    date_of_birth: date
    citizenship_status: CitizenshipStatus
    international_student_type: Optional[InternationalStudentType] = None
    ssn: Optional[str] = None
    current_address: str = Field(..., max_length=255)
    current_city: str = Field(..., max_length=100)
    current_state: str
    current_zip: str

    @field_validator("first_name", "last_name", "current_address", "current_city")
    @classmethod
    def validate_text(cls, v):
        return _require_text(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return _require_phone(v)

    @field_validator("current_state")
    @classmethod
    def validate_state(cls, v):
        return _require_state(v)

    @field_validator("current_zip")
    @classmethod
    def validate_zip(cls, v):
        return _require_zip(v)

    @field_validator("date_of_birth")
    @classmethod
    def validate_age(cls, v):
        today = date.today()
        age = today.year - v.year - ((today.month, today.day) < (v.month, v.day))
        if age < MINIMUM_APPLICANT_AGE:
            raise ValueError(f"Applicant must be at least {MINIMUM_APPLICANT_AGE} years old")
        return v

    @field_validator("ssn")
    @classmethod
    def validate_ssn(cls, v):
        if v is None or not v.strip():
            return None
        if len(digits_only(v)) != 9:
            raise ValueError("Please enter a valid 9-digit SSN")
        return digits_only(v)

    @property
    def ssn_required(self) -> bool:
        return not (
            self.citizenship_status == CitizenshipStatus.INTERNATIONAL_STUDENT
            and self.international_student_type == InternationalStudentType.WITHOUT_SSN
        )

    def requirement_errors(self) -> List[Dict[str, str]]:
        errors = []
        if self.citizenship_status == CitizenshipStatus.INTERNATIONAL_STUDENT and not self.international_student_type:
            errors.append({"field": "international_student_type", "message": "International student type is required"})
        if self.ssn_required and not self.ssn:
            errors.append({"field": "ssn", "message": "SSN is required"})
        return errors


class EmploymentInfoStep(StepModel):
    employment_status: EmploymentStatus

    employer_name: Optional[str] = None
    job_title: Optional[str] = None
    length_of_employment: Optional[str] = None
    annual_income: Optional[Decimal] = Field(None, ge=0)

    business_name: Optional[str] = None
    business_type: Optional[str] = None
    years_in_business: Optional[str] = None
    self_employed_income: Optional[Decimal] = Field(None, ge=0)

    retirement_income: Optional[Decimal] = Field(None, ge=0)
    pension_source: Optional[str] = None

    disability_duration: Optional[str] = None
    disability_type: Optional[str] = None
    disability_benefits: Optional[Decimal] = Field(None, ge=0)

    school_name: Optional[str] = None
    student_type: Optional[str] = None
    academic_year: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[Dict[EmploymentStatus, Dict[str, str]]] = {
        EmploymentStatus.EMPLOYED: {
            "employer_name": "Employer name is required",
            "job_title": "Job title is required",
            "length_of_employment": "Length of employment is required",
            "annual_income": "Annual income is required",
        },
        EmploymentStatus.SELF_EMPLOYED: {
            "business_name": "Business name is required",
            "business_type": "Business type is required",
            "years_in_business": "Years in business is required",
            "self_employed_income": "Annual income is required",
        },
        EmploymentStatus.RETIRED: {
            "retirement_income": "Retirement income is required",
            "pension_source": "Pension source is required",
        },
        EmploymentStatus.DISABILITY: {
            "disability_duration": "Disability duration is required",
            "disability_type": "Disability type is required",
            "disability_benefits": "Disability benefits amount is required",
        },
        EmploymentStatus.STUDENT: {
            "school_name": "School name is required",
            "student_type": "Student type is required",
            "academic_year": "Academic year is required",
        },
        EmploymentStatus.UNEMPLOYED: {},
    }

    @field_validator(
        "annual_income", "self_employed_income", "retirement_income", "disability_benefits",
        mode="before"
    )
    @classmethod
    def parse_amount(cls, v):
        return _parse_money(v)

    @field_validator(
        "employer_name", "job_title", "length_of_employment", "business_name", "business_type",
        "years_in_business", "pension_source", "disability_duration", "disability_type",
        "school_name", "student_type", "academic_year"
    )
    @classmethod
    def strip_blank(cls, v):
        if v is None:
            return None
        return v.strip() or None

    def requirement_errors(self) -> List[Dict[str, str]]:
        status = self.employment_status
        if status == EmploymentStatus.EMPLOYED_PART_TIME:
            status = EmploymentStatus.EMPLOYED

        return [
            {"field": field, "message": message}
            for field, message in self.REQUIRED_FIELDS[status].items()
            if getattr(self, field) is None
        ]


class RentalInfoStep(StepModel):
    desired_address: str = Field(..., max_length=255)
    desired_city: str = Field(..., max_length=100)
    desired_state: str
    zip_code: str
    monthly_rent: Decimal = Field(..., gt=0)
    move_in_date: date
    landlord_name: str = Field(..., max_length=255)
    landlord_phone: str
    landlord_email: Optional[EmailStr] = None
    property_website: str = Field(..., max_length=500)

    @field_validator("desired_address", "desired_city", "landlord_name", "property_website")
    @classmethod
    def validate_text(cls, v):
        return _require_text(v)

    @field_validator("monthly_rent", mode="before")
    @classmethod
    def parse_rent(cls, v):
        return _parse_money(v)

    @field_validator("desired_state")
    @classmethod
    def validate_state(cls, v):
        return _require_state(v)

    @field_validator("zip_code")
    @classmethod
    def validate_zip(cls, v):
        return _require_zip(v)

    @field_validator("landlord_phone")
    @classmethod
    def validate_phone(cls, v):
        return _require_phone(v)

    @field_validator("move_in_date")
    @classmethod
    def validate_move_in(cls, v):
        if v < date.today():
            raise ValueError("Move-in date cannot be in the past")
        return v


class DocumentsStep(StepModel):
    """Upload flags. Files themselves are stored outside this service."""

    model_config = ConfigDict(extra="allow")

    government_id: bool = False
    income_verification: bool = False
    student_id: bool = False
    bank_statements: bool = False
    employment_letter: bool = False


STEP_MODELS = {
    WizardStep.PERSONAL: PersonalInfoStep,
    WizardStep.EMPLOYMENT: EmploymentInfoStep,
    WizardStep.RENTAL: RentalInfoStep,
    WizardStep.DOCUMENTS: DocumentsStep,
}


class ApplicationCreate(BaseModel):
    """Start a draft. Step data may be partial until submission."""

    apartment_id: Optional[uuid.UUID] = None
    personal_info: Dict[str, Any] = Field(default_factory=dict)
    employment_info: Dict[str, Any] = Field(default_factory=dict)
    rental_info: Dict[str, Any] = Field(default_factory=dict)
    documents: Dict[str, bool] = Field(default_factory=dict)


class ApplicationUpdate(BaseModel):
    """Partial draft update. Step groups replace their stored values; documents flags merge."""

    apartment_id: Optional[uuid.UUID] = None
    personal_info: Optional[Dict[str, Any]] = None
    employment_info: Optional[Dict[str, Any]] = None
    rental_info: Optional[Dict[str, Any]] = None
    documents: Optional[Dict[str, bool]] = None


class ApplicationSubmitRequest(BaseModel):
    payment_intent_id: str = Field(..., min_length=3, max_length=255, examples=["pi_3Nabc123"])


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=2000)


class StepValidationResponse(BaseModel):
    step: WizardStep
    valid: bool
    errors: List[Dict[str, str]] = Field(default_factory=list)


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    apartment_id: Optional[uuid.UUID] = None
    status: ApplicationStatus
    payment_status: PaymentStatus
    personal_info: Dict[str, Any]
    employment_info: Dict[str, Any]
    rental_info: Dict[str, Any]
    documents: Dict[str, Any]
    payment_intent_id: Optional[str] = None
    application_fee: Decimal
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    decision_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ApplicationStatistics(BaseModel):
    total: int
    draft: int
    submitted: int
    under_review: int
    approved: int
    denied: int
    pending: int = Field(..., description="Drafts plus applications under review")
