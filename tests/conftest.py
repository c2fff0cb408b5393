"""
Test configuration and fixtures for the Credora API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("REQUIRE_EMAIL_VERIFICATION", "false")

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

import credora.models  # noqa: F401
from credora.main import app
from credora.database import Base, get_db
from credora.models.user import User, UserRole
from credora.models.landlord import Landlord, SubscriptionPlan, SubscriptionStatus
from credora.models.apartment import Apartment
from credora.models.application import Application, ApplicationStatus
from credora.repositories.user import UserRepository, LandlordRepository
from credora.repositories.apartment import ApartmentRepository
from credora.repositories.application import ApplicationRepository
from credora.utils.auth import create_access_token


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_factory = async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def landlord_repository(db_session: AsyncSession) -> LandlordRepository:
    return LandlordRepository(db_session)


@pytest.fixture
def apartment_repository(db_session: AsyncSession) -> ApartmentRepository:
    return ApartmentRepository(db_session)


@pytest.fixture
def application_repository(db_session: AsyncSession) -> ApplicationRepository:
    return ApplicationRepository(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        first_name: str = "Test",
        last_name: str = "User",
        role: UserRole = UserRole.TENANT,
        is_active: bool = True,
        email_verified: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "role": role,
            "is_active": is_active,
            "email_verified": email_verified,
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class LandlordFactory:
    """Factory for landlord users with their landlord profile."""

    @staticmethod
    async def create_landlord(
        db_session: AsyncSession,
        email: str = None,
        company_name: str = "Magic City Rentals",
        plan: Optional[SubscriptionPlan] = SubscriptionPlan.BASIC,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        **kwargs
    ) -> Landlord:
        user = await UserFactory.create_user(
            UserRepository(db_session),
            email=email,
            first_name="Lana",
            last_name="Landlord",
            role=UserRole.LANDLORD,
            **kwargs
        )
        landlord = await LandlordRepository(db_session).create({
            "user_id": user.id,
            "company_name": company_name,
            "phone": "(205) 555-0100",
            "subscription_plan": plan,
            "subscription_status": status,
        })
        await db_session.refresh(user)
        return landlord


class ApartmentFactory:
    """Factory for creating test apartment listings."""

    @staticmethod
    def create_apartment_data(
        title: str = "Southside Lofts",
        city: str = "Birmingham",
        state: str = "AL",
        price: Decimal = Decimal("1200.00"),
        bedrooms: int = 2,
        bathrooms: Decimal = Decimal("1.0"),
        pet_friendly: Optional[bool] = True,
        parking: Optional[bool] = True,
        verified: bool = True,
        landlord_id: uuid.UUID = None,
        **kwargs
    ) -> dict:
        data = {
            "title": title,
            "address": "2100 5th Ave S",
            "city": city,
            "state": state,
            "zip_code": "35233",
            "price": price,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "amenities": ["Pool", "Gym"],
            "images": [],
            "lease_terms": [],
            "pet_friendly": pet_friendly,
            "parking": parking,
            "verified": verified,
            "landlord_id": landlord_id,
        }
        data.update(kwargs)
        return data

    @staticmethod
    async def create_apartment(
        apartment_repo: ApartmentRepository,
        floor_plans: list = None,
        **kwargs
    ) -> Apartment:
        return await apartment_repo.create_apartment(
            ApartmentFactory.create_apartment_data(**kwargs),
            floor_plans=floor_plans,
        )


class ApplicationFactory:
    """Factory for wizard step data and stored applications."""

    @staticmethod
    def personal_info(**overrides) -> dict:
        data = {
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane.doe@example.com",
            "phone": "(205) 555-1234",
            "date_of_birth": "1995-04-12",
            "citizenship_status": "us_citizen",
            "ssn": "123-45-6789",
            "current_address": "400 Main St",
            "current_city": "Birmingham",
            "current_state": "AL",
            "current_zip": "35203",
        }
        data.update(overrides)
        return data

    @staticmethod
    def employment_info(**overrides) -> dict:
        data = {
            "employment_status": "employed",
            "employer_name": "UAB",
            "job_title": "Analyst",
            "length_of_employment": "2 years",
            "annual_income": "$65,000",
        }
        data.update(overrides)
        return data

    @staticmethod
    def rental_info(**overrides) -> dict:
        data = {
            "desired_address": "2100 5th Ave S",
            "desired_city": "Birmingham",
            "desired_state": "Alabama",
            "zip_code": "35233",
            "monthly_rent": "1,500",
            "move_in_date": (date.today() + timedelta(days=30)).isoformat(),
            "landlord_name": "Lana Landlord",
            "landlord_phone": "2055559876",
            "property_website": "https://example.com/southside-lofts",
        }
        data.update(overrides)
        return data

    @staticmethod
    def documents(**overrides) -> dict:
        data = {"government_id": True, "income_verification": True}
        data.update(overrides)
        return data

    @staticmethod
    def complete_data() -> dict:
        return {
            "personal_info": ApplicationFactory.personal_info(),
            "employment_info": ApplicationFactory.employment_info(),
            "rental_info": ApplicationFactory.rental_info(),
            "documents": ApplicationFactory.documents(),
        }

    @staticmethod
    async def create_application(
        application_repo: ApplicationRepository,
        user: User,
        status: ApplicationStatus = ApplicationStatus.DRAFT,
        complete: bool = True,
        **kwargs
    ) -> Application:
        data = ApplicationFactory.complete_data() if complete else {}
        data.update({
            "user_id": user.id,
            "status": status,
            "application_fee": Decimal("55.00"),
        })
        data.update(kwargs)
        return await application_repo.create(data)


# Common test fixtures
@pytest.fixture
async def test_tenant(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="tenant@example.com",
        first_name="Tina",
        last_name="Tenant",
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@example.com",
        first_name="Ada",
        last_name="Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_landlord(db_session: AsyncSession) -> Landlord:
    """Landlord on an active basic plan."""
    return await LandlordFactory.create_landlord(db_session, email="landlord@example.com")


@pytest.fixture
async def test_apartment(apartment_repository: ApartmentRepository) -> Apartment:
    """Published listing."""
    return await ApartmentFactory.create_apartment(apartment_repository)


@pytest.fixture
async def test_unpublished_apartment(apartment_repository: ApartmentRepository) -> Apartment:
    return await ApartmentFactory.create_apartment(
        apartment_repository,
        title="Pending Place",
        verified=False,
    )


@pytest.fixture
async def test_application(application_repository: ApplicationRepository, test_tenant: User) -> Application:
    """Complete draft owned by the test tenant."""
    return await ApplicationFactory.create_application(application_repository, test_tenant)


# Utility functions for tests
def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


def assert_error_response(response, status_code: int, code: str):
    """Assert the standard error envelope."""
    assert response.status_code == status_code
    error = response.json()["error"]
    assert error["code"] == code
    assert "message" in error
    assert "timestamp" in error
    return error
