"""
FastAPI application entry point.
Main application setup and configuration.
"""

from fastapi import FastAPI, HTTPException, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from pydantic import ValidationError as PydanticValidationError
import logging

from credora.config import settings
from credora.database import test_database_connection, create_tables, close_db_connection
from credora.routers import (
    auth_router,
    apartments_router,
    applications_router,
    payments_router,
    landlords_router,
    verification_router,
    address_router,
    notifications_router,
    finder_router,
)
from credora.utils.exceptions import APIException
from credora.services.error_handler import ErrorHandlerService
from credora.middleware import RequestLoggingMiddleware

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    db_connected = await test_database_connection()
    if not db_connected:
        logger.error("Failed to connect to database on startup")
    elif not settings.is_production:
        await create_tables()

    if not settings.stripe_configured:
        logger.warning("Stripe is not configured; payment endpoints will return 503")

    yield

    logger.info("Shutting down application")
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Rental marketplace and lease cosigner API.

    ## Features

    * **Apartments**: Search and browse verified listings with floor plans and reviews
    * **Cosigner Applications**: Four-step application wizard with a paid submission
    * **Payments**: Stripe PaymentIntents and webhooks for application and finder fees
    * **Landlord Portal**: Property submissions, subscription billing and ID verification
    * **Authentication**: JWT-based authentication with tenant, landlord and admin roles

    ## Authentication

    Most endpoints require authentication. Use the `/api/v1/auth/login` endpoint to obtain a JWT token,
    then include it in the Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Authentication", "description": "Accounts, tokens, email verification and password reset"},
        {"name": "Apartments", "description": "Listing search, details, reviews and admin publication"},
        {"name": "Applications", "description": "Tenant cosigner application wizard and admin review"},
        {"name": "Payments", "description": "Stripe payment intents and webhooks"},
        {"name": "Landlords", "description": "Landlord profile, properties and subscriptions"},
        {"name": "Verification", "description": "Landlord identity verification with Persona or Veriff"},
        {"name": "Address", "description": "US address autocomplete"},
        {"name": "Notifications", "description": "Transactional email"},
        {"name": "Apartment Finder", "description": "Paid apartment search requests"},
        {"name": "Health", "description": "System health endpoints"},
    ],
    contact={
        "name": "Credora Inc",
        "email": "support@credorainc.com",
    },
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# CORS is added last so it wraps every other middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

for router in (
    auth_router,
    apartments_router,
    applications_router,
    payments_router,
    landlords_router,
    verification_router,
    address_router,
    notifications_router,
    finder_router,
):
    app.include_router(router, prefix=settings.api_v1_prefix)


# Global exception handlers using ErrorHandlerService
@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return ErrorHandlerService.handle_api_exception(exc, request)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    return ErrorHandlerService.handle_validation_error(exc, request)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with secure error responses."""
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Basic API information."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_v1_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint with database connectivity test.
    Used by load balancers.
    """
    if not await test_database_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "integrations": {
            "stripe": settings.stripe_configured,
            "email": bool(settings.resend_api_key),
            "address_autocomplete": bool(settings.here_api_key),
            "persona": bool(settings.persona_api_key),
            "veriff": bool(settings.veriff_api_key),
        },
    }


def run():
    import uvicorn
    uvicorn.run(
        "credora.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()
