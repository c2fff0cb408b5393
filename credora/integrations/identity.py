"""
Identity verification providers.

Landlords verify their identity through a vendor-hosted flow. Each vendor
is one IdentityProvider subclass that can open a session, authenticate
webhook payloads and translate vendor decisions into VerificationStatus.
"""

import hashlib
import hmac
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from credora.config import settings
from credora.models.landlord import Landlord, VerificationProvider, VerificationStatus
from credora.utils.exceptions import (
    BadRequestError,
    ServiceUnavailableError,
    VerificationProviderError,
)

logger = logging.getLogger(__name__)

PERSONA_API_VERSION = "2023-01-05"
LANDLORD_REFERENCE_PREFIX = "landlord-"


@dataclass
class IdentitySession:
    """Hosted verification session handed to the client."""
    provider: VerificationProvider
    reference: str
    session_token: Optional[str] = None
    session_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IdentityDecision:
    """Outcome parsed from a provider webhook."""
    provider: VerificationProvider
    reference: Optional[str]
    status: VerificationStatus
    landlord_id: Optional[str] = None
    event: Optional[str] = None


class IdentityProvider(ABC):
    """Abstract base class for identity verification vendors."""

    name: VerificationProvider

    @abstractmethod
    async def create_session(self, landlord: Landlord, **kwargs) -> IdentitySession:
        """Open a hosted verification flow for a landlord."""

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, headers: Mapping[str, str]) -> bool:
        """Check that a webhook payload was signed by the vendor."""

    @abstractmethod
    def parse_webhook(self, data: Dict[str, Any]) -> Optional[IdentityDecision]:
        """Translate a webhook body into a decision, or None for ignored events."""

    async def _post(self, url: str, headers: Dict[str, str], body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.post(url, headers=headers, json=body)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"{self.name.value} API error: endpoint={url} status={e.response.status_code} "
                f"body={e.response.text[:500]}"
            )
            raise VerificationProviderError(
                f"Failed to create verification session with {self.name.value.title()} ({e.response.status_code})"
            )
        except httpx.HTTPError as e:
            logger.error(f"{self.name.value} request failed: {e}")
            raise VerificationProviderError(f"{self.name.value.title()} request failed")


def _hmac_sha256_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class PersonaProvider(IdentityProvider):
    """
    Persona inquiries.

    An inquiry is created from a template, then resumed to obtain the
    session token the embedded flow needs. Webhooks carry a
    ``Persona-Signature: t=<timestamp>,v1=<hex>`` header signed over
    ``"<timestamp>.<body>"``.
    """

    name = VerificationProvider.PERSONA

    STATUS_BY_EVENT = {
        "inquiry.completed": VerificationStatus.APPROVED,
        "inquiry.approved": VerificationStatus.APPROVED,
        "inquiry.failed": VerificationStatus.DECLINED,
        "inquiry.declined": VerificationStatus.DECLINED,
        "inquiry.expired": VerificationStatus.EXPIRED,
    }

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {settings.persona_api_key}",
            "Content-Type": "application/json",
            "Persona-Version": PERSONA_API_VERSION,
        }

    async def create_session(
        self,
        landlord: Landlord,
        template_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        **kwargs
    ) -> IdentitySession:
        """
        Create an inquiry and a session token for it.

        Args:
            landlord: Landlord being verified
            template_id: Inquiry template, defaults to the configured one
            redirect_uri: Where Persona sends the landlord when done

        Returns:
            IdentitySession whose reference is the inquiry id
        """
        if not settings.persona_api_key:
            raise ServiceUnavailableError("Persona verification is not configured")

        template_id = template_id or settings.persona_template_id
        if not template_id:
            raise BadRequestError("Template ID is required")

        base_url = settings.persona_api_url.rstrip("/")
        inquiry = await self._post(
            f"{base_url}/inquiries",
            self._headers(),
            {
                "data": {
                    "type": "inquiry",
                    "attributes": {
                        "inquiry-template-id": template_id,
                        "reference-id": f"{LANDLORD_REFERENCE_PREFIX}{landlord.id}",
                        "redirect-uri": redirect_uri or self.completion_url(),
                        "note": f"ID verification for landlord: {landlord.id}",
                        "tags": ["landlord-verification", "credora-platform"],
                    },
                }
            },
        )
        inquiry_id = inquiry["data"]["id"]
        logger.info(f"Persona inquiry {inquiry_id} created for landlord {landlord.id}")

        resumed = await self._post(f"{base_url}/inquiries/{inquiry_id}/resume", self._headers())
        session_token = (resumed.get("meta") or {}).get("session-token") or (
            (resumed.get("data") or {}).get("attributes") or {}
        ).get("session-token")

        return IdentitySession(
            provider=self.name,
            reference=inquiry_id,
            session_token=session_token,
            extra={"template_id": template_id},
        )

    @staticmethod
    def completion_url() -> str:
        return f"{settings.public_site_url.rstrip('/')}/auth/landlords/verification-complete"

    @staticmethod
    def _parse_signature_header(header: str) -> Dict[str, str]:
        parts = {}
        for item in header.split(","):
            key, sep, value = item.strip().partition("=")
            if sep:
                parts[key] = value
        return parts

    def verify_webhook_signature(self, payload: bytes, headers: Mapping[str, str]) -> bool:
        secret = settings.persona_webhook_secret
        if not secret:
            logger.warning("PERSONA_WEBHOOK_SECRET not configured")
            return False

        header = headers.get("persona-signature")
        if not header:
            return False

        parts = self._parse_signature_header(header)
        timestamp, signature = parts.get("t"), parts.get("v1")
        if not timestamp or not signature:
            return False

        expected = _hmac_sha256_hex(secret, f"{timestamp}.".encode("utf-8") + payload)
        is_valid = hmac.compare_digest(expected, signature)
        if not is_valid:
            logger.warning("Persona webhook signature verification failed")
        return is_valid

    def parse_webhook(self, data: Dict[str, Any]) -> Optional[IdentityDecision]:
        event = data.get("data") or {}
        attributes = event.get("attributes") or {}
        event_name = attributes.get("name") or event.get("type")

        status = self.STATUS_BY_EVENT.get(event_name)
        if status is None:
            logger.info(f"Ignoring Persona event: {event_name}")
            return None

        inquiry = (attributes.get("payload") or {}).get("data") or attributes
        inquiry_attributes = inquiry.get("attributes", inquiry)
        reference_id = inquiry_attributes.get("reference-id") or ""

        landlord_id = None
        if reference_id.startswith(LANDLORD_REFERENCE_PREFIX):
            landlord_id = reference_id[len(LANDLORD_REFERENCE_PREFIX):]

        return IdentityDecision(
            provider=self.name,
            reference=inquiry.get("id"),
            status=status,
            landlord_id=landlord_id,
            event=event_name,
        )


class VeriffProvider(IdentityProvider):
    """
    Veriff sessions.

    Webhooks are signed with a hex HMAC-SHA256 of the raw body in the
    ``X-HMAC-SIGNATURE`` header.
    """

    name = VerificationProvider.VERIFF

    STATUS_BY_DECISION = {
        "approved": VerificationStatus.APPROVED,
        "declined": VerificationStatus.DECLINED,
        "resubmission_requested": VerificationStatus.RESUBMISSION_REQUIRED,
        "review": VerificationStatus.PENDING,
        "expired": VerificationStatus.EXPIRED,
        "abandoned": VerificationStatus.EXPIRED,
    }

    @staticmethod
    def resolve_callback(callback_url: Optional[str]) -> str:
        """Veriff requires a public HTTPS callback; local ones use the site URL."""
        if not callback_url or "localhost" in callback_url or "127.0.0.1" in callback_url:
            return PersonaProvider.completion_url()
        return callback_url

    async def create_session(
        self,
        landlord: Landlord,
        callback_url: Optional[str] = None,
        **kwargs
    ) -> IdentitySession:
        if not settings.veriff_api_key:
            raise ServiceUnavailableError("Veriff verification is not configured")

        callback = self.resolve_callback(callback_url)
        user = landlord.user
        person = {}
        if user is not None:
            person = {"firstName": user.first_name, "lastName": user.last_name}

        body = {
            "verification": {
                "callback": callback,
                "vendorData": str(landlord.id),
                "person": person,
            }
        }

        data = await self._post(
            f"{settings.veriff_base_url.rstrip('/')}/v1/sessions",
            {"X-AUTH-CLIENT": settings.veriff_api_key, "Content-Type": "application/json"},
            body,
        )

        verification = data.get("verification")
        if not verification or not verification.get("id"):
            logger.error(f"Invalid Veriff response: {data}")
            raise VerificationProviderError("Invalid response from Veriff")

        logger.info(f"Veriff session {verification['id']} created for landlord {landlord.id}")
        return IdentitySession(
            provider=self.name,
            reference=verification["id"],
            session_token=verification.get("sessionToken") or verification["id"],
            session_url=verification.get("url"),
            extra={"callback": callback},
        )

    def verify_webhook_signature(self, payload: bytes, headers: Mapping[str, str]) -> bool:
        secret = settings.veriff_secret_key
        if not secret:
            logger.warning("VERIFF_SECRET_KEY not configured")
            return False

        signature = headers.get("x-hmac-signature")
        if not signature:
            return False

        is_valid = hmac.compare_digest(_hmac_sha256_hex(secret, payload), signature.lower())
        if not is_valid:
            logger.warning("Veriff webhook signature verification failed")
        return is_valid

    def parse_webhook(self, data: Dict[str, Any]) -> Optional[IdentityDecision]:
        verification = data.get("verification") or {}
        decision = verification.get("status")
        status = self.STATUS_BY_DECISION.get(decision)
        if status is None:
            logger.info(f"Ignoring Veriff webhook with status: {decision}")
            return None

        return IdentityDecision(
            provider=self.name,
            reference=verification.get("id"),
            status=status,
            landlord_id=verification.get("vendorData"),
            event=f"verification.decision.{decision}",
        )


PROVIDERS = {
    VerificationProvider.PERSONA: PersonaProvider,
    VerificationProvider.VERIFF: VeriffProvider,
}


def get_identity_provider(name: str) -> IdentityProvider:
    """
    Get a provider instance by name.

    Raises:
        BadRequestError: Unknown provider name
    """
    try:
        provider = VerificationProvider(name)
    except ValueError:
        raise BadRequestError(f"Unknown verification provider: {name}")
    return PROVIDERS[provider]()
