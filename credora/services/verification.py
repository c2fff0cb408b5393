"""
Landlord identity verification through Persona or Veriff.
"""

from typing import Any, Dict, Mapping, Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import status
from credora.integrations.identity import IdentityDecision, IdentitySession, get_identity_provider
from credora.repositories.user import LandlordRepository
from credora.models.landlord import Landlord, VerificationProvider, VerificationStatus
from credora.utils.exceptions import BadRequestError, WebhookSignatureError
import json
import uuid
import logging

logger = logging.getLogger(__name__)


class VerificationService:
    """
    Starts hosted verification flows and applies vendor decisions to the
    landlord's verification state.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.landlord_repo = LandlordRepository(db_session)

    async def _start(self, landlord: Landlord, session: IdentitySession) -> IdentitySession:
        await self.landlord_repo.update(landlord, {
            "verification_status": VerificationStatus.PENDING,
            "verification_provider": session.provider,
            "verification_reference": session.reference,
        })
        return session

    async def create_persona_inquiry(
        self,
        landlord: Landlord,
        template_id: Optional[str] = None,
        redirect_uri: Optional[str] = None
    ) -> IdentitySession:
        provider = get_identity_provider(VerificationProvider.PERSONA.value)
        session = await provider.create_session(landlord, template_id=template_id, redirect_uri=redirect_uri)
        return await self._start(landlord, session)

    async def create_veriff_session(self, landlord: Landlord, callback_url: Optional[str] = None) -> IdentitySession:
        provider = get_identity_provider(VerificationProvider.VERIFF.value)
        session = await provider.create_session(landlord, callback_url=callback_url)
        return await self._start(landlord, session)

    async def handle_webhook(
        self,
        provider_name: str,
        payload: bytes,
        headers: Mapping[str, str]
    ) -> Dict[str, Any]:
        """
        Verify a vendor webhook and record its decision.

        Args:
            provider_name: ``persona`` or ``veriff``
            payload: Raw request body, as signed by the vendor
            headers: Request headers

        Returns:
            ``{"success": True, "status": <status or None>}``

        Raises:
            WebhookSignatureError: Signature missing or invalid (401)
            BadRequestError: Body is not JSON
        """
        provider = get_identity_provider(provider_name)

        if not provider.verify_webhook_signature(payload, headers):
            raise WebhookSignatureError(status_code=status.HTTP_401_UNAUTHORIZED)

        try:
            data = json.loads(payload)
        except ValueError:
            raise BadRequestError("Invalid JSON payload")
        if not isinstance(data, dict):
            raise BadRequestError("Invalid JSON payload")

        decision = provider.parse_webhook(data)
        if decision is None:
            return {"success": True, "status": None}

        landlord = await self._find_landlord(decision)
        if not landlord:
            logger.warning(
                f"{decision.provider.value} decision {decision.status.value} for unknown "
                f"reference {decision.reference}"
            )
            return {"success": True, "status": decision.status}

        # A newer session is in flight; decisions for older ones are dropped
        if (
            landlord.verification_status == VerificationStatus.PENDING
            and landlord.verification_reference
            and landlord.verification_reference != decision.reference
        ):
            logger.info(
                f"Ignoring {decision.provider.value} decision for {decision.reference}; landlord "
                f"{landlord.id} is pending on {landlord.verification_reference}"
            )
            return {"success": True, "status": None}

        await self.apply_decision(landlord, decision)
        return {"success": True, "status": decision.status}

    async def _find_landlord(self, decision: IdentityDecision) -> Optional[Landlord]:
        if decision.reference:
            landlord = await self.landlord_repo.get_by_verification_reference(decision.reference)
            if landlord:
                return landlord

        if decision.landlord_id:
            try:
                return await self.landlord_repo.get_by_id(uuid.UUID(decision.landlord_id))
            except ValueError:
                logger.warning(f"Malformed landlord id in verification webhook: {decision.landlord_id}")
        return None

    async def apply_decision(self, landlord: Landlord, decision: IdentityDecision) -> Landlord:
        values: Dict[str, Any] = {
            "verification_status": decision.status,
            "verification_provider": decision.provider,
        }
        if decision.reference:
            values["verification_reference"] = decision.reference
        if decision.status == VerificationStatus.APPROVED:
            values["verified_at"] = datetime.now(timezone.utc)

        landlord = await self.landlord_repo.update(landlord, values)
        logger.info(f"Landlord {landlord.id} verification {decision.status.value} via {decision.provider.value}")
        return landlord

    @staticmethod
    def get_status(landlord: Landlord) -> Dict[str, Any]:
        return {
            "status": landlord.verification_status,
            "provider": landlord.verification_provider,
            "reference": landlord.verification_reference,
            "verified_at": landlord.verified_at,
            "is_verified": landlord.is_identity_verified,
        }
