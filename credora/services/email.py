"""
Transactional email through the Resend API.

Without a Resend API key messages are logged and skipped so local and test
environments never send mail.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from decimal import Decimal
from html import escape
from credora.config import settings
from credora.utils.exceptions import EmailDeliveryError
from credora.utils.formatting import format_currency, format_date
import httpx
import logging

logger = logging.getLogger(__name__)

APPLICATION_SUBMITTED_SUBJECT = "Application Submitted Successfully - Credora Cosigner Service"


def _layout(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title></head>"
        "<body style=\"font-family: Arial, sans-serif; line-height: 1.6; max-width: 600px; margin: 0 auto; padding: 20px;\">"
        "<div style=\"background: #475569; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;\">"
        "<h1 style=\"color: white; margin: 0;\">Credora Inc</h1>"
        "<p style=\"color: #e2e8f0; margin: 10px 0 0 0;\">Apartment finder &amp; Lease Cosigner Service</p>"
        "</div>"
        f"<div style=\"padding: 30px; border: 1px solid #e5e7eb; border-top: none;\">{body}</div>"
        "</body></html>"
    )


class EmailService:
    """Sends email via Resend and renders the service's templates."""

    async def send_email(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        reply_to: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Send an HTML email.

        Args:
            to: Recipient address or list of addresses
            subject: Subject line
            html: HTML body
            reply_to: Optional reply-to address

        Returns:
            ``{"success", "message_id", "skipped"}``

        Raises:
            EmailDeliveryError: If Resend rejects the message or is unreachable
        """
        recipients = [to] if isinstance(to, str) else list(to)

        if not settings.resend_api_key:
            logger.info(f"Email delivery not configured; skipping '{subject}' to {', '.join(recipients)}")
            return {"success": True, "message_id": None, "skipped": True}

        payload: Dict[str, Any] = {
            "from": settings.email_from,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.post(
                    settings.resend_api_url,
                    headers={"Authorization": f"Bearer {settings.resend_api_key}"},
                    json=payload,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend rejected '{subject}' ({e.response.status_code}): {e.response.text[:500]}")
            raise EmailDeliveryError()
        except httpx.HTTPError as e:
            logger.error(f"Resend request failed for '{subject}': {e}")
            raise EmailDeliveryError()

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Resend accepted '{subject}' with a non-JSON reply: {response.text[:200]}")
            data = None
        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info(f"Sent '{subject}' to {', '.join(recipients)} (id: {message_id})")
        return {"success": True, "message_id": message_id, "skipped": False}

    async def send_application_confirmation(
        self,
        email: str,
        first_name: str,
        payment_intent_id: str,
        amount: Union[Decimal, float, int],
        submitted_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        body = (
            f"<p>Hi {escape(first_name)},</p>"
            "<p>We've received your application.</p>"
            "<h3>Payment Details</h3>"
            f"<p>Amount paid: <strong>{format_currency(amount)}</strong><br>"
            f"Payment ID: {escape(payment_intent_id)}<br>"
            f"Submitted: {format_date(submitted_at or datetime.now())}</p>"
            "<h3>Next Steps</h3>"
            "<p><strong>1. Application Review (24-48 hours)</strong><br>"
            "Our team will review your application and documents.</p>"
            "<p><strong>2. Approval/Denial Notification</strong><br>"
            "You'll receive email updates on your application status.</p>"
        )
        return await self.send_email(email, APPLICATION_SUBMITTED_SUBJECT, _layout("Application Submitted", body))

    async def send_email_verification(self, email: str, first_name: str, token: str) -> Dict[str, Any]:
        link = f"{settings.public_site_url.rstrip('/')}/auth/verify-email?token={token}"
        body = (
            f"<p>Hi {escape(first_name)},</p>"
            "<p>Please confirm your email address to activate your Credora account.</p>"
            f"<p><a href=\"{escape(link)}\">Verify my email</a></p>"
            f"<p>This link expires in {settings.email_token_expire_hours} hours.</p>"
        )
        return await self.send_email(email, "Verify your email - Credora Inc", _layout("Verify your email", body))

    async def send_password_reset(self, email: str, first_name: str, token: str) -> Dict[str, Any]:
        link = f"{settings.public_site_url.rstrip('/')}/auth/reset-password?token={token}"
        body = (
            f"<p>Hi {escape(first_name)},</p>"
            "<p>We received a request to reset your password.</p>"
            f"<p><a href=\"{escape(link)}\">Reset my password</a></p>"
            f"<p>This link expires in {settings.password_reset_expire_minutes} minutes. "
            "If you did not request a reset you can ignore this email.</p>"
        )
        return await self.send_email(email, "Reset your password - Credora Inc", _layout("Reset your password", body))

    async def send_property_received(self, email: str, first_name: str, property_title: str) -> Dict[str, Any]:
        body = (
            f"<p>Hi {escape(first_name)},</p>"
            f"<p>Your property <strong>{escape(property_title)}</strong> was received and will appear "
            "on the apartments page after verification.</p>"
        )
        return await self.send_email(email, "Property received - Credora Inc", _layout("Property received", body))
