"""
FarmStaff - Email Service

Handles transactional email sending.
Supports SendGrid or SMTP, falling back to a logging mock when neither is
configured.
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from datetime import date, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

import httpx

from farmstaff.config import settings

logger = logging.getLogger(__name__)


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    SENDGRID = "sendgrid"
    MOCK = "mock"


@dataclass
class EmailMessage:
    """Email message data structure."""
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    reply_to: Optional[str] = None


class EmailService:
    """Service for sending transactional emails. ``send_email`` never raises."""

    def __init__(self):
        self.from_email = settings.email_from
        self.from_name = settings.email_from_name

        # SMTP settings
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.smtp_use_tls = settings.smtp_use_tls

        # SendGrid settings
        self.sendgrid_api_key = settings.sendgrid_api_key

    def _determine_provider(self) -> str:
        """Determine which email provider to use based on configuration."""
        if self.sendgrid_api_key:
            return EmailProvider.SENDGRID
        elif self.smtp_host:
            return EmailProvider.SMTP
        else:
            return EmailProvider.MOCK

    async def send_email(self, message: EmailMessage) -> bool:
        """
        Send an email using the configured provider.

        Returns:
            True when the provider accepted the message
        """
        provider = self._determine_provider()

        try:
            if provider == EmailProvider.SENDGRID:
                return await self._send_via_sendgrid(message)
            elif provider == EmailProvider.SMTP:
                return await self._send_via_smtp(message)
            else:
                return await self._send_mock(message)
        except Exception as e:
            logger.error(f"Failed to send email via {provider}: {e}")
            return False

    async def _send_via_sendgrid(self, message: EmailMessage) -> bool:
        """Send email via SendGrid API."""
        url = "https://api.sendgrid.com/v3/mail/send"

        payload = {
            "personalizations": [
                {
                    "to": [{"email": email} for email in message.to],
                }
            ],
            "from": {
                "email": self.from_email,
                "name": self.from_name,
            },
            "subject": message.subject,
            "content": [
                {"type": "text/plain", "value": message.body_text},
            ],
        }

        if message.body_html:
            payload["content"].append({
                "type": "text/html",
                "value": message.body_html,
            })

        if message.reply_to:
            payload["reply_to"] = {"email": message.reply_to}

        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.sendgrid_api_key}",
                    "Content-Type": "application/json",
                },
            )

        if response.status_code in [200, 202]:
            logger.info(f"Email sent via SendGrid to {message.to}")
            return True

        logger.error(f"SendGrid API error: {response.status_code} - {response.text}")
        return False

    def _deliver_smtp(self, message: EmailMessage) -> None:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = ', '.join(message.to)

        if message.reply_to:
            msg['Reply-To'] = message.reply_to

        msg.attach(MIMEText(message.body_text, 'plain'))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, 'html'))

        with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
            if self.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.sendmail(self.from_email, message.to, msg.as_string())

    async def _send_via_smtp(self, message: EmailMessage) -> bool:
        """Send email via SMTP without blocking the event loop."""
        await asyncio.to_thread(self._deliver_smtp, message)
        logger.info(f"Email sent via SMTP to {message.to}")
        return True

    async def _send_mock(self, message: EmailMessage) -> bool:
        """Mock email sending for development."""
        logger.info(f"[MOCK EMAIL] To: {message.to} | Subject: {message.subject}")
        logger.debug(f"[MOCK EMAIL] Body: {message.body_text[:200]}...")
        return True

    # ===========================================
    # TRANSACTIONAL EMAILS
    # ===========================================

    async def send_invite_email(
        self,
        to_email: str,
        token: str,
        role: str,
        expires_at: datetime,
    ) -> bool:
        """Send a staff invitation with its registration link."""
        invite_url = f"{settings.base_url}/register?token={token}"
        subject = f"You're invited to join {settings.app_name}"

        body_html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h1 style="color: #16a34a;">You're invited!</h1>
                <p>You have been invited to join {settings.app_name} as <strong>{role.lower()}</strong>.</p>
                <p>
                    <a href="{invite_url}"
                       style="display: inline-block; background-color: #16a34a; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">
                        Accept Invitation
                    </a>
                </p>
                <p>This invitation expires on {expires_at:%d %B %Y}.</p>
            </div>
        </body>
        </html>
        """

        body_text = f"""
        You're invited!

        You have been invited to join {settings.app_name} as {role.lower()}.

        Accept the invitation: {invite_url}

        This invitation expires on {expires_at:%d %B %Y}.
        """

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text=body_text,
            body_html=body_html,
        ))

    async def send_leave_decision_email(
        self,
        to_email: str,
        staff_name: str,
        leave_type: str,
        start_date: date,
        end_date: date,
        decision: str,
        reason: Optional[str] = None,
    ) -> bool:
        """Tell a staff member that their leave request was approved or rejected."""
        subject = f"Your leave request has been {decision.lower()}"

        lines = [
            f"Hi {staff_name},",
            "",
            f"Your {leave_type.lower()} leave request from {start_date:%d %b %Y} "
            f"to {end_date:%d %b %Y} has been {decision.lower()}.",
        ]
        if reason:
            lines.extend(["", f"Reason: {reason}"])
        lines.extend(["", f"The {settings.app_name} Team"])

        return await self.send_email(EmailMessage(
            to=[to_email],
            subject=subject,
            body_text="\n".join(lines),
        ))
