"""Email service for composing and sending transactional emails"""

import logging
from html import escape
from typing import Dict

from eventhub.backends.email_client import EmailClient
from eventhub.config import config
from eventhub.models.event import Event, EventMode
from eventhub.models.credentials import OtpPurpose
from eventhub.utils.time_utils import as_utc
from eventhub.utils.tokens import generate_otp

logger = logging.getLogger(__name__)


def _format_when(value) -> str:
    return as_utc(value).strftime("%B %d, %Y at %I:%M %p UTC")


class EmailService:
    """Service for composing account and event emails and handing them to the mail backend"""

    def __init__(self, email_config: dict):
        self.config = email_config
        self.email_client = EmailClient(email_config)

    async def send_verification_email(self, email: str, name: str, token: str) -> bool:
        verify_url = f"{self.config['frontend_url']}/auth/verify?token={token}"
        ttl = self.config.get("verify_ttl_minutes", 60)
        body = f"""Hi {name},

Click the link to verify your account:
{verify_url}

The link expires in {ttl} minutes."""
        return await self._send_email(
            email,
            {"subject": "Verify your account", "body": body, "tag": "verify-account"},
        )

    async def send_otp_email(
        self, email: str, code: str, purpose: OtpPurpose, ttl_minutes: int
    ) -> bool:
        subject = f"Your OTP Code for {purpose.value}"
        body = f"Your OTP is: {code}. It will expire in {ttl_minutes} minutes."
        html = (
            f"<p>Your OTP is <strong>{code}</strong>. "
            f"Expires in {ttl_minutes} minutes.</p>"
        )
        return await self._send_email(
            email, {"subject": subject, "body": body, "html": html, "tag": "otp"}
        )

    async def send_password_reset_email(self, email: str, token: str) -> bool:
        link = f"{self.config['frontend_url']}/auth/reset-password?token={token}"
        return await self._send_email(
            email,
            {
                "subject": "Reset your password",
                "body": f"Reset link: {link}",
                "html": f'<a href="{escape(link)}">Click to confirm your email and change your password</a>',
                "tag": "password-reset",
            },
        )

    async def send_organizer_invitation(
        self, email: str, password: str, company_name: str
    ) -> bool:
        subject = "You're invited as an Organizer"
        body = f"""Hi,

You have been invited as an Organizer for {company_name}.

Here are your credentials:

Email: {email}
Password: {password}

Please login and change your password."""
        html = f"""<p>Hi,</p>
<p>You have been invited as an <strong>Organizer</strong> for {escape(company_name)}.</p>
<p>Here are your credentials:</p>
<ul>
  <li>Email: {escape(email)}</li>
  <li>Password: {escape(password)}</li>
</ul>
<p>Please login and change your password.</p>"""
        return await self._send_email(
            email,
            {"subject": subject, "body": body, "html": html, "tag": "organizer-invite"},
        )

    async def notify_participation_approved(
        self,
        event: Event,
        recipient_email: str,
        recipient_name: str,
        organizer_name: str,
        company_name: str,
    ) -> bool:
        """
        Tell a participant their join request was approved.

        Args:
            event: The event the participant was confirmed for
            recipient_email: Participant's email address
            recipient_name: Participant's display name
            organizer_name: Name of the organizer running the event
            company_name: Name of the hosting company

        Returns:
            bool: True if email was sent successfully, False otherwise
        """
        email_content = self._format_approval_email(
            event, recipient_name, organizer_name, company_name
        )
        sent = await self._send_email(recipient_email, email_content)
        if sent:
            logger.info(f"Approval email for event {event.id} sent to {recipient_email}")
        return sent

    def _format_approval_email(
        self,
        event: Event,
        recipient_name: str,
        organizer_name: str,
        company_name: str,
    ) -> Dict[str, str]:
        title = event.title
        name = recipient_name or "Participant"

        lines = [
            f"Hi {name},",
            "",
            f"You have been approved to join {title}!",
            "",
            "Event Details:",
        ]
        if event.category:
            lines.append(f"Type: {event.category}")
        lines.append(f"Starts: {_format_when(event.start_date)}")
        lines.append(f"Ends: {_format_when(event.end_date)}")
        lines.append(f"Organizer: {organizer_name}")
        lines.append(f"Company: {company_name}")

        html = [
            f"<h2>Hi {escape(name)},</h2>",
            f"<p>You have been approved to join the event <strong>{escape(title)}</strong></p>",
        ]
        if event.category:
            html.append(f"<p><strong>Type:</strong> {escape(event.category)}</p>")
        html.append(f"<p><strong>Starts:</strong> {_format_when(event.start_date)}</p>")
        html.append(f"<p><strong>Ends:</strong> {_format_when(event.end_date)}</p>")
        html.append(f"<p><strong>Organizer:</strong> {escape(organizer_name)}</p>")
        html.append(f"<p><strong>Company:</strong> {escape(company_name)}</p>")

        if event.mode == EventMode.ONLINE:
            join_link = event.join_link or "To be announced"
            lines.append("")
            lines.append("This is an online event. Join using the link below:")
            lines.append(join_link)
            html.append("<p>This is an <b>online event</b>. Join using the link below:</p>")
            html.append(f'<p><a href="{escape(join_link)}">{escape(join_link)}</a></p>')
        else:
            venue = event.venue or "To be announced"
            contact = event.contact_info or "N/A"
            entry_code = generate_otp()
            lines.append("")
            lines.append("This is an onsite event. Details are below:")
            lines.append(f"Venue: {venue}")
            lines.append(f"Contact Info: {contact}")
            lines.append(f"Entry code: {entry_code}")
            html.append("<p>This is an <b>onsite event</b>. Details are below:</p>")
            html.append(f"<p><strong>Venue:</strong> {escape(venue)}</p>")
            html.append(f"<p><strong>Contact Info:</strong> {escape(contact)}</p>")
            html.append(f"<p><strong>Entry code:</strong> {entry_code}</p>")

        lines.append("")
        lines.append("We're excited to see you at the event!")
        html.append("<p>We're excited to see you at the event!</p>")

        return {
            "subject": f'You\'re approved for "{title}"',
            "body": "\n".join(lines),
            "html": "\n".join(html),
            "tag": "participation-approved",
        }

    async def _send_email(self, to_email: str, email_content: Dict[str, str]) -> bool:
        """Send email using the email client"""
        try:
            await self.email_client.send_email(
                to=to_email,
                text=email_content["body"],
                subject=email_content["subject"],
                html=email_content.get("html"),
                tag=email_content.get("tag", "transactional"),
            )
            logger.info(f"Email sent successfully to {to_email}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False


# Global email service instance
_email_service = None


def get_email_service() -> EmailService:
    """Get or create the global email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService(config)
        logger.info("Initialized global email service")
    return _email_service
