"""Contact-form email delivery over SMTP."""
import asyncio
import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional

from config import EMAIL_HOST, EMAIL_PORT, EMAIL_USER, EMAIL_PASS, EMAIL_SECURE, EMAIL_FROM, EMAIL_TO
from services.errors import ConfigurationError, UpstreamAuthError, UpstreamNetworkError

logger = logging.getLogger(__name__)

SERVICE = "smtp"
SMTP_TIMEOUT_SECONDS = 30


@dataclass
class ContactMessage:
    """A lead submitted through the website contact form."""
    name: str
    email: str
    message: str
    phone: Optional[str] = None
    subject: Optional[str] = None

    REQUIRED_FIELDS = ("name", "email", "message")

    @classmethod
    def missing_fields(cls, name, email, message) -> List[str]:
        """Names of required fields that are absent or blank."""
        values = {"name": name, "email": email, "message": message}
        return [
            key for key in cls.REQUIRED_FIELDS
            if not isinstance(values[key], str) or not values[key].strip()
        ]


class EmailService:
    """Sends contact-form leads to the sales inbox."""

    def __init__(
        self,
        host: Optional[str] = EMAIL_HOST,
        port: int = EMAIL_PORT,
        user: Optional[str] = EMAIL_USER,
        password: Optional[str] = EMAIL_PASS,
        secure: bool = EMAIL_SECURE,
        sender: Optional[str] = EMAIL_FROM,
        recipient: Optional[str] = EMAIL_TO
    ):
        """
        Args:
            host: SMTP host
            port: SMTP port (465 with ``secure``, usually 587 otherwise)
            user: SMTP username
            password: SMTP password
            secure: Use implicit TLS instead of STARTTLS
            sender: From address; defaults to ``user``
            recipient: Inbox receiving the leads; defaults to ``sender``
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.secure = secure
        self.sender = sender or user
        self.recipient = recipient or self.sender

        if not self.configured:
            logger.warning("Email service disabled: missing EMAIL_HOST, EMAIL_USER or EMAIL_PASS")

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def build_message(self, contact: ContactMessage) -> EmailMessage:
        """Plain-text and HTML versions of the lead notification."""
        subject_label = (contact.subject or "general").upper()

        msg = EmailMessage()
        msg["Subject"] = f"[WEB] {subject_label} - {contact.name}"
        msg["From"] = formataddr(("Web Lead", self.sender))
        msg["To"] = self.recipient
        msg["Reply-To"] = contact.email

        text = f"Nuevo mensaje de {contact.name} ({contact.email}):\n\n{contact.message}"
        if contact.phone:
            text += f"\n\nTeléfono: {contact.phone}"
        msg.set_content(text)
        msg.add_alternative(self._render_html(contact), subtype="html")
        return msg

    async def send_contact_email(self, contact: ContactMessage) -> None:
        """
        Deliver a lead notification.

        Raises:
            ConfigurationError: SMTP settings are missing
            UpstreamAuthError: SMTP server rejected the credentials
            UpstreamNetworkError: Connection or protocol failure
        """
        if not self.configured:
            raise ConfigurationError("Email service not configured")

        msg = self.build_message(contact)
        await asyncio.to_thread(self._deliver, msg)
        logger.info(f"Contact email sent for subject {contact.subject or 'general'}")

    def _deliver(self, msg: EmailMessage) -> None:
        context = ssl.create_default_context()
        try:
            if self.secure:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS, context=context) as smtp:
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as smtp:
                    smtp.ehlo()
                    if smtp.has_extn("starttls"):
                        smtp.starttls(context=context)
                        smtp.ehlo()
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            raise UpstreamAuthError("SMTP authentication failed", SERVICE) from e
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email: {e}", exc_info=True)
            raise UpstreamNetworkError("SMTP delivery failed", SERVICE) from e

    @staticmethod
    def _render_html(contact: ContactMessage) -> str:
        name = html.escape(contact.name)
        email = html.escape(contact.email)
        message = html.escape(contact.message)
        subject = html.escape(contact.subject or "General")
        phone = ""
        if contact.phone:
            escaped_phone = html.escape(contact.phone)
            phone = f'<br><a href="tel:{escaped_phone}">{escaped_phone}</a>'

        return f"""<!DOCTYPE html>
<html lang="es">
<head>
  <meta charset="utf-8">
  <style>
    body {{ font-family: sans-serif; background-color: #f4f4f5; padding: 20px; color: #1f2937; }}
    .container {{ max-width: 600px; margin: 0 auto; background: white; border-radius: 12px; }}
    .header {{ background: #2563EB; padding: 20px; text-align: center; color: white; }}
    .content {{ padding: 30px; }}
    .label {{ font-size: 12px; font-weight: bold; color: #6b7280; text-transform: uppercase; }}
    .message-box {{ background: #f8fafc; border-left: 4px solid #2563EB; padding: 15px; white-space: pre-wrap; }}
  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h2>Nuevo Lead Web 🚀</h2></div>
    <div class="content">
      <p><span class="label">Departamento</span><br>{subject}</p>
      <p><span class="label">Nombre / Empresa</span><br>{name}</p>
      <p><span class="label">Contacto</span><br><a href="mailto:{email}">{email}</a>{phone}</p>
      <p><span class="label">Mensaje</span></p>
      <div class="message-box">{message}</div>
    </div>
  </div>
</body>
</html>
"""
