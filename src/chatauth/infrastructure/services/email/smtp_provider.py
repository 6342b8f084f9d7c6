"""SMTP email provider implementation.

Uses aiosmtplib for asynchronous email sending via SMTP.
"""

from email.message import EmailMessage

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from chatauth.core.config import Settings
from chatauth.core.logging import get_logger
from chatauth.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Configuration settings for the SMTP provider."""

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    # STARTTLS: True requires it, False disables it, None upgrades when offered
    use_tls: bool | None = None
    use_ssl: bool = False
    from_email: str
    from_name: str = "Secure Chat App"
    reply_to: str | None = None
    timeout: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "SMTPSettings":
        """Build SMTP settings from the application settings.

        Port 465 implies implicit TLS. On any other port the connection is
        upgraded with STARTTLS when the relay offers it, so plain local relays
        (ports 25, 1025) still work.
        """
        return cls(
            host=settings.smtp_host or "localhost",
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_pass,
            use_ssl=settings.smtp_port == 465,
            from_email=settings.from_email or f"no-reply@{settings.smtp_host or 'localhost'}",
            from_name=settings.from_name,
        )


class SMTPProvider(EmailProvider):
    """SMTP email provider implementation."""

    def __init__(self, settings: SMTPSettings) -> None:
        """Initialize the SMTP provider.

        Args:
            settings: SMTP configuration settings.
        """
        self.settings = settings

    def _client(self) -> aiosmtplib.SMTP:
        return aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,  # aiosmtplib uses use_tls for SSL/TLS on connection
            start_tls=False if self.settings.use_ssl else self.settings.use_tls,
            timeout=self.settings.timeout,
        )

    async def send_email(
        self,
        to: str,
        subject: str,
        text_body: str,
        from_email: str | None = None,
        from_name: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        """Send an email via SMTP.

        Raises:
            aiosmtplib.SMTPException: If the SMTP exchange fails.
            OSError: If the relay cannot be reached.
        """
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = (
            f"{from_name or self.settings.from_name} <{from_email or self.settings.from_email}>"
        )
        message["To"] = to
        reply_addr = reply_to or self.settings.reply_to
        if reply_addr:
            message["Reply-To"] = reply_addr
        message.set_content(text_body)

        try:
            async with self._client() as smtp:
                if self.settings.username:
                    await smtp.login(self.settings.username, self.settings.password or "")
                await smtp.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        """Test the SMTP connection and authentication."""
        try:
            async with self._client() as smtp:
                if self.settings.username:
                    await smtp.login(self.settings.username, self.settings.password or "")
            return True, None
        except (aiosmtplib.SMTPException, OSError) as e:
            error_msg = f"SMTP connection failed: {str(e)}"
            logger.error(error_msg, host=self.settings.host)
            return False, error_msg
