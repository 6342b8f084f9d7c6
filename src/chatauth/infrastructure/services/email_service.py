"""Transactional email notifications.

Sends the verification, password reset and welcome emails. Every send is
best-effort: failures are logged and reported as ``False``, never raised, so
a mail outage cannot fail a registration or a reset request.
"""

from urllib.parse import urlencode

from chatauth.core.config import Settings
from chatauth.core.logging import get_logger, mask_email
from chatauth.infrastructure.services.email.email_provider import EmailProvider
from chatauth.infrastructure.services.email.logging_provider import LoggingEmailProvider
from chatauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from chatauth.infrastructure.services.email.template_renderer import TemplateRenderer

logger = get_logger(__name__)


class EmailService:
    """Service for sending the account lifecycle emails."""

    def __init__(
        self,
        provider: EmailProvider,
        frontend_url: str,
        app_name: str = "Secure Chat App",
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the email service.

        Args:
            provider: Delivery backend.
            frontend_url: Public base URL used in email links.
            app_name: Product name shown in subjects and bodies.
            renderer: Template renderer; defaults to the built-in templates.
        """
        self.provider = provider
        self.frontend_url = frontend_url.rstrip("/")
        self.app_name = app_name
        self.renderer = renderer or TemplateRenderer()

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        """Use SMTP when a relay is configured, otherwise log messages."""
        provider: EmailProvider
        if settings.smtp_configured:
            provider = SMTPProvider(SMTPSettings.from_settings(settings))
        else:
            provider = LoggingEmailProvider()
        return cls(
            provider=provider,
            frontend_url=settings.frontend_url,
            app_name=settings.from_name,
        )

    def _link(self, path: str, **params: str) -> str:
        query = f"?{urlencode(params)}" if params else ""
        return f"{self.frontend_url}/{path}{query}"

    async def _send(self, template_type: str, to: str, variables: dict[str, str]) -> bool:
        try:
            email = self.renderer.render_email(
                template_type, {"app_name": self.app_name, **variables}
            )
            sent = await self.provider.send_email(
                to=to,
                subject=email.subject,
                text_body=email.body,
            )
        except Exception as e:
            logger.error(
                "Failed to send email",
                template_type=template_type,
                to=mask_email(to),
                error=str(e),
            )
            return False

        if sent:
            logger.info("Email sent", template_type=template_type, to=mask_email(to))
        else:
            logger.warning("Email provider declined message", template_type=template_type, to=mask_email(to))
        return sent

    async def send_verification_email(self, to: str, username: str, token: str) -> bool:
        """Send the link that verifies ``to``."""
        return await self._send(
            "email_verification",
            to,
            {
                "username": username,
                "verification_url": self._link("verify-email", token=token),
            },
        )

    async def send_password_reset_email(self, to: str, username: str, token: str) -> bool:
        """Send the link for choosing a new password."""
        return await self._send(
            "password_reset",
            to,
            {
                "username": username,
                "reset_url": self._link("reset-password", token=token),
            },
        )

    async def send_welcome_email(self, to: str, username: str) -> bool:
        return await self._send(
            "welcome",
            to,
            {"username": username, "login_url": self._link("login")},
        )

    async def test_connection(self) -> tuple[bool, str | None]:
        return await self.provider.test_connection()
