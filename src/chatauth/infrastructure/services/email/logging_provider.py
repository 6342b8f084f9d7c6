"""Email provider that writes messages to the log.

Used in development, or whenever no SMTP relay is configured. Only the
subject and the masked recipient are logged; bodies carry one-time links.
"""

from chatauth.core.logging import get_logger, mask_email
from chatauth.infrastructure.services.email.email_provider import EmailProvider

logger = get_logger(__name__)


class LoggingEmailProvider(EmailProvider):
    """Logs each email instead of delivering it."""

    async def send_email(
        self,
        to: str,
        subject: str,
        text_body: str,
        from_email: str | None = None,
        from_name: str | None = None,
        reply_to: str | None = None,
    ) -> bool:
        logger.info(
            "[EMAIL] Delivery skipped, no SMTP relay configured",
            to=mask_email(to),
            subject=subject,
        )
        return True

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None
