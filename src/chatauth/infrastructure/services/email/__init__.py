"""Email delivery providers and templates."""

from chatauth.infrastructure.services.email.email_provider import EmailProvider
from chatauth.infrastructure.services.email.logging_provider import LoggingEmailProvider
from chatauth.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from chatauth.infrastructure.services.email.template_renderer import TemplateRenderer

__all__ = [
    "EmailProvider",
    "LoggingEmailProvider",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
]
