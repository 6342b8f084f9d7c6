"""Jinja2 renderer for the transactional email templates.

Templates are plain text. Rendering happens in a sandboxed environment with
``StrictUndefined`` so a missing variable fails instead of printing blank.
"""

from dataclasses import dataclass

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.sandbox import SandboxedEnvironment

from chatauth.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class EmailTemplate:
    """Subject and body templates of one email type."""

    subject: str
    body: str


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body: str


TEMPLATES: dict[str, EmailTemplate] = {
    "email_verification": EmailTemplate(
        subject="Verify Your Email - {{ app_name }}",
        body="""\
Welcome to {{ app_name }}!

Hi {{ username }},

Thank you for signing up! Please verify your email address by visiting:

{{ verification_url }}

If you didn't create an account, you can safely ignore this email.
""",
    ),
    "password_reset": EmailTemplate(
        subject="Reset Your Password - {{ app_name }}",
        body="""\
Hi {{ username }},

We received a request to reset the password of your {{ app_name }} account.
To choose a new password, visit:

{{ reset_url }}

This link will expire in 1 hour. If you didn't request a password reset, you
can safely ignore this email; your password will not change.
""",
    ),
    "welcome": EmailTemplate(
        subject="Welcome to {{ app_name }}!",
        body="""\
Hi {{ username }},

Your email address is verified and your account is ready. Sign in here:

{{ login_url }}

Happy chatting!
""",
    ),
}


class TemplateRenderer:
    """Renders the named email templates."""

    def __init__(self, templates: dict[str, EmailTemplate] | None = None) -> None:
        self.templates = templates or TEMPLATES
        self.env = SandboxedEnvironment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_string: str, variables: dict[str, str]) -> str:
        """Render a template string with variables.

        Raises:
            TemplateSyntaxError: If template syntax is invalid.
            UndefinedError: If required variable is missing.
        """
        try:
            return self.env.from_string(template_string).render(**variables)
        except TemplateSyntaxError as e:
            logger.error("Template syntax error", error=str(e), line=e.lineno)
            raise
        except UndefinedError as e:
            logger.error("Undefined variable in template", error=str(e))
            raise

    def render_email(self, template_type: str, variables: dict[str, str]) -> RenderedEmail:
        """Render the subject and body of a named template.

        Raises:
            KeyError: If no template has that name.
        """
        template = self.templates[template_type]
        return RenderedEmail(
            subject=self.render(template.subject, variables).strip(),
            body=self.render(template.body, variables),
        )
