"""Unit tests for email template rendering."""

import pytest
from jinja2 import TemplateSyntaxError, UndefinedError

from chatauth.infrastructure.services.email.template_renderer import (
    TEMPLATES,
    EmailTemplate,
    TemplateRenderer,
)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


class TestRender:
    """Tests for TemplateRenderer.render."""

    def test_render_substitutes_variables(self, renderer):
        result = renderer.render("Hello {{ username }}!", {"username": "alice"})

        assert result == "Hello alice!"

    def test_render_does_not_escape(self, renderer):
        """Test that plain-text bodies keep URL characters intact."""
        result = renderer.render("{{ url }}", {"url": "https://chat.test/verify-email?token=a&b"})

        assert result == "https://chat.test/verify-email?token=a&b"

    def test_missing_variable_raises(self, renderer):
        with pytest.raises(UndefinedError):
            renderer.render("Hello {{ username }}!", {})

    def test_invalid_syntax_raises(self, renderer):
        with pytest.raises(TemplateSyntaxError):
            renderer.render("Hello {{ username", {"username": "alice"})

    def test_sandbox_blocks_attribute_access(self, renderer):
        """Test that templates cannot reach into Python internals."""
        from jinja2.exceptions import SecurityError

        with pytest.raises(SecurityError):
            renderer.render("{{ ''.__class__ }}", {})


class TestRenderEmail:
    """Tests for TemplateRenderer.render_email."""

    def test_verification_email(self, renderer):
        email = renderer.render_email(
            "email_verification",
            {
                "app_name": "Secure Chat App",
                "username": "alice",
                "verification_url": "http://chat.test/verify-email?token=abc",
            },
        )

        assert email.subject == "Verify Your Email - Secure Chat App"
        assert "Hi alice," in email.body
        assert "http://chat.test/verify-email?token=abc" in email.body
        assert "expire" not in email.body

    def test_password_reset_email(self, renderer):
        email = renderer.render_email(
            "password_reset",
            {
                "app_name": "Secure Chat App",
                "username": "alice",
                "reset_url": "http://chat.test/reset-password?token=xyz",
            },
        )

        assert email.subject == "Reset Your Password - Secure Chat App"
        assert "http://chat.test/reset-password?token=xyz" in email.body
        assert "1 hour" in email.body

    def test_welcome_email(self, renderer):
        email = renderer.render_email(
            "welcome",
            {"app_name": "Secure Chat App", "username": "alice", "login_url": "http://chat.test/login"},
        )

        assert email.subject == "Welcome to Secure Chat App!"
        assert "http://chat.test/login" in email.body

    def test_unknown_template(self, renderer):
        with pytest.raises(KeyError):
            renderer.render_email("newsletter", {})

    def test_custom_templates(self):
        renderer = TemplateRenderer({"ping": EmailTemplate(subject=" Ping {{ n }} ", body="{{ n }}")})

        email = renderer.render_email("ping", {"n": "1"})

        assert email.subject == "Ping 1"
        assert email.body == "1"

    def test_builtin_template_names(self):
        assert set(TEMPLATES) == {"email_verification", "password_reset", "welcome"}
