"""Unit tests for the SMTP email provider."""

import unittest.mock as mock

import aiosmtplib
import pytest

from chatauth.infrastructure.services.email.smtp_provider import (
    SMTPProvider,
    SMTPSettings,
)


@pytest.fixture
def smtp_settings() -> SMTPSettings:
    """Fixture for SMTP settings."""
    return SMTPSettings(
        host="smtp.example.com",
        port=587,
        username="test_user",
        password="test_password",
        from_email="noreply@example.com",
        from_name="Chat Test",
    )


@pytest.fixture
def smtp_provider(smtp_settings: SMTPSettings) -> SMTPProvider:
    """Fixture for SMTP provider."""
    return SMTPProvider(smtp_settings)


@pytest.fixture
def mock_smtp_class():
    """Patch aiosmtplib.SMTP so that entering it yields an async client double."""
    with mock.patch("aiosmtplib.SMTP") as smtp_class:
        smtp_class.return_value.__aenter__.return_value = mock.AsyncMock()
        yield smtp_class


@pytest.mark.asyncio
async def test_smtp_send_email_success(smtp_provider, mock_smtp_class) -> None:
    """Test successful email sending."""
    mock_smtp = mock_smtp_class.return_value.__aenter__.return_value

    success = await smtp_provider.send_email(
        to="recipient@example.com",
        subject="Test Subject",
        text_body="Text Body",
        from_email="sender@example.com",
        from_name="Sender Name",
    )

    assert success is True
    mock_smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=587,
        use_tls=False,
        start_tls=None,
        timeout=10,
    )
    mock_smtp.login.assert_awaited_once_with("test_user", "test_password")
    mock_smtp.send_message.assert_awaited_once()

    sent_message = mock_smtp.send_message.call_args[0][0]
    assert sent_message["Subject"] == "Test Subject"
    assert sent_message["To"] == "recipient@example.com"
    assert "Sender Name <sender@example.com>" in sent_message["From"]
    assert sent_message.get_content().strip() == "Text Body"


@pytest.mark.asyncio
async def test_smtp_send_email_ssl(smtp_settings, mock_smtp_class) -> None:
    """Test that implicit TLS is used instead of STARTTLS when configured."""
    ssl_settings = smtp_settings.model_copy(update={"port": 465, "use_ssl": True, "use_tls": False})
    provider = SMTPProvider(ssl_settings)

    await provider.send_email(to="recipient@example.com", subject="S", text_body="B")

    mock_smtp_class.assert_called_once_with(
        hostname="smtp.example.com",
        port=465,
        use_tls=True,
        start_tls=False,
        timeout=10,
    )


@pytest.mark.asyncio
async def test_smtp_send_email_without_credentials(smtp_settings, mock_smtp_class) -> None:
    provider = SMTPProvider(smtp_settings.model_copy(update={"username": None}))
    mock_smtp = mock_smtp_class.return_value.__aenter__.return_value

    await provider.send_email(to="recipient@example.com", subject="S", text_body="B")

    mock_smtp.login.assert_not_called()
    mock_smtp.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_smtp_send_email_failure_is_raised(smtp_provider, mock_smtp_class) -> None:
    """Test that SMTP errors propagate to the caller."""
    mock_smtp = mock_smtp_class.return_value.__aenter__.return_value
    mock_smtp.send_message.side_effect = aiosmtplib.SMTPException("Relay denied")

    with pytest.raises(aiosmtplib.SMTPException):
        await smtp_provider.send_email(to="recipient@example.com", subject="S", text_body="B")


@pytest.mark.asyncio
async def test_smtp_test_connection_success(smtp_provider, mock_smtp_class) -> None:
    ok, error = await smtp_provider.test_connection()

    assert ok is True
    assert error is None


@pytest.mark.asyncio
async def test_smtp_test_connection_failure(smtp_provider, mock_smtp_class) -> None:
    mock_smtp = mock_smtp_class.return_value.__aenter__.return_value
    mock_smtp.login.side_effect = aiosmtplib.SMTPException("Authentication failed")

    ok, error = await smtp_provider.test_connection()

    assert ok is False
    assert "Authentication failed" in error


def test_smtp_settings_from_settings(settings) -> None:
    """Test that port 465 selects implicit TLS and the sender falls back to the host."""
    app_settings = settings.model_copy(update={"smtp_host": "mail.example.com", "smtp_port": 465})

    smtp_settings = SMTPSettings.from_settings(app_settings)

    assert smtp_settings.host == "mail.example.com"
    assert smtp_settings.use_ssl is True
    assert smtp_settings.use_tls is None
    assert smtp_settings.from_email == "no-reply@mail.example.com"
    assert smtp_settings.from_name == "Secure Chat App"


@pytest.mark.asyncio
async def test_plain_relay_upgrades_only_when_offered(settings, mock_smtp_class) -> None:
    """Test that a local relay on port 25 is not forced into STARTTLS."""
    app_settings = settings.model_copy(update={"smtp_host": "localhost", "smtp_port": 25})
    provider = SMTPProvider(SMTPSettings.from_settings(app_settings))

    await provider.send_email(to="recipient@example.com", subject="S", text_body="B")

    mock_smtp_class.assert_called_once_with(
        hostname="localhost",
        port=25,
        use_tls=False,
        start_tls=None,
        timeout=10,
    )


@pytest.mark.asyncio
async def test_required_starttls(smtp_settings, mock_smtp_class) -> None:
    provider = SMTPProvider(smtp_settings.model_copy(update={"use_tls": True}))

    await provider.send_email(to="recipient@example.com", subject="S", text_body="B")

    assert mock_smtp_class.call_args.kwargs["start_tls"] is True
