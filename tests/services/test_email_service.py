"""Tests for EmailService with smtplib patched out."""

import smtplib
from email import message_from_string
from unittest.mock import MagicMock, patch

import pytest

from src.exceptions import BadRequestError, EmailDeliveryError
from src.services.email_service import EmailService


@pytest.fixture
def smtp_server():
    """Mock SMTP connection usable as a context manager."""
    server = MagicMock()
    server.__enter__.return_value = server
    return server


@pytest.fixture
def email_service():
    return EmailService(
        host="smtp.test",
        port=587,
        username="relay@test",
        password="app-password",
        use_ssl=False,
        from_email="noreply@test",
        timeout=5,
    )


@pytest.mark.asyncio
async def test_send_uses_starttls_and_login(email_service, smtp_server):
    with patch("src.services.email_service.smtplib.SMTP", return_value=smtp_server) as smtp:
        sent = await email_service.send("a@x.com", "Subject", "<p>Hello</p>")

    assert sent is True
    smtp.assert_called_once_with("smtp.test", 587, timeout=5)
    smtp_server.starttls.assert_called_once()
    smtp_server.login.assert_called_once_with("relay@test", "app-password")

    from_addr, to_addrs, raw = smtp_server.sendmail.call_args.args
    assert from_addr == "noreply@test"
    assert to_addrs == ["a@x.com"]
    message = message_from_string(raw)
    assert message["Subject"] == "Subject"
    assert message["To"] == "a@x.com"
    assert message.get_content_type() == "multipart/alternative"
    assert message.get_payload()[0].get_content_type() == "text/html"


@pytest.mark.asyncio
async def test_send_uses_implicit_tls_when_secure(smtp_server):
    service = EmailService(
        host="smtp.test", port=465, username="u", password="p", use_ssl=True
    )

    with patch(
        "src.services.email_service.smtplib.SMTP_SSL", return_value=smtp_server
    ) as smtp_ssl:
        assert await service.send("a@x.com", "S", "<p>b</p>") is True

    assert smtp_ssl.call_args.args == ("smtp.test", 465)
    smtp_server.starttls.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [
        smtplib.SMTPAuthenticationError(535, b"bad credentials"),
        smtplib.SMTPRecipientsRefused({"a@x.com": (550, b"no such user")}),
        smtplib.SMTPDataError(452, b"quota exceeded"),
        ConnectionRefusedError("refused"),
    ],
)
@pytest.mark.asyncio
async def test_send_returns_false_on_provider_errors(email_service, smtp_server, error):
    """Provider failures are reported as False, never raised."""
    smtp_server.sendmail.side_effect = error

    with patch("src.services.email_service.smtplib.SMTP", return_value=smtp_server):
        assert await email_service.send("a@x.com", "S", "<p>b</p>") is False


@pytest.mark.asyncio
async def test_send_returns_false_when_connect_fails(email_service):
    with patch(
        "src.services.email_service.smtplib.SMTP", side_effect=TimeoutError("timed out")
    ):
        assert await email_service.send("a@x.com", "S", "<p>b</p>") is False


@pytest.mark.asyncio
async def test_send_without_host_fails(smtp_server):
    service = EmailService(host="x", username="u", password="p")
    service.host = ""

    with patch("src.services.email_service.smtplib.SMTP") as smtp:
        assert await service.send("a@x.com", "S", "<p>b</p>") is False
    smtp.assert_not_called()


@pytest.mark.asyncio
async def test_login_failure_closes_connection(email_service, smtp_server):
    smtp_server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"nope")

    with patch("src.services.email_service.smtplib.SMTP", return_value=smtp_server):
        assert await email_service.send("a@x.com", "S", "<p>b</p>") is False

    smtp_server.close.assert_called_once()


@pytest.mark.asyncio
async def test_send_test_mails_smtp_user(email_service, smtp_server):
    with patch("src.services.email_service.smtplib.SMTP", return_value=smtp_server):
        sent_to = await email_service.send_test()

    assert sent_to == "relay@test"
    smtp_server.noop.assert_called_once()
    _, to_addrs, raw = smtp_server.sendmail.call_args.args
    assert to_addrs == ["relay@test"]
    text_part = message_from_string(raw).get_payload()[0]
    assert text_part.get_content_type() == "text/plain"
    assert "test email to verify SMTP configuration" in text_part.get_payload(decode=True).decode()


@pytest.mark.asyncio
async def test_send_test_requires_credentials():
    service = EmailService(host="smtp.test", username="u", password="p")
    service.password = None

    with pytest.raises(BadRequestError) as exc_info:
        await service.send_test()

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"smtp_user_exists": True, "smtp_pass_exists": False}


@pytest.mark.asyncio
async def test_send_test_raises_with_smtp_reason(email_service, smtp_server):
    smtp_server.login.side_effect = smtplib.SMTPAuthenticationError(
        535, b"Username and Password not accepted"
    )

    with patch("src.services.email_service.smtplib.SMTP", return_value=smtp_server):
        with pytest.raises(EmailDeliveryError) as exc_info:
            await email_service.send_test()

    assert exc_info.value.details["smtp_code"] == 535
    assert "not accepted" in exc_info.value.message


@pytest.mark.asyncio
async def test_send_test_wraps_connection_errors(email_service):
    with patch(
        "src.services.email_service.smtplib.SMTP", side_effect=OSError("unreachable")
    ):
        with pytest.raises(EmailDeliveryError):
            await email_service.send_test()
