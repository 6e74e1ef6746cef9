"""
Tests for outgoing email delivery.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from core.config import settings
from utils.email import render_otp_email, send_email, send_otp_email

pytestmark = pytest.mark.unit


def _mock_client_session(status: int = 200, body: str = '{"id": "email_123"}'):
    """Patchable stand-in for aiohttp.ClientSession answering every POST with ``status``."""
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=body)

    session = MagicMock()
    session.post.return_value.__aenter__.return_value = resp

    session_cls = MagicMock()
    session_cls.return_value.__aenter__.return_value = session
    return session_cls, session


def test_render_otp_email_contains_code_and_expiry():
    text, html = render_otp_email("482913", 5)

    assert "482913" in text
    assert "482913" in html
    assert "5 minutes" in text
    assert "Valid for 5 minutes" in html


async def test_send_via_resend():
    session_cls, session = _mock_client_session()

    with patch.object(settings, "RESEND_API_KEY", "re_test"), \
         patch("utils.email.aiohttp.ClientSession", new=session_cls):
        assert await send_otp_email("admin@x.com", "482913", 5) is True

    session.post.assert_called_once()
    url = session.post.call_args.args[0]
    kwargs = session.post.call_args.kwargs
    assert url == "https://api.resend.com/emails"
    assert kwargs["headers"]["Authorization"] == "Bearer re_test"
    assert kwargs["json"]["to"] == ["admin@x.com"]
    assert kwargs["json"]["subject"] == "Your Password Reset OTP Code"
    assert "482913" in kwargs["json"]["html"]


async def test_resend_error_status_returns_false():
    session_cls, _ = _mock_client_session(status=422, body='{"message": "invalid from address"}')

    with patch.object(settings, "RESEND_API_KEY", "re_test"), \
         patch("utils.email.aiohttp.ClientSession", new=session_cls):
        assert await send_email("Subject", "admin@x.com", "<p>hi</p>") is False


async def test_resend_network_error_returns_false():
    with patch.object(settings, "RESEND_API_KEY", "re_test"), \
         patch("utils.email._send_resend", new=AsyncMock(side_effect=aiohttp.ClientConnectionError("unreachable"))):
        assert await send_email("Subject", "admin@x.com", "<p>hi</p>") is False


async def test_no_provider_configured():
    with patch.object(settings, "RESEND_API_KEY", ""), patch.object(settings, "SMTP_HOST", ""):
        assert await send_email("Subject", "admin@x.com", "<p>hi</p>") is False


async def test_smtp_fallback():
    with patch.object(settings, "RESEND_API_KEY", ""), \
         patch.object(settings, "SMTP_HOST", "smtp.example.com"), \
         patch.object(settings, "SMTP_FROM_EMAIL", "noreply@example.com"), \
         patch("utils.email._send_smtp") as smtp:
        assert await send_otp_email("admin@x.com", "482913") is True

    smtp.assert_called_once()
    msg = smtp.call_args.args[0]
    assert msg["To"] == "admin@x.com"
    assert msg["Subject"] == "Your Password Reset OTP Code"
