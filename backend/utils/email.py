import asyncio
import smtplib
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Optional

import aiohttp

from core.config import settings
import logging

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The email API answered with an error status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"{status} {body}")
        self.status = status
        self.body = body


def _build_message(subject: str, to_email: str, html_body: str, text_body: Optional[str] = None) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>" if settings.SMTP_FROM_NAME else settings.SMTP_FROM_EMAIL
    msg["To"] = to_email
    if text_body:
        msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    return msg


def _send_smtp(msg: EmailMessage) -> None:
    timeout = settings.SMTP_TIMEOUT or 15
    if settings.SMTP_USE_SSL:
        with smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout) as server:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
    else:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=timeout) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)


async def _send_resend(subject: str, to_email: str, html_body: str, text_body: Optional[str] = None) -> None:
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html_body,
    }
    if text_body:
        payload["text"] = text_body
    url = f"{settings.RESEND_API_BASE.rstrip('/')}/emails"
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}
    timeout = aiohttp.ClientTimeout(total=settings.EMAIL_TIMEOUT)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        async with session.post(url, json=payload, headers=headers) as resp:
            if resp.status >= 400:
                raise EmailDeliveryError(resp.status, await resp.text())


async def send_email(subject: str, to_email: str, html_body: str, text_body: Optional[str] = None) -> bool:
    """Deliver one message through Resend, or SMTP when no API key is set.

    Returns False instead of raising; callers decide how to surface it.
    """
    try:
        if settings.RESEND_API_KEY:
            await _send_resend(subject, to_email, html_body, text_body)
        elif settings.SMTP_HOST and settings.SMTP_FROM_EMAIL:
            msg = _build_message(subject, to_email, html_body, text_body)
            await asyncio.to_thread(_send_smtp, msg)
        else:
            logger.warning("No email provider configured; skipping email send")
            return False
        logger.info(f"Sent email to {to_email} with subject '{subject}'")
        return True
    except EmailDeliveryError as exc:
        logger.error(f"Resend API error for {to_email}: {exc.status} {exc.body}")
        return False
    except Exception as exc:
        logger.error(f"Failed to send email to {to_email}: {exc}")
        return False


def render_otp_email(otp_code: str, expires_minutes: int) -> tuple[str, str]:
    brand = settings.EMAIL_BRAND_NAME
    year = datetime.now(timezone.utc).year
    text = (
        f"Your {brand} admin password reset code is {otp_code}.\n"
        f"It expires in {expires_minutes} minutes. Do not share this code with anyone.\n"
        f"If you didn't request this, ignore this email."
    )
    html = f"""
    <div style='font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;'>
      <div style='background-color: #8b7355; color: white; padding: 30px; text-align: center; border-radius: 8px 8px 0 0;'>
        <h1 style='margin: 0; font-size: 28px;'>Password Reset OTP</h1>
        <p style='margin: 10px 0 0 0;'>{brand} Admin</p>
      </div>
      <div style='background-color: #f9f9f9; padding: 40px; border: 1px solid #e0e0e0;'>
        <p>You requested to reset your password. Use the OTP code below to complete the process:</p>
        <div style='background-color: white; padding: 30px; text-align: center; margin: 30px 0; border: 2px dashed #8b7355;'>
          <div style='font-size: 36px; font-weight: bold; color: #8b7355; letter-spacing: 8px; font-family: monospace;'>{otp_code}</div>
          <p style='margin: 15px 0 0 0; font-size: 12px; color: #999;'>Valid for {expires_minutes} minutes</p>
        </div>
        <p style='font-size: 14px;'>Do not share this code with anyone. If you didn't request this, ignore this email.</p>
      </div>
      <p style='text-align: center; color: #666; font-size: 12px;'>&copy; {year} {brand}. All rights reserved.</p>
    </div>
    """
    return text, html


async def send_otp_email(to_email: str, otp_code: str, expires_minutes: int = None) -> bool:
    expires_minutes = expires_minutes or settings.OTP_EXPIRE_MINUTES
    subject = "Your Password Reset OTP Code"
    text, html = render_otp_email(otp_code, expires_minutes)
    return await send_email(subject, to_email, html, text)
