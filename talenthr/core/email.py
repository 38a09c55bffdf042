"""Outbound email over SMTP (OTP codes and invitation links)."""

import asyncio
import logging
import re
import smtplib
import ssl
from concurrent.futures import ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from functools import partial
from html import escape as html_escape
from typing import Optional

from talenthr.core.config import settings

logger = logging.getLogger(__name__)

# smtplib blocks, keep it off the event loop
_smtp_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="smtp")

OTP_PURPOSE_TEXT = {
    "company_admin_signup": "complete your company registration",
    "invitation_signup": "complete your account setup",
    "login": "sign in to your account",
    "password_reset": "reset your password",
}


def is_configured() -> bool:
    return bool(settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD)


def _sender() -> str:
    return settings.SMTP_FROM or settings.SMTP_USER or "no-reply@talenthr.local"


def _create_message(to_email: str, subject: str, html_body: str, plain_body: Optional[str] = None) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    sender = _sender()
    msg["Subject"] = subject
    msg["From"] = f"TalentHR <{sender}>"
    msg["To"] = to_email
    msg["Message-ID"] = make_msgid(domain=sender.split("@")[-1])
    msg["Date"] = formatdate(localtime=True)

    if not plain_body:
        plain_body = re.sub(r"<[^>]+>", "", html_body)
        plain_body = re.sub(r"\s+", " ", plain_body).strip()
    msg.attach(MIMEText(plain_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    return msg


def _send_sync(to_email: str, msg: MIMEMultipart) -> None:
    context = ssl.create_default_context()
    starttls = settings.SMTP_USE_TLS and settings.SMTP_PORT != 465
    if starttls:
        smtp = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30)
    else:
        smtp = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30, context=context)
    try:
        if starttls:
            smtp.ehlo()
            smtp.starttls(context=context)
            smtp.ehlo()
        smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        smtp.sendmail(_sender(), to_email, msg.as_string())
    finally:
        try:
            smtp.quit()
        except (smtplib.SMTPException, OSError):
            # handshake failed mid-way, drop the socket
            smtp.close()


async def send_email(to_email: str, subject: str, html_body: str, plain_body: Optional[str] = None) -> bool:
    """
    Send an email via SMTP without blocking the event loop.

    Returns True when the relay accepted the message. Failures are logged,
    never raised; the caller's operation stands either way.
    """
    if not is_configured():
        logger.warning("SMTP not configured, email to %s not sent (subject: %s)", to_email, subject)
        return False

    msg = _create_message(to_email, subject, html_body, plain_body)
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(_smtp_executor, partial(_send_sync, to_email, msg))
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP error sending email to %s: %s", to_email, e)
        return False
    logger.info("Email sent to %s", to_email)
    return True


async def send_otp_email(to_email: str, code: str, purpose: str) -> bool:
    action = OTP_PURPOSE_TEXT.get(purpose, "verify your email")
    subject = f"Your TalentHR Verification Code - {code}"
    html_body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #667eea;">TalentHR</h2>
        <p>Use the code below to {html_escape(action)}:</p>
        <p style="font-size: 32px; font-weight: bold; letter-spacing: 8px;">{html_escape(code)}</p>
        <p>This code expires in 10 minutes. If you did not request it, you can ignore this email.</p>
    </div>
    """
    plain_body = f"Your TalentHR verification code is {code}. Use it to {action}. It expires in 10 minutes."
    return await send_email(to_email, subject, html_body, plain_body)


async def send_invitation_email(
    to_email: str, company_name: str, inviter_name: str, role: str, invite_url: str
) -> bool:
    role_label = role.replace("_", " ").title()
    subject = f"You've been invited to join {company_name} on TalentHR"
    html_body = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #667eea;">TalentHR</h2>
        <p>{html_escape(inviter_name)} has invited you to join <strong>{html_escape(company_name)}</strong>
        as <strong>{html_escape(role_label)}</strong>.</p>
        <p><a href="{html_escape(invite_url)}" style="display: inline-block; background-color: #667eea; color: white;
        padding: 12px 24px; text-decoration: none; border-radius: 6px;">Accept invitation</a></p>
        <p>This invitation expires in 7 days.</p>
    </div>
    """
    plain_body = (
        f"{inviter_name} has invited you to join {company_name} as {role_label}.\n"
        f"Accept the invitation: {invite_url}\nThis invitation expires in 7 days."
    )
    return await send_email(to_email, subject, html_body, plain_body)
