"""Outbound account email over SMTP."""

from __future__ import annotations

import hashlib
from email.message import EmailMessage

import aiosmtplib

from mindo.obs import logging as obs_logging
from mindo.settings import settings

logger = obs_logging.get_logger("mindo.mailer")

_RESET_TEXT = (
    "Hello,\n\n"
    "A password reset was requested for your Mindo account. Open the link below "
    "to choose a new password:\n\n{link}\n\n"
    "The link expires in {ttl} minutes. If you did not ask for this, ignore this email.\n"
)

_RESET_HTML = (
    "<p>Hello,</p>"
    "<p>A password reset was requested for your Mindo account.</p>"
    '<p><a href="{link}">Choose a new password</a></p>'
    "<p>The link expires in {ttl} minutes. If you did not ask for this, ignore this email.</p>"
)


def recipient_ref(email: str) -> str:
    """Stable short digest so logs can correlate deliveries without the address."""
    return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


def build_message(to_email: str, subject: str, text: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")
    return msg


async def deliver(msg: EmailMessage) -> bool:
    """Hand ``msg`` to the SMTP relay; False when unconfigured or the relay refuses it."""
    ref = recipient_ref(str(msg["To"]))
    if not settings.smtp_host:
        logger.warning("smtp_not_configured", extra={"recipient": ref})
        return False
    port = int(settings.smtp_port)
    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            start_tls=settings.smtp_tls and port != 465,
            use_tls=settings.smtp_tls and port == 465,
        )
    except (aiosmtplib.SMTPException, OSError) as exc:
        logger.error("email_delivery_failed", extra={"recipient": ref, "error": str(exc)})
        return False
    logger.info("email_sent", extra={"recipient": ref, "subject": msg["Subject"]})
    return True


async def send_password_reset(email: str, link: str) -> bool:
    ttl = settings.pwreset_ttl_minutes
    msg = build_message(
        email,
        "Reset your Mindo password",
        _RESET_TEXT.format(link=link, ttl=ttl),
        _RESET_HTML.format(link=link, ttl=ttl),
    )
    return await deliver(msg)
