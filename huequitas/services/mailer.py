from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import anyio

from huequitas.core.config import settings

logger = logging.getLogger(__name__)


class MailError(Exception):
    pass


def _reset_body(code: str) -> str:
    return (
        "Hi,\n\n"
        "We received a request to reset your Huequitas password.\n\n"
        f"Your reset code is: {code}\n\n"
        f"The code expires in {settings.reset_code_ttl_minutes} minutes.\n\n"
        "If you did not request this, you can ignore this email.\n"
    )


def _send_sync(to_email: str, subject: str, body: str) -> None:
    msg = MIMEMultipart()
    msg["From"] = settings.mail_from
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain", "utf-8"))

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=20) as server:
        server.starttls()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password)
        server.sendmail(settings.mail_from, [to_email], msg.as_string())


async def send_reset_email(to_email: str, code: str) -> None:
    if not settings.smtp_host:
        logger.warning("SMTP_HOST not set; reset email for %s not sent", to_email)
        return

    try:
        await anyio.to_thread.run_sync(_send_sync, to_email, "Reset your Huequitas password", _reset_body(code))
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Failed to send reset email")
        raise MailError(str(exc)) from exc
    logger.info("Reset email sent to %s", to_email)
