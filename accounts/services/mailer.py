"""
Outgoing account mail: message builders, SMTP delivery, background dispatch.

Mail is a best-effort side channel. Dispatch never blocks or fails the
request that triggered it: messages are delivered from a background task and
delivery errors end up in the log only. There are no retries; users ask for
a new link instead.
"""

from __future__ import annotations

import html
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fastapi import BackgroundTasks

    from accounts.core.config import Settings

logger = logging.getLogger(__name__)

ACTION_COLOR = "#22BC66"
OUTRO = "Need help, or have questions? Just reply to this email, we'd love to help."


@dataclass(frozen=True)
class MailMessage:
    recipient: str
    subject: str
    html: str
    text: str


def _render(
    *,
    name: str,
    intro: str,
    instructions: str,
    button_text: str,
    link: str,
    product_name: str,
    product_link: str,
) -> tuple[str, str]:
    """Return (html, text) bodies for a single-action account email."""
    e = html.escape
    html_body = (
        "<!DOCTYPE html>\n"
        '<html><body style="font-family: Helvetica, Arial, sans-serif; color: #333;">\n'
        f"<p>Hi {e(name)},</p>\n"
        f"<p>{e(intro)}</p>\n"
        f"<p>{e(instructions)}</p>\n"
        f'<p><a href="{e(link, quote=True)}" style="background: {ACTION_COLOR}; color: #fff; '
        f'padding: 10px 18px; border-radius: 3px; text-decoration: none;">{e(button_text)}</a></p>\n'
        f'<p style="font-size: 12px;">If the button does not work, open this link: '
        f'<a href="{e(link, quote=True)}">{e(link)}</a></p>\n'
        f"<p>{e(OUTRO)}</p>\n"
        f'<p>Yours truly,<br><a href="{e(product_link, quote=True)}">{e(product_name)}</a></p>\n'
        "</body></html>\n"
    )
    text_body = (
        f"Hi {name},\n\n"
        f"{intro}\n\n"
        f"{instructions}\n"
        f"{link}\n\n"
        f"{OUTRO}\n\n"
        f"Yours truly,\n{product_name} ({product_link})\n"
    )
    return html_body, text_body


def build_verification_email(
    recipient: str, name: str, verification_url: str, settings: Settings
) -> MailMessage:
    html_body, text_body = _render(
        name=name,
        intro="Welcome to our app! We're very excited to have you on board.",
        instructions="To verify your email please click on the following button:",
        button_text="Verify your email",
        link=verification_url,
        product_name=settings.MAIL_PRODUCT_NAME,
        product_link=settings.MAIL_PRODUCT_LINK,
    )
    return MailMessage(
        recipient=recipient,
        subject="Please verify your email",
        html=html_body,
        text=text_body,
    )


def build_password_reset_email(
    recipient: str, name: str, reset_url: str, settings: Settings
) -> MailMessage:
    html_body, text_body = _render(
        name=name,
        intro="We got a request to reset the password of your account.",
        instructions="To reset your password click on the following button or link:",
        button_text="Reset password",
        link=reset_url,
        product_name=settings.MAIL_PRODUCT_NAME,
        product_link=settings.MAIL_PRODUCT_LINK,
    )
    return MailMessage(
        recipient=recipient,
        subject="Reset your password",
        html=html_body,
        text=text_body,
    )


class Mailer(Protocol):
    def send(self, message: MailMessage) -> None: ...


class SmtpMailer:
    """Deliver MailMessage over SMTP. Raises on transport errors."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = f'"Support" <{self.settings.MAIL_FROM}>'
        msg["To"] = message.recipient
        msg.set_content(message.text)
        msg.add_alternative(message.html, subtype="html")
        return msg

    def send(self, message: MailMessage) -> None:
        s = self.settings
        if not s.SMTP_HOST:
            logger.info(
                "SMTP_HOST not set; mail delivery disabled (to=%s subject=%r)",
                message.recipient,
                message.subject,
            )
            return
        msg = self._build(message)
        password = s.SMTP_PASSWORD.get_secret_value() if s.SMTP_PASSWORD else ""
        if s.SMTP_USE_SSL:
            client: smtplib.SMTP = smtplib.SMTP_SSL(
                s.SMTP_HOST,
                s.SMTP_PORT,
                timeout=s.SMTP_TIMEOUT_SEC,
                context=ssl.create_default_context(),
            )
        else:
            client = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SEC)
        with client:
            if s.SMTP_USE_TLS and not s.SMTP_USE_SSL:
                client.starttls(context=ssl.create_default_context())
            if s.SMTP_USERNAME:
                client.login(s.SMTP_USERNAME, password)
            client.send_message(msg)
        logger.info("Mail sent (to=%s subject=%r)", message.recipient, message.subject)


def deliver_quietly(mailer: Mailer, message: MailMessage) -> None:
    """Send and log any failure; the caller never sees mail errors."""
    try:
        mailer.send(message)
    except Exception:
        logger.exception(
            "Mail delivery failed (to=%s subject=%r)", message.recipient, message.subject
        )


class MailDispatcher(Protocol):
    """Hands a message off for delivery without waiting for the result."""

    def dispatch(self, message: MailMessage) -> None: ...


class BackgroundMailDispatcher:
    """Schedule delivery on FastAPI BackgroundTasks (runs after the response is sent)."""

    def __init__(self, background_tasks: BackgroundTasks, mailer: Mailer) -> None:
        self.background_tasks = background_tasks
        self.mailer = mailer

    def dispatch(self, message: MailMessage) -> None:
        self.background_tasks.add_task(deliver_quietly, self.mailer, message)
