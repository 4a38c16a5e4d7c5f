"""Tests for account mail: builders, SMTP delivery and background dispatch."""

import unittest
from unittest.mock import MagicMock, patch

from fastapi import BackgroundTasks
from pydantic import SecretStr

from accounts.core.config import get_settings
from accounts.services.mailer import (
    BackgroundMailDispatcher,
    MailMessage,
    SmtpMailer,
    build_password_reset_email,
    build_verification_email,
    deliver_quietly,
)

MESSAGE = MailMessage(recipient="a@x.com", subject="Hello", html="<p>hi</p>", text="hi")


class TestBuilders(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = get_settings()

    def test_verification_email(self) -> None:
        msg = build_verification_email("a@x.com", "Ann", "http://h/verify/abc", self.settings)
        self.assertEqual(msg.recipient, "a@x.com")
        self.assertEqual(msg.subject, "Please verify your email")
        self.assertIn("Hi Ann,", msg.text)
        self.assertIn("http://h/verify/abc", msg.text)
        self.assertIn('href="http://h/verify/abc"', msg.html)
        self.assertIn("Verify your email", msg.html)

    def test_password_reset_email(self) -> None:
        msg = build_password_reset_email("a@x.com", "Ann", "http://h/reset/abc", self.settings)
        self.assertEqual(msg.subject, "Reset your password")
        self.assertIn("http://h/reset/abc", msg.text)
        self.assertIn("Reset password", msg.html)

    def test_html_is_escaped(self) -> None:
        msg = build_verification_email("a@x.com", "<b>Ann</b>", "http://h/v/1", self.settings)
        self.assertIn("&lt;b&gt;Ann&lt;/b&gt;", msg.html)
        self.assertNotIn("<b>Ann</b>", msg.html)


class TestSmtpMailer(unittest.TestCase):
    def _settings(self, **overrides):
        return get_settings().model_copy(update=overrides)

    def test_disabled_without_host(self) -> None:
        with patch("accounts.services.mailer.smtplib.SMTP") as smtp:
            SmtpMailer(self._settings(SMTP_HOST=None)).send(MESSAGE)
        smtp.assert_not_called()

    def test_starttls_login_and_send(self) -> None:
        settings = self._settings(
            SMTP_HOST="smtp.example.com",
            SMTP_PORT=2525,
            SMTP_USERNAME="mailer",
            SMTP_PASSWORD=SecretStr("pw"),
            SMTP_USE_TLS=True,
            SMTP_USE_SSL=False,
        )
        with patch("accounts.services.mailer.smtplib.SMTP") as smtp:
            client = smtp.return_value
            client.__enter__.return_value = client
            SmtpMailer(settings).send(MESSAGE)

        smtp.assert_called_once_with("smtp.example.com", 2525, timeout=settings.SMTP_TIMEOUT_SEC)
        client.starttls.assert_called_once()
        client.login.assert_called_once_with("mailer", "pw")
        sent = client.send_message.call_args.args[0]
        self.assertEqual(sent["To"], "a@x.com")
        self.assertEqual(sent["Subject"], "Hello")
        self.assertIn(settings.MAIL_FROM, sent["From"])

    def test_ssl_skips_starttls(self) -> None:
        settings = self._settings(SMTP_HOST="smtp.example.com", SMTP_PORT=465, SMTP_USE_SSL=True)
        with patch("accounts.services.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            client = smtp_ssl.return_value
            client.__enter__.return_value = client
            SmtpMailer(settings).send(MESSAGE)
        client.starttls.assert_not_called()
        client.login.assert_not_called()
        client.send_message.assert_called_once()

    def test_transport_error_propagates(self) -> None:
        settings = self._settings(SMTP_HOST="smtp.example.com")
        with patch("accounts.services.mailer.smtplib.SMTP", side_effect=OSError("refused")):
            with self.assertRaises(OSError):
                SmtpMailer(settings).send(MESSAGE)


class TestDispatch(unittest.TestCase):
    def test_deliver_quietly_logs_failures(self) -> None:
        mailer = MagicMock()
        mailer.send.side_effect = OSError("refused")
        with self.assertLogs("accounts.services.mailer", level="ERROR") as logs:
            deliver_quietly(mailer, MESSAGE)
        self.assertIn("Mail delivery failed", logs.output[0])

    def test_background_dispatcher_defers_delivery(self) -> None:
        tasks = BackgroundTasks()
        mailer = MagicMock()
        BackgroundMailDispatcher(tasks, mailer).dispatch(MESSAGE)
        mailer.send.assert_not_called()
        self.assertEqual(len(tasks.tasks), 1)
        task = tasks.tasks[0]
        self.assertIs(task.func, deliver_quietly)
        self.assertEqual(task.args, (mailer, MESSAGE))
