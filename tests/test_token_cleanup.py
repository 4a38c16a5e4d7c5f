"""Tests for the expired one-time token sweep and its CLI entrypoint."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from accounts import cleanup
from accounts.services.credential_store import (
    OneTimeTokenKind,
    SqlAlchemyCredentialStore,
    token_pair,
)
from accounts.services.token_cleanup import clear_expired_tokens
from tests.helpers import add_user, make_session_factory

NOW = datetime(2026, 5, 1, 8, 0, tzinfo=UTC)


class TestClearExpiredTokens(unittest.TestCase):
    """Expired pairs are cleared as a unit; live pairs are left alone."""

    def setUp(self) -> None:
        self.session = make_session_factory()()
        self.store = SqlAlchemyCredentialStore(self.session)

    def tearDown(self) -> None:
        self.session.close()

    def _set(self, user, kind: OneTimeTokenKind, digest: str, minutes: int) -> None:
        self.store.update(user.id, **token_pair(kind, digest, NOW + timedelta(minutes=minutes)))

    def test_nothing_to_clear(self) -> None:
        add_user(self.session)
        self.assertEqual(clear_expired_tokens(self.session, now=NOW), 0)

    def test_clears_expired_pairs_only(self) -> None:
        stale = add_user(self.session)
        live = add_user(self.session, username="bob", email="b@x.com")
        self._set(stale, OneTimeTokenKind.EMAIL_VERIFICATION, "old-verify", -5)
        self._set(stale, OneTimeTokenKind.PASSWORD_RESET, "old-reset", -1)
        self._set(live, OneTimeTokenKind.PASSWORD_RESET, "fresh-reset", 10)

        self.assertEqual(clear_expired_tokens(self.session, now=NOW), 2)

        stale = self.store.get_by_id(stale.id)
        self.assertIsNone(stale.email_verification_token)
        self.assertIsNone(stale.email_verification_expiry)
        self.assertIsNone(stale.reset_password_token)
        self.assertIsNone(stale.reset_password_expiry)
        live = self.store.get_by_id(live.id)
        self.assertEqual(live.reset_password_token, "fresh-reset")
        self.assertIsNotNone(live.reset_password_expiry)

    def test_sweep_is_idempotent(self) -> None:
        user = add_user(self.session)
        self._set(user, OneTimeTokenKind.PASSWORD_RESET, "old-reset", -1)
        self.assertEqual(clear_expired_tokens(self.session, now=NOW), 1)
        self.assertEqual(clear_expired_tokens(self.session, now=NOW), 0)

    def test_commits(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 0
        self.assertEqual(clear_expired_tokens(session, now=NOW), 0)
        session.commit.assert_called_once()


class TestCleanupCli(unittest.TestCase):
    def test_success_returns_zero_and_closes_session(self) -> None:
        session = MagicMock()
        session.__enter__.return_value = session
        with patch("accounts.cleanup.SessionLocal", return_value=session), patch(
            "accounts.cleanup.clear_expired_tokens", return_value=3
        ) as sweep:
            self.assertEqual(cleanup.main(), 0)
        sweep.assert_called_once_with(session)
        session.__exit__.assert_called_once()

    def test_failure_returns_one(self) -> None:
        session = MagicMock()
        session.__enter__.return_value = session
        with patch("accounts.cleanup.SessionLocal", return_value=session), patch(
            "accounts.cleanup.clear_expired_tokens", side_effect=RuntimeError("db down")
        ), self.assertLogs("accounts.cleanup", level="ERROR"):
            self.assertEqual(cleanup.main(), 1)
        session.__exit__.assert_called_once()
