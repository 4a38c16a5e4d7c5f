"""Tests for SessionManager: login, logout, refresh and the single-session rule."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import jwt

from accounts.core.config import get_settings
from accounts.core.errors import ForbiddenError, InvalidCredentialsError, UnauthenticatedError
from accounts.core.tokens import RefreshClaims, issue_refresh_token, verify_access_token
from accounts.models import Role
from accounts.services.credential_store import SqlAlchemyCredentialStore
from accounts.services.sessions import LOGIN_FAILED_MESSAGE, SessionManager
from tests.helpers import add_user, make_session_factory


class SessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session_factory()()
        self.store = SqlAlchemyCredentialStore(self.session)
        self.settings = get_settings()
        self.sessions = SessionManager(self.store, self.settings)
        self.user = add_user(self.session, role=Role.ADMIN)

    def tearDown(self) -> None:
        self.session.close()


class TestLogin(SessionTestCase):
    def test_login_issues_tokens_and_stores_refresh_token(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        claims = verify_access_token(result.access_token, self.settings)
        self.assertEqual(claims.user_id, self.user.id)
        self.assertEqual(claims.username, "annlee")
        self.assertEqual(claims.role, "admin")
        self.assertEqual(self.store.get_by_id(self.user.id).refresh_token, result.refresh_token)
        self.assertEqual(result.user.id, self.user.id)

    def test_login_normalizes_username(self) -> None:
        result = self.sessions.login("  AnnLee ", "secret1")
        self.assertEqual(result.user.username, "annlee")

    def test_unknown_user_and_bad_password_fail_identically(self) -> None:
        with self.assertRaises(InvalidCredentialsError) as unknown:
            self.sessions.login("nobody", "secret1")
        with self.assertRaises(InvalidCredentialsError) as wrong:
            self.sessions.login("annlee", "wrong-password")
        self.assertEqual(unknown.exception.message, LOGIN_FAILED_MESSAGE)
        self.assertEqual(wrong.exception.message, unknown.exception.message)
        self.assertEqual(wrong.exception.status_code, unknown.exception.status_code)

    def test_failed_login_leaves_session_untouched(self) -> None:
        first = self.sessions.login("annlee", "secret1")
        with self.assertRaises(InvalidCredentialsError):
            self.sessions.login("annlee", "wrong-password")
        self.assertEqual(self.store.get_by_id(self.user.id).refresh_token, first.refresh_token)


class TestRefresh(SessionTestCase):
    def test_refresh_returns_access_token_for_same_user(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        access = self.sessions.refresh(result.refresh_token)
        claims = verify_access_token(access, self.settings)
        self.assertEqual(
            (claims.user_id, claims.username, claims.role),
            (self.user.id, "annlee", "admin"),
        )

    def test_refresh_does_not_rotate_refresh_token(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        self.sessions.refresh(result.refresh_token)
        self.sessions.refresh(result.refresh_token)
        self.assertEqual(self.store.get_by_id(self.user.id).refresh_token, result.refresh_token)

    def test_missing_token_is_unauthenticated(self) -> None:
        with self.assertRaises(UnauthenticatedError):
            self.sessions.refresh(None)
        with self.assertRaises(UnauthenticatedError):
            self.sessions.refresh("")

    def test_superseded_token_is_forbidden(self) -> None:
        first = self.sessions.login("annlee", "secret1")
        self.sessions.login("annlee", "secret1")
        with self.assertRaises(ForbiddenError):
            self.sessions.refresh(first.refresh_token)

    def test_unknown_token_is_forbidden(self) -> None:
        with self.assertRaises(ForbiddenError):
            self.sessions.refresh("not-a-stored-token")

    def test_expired_stored_token_is_forbidden(self) -> None:
        expired = jwt.encode(
            {
                "sub": self.user.id,
                "username": "annlee",
                "exp": datetime.now(UTC) - timedelta(minutes=1),
            },
            self.settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm=self.settings.JWT_ALGORITHM,
        )
        self.store.update(self.user.id, refresh_token=expired)
        with self.assertRaises(ForbiddenError):
            self.sessions.refresh(expired)

    def test_claims_mismatch_is_forbidden(self) -> None:
        other = add_user(self.session, username="bob", email="b@x.com")
        foreign = issue_refresh_token(RefreshClaims(other.id, "bob"), self.settings)
        # Stored on the wrong user: the decoded identity must match the row.
        self.store.update(self.user.id, refresh_token=foreign)
        with self.assertRaises(ForbiddenError):
            self.sessions.refresh(foreign)

    def test_access_token_from_refresh_reflects_current_role(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        self.store.update(self.user.id, role=Role.BASIC.value)
        claims = verify_access_token(self.sessions.refresh(result.refresh_token), self.settings)
        self.assertEqual(claims.role, "basic")


class TestLogout(SessionTestCase):
    def test_logout_without_token_is_noop(self) -> None:
        store = MagicMock()
        result = SessionManager(store, self.settings).logout(None)
        self.assertFalse(result.clear_cookie)
        store.get_by_refresh_token.assert_not_called()

    def test_logout_clears_stored_token(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        outcome = self.sessions.logout(result.refresh_token)
        self.assertTrue(outcome.clear_cookie)
        self.assertIsNone(self.store.get_by_id(self.user.id).refresh_token)
        with self.assertRaises(ForbiddenError):
            self.sessions.refresh(result.refresh_token)

    def test_logout_with_unknown_token_still_clears_cookie(self) -> None:
        current = self.sessions.login("annlee", "secret1")
        outcome = self.sessions.logout("stale-token")
        self.assertTrue(outcome.clear_cookie)
        self.assertEqual(self.store.get_by_id(self.user.id).refresh_token, current.refresh_token)

    def test_logout_is_idempotent(self) -> None:
        result = self.sessions.login("annlee", "secret1")
        self.sessions.logout(result.refresh_token)
        self.assertTrue(self.sessions.logout(result.refresh_token).clear_cookie)


class RefreshLookupHookStore(SqlAlchemyCredentialStore):
    """Runs a callback once, right after a refresh token lookup returns."""

    def __init__(self, session, after_lookup) -> None:
        super().__init__(session)
        self.after_lookup = after_lookup

    def get_by_refresh_token(self, refresh_token):
        user = super().get_by_refresh_token(refresh_token)
        hook, self.after_lookup = self.after_lookup, None
        if hook is not None:
            hook()
        return user


class TestConcurrentLogout(unittest.TestCase):
    def setUp(self) -> None:
        factory = make_session_factory()
        self.first = factory()
        self.second = factory()
        self.addCleanup(self.first.close)
        self.addCleanup(self.second.close)
        self.settings = get_settings()
        add_user(self.first)

    def test_stale_logout_keeps_newer_session(self) -> None:
        other = SessionManager(SqlAlchemyCredentialStore(self.second), self.settings)
        old = other.login("annlee", "secret1")
        newer = {}

        def login_elsewhere() -> None:
            newer["result"] = other.login("annlee", "secret1")

        racing = SessionManager(RefreshLookupHookStore(self.first, login_elsewhere), self.settings)
        self.assertTrue(racing.logout(old.refresh_token).clear_cookie)

        fresh = newer["result"]
        store = SqlAlchemyCredentialStore(self.second)
        self.assertEqual(store.get_by_refresh_token(fresh.refresh_token).username, "annlee")
        claims = verify_access_token(other.refresh(fresh.refresh_token), self.settings)
        self.assertEqual(claims.username, "annlee")
        with self.assertRaises(ForbiddenError):
            other.refresh(old.refresh_token)
