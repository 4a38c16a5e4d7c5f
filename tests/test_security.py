"""Password hashing helpers."""

import unittest
from unittest.mock import patch

from accounts.core import security


class TestPasswords(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = security.hash_password("secret1")
        self.assertTrue(security.verify_password("secret1", hashed))
        self.assertFalse(security.verify_password("secret2", hashed))

    def test_malformed_hash_does_not_verify(self) -> None:
        self.assertFalse(security.verify_password("secret1", "not-a-bcrypt-hash"))

    def test_dummy_hash_is_ready_before_first_use(self) -> None:
        self.assertTrue(security.DUMMY_PASSWORD_HASH.startswith("$2"))
        with patch("accounts.core.security.hash_password") as hash_password, patch(
            "accounts.core.security.verify_password", return_value=False
        ) as verify:
            security.burn_password_check("whatever")
        hash_password.assert_not_called()
        verify.assert_called_once_with("whatever", security.DUMMY_PASSWORD_HASH)
