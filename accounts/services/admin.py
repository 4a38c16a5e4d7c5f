"""Admin operations: list accounts and assign roles."""

import logging

from accounts.core.errors import NotFoundError
from accounts.models import Role, User
from accounts.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def list_users(store: CredentialStore) -> list[User]:
    return store.list_users()


def change_role(store: CredentialStore, user_id: str, role: Role) -> User:
    """Set a user's role. Takes effect in access tokens issued from now on."""
    user = store.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found!")
    updated = store.update(user.id, role=Role(role).value)
    if updated is None:
        raise NotFoundError("User not found!")
    logger.info("Role changed: user_id=%s role=%s", user.id, updated.role)
    return updated
