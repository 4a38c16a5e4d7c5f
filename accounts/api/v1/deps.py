"""
Request dependencies: service wiring and bearer authentication.

authenticate() resolves the caller to an explicit Anonymous or
Authenticated(principal) value. Handlers that need a user depend on
require_principal() or require_admin() and receive the Principal as an
argument; nothing is stashed on the request.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from accounts.core.config import Settings, get_settings
from accounts.core.database import get_db
from accounts.core.errors import ForbiddenError, InvalidTokenError, UnauthenticatedError
from accounts.core.tokens import verify_access_token
from accounts.models import Role
from accounts.services.accounts import AccountService
from accounts.services.credential_store import CredentialStore, SqlAlchemyCredentialStore
from accounts.services.mailer import BackgroundMailDispatcher, Mailer, MailDispatcher, SmtpMailer
from accounts.services.sessions import SessionManager

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Caller identity decoded from a valid access token."""

    user_id: str
    username: str
    role: str


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticated:
    principal: Principal


Authentication = Anonymous | Authenticated


def get_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    return SqlAlchemyCredentialStore(db)


def get_mailer(settings: Annotated[Settings, Depends(get_settings)]) -> Mailer:
    return SmtpMailer(settings)


def get_mail_dispatcher(
    background_tasks: BackgroundTasks,
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> MailDispatcher:
    return BackgroundMailDispatcher(background_tasks, mailer)


def get_session_manager(
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionManager:
    return SessionManager(store, settings)


def get_account_service(
    store: Annotated[CredentialStore, Depends(get_store)],
    mail: Annotated[MailDispatcher, Depends(get_mail_dispatcher)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AccountService:
    return AccountService(store, mail, settings)


def get_verification_base_url(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """Base of the email verification link; the plain token is appended to it."""
    base = settings.PUBLIC_BASE_URL or str(request.base_url).rstrip("/")
    return f"{base}{settings.API_V1_PREFIX}/users/verify-email"


def authenticate(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Authentication:
    """No bearer header means Anonymous; a bearer token that fails to verify is a 403."""
    if credentials is None:
        return Anonymous()
    try:
        claims = verify_access_token(credentials.credentials, settings)
    except InvalidTokenError as e:
        raise ForbiddenError("Invalid Token!") from e
    return Authenticated(
        Principal(user_id=claims.user_id, username=claims.username, role=claims.role)
    )


def require_principal(
    auth: Annotated[Authentication, Depends(authenticate)],
) -> Principal:
    if isinstance(auth, Anonymous):
        raise UnauthenticatedError("Unauthorized!")
    return auth.principal


def require_admin(
    principal: Annotated[Principal, Depends(require_principal)],
    store: Annotated[CredentialStore, Depends(get_store)],
) -> Principal:
    """Caller must still exist and carry the admin role in its access token."""
    if store.get_by_username(principal.username) is None:
        raise UnauthenticatedError("Unauthorized!")
    if principal.role != Role.ADMIN.value:
        raise ForbiddenError("Admin access required")
    return principal
