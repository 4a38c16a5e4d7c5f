"""Shared fixtures: isolated SQLite databases, a mail stub, and user factories."""

import re

from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from accounts.core.database import make_engine
from accounts.core.security import hash_password
from accounts.models import Base, LoginType, Role, User
from accounts.services.credential_store import SqlAlchemyCredentialStore
from accounts.services.mailer import MailMessage

_TOKEN_IN_LINK = re.compile(r"/([0-9a-f]{40})(?:\s|$|\")")


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database shared by every session from the factory."""
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


class RecordingMailDispatcher:
    """Captures dispatched mail instead of delivering it."""

    def __init__(self) -> None:
        self.messages: list[MailMessage] = []

    def dispatch(self, message: MailMessage) -> None:
        self.messages.append(message)

    @property
    def last(self) -> MailMessage:
        return self.messages[-1]


def token_from_mail(message: MailMessage) -> str:
    """Plain one-time token from the action link in a mail's text body."""
    match = _TOKEN_IN_LINK.search(message.text)
    if match is None:
        raise AssertionError(f"No token link in mail: {message.text!r}")
    return match.group(1)


def add_user(
    session: Session,
    username: str = "annlee",
    email: str = "a@x.com",
    password: str = "secret1",
    role: Role = Role.BASIC,
    verified: bool = False,
) -> User:
    return SqlAlchemyCredentialStore(session).create(
        username=username,
        email=email,
        first_name="Ann",
        last_name="Lee",
        password_hash=hash_password(password),
        role=role.value,
        login_type=LoginType.EMAIL.value,
        is_email_verified=verified,
    )
