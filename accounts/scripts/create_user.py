"""
Create a user directly in the store (e.g. the first admin). Run from project root:
  python -m accounts.scripts.create_user USERNAME EMAIL PASSWORD [--role admin]
Example:
  python -m accounts.scripts.create_user root admin@example.com 's3cret!' --role admin --verified
"""
import argparse
import sys

from accounts.core.database import SessionLocal
from accounts.core.errors import ConflictError
from accounts.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
)
from accounts.models import LoginType, Role
from accounts.services.credential_store import SqlAlchemyCredentialStore, normalize_username


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create an account without the registration flow.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("--role", default=Role.BASIC.value, choices=[r.value for r in Role])
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    parser.add_argument(
        "--verified",
        action="store_true",
        help="Mark the email address as already verified",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    username = normalize_username(args.username)
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if "@" not in args.email:
        print("Invalid email address.", file=sys.stderr)
        return 1
    password = args.password.strip()
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        store = SqlAlchemyCredentialStore(db)
        if store.find_existing(username, args.email) is not None:
            print(f"User '{username}' or email '{args.email}' already exists.", file=sys.stderr)
            return 1
        try:
            store.create(
                username=username,
                email=args.email,
                first_name=args.first_name,
                last_name=args.last_name,
                password_hash=hash_password(password),
                role=args.role,
                login_type=LoginType.EMAIL.value,
                is_email_verified=args.verified,
            )
        except ConflictError as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
