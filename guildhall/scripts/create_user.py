"""
Create a user (e.g. the first admin, since roles can only be assigned by an admin). Run from project root:
  python -m guildhall.scripts.create_user EMAIL USERNAME PASSWORD [--role ROLE]
Example:
  python -m guildhall.scripts.create_user admin@example.com admin your-secure-password --role ADMIN
"""
import argparse
import logging
import sys

from sqlalchemy import or_

from guildhall.core.database import SessionLocal
from guildhall.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    hash_password,
    is_valid_wallet_address,
)
from guildhall.models import User, UserRole

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a Guildhall user.")
    parser.add_argument("email", help="Email address")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "--role",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    parser.add_argument("--first-name", default="")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--wallet-address", default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    username = args.username.strip()
    email = args.email.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        logger.error("Invalid username length.")
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        logger.error("Password must be %s-%s characters.", PASSWORD_MIN_LEN, PASSWORD_MAX_LEN)
        return 1
    if "@" not in email:
        logger.error("Invalid email address.")
        return 1
    if args.wallet_address is not None and not is_valid_wallet_address(args.wallet_address):
        logger.error("Invalid wallet address.")
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter(or_(User.username == username, User.email == email))
            .first()
        )
        if existing:
            logger.error("User with email '%s' or username '%s' already exists.", email, username)
            return 1
        user = User(
            email=email,
            username=username,
            password_hash=hash_password(args.password),
            first_name=args.first_name,
            last_name=args.last_name,
            wallet_address=args.wallet_address,
            role=args.role,
        )
        db.add(user)
        db.commit()
        logger.info("Created user '%s' with role '%s'.", username, args.role)
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
