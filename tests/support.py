"""Shared helpers for tests: isolated SQLite databases, users and wallet signatures."""

from eth_account import Account
from eth_account.messages import encode_defunct
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from guildhall.core.security import hash_password
from guildhall.models import Base, User, UserRole

DEFAULT_PASSWORD = "Password123"


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database shared by every session from the returned factory."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_user(
    db: Session,
    username: str = "alice",
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    role: UserRole = UserRole.USER,
    is_active: bool = True,
    **kwargs: object,
) -> User:
    """Insert a user directly, bypassing the auth flow."""
    defaults: dict[str, object] = {"first_name": "Test", "last_name": "User"}
    defaults.update(kwargs)
    user = User(
        email=email or f"{username}@example.com",
        username=username,
        password_hash=hash_password(password),
        role=role.value,
        is_active=is_active,
        **defaults,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def sign_wallet_message(message: str, account=None) -> tuple[str, str]:
    """Sign message with account (a new random one by default); return (address, 0x signature)."""
    account = account or Account.create()
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return account.address, "0x" + bytes(signed.signature).hex()
