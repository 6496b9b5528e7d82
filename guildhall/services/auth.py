"""Authentication flow: password and wallet sign-in, token pair issuance and refresh rotation."""

import logging
import secrets
from datetime import UTC, datetime

import jwt
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from guildhall.core.exceptions import (
    BadInputError,
    ConflictError,
    ForbiddenError,
    UnauthorizedError,
)
from guildhall.core.security import (
    create_token_pair,
    decode_refresh_token,
    hash_password,
    is_valid_wallet_address,
    recover_wallet_signer,
    unusable_password_hash,
    verify_password,
    wallet_addresses_match,
)
from guildhall.models import User
from guildhall.schemas.auth import (
    AuthResponse,
    AuthUser,
    LoginRequest,
    MeResponse,
    RefreshTokenRequest,
    RegisterRequest,
    WalletAuthRequest,
)
from guildhall.schemas.base import MessageResponse

logger = logging.getLogger(__name__)

# One message for unknown email and wrong password so accounts cannot be enumerated.
INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_SIGNATURE = "Invalid signature"
INVALID_WALLET_ADDRESS = "Invalid wallet address"
INACTIVE_ACCOUNT = "User account is inactive"

WALLET_USERNAME_PREFIX = "user_"
WALLET_EMAIL_DOMAIN = "wallet.local"
WALLET_SUFFIX_MIN_LEN = 6


def _commit(db: Session) -> None:
    """Commit; a uniqueness race surfaces as Conflict instead of a 500."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "User with this email, username or wallet address already exists", cause=e
        ) from e


def _issue_tokens(db: Session, user: User) -> AuthResponse:
    """Mint a new pair, store the refresh token (replacing any previous one) and commit."""
    pair = create_token_pair(
        sub=user.id,
        email=user.email,
        role=user.role,
        wallet_address=user.wallet_address,
    )
    user.refresh_token = pair.refresh_token
    _commit(db)
    return AuthResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=AuthUser.model_validate(user),
    )


def _ensure_active(user: User) -> None:
    if not user.is_active:
        logger.info("Sign-in rejected for inactive account", extra={"user_id": user.id})
        raise ForbiddenError(INACTIVE_ACCOUNT)


def find_user_by_wallet(db: Session, wallet_address: str) -> User | None:
    """Case-insensitive lookup by wallet address."""
    return (
        db.query(User)
        .filter(func.lower(User.wallet_address) == wallet_address.lower())
        .first()
    )


def register(db: Session, body: RegisterRequest) -> AuthResponse:
    """
    Create a password account and sign it in.

    Raises BadInputError for a malformed wallet address (before touching the store)
    and ConflictError when the email, username or wallet is already taken.
    """
    wallet_address = body.wallet_address or None
    if wallet_address is not None and not is_valid_wallet_address(wallet_address):
        raise BadInputError(INVALID_WALLET_ADDRESS)

    existing = (
        db.query(User)
        .filter(or_(User.email == body.email, User.username == body.username))
        .first()
    )
    if existing is not None:
        raise ConflictError("User with this email or username already exists")
    if wallet_address is not None and find_user_by_wallet(db, wallet_address) is not None:
        raise ConflictError("Wallet address is already linked to another account")

    user = User(
        email=body.email,
        username=body.username,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        wallet_address=wallet_address,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("User with this email or username already exists", cause=e) from e

    response = _issue_tokens(db, user)
    logger.info(
        "User registered",
        extra={"user_id": user.id, "has_wallet": wallet_address is not None},
    )
    return response


def login(db: Session, body: LoginRequest) -> AuthResponse:
    """Authenticate with email and password. Raises UnauthorizedError with a generic message."""
    user = db.query(User).filter(User.email == body.email).first()
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Login failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    _ensure_active(user)

    user.last_login_at = datetime.now(UTC)
    response = _issue_tokens(db, user)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return response


def _synthesize_wallet_username(db: Session, wallet_address: str) -> str:
    """
    user_<last 6 hex chars>; widened two characters at a time on collision so the
    result always ends with the address's final six characters.
    """
    hex_part = wallet_address[2:].lower()
    for length in range(WALLET_SUFFIX_MIN_LEN, len(hex_part) + 1, 2):
        candidate = f"{WALLET_USERNAME_PREFIX}{hex_part[-length:]}"
        taken = (
            db.query(User.id)
            .filter(
                or_(
                    User.username == candidate,
                    User.email == f"{candidate}@{WALLET_EMAIL_DOMAIN}",
                )
            )
            .first()
        )
        if taken is None:
            return candidate
    raise ConflictError("Could not allocate a username for this wallet")


def _provision_wallet_user(db: Session, wallet_address: str) -> User:
    username = _synthesize_wallet_username(db, wallet_address)
    user = User(
        email=f"{username}@{WALLET_EMAIL_DOMAIN}",
        username=username,
        password_hash=unusable_password_hash(),
        first_name="Wallet",
        last_name="User",
        wallet_address=wallet_address,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Wallet account already exists", cause=e) from e
    logger.info("Provisioned user for new wallet", extra={"user_id": user.id})
    return user


def wallet_auth(db: Session, body: WalletAuthRequest) -> AuthResponse:
    """
    Sign in by proving control of a wallet; first-time wallets get an account.

    The signature is checked before any lookup, so a mismatched signer never
    creates or mutates a record.
    """
    if not is_valid_wallet_address(body.wallet_address):
        raise BadInputError(INVALID_WALLET_ADDRESS)

    try:
        signer = recover_wallet_signer(body.message, body.signature)
    except ValueError as e:
        logger.info("Wallet signature could not be recovered")
        raise UnauthorizedError(INVALID_SIGNATURE, cause=e) from e
    if not wallet_addresses_match(signer, body.wallet_address):
        logger.info("Wallet signature signer mismatch")
        raise UnauthorizedError(INVALID_SIGNATURE)

    user = find_user_by_wallet(db, body.wallet_address)
    if user is None:
        user = _provision_wallet_user(db, body.wallet_address)
    _ensure_active(user)

    user.last_login_at = datetime.now(UTC)
    response = _issue_tokens(db, user)
    logger.info("Wallet login succeeded", extra={"user_id": user.id})
    return response


def refresh_tokens(db: Session, body: RefreshTokenRequest) -> AuthResponse:
    """
    Exchange the current refresh token for a new pair (rotation).

    A superseded token (already rotated, or cleared by logout) no longer matches
    the stored one and is rejected.
    """
    try:
        payload = decode_refresh_token(body.refresh_token)
    except jwt.PyJWTError as e:
        raise UnauthorizedError(INVALID_REFRESH_TOKEN, cause=e) from e

    user = db.get(User, str(payload["sub"]))
    if user is None:
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)
    if user.refresh_token is None or not secrets.compare_digest(
        user.refresh_token, body.refresh_token
    ):
        logger.warning(
            "Rejected refresh token that is not the user's current one",
            extra={"user_id": user.id},
        )
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)
    if not user.is_active:
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)

    return _issue_tokens(db, user)


def logout(db: Session, user_id: str) -> MessageResponse:
    """Clear the stored refresh token. Idempotent."""
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    user.refresh_token = None
    _commit(db)
    logger.info("User logged out", extra={"user_id": user_id})
    return MessageResponse(message="Logged out successfully")


def get_current_user_profile(db: Session, user_id: str) -> MeResponse:
    """
    Return the caller's own record. Reachable only with a valid access token, so a
    missing user is an authentication failure rather than a 404.
    """
    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return MeResponse.model_validate(user)
