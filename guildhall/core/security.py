"""Password hashing, JWT access/refresh tokens and wallet signature verification."""

import re
import secrets
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, Literal, NamedTuple

import bcrypt
import jwt
from eth_account import Account
from eth_account.messages import encode_defunct

from guildhall.core.config import settings

# Min/max lengths for credential validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 50
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# 0x followed by exactly 40 hex characters, either case.
WALLET_ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")

TokenType = Literal["access", "refresh"]


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def unusable_password_hash() -> str:
    """Hash of a random secret nobody knows; for accounts that only sign in with a wallet."""
    return hash_password(secrets.token_urlsafe(32))


def _secret_for(token_type: TokenType) -> str:
    if token_type == "access":
        return settings.JWT_SECRET.get_secret_value()
    return settings.REFRESH_TOKEN_SECRET.get_secret_value()


def _create_token(
    token_type: TokenType,
    sub: str,
    email: str,
    role: str,
    wallet_address: str | None,
    expires_in: int,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": sub,
        "email": email,
        "role": role,
        "type": token_type,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(seconds=expires_in),
    }
    if wallet_address:
        payload["walletAddress"] = wallet_address
    return jwt.encode(payload, _secret_for(token_type), algorithm=settings.JWT_ALGORITHM)


def create_token_pair(
    sub: str,
    email: str,
    role: str,
    wallet_address: str | None = None,
) -> TokenPair:
    """
    Mint a short-lived access token and a long-lived refresh token with the same claims.

    Each token carries a random jti, so two pairs minted within the same second differ.
    """
    return TokenPair(
        access_token=_create_token(
            "access", sub, email, role, wallet_address, settings.ACCESS_TOKEN_EXPIRE_SECONDS
        ),
        refresh_token=_create_token(
            "refresh", sub, email, role, wallet_address, settings.REFRESH_TOKEN_EXPIRE_SECONDS
        ),
    )


def _decode_token(token: str, token_type: TokenType) -> dict[str, Any]:
    payload = jwt.decode(
        token,
        _secret_for(token_type),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["sub", "exp", "iat"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate an access JWT; return its claims.
    Raises jwt.PyJWTError on invalid, expired or wrong-type token.
    """
    return _decode_token(token, "access")


def decode_refresh_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a refresh JWT; return its claims.
    Raises jwt.PyJWTError on invalid, expired or wrong-type token.
    """
    return _decode_token(token, "refresh")


def is_valid_wallet_address(address: str) -> bool:
    """True if address is 0x followed by exactly 40 hex characters."""
    return bool(address) and WALLET_ADDRESS_PATTERN.fullmatch(address) is not None


def recover_wallet_signer(message: str, signature: str) -> str:
    """
    Recover the address that produced an EIP-191 personal_sign signature over message.

    Raises ValueError if the signature is malformed or cannot be recovered.
    """
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        # eth-account surfaces bad input as assorted exception types (ValueError,
        # BadSignature, binascii.Error, TypeError); normalise them here.
        raise ValueError("Invalid signature") from e


def wallet_addresses_match(a: str, b: str) -> bool:
    return a.lower() == b.lower()
