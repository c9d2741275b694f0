"""
Password hashing and session token codec.

Tokens are compact HS256 JWTs:

    base64url(header).base64url(payload).base64url(HMAC-SHA256 signature)

with payload ``{"userId": "<uuid>", "iat": <unix>, "exp": <unix>}``.

Security notes:
- Tokens are stateless; there is no server-side revocation list, so a leaked
  token stays valid until ``exp``.
- We do NOT store sensitive data in the token (email, name, etc.)
"""

import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt
from jose.exceptions import JOSEError
from passlib.context import CryptContext

from showerlog.config import get_settings

BCRYPT_ROUNDS = 12

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


# =============================================================================
# PASSWORDS
# =============================================================================


def hash_password(password: str) -> str:
    """Hash a plaintext password with bcrypt (cost factor 12)."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        return False


# =============================================================================
# SESSION TOKENS
# =============================================================================


def create_access_token(user_id: UUID, *, now: datetime | None = None) -> str:
    """
    Create a signed session token for a user.

    ``now`` is only overridden in tests to mint already-expired tokens.
    """
    settings = get_settings()
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "userId": str(user_id),
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID | None:
    """
    Decode and validate a session token.

    Returns the user id if the signature matches and the token has not
    expired, None for anything else (wrong segment count, bad base64,
    tampered signature, expired, missing or malformed userId).
    """
    settings = get_settings()
    if not isinstance(token, str) or token.count(".") != 2:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        user_id_str = payload.get("userId")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JOSEError, ValueError, TypeError, AttributeError):
        return None


def generate_single_use_token() -> str:
    """Opaque token for email verification and password reset links."""
    return secrets.token_urlsafe(32)
