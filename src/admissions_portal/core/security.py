"""
Password Hashing and Session Tokens

- Passwords are hashed with bcrypt. Legacy scrypt hashes, stored as
  "<hex digest>.<salt>", are still accepted.
- Session tokens are HS256 JWTs signed with SESSION_SECRET. They carry only
  non-secret identity fields: user id, role and the active flag.

Every comparison of secret material is constant-time. Hashing and verification
are CPU bound; async callers run them through asyncio.to_thread.
"""

import hashlib
import hmac
import logging
import secrets
import string
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SESSION_TOKEN_TYPE = "session"

# scrypt parameters of legacy hashes
_SCRYPT_N = 16384
_SCRYPT_R = 8
_SCRYPT_P = 1
_SCRYPT_KEYLEN = 64

# Dummy hash so unknown usernames still pay the bcrypt cost
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode()


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def _verify_legacy_scrypt(password: str, stored: str) -> bool:
    hashed_hex, _, salt = stored.partition(".")
    if not hashed_hex or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed_hex)
    except ValueError:
        return False
    supplied = hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        dklen=_SCRYPT_KEYLEN,
    )
    return hmac.compare_digest(expected, supplied)


def verify_password(password: str, stored_hash: str) -> bool:
    """
    Check a password against a stored hash.

    Args:
        password: Plain text password supplied by the caller
        stored_hash: bcrypt hash, or legacy scrypt "<hex>.<salt>" string

    Returns:
        True if the password matches
    """
    if stored_hash.startswith("$2"):
        try:
            return bcrypt.checkpw(password.encode(), stored_hash.encode())
        except ValueError:
            logger.warning("Stored bcrypt hash is malformed")
            return False
    return _verify_legacy_scrypt(password, stored_hash)


def burn_password_check(password: str) -> None:
    """Spend the same time as a real check when the username is unknown."""
    bcrypt.checkpw(password.encode(), _DUMMY_HASH.encode())


def generate_temporary_password(length: int = 12) -> str:
    """
    Generate a temporary password with at least one upper, lower, digit and symbol.
    """
    symbols = "!@#$%^&*"
    alphabet = string.ascii_letters + string.digits + symbols
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(symbols),
    ]
    rest = [secrets.choice(alphabet) for _ in range(max(length, 8) - len(required))]
    chars = required + rest
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def create_session_token(
    *,
    subject: str,
    role: str,
    active: bool,
    secret: str,
    ttl_minutes: int,
) -> str:
    """Create a signed session token for an authenticated identity."""
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "active": active,
        "type": SESSION_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=ttl_minutes),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, secret: str) -> dict[str, Any] | None:
    """
    Verify a session token's signature and expiry.

    Returns:
        The claims, or None if the token is invalid, expired or not a session token
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug(f"Session token rejected: {e}")
        return None

    if payload.get("type") != SESSION_TOKEN_TYPE or not payload.get("sub"):
        return None
    return payload
