from __future__ import annotations

import base64
import hashlib
import secrets
from datetime import datetime, timedelta

import bcrypt

from easylist_backend.models import Token, utc_now

_MAX_BCRYPT_PASSWORD_BYTES = 72

SCOPE_AUTHENTICATION = "authentication"


def hash_password(password: str) -> str:
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > _MAX_BCRYPT_PASSWORD_BYTES:
        raise ValueError("password too long (bcrypt accepts at most 72 bytes)")
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=12)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > _MAX_BCRYPT_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except ValueError:
        return False


def hash_token(plaintext: str) -> bytes:
    return hashlib.sha256(plaintext.encode("utf-8")).digest()


def generate_token(
    *, user_id: int, ttl: timedelta, scope: str = SCOPE_AUTHENTICATION, now: datetime | None = None
) -> tuple[str, Token]:
    """Return ``(plaintext, row)``; only the sha256 of the plaintext is stored."""
    # 16 random bytes -> 26 base32 characters without padding.
    plaintext = base64.b32encode(secrets.token_bytes(16)).decode("ascii").rstrip("=")
    row = Token(
        hash=hash_token(plaintext),
        user_id=user_id,
        scope=scope,
        expired_at=(now or utc_now()) + ttl,
    )
    return plaintext, row
